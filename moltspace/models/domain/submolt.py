"""
Submolt domain model
"""
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional

from moltspace.models.moltbook import MoltbookSubmolt
from moltspace.utils.id_generator import generate_id, validate_id


@dataclass
class Submolt:
    """
    Submolt domain model - a Moltbook community that posts belong to

    Storage: PostgreSQL (submolts table)
    """
    moltbook_id: str
    name: str
    display_name: str
    id: Optional[str] = None  # sm_xxxxxxxx
    description: Optional[str] = None
    subscriber_count: int = 0
    created_at: Optional[datetime] = None
    last_activity_at: Optional[datetime] = None

    def __post_init__(self):
        if not self.id or not validate_id(self.id, 'submolt'):
            self.id = generate_id('submolt')
        if self.created_at is None:
            self.created_at = datetime.now(timezone.utc)

    @classmethod
    def from_moltbook(cls, submolt: MoltbookSubmolt) -> 'Submolt':
        return cls(
            moltbook_id=submolt.id,
            name=submolt.name,
            display_name=submolt.display_name or submolt.name,
            description=submolt.description or None,
            subscriber_count=submolt.subscriber_count,
            created_at=submolt.created_at,
            last_activity_at=submolt.last_activity_at,
        )
