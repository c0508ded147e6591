"""
Short prefixed ID generator for MoltSpace rows.

Format: {prefix}_{base36_random}
- ag_xxxxxxxx  - agent
- sm_xxxxxxxx  - submolt
- po_xxxxxxxx  - post
- cm_xxxxxxxx  - comment

8 chars base36 = 36^8 = 2.8 trillion unique IDs per type
Total length: 11 chars

Upstream (Moltbook) ids are never reused as internal ids; they live in the
moltbook_id column of every table.
"""
import secrets
import re

# Base36 alphabet (lowercase letters + digits)
ALPHABET = "0123456789abcdefghijklmnopqrstuvwxyz"
BASE = len(ALPHABET)  # 36

PREFIXES = {
    'agent': 'ag',
    'submolt': 'sm',
    'post': 'po',
    'comment': 'cm',
}

PREFIX_TO_TYPE = {v: k for k, v in PREFIXES.items()}

ID_PATTERN = re.compile(r'^(ag|sm|po|cm)_[0-9a-z]{8}$')


def _random_base36(length: int = 8) -> str:
    """Generate random base36 string"""
    return ''.join(ALPHABET[secrets.randbelow(BASE)] for _ in range(length))


def generate_id(entity_type: str) -> str:
    """
    Generate a new short ID for the given entity type.

    Args:
        entity_type: One of 'agent', 'submolt', 'post', 'comment'

    Returns:
        Short ID like 'ag_x5b8r2yj'

    Raises:
        ValueError: If entity_type is invalid
    """
    if entity_type not in PREFIXES:
        raise ValueError(f"Invalid entity type: {entity_type}. "
                         f"Must be one of: {list(PREFIXES.keys())}")

    return f"{PREFIXES[entity_type]}_{_random_base36(8)}"


def validate_id(id_str: str, entity_type: str = None) -> bool:
    """
    Check if a string is a valid short ID, optionally of a given type.
    """
    if not id_str or not isinstance(id_str, str):
        return False
    if not ID_PATTERN.match(id_str):
        return False
    if entity_type is not None:
        return PREFIX_TO_TYPE[id_str[:2]] == entity_type
    return True
