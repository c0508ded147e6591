"""
MoltbookFetcher - full pagination over the Moltbook API

Policies:
- Posts: fail fast per page. A page error stops pagination and the posts
  accumulated so far are returned together with the error message.
- Comments: best effort. Errors are logged and whatever was fetched is
  returned; nothing propagates.
- Agents / submolts: single call; any failure becomes an empty list.
- Malformed items: dropped one by one by the page models. Their messages
  collect in `rejected` until the caller takes them with take_rejected().

The inter-page delay throttles logical pagination steps and comes on top of
the client's own per-request rate limit.
"""
import asyncio
import logging
from dataclasses import dataclass, field
from typing import Awaitable, Callable, List, Optional

from moltspace.config import get_settings
from moltspace.models.moltbook import (
    MoltbookAgent,
    MoltbookComment,
    MoltbookPage,
    MoltbookPost,
    MoltbookSubmolt,
)
from moltspace.services.moltbook_client import MoltbookClient

logger = logging.getLogger(__name__)

PAGE_SIZE = 100
AGENT_FETCH_LIMIT = 100


@dataclass
class FetchPostsResult:
    posts: List[MoltbookPost] = field(default_factory=list)
    errors: List[str] = field(default_factory=list)


class MoltbookFetcher:
    """Pagination driver on top of a (rate-limited) MoltbookClient"""

    def __init__(
        self,
        client: MoltbookClient,
        page_delay: Optional[float] = None,
        comment_page_delay: Optional[float] = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep
    ):
        settings = get_settings()
        self.client = client
        self.page_delay = (
            settings.ingest_page_delay_ms / 1000.0 if page_delay is None else page_delay
        )
        self.comment_page_delay = (
            settings.ingest_comment_page_delay_ms / 1000.0
            if comment_page_delay is None else comment_page_delay
        )
        self._sleep = sleep
        self.rejected: List[str] = []

    def take_rejected(self) -> List[str]:
        """Return and clear messages for items dropped as malformed"""
        rejected, self.rejected = self.rejected, []
        return rejected

    def _collect_rejected(self, page: MoltbookPage):
        for message in page.rejected:
            logger.warning(message)
        self.rejected.extend(page.rejected)

    async def fetch_all_posts(
        self,
        max_items: Optional[int] = None,
        on_progress: Optional[Callable[[int], None]] = None
    ) -> FetchPostsResult:
        """
        Fetch posts (sort=new) page by page.

        Pagination continues while the upstream reports has_more, the last
        page was full, and fewer than max_items posts have been collected.
        Whole pages are fetched; the result is truncated to max_items.

        Args:
            max_items: Optional cap on the number of posts returned
            on_progress: Called with the running count after each page

        Returns:
            FetchPostsResult with the posts in upstream order plus page errors
        """
        result = FetchPostsResult()
        offset = 0
        has_more = True

        while has_more and (max_items is None or len(result.posts) < max_items):
            try:
                page = await self.client.get_posts(limit=PAGE_SIZE, offset=offset, sort='new')
            except Exception as e:
                message = f"Failed to fetch posts at offset {offset}: {e}"
                logger.error(message)
                result.errors.append(message)
                break

            self._collect_rejected(page)
            result.posts.extend(page.posts)
            has_more = page.has_more and page.received == PAGE_SIZE

            next_offset = page.next_offset
            if next_offset is None or next_offset <= offset:
                next_offset = offset + PAGE_SIZE
            offset = next_offset

            if on_progress:
                on_progress(len(result.posts))

            if has_more and (max_items is None or len(result.posts) < max_items):
                await self._sleep(self.page_delay)

        if max_items is not None and len(result.posts) > max_items:
            result.posts = result.posts[:max_items]

        logger.info(f"Fetched {len(result.posts)} posts ({len(result.errors)} page errors)")
        return result

    async def fetch_post_comments(self, post_id: str) -> List[MoltbookComment]:
        """
        Fetch all top-level comments (with nested replies) for one post.

        The comments endpoint has no has_more flag; a short page ends the
        listing. Errors stop pagination and are only logged.
        """
        comments: List[MoltbookComment] = []
        offset = 0

        while True:
            try:
                page = await self.client.get_comments(post_id, limit=PAGE_SIZE, offset=offset)
            except Exception as e:
                logger.error(f"Failed to fetch comments for post {post_id} at offset {offset}: {e}")
                break

            self._collect_rejected(page)
            comments.extend(page.comments)
            offset += page.received

            if page.received < PAGE_SIZE:
                break

            await self._sleep(self.comment_page_delay)

        return comments

    async def fetch_all_agents(self) -> List[MoltbookAgent]:
        """
        Fetch one batch of recent agents (the endpoint has no offset).

        Authors missing from this batch are created on the fly while posts
        are processed.
        """
        try:
            page = await self.client.get_agents(limit=AGENT_FETCH_LIMIT, sort='recent')
        except Exception as e:
            logger.error(f"Failed to fetch agents: {e}")
            return []

        self._collect_rejected(page)
        return page.agents

    async def fetch_all_submolts(self) -> List[MoltbookSubmolt]:
        """Fetch all submolts."""
        try:
            page = await self.client.get_submolts()
        except Exception as e:
            logger.error(f"Failed to fetch submolts: {e}")
            return []

        self._collect_rejected(page)
        return page.submolts
