"""
MoltbookClient - rate-limited client for the Moltbook public API

All requests to the upstream host go through one RateLimiter, which enforces
a minimum interval between consecutive calls. The client never retries:
a non-2xx response or transport failure raises UpstreamError and the caller
decides what to do with the partial result.

Usage:
    async with MoltbookClient() as client:
        page = await client.get_posts(limit=100, offset=0, sort='new')
        for post in page.posts:
            ...
"""
import asyncio
import logging
import time
from typing import Awaitable, Callable, Optional, Type, TypeVar

import httpx
from pydantic import BaseModel, ValidationError

from moltspace.config import get_settings
from moltspace.errors import UpstreamError
from moltspace.models.moltbook import (
    AgentsPage,
    CommentsPage,
    MoltbookPost,
    PostsPage,
    SubmoltsPage,
)

logger = logging.getLogger(__name__)

ModelT = TypeVar('ModelT', bound=BaseModel)

POST_SORTS = ('new', 'top', 'discussed')
AGENT_SORTS = ('recent', 'karma', 'followers')


class RateLimiter:
    """
    Minimum-interval limiter for a single upstream host.

    The clock and sleep function are injectable so tests can run against a
    fake clock. wait() holds a lock while it sleeps and records the request
    time, so concurrent callers are serialized.
    """

    def __init__(
        self,
        min_interval: float = 1.0,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep
    ):
        self.min_interval = min_interval
        self._clock = clock
        self._sleep = sleep
        self._last_request: Optional[float] = None
        self._lock = asyncio.Lock()

    async def wait(self) -> float:
        """
        Suspend until the next request is allowed, then claim the slot.

        Returns:
            Seconds spent waiting
        """
        async with self._lock:
            waited = 0.0
            if self._last_request is not None:
                elapsed = self._clock() - self._last_request
                if elapsed < self.min_interval:
                    waited = self.min_interval - elapsed
                    await self._sleep(waited)
            self._last_request = self._clock()
            return waited


class MoltbookClient:
    """
    Typed access to the Moltbook read endpoints.

    Endpoints:
    - GET /api/v1/posts                  (limit, offset, sort)
    - GET /api/v1/posts/{id}
    - GET /api/v1/posts/{id}/comments    (limit, offset)
    - GET /api/v1/agents/recent          (limit, sort)
    - GET /api/v1/submolts
    """

    USER_AGENT = 'MoltSpace/1.0 (ingestion; +https://github.com/moltspace)'

    def __init__(
        self,
        base_url: Optional[str] = None,
        rate_limiter: Optional[RateLimiter] = None,
        timeout: Optional[float] = None,
        http_client: Optional[httpx.AsyncClient] = None
    ):
        settings = get_settings()
        self.base_url = (base_url or settings.moltbook_base_url).rstrip('/')
        self.rate_limiter = rate_limiter or RateLimiter(
            settings.moltbook_rate_limit_delay_ms / 1000.0
        )
        self.timeout = timeout or settings.moltbook_timeout_seconds
        self.headers = {
            'Accept': 'application/json',
            'User-Agent': self.USER_AGENT,
        }
        self.http = http_client

    async def _ensure_client(self):
        """Ensure httpx client exists."""
        if self.http is None or self.http.is_closed:
            self.http = httpx.AsyncClient(headers=self.headers, timeout=self.timeout)

    async def close(self):
        """Close the underlying HTTP client."""
        if self.http is not None and not self.http.is_closed:
            await self.http.aclose()

    async def __aenter__(self) -> 'MoltbookClient':
        await self._ensure_client()
        return self

    async def __aexit__(self, exc_type, exc, tb):
        await self.close()

    async def _get(self, path: str, params: Optional[dict] = None):
        """
        Rate-limited GET returning decoded JSON.

        Raises:
            UpstreamError: non-2xx status, transport failure or invalid JSON
        """
        await self._ensure_client()
        await self.rate_limiter.wait()

        url = f"{self.base_url}{path}"
        try:
            response = await self.http.get(url, params=params, headers=self.headers)
        except httpx.HTTPError as e:
            raise UpstreamError(None, str(e) or e.__class__.__name__) from e

        if not response.is_success:
            raise UpstreamError(response.status_code, response.reason_phrase)

        try:
            return response.json()
        except ValueError as e:
            raise UpstreamError(response.status_code, f"invalid JSON body: {e}") from e

    @staticmethod
    def _parse(model: Type[ModelT], data) -> ModelT:
        try:
            return model.model_validate(data)
        except ValidationError as e:
            raise UpstreamError(None, f"unexpected {model.__name__} payload: {e}") from e

    # =========================================================================
    # ENDPOINTS
    # =========================================================================

    async def get_posts(self, limit: int = 100, offset: int = 0, sort: str = 'new') -> PostsPage:
        """
        Fetch one page of posts.

        Args:
            limit: Page size
            offset: Offset into the listing
            sort: 'new', 'top' or 'discussed'

        Returns:
            PostsPage with posts plus has_more / next_offset hints
        """
        if sort not in POST_SORTS:
            raise ValueError(f"Invalid post sort: {sort}. Must be one of: {POST_SORTS}")

        data = await self._get('/api/v1/posts', params={
            'limit': limit,
            'offset': offset,
            'sort': sort,
        })
        return self._parse(PostsPage, data)

    async def get_post(self, post_id: str) -> MoltbookPost:
        """Fetch a single post by Moltbook id."""
        data = await self._get(f'/api/v1/posts/{post_id}')
        if isinstance(data, dict) and isinstance(data.get('post'), dict):
            data = data['post']
        return self._parse(MoltbookPost, data)

    async def get_comments(self, post_id: str, limit: int = 100, offset: int = 0) -> CommentsPage:
        """
        Fetch comments for a post. Each comment carries its nested replies.

        offset is only sent when non-zero.
        """
        params = {'limit': limit}
        if offset > 0:
            params['offset'] = offset

        data = await self._get(f'/api/v1/posts/{post_id}/comments', params=params)
        return self._parse(CommentsPage, data)

    async def get_agents(self, limit: int = 50, sort: str = 'recent') -> AgentsPage:
        """
        Fetch recently active agents. The endpoint has no offset.

        Args:
            limit: Maximum number of agents
            sort: 'recent', 'karma' or 'followers'
        """
        if sort not in AGENT_SORTS:
            raise ValueError(f"Invalid agent sort: {sort}. Must be one of: {AGENT_SORTS}")

        data = await self._get('/api/v1/agents/recent', params={
            'limit': limit,
            'sort': sort,
        })
        return self._parse(AgentsPage, data)

    async def get_submolts(self) -> SubmoltsPage:
        """Fetch all submolts (single call, no pagination)."""
        data = await self._get('/api/v1/submolts')
        return self._parse(SubmoltsPage, data)

    # =========================================================================
    # URL BUILDERS
    # =========================================================================

    def post_url(self, post_id: str) -> str:
        return f"{self.base_url}/post/{post_id}"

    def agent_url(self, agent_name: str) -> str:
        return f"{self.base_url}/u/{agent_name}"

    def submolt_url(self, submolt_name: str) -> str:
        return f"{self.base_url}/m/{submolt_name}"
