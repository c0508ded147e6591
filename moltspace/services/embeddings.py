"""
EmbeddingService - post embeddings through an OpenAI-compatible API

The provider is optional. Without OPENAI_API_KEY the service reports
is_available == False and the ingestion job skips the embedding stage.
EMBEDDING_BASE_URL points the client at another compatible provider.
"""
import logging
from typing import List, Optional

from openai import AsyncOpenAI

from moltspace.config import get_settings
from moltspace.errors import DependencyUnavailable

logger = logging.getLogger(__name__)

DIMENSIONS = 1536
MAX_INPUT_CHARS = 8000


class EmbeddingService:
    """Black-box text -> vector[1536] provider"""

    def __init__(
        self,
        api_key: Optional[str] = None,
        base_url: Optional[str] = None,
        model: Optional[str] = None,
        client: Optional[AsyncOpenAI] = None
    ):
        settings = get_settings()
        if api_key is None and settings.embeddings_enabled:
            api_key = settings.openai_api_key
        self.model = model or settings.embedding_model

        if client is None and api_key:
            client = AsyncOpenAI(
                api_key=api_key,
                base_url=base_url or settings.embedding_base_url
            )
        self.client = client

    @property
    def is_available(self) -> bool:
        return self.client is not None

    def _require_client(self):
        if self.client is None:
            raise DependencyUnavailable("OPENAI_API_KEY is not set")

    @staticmethod
    def _truncate(text: str) -> str:
        if len(text) > MAX_INPUT_CHARS:
            return text[:MAX_INPUT_CHARS] + "..."
        return text

    async def generate_embedding(self, text: str) -> List[float]:
        """
        Generate embedding for a single text.

        Text longer than MAX_INPUT_CHARS is truncated.

        Raises:
            DependencyUnavailable: No provider credential configured
        """
        self._require_client()

        try:
            response = await self.client.embeddings.create(
                model=self.model,
                input=self._truncate(text),
                dimensions=DIMENSIONS
            )
        except Exception as e:
            logger.error(f"Failed to generate embedding: {e}")
            raise

        return response.data[0].embedding

    async def generate_embeddings(self, texts: List[str]) -> List[List[float]]:
        """
        Generate embeddings for several texts in one request.

        Returns:
            One vector per input text, in input order
        """
        self._require_client()
        if not texts:
            return []

        try:
            response = await self.client.embeddings.create(
                model=self.model,
                input=[self._truncate(text) for text in texts],
                dimensions=DIMENSIONS
            )
        except Exception as e:
            logger.error(f"Failed to generate embeddings: {e}")
            raise

        data = sorted(response.data, key=lambda item: item.index)
        return [item.embedding for item in data]
