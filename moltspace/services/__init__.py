"""
External service clients

- MoltbookClient: rate-limited Moltbook API client (httpx)
- EmbeddingService: OpenAI-compatible embedding provider (optional)
"""
from .moltbook_client import MoltbookClient, RateLimiter
from .embeddings import EmbeddingService

__all__ = ['MoltbookClient', 'RateLimiter', 'EmbeddingService']
