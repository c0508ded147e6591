"""
Moltbook ingestion pipeline

Stages (fixed order):
    agents -> submolts -> posts -> embeddings -> comments

- fetcher: drives MoltbookClient through pagination, collects page errors
- processor: upserts entities by moltbook id, returns moltbook_id -> id maps
- comment_tree: flattens nested replies parent-before-child
- job: sequences the stages and builds the run report
"""
from .fetcher import MoltbookFetcher, FetchPostsResult
from .processor import EntityProcessor, ReconcileResult
from .comment_tree import CommentTreeFlattener
from .job import IngestionJob, IngestionStats

__all__ = [
    'MoltbookFetcher',
    'FetchPostsResult',
    'EntityProcessor',
    'ReconcileResult',
    'CommentTreeFlattener',
    'IngestionJob',
    'IngestionStats',
]
