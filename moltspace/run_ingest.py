#!/usr/bin/env python3
"""
Run one Moltbook ingestion batch from the command line.

Usage:
    moltspace-ingest                        # 100 posts, no comments
    moltspace-ingest --max-posts 500
    moltspace-ingest --max-posts 50 --include-comments
"""
import argparse
import asyncio
import json
import logging
import sys

from moltspace.ingestion import IngestionJob
from moltspace.repositories import get_db_pool, init_schema

logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)


def parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Ingest Moltbook data into PostgreSQL")
    parser.add_argument('--max-posts', type=int, default=100,
                        help='Maximum number of posts to fetch (default: 100)')
    parser.add_argument('--include-comments', action='store_true',
                        help='Also fetch and store comment trees')
    args = parser.parse_args(argv)
    if args.max_posts < 1:
        parser.error("--max-posts must be at least 1")
    return args


async def run(args: argparse.Namespace) -> dict:
    pool = await get_db_pool()
    try:
        await init_schema(pool)
        job = IngestionJob.from_pool(pool)
        try:
            return await job.execute(
                max_posts=args.max_posts,
                include_comments=args.include_comments
            )
        finally:
            await job.fetcher.client.close()
    finally:
        await pool.close()


def main(argv=None) -> int:
    args = parse_args(argv)
    result = asyncio.run(run(args))

    print(json.dumps(result, indent=2))
    if not result['success']:
        logger.error(f"Ingestion failed: {result['error']}")
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
