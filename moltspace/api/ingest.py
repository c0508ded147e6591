"""
Ingestion trigger endpoint

POST /api/ingest runs one batch ingestion against the Moltbook API and
returns the run statistics. Runs are on demand; there is no scheduler and
no run-level lock.
"""
import logging

from fastapi import APIRouter, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from moltspace.ingestion import IngestionJob
from moltspace.repositories import get_db_pool, init_schema

logger = logging.getLogger(__name__)

router = APIRouter()

# Globals (initialized on first request)
db_pool = None
ingestion_job = None


async def init_services() -> IngestionJob:
    """Initialize database pool, schema and the ingestion job"""
    global db_pool, ingestion_job

    if db_pool is None:
        pool = await get_db_pool()
        await init_schema(pool)
        db_pool = pool

    if ingestion_job is None:
        ingestion_job = IngestionJob.from_pool(db_pool)

    return ingestion_job


class IngestRequest(BaseModel):
    """Ingestion options (body is optional)"""
    model_config = ConfigDict(populate_by_name=True)

    max_posts: int = Field(100, alias='maxPosts', ge=1)
    include_comments: bool = Field(False, alias='includeComments')


async def read_options(request: Request) -> IngestRequest:
    """
    Parse ingestion options from the request body.

    An empty or unparseable body means defaults. Well-formed JSON with
    invalid values is rejected with 422.
    """
    try:
        data = await request.json()
    except ValueError:
        data = {}
    if not isinstance(data, dict):
        data = {}

    try:
        return IngestRequest.model_validate(data)
    except ValidationError as e:
        raise RequestValidationError(e.errors())


@router.post("/ingest")
async def run_ingest(request: Request):
    """
    Run one ingestion batch.

    Returns:
        {success: true, stats: {...}} - errors inside stats are expected and
        do not mean the run failed
        {success: false, error: "..."} with status 500 on catastrophic failure
    """
    body = await read_options(request)

    try:
        job = await init_services()
    except Exception as e:
        logger.error(f"Ingestion setup failed: {e}", exc_info=True)
        return JSONResponse(status_code=500, content={'success': False, 'error': str(e)})

    result = await job.execute(
        max_posts=body.max_posts,
        include_comments=body.include_comments
    )
    if not result['success']:
        return JSONResponse(status_code=500, content=result)
    return result
