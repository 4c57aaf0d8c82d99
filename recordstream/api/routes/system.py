"""Service banner and health endpoints.

Endpoints:
- /        — Plain-text banner
- /health  — Service health; checks the database when it backs the stream
"""

import logging

from fastapi import APIRouter
from fastapi.responses import JSONResponse, PlainTextResponse

from recordstream import __version__
from recordstream.api.routes.records import active_stream_count
from recordstream.api.schemas import HealthResponse, HealthStatus
from recordstream.settings import get_settings
from recordstream.sources import DatabaseRecordSource, GeneratedRecordSource, get_record_source

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/", response_class=PlainTextResponse, include_in_schema=False)
async def banner() -> str:
    return "NDJSON record streaming backend is running."


@router.get(
    "/health",
    response_model=HealthResponse,
    summary="Health Check",
    description="Reports the record source and open streams. Returns 503 if the database source is unreachable.",
    responses={503: {"model": HealthResponse}},
)
async def health_check() -> HealthResponse | JSONResponse:
    settings = get_settings()
    source = get_record_source(settings)
    health = HealthResponse(
        status=HealthStatus.HEALTHY,
        version=__version__,
        source=source.name,
        active_streams=active_stream_count(),
    )

    if isinstance(source, GeneratedRecordSource):
        health.record_count = source.total_records
        return health

    if isinstance(source, DatabaseRecordSource):
        try:
            health.record_count = await source.count()
            health.database = "connected"
        except Exception as e:
            logger.warning("Health check could not reach the database: %s", e)
            health.status = HealthStatus.UNHEALTHY
            health.database = "error"
            health.error = str(e)
            return JSONResponse(status_code=503, content=health.model_dump(mode="json"))

    return health
