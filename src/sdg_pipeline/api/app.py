"""
Ingestion API: accepts batches of canonical records and upserts them.

Endpoints:
    POST /api/sdg/upload   JSON array of records -> {"message", "inserted"}
    GET  /health           liveness probe

Run with ``python -m sdg_pipeline.api.app``.
"""

from typing import Any, List, Optional

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field, ValidationError
from starlette.concurrency import run_in_threadpool

from sdg_pipeline.config import API_HOST, DEFAULT_API_PORT, env_number
from sdg_pipeline.exceptions import StoreError
from sdg_pipeline.logging_config import create_logger
from sdg_pipeline.store import IndicatorValueStore

logger = create_logger(__name__)

UPLOAD_PATH = "/api/sdg/upload"


class IndicatorRecordIn(BaseModel):
    """One canonical record as sent by the upload sink."""

    sdg_goal: Optional[int] = None
    sdg_name: Optional[str] = None
    state: Optional[str] = None
    indicator_name: str = Field(min_length=1)
    indicator_value: Optional[float] = None
    year: int
    source_url: Optional[str] = None
    data_source: Optional[str] = None


def _error(status_code: int, message: str, **extra: Any) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message, **extra})


def create_app(store: Optional[IndicatorValueStore] = None) -> FastAPI:
    """Build the ingestion application around ``store``.

    :param store: Target store; a file-backed store at ``DB_PATH`` when omitted
    """
    store = store or IndicatorValueStore()
    store.initialize()

    app = FastAPI(title="SDG Ingestion API")
    app.state.store = store

    @app.get("/health")
    async def health() -> dict:
        return {"status": "ok"}

    @app.post(UPLOAD_PATH)
    async def upload(request: Request) -> JSONResponse:
        try:
            payload = await request.json()
        except ValueError:
            return _error(400, "Invalid or empty data array")

        if not isinstance(payload, list) or not payload:
            return _error(400, "Invalid or empty data array")

        records: List[IndicatorRecordIn] = []
        for index, item in enumerate(payload):
            try:
                records.append(IndicatorRecordIn.model_validate(item))
            except ValidationError as e:
                details = [
                    f"{'.'.join(str(part) for part in err['loc'])}: {err['msg']}"
                    for err in e.errors()
                ]
                return _error(400, f"Invalid record at index {index}", details=details)

        try:
            inserted = await run_in_threadpool(
                store.upsert, [record.model_dump() for record in records]
            )
        except StoreError as e:
            logger.error(f"Bulk insert failed: {e}")
            return _error(500, str(e))

        return JSONResponse(content={"message": "Bulk import complete", "inserted": inserted})

    return app


if __name__ == "__main__":
    import uvicorn

    port = env_number("SDG_API_PORT", int, DEFAULT_API_PORT)
    uvicorn.run(create_app(), host=API_HOST, port=port)
