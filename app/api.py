"""HTTP route definitions for the status API."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Response, status

from app.schemas import PipelineStats, PipelineStatus, SnapshotResponse
from services.pipeline import AcquisitionPipeline, build_default_pipeline

router = APIRouter()


def get_pipeline() -> AcquisitionPipeline:
    return build_default_pipeline()


@router.get(
    "/readings/latest",
    response_model=SnapshotResponse,
    summary="Most recent snapshot written to the time-series store.",
)
async def get_latest_reading(
    pipeline: AcquisitionPipeline = Depends(get_pipeline),
) -> SnapshotResponse:
    snapshot = pipeline.latest_snapshot()
    if snapshot is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="No telegram has been written yet.",
        )
    return SnapshotResponse.from_snapshot(snapshot)


@router.get(
    "/pipeline/stats",
    response_model=PipelineStats,
    summary="Counters and state of the acquisition pipeline.",
)
async def get_pipeline_stats(
    pipeline: AcquisitionPipeline = Depends(get_pipeline),
) -> PipelineStats:
    return pipeline.stats()


@router.get(
    "/health",
    summary="Health check endpoint; 503 once the pipeline has stopped reading.",
    status_code=status.HTTP_200_OK,
)
async def healthcheck(
    response: Response,
    pipeline: AcquisitionPipeline = Depends(get_pipeline),
) -> dict[str, str]:
    state = pipeline.stats().status
    if state in (PipelineStatus.exhausted, PipelineStatus.failed):
        response.status_code = status.HTTP_503_SERVICE_UNAVAILABLE
        return {"status": "unavailable", "pipeline": state.value}
    return {"status": "ok"}


@router.get(
    "/",
    summary="Root endpoint mirrors health information.",
    status_code=status.HTTP_200_OK,
)
async def root() -> dict[str, str]:
    return {"status": "ok", "detail": "See /health for service status."}
