"""
Monitoring endpoints.
"""
from fastapi import APIRouter
from fastapi.responses import StreamingResponse

from app.utils.prometheus_metrics import get_metrics, CONTENT_TYPE_LATEST

router = APIRouter(
    prefix="/api/monitoring",
    tags=["Monitoring"]
)


@router.get("/metrics")
async def metrics():
    """
    Prometheus metrics.
    Available at: /api/monitoring/metrics
    """
    return StreamingResponse(
        iter([get_metrics()]),
        media_type=CONTENT_TYPE_LATEST
    )
