"""Monitoring endpoints: health, performance counters and the error log."""

import time
from datetime import datetime, timezone

from fastapi import APIRouter, Depends, Query
from fastapi.responses import JSONResponse

from src.utils.logging import get_logger

from ..deps import AppServices, get_monitoring, get_services
from ..monitoring import MonitoringState, format_uptime

logger = get_logger(__name__)

router = APIRouter(prefix="/api/monitoring", tags=["monitoring"])

TOP_DASHBOARD_ENDPOINTS = 5


@router.get("/health")
async def health(
    services: AppServices = Depends(get_services),
    monitoring: MonitoringState = Depends(get_monitoring),
):
    """Check database connectivity and report request performance."""
    start = time.perf_counter()

    try:
        await services.storage.ping()
        db_response_time = round((time.perf_counter() - start) * 1000)
        video_count = await services.storage.count_videos()
        category_count = await services.storage.count_categories()
    except Exception as e:
        logger.exception("health_check_failed", error_type=type(e).__name__)
        return JSONResponse(
            status_code=503,
            content={
                "status": "unhealthy",
                "timestamp": datetime.now(timezone.utc).isoformat(),
                "error": str(e),
            },
        )

    perf = monitoring.performance.snapshot()
    uptime = monitoring.uptime_seconds()
    return {
        "status": "healthy",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "uptime": round(uptime),
        "uptimeFormatted": format_uptime(uptime),
        "database": {
            "status": "healthy",
            "responseTime": db_response_time,
            "videoCount": video_count,
            "categoryCount": category_count,
        },
        "performance": {
            "averageResponseTime": perf["averageResponseTime"],
            "totalRequests": perf["totalRequests"],
            "performanceScore": perf["performanceScore"],
            "meetsRequirement": perf["meetsRequirement"],
        },
        "pipeline": services.pipeline.describe(),
        "version": "1.0.0",
    }


@router.get("/performance")
async def performance(monitoring: MonitoringState = Depends(get_monitoring)):
    return monitoring.performance.snapshot()


@router.post("/performance/reset")
async def reset_performance(monitoring: MonitoringState = Depends(get_monitoring)):
    monitoring.performance.reset()
    return {"message": "Performance stats reset successfully"}


@router.get("/errors")
async def error_stats(monitoring: MonitoringState = Depends(get_monitoring)):
    return monitoring.errors.stats()


@router.get("/errors/log")
async def error_log(
    limit: int = Query(50, ge=0),
    monitoring: MonitoringState = Depends(get_monitoring),
):
    """Return the newest errors, newest first."""
    errors = monitoring.errors.recent(limit)
    return {"count": len(errors), "errors": errors}


@router.post("/errors/clear")
async def clear_errors(monitoring: MonitoringState = Depends(get_monitoring)):
    monitoring.errors.clear()
    return {"message": "Error log cleared successfully"}


@router.get("/dashboard")
async def dashboard(monitoring: MonitoringState = Depends(get_monitoring)):
    """Combine performance and error figures for a dashboard view."""
    perf = monitoring.performance.snapshot()
    errors = monitoring.errors.stats()

    return {
        "overview": {
            "status": "healthy",
            "uptime": format_uptime(monitoring.uptime_seconds()),
            "requests": perf["totalRequests"],
            "errors": errors["totalErrors"],
            "performanceScore": perf["performanceScore"],
        },
        "performance": {
            "avgResponseTime": perf["averageResponseTime"],
            "slowRequests": perf["slowRequestCount"],
            "topSlowEndpoints": perf["byEndpoint"][:TOP_DASHBOARD_ENDPOINTS],
        },
        "errors": {
            "last1Hour": errors["last1Hour"],
            "last24Hours": errors["last24Hours"],
            "topErrorEndpoints": errors["byEndpoint"][:TOP_DASHBOARD_ENDPOINTS],
        },
    }
