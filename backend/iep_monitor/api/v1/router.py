from fastapi import APIRouter
from iep_monitor.api.v1.endpoints import analytics, cases, compliance, notifications, reports

api_router = APIRouter()

api_router.include_router(cases.router)
api_router.include_router(analytics.router)
api_router.include_router(compliance.router)
api_router.include_router(notifications.router)
api_router.include_router(reports.router)


@api_router.get("/health", tags=["Health"])
async def health_check():
    """Simple health check endpoint for load balancer"""
    return {"status": "healthy", "service": "iep-monitor"}
