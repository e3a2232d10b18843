"""
Compliance API Endpoints
Explicit trigger for the compliance scan (manual or from an external scheduler)
"""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from iep_monitor.api.deps import get_current_actor
from iep_monitor.core.database import get_db
from iep_monitor.schemas.compliance import ScanResult
from iep_monitor.services.compliance_scanner import ComplianceScanner

router = APIRouter(prefix="/compliance", tags=["Compliance"])


@router.post("/scan", response_model=ScanResult)
async def run_compliance_scan(
    db: AsyncSession = Depends(get_db),
    actor_id: str = Depends(get_current_actor),
):
    return await ComplianceScanner(db).scan(actor_id)
