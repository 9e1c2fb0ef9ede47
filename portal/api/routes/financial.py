from fastapi import APIRouter, Depends, status
from typing import List
from portal.api.deps import get_admin_or_hr_session, get_backend_client, get_trackers
from portal.schemas.auth import SessionContext
from portal.schemas.financial import FinancialEntry, FinancialEntryCreate, FinancialSummary
from portal.services.attendance_service import TrackerRegistry
from portal.services.backend_client import BackendClient
from portal.services.financial_service import financial_service

router = APIRouter(prefix="/financial", tags=["Financial"])


@router.get("/summary", response_model=FinancialSummary)
def financial_summary(
    time_range: str = "30d",
    client: BackendClient = Depends(get_backend_client),
    session: SessionContext = Depends(get_admin_or_hr_session),
    trackers: TrackerRegistry = Depends(get_trackers)
):
    """Revenue, spending, profit margin and category breakdown."""
    today = trackers.today()
    return financial_service.summary(client, session, time_range, today)


@router.get("/entries", response_model=List[FinancialEntry])
def list_entries(
    client: BackendClient = Depends(get_backend_client),
    session: SessionContext = Depends(get_admin_or_hr_session)
):
    """Raw financial entries."""
    return financial_service.entries(client, session)


@router.post("/entries", response_model=FinancialEntry, status_code=status.HTTP_201_CREATED)
def add_entry(
    data: FinancialEntryCreate,
    client: BackendClient = Depends(get_backend_client),
    session: SessionContext = Depends(get_admin_or_hr_session)
):
    """Record a revenue or spending entry."""
    return financial_service.add_entry(client, session, data)
