# barbershop/routers/reports_routes.py

from fastapi import APIRouter, Depends

from barbershop.deps import get_report_service, require_admin
from barbershop.schemas import CurrentUser, Dashboard, ReportPeriod
from barbershop.services.reports import ReportService

router = APIRouter(
    tags=["reports"],
)


@router.get("/dashboard", response_model=Dashboard)
def shop_dashboard(
    period: ReportPeriod = ReportPeriod.week,
    current_user: CurrentUser = Depends(require_admin),
    reports: ReportService = Depends(get_report_service),
):
    return reports.dashboard(period)
