"""API for the hours ledger report."""

from datetime import date

from fastapi import APIRouter, Depends, Query
from fastapi.responses import Response
from sqlalchemy.ext.asyncio import AsyncSession

from src.core.config import settings
from src.core.database.session import get_db
from src.core.exceptions import ValidationError
from src.modules.reports.excel_export import XLSX_MEDIA_TYPE
from src.modules.reports.schemas import HoursLedgerResponse
from src.modules.reports.service import HoursLedgerService
from src.shared.schemas.base import ApiResponse

router = APIRouter(prefix="/reports", tags=["Reports"])


@router.get(
    "/hours-ledger",
    response_model=ApiResponse[HoursLedgerResponse],
)
async def get_hours_ledger(db: AsyncSession = Depends(get_db)):
    """
    Hours ledger overview: volunteer columns in export order, per-section
    totals and the six summary rows. Same numbers as the CSV/XLSX export.
    """
    service = HoursLedgerService(db)
    ledger = await service.build_ledger()
    return ApiResponse(data=HoursLedgerResponse(**service.to_response(ledger)))


@router.get("/hours-ledger/export")
async def export_hours_ledger(
    format: str = Query("csv", description="Format: csv or xlsx"),
    db: AsyncSession = Depends(get_db),
):
    """Download the hours ledger in the legacy NSS Hours layout."""
    fmt = format.lower()
    if fmt not in ("csv", "xlsx"):
        raise ValidationError("Format must be csv or xlsx", field="format")
    service = HoursLedgerService(db)
    filename = f"{settings.report_filename_prefix}_{date.today().isoformat()}.{fmt}"
    if fmt == "csv":
        content = (await service.export_csv()).encode("utf-8")
        media_type = "text/csv"
    else:
        content = await service.export_xlsx()
        media_type = XLSX_MEDIA_TYPE
    return Response(
        content=content,
        media_type=media_type,
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )
