"""
Data Import/Export API Routes

Provides endpoints for:
- Weekly entry import (CSV/Excel upload)
- Dashboard export, summary or detailed (CSV/Excel)
- Import template download (CSV/Excel)
"""

from typing import Optional, List
from io import BytesIO
import pandas as pd

from fastapi import APIRouter, Depends, HTTPException, UploadFile, File, Query
from fastapi.responses import StreamingResponse
from sqlalchemy.orm import Session

from app.config import get_settings
from app.core.database import get_db
from app.api.deps import get_current_principal, get_date_range, get_store_filter
from app.schemas.weekly_entry import ImportResult
from app.services.access_scope import Principal, effective_stores
from app.services.aggregation import AggregationEngine, DateRange
from app.services.batch_importer import BatchImporter
from app.services import export

router = APIRouter()

XLSX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"


def _file_response(df: pd.DataFrame, filename: str, format: str, sheet_name: str) -> StreamingResponse:
    if format == "xlsx":
        return StreamingResponse(
            export.to_xlsx(df, sheet_name=sheet_name),
            media_type=XLSX_MEDIA_TYPE,
            headers={"Content-Disposition": f"attachment; filename={filename}.xlsx"}
        )
    return StreamingResponse(
        iter([export.to_csv(df)]),
        media_type="text/csv",
        headers={"Content-Disposition": f"attachment; filename={filename}.csv"}
    )


# ============================================================================
# IMPORT ENDPOINTS
# ============================================================================

@router.post("/import/entries", response_model=ImportResult)
async def import_entries_file(
    file: UploadFile = File(...),
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
):
    """
    Bulk import weekly entries from a CSV or Excel file.

    Required columns: storeCode, fiscalYear, weekNumber, totalSales,
    variableHours, numTransactions, averageWage
    Optional columns: totalFixedCost, notes

    Rows are imported independently; the response lists failed rows by
    1-based data row number.
    """
    if not file.filename:
        raise HTTPException(status_code=400, detail="No file provided")

    filename = file.filename.lower()
    if not (filename.endswith('.csv') or filename.endswith('.xlsx') or filename.endswith('.xls')):
        raise HTTPException(
            status_code=400,
            detail="Invalid file type. Supported formats: CSV, XLSX, XLS"
        )

    content = await file.read()
    try:
        # Read everything as text; BatchImporter does the numeric parsing per row
        if filename.endswith('.csv'):
            df = pd.read_csv(BytesIO(content), dtype=str, keep_default_na=False)
        else:
            df = pd.read_excel(BytesIO(content), dtype=str)
    except Exception as e:
        raise HTTPException(status_code=400, detail=f"Could not read file: {str(e)}")

    df.columns = [str(col).strip() for col in df.columns]
    rows = df.to_dict(orient="records")

    result = BatchImporter(db).import_rows(rows, principal)

    # Counts stay exact; only the error list is shortened
    limit = get_settings().import_error_limit
    result.errors = result.errors[:limit]
    return result


# ============================================================================
# EXPORT ENDPOINTS
# ============================================================================

@router.get("/export/dashboard")
async def export_dashboard(
    format: str = Query("csv", pattern="^(csv|xlsx)$"),
    view: str = Query("summary", pattern="^(summary|detailed)$"),
    date_range: DateRange = Depends(get_date_range),
    stores: Optional[List[str]] = Depends(get_store_filter),
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
):
    """Export dashboard data for the caller's visible stores."""
    engine = AggregationEngine(db)
    scope = effective_stores(principal, stores)

    if view == "detailed":
        df = export.detailed_frame(engine.detailed_entries(date_range, scope))
    else:
        df = export.summary_frame(engine.summary(date_range, scope))

    filename = f"dashboard_{view}_{date_range.start.isoformat()}_{date_range.end.isoformat()}"
    return _file_response(df, filename, format, sheet_name=view.capitalize())


@router.get("/export/template")
async def export_template(
    format: str = Query("csv", pattern="^(csv|xlsx)$"),
    principal: Principal = Depends(get_current_principal),
):
    """Download a blank import template with one sample row."""
    return _file_response(export.template_frame(), "weekly_entries_template", format, sheet_name="Entries")
