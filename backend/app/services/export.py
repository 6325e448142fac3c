"""
Dashboard Export

Renders summary metrics, detailed weekly entries and the import template as
CSV or XLSX. pandas handles quoting, so free-text notes and store names
survive the round trip intact.
"""

from typing import Any, Dict, List
from io import BytesIO, StringIO

import pandas as pd

from app.schemas.dashboard import DashboardSummary
from app.services.batch_importer import IMPORT_COLUMNS

SUMMARY_COLUMNS = ["Metric", "Value", "Previous Year", "YoY Change %"]

DETAILED_COLUMNS = {
    "store_code": "Store Code",
    "store_name": "Store Name",
    "fiscal_year": "Fiscal Year",
    "week_number": "Week Number",
    "week_ending": "Week Ending",
    "total_sales": "Total Sales",
    "num_transactions": "Transactions",
    "avg_transaction_value": "Avg Transaction",
    "variable_hours": "Variable Hours",
    "average_wage": "Average Wage",
    "total_fixed_cost": "Fixed Cost",
    "total_labor_cost": "Labor Cost",
    "total_labor_percent": "Labor %",
    "sales_per_labor_hour": "Sales per Labor Hour",
    "transactions_per_labor_hour": "Transactions per Labor Hour",
    "notes": "Notes",
}

TEMPLATE_SAMPLE_ROW = ["anna", 2025, 1, "15000.00", "120.5", 350, "15.50", "", "Sample entry"]


def summary_frame(summary: DashboardSummary) -> pd.DataFrame:
    previous = summary.previous_year
    yoy = summary.yoy_growth
    rows = [
        ["Total Sales", summary.total_sales, previous.total_sales if previous else "", yoy.sales],
        ["Total Transactions", summary.total_transactions, previous.total_transactions if previous else "", yoy.transactions],
        ["Avg Transaction", summary.avg_transaction_value, previous.avg_transaction_value if previous else "", yoy.avg_transaction],
        ["Total Labor Cost", summary.total_labor_cost, "", ""],
        ["Labor Cost %", summary.labor_cost_percent, previous.labor_cost_percent if previous else "", yoy.labor],
        ["Total Labor Hours", summary.total_labor_hours, "", ""],
        ["Sales per Labor Hour", summary.sales_per_labor_hour, "", ""],
        ["Transactions per Labor Hour", summary.transactions_per_labor_hour, "", ""],
        ["Effective Hourly Wage", summary.effective_hourly_wage, "", ""],
        ["Store Count", summary.store_count, "", ""],
    ]
    return pd.DataFrame(rows, columns=SUMMARY_COLUMNS)


def detailed_frame(entries: List[Dict[str, Any]]) -> pd.DataFrame:
    df = pd.DataFrame(entries, columns=list(DETAILED_COLUMNS.keys()))
    return df.rename(columns=DETAILED_COLUMNS)


def template_frame() -> pd.DataFrame:
    return pd.DataFrame([TEMPLATE_SAMPLE_ROW], columns=[header for header, _ in IMPORT_COLUMNS])


def to_csv(df: pd.DataFrame) -> str:
    output = StringIO()
    df.to_csv(output, index=False)
    return output.getvalue()


def to_xlsx(df: pd.DataFrame, sheet_name: str = "Data") -> BytesIO:
    output = BytesIO()
    with pd.ExcelWriter(output, engine="openpyxl") as writer:
        df.to_excel(writer, sheet_name=sheet_name, index=False)
    output.seek(0)
    return output
