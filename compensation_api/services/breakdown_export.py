import csv
import io
from typing import List, Sequence, Tuple

import openpyxl
from openpyxl.styles import Font

from compensation_api.common.errors import APIError
from .compensation_engine import Breakdown

SUMMARY_COLUMNS = [
    "employee_id",
    "employee_name",
    "as_of",
    "monthly_wage",
    "gross_salary",
    "total_deductions",
    "net_salary",
    "employer_contributions",
]

XLSX_MIME = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"


def register_rows(breakdowns: Sequence[Breakdown]) -> Tuple[List[str], List[dict]]:
    """
    Flatten breakdowns into a salary register: summary columns, then one
    column per component code (earnings, deductions, employer contributions,
    in first-seen order). Components an employee does not have stay blank.
    """
    codes: List[str] = []
    for group in ("earnings", "deductions", "employer_contribution_items"):
        for b in breakdowns:
            for li in getattr(b, group):
                if li.code not in codes:
                    codes.append(li.code)

    rows = []
    for b in breakdowns:
        row = {
            "employee_id": b.employee_id,
            "employee_name": b.employee_name,
            "as_of": b.as_of.isoformat(),
            "monthly_wage": b.monthly_wage,
            "gross_salary": b.gross_salary,
            "total_deductions": b.total_deductions,
            "net_salary": b.net_salary,
            "employer_contributions": b.employer_contributions,
        }
        amounts = b.amounts()
        for code in codes:
            row[code] = amounts.get(code)
        rows.append(row)
    return SUMMARY_COLUMNS + codes, rows


def generate_file(breakdowns: Sequence[Breakdown], output_format: str, file_name_base: str) -> Tuple[bytes, str, str]:
    """
    Generate file content.
    Returns (file_bytes, full_file_name, mime_type)
    """
    headers, rows = register_rows(breakdowns)

    if output_format == "csv":
        output = io.StringIO()
        writer = csv.DictWriter(output, fieldnames=headers)
        writer.writeheader()
        writer.writerows(rows)
        content = output.getvalue().encode("utf-8")
        ext = "csv"
        mime = "text/csv"

    elif output_format == "xlsx":
        output = io.BytesIO()
        wb = openpyxl.Workbook()
        ws = wb.active
        ws.title = "Salary Register"
        ws.append(headers)
        for cell in ws[1]:
            cell.font = Font(bold=True)
        for row in rows:
            ws.append([row.get(h) for h in headers])
        for col in ws.iter_cols(min_row=2, min_col=4):
            for cell in col:
                cell.number_format = "#,##0.00"
        wb.save(output)
        content = output.getvalue()
        ext = "xlsx"
        mime = XLSX_MIME

    else:
        raise APIError("EXPORT_FORMAT_NOT_SUPPORTED", f"Format {output_format} not supported", 400)

    full_name = f"{file_name_base}.{ext}"
    return content, full_name, mime
