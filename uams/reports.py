from __future__ import annotations

from io import BytesIO
from typing import Iterable

from django.http import HttpResponse
from openpyxl import Workbook

from .services.performance import PerformanceResult

PERFORMANCE_HEADERS = [
    "Region",
    "District",
    "Month",
    "Target type",
    "Target",
    "Actual",
    "Variance",
    "Percentage (%)",
]


def performance_workbook(title: str, rows: Iterable[PerformanceResult]) -> Workbook:
    workbook = Workbook()
    ws = workbook.active
    # Sheet titles are limited to 31 characters.
    ws.title = title[:31] or "Performance"
    ws.append(PERFORMANCE_HEADERS)
    for row in rows:
        ws.append(
            [
                row.region,
                row.district,
                row.month,
                row.target_type,
                row.target,
                row.actual,
                row.variance,
                row.percentage,
            ]
        )
    return workbook


def workbook_bytes(workbook: Workbook) -> bytes:
    buffer = BytesIO()
    workbook.save(buffer)
    return buffer.getvalue()


def workbook_response(filename: str, workbook: Workbook) -> HttpResponse:
    response = HttpResponse(
        workbook_bytes(workbook),
        content_type="application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
    )
    response["Content-Disposition"] = f"attachment; filename={filename}"
    return response
