"""Read/delete endpoints over stored credit reports"""
import logging
import math
import re
from typing import Literal

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from ..db import (
    credit_score_distribution,
    delete_report,
    get_db,
    get_report_by_id,
    get_report_by_pan,
    list_reports,
    mask_pan,
    report_to_dict,
    summary_statistics,
)
from ..schemas import (
    DeleteResponse,
    DistributionResponse,
    ReportEnvelope,
    ReportListResponse,
    StatisticsResponse,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/reports", tags=["reports"])

REPORT_ID_RE = re.compile(r"^report_[0-9a-f]{12}$")


def _check_report_id(report_id: str) -> None:
    if not REPORT_ID_RE.match(report_id):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid report ID format")


@router.get("", response_model=ReportListResponse)
def get_reports(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    search: str = Query(""),
    sort_by: Literal["name", "creditScore", "processedAt", "pan"] = Query("processedAt", alias="sortBy"),
    sort_order: Literal["asc", "desc"] = Query("desc", alias="sortOrder"),
    db: Session = Depends(get_db),
):
    """Paginated report list; ``search`` matches name, PAN or mobile number."""
    rows, total = list_reports(
        db, page=page, limit=limit, search=search.strip(), sort_by=sort_by, sort_order=sort_order
    )
    return {
        "success": True,
        "data": [report_to_dict(r) for r in rows],
        "pagination": {
            "currentPage": page,
            "totalPages": math.ceil(total / limit),
            "totalItems": total,
            "itemsPerPage": limit,
            "hasNextPage": page * limit < total,
            "hasPrevPage": page > 1,
        },
    }


@router.get("/stats/summary", response_model=StatisticsResponse)
def get_summary_statistics(db: Session = Depends(get_db)):
    return {"success": True, "data": summary_statistics(db)}


@router.get("/stats/credit-score-distribution", response_model=DistributionResponse)
def get_credit_score_distribution(db: Session = Depends(get_db)):
    return {"success": True, "data": credit_score_distribution(db)}


@router.get("/pan/{pan}", response_model=ReportEnvelope)
def get_report_for_pan(pan: str, db: Session = Depends(get_db)):
    if len(pan) != 10:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="PAN must be exactly 10 characters")

    report = get_report_by_pan(db, pan)
    if not report:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Credit report not found for this PAN")
    return {"success": True, "data": report_to_dict(report)}


@router.get("/{report_id}", response_model=ReportEnvelope)
def get_report(report_id: str, db: Session = Depends(get_db)):
    _check_report_id(report_id)
    report = get_report_by_id(db, report_id)
    if not report:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Credit report not found")
    return {"success": True, "data": report_to_dict(report, include_raw=True)}


@router.delete("/{report_id}", response_model=DeleteResponse)
def remove_report(report_id: str, db: Session = Depends(get_db)):
    _check_report_id(report_id)
    report = delete_report(db, report_id)
    if not report:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Credit report not found")

    logger.info(f"Deleted credit report {report_id}")
    return {
        "success": True,
        "message": "Credit report deleted successfully",
        "data": {"id": report.id, "name": report.name, "pan": mask_pan(report.pan)},
    }
