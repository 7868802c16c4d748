import logging
import uuid
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional, Tuple

from sqlalchemy import JSON, TIMESTAMP, Column, Float, String, create_engine, or_, text
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import declarative_base, sessionmaker
from sqlalchemy.sql import func

from .config import CREDITSEA_SCHEMA, DB_URL

logger = logging.getLogger(__name__)

# Only use schema for PostgreSQL (SQLite doesn't support schemas)
USE_SCHEMA = DB_URL.startswith("postgresql") or DB_URL.startswith("postgres")
TABLE_SCHEMA = CREDITSEA_SCHEMA if USE_SCHEMA else None

engine = create_engine(DB_URL, future=True)
SessionLocal = sessionmaker(bind=engine, autoflush=False, autocommit=False, expire_on_commit=False)
Base = declarative_base()

SCORE_BUCKET_BOUNDARIES = [300, 400, 500, 600, 700, 800, 900]
RECENT_REPORT_DAYS = 7


def _new_report_id() -> str:
    return "report_" + uuid.uuid4().hex[:12]


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class CreditReport(Base):
    """One stored report per PAN; re-uploads overwrite it."""
    __tablename__ = "credit_reports"
    __table_args__ = {'schema': TABLE_SCHEMA} if TABLE_SCHEMA else {}

    id = Column(String, primary_key=True, default=_new_report_id)
    name = Column(String, nullable=False)
    mobile_phone = Column(String, nullable=False)
    pan = Column(String, nullable=False, unique=True)
    credit_score = Column(Float, default=0.0)
    report_summary = Column(JSON, nullable=True)
    credit_accounts = Column(JSON, nullable=True)
    addresses = Column(JSON, nullable=True)
    report_date = Column(TIMESTAMP(timezone=True), nullable=True)
    original_filename = Column(String, nullable=False)
    processed_at = Column(TIMESTAMP(timezone=True), default=_utcnow)
    xml_data = Column(JSON, nullable=True)  # raw parsed tree, kept for audit
    created_at = Column(TIMESTAMP(timezone=True), server_default=func.now())
    updated_at = Column(TIMESTAMP(timezone=True), server_default=func.now(), onupdate=func.now())


SORT_COLUMNS = {
    "name": CreditReport.name,
    "creditScore": CreditReport.credit_score,
    "processedAt": CreditReport.processed_at,
    "pan": CreditReport.pan,
}


def init_db():
    """Initialize database: create schema if needed, then create tables."""
    if USE_SCHEMA:
        try:
            with engine.connect() as conn:
                conn.execute(text(f"CREATE SCHEMA IF NOT EXISTS {CREDITSEA_SCHEMA}"))
                conn.commit()
        except Exception as e:
            logger.warning(f"Could not create schema {CREDITSEA_SCHEMA}: {e}")

    Base.metadata.create_all(bind=engine)


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def mask_pan(pan: str | None) -> str | None:
    """ABCDE1234F -> ABCDE****F; anything that is not 10 characters is returned as is."""
    if pan and len(pan) == 10:
        return f"{pan[:5]}{'*' * 4}{pan[9:]}"
    return pan


def _record_columns(record: Dict[str, Any]) -> Dict[str, Any]:
    return {
        "name": record["name"],
        "mobile_phone": record["mobilePhone"],
        "pan": record["pan"],
        "credit_score": record.get("creditScore") or 0.0,
        "report_summary": record.get("reportSummary") or {},
        "credit_accounts": record.get("creditAccounts") or [],
        "addresses": record.get("addresses") or [],
        "report_date": record.get("reportDate"),
    }


def get_report_by_id(db, report_id: str):
    return db.get(CreditReport, report_id)


def get_report_by_pan(db, pan: str):
    return db.query(CreditReport).filter(CreditReport.pan == (pan or "").upper()).first()


def save_credit_report(db, record: Dict[str, Any], *, filename: str, raw_tree: Any) -> Tuple[CreditReport, bool]:
    """
    Store an extracted record, keyed by PAN.

    Returns (report, created): an existing report for the same PAN is updated
    in place, otherwise a new one is inserted.
    """
    values = _record_columns(record)
    values.update(original_filename=filename, processed_at=_utcnow(), xml_data=raw_tree)

    report = get_report_by_pan(db, values["pan"])
    created = report is None
    if created:
        report = CreditReport(**values)
        db.add(report)
    else:
        for k, v in values.items():
            setattr(report, k, v)

    try:
        db.commit()
    except IntegrityError:
        # another upload inserted the same PAN first; fold into that row
        db.rollback()
        report = get_report_by_pan(db, values["pan"])
        if report is None:
            raise
        for k, v in values.items():
            setattr(report, k, v)
        db.commit()
        created = False

    db.refresh(report)
    return report, created


def list_reports(
    db,
    *,
    page: int = 1,
    limit: int = 10,
    search: str = "",
    sort_by: str = "processedAt",
    sort_order: str = "desc",
) -> Tuple[List[CreditReport], int]:
    """Page of reports plus the total number matching ``search``."""
    query = db.query(CreditReport)
    if search:
        query = query.filter(or_(
            CreditReport.name.icontains(search, autoescape=True),
            CreditReport.pan.icontains(search, autoescape=True),
            CreditReport.mobile_phone.icontains(search, autoescape=True),
        ))

    total = query.count()

    column = SORT_COLUMNS.get(sort_by, CreditReport.processed_at)
    order = column.asc() if sort_order == "asc" else column.desc()
    rows = (
        query
        .order_by(order, CreditReport.id.asc())
        .offset((page - 1) * limit)
        .limit(limit)
        .all()
    )
    return rows, total


def delete_report(db, report_id: str):
    report = db.get(CreditReport, report_id)
    if not report:
        return None
    db.delete(report)
    db.commit()
    return report


def summary_statistics(db) -> Dict[str, Any]:
    # JSON columns differ per dialect, so balances are summed in Python
    rows = db.query(CreditReport.credit_score, CreditReport.report_summary).all()
    scores = [float(score or 0) for score, _ in rows]
    summaries = [summary or {} for _, summary in rows]

    cutoff = _utcnow() - timedelta(days=RECENT_REPORT_DAYS)
    recent = db.query(CreditReport).filter(CreditReport.processed_at >= cutoff).count()

    return {
        "totalReports": len(rows),
        "avgCreditScore": sum(scores) / len(scores) if scores else 0,
        "maxCreditScore": max(scores) if scores else 0,
        "minCreditScore": min(scores) if scores else 0,
        "totalCurrentBalance": sum(float(s.get("currentBalanceAmount") or 0) for s in summaries),
        "totalAccounts": sum(float(s.get("totalAccounts") or 0) for s in summaries),
        "totalActiveAccounts": sum(float(s.get("activeAccounts") or 0) for s in summaries),
        "recentReports": recent,
    }


def _score_bucket(score: float) -> int | str:
    for lower, upper in zip(SCORE_BUCKET_BOUNDARIES, SCORE_BUCKET_BOUNDARIES[1:]):
        if lower <= score < upper:
            return lower
    return "Other"


def credit_score_distribution(db) -> List[Dict[str, Any]]:
    """Report counts per 100-point score band (300-899); everything else lands in "Other"."""
    buckets: Dict[int | str, List[float]] = {}
    rows = db.query(CreditReport.credit_score, CreditReport.report_summary).all()
    for score, summary in rows:
        balance = float((summary or {}).get("currentBalanceAmount") or 0)
        buckets.setdefault(_score_bucket(float(score or 0)), []).append(balance)

    ordered = sorted(buckets, key=lambda b: (isinstance(b, str), b if isinstance(b, int) else 0))
    return [
        {
            "bucket": bucket,
            "count": len(buckets[bucket]),
            "avgBalance": sum(buckets[bucket]) / len(buckets[bucket]),
        }
        for bucket in ordered
    ]


def _iso(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value else None


def report_to_dict(report: CreditReport, include_raw: bool = False) -> Dict[str, Any]:
    data = {
        "id": report.id,
        "name": report.name,
        "mobilePhone": report.mobile_phone,
        "pan": report.pan,
        "creditScore": report.credit_score,
        "reportSummary": report.report_summary or {},
        "creditAccounts": report.credit_accounts or [],
        "addresses": report.addresses or [],
        "reportDate": _iso(report.report_date),
        "originalFileName": report.original_filename,
        "processedAt": _iso(report.processed_at),
        "createdAt": _iso(report.created_at),
        "updatedAt": _iso(report.updated_at),
    }
    if include_raw:
        data["xmlData"] = report.xml_data
    return data


def report_summary_view(report: CreditReport) -> Dict[str, Any]:
    """Short form returned after an upload; PAN is masked."""
    summary = report.report_summary or {}
    return {
        "id": report.id,
        "name": report.name,
        "pan": mask_pan(report.pan),
        "creditScore": report.credit_score,
        "totalAccounts": summary.get("totalAccounts", 0),
        "currentBalance": summary.get("currentBalanceAmount", 0),
        "processedAt": _iso(report.processed_at),
    }
