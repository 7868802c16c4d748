# api/app/parsers/credit_report.py
"""
XML credit report -> normalized record.

``extract_record`` is the entry point used by the upload routes and the CLI:
it parses the document, runs the field extractors and validates the identity
fields, and reports a parse or validation failure as a value instead of
raising. Nothing here touches the database.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, Iterable, List, Optional, Tuple

from ..logging_config import log_with_context
from ..validators.credit_report_validator import validate_credit_data
from .extractors import (
    extract_addresses,
    extract_credit_accounts,
    extract_credit_score,
    extract_mobile_phone,
    extract_name,
    extract_pan,
    extract_report_date,
    extract_report_summary,
)
from .structure import normalize_structure
from .xml_tree import XMLParseError, parse_xml

logger = logging.getLogger(__name__)

STAGE_PARSE = "parse"
STAGE_VALIDATE = "validate"


@dataclass(frozen=True)
class ExtractionError:
    stage: str
    message: str
    details: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {"stage": self.stage, "message": self.message, "details": list(self.details)}


@dataclass(frozen=True)
class ExtractionResult:
    """Either ``record`` + ``raw_tree`` (success) or ``error``."""

    filename: str
    record: Optional[Dict[str, Any]] = None
    raw_tree: Optional[Dict[str, Any]] = None
    error: Optional[ExtractionError] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    def to_dict(self) -> Dict[str, Any]:
        if not self.ok:
            return {"fileName": self.filename, "success": False, "error": self.error.to_dict()}
        record = dict(self.record)
        if isinstance(record.get("reportDate"), datetime):
            record["reportDate"] = record["reportDate"].isoformat()
        return {"fileName": self.filename, "success": True, "data": record}


def extract_credit_data(tree: Dict[str, Any]) -> Dict[str, Any]:
    """Build the normalized record from a parsed document tree."""
    data = normalize_structure(tree)
    return {
        "name": extract_name(data),
        "mobilePhone": extract_mobile_phone(data),
        "pan": extract_pan(data),
        "creditScore": extract_credit_score(data),
        "reportSummary": extract_report_summary(data),
        "creditAccounts": extract_credit_accounts(data),
        "addresses": extract_addresses(data),
        "reportDate": extract_report_date(data),
    }


def extract_record(xml_content: str | bytes, filename: str = "document.xml") -> ExtractionResult:
    """
    Parse, extract and validate one uploaded credit report.

    Args:
        xml_content: Raw document (UTF-8 text or bytes)
        filename: Original file name, used for logging and the result only

    Returns:
        ExtractionResult; ``error.stage`` is "parse" for malformed XML and
        "validate" when identity fields are missing.
    """
    started = time.perf_counter()
    log_with_context(logger, logging.INFO, "Starting to parse credit report", document=filename)

    try:
        tree = parse_xml(xml_content)
    except XMLParseError as exc:
        log_with_context(logger, logging.WARNING, f"Failed to parse XML: {exc}",
                         document=filename, stage=STAGE_PARSE)
        return ExtractionResult(
            filename=filename,
            error=ExtractionError(STAGE_PARSE, f"Failed to parse XML: {exc}", [str(exc)]),
        )

    record = extract_credit_data(tree)
    validation = validate_credit_data(record)
    if not validation.ok:
        log_with_context(logger, logging.WARNING, "Extracted credit data failed validation",
                         document=filename, stage=STAGE_VALIDATE, errors=validation.errors)
        return ExtractionResult(
            filename=filename,
            error=ExtractionError(STAGE_VALIDATE, "Invalid credit data", validation.errors),
        )

    log_with_context(
        logger, logging.INFO, "Credit data extracted",
        document=filename,
        pan=record["pan"],
        accounts=len(record["creditAccounts"]),
        duration_ms=round((time.perf_counter() - started) * 1000, 2),
    )
    return ExtractionResult(filename=filename, record=record, raw_tree=tree)


def extract_batch(documents: Iterable[Tuple[str, str | bytes]]) -> List[ExtractionResult]:
    """Extract every ``(filename, content)`` pair; a failed document never stops the rest."""
    results = [extract_record(content, filename) for filename, content in documents]
    failed = sum(1 for r in results if not r.ok)
    logger.info(f"Processed {len(results)} documents ({len(results) - failed} ok, {failed} failed)")
    return results
