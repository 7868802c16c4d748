# api/app/parsers/values.py
from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Optional

import yaml
from dateutil import parser as date_parser

from .xml_tree import text_of

logger = logging.getLogger(__name__)

NOT_AVAILABLE = "N/A"

_NON_NUMERIC_RE = re.compile(r"[^0-9.\-]")
# what a lenient float parser accepts from the start of the cleaned text
_FLOAT_PREFIX_RE = re.compile(r"-?(?:\d+(?:\.\d*)?|\.\d+)")
_NON_DIGIT_RE = re.compile(r"[^0-9]")
_NON_PAN_RE = re.compile(r"[^A-Z0-9]")
_BUREAU_DATE_RE = re.compile(r"^[0-9]{8}$")


def parse_numeric_value(value: Any) -> float:
    """
    Coerce noisy bureau text to a number.

    Everything except digits, '.' and '-' is dropped, then the longest valid
    leading float is taken ("₹1,50,000.00" -> 150000.0, "1.2.3" -> 1.2).
    Anything unusable is 0.
    """
    if value is None or value == "":
        return 0.0
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return float(value)
    raw = text_of(value)
    if not raw:
        return 0.0
    cleaned = _NON_NUMERIC_RE.sub("", raw)
    match = _FLOAT_PREFIX_RE.match(cleaned)
    if not match:
        return 0.0
    return float(match.group(0))


def format_phone_number(phone: Any) -> str:
    """Return the bare 10 digits when that is what the number reduces to, else the original text."""
    if not phone:
        return NOT_AVAILABLE
    raw = text_of(phone)
    if not raw:
        return NOT_AVAILABLE
    cleaned = _NON_DIGIT_RE.sub("", raw)
    return cleaned if len(cleaned) == 10 else raw


def clean_pan(value: Any) -> str:
    return _NON_PAN_RE.sub("", (text_of(value) or "").upper())


@dataclass(frozen=True)
class BureauCodeTables:
    account_types: Dict[str, str]
    account_statuses: Dict[str, str]


_CODES_CACHE: Dict[str, BureauCodeTables] = {}


def _default_codes_path() -> Path:
    """
    bureau_codes.yaml ships next to this module.
    """
    return Path(__file__).resolve().parent / "bureau_codes.yaml"


def load_bureau_codes(path: str | Path | None = None) -> BureauCodeTables:
    """
    Load and cache the account type / status code tables.
    """
    target = Path(path) if path else _default_codes_path()
    cache_key = str(target)
    if cache_key in _CODES_CACHE:
        return _CODES_CACHE[cache_key]

    data: Dict[str, Any] = {}
    if target.exists():
        with target.open("r", encoding="utf-8") as fp:
            data = yaml.safe_load(fp) or {}
    else:
        logger.warning(f"Bureau code table not found at {target}; codes will not be translated")

    tables = BureauCodeTables(
        account_types={str(k): str(v) for k, v in (data.get("account_types") or {}).items()},
        account_statuses={str(k): str(v) for k, v in (data.get("account_statuses") or {}).items()},
    )
    _CODES_CACHE[cache_key] = tables
    return tables


def _code_key(code: Any) -> str:
    return (text_of(code) or "").strip()


def account_type_description(code: Any, tables: Optional[BureauCodeTables] = None) -> str:
    tables = tables or load_bureau_codes()
    key = _code_key(code)
    return tables.account_types.get(key) or f"Account Type {key}"


def account_status_description(code: Any, tables: Optional[BureauCodeTables] = None) -> str:
    tables = tables or load_bureau_codes()
    key = _code_key(code)
    return tables.account_statuses.get(key) or f"Status {key}"


def parse_bureau_date(value: Any) -> Optional[datetime]:
    """YYYYMMDD header date -> UTC midnight; None when it is not a real date."""
    raw = text_of(value)
    if not raw or not _BUREAU_DATE_RE.match(raw):
        return None
    try:
        return datetime(int(raw[:4]), int(raw[4:6]), int(raw[6:8]), tzinfo=timezone.utc)
    except ValueError:
        return None


def parse_date(value: Any) -> Optional[datetime]:
    raw = text_of(value)
    if not raw or not raw.strip():
        return None
    try:
        parsed = date_parser.parse(raw)
    except (ValueError, OverflowError):
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def utc_now() -> datetime:
    return datetime.now(timezone.utc)
