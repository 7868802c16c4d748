"""
Credit report validator

Gatekeeper for extracted records: a report is only stored when the identity
fields it is keyed and searched by are present.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List

PLACEHOLDER = "N/A"

# record field -> message, in reporting order
REQUIRED_FIELDS = (
    ("name", "Name is required"),
    ("pan", "PAN is required"),
    ("mobilePhone", "Mobile phone is required"),
)


@dataclass(frozen=True)
class ValidationResult:
    ok: bool
    errors: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {"ok": self.ok, "errors": list(self.errors)}


def validate_credit_data(record: Dict[str, Any]) -> ValidationResult:
    """
    Check the mandatory identity fields of an extracted record.

    Args:
        record: Normalized credit report record

    Returns:
        ValidationResult with one message per missing or placeholder field.
    """
    errors: List[str] = []
    for name, message in REQUIRED_FIELDS:
        value = record.get(name)
        if not value or value == PLACEHOLDER:
            errors.append(message)
    return ValidationResult(ok=not errors, errors=errors)
