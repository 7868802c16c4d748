import sys
from pathlib import Path

sys.path.append(str(Path(__file__).resolve().parents[1]))

from app.validators.credit_report_validator import validate_credit_data


def test_complete_record_passes():
    result = validate_credit_data({"name": "John Doe", "pan": "ABCDE1234F", "mobilePhone": "9876543210"})
    assert result.ok
    assert result.errors == []


def test_placeholders_count_as_missing():
    result = validate_credit_data({"name": "N/A", "pan": "N/A", "mobilePhone": "N/A"})
    assert not result.ok
    assert result.errors == ["Name is required", "PAN is required", "Mobile phone is required"]


def test_only_missing_fields_reported():
    result = validate_credit_data({"name": "John Doe", "pan": "", "mobilePhone": "9876543210"})
    assert result.to_dict() == {"ok": False, "errors": ["PAN is required"]}


def test_score_is_not_required():
    result = validate_credit_data(
        {"name": "John Doe", "pan": "ABCDE1234F", "mobilePhone": "9876543210", "creditScore": 0}
    )
    assert result.ok
