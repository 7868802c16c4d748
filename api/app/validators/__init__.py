"""
Validators for extracted credit report records.
"""

from .credit_report_validator import ValidationResult, validate_credit_data

__all__ = ["ValidationResult", "validate_credit_data"]
