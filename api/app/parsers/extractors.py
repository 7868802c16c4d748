# api/app/parsers/extractors.py
"""
Field extractors for credit bureau reports.

Each field is read from the Experian CAIS layout first and then from the
generic field names other bureaus / hand-built files use. The lookup order
lives in the tables at the top of this module; every extractor is total and
falls back to "N/A", 0 or an empty list.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple

from .values import (
    NOT_AVAILABLE,
    account_status_description,
    account_type_description,
    clean_pan,
    format_phone_number,
    parse_bureau_date,
    parse_date,
    parse_numeric_value,
    utc_now,
)
from .xml_tree import as_list, first_present, get_path, text_of

logger = logging.getLogger(__name__)

Accessor = Callable[[Any], Any]

# --- Experian layout -------------------------------------------------------

APPLICANT_PATH = ("Current_Application", "Current_Application_Details", "Current_Applicant_Details")
ACCOUNT_DETAILS_PATH = ("CAIS_Account", "CAIS_Account_DETAILS")
ACCOUNT_SUMMARY_PATH = ("CAIS_Account", "CAIS_Summary")
SCORE_PATH = ("SCORE", "BureauScore")
REPORT_DATE_PATH = ("Header", "ReportDate")
ENQUIRIES_LAST_7_DAYS_PATH = ("TotalCAPS_Summary", "TotalCAPSLast7Days")

# reportSummary attribute -> path inside CAIS_Summary
BUREAU_SUMMARY_FIELDS: Tuple[Tuple[str, Tuple[str, ...]], ...] = (
    ("totalAccounts", ("Credit_Account", "CreditAccountTotal")),
    ("activeAccounts", ("Credit_Account", "CreditAccountActive")),
    ("closedAccounts", ("Credit_Account", "CreditAccountClosed")),
    ("currentBalanceAmount", ("Total_Outstanding_Balance", "Outstanding_Balance_All")),
    ("securedAccountsAmount", ("Total_Outstanding_Balance", "Outstanding_Balance_Secured")),
    ("unsecuredAccountsAmount", ("Total_Outstanding_Balance", "Outstanding_Balance_UnSecured")),
)

ADDRESS_LINE_FIELDS = (
    "First_Line_Of_Address_non_normalized",
    "Second_Line_Of_Address_non_normalized",
    "Third_Line_Of_Address_non_normalized",
)

INDIA_COUNTRY_CODE = "IB"

# --- generic layouts -------------------------------------------------------

NAME_FIELDS = ("name", "fullName", "customerName", "applicantName", "personName")
PHONE_FIELDS = ("mobilePhone", "mobile", "phone", "contactNumber", "phoneNumber")
PAN_FIELDS = ("pan", "panNumber", "pancard", "panCard", "permanentAccountNumber")
SCORE_FIELDS = ("creditScore", "score", "creditRating", "cibilScore")
SUMMARY_BLOCK_FIELDS = ("reportSummary", "summary", "creditSummary")
ACCOUNT_LIST_FIELDS = ("creditAccounts", "accounts", "creditCards")
ADDRESS_LIST_FIELDS = ("addresses", "address")
DATE_FIELDS = ("reportDate", "generatedDate", "reportGeneratedOn", "date")
ACCOUNT_NUMBER_FIELDS = ("accountNumber", "accountNo", "cardNumber", "creditCardNumber")
BANK_NAME_FIELDS = ("bankName", "bank", "issuer", "cardIssuer", "institution")

GENERIC_SUMMARY_FIELDS: Tuple[Tuple[str, Tuple[str, ...]], ...] = (
    ("totalAccounts", ("totalAccounts", "totalAccountsCount")),
    ("activeAccounts", ("activeAccounts", "activeAccountsCount")),
    ("closedAccounts", ("closedAccounts", "closedAccountsCount")),
    ("currentBalanceAmount", ("currentBalanceAmount", "currentBalance")),
    ("securedAccountsAmount", ("securedAccountsAmount", "securedBalance")),
    ("unsecuredAccountsAmount", ("unsecuredAccountsAmount", "unsecuredBalance")),
    ("lastSevenDaysCreditEnquiries", ("lastSevenDaysCreditEnquiries", "recentEnquiries")),
)

# one slot per address part; first non-empty key in a slot wins
GENERIC_ADDRESS_SLOTS: Tuple[Tuple[str, ...], ...] = (
    ("line1", "addressLine1"),
    ("line2", "addressLine2"),
    ("area", "locality"),
    ("city",),
    ("state",),
    ("pincode", "pinCode"),
)

DEFAULT_ACCOUNT_TYPE = "Credit Card"
DEFAULT_ACCOUNT_STATUS = "Active"
DEFAULT_ADDRESS_TYPE = "Current"
DEFAULT_COUNTRY = "India"


def _first_match(data: Any, accessors: Sequence[Accessor]) -> Any:
    for accessor in accessors:
        value = accessor(data)
        if value is not None:
            return value
    return None


def _text(value: Any) -> Optional[str]:
    text = text_of(value)
    return text if text else None


def _sequence(value: Any) -> List[Any]:
    """
    Items of a list-bearing field; any non-list value yields no items, with
    one exception. A wrapper element holding a single child tag
    (``<creditAccounts><account/>...``) is unwrapped to that child's items.
    The unwrap is a deliberate change: reports stored before it have empty
    account and address lists for such documents, and re-uploading them
    fills those lists in.
    """
    if isinstance(value, list):
        return value
    if isinstance(value, Mapping) and len(value) == 1:
        (child,) = value.values()
        if isinstance(child, (list, Mapping)):
            return as_list(child)
    return []


def _account_details(data: Any) -> List[Any]:
    return as_list(get_path(data, *ACCOUNT_DETAILS_PATH))


# --- name ------------------------------------------------------------------

def _bureau_name(data: Any) -> Optional[str]:
    applicant = get_path(data, *APPLICANT_PATH)
    if not isinstance(applicant, Mapping):
        return None
    first_name = _text(applicant.get("First_Name")) or ""
    last_name = _text(applicant.get("Last_Name")) or ""
    full_name = f"{first_name.strip()} {last_name.strip()}".strip()
    return full_name or None


def _generic_name(data: Any) -> Optional[str]:
    return _text(first_present(data, NAME_FIELDS))


NAME_ACCESSORS: Tuple[Accessor, ...] = (_bureau_name, _generic_name)


def extract_name(data: Any) -> str:
    return _first_match(data, NAME_ACCESSORS) or NOT_AVAILABLE


# --- mobile phone ----------------------------------------------------------

def _bureau_mobile_phone(data: Any) -> Optional[str]:
    phone = get_path(data, *APPLICANT_PATH, "MobilePhoneNumber")
    return format_phone_number(phone) if _text(phone) else None


def _generic_mobile_phone(data: Any) -> Optional[str]:
    phone = first_present(data, PHONE_FIELDS)
    return format_phone_number(phone) if _text(phone) else None


PHONE_ACCESSORS: Tuple[Accessor, ...] = (_bureau_mobile_phone, _generic_mobile_phone)


def extract_mobile_phone(data: Any) -> str:
    return _first_match(data, PHONE_ACCESSORS) or NOT_AVAILABLE


# --- PAN -------------------------------------------------------------------

def _bureau_pan(data: Any) -> Optional[str]:
    for account in _account_details(data):
        for holder in as_list(get_path(account, "CAIS_Holder_Details")):
            pan = clean_pan(get_path(holder, "Income_TAX_PAN"))
            if pan:
                return pan
    return None


def _generic_pan(data: Any) -> Optional[str]:
    return clean_pan(first_present(data, PAN_FIELDS)) or None


PAN_ACCESSORS: Tuple[Accessor, ...] = (_bureau_pan, _generic_pan)


def extract_pan(data: Any) -> str:
    return _first_match(data, PAN_ACCESSORS) or NOT_AVAILABLE


# --- credit score ----------------------------------------------------------

def _bureau_credit_score(data: Any) -> Optional[float]:
    score = get_path(data, *SCORE_PATH)
    return parse_numeric_value(score) if score else None


def _generic_credit_score(data: Any) -> float:
    return parse_numeric_value(first_present(data, SCORE_FIELDS))


SCORE_ACCESSORS: Tuple[Accessor, ...] = (_bureau_credit_score, _generic_credit_score)


def extract_credit_score(data: Any) -> float:
    return _first_match(data, SCORE_ACCESSORS)


# --- report summary --------------------------------------------------------

def _bureau_report_summary(data: Any) -> Optional[Dict[str, float]]:
    summary = get_path(data, *ACCOUNT_SUMMARY_PATH)
    if not summary:
        return None
    result = {
        attribute: parse_numeric_value(get_path(summary, *path))
        for attribute, path in BUREAU_SUMMARY_FIELDS
    }
    result["lastSevenDaysCreditEnquiries"] = parse_numeric_value(
        get_path(data, *ENQUIRIES_LAST_7_DAYS_PATH)
    )
    return result


def _generic_report_summary(data: Any) -> Dict[str, float]:
    summary = first_present(data, SUMMARY_BLOCK_FIELDS) or {}
    return {
        attribute: parse_numeric_value(first_present(summary, keys))
        for attribute, keys in GENERIC_SUMMARY_FIELDS
    }


SUMMARY_ACCESSORS: Tuple[Accessor, ...] = (_bureau_report_summary, _generic_report_summary)


def extract_report_summary(data: Any) -> Dict[str, float]:
    return _first_match(data, SUMMARY_ACCESSORS)


# --- credit accounts -------------------------------------------------------

def _bureau_account(account: Mapping) -> Dict[str, Any]:
    return {
        "accountNumber": _text(account.get("Account_Number")) or NOT_AVAILABLE,
        "bankName": _text(account.get("Subscriber_Name")) or NOT_AVAILABLE,
        "currentBalance": parse_numeric_value(account.get("Current_Balance")),
        "amountOverdue": parse_numeric_value(account.get("Amount_Past_Due")),
        "accountType": account_type_description(account.get("Account_Type")),
        "status": account_status_description(account.get("Account_Status")),
    }


def _generic_account(account: Mapping) -> Dict[str, Any]:
    return {
        "accountNumber": _text(first_present(account, ACCOUNT_NUMBER_FIELDS)) or NOT_AVAILABLE,
        "bankName": _text(first_present(account, BANK_NAME_FIELDS)) or NOT_AVAILABLE,
        "currentBalance": parse_numeric_value(first_present(account, ("currentBalance", "balance"))),
        "amountOverdue": parse_numeric_value(
            first_present(account, ("amountOverdue", "overdue", "outstanding"))
        ),
        "accountType": _text(first_present(account, ("accountType", "type"))) or DEFAULT_ACCOUNT_TYPE,
        "status": _text(first_present(account, ("status", "accountStatus"))) or DEFAULT_ACCOUNT_STATUS,
    }


def _bureau_credit_accounts(data: Any) -> Optional[List[Dict[str, Any]]]:
    if not get_path(data, *ACCOUNT_DETAILS_PATH):
        return None
    return [_bureau_account(a) for a in _account_details(data) if isinstance(a, Mapping)]


def _generic_credit_accounts(data: Any) -> List[Dict[str, Any]]:
    accounts = _sequence(first_present(data, ACCOUNT_LIST_FIELDS))
    return [_generic_account(a) for a in accounts if isinstance(a, Mapping)]


ACCOUNT_ACCESSORS: Tuple[Accessor, ...] = (_bureau_credit_accounts, _generic_credit_accounts)


def extract_credit_accounts(data: Any) -> List[Dict[str, Any]]:
    return _first_match(data, ACCOUNT_ACCESSORS)


# --- addresses -------------------------------------------------------------

def _bureau_address(details: Mapping) -> Dict[str, str]:
    lines = [_text(details.get(field)) for field in ADDRESS_LINE_FIELDS]
    country_code = _text(details.get("CountryCode_non_normalized"))
    return {
        "type": DEFAULT_ADDRESS_TYPE,
        "address": ", ".join(line for line in lines if line),
        "city": _text(details.get("City_non_normalized")) or NOT_AVAILABLE,
        "state": _text(details.get("State_non_normalized")) or NOT_AVAILABLE,
        "pincode": _text(details.get("ZIP_Postal_Code_non_normalized")) or NOT_AVAILABLE,
        "country": DEFAULT_COUNTRY if country_code == INDIA_COUNTRY_CODE else NOT_AVAILABLE,
    }


def format_address(address: Any) -> str:
    if isinstance(address, str):
        return address
    parts = [_text(first_present(address, slot)) for slot in GENERIC_ADDRESS_SLOTS]
    return ", ".join(part for part in parts if part)


def _generic_address(address: Any) -> Dict[str, str]:
    if isinstance(address, str):
        return {
            "type": DEFAULT_ADDRESS_TYPE,
            "address": address,
            "city": NOT_AVAILABLE,
            "state": NOT_AVAILABLE,
            "pincode": NOT_AVAILABLE,
            "country": DEFAULT_COUNTRY,
        }
    return {
        "type": _text(first_present(address, ("type", "addressType"))) or DEFAULT_ADDRESS_TYPE,
        "address": format_address(address),
        "city": _text(first_present(address, ("city",))) or NOT_AVAILABLE,
        "state": _text(first_present(address, ("state",))) or NOT_AVAILABLE,
        "pincode": _text(first_present(address, ("pincode", "pinCode"))) or NOT_AVAILABLE,
        "country": _text(first_present(address, ("country",))) or DEFAULT_COUNTRY,
    }


def _bureau_addresses(data: Any) -> Optional[List[Dict[str, str]]]:
    if not get_path(data, *ACCOUNT_DETAILS_PATH):
        return None
    addresses = []
    for account in _account_details(data):
        for details in as_list(get_path(account, "CAIS_Holder_Address_Details")):
            if isinstance(details, Mapping):
                addresses.append(_bureau_address(details))
    return addresses


def _generic_addresses(data: Any) -> List[Dict[str, str]]:
    addresses = _sequence(first_present(data, ADDRESS_LIST_FIELDS))
    return [_generic_address(a) for a in addresses if isinstance(a, (Mapping, str))]


ADDRESS_ACCESSORS: Tuple[Accessor, ...] = (_bureau_addresses, _generic_addresses)


def extract_addresses(data: Any) -> List[Dict[str, str]]:
    return _first_match(data, ADDRESS_ACCESSORS)


# --- report date -----------------------------------------------------------

def _bureau_report_date(data: Any) -> Optional[datetime]:
    return parse_bureau_date(get_path(data, *REPORT_DATE_PATH))


def _generic_report_date(data: Any) -> Optional[datetime]:
    return parse_date(first_present(data, DATE_FIELDS))


DATE_ACCESSORS: Tuple[Accessor, ...] = (_bureau_report_date, _generic_report_date)


def extract_report_date(data: Any) -> datetime:
    return _first_match(data, DATE_ACCESSORS) or utc_now()
