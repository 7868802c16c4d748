import sys
from datetime import datetime, timezone
from pathlib import Path

sys.path.append(str(Path(__file__).resolve().parents[1]))

from app.parsers.extractors import (
    extract_addresses,
    extract_credit_accounts,
    extract_credit_score,
    extract_mobile_phone,
    extract_name,
    extract_pan,
    extract_report_date,
    extract_report_summary,
    format_address,
)
from app.parsers.structure import normalize_structure
from app.parsers.xml_tree import parse_xml


def _bureau_tree(experian_xml):
    return normalize_structure(parse_xml(experian_xml))


# --- bureau layout ---------------------------------------------------------

def test_bureau_identity_fields(experian_xml):
    tree = _bureau_tree(experian_xml)
    assert extract_name(tree) == "Sagar Sharma"
    # 12 digits once cleaned, so the original text is kept
    assert extract_mobile_phone(tree) == "+91-98111 22333"
    assert extract_pan(tree) == "BKPPS4521K"
    assert extract_credit_score(tree) == 762.0


def test_bureau_summary(experian_xml):
    summary = extract_report_summary(_bureau_tree(experian_xml))
    assert summary == {
        "totalAccounts": 3.0,
        "activeAccounts": 2.0,
        "closedAccounts": 1.0,
        "currentBalanceAmount": 445000.0,
        "securedAccountsAmount": 350000.0,
        "unsecuredAccountsAmount": 95000.0,
        "lastSevenDaysCreditEnquiries": 2.0,
    }


def test_bureau_accounts_translate_codes(experian_xml):
    accounts = extract_credit_accounts(_bureau_tree(experian_xml))
    assert [a["accountNumber"] for a in accounts] == ["XXXX4521", "LN778899", "PL000123"]
    assert accounts[0] == {
        "accountNumber": "XXXX4521",
        "bankName": "HDFC Bank",
        "currentBalance": 45000.0,
        "amountOverdue": 1500.0,
        "accountType": "Credit Card",
        "status": "Active",
    }
    assert accounts[1]["accountType"] == "Home Loan"
    assert accounts[1]["status"] == "Closed"
    assert accounts[1]["amountOverdue"] == 0.0
    assert accounts[2]["currentBalance"] == 50000.0
    assert accounts[2]["accountType"] == "Account Type 99"
    assert accounts[2]["status"] == "Status 78"


def test_bureau_addresses(experian_xml):
    addresses = extract_addresses(_bureau_tree(experian_xml))
    assert addresses == [
        {
            "type": "Current",
            "address": "Flat 12, Green Park, MG Road",
            "city": "Pune",
            "state": "27",
            "pincode": "411001",
            "country": "India",
        },
        {
            "type": "Current",
            "address": "221B Baker Street",
            "city": "London",
            "state": "N/A",
            "pincode": "N/A",
            "country": "N/A",
        },
    ]


def test_bureau_report_date(experian_xml):
    assert extract_report_date(_bureau_tree(experian_xml)) == datetime(2024, 1, 15, tzinfo=timezone.utc)


def test_single_bureau_account_is_not_treated_as_missing():
    tree = {
        "CAIS_Account": {
            "CAIS_Account_DETAILS": {
                "Account_Number": "A1",
                "Subscriber_Name": "SBI",
                "Account_Type": "53",
                "Account_Status": "71",
                "Current_Balance": "1000",
            }
        }
    }
    (account,) = extract_credit_accounts(tree)
    assert account["accountType"] == "Auto Loan"
    assert account["status"] == "Settled"
    assert account["amountOverdue"] == 0.0
    assert extract_addresses(tree) == []


def test_bureau_name_falls_back_to_generic_when_applicant_is_blank():
    tree = {
        "Current_Application": {
            "Current_Application_Details": {"Current_Applicant_Details": {"First_Name": "", "Last_Name": ""}}
        },
        "name": "Meera Iyer",
    }
    assert extract_name(tree) == "Meera Iyer"


def test_bureau_pan_skips_holders_without_pan():
    tree = {
        "CAIS_Account": {
            "CAIS_Account_DETAILS": [
                {"CAIS_Holder_Details": {"Income_TAX_PAN": ""}},
                {"CAIS_Holder_Details": [{"Income_TAX_PAN": "--"}, {"Income_TAX_PAN": "pqrst6789z"}]},
            ]
        }
    }
    assert extract_pan(tree) == "PQRST6789Z"


# --- generic layouts -------------------------------------------------------

def test_generic_identity_field_order():
    tree = {"fullName": "Asha Rao", "customerName": "Ignored", "phone": "98765 43210", "panNumber": "abcde1234f"}
    assert extract_name(tree) == "Asha Rao"
    assert extract_mobile_phone(tree) == "9876543210"
    assert extract_pan(tree) == "ABCDE1234F"


def test_generic_score_prefers_first_present_field():
    assert extract_credit_score({"score": "700", "cibilScore": "650"}) == 700.0
    assert extract_credit_score({"creditScore": "", "cibilScore": "650"}) == 650.0
    assert extract_credit_score({}) == 0.0


def test_missing_fields_use_defaults():
    tree = {"somethingElse": "x"}
    assert extract_name(tree) == "N/A"
    assert extract_mobile_phone(tree) == "N/A"
    assert extract_pan(tree) == "N/A"
    assert extract_credit_accounts(tree) == []
    assert extract_addresses(tree) == []
    assert set(extract_report_summary(tree).values()) == {0.0}
    assert extract_report_date(tree).tzinfo is not None


def test_generic_summary_aliases():
    tree = {"summary": {"totalAccountsCount": "4", "currentBalance": "₹12,000", "recentEnquiries": "1"}}
    summary = extract_report_summary(tree)
    assert summary["totalAccounts"] == 4.0
    assert summary["currentBalanceAmount"] == 12000.0
    assert summary["lastSevenDaysCreditEnquiries"] == 1.0
    assert summary["activeAccounts"] == 0.0


def test_generic_accounts_unwrap_repeated_child():
    xml = """
    <creditReport>
      <creditAccounts>
        <account><cardNumber>4111</cardNumber><issuer>Kotak</issuer><balance>1,200</balance></account>
        <account><accountNo>LN-9</accountNo><bankName>SBI</bankName><type>Home Loan</type><status>Closed</status></account>
      </creditAccounts>
    </creditReport>
    """
    accounts = extract_credit_accounts(normalize_structure(parse_xml(xml)))
    assert accounts == [
        {
            "accountNumber": "4111",
            "bankName": "Kotak",
            "currentBalance": 1200.0,
            "amountOverdue": 0.0,
            "accountType": "Credit Card",
            "status": "Active",
        },
        {
            "accountNumber": "LN-9",
            "bankName": "SBI",
            "currentBalance": 0.0,
            "amountOverdue": 0.0,
            "accountType": "Home Loan",
            "status": "Closed",
        },
    ]


def test_generic_accounts_single_wrapped_entry():
    tree = {"accounts": {"account": {"accountNumber": "X1", "bankName": "HDFC"}}}
    (account,) = extract_credit_accounts(tree)
    assert account["accountNumber"] == "X1"


def test_generic_accounts_ignore_non_sequences():
    assert extract_credit_accounts({"creditAccounts": "none"}) == []
    assert extract_credit_accounts({"creditAccounts": {"a": "1", "b": "2"}}) == []
    assert extract_credit_accounts({"creditAccounts": ["text", {"accountNumber": "Z"}]})[0]["accountNumber"] == "Z"


def test_generic_addresses():
    tree = {
        "addresses": {
            "address": [
                {"line1": "12 MG Road", "locality": "Indiranagar", "city": "Bengaluru", "state": "KA", "pinCode": "560038"},
                "Plot 4, Sector 5, Noida",
            ]
        }
    }
    first, second = extract_addresses(tree)
    assert first == {
        "type": "Current",
        "address": "12 MG Road, Indiranagar, Bengaluru, KA, 560038",
        "city": "Bengaluru",
        "state": "KA",
        "pincode": "560038",
        "country": "India",
    }
    assert second["address"] == "Plot 4, Sector 5, Noida"
    assert second["city"] == "N/A"
    assert second["country"] == "India"


def test_format_address():
    assert format_address("as is") == "as is"
    assert format_address({"addressLine1": "A", "line2": "", "city": "C"}) == "A, C"


def test_generic_report_date():
    assert extract_report_date({"reportDate": "2023-06-30"}).date().isoformat() == "2023-06-30"
    assert extract_report_date({"Header": {"ReportDate": "bad"}, "date": "2022-02-01"}).year == 2022
