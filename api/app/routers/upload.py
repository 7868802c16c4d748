"""Upload endpoints: XML credit reports in, stored reports out."""
import logging
from typing import List

from fastapi import APIRouter, Depends, File, HTTPException, Response, UploadFile, status
from sqlalchemy.orm import Session

from ..config import MAX_BATCH_FILES
from ..db import get_db, mask_pan, report_summary_view, save_credit_report
from ..logging_config import log_with_context
from ..parsers.credit_report import STAGE_PARSE, ExtractionResult, extract_batch, extract_record
from ..schemas import BatchUploadResponse, UploadResponse

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/upload", tags=["upload"])

XML_CONTENT_TYPES = ("text/xml", "application/xml")

SAMPLE_XML = """<?xml version="1.0" encoding="UTF-8"?>
<creditReport>
  <name>John Doe</name>
  <mobilePhone>9876543210</mobilePhone>
  <pan>ABCDE1234F</pan>
  <creditScore>750</creditScore>
  <reportSummary>
    <totalAccounts>5</totalAccounts>
    <activeAccounts>4</activeAccounts>
    <closedAccounts>1</closedAccounts>
    <currentBalanceAmount>150000</currentBalanceAmount>
    <securedAccountsAmount>50000</securedAccountsAmount>
    <unsecuredAccountsAmount>100000</unsecuredAccountsAmount>
    <lastSevenDaysCreditEnquiries>2</lastSevenDaysCreditEnquiries>
  </reportSummary>
  <creditAccounts>
    <account>
      <accountNumber>1234567890123456</accountNumber>
      <bankName>HDFC Bank</bankName>
      <currentBalance>25000</currentBalance>
      <amountOverdue>0</amountOverdue>
      <accountType>Credit Card</accountType>
      <status>Active</status>
    </account>
    <account>
      <accountNumber>9876543210987654</accountNumber>
      <bankName>ICICI Bank</bankName>
      <currentBalance>75000</currentBalance>
      <amountOverdue>5000</amountOverdue>
      <accountType>Credit Card</accountType>
      <status>Active</status>
    </account>
  </creditAccounts>
  <addresses>
    <address>
      <type>Current</type>
      <line1>123 Main Street</line1>
      <city>Mumbai</city>
      <state>Maharashtra</state>
      <pincode>400001</pincode>
      <country>India</country>
    </address>
  </addresses>
  <reportDate>2024-01-15</reportDate>
</creditReport>
"""


def is_xml_upload(file: UploadFile) -> bool:
    content_type = (file.content_type or "").split(";")[0].strip().lower()
    return content_type in XML_CONTENT_TYPES or (file.filename or "").lower().endswith(".xml")


def _failure_error(result: ExtractionResult) -> str:
    return "Failed to parse XML file" if result.error.stage == STAGE_PARSE else result.error.message


@router.post("", status_code=status.HTTP_201_CREATED, response_model=UploadResponse)
async def upload_report(
    xml_file: UploadFile = File(..., alias="xmlFile"),
    db: Session = Depends(get_db),
):
    """Upload one XML credit report; an existing report with the same PAN is replaced."""
    if not is_xml_upload(xml_file):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Only XML files are allowed")

    contents = await xml_file.read()
    filename = xml_file.filename or "upload.xml"
    log_with_context(logger, logging.INFO, f"Processing XML file: {filename}, Size: {len(contents)} bytes",
                     document=filename)

    result = extract_record(contents, filename)
    if not result.ok:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail={
                "error": _failure_error(result),
                "stage": result.error.stage,
                "details": result.error.details,
            },
        )

    try:
        report, created = save_credit_report(db, result.record, filename=filename, raw_tree=result.raw_tree)
    except Exception as e:
        logger.exception(f"Failed to store credit report from {filename}")
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                            detail=f"Failed to process XML file: {e}")

    log_with_context(
        logger, logging.INFO,
        f"{'Created new' if created else 'Updated existing'} credit report for PAN: {mask_pan(report.pan)}",
        document=filename, report_id=report.id,
    )
    return {
        "success": True,
        "message": "Credit report created successfully" if created else "Credit report updated successfully",
        "data": report_summary_view(report),
    }


@router.post("/batch", response_model=BatchUploadResponse)
async def upload_batch(
    xml_files: List[UploadFile] = File(..., alias="xmlFiles"),
    db: Session = Depends(get_db),
):
    """Upload several XML reports; each file succeeds or fails on its own."""
    if len(xml_files) > MAX_BATCH_FILES:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Maximum {MAX_BATCH_FILES} files allowed per batch",
        )

    results = []
    errors = []
    documents = []
    for upload in xml_files:
        filename = upload.filename or "upload.xml"
        if not is_xml_upload(upload):
            errors.append({"fileName": filename, "error": "Only XML files are allowed"})
            continue
        documents.append((filename, await upload.read()))

    for outcome in extract_batch(documents):
        if not outcome.ok:
            errors.append({
                "fileName": outcome.filename,
                "error": _failure_error(outcome),
                "stage": outcome.error.stage,
                "details": outcome.error.details,
            })
            continue

        try:
            report, _ = save_credit_report(db, outcome.record, filename=outcome.filename, raw_tree=outcome.raw_tree)
        except Exception as e:  # noqa: BLE001
            db.rollback()
            logger.exception(f"Error processing file {outcome.filename}")
            errors.append({"fileName": outcome.filename, "error": str(e)})
            continue

        results.append({
            "fileName": outcome.filename,
            "success": True,
            "data": {"id": report.id, "name": report.name, "pan": mask_pan(report.pan)},
        })

    return {
        "success": True,
        "message": f"Processed {len(xml_files)} files",
        "results": results,
        "errors": errors,
        "summary": {"total": len(xml_files), "successful": len(results), "failed": len(errors)},
    }


@router.get("/sample")
def sample_report():
    """Sample generic-layout report for trying the upload endpoint."""
    return Response(content=SAMPLE_XML, media_type="application/xml")
