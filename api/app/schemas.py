from datetime import datetime
from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel


class ReportSummary(BaseModel):
    totalAccounts: float = 0
    activeAccounts: float = 0
    closedAccounts: float = 0
    currentBalanceAmount: float = 0
    securedAccountsAmount: float = 0
    unsecuredAccountsAmount: float = 0
    lastSevenDaysCreditEnquiries: float = 0


class CreditAccount(BaseModel):
    accountNumber: str
    bankName: str
    currentBalance: float = 0
    amountOverdue: float = 0
    accountType: Optional[str] = None
    status: Optional[str] = None


class Address(BaseModel):
    type: str
    address: str
    city: Optional[str] = None
    state: Optional[str] = None
    pincode: Optional[str] = None
    country: Optional[str] = None


class CreditReportOut(BaseModel):
    id: str
    name: str
    mobilePhone: str
    pan: str
    creditScore: float = 0
    reportSummary: ReportSummary = ReportSummary()
    creditAccounts: List[CreditAccount] = []
    addresses: List[Address] = []
    reportDate: Optional[datetime] = None
    originalFileName: str
    processedAt: Optional[datetime] = None
    createdAt: Optional[datetime] = None
    updatedAt: Optional[datetime] = None
    xmlData: Optional[Dict[str, Any]] = None


class ReportEnvelope(BaseModel):
    success: bool = True
    data: CreditReportOut


class Pagination(BaseModel):
    currentPage: int
    totalPages: int
    totalItems: int
    itemsPerPage: int
    hasNextPage: bool
    hasPrevPage: bool


class ReportListResponse(BaseModel):
    success: bool = True
    data: List[CreditReportOut]
    pagination: Pagination


class UploadSummary(BaseModel):
    id: str
    name: str
    pan: str
    creditScore: float = 0
    totalAccounts: float = 0
    currentBalance: float = 0
    processedAt: Optional[datetime] = None


class UploadResponse(BaseModel):
    success: bool = True
    message: str
    data: UploadSummary


class BatchFileResult(BaseModel):
    fileName: str
    success: bool = True
    data: Dict[str, Any]


class BatchFileError(BaseModel):
    fileName: str
    error: str
    stage: Optional[str] = None
    details: List[str] = []


class BatchSummary(BaseModel):
    total: int
    successful: int
    failed: int


class BatchUploadResponse(BaseModel):
    success: bool = True
    message: str
    results: List[BatchFileResult]
    errors: List[BatchFileError]
    summary: BatchSummary


class SummaryStatistics(BaseModel):
    totalReports: int = 0
    avgCreditScore: float = 0
    maxCreditScore: float = 0
    minCreditScore: float = 0
    totalCurrentBalance: float = 0
    totalAccounts: float = 0
    totalActiveAccounts: float = 0
    recentReports: int = 0


class StatisticsResponse(BaseModel):
    success: bool = True
    data: SummaryStatistics


class ScoreBucket(BaseModel):
    bucket: Union[int, str]
    count: int
    avgBalance: float


class DistributionResponse(BaseModel):
    success: bool = True
    data: List[ScoreBucket]


class DeletedReport(BaseModel):
    id: str
    name: str
    pan: Optional[str] = None


class DeleteResponse(BaseModel):
    success: bool = True
    message: str
    data: DeletedReport
