"""
Finance views over fuel requests.

Read-only reports for the finance team: the approved expenses ledger (with
receipt links) and overall totals.
"""

from typing import Optional

from pydantic import BaseModel

from shared.models import FuelRequest, RequestStatus
from shared.record_store import InMemoryRecordStore


class ExpenseLine(BaseModel):
    """An approved request as shown in the expenses ledger."""
    request: FuelRequest
    driver_name: Optional[str] = None
    receipt_url: Optional[str] = None


class FinanceSummary(BaseModel):
    total_requests: int
    total_amount: float
    total_liters: float


class FinanceReports:
    """Builds finance reports from the record store."""

    def __init__(self, store: InMemoryRecordStore, receipt_base_url: str = "/uploads"):
        self.store = store
        self.receipt_base_url = receipt_base_url.rstrip("/")

    def receipt_url(self, request_id: int) -> Optional[str]:
        """Public URL of a request's receipt, if one was attached."""
        receipt = self.store.get_receipt(request_id)
        if receipt is None:
            return None
        if "://" in receipt.file_path:
            return receipt.file_path
        return f"{self.receipt_base_url}/{receipt.file_path.lstrip('/')}"

    def approved_expenses(self) -> list[ExpenseLine]:
        """Approved requests, newest first."""
        approved = self.store.list_by_status([RequestStatus.APPROVED])
        lines = []
        for request in sorted(approved, key=lambda r: r.id, reverse=True):
            driver = self.store.get_user(request.driver_id)
            lines.append(ExpenseLine(
                request=request,
                driver_name=driver.username if driver else None,
                receipt_url=self.receipt_url(request.id),
            ))
        return lines

    def summary(self) -> FinanceSummary:
        """Count, amount and volume over every request regardless of status."""
        requests = self.store.list_all()
        return FinanceSummary(
            total_requests=len(requests),
            total_amount=sum(r.total for r in requests),
            total_liters=sum(r.liters for r in requests),
        )
