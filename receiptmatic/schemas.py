from pydantic import BaseModel
from typing import Optional, List
from datetime import datetime

from receiptmatic.jobs import JobSnapshot, JobState
from receiptmatic.services.formatter import LineKind, classify_line

# =========================
# PRINT REQUEST SCHEMAS
# =========================
class PrintRequest(BaseModel):
    text: str

class PrintAccepted(BaseModel):
    id: str


# =========================
# RECEIPT SCHEMAS
# =========================
class ReceiptLine(BaseModel):
    text: str
    kind: LineKind

class ReceiptRead(BaseModel):
    id: str
    state: JobState
    total: int
    revealed: int
    created_at: datetime
    lines: List[ReceiptLine] = []

    @classmethod
    def from_snapshot(cls, snap: JobSnapshot) -> "ReceiptRead":
        return cls(
            id=snap.id,
            state=snap.state,
            total=snap.total,
            revealed=snap.revealed,
            created_at=snap.created_at,
            lines=[
                ReceiptLine(text=text, kind=classify_line(i, text, snap.total))
                for i, text in enumerate(snap.lines)
            ],
        )

class ReceiptList(BaseModel):
    version: int
    busy: bool
    receipts: List[ReceiptRead] = []


# =========================
# PRINTER STATUS SCHEMAS
# =========================
class ActiveJob(BaseModel):
    id: str
    state: JobState

class PrinterStatus(BaseModel):
    busy: bool
    version: int
    active: Optional[ActiveJob] = None
