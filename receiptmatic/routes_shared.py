from pathlib import Path as FSPath
from fastapi import HTTPException, Request
from fastapi.templating import Jinja2Templates

from receiptmatic.jobs import JobState
from receiptmatic.services.printer import PrinterEngine

BASE_DIR = FSPath(__file__).resolve().parents[1]
TEMPLATES_DIR = BASE_DIR / "templates"

templates = Jinja2Templates(directory=str(TEMPLATES_DIR))

# CSS hook per lifecycle state
RECEIPT_CLASSES = {
    JobState.REVEALING: "receipt-printing",
    JobState.SETTLING: "receipt-finishing",
    JobState.SETTLED: "receipt-complete",
}


def get_printer(request: Request) -> PrinterEngine:
    engine = getattr(request.app.state, "printer", None)
    if engine is None:
        raise HTTPException(status_code=503, detail="Printer not started")
    return engine


__all__ = ["BASE_DIR", "TEMPLATES_DIR", "templates", "RECEIPT_CLASSES", "get_printer"]
