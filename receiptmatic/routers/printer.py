from __future__ import annotations

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Form, HTTPException, Query, Request
from fastapi.responses import HTMLResponse, RedirectResponse

from receiptmatic.routes_shared import RECEIPT_CLASSES, get_printer, templates
from receiptmatic.schemas import ActiveJob, PrintAccepted, PrintRequest, PrinterStatus, ReceiptList, ReceiptRead
from receiptmatic.services.printer import PrinterEngine

router = APIRouter()
logger = logging.getLogger(__name__)

MAX_WAIT_SECONDS = 30.0


def _receipt_list(printer: PrinterEngine) -> ReceiptList:
    return ReceiptList(
        version=printer.version,
        busy=printer.busy,
        receipts=[ReceiptRead.from_snapshot(s) for s in printer.snapshot()],
    )


def _submit_or_raise(printer: PrinterEngine, text: str) -> str:
    if not (text or "").strip():
        raise HTTPException(status_code=422, detail="Nothing to print")
    jid = printer.submit(text)
    if jid is None:
        if printer.closed:
            raise HTTPException(status_code=503, detail="Printer is shutting down")
        raise HTTPException(status_code=409, detail="Printer is busy")
    return jid


@router.post("/api/print", response_model=PrintAccepted, status_code=202)
async def print_receipt(body: PrintRequest, printer: PrinterEngine = Depends(get_printer)):
    return PrintAccepted(id=_submit_or_raise(printer, body.text))


@router.get("/api/receipts", response_model=ReceiptList)
async def list_receipts(
    since: Optional[int] = Query(None, description="Long-poll until the version moves past this"),
    wait: float = Query(25.0, ge=0, le=MAX_WAIT_SECONDS),
    printer: PrinterEngine = Depends(get_printer),
):
    if since is not None and wait > 0:
        await printer.wait_for_update(since, wait)
    return _receipt_list(printer)


@router.get("/api/status", response_model=PrinterStatus)
async def printer_status(printer: PrinterEngine = Depends(get_printer)):
    active = printer.active
    return PrinterStatus(
        busy=printer.busy,
        version=printer.version,
        active=ActiveJob(id=active[0], state=active[1]) if active else None,
    )


@router.get("/", response_class=HTMLResponse, name="printer_view")
async def printer_view(request: Request, printer: PrinterEngine = Depends(get_printer)):
    return templates.TemplateResponse(
        request,
        "printer.html",
        {
            "receipts": _receipt_list(printer).receipts,
            "busy": printer.busy,
            "receipt_classes": RECEIPT_CLASSES,
        },
    )


@router.post("/print")
async def print_form(text: str = Form(""), printer: PrinterEngine = Depends(get_printer)):
    try:
        _submit_or_raise(printer, text)
    except HTTPException as exc:
        # the page shows READY / PRINTING...; nothing else to report
        logger.debug("Form submission rejected: %s", exc.detail)
    return RedirectResponse(url="/", status_code=303)


__all__ = ["router"]
