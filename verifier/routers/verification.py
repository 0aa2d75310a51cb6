"""
External verification API: unified verification, screenshot upload,
receiver account rotation and the failed-verification audit trail.
"""
from __future__ import annotations

import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, File, Form, HTTPException, Query, UploadFile
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from verifier.config import settings
from verifier.database import get_db
from verifier.dependencies import get_adapters, get_fetcher, get_notifier, get_ocr_client, get_validator
from verifier.models import FailedVerificationModel
from verifier.pipeline import process_verification
from verifier.pipeline.adapters import Provider
from verifier.pipeline.rotation import next_account
from verifier.schemas import (
    FailedVerificationResponse,
    PaginatedResponse,
    ReceiverAccountResponse,
    ScreenshotResult,
    VerificationRequest,
    VerificationResult,
)
from verifier.security import require_api_key

logger = logging.getLogger(__name__)
router = APIRouter(dependencies=[Depends(require_api_key)])


def _respond(success: bool, body: dict) -> JSONResponse:
    return JSONResponse(status_code=200 if success else 400, content=body)


# ── POST /api/verify-receipt ─────────────────────────────────────────────────
@router.post(
    "/verify-receipt",
    response_model=VerificationResult,
    responses={400: {"model": VerificationResult}, 401: {"description": "Invalid or missing API-Key"}},
)
def verify_receipt(
    req: VerificationRequest,
    db: Session = Depends(get_db),
    adapters=Depends(get_adapters),
    fetcher=Depends(get_fetcher),
    notifier=Depends(get_notifier),
    validator=Depends(get_validator),
):
    """Verify a receipt, notify downstream and record it. 400 carries the failure message."""
    result = process_verification(
        req,
        db,
        adapters=adapters,
        fetcher=fetcher,
        notifier=notifier,
        validator=validator,
    )
    return _respond(result.success, result.model_dump())


# ── POST /api/verify-receipt/upload-screenshot ───────────────────────────────
@router.post("/verify-receipt/upload-screenshot", response_model=ScreenshotResult)
def verify_screenshot(
    file: Optional[UploadFile] = File(default=None),
    sender_id: Optional[str] = Form(default=None, alias="senderId"),
    merchant_reference_id: Optional[str] = Form(default=None, alias="merchantReferenceId"),
    suffix: Optional[str] = Form(default=None),
    db: Session = Depends(get_db),
    adapters=Depends(get_adapters),
    fetcher=Depends(get_fetcher),
    notifier=Depends(get_notifier),
    validator=Depends(get_validator),
    ocr=Depends(get_ocr_client),
):
    """OCR a receipt screenshot, then run the unified verification on what it found"""
    if file is None:
        raise HTTPException(status_code=400, detail="No file uploaded")
    if not sender_id or not sender_id.strip():
        raise HTTPException(status_code=400, detail="senderId is required")

    image = file.file.read()
    mime_type = file.content_type or "image/jpeg"
    logger.info("Received screenshot upload: %s (%d bytes, type: %s)", file.filename, len(image), mime_type)

    ocr_result = ocr.analyze(image, mime_type)
    if not ocr_result.success:
        logger.warning("OCR analysis failed: %s", ocr_result.error)
        body = ScreenshotResult(success=False, error=ocr_result.error)
        return _respond(False, body.model_dump(by_alias=True))

    logger.info("OCR detected bank: %s, reference: %s", ocr_result.bank_type, ocr_result.reference)
    req = VerificationRequest(
        bank_type=ocr_result.bank_type,
        reference=ocr_result.reference,
        suffix=suffix or None,
        sender_id=sender_id,
        merchant_reference_id=merchant_reference_id or None,
    )
    result = process_verification(
        req,
        db,
        adapters=adapters,
        fetcher=fetcher,
        notifier=notifier,
        validator=validator,
    )
    body = ScreenshotResult(
        success=result.success,
        detected_bank=ocr_result.bank_type,
        extracted_reference=ocr_result.reference,
        message=result.message,
        error=None if result.success else result.message,
    )
    return _respond(result.success, body.model_dump(by_alias=True))


# ── GET /api/verify-receipt ──────────────────────────────────────────────────
@router.get("/verify-receipt", response_model=List[ReceiverAccountResponse])
def rotated_accounts(db: Session = Depends(get_db)):
    """One receiver account per rotation provider, least recently used first"""
    accounts = []
    for tag in settings.ROTATION_PROVIDERS:
        provider = Provider.parse(tag)
        if provider is None:
            logger.warning("Ignoring unknown rotation provider: %s", tag)
            continue
        account = next_account(db, provider)
        if account is not None:
            accounts.append(account)
    return accounts


# ── GET /api/verify-receipt/failed ───────────────────────────────────────────
@router.get("/verify-receipt/failed", response_model=PaginatedResponse[FailedVerificationResponse])
def failed_verifications(
    page: int = Query(0, ge=0),
    size: int = Query(20, ge=1, le=200),
    db: Session = Depends(get_db),
):
    """Failed verification attempts, latest first (0-based pages)"""
    query = db.query(FailedVerificationModel)
    total = query.count()
    items = (
        query.order_by(FailedVerificationModel.failed_at.desc(), FailedVerificationModel.id.desc())
        .offset(page * size)
        .limit(size)
        .all()
    )
    return PaginatedResponse[FailedVerificationResponse](
        items=[FailedVerificationResponse.model_validate(item) for item in items],
        total=total,
        page=page,
        size=size,
    )
