"""
Receipt verification pipeline.

Orchestrates: dedup check → extract → validate → notify → persist.
"""
from __future__ import annotations

import concurrent.futures
import logging
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime
from enum import Enum
from typing import Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from verifier import repository
from verifier.config import settings
from verifier.errors import AUDITED_KINDS, FailureKind, FetchError, VerificationError
from verifier.models import VerifiedPaymentModel
from verifier.pipeline.adapters import Provider, ReceiptAdapter
from verifier.pipeline.fetcher import SourceFetcher
from verifier.pipeline.ledger import Ledger
from verifier.pipeline.notifier import Notifier
from verifier.schemas import ReceiptFacts, VerificationRequest, VerificationResult

logger = logging.getLogger(__name__)

# Fetch + parse run here so a request-level timeout can abandon them.
_executor = ThreadPoolExecutor(max_workers=settings.VERIFY_WORKERS, thread_name_prefix="verify")


class Stage(str, Enum):
    DEDUP_CHECK = "dedup_check"
    EXTRACT = "extract"
    VALIDATE = "validate"
    NOTIFY = "notify"
    PERSIST = "persist"
    DONE = "done"


def fetch_receipt(
    adapter: ReceiptAdapter,
    fetcher: SourceFetcher,
    reference: str,
    suffix: Optional[str] = None,
) -> ReceiptFacts:
    """Try the adapter's sources in order until one yields a valid receipt.

    Raises ``VerificationError`` when none does: an extraction failure if some
    source answered, otherwise the last fetch failure.
    """
    facts: Optional[ReceiptFacts] = None
    last_fetch_error: Optional[FetchError] = None

    for source in adapter.sources(reference, suffix):
        try:
            result = fetcher.fetch(source, adapter.retry_policy)
        except FetchError as exc:
            logger.warning("%s %s source failed: %s", adapter.provider.value, source.name, exc.reason)
            last_fetch_error = exc
            continue

        facts = adapter.extract(result.content, result.content_type)
        if adapter.is_valid(facts):
            return facts
        logger.warning(
            "%s %s source gave no valid receipt: %s", adapter.provider.value, source.name, facts.error
        )

    if facts is not None:
        raise VerificationError(facts.error or adapter.parse_error, FailureKind.EXTRACTION_FAILURE)
    if last_fetch_error is not None:
        raise VerificationError(last_fetch_error.reason, FailureKind.FETCH_FAILURE)
    raise VerificationError(
        f"No receipt source configured for {adapter.provider.value}", FailureKind.FETCH_FAILURE
    )


def lookup_receipt(
    adapter: ReceiptAdapter,
    fetcher: SourceFetcher,
    reference: str,
    suffix: Optional[str] = None,
) -> ReceiptFacts:
    """``fetch_receipt`` with failures folded into ``ReceiptFacts``."""
    try:
        return fetch_receipt(adapter, fetcher, reference, suffix)
    except VerificationError as exc:
        return ReceiptFacts.failure(exc.reason)


def _extract(
    adapter: ReceiptAdapter,
    fetcher: SourceFetcher,
    request: VerificationRequest,
    timeout: float,
) -> ReceiptFacts:
    future = _executor.submit(fetch_receipt, adapter, fetcher, request.reference, request.suffix)
    try:
        return future.result(timeout=timeout)
    except concurrent.futures.TimeoutError:
        future.cancel()
        logger.error("Extraction for %s exceeded %.1fs; abandoning fetch", request.reference, timeout)
        raise VerificationError("Verification timed out", FailureKind.TIMEOUT)


def _build_payment(
    request: VerificationRequest, provider: Provider, facts: ReceiptFacts
) -> VerifiedPaymentModel:
    return VerifiedPaymentModel(
        sender_id=request.sender_id,
        reference=request.reference,
        bank_type=provider.value,
        amount=facts.amount,
        payer_name=facts.payer_name,
        payer_account=facts.payer_account,
        receiver_name=facts.receiver_name,
        receiver_account=facts.receiver_account,
        transaction_date=facts.transaction_date,
        narrative=facts.narrative,
        raw_data=facts.model_dump(mode="json"),
        merchant_reference_id=request.merchant_reference_id,
        verified_at=datetime.utcnow(),
    )


def _audit(db: Session, request: VerificationRequest, bank_type: str, error: VerificationError) -> None:
    try:
        repository.record_failure(
            db,
            bank_type=bank_type,
            reference=request.reference,
            sender_id=request.sender_id,
            merchant_reference_id=request.merchant_reference_id,
            reason=error.reason,
            kind=error.kind.value,
        )
    except SQLAlchemyError:
        db.rollback()
        logger.error("Could not record failed verification for %s", request.reference, exc_info=True)


def process_verification(
    request: VerificationRequest,
    db: Session,
    *,
    adapters: dict[Provider, ReceiptAdapter],
    fetcher: SourceFetcher,
    notifier: Notifier,
    validator,
    timeout: Optional[float] = None,
) -> VerificationResult:
    """Run one verification request to a terminal result. Never raises."""
    if timeout is None:
        timeout = settings.VERIFY_TIMEOUT_SECONDS
    provider = Provider.parse(request.bank_type)
    bank_type = provider.value if provider else request.bank_type.strip().upper()
    ledger = Ledger(db)
    stage = Stage.DEDUP_CHECK

    logger.info("Processing verification for bank: %s, reference: %s", bank_type, request.reference)
    try:
        if provider is not None and ledger.exists(provider, request.reference):
            raise VerificationError("Reference already processed", FailureKind.DUPLICATE_REFERENCE)

        stage = Stage.EXTRACT
        adapter = adapters.get(provider) if provider is not None else None
        if adapter is None:
            raise VerificationError(
                f"Unsupported bank type: {bank_type}", FailureKind.UNSUPPORTED_PROVIDER
            )
        facts = _extract(adapter, fetcher, request, timeout)
        logger.info("Extracted %s receipt %s, amount %s", bank_type, facts.reference, facts.amount)

        stage = Stage.VALIDATE
        validator.validate(db, provider, facts)

        stage = Stage.NOTIFY
        delivered = notifier.notify(
            sender_id=request.sender_id,
            reference=request.reference,
            bank_type=bank_type,
            amount=facts.amount,
            merchant_reference_id=request.merchant_reference_id,
        )
        if not delivered:
            raise VerificationError("Internal callback failed", FailureKind.NOTIFICATION_FAILURE)

        stage = Stage.PERSIST
        if not ledger.record(_build_payment(request, provider, facts)):
            raise VerificationError("Reference already processed", FailureKind.DUPLICATE_REFERENCE)

    except VerificationError as exc:
        logger.warning(
            "Verification of %s/%s failed at %s: %s", bank_type, request.reference, stage.value, exc.reason
        )
        if exc.kind in AUDITED_KINDS:
            _audit(db, request, bank_type, exc)
        return VerificationResult.failed(exc.reason)
    except Exception:
        logger.error(
            "Unexpected error verifying %s/%s at %s", bank_type, request.reference, stage.value, exc_info=True
        )
        db.rollback()
        return VerificationResult.failed("Internal error during verification")

    stage = Stage.DONE
    logger.info("Verification of %s/%s %s", bank_type, request.reference, stage.value)
    return VerificationResult.ok("Verification successful and recorded")
