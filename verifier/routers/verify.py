"""
Direct receipt lookups per provider.

These only fetch and extract; nothing is deduplicated, notified or stored.
"""
from __future__ import annotations

import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query

from verifier.dependencies import get_adapters, get_fetcher
from verifier.pipeline import lookup_receipt
from verifier.pipeline.adapters import Provider
from verifier.schemas import ReceiptFacts

logger = logging.getLogger(__name__)
router = APIRouter()


def _required(value: Optional[str], message: str) -> str:
    if value is None or not value.strip():
        raise HTTPException(status_code=400, detail=message)
    return value.strip()


# ── GET /api/verify/telebirr/{reference} ─────────────────────────────────────
@router.get("/verify/telebirr/{reference}", response_model=ReceiptFacts)
def verify_telebirr(reference: str, adapters=Depends(get_adapters), fetcher=Depends(get_fetcher)):
    reference = _required(reference, "Reference is required")
    facts = lookup_receipt(adapters[Provider.TELEBIRR], fetcher, reference)
    if not facts.success:
        logger.info("Telebirr receipt %s not found: %s", reference, facts.error)
        raise HTTPException(status_code=404, detail="Receipt not found or could not be verified")
    return facts


# ── GET /api/verify/cbe ──────────────────────────────────────────────────────
@router.get("/verify/cbe", response_model=ReceiptFacts)
def verify_cbe(
    reference: Optional[str] = Query(None),
    account_suffix: Optional[str] = Query(None, alias="accountSuffix"),
    adapters=Depends(get_adapters),
    fetcher=Depends(get_fetcher),
):
    """Check ``success`` in the body; extraction failures still return 200"""
    reference = _required(reference, "Reference is required")
    account_suffix = _required(account_suffix, "Account suffix is required")
    return lookup_receipt(adapters[Provider.CBE], fetcher, reference, account_suffix)


# ── GET /api/verify/abyssinia ────────────────────────────────────────────────
@router.get("/verify/abyssinia", response_model=ReceiptFacts)
def verify_abyssinia(
    reference: Optional[str] = Query(None),
    suffix: Optional[str] = Query(None),
    adapters=Depends(get_adapters),
    fetcher=Depends(get_fetcher),
):
    reference = _required(reference, "Reference is required")
    suffix = _required(suffix, "Account suffix is required")
    return lookup_receipt(adapters[Provider.ABYSSINIA], fetcher, reference, suffix)


# ── GET /api/verify/dashen/{reference} ───────────────────────────────────────
@router.get("/verify/dashen/{reference}", response_model=ReceiptFacts)
def verify_dashen(reference: str, adapters=Depends(get_adapters), fetcher=Depends(get_fetcher)):
    reference = _required(reference, "Reference is required")
    return lookup_receipt(adapters[Provider.DASHEN], fetcher, reference)
