"""
Provider extraction adapters.
"""
from verifier.pipeline.adapters.abyssinia import AbyssiniaAdapter
from verifier.pipeline.adapters.base import Provider, ReceiptAdapter
from verifier.pipeline.adapters.cbe import CbeAdapter
from verifier.pipeline.adapters.dashen import DashenAdapter
from verifier.pipeline.adapters.telebirr import TelebirrAdapter
from verifier.pipeline.fetcher import RetryPolicy


def build_adapters(settings) -> dict[Provider, ReceiptAdapter]:
    """Provider -> adapter registry wired from *settings*."""
    return {
        Provider.TELEBIRR: TelebirrAdapter(
            primary_url=settings.TELEBIRR_PRIMARY_URL,
            fallback_url=settings.TELEBIRR_FALLBACK_URL,
            retry_policy=RetryPolicy(timeout_seconds=settings.TELEBIRR_TIMEOUT_SECONDS),
            skip_primary=settings.TELEBIRR_SKIP_PRIMARY,
        ),
        Provider.CBE: CbeAdapter(
            url=settings.CBE_URL,
            retry_policy=RetryPolicy(timeout_seconds=settings.CBE_TIMEOUT_SECONDS),
            verify_tls=settings.CBE_VERIFY_TLS,
        ),
        Provider.ABYSSINIA: AbyssiniaAdapter(
            url=settings.ABYSSINIA_URL,
            retry_policy=RetryPolicy(
                max_attempts=settings.ABYSSINIA_MAX_ATTEMPTS,
                delay_seconds=settings.ABYSSINIA_RETRY_DELAY_SECONDS,
                timeout_seconds=settings.ABYSSINIA_TIMEOUT_SECONDS,
            ),
        ),
        Provider.DASHEN: DashenAdapter(
            url=settings.DASHEN_URL,
            retry_policy=RetryPolicy(timeout_seconds=settings.DASHEN_TIMEOUT_SECONDS),
            verify_tls=settings.DASHEN_VERIFY_TLS,
        ),
    }


__all__ = [
    "AbyssiniaAdapter",
    "CbeAdapter",
    "DashenAdapter",
    "Provider",
    "ReceiptAdapter",
    "TelebirrAdapter",
    "build_adapters",
]
