"""
Pipeline collaborators as FastAPI dependencies.

Tests replace these through ``app.dependency_overrides``.
"""
from functools import lru_cache

from verifier.config import settings
from verifier.pipeline.adapters import build_adapters
from verifier.pipeline.fetcher import SourceFetcher
from verifier.pipeline.notifier import Notifier
from verifier.pipeline.ocr import OcrClient
from verifier.pipeline.validator import build_validator


@lru_cache
def get_adapters():
    return build_adapters(settings)


def get_fetcher() -> SourceFetcher:
    return SourceFetcher()


def get_notifier() -> Notifier:
    return Notifier(
        url=settings.CALLBACK_URL,
        secret=settings.CALLBACK_SECRET,
        timeout=settings.CALLBACK_TIMEOUT_SECONDS,
    )


def get_validator():
    return build_validator(settings)


def get_ocr_client() -> OcrClient:
    return OcrClient(
        api_key=settings.OCR_API_KEY,
        url=settings.OCR_URL,
        model=settings.OCR_MODEL,
        timeout=settings.OCR_TIMEOUT_SECONDS,
    )
