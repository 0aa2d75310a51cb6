from verifier.schemas.base import (
    OcrResult,
    ReceiptFacts,
    ScreenshotResult,
    VerificationRequest,
    VerificationResult,
)
from verifier.schemas.records import (
    FailedVerificationResponse,
    PaginatedResponse,
    ReceiverAccountCreate,
    ReceiverAccountResponse,
    VerifiedPaymentResponse,
)

__all__ = [
    "FailedVerificationResponse",
    "OcrResult",
    "PaginatedResponse",
    "ReceiptFacts",
    "ReceiverAccountCreate",
    "ReceiverAccountResponse",
    "ScreenshotResult",
    "VerificationRequest",
    "VerificationResult",
    "VerifiedPaymentResponse",
]
