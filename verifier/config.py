"""
Application settings
"""
from pydantic_settings import BaseSettings
from typing import Dict, List


class Settings(BaseSettings):
    # Database
    DATABASE_URL: str = "sqlite:///./data/verifier.db"

    # Environment
    ENVIRONMENT: str = "development"
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"

    # CORS
    CORS_ORIGINS: List[str] = ["http://localhost:3000", "http://localhost:5173"]
    DATA_DIR: str = "./data"

    # Inbound API key for /api/verify-receipt
    API_KEY: str = "change-me"

    # Downstream callback
    CALLBACK_URL: str = "http://localhost:5678/webhook/payment-verified"
    CALLBACK_SECRET: str = ""
    CALLBACK_TIMEOUT_SECONDS: float = 5.0

    # Request-level bound on fetch + extraction. Must exceed the slowest
    # provider retry budget (Abyssinia: 3 x 30s + 2 x 1s).
    VERIFY_TIMEOUT_SECONDS: float = 120.0
    VERIFY_WORKERS: int = 8

    # Telebirr
    TELEBIRR_PRIMARY_URL: str = "https://transactioninfo.ethiotelecom.et/receipt/"
    TELEBIRR_FALLBACK_URL: str = "https://leul.et/verify.php?reference="
    TELEBIRR_SKIP_PRIMARY: bool = False
    TELEBIRR_TIMEOUT_SECONDS: float = 30.0

    # Commercial Bank of Ethiopia (self-signed certificate upstream)
    CBE_URL: str = "https://apps.cbe.com.et:100/"
    CBE_TIMEOUT_SECONDS: float = 30.0
    CBE_VERIFY_TLS: bool = False

    # Bank of Abyssinia
    ABYSSINIA_URL: str = "https://cs.bankofabyssinia.com/api/onlineSlip/getDetails/?id="
    ABYSSINIA_TIMEOUT_SECONDS: float = 30.0
    ABYSSINIA_MAX_ATTEMPTS: int = 3
    ABYSSINIA_RETRY_DELAY_SECONDS: float = 1.0

    # Dashen
    DASHEN_URL: str = "https://receipt.dashensuperapp.com/receipt/"
    DASHEN_TIMEOUT_SECONDS: float = 30.0
    DASHEN_VERIFY_TLS: bool = False

    # Receiver validation: "accounts" (receiver_accounts table) or "expected"
    RECEIVER_POLICY: str = "accounts"
    # Only read when RECEIVER_POLICY == "expected", e.g.
    # {"CBE": {"account": "1****5017", "name": "Abebe Kebede"}}
    EXPECTED_RECEIVERS: Dict[str, Dict[str, str]] = {}

    # Providers served by account rotation
    ROTATION_PROVIDERS: List[str] = ["TELEBIRR", "CBE", "ABYSSINIA"]

    # OCR (vision model)
    OCR_API_KEY: str = ""
    OCR_MODEL: str = "pixtral-12b-2409"
    OCR_URL: str = "https://api.mistral.ai/v1/chat/completions"
    OCR_TIMEOUT_SECONDS: float = 60.0

    class Config:
        env_file = ".env"
        case_sensitive = True


settings = Settings()
