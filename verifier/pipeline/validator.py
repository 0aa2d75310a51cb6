"""
Receiver validation.

Two policies exist and exactly one is active, selected by
``Settings.RECEIVER_POLICY``:

- ``"accounts"`` -> ``AccountTableValidator``: every configured receiver
  account for the provider is tried; an account matches when its number
  satisfies the provider's masking rule AND its name equals the receipt's
  receiver name (case-insensitive). No configured accounts -> pass.
- ``"expected"`` -> ``ExpectedReceiverValidator``: one expected
  ``{account, name}`` per provider, compared by case-insensitive substring
  containment in either direction.
"""
from __future__ import annotations

import logging
from typing import Optional

from pydantic import BaseModel, ConfigDict
from sqlalchemy.orm import Session

from verifier import repository
from verifier.errors import FailureKind, VerificationError
from verifier.pipeline.adapters.base import Provider
from verifier.schemas import ReceiptFacts

logger = logging.getLogger(__name__)


class MaskRule(BaseModel):
    model_config = ConfigDict(frozen=True)

    prefix: int
    suffix: int
    min_length: int


# Receipts show e.g. 2519****1698 (Telebirr), 1****5017 (CBE), 1******96 (Abyssinia).
MASK_RULES: dict[Provider, MaskRule] = {
    Provider.TELEBIRR: MaskRule(prefix=4, suffix=4, min_length=8),
    Provider.CBE: MaskRule(prefix=1, suffix=4, min_length=5),
    Provider.ABYSSINIA: MaskRule(prefix=1, suffix=2, min_length=3),
}


def account_matches(provider: Provider, stored: Optional[str], received: Optional[str]) -> bool:
    """Whether the full *stored* number is the one shown (possibly masked) as *received*."""
    if not stored or not received or not stored.strip() or not received.strip():
        return False
    if stored.lower() == received.lower():
        return True
    rule = MASK_RULES.get(provider)
    if rule is None or len(stored) < rule.min_length:
        return False
    return received.startswith(stored[: rule.prefix]) and received.endswith(stored[-rule.suffix:])


def name_matches(stored: Optional[str], received: Optional[str]) -> bool:
    if not stored or not stored.strip() or received is None:
        return False
    return stored.lower() == received.lower()


class AccountTableValidator:
    """Checks receipts against the ``receiver_accounts`` table."""

    def validate(self, db: Session, provider: Provider, facts: ReceiptFacts) -> None:
        accounts = repository.list_receiver_accounts(db, provider.value)
        if not accounts:
            logger.warning(
                "No receiver accounts configured for %s. Skipping validation.", provider.value
            )
            return

        for account in accounts:
            if account_matches(provider, account.account_number, facts.receiver_account) and name_matches(
                account.account_name, facts.receiver_name
            ):
                logger.info("Receiver matched configured account #%d", account.id)
                return

        raise VerificationError(
            f"Receiver details mismatch against all configured accounts for {provider.value}",
            FailureKind.VALIDATION_FAILURE,
        )


def _contains_either_way(expected: str, actual: Optional[str]) -> bool:
    if actual is None:
        return False
    expected, actual = expected.lower(), actual.lower()
    return expected in actual or actual in expected


class ExpectedReceiverValidator:
    """Checks receipts against one configured ``{account, name}`` per provider.

    Keys of *expected* are provider tags (any case); a provider without an
    entry always passes. Only the values present in an entry are checked.
    """

    def __init__(self, expected: dict[str, dict[str, str]]):
        self.expected = {tag.upper(): entry for tag, entry in expected.items()}

    def validate(self, db: Session, provider: Provider, facts: ReceiptFacts) -> None:
        entry = self.expected.get(provider.value)
        if not entry:
            logger.info("No expected receiver configured for %s", provider.value)
            return

        account = entry.get("account")
        if account and not _contains_either_way(account, facts.receiver_account):
            raise VerificationError(
                f"Receiver account mismatch for {provider.value}", FailureKind.VALIDATION_FAILURE
            )
        name = entry.get("name")
        if name and not _contains_either_way(name, facts.receiver_name):
            raise VerificationError(
                f"Receiver name mismatch for {provider.value}", FailureKind.VALIDATION_FAILURE
            )


def build_validator(settings):
    policy = settings.RECEIVER_POLICY.strip().lower()
    if policy == "expected":
        return ExpectedReceiverValidator(settings.EXPECTED_RECEIVERS)
    if policy != "accounts":
        raise ValueError(f"Unknown RECEIVER_POLICY: {settings.RECEIVER_POLICY}")
    return AccountTableValidator()
