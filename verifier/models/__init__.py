from verifier.models.payment import FailedVerificationModel, VerifiedPaymentModel
from verifier.models.receiver_account import ReceiverAccountModel

__all__ = ["FailedVerificationModel", "ReceiverAccountModel", "VerifiedPaymentModel"]
