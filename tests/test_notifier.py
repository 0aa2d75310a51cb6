"""
Unit tests for the downstream callback notifier.
"""
import base64
import hashlib
import json
from decimal import Decimal

import httpx

from conftest import Recorder
from verifier.pipeline.notifier import SIGNATURE_HEADER, Notifier, encode_payload


def _expected_signature(text):
    return base64.b64encode(hashlib.sha256(text.encode("utf-8")).digest()).decode("ascii")


def _notify(notifier, merchant_reference_id="m-1"):
    return notifier.notify(
        sender_id="s1",
        reference="FT1234",
        bank_type="CBE",
        amount=Decimal("100.00"),
        merchant_reference_id=merchant_reference_id,
    )


class TestSignature:
    def test_signature_concatenation(self):
        notifier = Notifier(url="https://callback.test/hook", secret="s3cret")
        assert notifier.sign("FT1234", "s1", "m-1") == _expected_signature("FT1234s3crets1m-1")

    def test_missing_merchant_reference(self):
        notifier = Notifier(url="https://callback.test/hook", secret="s3cret")
        assert notifier.sign("FT1234", "s1", None) == _expected_signature("FT1234s3crets1null")

    def test_empty_merchant_reference_is_not_null(self):
        notifier = Notifier(url="https://callback.test/hook", secret="s3cret")
        assert notifier.sign("FT1234", "s1", "") == _expected_signature("FT1234s3crets1")


class TestNotify:
    def test_posts_signed_payload(self):
        recorder = Recorder(lambda request: httpx.Response(200))
        notifier = Notifier(url="https://callback.test/hook", secret="s3cret", transport=httpx.MockTransport(recorder))
        assert _notify(notifier) is True

        (request,) = recorder.requests
        assert request.method == "POST"
        assert str(request.url) == "https://callback.test/hook"
        assert request.headers[SIGNATURE_HEADER] == _expected_signature("FT1234s3crets1m-1")
        assert request.headers["content-type"] == "application/json"
        assert b'"amount": 100.00' in request.content
        assert json.loads(request.content, parse_float=Decimal) == {
            "senderId": "s1",
            "reference": "FT1234",
            "bankType": "CBE",
            "amount": Decimal("100.00"),
            "merchantReferenceId": "m-1",
        }

    def test_missing_merchant_reference_sent_empty(self):
        recorder = Recorder(lambda request: httpx.Response(204))
        notifier = Notifier(url="https://callback.test/hook", secret="s3cret", transport=httpx.MockTransport(recorder))
        assert _notify(notifier, merchant_reference_id=None) is True
        assert json.loads(recorder.requests[0].content)["merchantReferenceId"] == ""
        assert recorder.requests[0].headers[SIGNATURE_HEADER] == _expected_signature("FT1234s3crets1null")

    def test_non_2xx_is_failure(self):
        notifier = Notifier(
            url="https://callback.test/hook",
            secret="s3cret",
            transport=httpx.MockTransport(lambda request: httpx.Response(500)),
        )
        assert _notify(notifier) is False

    def test_transport_error_is_failure(self):
        def handler(request):
            raise httpx.ConnectTimeout("timed out", request=request)

        notifier = Notifier(url="https://callback.test/hook", secret="s3cret", transport=httpx.MockTransport(handler))
        assert _notify(notifier) is False

    def test_no_retry(self):
        recorder = Recorder(lambda request: httpx.Response(503))
        notifier = Notifier(url="https://callback.test/hook", secret="s3cret", transport=httpx.MockTransport(recorder))
        _notify(notifier)
        assert recorder.calls == 1

    def test_missing_amount_sent_as_zero(self):
        recorder = Recorder(lambda request: httpx.Response(200))
        notifier = Notifier(url="https://callback.test/hook", secret="s3cret", transport=httpx.MockTransport(recorder))
        notifier.notify(sender_id="s1", reference="FT1234", bank_type="CBE", amount=None, merchant_reference_id="m-1")
        assert json.loads(recorder.requests[0].content)["amount"] == 0


class TestEncodePayload:
    def test_decimal_digits_are_kept(self):
        body = encode_payload({"amount": Decimal("1234.50"), "reference": "FT1"})
        assert body == b'{"amount": 1234.50, "reference": "FT1"}'

    def test_strings_are_escaped(self):
        assert json.loads(encode_payload({"name": 'a "quoted" name'})) == {"name": 'a "quoted" name'}
