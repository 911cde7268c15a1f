import hashlib
import hmac

import pytest

from hotelpay.services.payment_gateway import to_minor_units, verify_signature

SECRET = "whsec_unit"
BODY = b'{"event":"payment.captured","payload":{"payment":{"entity":{"id":"pay_1"}}}}'


def _sig(body: bytes, secret: str = SECRET) -> str:
    return hmac.new(secret.encode(), body, hashlib.sha256).hexdigest()


def test_matching_signature_verifies():
    assert verify_signature(BODY, _sig(BODY), SECRET) is True


def test_text_body_is_hashed_as_utf8():
    assert verify_signature(BODY.decode(), _sig(BODY), SECRET) is True


def test_any_single_byte_change_in_body_fails():
    signature = _sig(BODY)
    for i in range(len(BODY)):
        mutated = bytearray(BODY)
        mutated[i] ^= 0x01
        assert verify_signature(bytes(mutated), signature, SECRET) is False, i


def test_any_single_character_change_in_signature_fails():
    signature = _sig(BODY)
    for i, ch in enumerate(signature):
        replacement = "0" if ch != "0" else "1"
        mutated = signature[:i] + replacement + signature[i + 1:]
        assert verify_signature(BODY, mutated, SECRET) is False, i


def test_uppercased_signature_fails():
    assert verify_signature(BODY, _sig(BODY).upper(), SECRET) is False


def test_reserialised_body_fails():
    # same JSON, different bytes
    spaced = BODY.replace(b":", b": ")
    assert verify_signature(spaced, _sig(BODY), SECRET) is False


@pytest.mark.parametrize("signature", [None, "", "not-hex", "é" * 64, 12345])
def test_malformed_signature_returns_false(signature):
    assert verify_signature(BODY, signature, SECRET) is False


def test_wrong_or_empty_secret_fails():
    assert verify_signature(BODY, _sig(BODY), "another-secret") is False
    assert verify_signature(BODY, _sig(BODY, ""), "") is False


@pytest.mark.parametrize(
    "amount, expected",
    [(1500, 150000), (500, 50000), ("12.34", 1234), ("0.015", 2), (1.1, 110)],
)
def test_to_minor_units(amount, expected):
    assert to_minor_units(amount) == expected


@pytest.mark.parametrize("amount", [0, -5, "0.004", "abc", float("nan"), "NaN", "Infinity"])
def test_to_minor_units_rejects_non_positive_or_garbage(amount):
    with pytest.raises(ValueError):
        to_minor_units(amount)
