"""Tests for webhook signature verification."""

import base64

import pytest

from app.core.signature import compute_signature, verify_signature
from conftest import sign


SECRET = "my-webhook-secret"
BODY = b'{"id": 123, "total_price": "49.99"}'


def test_valid_signature_accepted():
    assert verify_signature(BODY, sign(BODY, SECRET), SECRET) is True


def test_compute_matches_reference_hmac():
    assert compute_signature(BODY, SECRET) == sign(BODY, SECRET)


def test_deterministic():
    assert compute_signature(BODY, SECRET) == compute_signature(BODY, SECRET)


def test_wrong_secret_rejected():
    assert verify_signature(BODY, sign(BODY, "correct-secret"), "wrong-secret") is False


def test_tampered_body_rejected():
    sig = sign(BODY, SECRET)
    assert verify_signature(b'{"id": 999, "total_price": "49.99"}', sig, SECRET) is False


def test_case_insensitive_match():
    sig = sign(BODY, SECRET)
    assert verify_signature(BODY, sig.lower(), SECRET) is True
    assert verify_signature(BODY, sig.upper(), SECRET) is True


def test_surrounding_whitespace_tolerated():
    assert verify_signature(BODY, f"  {sign(BODY, SECRET)} ", SECRET) is True


def test_empty_body_can_be_signed():
    assert verify_signature(b"", sign(b"", SECRET), SECRET) is True


def test_empty_signature_rejected():
    assert verify_signature(BODY, "", SECRET) is False


def test_empty_secret_rejected():
    # Even a "correct" signature under an empty key is refused
    assert verify_signature(BODY, sign(BODY, ""), "") is False


def test_non_ascii_signature_rejected_without_raising():
    assert verify_signature(BODY, "sïgnätürë", SECRET) is False


def test_none_signature_rejected_without_raising():
    assert verify_signature(BODY, None, SECRET) is False


@pytest.mark.parametrize("bit", range(8))
def test_single_bit_payload_mutation_rejected(bit):
    sig = sign(BODY, SECRET)
    for i in range(len(BODY)):
        mutated = bytearray(BODY)
        mutated[i] ^= 1 << bit
        assert verify_signature(bytes(mutated), sig, SECRET) is False


def test_single_bit_signature_mutation_rejected():
    digest = base64.b64decode(sign(BODY, SECRET))
    for i in range(len(digest)):
        for bit in range(8):
            mutated = bytearray(digest)
            mutated[i] ^= 1 << bit
            bad_sig = base64.b64encode(bytes(mutated)).decode()
            assert verify_signature(BODY, bad_sig, SECRET) is False
