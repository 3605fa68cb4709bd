import time

import pytest

from rahaseva_api.app.core.security import (
    InvalidTokenError,
    TokenExpiredError,
    _b64_url_encode,
    create_access_token,
    decode_access_token,
    hash_password,
    verify_password,
)

SECRET = "unit-secret"


def test_token_roundtrip_carries_claim_and_timestamps():
    token = create_access_token({"user": {"id": "u1", "role": "user"}}, expires_delta=60, secret=SECRET)
    payload = decode_access_token(token, secret=SECRET)
    assert payload["user"] == {"id": "u1", "role": "user"}
    assert payload["exp"] - payload["iat"] == 60
    assert payload["iat"] <= time.time()


def test_token_signed_with_other_key_is_invalid():
    token = create_access_token({"user": {"id": "u1"}}, secret="another-secret")
    with pytest.raises(InvalidTokenError):
        decode_access_token(token, secret=SECRET)


def test_expired_token_is_reported_as_expired():
    token = create_access_token({"user": {"id": "u1"}}, expires_delta=-5, secret=SECRET)
    with pytest.raises(TokenExpiredError):
        decode_access_token(token, secret=SECRET)


def test_expired_token_with_bad_signature_is_invalid_not_expired():
    token = create_access_token({"user": {"id": "u1"}}, expires_delta=-5, secret="another-secret")
    with pytest.raises(InvalidTokenError):
        decode_access_token(token, secret=SECRET)


def test_tampered_payload_is_invalid():
    token = create_access_token({"user": {"id": "u1", "role": "user"}}, secret=SECRET)
    header, _, signature = token.split(".")
    forged = _b64_url_encode(b'{"user":{"id":"u1","role":"admin"},"exp":9999999999}')
    with pytest.raises(InvalidTokenError):
        decode_access_token(f"{header}.{forged}.{signature}", secret=SECRET)


@pytest.mark.parametrize("raw", ["", "abc", "a.b", "a.b.c.d", "!!!.???.###"])
def test_malformed_tokens_are_invalid(raw):
    with pytest.raises(InvalidTokenError):
        decode_access_token(raw, secret=SECRET)


def test_unsupported_algorithm_is_rejected():
    token = create_access_token({"user": {"id": "u1"}}, secret=SECRET)
    _, payload, signature = token.split(".")
    header = _b64_url_encode(b'{"alg":"none","typ":"JWT"}')
    with pytest.raises(InvalidTokenError):
        decode_access_token(f"{header}.{payload}.{signature}", secret=SECRET)


def test_password_hash_verifies_and_is_salted():
    first = hash_password("password123")
    second = hash_password("password123")
    assert first != second
    assert "$" in first
    assert verify_password("password123", first)
    assert not verify_password("wrong-password", first)


@pytest.mark.parametrize("stored", ["", "nodollar", "zz$zz", None])
def test_verify_password_rejects_malformed_hashes(stored):
    assert verify_password("password123", stored) is False
