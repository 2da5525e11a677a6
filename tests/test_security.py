from datetime import datetime, timedelta, timezone

import pytest

from coffeeshop.core.exceptions import AuthenticationError
from coffeeshop.core.security import (
    as_utc,
    create_access_token,
    decode_access_token,
    generate_otp,
    hash_password,
    otp_expiry,
    verify_password,
)


def test_password_hash_verifies():
    hashed = hash_password("hunter2")
    assert hashed.startswith("pbkdf2_sha256$")
    assert verify_password("hunter2", hashed)
    assert not verify_password("hunter3", hashed)


def test_same_password_gets_different_salts():
    assert hash_password("hunter2") != hash_password("hunter2")


def test_malformed_hash_does_not_verify():
    assert not verify_password("hunter2", "plaintext")
    assert not verify_password("hunter2", "md5$1$salt$abc")


def test_token_carries_user_id():
    assert decode_access_token(create_access_token(42)) == 42


def test_expired_token_is_rejected():
    token = create_access_token(42, now=datetime.now(timezone.utc) - timedelta(hours=25))
    with pytest.raises(AuthenticationError, match="expired"):
        decode_access_token(token)


def test_tampered_token_is_rejected():
    token = create_access_token(42)
    with pytest.raises(AuthenticationError, match="Invalid token"):
        decode_access_token(token[:-2] + ("aa" if not token.endswith("aa") else "bb"))


def test_otp_is_six_digits():
    for _ in range(50):
        otp = generate_otp()
        assert len(otp) == 6
        assert 100000 <= int(otp) <= 999999


def test_otp_expires_after_five_minutes():
    now = datetime(2024, 1, 1, 12, 0, tzinfo=timezone.utc)
    assert otp_expiry(now) == now + timedelta(minutes=5)


def test_as_utc_handles_naive_values():
    naive = datetime(2024, 1, 1, 12, 0)
    assert as_utc(naive).tzinfo is timezone.utc
    aware = datetime(2024, 1, 1, 12, 0, tzinfo=timezone.utc)
    assert as_utc(aware) is aware
