from datetime import timedelta

import pytest

from flight_booking.domain.exceptions import UnauthorizedError
from flight_booking.infrastructure.security import TokenService, hash_password, verify_password


def test_password_hash_round_trip():
    hashed = hash_password("correct horse")

    assert hashed != "correct horse"
    assert verify_password("correct horse", hashed)
    assert not verify_password("wrong horse", hashed)


def test_token_carries_user_id():
    tokens = TokenService(secret="unit-secret")

    assert tokens.verify(tokens.issue(42)) == 42


def test_expired_token_is_rejected():
    tokens = TokenService(secret="unit-secret")
    token = tokens.issue(42, expires_delta=timedelta(seconds=-5))

    with pytest.raises(UnauthorizedError, match="expired"):
        tokens.verify(token)


def test_token_signed_with_other_secret_is_rejected():
    token = TokenService(secret="someone-else").issue(42)

    with pytest.raises(UnauthorizedError):
        TokenService(secret="unit-secret").verify(token)


def test_garbage_token_is_rejected():
    with pytest.raises(UnauthorizedError):
        TokenService(secret="unit-secret").verify("not.a.token")
