"""Tests for JWT helpers."""

import jwt
from datetime import datetime, timedelta

from ganttdeck.auth.jwt import (
    JWT_ALGORITHM,
    JWT_SECRET_KEY,
    create_access_token,
    decode_access_token,
    get_user_id_from_token,
)


def test_round_trip_user_id():
    token = create_access_token(17)
    assert decode_access_token(token)["sub"] == "17"
    assert get_user_id_from_token(token) == 17


def test_expired_token_rejected():
    token = jwt.encode(
        {"sub": "17", "exp": datetime.utcnow() - timedelta(minutes=1)},
        JWT_SECRET_KEY,
        algorithm=JWT_ALGORITHM,
    )
    assert decode_access_token(token) is None
    assert get_user_id_from_token(token) is None


def test_wrong_signature_and_bad_subject():
    assert get_user_id_from_token(jwt.encode({"sub": "17"}, "other-secret", algorithm=JWT_ALGORITHM)) is None
    assert get_user_id_from_token(jwt.encode({"sub": "alice"}, JWT_SECRET_KEY, algorithm=JWT_ALGORITHM)) is None
    assert get_user_id_from_token("garbage") is None
