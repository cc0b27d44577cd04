"""
Tests for access-token handling.
"""

import jwt
import pytest
from fastapi import HTTPException

from auth import dependencies, security


def test_round_trip_claims():
    token = security.build_access_token(user_id="0b6f", email="a@b.c")
    payload = security.decode_access_token(token)
    assert payload["sub"] == "0b6f"
    assert payload["type"] == "access"


def test_refresh_style_token_rejected():
    token = jwt.encode({"sub": "x", "type": "refresh"}, security.jwt_secret(), algorithm="HS256")
    with pytest.raises(security.AuthSecurityError):
        security.decode_access_token(token)


def test_expired_token(monkeypatch):
    monkeypatch.setenv("ACCESS_TOKEN_EXPIRE_MIN", "-5")
    token = security.build_access_token(user_id="x")
    with pytest.raises(security.AuthSecurityError, match="expired"):
        security.decode_access_token(token)


@pytest.mark.parametrize(
    "header",
    [None, "", "Bearer", "Basic abc", "Bearer   "],
)
def test_bad_authorization_headers(header):
    with pytest.raises(HTTPException) as excinfo:
        dependencies._extract_bearer_token(header)
    assert excinfo.value.status_code == 401


@pytest.mark.asyncio
async def test_current_user_from_token():
    token = security.build_access_token(user_id="u-1", email="u@x.io", role="student")
    user = await dependencies.get_current_user(token)
    assert user == {"id": "u-1", "email": "u@x.io", "role": "student"}
