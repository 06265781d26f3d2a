import re
import time

import pytest
from fastapi import HTTPException
from jose import jwt
from starlette.requests import Request

from utils.auth_utils import get_current_user, get_user_identifier
from utils.identifiers import (
    generate_batch_number,
    generate_expense_number,
    generate_income_number,
    sequential_batch_number,
)

SECRET = "test-jwt-secret"


def _request(authorization=None):
    headers = []
    if authorization is not None:
        headers.append((b"authorization", authorization.encode()))
    return Request({"type": "http", "method": "GET", "path": "/", "headers": headers})


def _token(**claims):
    payload = {"sub": "user-1", "email": "cook@himalayanflavours.test", "aud": "authenticated",
               "exp": int(time.time()) + 600}
    payload.update(claims)
    return jwt.encode(payload, SECRET, algorithm="HS256")


def test_valid_token_returns_claims():
    claims = get_current_user(_request(f"Bearer {_token()}"))

    assert claims["sub"] == "user-1"
    assert get_user_identifier(claims) == "cook@himalayanflavours.test"


@pytest.mark.parametrize("authorization", [None, "Token abc", "Bearer"])
def test_missing_or_malformed_header(authorization):
    with pytest.raises(HTTPException) as exc_info:
        get_current_user(_request(authorization))
    assert exc_info.value.status_code == 401


def test_expired_token():
    with pytest.raises(HTTPException) as exc_info:
        get_current_user(_request(f"Bearer {_token(exp=int(time.time()) - 10)}"))
    assert exc_info.value.detail == "Token has expired"


def test_wrong_audience_or_secret():
    with pytest.raises(HTTPException):
        get_current_user(_request(f"Bearer {_token(aud='anon')}"))
    forged = jwt.encode({"sub": "x", "aud": "authenticated"}, "other-secret", algorithm="HS256")
    with pytest.raises(HTTPException):
        get_current_user(_request(f"Bearer {forged}"))


def test_user_identifier_falls_back_to_subject():
    assert get_user_identifier({"sub": "user-2"}) == "user-2"
    assert get_user_identifier(None) is None


def test_document_number_formats():
    assert re.fullmatch(r"BATCH-\d{13}-[0-9A-Z]{4}", generate_batch_number())
    assert re.fullmatch(r"EXP-\d{13}-[0-9A-Z]{6}", generate_expense_number())
    assert re.fullmatch(r"INC-\d{13}-[0-9A-Z]{6}", generate_income_number())
    assert generate_expense_number() != generate_expense_number()


def test_sequential_batch_number_pads_to_three_digits():
    assert sequential_batch_number("pkl", 7) == "PKL-007"
    assert sequential_batch_number("PKL", 1234) == "PKL-1234"
