import time

import pytest
from jose import jwt

from controller.errors import OperatorAuthError
from controller.services.operator_auth import ANONYMOUS_OPERATOR, OperatorAuth, bearer_token


@pytest.fixture
def hs256_env(monkeypatch):
    monkeypatch.setenv("JWT_ALGORITHM", "HS256")
    monkeypatch.setenv("JWT_SECRET", "test-secret")


@pytest.fixture
def no_keys(monkeypatch):
    for name in ("JWT_ALGORITHM", "JWT_SECRET", "SECRET_KEY", "JWT_CERTIFICATE"):
        monkeypatch.delenv(name, raising=False)


def test_operator_id_is_token_subject(hs256_env):
    token = jwt.encode({"sub": "operator-1"}, "test-secret", algorithm="HS256")

    assert OperatorAuth().operator_for(token) == "operator-1"


def test_token_without_subject_is_rejected(hs256_env):
    token = jwt.encode({"role": "operator"}, "test-secret", algorithm="HS256")

    with pytest.raises(OperatorAuthError) as excinfo:
        OperatorAuth().operator_for(token)
    assert excinfo.value.close_code == 4003


@pytest.mark.parametrize(
    "token,close_code",
    [
        (None, 4001),
        (jwt.encode({"sub": "operator-1", "exp": int(time.time()) - 60}, "test-secret", algorithm="HS256"), 4001),
        (jwt.encode({"sub": "operator-1"}, "other-secret", algorithm="HS256"), 4003),
        ("not-a-jwt", 4003),
    ],
)
def test_rejections_carry_close_codes(hs256_env, token, close_code):
    with pytest.raises(OperatorAuthError) as excinfo:
        OperatorAuth().operator_for(token)
    assert excinfo.value.close_code == close_code


def test_secret_key_is_accepted_as_fallback(monkeypatch, no_keys):
    monkeypatch.setenv("SECRET_KEY", "fallback")
    token = jwt.encode({"sub": "display"}, "fallback", algorithm="HS256")

    auth = OperatorAuth()

    assert auth.enabled
    assert auth.operator_for(token) == "display"


def test_without_a_key_every_caller_is_admitted(no_keys):
    auth = OperatorAuth()

    assert not auth.enabled
    assert auth.operator_for(None) == ANONYMOUS_OPERATOR
    assert auth.operator_for("garbage") == ANONYMOUS_OPERATOR


def test_asymmetric_algorithm_without_certificate_is_open(monkeypatch, no_keys):
    monkeypatch.setenv("JWT_ALGORITHM", "RS256")
    monkeypatch.setenv("JWT_SECRET", "ignored-for-rs256")

    assert not OperatorAuth().enabled


@pytest.mark.parametrize(
    "header,expected",
    [("Bearer abc.def", "abc.def"), ("bearer  xyz ", "xyz"), ("Basic abc", None), (None, None), ("Bearer ", None)],
)
def test_bearer_token_extraction(header, expected):
    assert bearer_token(header) == expected
