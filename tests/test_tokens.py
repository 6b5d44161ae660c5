from datetime import datetime, timedelta, timezone

import pytest

from errors import Expired, InvalidSignature
from models import User
from tokens import DEFAULT_TTL, issue_token, validate_token

SECRET = "5TEdWbDmxZ2ASXcMinBYwGi66vHiU9rq"
NOW = datetime(2024, 5, 1, 9, 0, tzinfo=timezone.utc)
USER = User(id=42, username="validate", email="validate@example.com", password_hash="x")


def test_issue_then_validate():
    token = issue_token(USER, SECRET, now=NOW)
    claims = validate_token(token, SECRET, now=NOW)
    assert claims.user_id == 42
    assert claims.username == "validate"
    assert claims.expires == NOW + DEFAULT_TTL


def test_wrong_secret():
    token = issue_token(USER, SECRET, now=NOW)
    with pytest.raises(InvalidSignature):
        validate_token(token, "another-secret", now=NOW)


def _flip(token, i):
    c = token[i]
    repl = "A" if c != "A" else "B"
    return token[:i] + repl + token[i + 1:]


def test_any_altered_byte_is_rejected():
    token = issue_token(USER, SECRET, now=NOW)
    for i in range(len(token)):
        if token[i] == ".":
            continue
        with pytest.raises(InvalidSignature):
            validate_token(_flip(token, i), SECRET, now=NOW)


def test_tampered_payload_with_valid_expiry_is_rejected():
    header, _, sig = issue_token(USER, SECRET, now=NOW).split(".")
    other = issue_token(User(id=1, username="admin", email="", password_hash=""), "attacker", now=NOW)
    forged = ".".join([header, other.split(".")[1], sig])
    with pytest.raises(InvalidSignature):
        validate_token(forged, SECRET, now=NOW)


def test_expiry():
    token = issue_token(USER, SECRET, ttl=timedelta(minutes=30), now=NOW)
    validate_token(token, SECRET, now=NOW + timedelta(minutes=29))
    with pytest.raises(Expired):
        validate_token(token, SECRET, now=NOW + timedelta(minutes=30))


def test_expired_and_tampered_reports_signature():
    token = issue_token(USER, SECRET, ttl=timedelta(minutes=1), now=NOW)
    with pytest.raises(InvalidSignature):
        validate_token(token, "wrong", now=NOW + timedelta(days=1))


@pytest.mark.parametrize("token", ["", "abc", "a.b", "a.b.c.d", "!!.??.**"])
def test_garbage(token):
    with pytest.raises(InvalidSignature):
        validate_token(token, SECRET, now=NOW)
