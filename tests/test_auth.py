import pytest

from itsdangerous import URLSafeTimedSerializer
from lendit.core import auth


@pytest.fixture(autouse=True)
def seeded():
    auth.SERIALIZER = URLSafeTimedSerializer(b"123", salt="patron-token")
    yield
    auth.SERIALIZER = None


def test_token_round_trips_patron_id():
    token = auth.create_patron_token("patron-42")
    assert auth.verify_patron_token(token) == "patron-42"


def test_tampered_token_is_rejected():
    token = auth.create_patron_token("patron-42")
    assert auth.verify_patron_token(token[:-2] + "xx") is None


def test_token_from_other_seed_is_rejected():
    token = URLSafeTimedSerializer(b"other", salt="patron-token").dumps({"patron_id": "p"})
    assert auth.verify_patron_token(token) is None


def test_expired_token_is_rejected():
    token = auth.create_patron_token("patron-42")
    assert auth.verify_patron_token(token, max_age=-1) is None


def test_empty_token():
    assert auth.verify_patron_token("") is None
    assert auth.verify_patron_token(None) is None
