import logging
from typing import Optional
from itsdangerous import URLSafeTimedSerializer, BadSignature
from lendit.configs import SEED, TOKEN_TTL

logger = logging.getLogger(__name__)

SERIALIZER = None  # Will be initialized lazily


def _get_serializer():
    """Get or initialize the SERIALIZER lazily."""
    global SERIALIZER
    if SERIALIZER is None:
        SERIALIZER = URLSafeTimedSerializer(SEED, salt="patron-token")
    return SERIALIZER


def create_patron_token(patron_id: str) -> str:
    """Returns a signed capability token naming the patron."""
    return _get_serializer().dumps({"patron_id": patron_id})


def verify_patron_token(token: str, max_age: int = TOKEN_TTL) -> Optional[str]:
    """Returns the patron id carried by a valid token, else None."""
    if not token:
        return None
    try:
        data = _get_serializer().loads(token, max_age=max_age)
    except BadSignature:
        # SignatureExpired is a BadSignature too
        logger.info("Rejected patron token with bad or expired signature")
        return None
    if isinstance(data, dict):
        return data.get("patron_id")
    return None
