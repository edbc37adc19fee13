# eyes/core/security.py
# Session token verification
# Used by: dependencies.py
#
# Sessions are issued by the identity provider as signed JWTs; we only verify
# them. `sub` carries the provider user id, which is also the key of the
# user's record in the realtime database.

import logging
from typing import Optional

from jose import JWTError, jwt

from eyes.core.config import settings

logger = logging.getLogger("eyes.security")


def _verification_key() -> str:
    # PEM from the environment usually arrives with escaped newlines
    return settings.identity_jwt_public_key.replace("\\n", "\n")


def decode_session_token(token: str) -> Optional[dict]:
    """
    Decode and validate a provider session token.
    Returns the payload dict if valid, None if expired, malformed or unsigned by us.
    Does NOT check the database -- use dependencies.py for role resolution.
    """
    key = _verification_key()
    if not key:
        logger.error("IDENTITY_JWT_PUBLIC_KEY is not set -- rejecting all sessions")
        return None

    options = {"verify_aud": False}
    try:
        payload = jwt.decode(
            token,
            key,
            algorithms=[settings.identity_jwt_algorithm],
            issuer=settings.identity_jwt_issuer or None,
            options=options,
        )
    except JWTError as exc:
        logger.debug("Rejected session token: %s", exc)
        return None

    if not payload.get("sub"):
        return None
    return payload
