import base64
import logging
import os
from binascii import Error as BinasciiError
from typing import Optional

from jose import JWTError, jwt
from jose.exceptions import ExpiredSignatureError

from controller.errors import OperatorAuthError


logger = logging.getLogger(__name__)

ANONYMOUS_OPERATOR = "anonymous"


def bearer_token(auth_header: Optional[str]) -> Optional[str]:
    if auth_header and auth_header.lower().startswith("bearer "):
        return auth_header.split(" ", 1)[1].strip() or None
    return None


def _pem_from_env(raw_value: Optional[str]) -> Optional[str]:
    """JWT_CERTIFICATE may hold the PEM text itself or its base64 encoding."""
    if not raw_value or ("BEGIN" in raw_value and "END" in raw_value):
        return raw_value
    try:
        return base64.b64decode(raw_value).decode("utf-8")
    except (BinasciiError, UnicodeDecodeError):
        return raw_value


class OperatorAuth:
    """
    Optional bearer-token gate in front of the operator surface.

    The gate is active only when a verification key is configured:
    JWT_SECRET (or SECRET_KEY) for HS* algorithms, JWT_CERTIFICATE for the
    asymmetric ones. With no key every caller is admitted as the anonymous
    operator, so stop and mode changes stay reachable on an unconfigured
    controller.
    """

    def __init__(self, algorithm: Optional[str] = None, key: Optional[str] = None):
        self.algorithm = algorithm or os.getenv("JWT_ALGORITHM", "HS256")
        if key is None:
            if self.algorithm.upper().startswith("HS"):
                key = os.getenv("JWT_SECRET") or os.getenv("SECRET_KEY")
            else:
                key = _pem_from_env(os.getenv("JWT_CERTIFICATE"))
        self.key = key or None
        if not self.enabled:
            logger.warning("No %s verification key configured; operator surface is open", self.algorithm)

    @property
    def enabled(self) -> bool:
        return self.key is not None

    def operator_for(self, token: Optional[str]) -> str:
        """Return the operator id for `token` or raise OperatorAuthError."""
        if not self.enabled:
            return ANONYMOUS_OPERATOR
        if not token:
            raise OperatorAuthError("missing token", close_code=4001)
        try:
            claims = jwt.decode(token, self.key, algorithms=[self.algorithm])
        except ExpiredSignatureError:
            raise OperatorAuthError("token expired", close_code=4001)
        except JWTError:
            raise OperatorAuthError("invalid token")
        subject = claims.get("sub")
        if not subject:
            raise OperatorAuthError("token has no subject")
        return subject
