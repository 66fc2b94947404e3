from __future__ import annotations

from itsdangerous import BadSignature, SignatureExpired, URLSafeTimedSerializer

from ..core.constants import DEFAULT_TOKEN_DAYS
from ..core.exceptions import AuthenticationError


class TokenCodec:
    """Signs and verifies the bearer credential carried in the `token` cookie.

    The payload is only the user id; everything else is reloaded from the
    identity store on every request.
    """

    SALT = "crm-backend.auth-token"

    def __init__(self, secret_key: str, *, max_age_days: int = DEFAULT_TOKEN_DAYS):
        self._serializer = URLSafeTimedSerializer(secret_key, salt=self.SALT)
        self.max_age_seconds = int(max_age_days) * 24 * 60 * 60

    def issue(self, user_id: str) -> str:
        return self._serializer.dumps({"id": user_id})

    def resolve(self, token: str) -> str:
        try:
            payload = self._serializer.loads(token, max_age=self.max_age_seconds)
        except SignatureExpired:
            raise AuthenticationError("Session expired, please log in again")
        except BadSignature:
            raise AuthenticationError("Not authorized to access this route")

        user_id = payload.get("id") if isinstance(payload, dict) else None
        if not user_id:
            raise AuthenticationError("Not authorized to access this route")
        return str(user_id)
