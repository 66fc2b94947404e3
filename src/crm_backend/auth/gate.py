from __future__ import annotations

import logging
from typing import Iterable, Optional

from ..core.enums import Role
from ..core.exceptions import AuthenticationError
from ..users.model import User
from ..users.repository import UserRepository
from .policy import Action, Resource, allowed_roles, ensure_role
from .tokens import TokenCodec

logger = logging.getLogger(__name__)


class AccessGate:
    """Resolve a bearer credential to a live user and enforce the role table.

    Pure gate: it never mutates sessions or records.
    """

    def __init__(self, users: UserRepository, tokens: TokenCodec):
        self._users = users
        self._tokens = tokens

    def authenticate(self, credential: Optional[str]) -> User:
        if not credential:
            raise AuthenticationError("Not authorized to access this route")

        user_id = self._tokens.resolve(credential)
        user = self._users.get_by_id(user_id)
        if not user:
            # Token outlived its user.
            logger.info("Rejected token for missing user %s", user_id)
            raise AuthenticationError("Not authorized to access this route")
        return user

    @staticmethod
    def authorize(user: User, roles: Iterable[Role]) -> None:
        ensure_role(user.role, roles)

    def authorize_operation(self, user: User, resource: Resource, action: Action) -> None:
        self.authorize(user, allowed_roles(resource, action))
