"""
Service d'authentification: inscription, login, emission de token.
Les vues ne font que deserialiser l'entree et appeler ces methodes.
"""
from __future__ import annotations

import logging
from typing import Any, Dict, Optional

from django.contrib.auth.hashers import check_password, make_password
from rest_framework_simplejwt.tokens import AccessToken

from common.exceptions import BadRequest, Conflict, Unauthorized, UniqueConstraintViolation

from .models import User, normalize_email
from .repository import UserRepository

logger = logging.getLogger(__name__)

# Hash factice pour garder un temps de reponse comparable quand l'email est inconnu
_DUMMY_HASH = None


def _dummy_hash() -> str:
    global _DUMMY_HASH
    if _DUMMY_HASH is None:
        _DUMMY_HASH = make_password("not-a-real-password")
    return _DUMMY_HASH


def public_user(user: User) -> Dict[str, Any]:
    return {"id": str(user.id), "email": user.email, "role": user.role}


def issue_token(user: User) -> str:
    """Access token signe: claims sub, email, role, iat, exp."""
    token = AccessToken.for_user(user)
    token["email"] = user.email
    token["role"] = user.role
    return str(token)


class AuthService:
    def __init__(self, users: Optional[UserRepository] = None) -> None:
        self.users = users or UserRepository()

    def register(self, email: str, password: str, role: Optional[str] = None) -> User:
        email = normalize_email(email)
        if not email or not password:
            raise BadRequest("email and password are required")

        role = role or User.Role.AUDITOR
        if role not in User.Role.values:
            raise BadRequest(f"role must be one of: {', '.join(User.Role.values)}")

        if self.users.find_by_email(email) is not None:
            raise Conflict("email already exists")
        try:
            user = self.users.create_user(email=email, password=password, role=role)
        except UniqueConstraintViolation:
            # inscription concurrente du meme email
            raise Conflict("email already exists")

        logger.info(f"[auth] utilisateur cree id={user.id} role={user.role}")
        return user

    def login(self, email: str, password: str) -> Dict[str, Any]:
        if not email or not password:
            raise BadRequest("email and password are required")

        user = self.users.find_by_email(email)
        if user is None:
            check_password(password, _dummy_hash())
            raise Unauthorized("invalid credentials")
        if not user.is_active or not user.check_password(password):
            raise Unauthorized("invalid credentials")

        return {"token": issue_token(user), "user": public_user(user)}
