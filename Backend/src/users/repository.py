from typing import Optional

from django.db import IntegrityError, transaction

from common.exceptions import UniqueConstraintViolation

from .models import User, normalize_email


class UserRepository:
    """Acces aux utilisateurs; l'email est toujours compare sous forme normalisee."""

    def find_by_email(self, email: str) -> Optional[User]:
        return User.objects.filter(email=normalize_email(email)).first()

    def create_user(self, email: str, password: str, role: str) -> User:
        try:
            with transaction.atomic():
                return User.objects.create_user(email=email, password=password, role=role)
        except IntegrityError as exc:
            if User.objects.filter(email=normalize_email(email)).exists():
                raise UniqueConstraintViolation("user_email", "email already exists") from exc
            raise
