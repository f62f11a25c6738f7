"""
Account service: login, registration and access tokens.
"""
import logging
from typing import Optional, Tuple

from django.conf import settings
from django.contrib.auth import get_user_model
from django.contrib.auth.password_validation import validate_password
from django.core.exceptions import ValidationError as DjangoValidationError
from django.db import IntegrityError, transaction
from rest_framework_simplejwt.tokens import AccessToken

from apps.core.exceptions import ConflictError, UnauthorizedError, ValidationError

logger = logging.getLogger(__name__)

User = get_user_model()


def normalize_email(email: str) -> str:
    return (email or '').strip().lower()


class AuthService:
    """
    Issues signed access tokens for email/password pairs.

    Tokens carry ``{id, email}`` and an expiry; nothing is stored server side.
    """

    @staticmethod
    def issue_token(user) -> str:
        token = AccessToken.for_user(user)
        token['email'] = user.email
        return str(token)

    @staticmethod
    def serialize_user(user) -> dict:
        return {'id': str(user.pk), 'email': user.email}

    @classmethod
    def _session(cls, user) -> dict:
        return {'token': cls.issue_token(user), 'user': cls.serialize_user(user)}

    @staticmethod
    def bootstrap_admin() -> Tuple[Optional['User'], bool]:
        """
        Create the administrator from ADMIN_EMAIL / ADMIN_PASSWORD if missing.

        Returns ``(user, created)``; ``(None, False)`` when no seed is configured.
        """
        email = normalize_email(settings.ADMIN_EMAIL)
        if not email or not settings.ADMIN_PASSWORD:
            return None, False

        existing = User.objects.filter(email=email).first()
        if existing:
            return existing, False

        try:
            with transaction.atomic():
                user = User.objects.create_superuser(
                    username=email,
                    email=email,
                    password=settings.ADMIN_PASSWORD,
                )
        except IntegrityError:
            # Created by a concurrent request
            return User.objects.get(email=email), False

        logger.info(f"Administrator account created for {email}")
        return user, True

    @classmethod
    def login(cls, email: str, password: str) -> dict:
        email = normalize_email(email)
        user = User.objects.filter(email=email).first()

        if user is None and settings.ADMIN_BOOTSTRAP_ON_LOGIN and email == normalize_email(settings.ADMIN_EMAIL):
            user, _ = cls.bootstrap_admin()

        if user is None or not user.is_active or not user.check_password(password):
            logger.warning(f"Failed login for {email}")
            raise UnauthorizedError('Invalid credentials')

        return cls._session(user)

    @classmethod
    def register(cls, email: str, password: str) -> dict:
        email = normalize_email(email)
        if User.objects.filter(email=email).exists():
            raise ConflictError('User already exists')

        try:
            validate_password(password, user=User(email=email, username=email))
        except DjangoValidationError as exc:
            raise ValidationError(' '.join(exc.messages))

        try:
            with transaction.atomic():
                user = User.objects.create_user(username=email, email=email, password=password)
        except IntegrityError:
            raise ConflictError('User already exists')

        logger.info(f"Registered user {email}")
        return cls._session(user)
