import logging
import uuid
from datetime import datetime, timedelta, timezone as dt_timezone

import jwt
from django.conf import settings
from django.contrib.auth.hashers import make_password, check_password
from django.core.exceptions import ValidationError
from django.core.validators import validate_email
from django.db import transaction
from django.utils import timezone

from ..models import User, Session
from .role_service import RoleService


logger = logging.getLogger(__name__)


class AuthService:
    JWT_SECRET = getattr(settings, 'JWT_SECRET_KEY', settings.SECRET_KEY)
    JWT_ALGORITHM = getattr(settings, 'JWT_ALGORITHM', 'HS256')
    JWT_EXPIRY_DAYS = getattr(settings, 'JWT_EXPIRY_DAYS', 30)

    # JWT headers are identical for every token, so sessions key on the signature tail
    SESSION_KEY_LENGTH = 20

    @classmethod
    @transaction.atomic
    def register(cls, first_name, last_name, email, password, role=User.RoleChoices.ASSEMBLER):
        try:
            validate_email(email)
        except ValidationError as e:
            return {'success': False, 'user': None, 'message': f'Invalid email: {" ".join(e.messages)}'}

        if not first_name:
            return {'success': False, 'user': None, 'message': 'First name is required'}

        if not RoleService.is_valid_role(role):
            return {'success': False, 'user': None, 'message': f'Unknown role: {role}'}

        if User.objects.filter(email=email).exists():
            return {'success': False, 'user': None, 'message': 'Email already registered'}

        if len(password or '') < 4:
            return {'success': False, 'user': None, 'message': 'Password must be at least 4 characters'}

        user = User.objects.create(
            first_name=first_name,
            last_name=last_name or '',
            email=email,
            password=make_password(password),
            role=role.upper(),
            status=User.UserStatus.ACTIVE
        )
        logger.info("Registered user %s with role %s", user.email, user.role)

        return {'success': True, 'user': user, 'message': 'User registered successfully'}

    @classmethod
    @transaction.atomic
    def login(cls, email, password, ip_address, user_agent=''):
        try:
            user = User.objects.only(
                'id', 'email', 'password', 'status', 'role', 'first_name', 'last_name'
            ).get(email=email)
        except User.DoesNotExist:
            return {'success': False, 'token': None, 'user': None, 'message': 'Invalid credentials'}

        if user.status == User.UserStatus.SUSPENDED:
            return {'success': False, 'token': None, 'user': None, 'message': 'Account suspended'}

        if not check_password(password, user.password):
            logger.warning("Failed login for %s from %s", email, ip_address)
            return {'success': False, 'token': None, 'user': None, 'message': 'Invalid credentials'}

        token = cls._generate_token(user)

        Session.objects.create(
            user=user,
            ip_address=ip_address or '',
            user_agent=(user_agent or '')[:255],
            payload=cls._session_key(token)
        )

        User.objects.filter(id=user.id).update(
            last_login_at=timezone.now(),
            last_login_api=ip_address
        )

        return {'success': True, 'token': token, 'user': user, 'message': 'Login successful'}

    @classmethod
    def logout(cls, token):
        user = cls._verify_token(token)
        if not user:
            return {'success': False, 'message': 'Invalid token'}

        Session.objects.filter(user=user, payload=cls._session_key(token)).delete()
        return {'success': True, 'message': 'Logged out successfully'}

    @classmethod
    def get_user_from_token(cls, token):
        return cls._verify_token(token)

    @classmethod
    def _session_key(cls, token):
        return token[-cls.SESSION_KEY_LENGTH:]

    @classmethod
    def _generate_token(cls, user):
        now = datetime.now(dt_timezone.utc)
        payload = {
            'user_id': user.id,
            'email': user.email,
            'role': user.role,
            'exp': now + timedelta(days=cls.JWT_EXPIRY_DAYS),
            'iat': now,
            'jti': uuid.uuid4().hex,
        }
        return jwt.encode(payload, cls.JWT_SECRET, algorithm=cls.JWT_ALGORITHM)

    @classmethod
    def _verify_token(cls, token):
        if not token:
            return None

        try:
            payload = jwt.decode(token, cls.JWT_SECRET, algorithms=[cls.JWT_ALGORITHM])
            user = User.objects.only(
                'id', 'email', 'role', 'status', 'first_name', 'last_name'
            ).get(id=payload['user_id'])
        except (jwt.InvalidTokenError, KeyError, User.DoesNotExist):
            return None

        if user.status != User.UserStatus.ACTIVE:
            return None

        if not Session.objects.filter(user=user, payload=cls._session_key(token)).exists():
            return None

        return user
