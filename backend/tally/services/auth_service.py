# Overview: Service-layer operations for auth; registration, password hashing and login.

"""
Authentication Service

Passwords are hashed with bcrypt. Each registered user is its own tenant:
everything they create is scoped to their user id.

SECURITY NOTES:
- Passwords hashed with bcrypt (cost factor 12)
- Minimum 8 characters, at least one letter and one digit
- Session tokens managed separately (see session_service.py)
"""

import re

import bcrypt
from flask import current_app

from ..extensions import db
from ..models import User
from tally.time_utils import utcnow


EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


class PasswordValidationError(Exception):
    """Raised when password doesn't meet strength requirements."""
    pass


class RegistrationError(ValueError):
    """Raised when an account cannot be created (bad email, duplicate email)."""


def validate_password_strength(password: str) -> None:
    if len(password) < 8:
        raise PasswordValidationError("Password must be at least 8 characters long")

    if not re.search(r'[A-Za-z]', password):
        raise PasswordValidationError("Password must contain at least one letter")

    if not re.search(r'\d', password):
        raise PasswordValidationError("Password must contain at least one digit")


def _bcrypt_rounds() -> int:
    # Tests lower the cost factor through config
    return current_app.config.get("BCRYPT_ROUNDS", 12)


def hash_password(password: str) -> str:
    """Validate strength, then hash with bcrypt."""
    validate_password_strength(password)
    salt = bcrypt.gensalt(rounds=_bcrypt_rounds())
    hashed = bcrypt.hashpw(password.encode('utf-8'), salt)
    return hashed.decode('utf-8')


def verify_password(password: str, password_hash: str) -> bool:
    try:
        return bcrypt.checkpw(password.encode('utf-8'), password_hash.encode('utf-8'))
    except ValueError:
        # Malformed stored hash
        return False


def normalize_email(email: str) -> str:
    return (email or "").strip().lower()


def create_user(email: str, password: str, name: str | None = None) -> User:
    """
    Register a new account.

    Raises RegistrationError for a malformed or already-registered email and
    PasswordValidationError for a weak password.
    """
    email = normalize_email(email)
    if not EMAIL_RE.match(email):
        raise RegistrationError("A valid email is required")

    existing = db.session.query(User).filter_by(email=email).first()
    if existing:
        raise RegistrationError("An account with this email already exists")

    user = User(
        email=email,
        name=(name or "").strip() or None,
        password_hash=hash_password(password),
    )

    db.session.add(user)
    db.session.commit()
    current_app.logger.info("Registered user id=%s", user.id)
    return user


def authenticate(email: str, password: str) -> User | None:
    """
    Returns the active User whose credentials match, else None.
    Updates last_login_at on success.
    """
    user = db.session.query(User).filter(
        User.email == normalize_email(email),
        User.is_active.is_(True),
    ).first()

    if not user:
        return None

    if verify_password(password, user.password_hash):
        user.last_login_at = utcnow()
        db.session.commit()
        return user

    return None
