# src/auth/auth_service.py

import logging
from datetime import datetime, timedelta, timezone
from typing import Optional, Tuple

import jwt
from passlib.context import CryptContext
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select

from src.common.config import settings
from src.common.database.database import commit_or_raise
from src.common.errors import AuthFailure, ValidationError
from src.common.realtime import change_feed
from src.common.utils.global_messages import GlobalMessages
from src.models.models import Patient, UserRole

logger = logging.getLogger(__name__)

# Initialize the password context (bcrypt)
pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verify that the provided password matches the hashed password."""
    return pwd_context.verify(plain_password, hashed_password)


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def create_access_token(data: dict, expires_delta: timedelta = None) -> str:
    """Create a JWT token including an expiration date."""
    to_encode = data.copy()
    expire = datetime.now(timezone.utc) + (expires_delta if expires_delta else timedelta(minutes=15))
    to_encode.update({"exp": expire})
    encoded_jwt = jwt.encode(to_encode, settings.JWT_SECRET, algorithm=settings.JWT_ALGORITHM)
    return encoded_jwt


def issue_token_for(user: Patient) -> str:
    return create_access_token(
        data={"sub": str(user.id)},
        expires_delta=timedelta(minutes=settings.JWT_EXPIRATION_MINUTES),
    )


def compose_name(first_name: str, middle_name: Optional[str], last_name: str) -> str:
    """Display name as shown across the app: first, middle and last name."""
    parts = [first_name, middle_name, last_name]
    return " ".join(part.strip() for part in parts if part and part.strip())


async def create_account(
    db: AsyncSession,
    email: str,
    password: str,
    first_name: str,
    last_name: str,
    role: UserRole,
    middle_name: Optional[str] = None,
) -> Patient:
    """Create a new account row. The caller decides which role is allowed."""
    email = email.strip().lower()
    result = await db.execute(select(Patient).where(Patient.email == email))
    if result.scalars().first():
        raise ValidationError(GlobalMessages.ACCOUNT_ALREADY_EXISTS, field="email")

    new_user = Patient(
        email=email,
        password_hash=hash_password(password),
        first_name=first_name.strip(),
        middle_name=middle_name.strip() if middle_name else None,
        last_name=last_name.strip(),
        name=compose_name(first_name, middle_name, last_name),
        role=role,
    )
    db.add(new_user)
    await commit_or_raise(db)
    change_feed.publish("patients")
    logger.info("Created %s account %s", role.value, new_user.id)
    return new_user


async def signup_user(
    db: AsyncSession,
    email: str,
    password: str,
    first_name: str,
    last_name: str,
    middle_name: Optional[str] = None,
) -> Tuple[Patient, str]:
    """Self-registration. Always creates a patient account."""
    user = await create_account(
        db,
        email=email,
        password=password,
        first_name=first_name,
        last_name=last_name,
        middle_name=middle_name,
        role=UserRole.PATIENT,
    )
    return user, issue_token_for(user)


async def authenticate_user(email: str, password: str, db: AsyncSession) -> Patient:
    """Attempt to retrieve the user by email and verify the password."""
    result = await db.execute(select(Patient).where(Patient.email == email.strip().lower()))
    user = result.scalars().first()

    if not user or not verify_password(password, user.password_hash):
        raise AuthFailure(GlobalMessages.INVALID_CREDENTIALS)
    return user


async def login_user(email: str, password: str, db: AsyncSession) -> Tuple[Patient, str]:
    """Authenticate a user and return user with JWT access token."""
    user = await authenticate_user(email, password, db)
    return user, issue_token_for(user)


def reauthenticate(actor: Patient, password: Optional[str]) -> None:
    """
    Confirm the signed-in actor's password right before a destructive action.

    Independent of the bearer token: a stolen session alone cannot pass it.
    """
    if not password or not verify_password(password, actor.password_hash):
        logger.warning("Password confirmation failed for %s", actor.id)
        raise AuthFailure(GlobalMessages.REAUTHENTICATION_FAILED)
