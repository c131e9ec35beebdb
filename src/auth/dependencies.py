# src/auth/dependencies.py

from uuid import UUID

import jwt
from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jwt.exceptions import DecodeError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select

from src.common.config import settings
from src.common.database.database import get_db_session
from src.common.errors import AuthFailure
from src.common.utils.global_messages import GlobalMessages
from src.models.models import Patient

bearer_scheme = HTTPBearer()


def decode_access_token(token: str) -> UUID:
    """Return the actor id carried by a token, or raise AuthFailure."""
    credentials_exception = AuthFailure(GlobalMessages.COULD_NOT_VALIDATE)
    try:
        payload = jwt.decode(token, settings.JWT_SECRET, algorithms=[settings.JWT_ALGORITHM])
        user_id = payload.get("sub")
        if user_id is None:
            raise credentials_exception
        return UUID(user_id)
    except DecodeError:
        raise credentials_exception
    except jwt.ExpiredSignatureError:
        raise credentials_exception
    except jwt.InvalidTokenError:
        raise credentials_exception
    except ValueError as e:
        raise credentials_exception from e


async def load_user_from_token(token: str, db: AsyncSession) -> Patient:
    """Reload the actor on every call so role changes apply on the next request."""
    user_id = decode_access_token(token)
    result = await db.execute(select(Patient).where(Patient.id == user_id))
    user = result.scalars().first()
    if user is None:
        raise AuthFailure(GlobalMessages.COULD_NOT_VALIDATE)
    return user


async def get_current_user(
    credentials: HTTPAuthorizationCredentials = Depends(bearer_scheme),
    db: AsyncSession = Depends(get_db_session)
) -> Patient:
    """
    Dependency to retrieve the current user based on the JWT token provided in the Authorization header.
    """
    return await load_user_from_token(credentials.credentials, db)
