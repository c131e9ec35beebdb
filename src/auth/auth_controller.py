# src/auth/auth_controller.py

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from src.auth.dependencies import get_current_user
from src.common.database.database import get_db_session
from src.auth import auth_service, schemas
from src.models.models import Patient

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post("/signup", response_model=schemas.SignupResponse, status_code=status.HTTP_201_CREATED)
async def signup(
    signup_data: schemas.SignupRequest,
    db: AsyncSession = Depends(get_db_session),
):
    """
    Register a new patient account.

    - **first_name** / **middle_name** / **last_name**: the patient's name
    - **email**: email address used to sign in
    - **password**: password (minimum 6 characters)
    - **password_confirm**: password confirmation (must match)

    Every self-registered account is a patient; other roles are assigned by an admin.
    """
    user, access_token = await auth_service.signup_user(
        db,
        email=signup_data.email,
        password=signup_data.password,
        first_name=signup_data.first_name,
        middle_name=signup_data.middle_name,
        last_name=signup_data.last_name,
    )

    return schemas.SignupResponse(
        access_token=access_token,
        user=schemas.UserResponse.model_validate(user),
    )


@router.post("/login", response_model=schemas.LoginResponse)
async def login(
    credentials: schemas.LoginRequest,
    db: AsyncSession = Depends(get_db_session)
):
    """
    Authenticate a user and return an access token.

    - **email**: User's email address
    - **password**: User's password
    """
    user, access_token = await auth_service.login_user(
        email=credentials.email,
        password=credentials.password,
        db=db
    )

    return schemas.LoginResponse(
        access_token=access_token,
        user=schemas.UserResponse.model_validate(user)
    )


@router.get("/me", response_model=schemas.UserResponse)
async def get_current_user_info(
    current_user: Patient = Depends(get_current_user)
):
    """
    Get the current authenticated user's information.

    Requires authentication.
    """
    return schemas.UserResponse.model_validate(current_user)
