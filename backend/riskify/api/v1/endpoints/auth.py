from fastapi import APIRouter, Depends, HTTPException, status, Request, Response
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, or_
from datetime import datetime

from riskify.core.database import get_db
from riskify.core.config import settings
from riskify.core.security import verify_password, get_password_hash, create_access_token
from riskify.core.logging_config import logger, set_user_id
from riskify.core.rate_limiter import limiter
from riskify.models.billing import CreditTransactionType
from riskify.models.user import User, UserRole
from riskify.schemas.auth import UserRegister, UserLogin, LoginResponse, UserResponse, ProfileUpdate
from riskify.modules.auth.dependencies import get_current_user
from riskify.services.credit_service import credit_service

router = APIRouter()


@router.post("/register", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
@limiter.limit("3/minute")
async def register(
    request: Request,
    user_data: UserRegister,
    db: AsyncSession = Depends(get_db)
):
    """Register new user (rate limited: 3/min)"""
    client_ip = request.client.host if request.client else "unknown"

    conditions = [User.email == user_data.email]
    if user_data.username:
        conditions.append(User.username == user_data.username)
    result = await db.execute(select(User).where(or_(*conditions)))
    existing_user = result.scalars().first()

    if existing_user:
        reason = "Email already registered" if existing_user.email == user_data.email else "Username already taken"
        logger.log_auth_event(
            event="register",
            success=False,
            user_email=user_data.email,
            reason=reason,
            client_ip=client_ip
        )
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=reason
        )

    user = User(
        email=user_data.email,
        username=user_data.username,
        hashed_password=get_password_hash(user_data.password),
        full_name=user_data.full_name,
        role=UserRole.USER,
        company_name=user_data.company_name,
        abn=user_data.abn,
        phone=user_data.phone,
        primary_trade=user_data.primary_trade,
    )
    db.add(user)
    await db.flush()

    if settings.SIGNUP_BONUS_CREDITS > 0:
        await credit_service.add(
            db, user, settings.SIGNUP_BONUS_CREDITS, bucket="addon",
            transaction_type=CreditTransactionType.ADMIN_ADJUSTMENT,
            description="Signup bonus", commit=False,
        )

    await db.commit()
    await db.refresh(user)

    logger.log_auth_event(
        event="register",
        success=True,
        user_email=user_data.email,
        client_ip=client_ip
    )
    return user


@router.post("/login", response_model=LoginResponse)
@limiter.limit("5/minute")
async def login(
    request: Request,
    response: Response,
    credentials: UserLogin,
    db: AsyncSession = Depends(get_db)
):
    """Login user (rate limited: 5/min). Returns the token and sets the session cookie."""
    client_ip = request.client.host if request.client else "unknown"

    result = await db.execute(
        select(User).where(User.email == credentials.email)
    )
    user = result.scalar_one_or_none()

    if not user or not verify_password(credentials.password, user.hashed_password):
        logger.log_auth_event(
            event="login",
            success=False,
            user_email=credentials.email,
            reason="Invalid credentials",
            client_ip=client_ip
        )
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Incorrect email or password"
        )

    if not user.is_active:
        logger.log_auth_event(
            event="login",
            success=False,
            user_email=credentials.email,
            reason="Account inactive",
            client_ip=client_ip
        )
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Account is inactive"
        )

    user.last_login = datetime.utcnow()
    await credit_service.apply_monthly_reset(db, user, commit=False)
    await db.commit()
    await db.refresh(user)

    set_user_id(str(user.id))

    access_token = create_access_token({
        "sub": str(user.id),
        "email": user.email,
        "role": user.role.value
    })
    expires_in = settings.ACCESS_TOKEN_EXPIRE_MINUTES * 60
    response.set_cookie(
        key=settings.SESSION_COOKIE_NAME,
        value=access_token,
        max_age=expires_in,
        httponly=True,
        secure=settings.SESSION_COOKIE_SECURE,
        samesite="lax",
    )

    logger.log_auth_event(
        event="login",
        success=True,
        user_email=user.email,
        client_ip=client_ip,
        user_role=user.role.value
    )

    return {
        "access_token": access_token,
        "token_type": "bearer",
        "expires_in": expires_in,
        "user": UserResponse.model_validate(user),
    }


@router.post("/logout")
async def logout(
    response: Response,
    current_user: User = Depends(get_current_user)
):
    """
    Logout user.

    JWTs are stateless; this clears the session cookie so the browser
    stops sending it.
    """
    response.delete_cookie(settings.SESSION_COOKIE_NAME)
    logger.log_auth_event(
        event="logout",
        success=True,
        user_email=current_user.email
    )
    return {"message": "Successfully logged out", "success": True}


@router.get("/me", response_model=UserResponse)
async def get_current_user_info(
    current_user: User = Depends(get_current_user)
):
    """Get current user info"""
    return current_user


@router.patch("/me/profile", response_model=UserResponse)
async def update_profile(
    profile: ProfileUpdate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Update company profile printed on SWMS documents"""
    for field, value in profile.model_dump(exclude_unset=True).items():
        setattr(current_user, field, value)
    current_user.updated_at = datetime.utcnow()
    await db.commit()
    await db.refresh(current_user)
    return current_user
