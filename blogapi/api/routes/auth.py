from fastapi import APIRouter, HTTPException, status

from blogapi.auth.models import LoginRequest, Token
from blogapi.auth.security import create_access_token, verify_password
from blogapi.core.logging import LogContext
from blogapi.db.database import SessionDep
from blogapi.repositories.user_repository import UserRepository

logger = LogContext(__name__)

auth_router = APIRouter(prefix="/auth", tags=["auth"])


@auth_router.post("/login", response_model=Token)
def login(credentials: LoginRequest, session: SessionDep) -> Token:
    user = UserRepository(session).get_by_email(credentials.email.strip().lower())
    if not user or not verify_password(credentials.password, user.password_hash):
        logger.warning("Failed login attempt")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Incorrect email or password",
        )

    logger.info("User logged in", extra={"user_id": user.id})
    access_token = create_access_token({"sub": str(user.id), "role": user.role})
    return Token(access_token=access_token, token_type="bearer")
