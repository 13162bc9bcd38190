from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer

from blogapi.constants import Role, has_role
from blogapi.core.exceptions import PermissionDeniedError
from blogapi.db.database import SessionDep
from blogapi.models.db_models import Users
from blogapi.repositories.user_repository import UserRepository
from .security import verify_token

# anonymous requests are allowed through, routes decide what they need
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="auth/login", auto_error=False)


def _credentials_exception() -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )


async def get_optional_user(
    session: SessionDep, token: str | None = Depends(oauth2_scheme)
) -> Users | None:
    """The authenticated user, or None when no token was sent"""
    if token is None:
        return None

    payload = verify_token(token)
    subject = payload.get("sub")
    if subject is None or not isinstance(subject, str) or not subject.isdigit():
        raise _credentials_exception()

    user = UserRepository(session).get_by_id(int(subject))
    if user is None:
        raise _credentials_exception()
    return user


async def get_current_user(
    user: Users | None = Depends(get_optional_user),
) -> Users:
    if user is None:
        raise _credentials_exception()
    return user


def require_role(role: Role):
    """Dependency factory checking the current user is at least ``role``"""

    async def _check(user: Users = Depends(get_current_user)) -> Users:
        if not has_role(user.role, role):
            raise PermissionDeniedError()
        return user

    return _check
