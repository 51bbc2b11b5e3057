from dataclasses import dataclass
from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer
from jose import jwt, JWTError

from core.config import JWT_SECRET_KEY, JWT_ALGORITHM
from schemas.enum import RoleEnum

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/login")


@dataclass
class CurrentUser:
    id: str
    role: RoleEnum
    name: str | None = None


async def get_current_user(
    token: str = Depends(oauth2_scheme),
) -> CurrentUser:
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Invalid or expired token",
        headers={"WWW-Authenticate": "Bearer"},
    )

    try:
        payload = jwt.decode(
            token,
            JWT_SECRET_KEY,
            algorithms=[JWT_ALGORITHM]
        )

        user_id: str = payload.get("sub") # type: ignore

        if not user_id:
            raise credentials_exception
        role = RoleEnum(payload.get("role"))
    except (JWTError, ValueError):
        raise credentials_exception

    return CurrentUser(id=user_id, role=role, name=payload.get("name"))


def require_role(*roles: RoleEnum):
    async def checker(current_user: CurrentUser = Depends(get_current_user)) -> CurrentUser:
        if current_user.role not in roles:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Not allowed for this role"
            )
        return current_user
    return checker
