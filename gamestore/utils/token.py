from jose import jwt
from datetime import datetime, timedelta
from typing import Optional
from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer
from sqlmodel import Session
from gamestore.config import Settings, get_settings
from gamestore.database import get_session
from gamestore.models.user import User

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/auth/login", auto_error=False)


def create_access_token(
    data: dict,
    settings: Settings,
    expires_delta: Optional[timedelta] = None,
):
    to_encode = data.copy()

    expire = datetime.utcnow() + (expires_delta or timedelta(hours=1))
    to_encode.update({"exp": expire})

    return jwt.encode(
        to_encode,
        settings.secret_key,
        algorithm=settings.algorithm
    )


def decode_access_token(token: str, settings: Settings):
    try:
        return jwt.decode(
            token,
            settings.secret_key,
            algorithms=[settings.algorithm],
        )
    except jwt.JWTError:
        return None


def _user_from_token(token: Optional[str], session: Session, settings: Settings) -> Optional[User]:
    if not token:
        return None

    payload = decode_access_token(token, settings)
    if payload is None:
        return None

    user_id = payload.get("user_id") or payload.get("sub")
    if user_id is None:
        return None

    user = session.get(User, int(user_id))
    if user is None or not user.can_login:
        return None

    return user


def get_current_user(
    token: Optional[str] = Depends(oauth2_scheme),
    session: Session = Depends(get_session),
    settings: Settings = Depends(get_settings),
) -> User:
    user = _user_from_token(token, session, settings)

    if user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Could not validate credentials",
            headers={"WWW-Authenticate": "Bearer"},
        )

    return user


def get_optional_user(
    token: Optional[str] = Depends(oauth2_scheme),
    session: Session = Depends(get_session),
    settings: Settings = Depends(get_settings),
) -> Optional[User]:
    """Resolve the bearer user if there is one; anything else is a guest."""
    return _user_from_token(token, session, settings)
