from datetime import timedelta

from fastapi import Depends, HTTPException
from fastapi.security import OAuth2PasswordBearer
from jose import JWTError, jwt
from sqlalchemy.orm import Session

from database import get_db
from models.database import User
from shared.config import config
from shared.utils import utcnow

ALGORITHM = "HS256"

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/token")


def _secret_key() -> str:
    return config.get("secret_key", "supersecret")


def create_access_token(data: dict[str, str], expires_in: timedelta | None = None) -> str:
    """Create JWT access token."""
    claims: dict = dict(data)
    if expires_in is not None:
        claims["exp"] = utcnow() + expires_in
    return jwt.encode(claims, _secret_key(), algorithm=ALGORITHM)


def decode_subject(token: str) -> str:
    """Return the ``sub`` claim of a valid token."""
    try:
        payload = jwt.decode(token, _secret_key(), algorithms=[ALGORITHM])
        username = payload.get("sub")
        if not isinstance(username, str):
            raise HTTPException(status_code=401, detail="Invalid token")
    except JWTError as e:
        raise HTTPException(status_code=401, detail="Invalid token") from e
    return username


def get_user(db: Session, username: str) -> User | None:
    """Get user from database by username."""
    return db.query(User).filter(User.username == username).first()


async def get_current_user(token: str = Depends(oauth2_scheme), db: Session = Depends(get_db)) -> User:
    """Resolve the authenticated job owner."""
    username = decode_subject(token)
    user = get_user(db, username)
    if user is None:
        raise HTTPException(status_code=401, detail="User not found")
    if user.disabled:
        raise HTTPException(status_code=403, detail="User account is disabled")
    db.expunge(user)
    return user
