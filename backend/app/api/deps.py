from collections.abc import Callable, Generator, Iterable

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError
from sqlalchemy.orm import Session

from app.core.security import Actor, UserRole, decode_token
from app.db.session import SessionLocal
from app.models.faculty import Faculty

security = HTTPBearer()


def get_db() -> Generator[Session, None, None]:
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def get_current_actor(credentials: HTTPAuthorizationCredentials = Depends(security)) -> Actor:
    token = credentials.credentials
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )
    try:
        payload = decode_token(token)
        subject = payload.get("sub")
        role = UserRole(payload.get("role"))
        if subject is None:
            raise credentials_exception
    except (JWTError, ValueError) as exc:
        raise credentials_exception from exc
    return Actor(id=subject, role=role)


def require_roles(*roles: UserRole) -> Callable[[Actor], Actor]:
    allowed_roles: Iterable[UserRole] = set(roles)

    def role_checker(current_actor: Actor = Depends(get_current_actor)) -> Actor:
        if current_actor.role not in allowed_roles:
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Insufficient permissions")
        return current_actor

    return role_checker


def get_current_faculty(
    current_actor: Actor = Depends(get_current_actor),
    db: Session = Depends(get_db),
) -> Faculty:
    faculty = db.get(Faculty, current_actor.id)
    if faculty is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Faculty profile not linked")
    if not faculty.is_active:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Faculty account is inactive")
    return faculty
