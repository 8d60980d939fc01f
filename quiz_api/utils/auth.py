import logging
from datetime import datetime, timedelta, timezone
from typing import Optional

from fastapi import Cookie, Depends, Header, HTTPException, Response, status
from sqlalchemy.orm import Session

from quiz_api.config import get_db, settings
from quiz_api.models.models import Account
from quiz_api.schemas.auth_schemas import AuthTokenPayload
from quiz_api.schemas.user_schemas import User
from quiz_api.utils.jwt import create_access_token, get_password_hash, verify_password, verify_token
from quiz_engine.principal import Anonymous, Authenticated, Principal

logger = logging.getLogger(__name__)

MAX_GUEST_ID_LENGTH = 64


def _account_from_token(access_token: str, db: Session) -> Account:
    payload = verify_token(access_token)
    account = get_user_by_email(payload.sub, db)
    if account is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="User not found",
        )
    return account


def get_current_user(access_token: Optional[str] = Cookie(None), db: Session = Depends(get_db)) -> User:
    if not access_token:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Missing token",
        )
    account = _account_from_token(access_token, db)
    return User(id=int(account.id), email=account.email, preferences=account.preferences)


def get_principal(
    access_token: Optional[str] = Cookie(None),
    x_guest_id: Optional[str] = Header(None),
    db: Session = Depends(get_db),
) -> Principal:
    """Signed-in account from the cookie, else a guest from the x-guest-id header."""
    if access_token:
        return Authenticated(account_id=int(_account_from_token(access_token, db).id))
    guest_id = (x_guest_id or "").strip()
    if guest_id:
        if len(guest_id) > MAX_GUEST_ID_LENGTH:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Guest id too long")
        return Anonymous(guest_id=guest_id)
    raise HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Sign in or provide an x-guest-id header",
    )


def set_auth_cookie(response: Response, account: Account) -> None:
    expires = timedelta(minutes=settings.access_token_expire_minutes)
    token = create_access_token(AuthTokenPayload(sub=account.email, exp=datetime.now(timezone.utc) + expires))
    response.set_cookie(
        key="access_token",
        value=token,
        httponly=True,
        secure=False,
        samesite="lax",
        max_age=int(expires.total_seconds()),
    )


def clear_auth_cookie(response: Response) -> None:
    response.delete_cookie(
        key="access_token",
        httponly=True,
        secure=False,
        samesite="lax"
    )


def get_user_by_email(email: str, db: Session) -> Optional[Account]:
    return db.query(Account).filter(Account.email == email).first()


def create_user(email: str, password: str, db: Session) -> Account:
    logger.info("creating account email=%s", email)
    account = Account(email=email, hashed_password=get_password_hash(password))
    db.add(account)
    db.commit()
    db.refresh(account)
    return account


def authenticate_user(email: str, password: str, db: Session) -> Optional[Account]:
    account = get_user_by_email(email, db)
    if not account or not verify_password(password, account.hashed_password):
        return None
    return account
