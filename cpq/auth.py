from fastapi import Depends, Header, HTTPException
from sqlalchemy.orm import Session

from cpq import models
from cpq.database import get_db


def _bearer_token(authorization: str | None) -> str:
    if not authorization:
        raise HTTPException(status_code=401, detail="Missing bearer token")

    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        raise HTTPException(status_code=401, detail="Invalid authorization header")
    return token.strip()


def get_current_user(
    authorization: str | None = Header(None),
    db: Session = Depends(get_db)
) -> models.User:
    token = _bearer_token(authorization)

    user = (
        db.query(models.User)
        .filter(models.User.api_token == token)
        .first()
    )
    if not user:
        raise HTTPException(status_code=401, detail="Unknown bearer token")
    return user


def get_approved_user(user: models.User = Depends(get_current_user)) -> models.User:
    """Registered users wait for an admin before they can use the app."""
    if not user.approval_by_admin:
        raise HTTPException(status_code=403, detail="Pending admin approval")
    return user


def get_admin_user(user: models.User = Depends(get_approved_user)) -> models.User:
    if user.role != models.UserRole.ADMIN:
        raise HTTPException(status_code=403, detail="Admin role required")
    return user
