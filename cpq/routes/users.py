import logging
import secrets
import uuid

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from cpq import models, schemas
from cpq.auth import get_current_user, get_approved_user, get_admin_user
from cpq.database import get_db
from cpq.routes.common import TableParams, apply_changes, row_to_dict, distinct_options
from cpq.utils.table_view import USER_COLUMNS

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/api/users",
    tags=["Users"]
)


def serialize_user(user: models.User) -> dict:
    return row_to_dict(user, exclude=("api_token",))


# -------------------------
# PUBLIC: STATUS CHECK / REGISTRATION
# -------------------------
@router.post("/check-no-auth")
def check_user_no_auth(body: schemas.UserCheck, db: Session = Depends(get_db)):
    user = db.query(models.User).filter(models.User.email == body.email).first()
    return {
        "exists": user is not None,
        "approved_by_admin": user.approval_by_admin if user else False
    }


@router.post("/", status_code=201)
def create_user(body: schemas.UserCreate, db: Session = Depends(get_db)):
    existing = db.query(models.User).filter(models.User.email == body.email).first()
    if existing:
        raise HTTPException(status_code=409, detail="Email already registered")

    # The very first account administers the installation
    first_user = db.query(models.User).count() == 0

    user = models.User(
        id=body.id or uuid.uuid4().hex,
        email=body.email,
        first_name=body.first_name,
        last_name=body.last_name,
        designation=body.designation,
        company_name=body.company_name,
        team_name=body.team_name,
        approval_by_admin=first_user,
        role=models.UserRole.ADMIN if first_user else models.UserRole.USER,
        api_token=secrets.token_urlsafe(32)
    )
    db.add(user)
    db.commit()
    db.refresh(user)

    logger.info("Registered user %s (admin=%s)", user.id, first_user)

    return {**serialize_user(user), "api_token": user.api_token}


@router.get("/companies")
def list_companies(db: Session = Depends(get_db)):
    rows = db.query(models.User.company_name).distinct().all()
    return distinct_options(r.company_name for r in rows)


@router.get("/teams/{company_name}")
def list_teams(company_name: str, db: Session = Depends(get_db)):
    rows = (
        db.query(models.User.team_name)
        .filter(models.User.company_name == company_name)
        .distinct()
        .all()
    )
    return distinct_options(r.team_name for r in rows)


# -------------------------
# AUTHENTICATED
# -------------------------
@router.get("/me")
def current_user(user: models.User = Depends(get_current_user)):
    return serialize_user(user)


@router.post("/check")
def check_user(
    body: schemas.UserCheck,
    db: Session = Depends(get_db),
    _: models.User = Depends(get_current_user)
):
    user = db.query(models.User).filter(models.User.email == body.email).first()
    if not user:
        raise HTTPException(status_code=404, detail="User not found")

    return {
        "exists": True,
        "approved_by_admin": user.approval_by_admin,
        "role": user.role
    }


@router.get("/")
def list_company_users(
    params: TableParams = Depends(),
    db: Session = Depends(get_db),
    user: models.User = Depends(get_approved_user)
):
    users = (
        db.query(models.User)
        .filter(models.User.company_name == user.company_name)
        .order_by(models.User.created_at)
        .all()
    )
    view = params.view(USER_COLUMNS, users)
    return view.snapshot(serialize=serialize_user)


@router.get("/select")
def users_for_select(
    db: Session = Depends(get_db),
    user: models.User = Depends(get_approved_user)
):
    users = (
        db.query(models.User)
        .filter(models.User.company_name == user.company_name)
        .all()
    )
    return [{"value": u.id, "label": u.full_name} for u in users]


@router.post("/approve")
def approve_users(
    body: schemas.UserIds,
    db: Session = Depends(get_db),
    admin: models.User = Depends(get_admin_user)
):
    if not body.user_ids:
        raise HTTPException(status_code=400, detail="Invalid user IDs provided")

    updated = (
        db.query(models.User)
        .filter(models.User.id.in_(body.user_ids))
        .update({models.User.approval_by_admin: True}, synchronize_session=False)
    )
    db.commit()

    logger.info("User %s approved %d user(s)", admin.id, updated)

    return {"message": "User(s) approved successfully", "approved_count": updated}


@router.delete("/")
def delete_users(
    body: schemas.UserIds,
    db: Session = Depends(get_db),
    admin: models.User = Depends(get_admin_user)
):
    if not body.user_ids:
        raise HTTPException(status_code=400, detail="Invalid user IDs provided")

    deleted = (
        db.query(models.User)
        .filter(models.User.id.in_(body.user_ids))
        .delete(synchronize_session=False)
    )
    db.commit()

    logger.info("User %s deleted %d user(s)", admin.id, deleted)

    return {"message": "User(s) deleted successfully", "deleted_count": deleted}


@router.get("/{user_id}")
def get_user(
    user_id: str,
    db: Session = Depends(get_db),
    current: models.User = Depends(get_approved_user)
):
    user = (
        db.query(models.User)
        .filter(
            models.User.id == user_id,
            models.User.company_name == current.company_name
        )
        .first()
    )
    if not user:
        raise HTTPException(status_code=404, detail="User not found")
    return serialize_user(user)


@router.put("/{user_id}")
def update_user(
    user_id: str,
    body: schemas.UserUpdate,
    db: Session = Depends(get_db),
    current: models.User = Depends(get_current_user)
):
    if current.id != user_id and current.role != models.UserRole.ADMIN:
        raise HTTPException(status_code=403, detail="Cannot edit another user")

    user = db.query(models.User).filter(models.User.id == user_id).first()
    if not user:
        raise HTTPException(status_code=404, detail="User not found")

    changes = body.model_dump(exclude_unset=True)

    if "email" in changes:
        taken = (
            db.query(models.User)
            .filter(models.User.email == changes["email"], models.User.id != user.id)
            .first()
        )
        if taken:
            raise HTTPException(status_code=409, detail="Email already registered")

    # approval_by_admin is only changed through /approve
    apply_changes(user, changes)

    db.commit()
    db.refresh(user)
    return serialize_user(user)
