from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from cpq import models, schemas
from cpq.auth import get_approved_user
from cpq.database import get_db
from cpq.routes.common import apply_changes, row_to_dict, distinct_options
from cpq.routes.customers import get_customer_or_404

router = APIRouter(prefix="/api/pocs", tags=["Points of Contact"])


def company_pocs(db: Session, user: models.User):
    return (
        db.query(models.Poc)
        .join(models.Customer)
        .filter(models.Customer.company_name == user.company_name)
    )


def serialize_poc(poc: models.Poc) -> dict:
    return {**row_to_dict(poc), "customer_name": poc.customer.name}


def get_poc_or_404(db: Session, user: models.User, poc_id: int) -> models.Poc:
    poc = company_pocs(db, user).filter(models.Poc.id == poc_id).first()
    if not poc:
        raise HTTPException(status_code=404, detail="POC not found")
    return poc


@router.get("/")
def list_pocs(
    customer_id: int | None = None,
    db: Session = Depends(get_db),
    user: models.User = Depends(get_approved_user)
):
    q = company_pocs(db, user)
    if customer_id is not None:
        q = q.filter(models.Poc.customer_id == customer_id)
    return [serialize_poc(p) for p in q.order_by(models.Poc.name).all()]


@router.get("/designations")
def list_designations(db: Session = Depends(get_db), user: models.User = Depends(get_approved_user)):
    return distinct_options(p.designation for p in company_pocs(db, user).all())


@router.get("/departments")
def list_departments(db: Session = Depends(get_db), user: models.User = Depends(get_approved_user)):
    return distinct_options(p.department for p in company_pocs(db, user).all())


@router.get("/select")
def pocs_for_select(
    customer_id: int,
    db: Session = Depends(get_db),
    user: models.User = Depends(get_approved_user)
):
    pocs = (
        company_pocs(db, user)
        .filter(models.Poc.customer_id == customer_id)
        .order_by(models.Poc.name)
        .all()
    )
    return [{"value": p.id, "label": p.name} for p in pocs]


@router.get("/{poc_id}")
def get_poc(poc_id: int, db: Session = Depends(get_db), user: models.User = Depends(get_approved_user)):
    return serialize_poc(get_poc_or_404(db, user, poc_id))


@router.post("/", status_code=201)
def create_poc(
    poc: schemas.PocCreate,
    db: Session = Depends(get_db),
    user: models.User = Depends(get_approved_user)
):
    get_customer_or_404(db, user, poc.customer_id)

    new_poc = models.Poc(**poc.model_dump())
    db.add(new_poc)
    db.commit()
    db.refresh(new_poc)
    return serialize_poc(new_poc)


@router.put("/{poc_id}")
def update_poc(
    poc_id: int,
    poc: schemas.PocUpdate,
    db: Session = Depends(get_db),
    user: models.User = Depends(get_approved_user)
):
    db_poc = get_poc_or_404(db, user, poc_id)
    apply_changes(db_poc, poc.model_dump(exclude_unset=True))

    db.commit()
    db.refresh(db_poc)
    return serialize_poc(db_poc)


@router.delete("/{poc_id}")
def delete_poc(poc_id: int, db: Session = Depends(get_db), user: models.User = Depends(get_approved_user)):
    db_poc = get_poc_or_404(db, user, poc_id)

    # Orders and licenses keep the contact snapshot, not the link
    db.query(models.Order).filter(models.Order.poc_id == poc_id).update(
        {models.Order.poc_id: None}, synchronize_session=False
    )
    db.query(models.License).filter(models.License.contact_person_id == poc_id).update(
        {models.License.contact_person_id: None}, synchronize_session=False
    )

    db.delete(db_poc)
    db.commit()
    return {"message": "POC deleted successfully"}
