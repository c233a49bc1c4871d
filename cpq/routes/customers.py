import logging

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from cpq import models, schemas
from cpq.auth import get_approved_user
from cpq.database import get_db
from cpq.routes.common import TableParams, apply_changes, row_to_dict, distinct_options
from cpq.utils.address import apply_same_as_billing
from cpq.utils.table_view import CUSTOMER_COLUMNS

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/customers", tags=["Customers"])


def company_customers(db: Session, user: models.User):
    return db.query(models.Customer).filter(
        models.Customer.company_name == user.company_name
    )


def get_customer_or_404(db: Session, user: models.User, customer_id: int) -> models.Customer:
    customer = company_customers(db, user).filter(
        models.Customer.id == customer_id
    ).first()
    if not customer:
        raise HTTPException(status_code=404, detail="Customer not found")
    return customer


def _options(db: Session, user: models.User, column):
    rows = (
        db.query(column)
        .filter(models.Customer.company_name == user.company_name)
        .distinct()
        .all()
    )
    return distinct_options(r[0] for r in rows)


# -------------------------
# LIST / SEARCH
# -------------------------
@router.get("/")
def list_customers(
    params: TableParams = Depends(),
    db: Session = Depends(get_db),
    user: models.User = Depends(get_approved_user)
):
    customers = company_customers(db, user).order_by(models.Customer.id).all()
    view = params.view(CUSTOMER_COLUMNS, customers)
    return view.snapshot(serialize=row_to_dict)


@router.get("/industries")
def list_industries(db: Session = Depends(get_db), user: models.User = Depends(get_approved_user)):
    return _options(db, user, models.Customer.industry)


@router.get("/types-of-customers")
def list_types_of_customers(db: Session = Depends(get_db), user: models.User = Depends(get_approved_user)):
    return _options(db, user, models.Customer.type_of_customer)


@router.get("/sales-reps")
def list_sales_reps(db: Session = Depends(get_db), user: models.User = Depends(get_approved_user)):
    return _options(db, user, models.Customer.sales_rep)


@router.get("/cities")
def list_cities(db: Session = Depends(get_db), user: models.User = Depends(get_approved_user)):
    return _options(db, user, models.Customer.billing_city)


@router.get("/districts")
def list_districts(db: Session = Depends(get_db), user: models.User = Depends(get_approved_user)):
    return _options(db, user, models.Customer.billing_district)


@router.get("/states")
def list_states(db: Session = Depends(get_db), user: models.User = Depends(get_approved_user)):
    return _options(db, user, models.Customer.billing_state)


@router.get("/countries")
def list_countries(db: Session = Depends(get_db), user: models.User = Depends(get_approved_user)):
    return _options(db, user, models.Customer.billing_country)


@router.get("/companies")
def list_customer_names(db: Session = Depends(get_db), user: models.User = Depends(get_approved_user)):
    return _options(db, user, models.Customer.name)


@router.get("/all-customers-for-select")
def customers_for_select(db: Session = Depends(get_db), user: models.User = Depends(get_approved_user)):
    customers = company_customers(db, user).order_by(models.Customer.name).all()
    return [{"value": c.id, "label": c.name} for c in customers]


@router.get("/with-pocs")
def customers_with_pocs(db: Session = Depends(get_db), user: models.User = Depends(get_approved_user)):
    customers = company_customers(db, user).order_by(models.Customer.name).all()
    return [
        {
            "value": c.id,
            "label": c.name,
            "pocs": [{"value": p.id, "label": p.name} for p in c.pocs]
        }
        for c in customers
    ]


@router.get("/byname/{name}")
def get_customer_by_name(
    name: str,
    db: Session = Depends(get_db),
    user: models.User = Depends(get_approved_user)
):
    customer = company_customers(db, user).filter(
        models.Customer.name == name
    ).first()
    if not customer:
        raise HTTPException(status_code=404, detail="Customer not found")
    return row_to_dict(customer)


@router.get("/{customer_id}")
def get_customer(
    customer_id: int,
    db: Session = Depends(get_db),
    user: models.User = Depends(get_approved_user)
):
    customer = get_customer_or_404(db, user, customer_id)
    return {
        **row_to_dict(customer),
        "pocs": [row_to_dict(p) for p in customer.pocs],
        "quotes": [
            {
                "ref_no": q.ref_no,
                "status": q.status,
                "total_amount": q.total_amount,
                "updated_at": q.updated_at,
            }
            for q in customer.quotes
        ],
        "orders": [
            {
                "order_number": o.order_number,
                "status": o.status,
                "grand_total": o.grand_total,
            }
            for o in customer.orders
        ],
    }


# -------------------------
# CREATE / UPDATE
# -------------------------
@router.post("/", status_code=201)
def create_customer(
    customer: schemas.CustomerCreate,
    db: Session = Depends(get_db),
    user: models.User = Depends(get_approved_user)
):
    data = apply_same_as_billing(customer.model_dump())

    new_customer = models.Customer(
        **data,
        company_name=user.company_name,
        user_id=user.id
    )
    db.add(new_customer)
    db.commit()
    db.refresh(new_customer)
    return row_to_dict(new_customer)


@router.put("/{customer_id}")
def update_customer(
    customer_id: int,
    customer: schemas.CustomerUpdate,
    db: Session = Depends(get_db),
    user: models.User = Depends(get_approved_user)
):
    db_customer = get_customer_or_404(db, user, customer_id)

    # Merge onto the stored record so a flag can copy an unchanged billing block
    data = row_to_dict(db_customer)
    data.update(customer.model_dump(exclude_unset=True))
    apply_same_as_billing(data)

    apply_changes(
        db_customer,
        data,
        skip=("id", "created_at", "updated_at", "user_id", "company_name")
    )

    db.commit()
    db.refresh(db_customer)
    return row_to_dict(db_customer)


# -------------------------
# DELETE
# -------------------------
@router.delete("/{customer_id}")
def delete_customer(
    customer_id: int,
    db: Session = Depends(get_db),
    user: models.User = Depends(get_approved_user)
):
    customer = get_customer_or_404(db, user, customer_id)
    db.delete(customer)
    db.commit()
    return {"message": "Customer deleted successfully"}


@router.delete("/")
def delete_customers(
    body: schemas.CustomerIds,
    db: Session = Depends(get_db),
    user: models.User = Depends(get_approved_user)
):
    if not body.ids:
        raise HTTPException(
            status_code=400,
            detail="Invalid request. No customer IDs provided."
        )

    customers = company_customers(db, user).filter(
        models.Customer.id.in_(body.ids)
    ).all()

    if not customers:
        raise HTTPException(
            status_code=404,
            detail="No customers found for the provided IDs."
        )

    # ORM delete so POCs, quotes and orders cascade
    for customer in customers:
        db.delete(customer)
    db.commit()

    logger.info("User %s deleted %d customer(s)", user.id, len(customers))

    return {
        "message": "Customers deleted successfully.",
        "deleted_count": len(customers)
    }
