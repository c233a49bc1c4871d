import logging
from typing import List

from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import FileResponse
from sqlalchemy.orm import Session

from cpq import models, schemas
from cpq.auth import get_approved_user
from cpq.database import get_db
from cpq.pdf_utils import generate_order_pdf
from cpq.routes.common import TableParams, apply_changes, row_to_dict, distinct_options
from cpq.routes.customers import get_customer_or_404
from cpq.utils.address import ADDRESS_FIELDS, address_of, apply_same_as_billing
from cpq.utils.numbering import next_order_number
from cpq.utils.pricing import (
    ADDITIONAL_COSTS,
    additional_cost_total,
    grand_total,
    order_item_breakdown,
    order_totals,
)
from cpq.utils.table_view import ORDER_COLUMNS

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/api/orders",
    tags=["Orders"]
)

ADDRESS_BLOCKS = ("billing", "shipping", "wpc")

# Columns the client never writes directly
COMPUTED_FIELDS = (
    "id", "order_number", "company_name", "user_id", "created_by",
    "customer_id", "created_at", "updated_at",
    "subtotal", "tax_amount", "discount_amount", "total_amount",
    "additional_cost_total", "grand_total",
    "customer_name", "customer_gst", "customer_email", "customer_phone",
    "poc_name", "poc_email", "poc_phone", "poc_designation", "poc_department",
)

BOOLEAN_DEFAULTS = (
    ["requires_license", "license_verified", "liaisoning_verified",
     "same_as_billing", "wpc_same_as_billing"]
    + [f"{name}_inclusive" for name in ADDITIONAL_COSTS]
)


# -------------------------
# HELPERS
# -------------------------
def company_orders(db: Session, user: models.User):
    return db.query(models.Order).filter(
        models.Order.company_name == user.company_name
    )


def get_order_or_404(db: Session, user: models.User, order_number: str) -> models.Order:
    order = company_orders(db, user).filter(
        models.Order.order_number == order_number
    ).first()
    if not order:
        raise HTTPException(status_code=404, detail="Order not found")
    return order


def build_items(items: List[schemas.OrderItemIn]) -> List[models.OrderItem]:
    return [
        models.OrderItem(
            **item.model_dump(),
            **order_item_breakdown(
                item.quantity,
                item.unit_price,
                item.tax_rate,
                item.discount_rate
            )
        )
        for item in items
    ]


def apply_totals(order: models.Order):
    totals = order_totals(
        {
            "subtotal": i.subtotal,
            "discount_amount": i.discount_amount,
            "tax_amount": i.tax_amount,
            "total_amount": i.total_amount,
        }
        for i in order.items
    )
    for field, value in totals.items():
        setattr(order, field, value)

    costs = {}
    for name in ADDITIONAL_COSTS:
        costs[f"{name}_inclusive"] = getattr(order, f"{name}_inclusive")
        costs[f"{name}_amount"] = getattr(order, f"{name}_amount")

    order.additional_cost_total = additional_cost_total(costs)
    order.grand_total = grand_total(order.total_amount, costs)


def prefill_addresses(data: dict, customer: models.Customer) -> dict:
    """Empty address blocks start from the customer's addresses."""
    stored = row_to_dict(customer)
    for prefix in ADDRESS_BLOCKS:
        if any(address_of(data, prefix).values()):
            continue
        for field in ADDRESS_FIELDS:
            data[f"{prefix}_{field}"] = stored.get(f"{prefix}_{field}")
    return data


def set_poc(db: Session, order: models.Order, poc_id: int | None):
    if poc_id is None:
        order.poc_id = None
        return

    poc = (
        db.query(models.Poc)
        .filter(models.Poc.id == poc_id, models.Poc.customer_id == order.customer_id)
        .first()
    )
    if not poc:
        raise HTTPException(status_code=400, detail="POC not found for this customer")

    order.poc_id = poc.id
    order.poc_name = poc.name
    order.poc_email = poc.email
    order.poc_phone = poc.phone
    order.poc_designation = poc.designation
    order.poc_department = poc.department


def mark_quote_ordered(db: Session, user: models.User, quote_id: int | None):
    if quote_id is None:
        return
    quote = (
        db.query(models.Quote)
        .filter(models.Quote.id == quote_id, models.Quote.company_name == user.company_name)
        .first()
    )
    if not quote:
        raise HTTPException(status_code=400, detail="Quote not found")
    quote.status = models.QuoteStatus.ORDER_PLACED


def serialize_order(order: models.Order) -> dict:
    return {
        **row_to_dict(order),
        "items": [row_to_dict(i) for i in order.items],
    }


# -------------------------
# LIST / LOOKUPS
# -------------------------
@router.get("/")
def list_orders(
    params: TableParams = Depends(),
    status: str | None = None,
    db: Session = Depends(get_db),
    user: models.User = Depends(get_approved_user)
):
    q = company_orders(db, user)
    if status is not None:
        q = q.filter(models.Order.status == status)

    orders = q.order_by(models.Order.created_at.desc()).all()
    view = params.view(ORDER_COLUMNS, orders)
    return view.snapshot(serialize=serialize_order)


@router.get("/payment-methods")
def list_payment_methods(db: Session = Depends(get_db), user: models.User = Depends(get_approved_user)):
    return distinct_options(o.payment_method for o in company_orders(db, user).all())


@router.get("/payment-terms")
def list_payment_terms(db: Session = Depends(get_db), user: models.User = Depends(get_approved_user)):
    return distinct_options(o.payment_terms for o in company_orders(db, user).all())


@router.get("/delivery-methods")
def list_delivery_methods(db: Session = Depends(get_db), user: models.User = Depends(get_approved_user)):
    return distinct_options(o.delivery_method for o in company_orders(db, user).all())


@router.get("/statuses")
def list_order_statuses(db: Session = Depends(get_db), user: models.User = Depends(get_approved_user)):
    return distinct_options(o.status for o in company_orders(db, user).all())


@router.post("/generate-order-number")
def generate_order_number(
    body: schemas.OrderNumberRequest,
    db: Session = Depends(get_db),
    user: models.User = Depends(get_approved_user)
):
    customer = get_customer_or_404(db, user, body.customer_id)
    return {"order_number": next_order_number(db, user.company_name, customer)}


@router.get("/customer/{customer_id}")
def list_orders_by_customer(
    customer_id: int,
    db: Session = Depends(get_db),
    user: models.User = Depends(get_approved_user)
):
    orders = (
        company_orders(db, user)
        .filter(models.Order.customer_id == customer_id)
        .order_by(models.Order.created_at.desc())
        .all()
    )
    return [serialize_order(o) for o in orders]


@router.get("/number/{order_number}")
def get_order_by_number(
    order_number: str,
    db: Session = Depends(get_db),
    user: models.User = Depends(get_approved_user)
):
    return serialize_order(get_order_or_404(db, user, order_number))


# -------------------------
# CREATE ORDER
# -------------------------
@router.post("/", status_code=201)
def create_order(
    body: schemas.OrderCreate,
    db: Session = Depends(get_db),
    user: models.User = Depends(get_approved_user)
):
    customer = get_customer_or_404(db, user, body.customer_id)

    order_number = body.order_number or next_order_number(db, user.company_name, customer)
    duplicate = (
        db.query(models.Order)
        .filter(models.Order.order_number == order_number)
        .first()
    )
    if duplicate:
        raise HTTPException(status_code=409, detail="Order number already exists")

    data = body.model_dump(exclude={"items", "order_number", "customer_id", "poc_id"})
    for field in BOOLEAN_DEFAULTS:
        if data.get(field) is None:
            data[field] = False
    for name in ADDITIONAL_COSTS:
        if data.get(f"{name}_amount") is None:
            data[f"{name}_amount"] = 0
    for field in ("attachments", "documents", "pending_approval_by", "approved_by"):
        if data.get(field) is None:
            data[field] = []

    apply_same_as_billing(prefill_addresses(data, customer))

    order = models.Order(
        **data,
        order_number=order_number,
        customer_id=customer.id,
        customer_name=customer.name,
        customer_gst=customer.gst_number,
        customer_email=customer.email,
        customer_phone=customer.phone,
        company_name=user.company_name,
        user_id=user.id,
        created_by=user.full_name,
        items=build_items(body.items)
    )
    set_poc(db, order, body.poc_id)
    apply_totals(order)
    mark_quote_ordered(db, user, body.quote_id)

    db.add(order)
    db.commit()
    db.refresh(order)

    logger.info("Created order %s (grand total %.2f)", order.order_number, order.grand_total)

    return serialize_order(order)


# -------------------------
# UPDATE ORDER
# -------------------------
@router.put("/number/{order_number}")
def update_order(
    order_number: str,
    body: schemas.OrderUpdate,
    db: Session = Depends(get_db),
    user: models.User = Depends(get_approved_user)
):
    order = get_order_or_404(db, user, order_number)

    changes = body.model_dump(exclude_unset=True, exclude={"items"})

    data = row_to_dict(order)
    data.update(changes)
    apply_same_as_billing(data)

    apply_changes(order, data, skip=COMPUTED_FIELDS + ("poc_id",))

    if "poc_id" in changes:
        set_poc(db, order, changes["poc_id"])
    if "quote_id" in changes:
        mark_quote_ordered(db, user, changes["quote_id"])
    if body.items is not None:
        order.items = build_items(body.items)

    order.updated_by = user.id
    apply_totals(order)

    db.commit()
    db.refresh(order)
    return serialize_order(order)


@router.post("/approve/{order_number}")
def approve_order(
    order_number: str,
    db: Session = Depends(get_db),
    user: models.User = Depends(get_approved_user)
):
    order = get_order_or_404(db, user, order_number)

    pending = list(order.pending_approval_by or [])
    if user.id not in pending:
        raise HTTPException(
            status_code=400,
            detail="User is not pending approval for this order."
        )

    order.pending_approval_by = [uid for uid in pending if uid != user.id]
    order.approved_by = list(order.approved_by or []) + [user.id]
    if not order.pending_approval_by:
        order.status = "Approved"

    db.commit()

    logger.info("User %s approved order %s", user.id, order_number)

    return {"message": "Order approved successfully.", "status": order.status}


# -------------------------
# ORDER PDF
# -------------------------
@router.get("/download/{order_number}")
def download_order_pdf(
    order_number: str,
    db: Session = Depends(get_db),
    user: models.User = Depends(get_approved_user)
):
    order = get_order_or_404(db, user, order_number)

    try:
        pdf_path = generate_order_pdf(order)
    except OSError:
        logger.exception("PDF generation failed for order %s", order_number)
        raise HTTPException(status_code=500, detail="Failed to generate PDF")

    return FileResponse(
        path=pdf_path,
        media_type="application/pdf",
        filename=f"order_{order.id}.pdf"
    )


# -------------------------
# DELETE
# -------------------------
@router.post("/delete")
def delete_orders(
    body: schemas.OrderIds,
    db: Session = Depends(get_db),
    user: models.User = Depends(get_approved_user)
):
    if not body.ids:
        raise HTTPException(status_code=400, detail="No order IDs provided")

    orders = company_orders(db, user).filter(models.Order.id.in_(body.ids)).all()
    for order in orders:
        db.delete(order)
    db.commit()

    logger.info("User %s deleted %d order(s)", user.id, len(orders))

    return {"message": "Order(s) deleted successfully", "deleted_count": len(orders)}


@router.delete("/number/{order_number}")
def delete_order(
    order_number: str,
    db: Session = Depends(get_db),
    user: models.User = Depends(get_approved_user)
):
    order = get_order_or_404(db, user, order_number)
    db.delete(order)
    db.commit()
    return {"message": "Order deleted successfully"}


@router.get("/{order_id}")
def get_order(
    order_id: int,
    db: Session = Depends(get_db),
    user: models.User = Depends(get_approved_user)
):
    order = company_orders(db, user).filter(models.Order.id == order_id).first()
    if not order:
        raise HTTPException(status_code=404, detail="Order not found")
    return serialize_order(order)
