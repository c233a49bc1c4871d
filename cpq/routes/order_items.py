import logging
from datetime import date

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from cpq import models, schemas
from cpq.auth import get_approved_user
from cpq.database import get_db
from cpq.routes.common import apply_changes, row_to_dict
from cpq.routes.orders import apply_totals, build_items, company_orders
from cpq.utils.pricing import order_item_breakdown

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/api/order-items",
    tags=["Order Items"]
)

DELIVERED = "Delivered"


def get_order_or_404(db: Session, user: models.User, order_id: int) -> models.Order:
    order = company_orders(db, user).filter(models.Order.id == order_id).first()
    if not order:
        raise HTTPException(status_code=404, detail="Order not found")
    return order


def get_item_or_404(db: Session, user: models.User, item_id: int) -> models.OrderItem:
    item = (
        db.query(models.OrderItem)
        .join(models.Order)
        .filter(
            models.OrderItem.id == item_id,
            models.Order.company_name == user.company_name
        )
        .first()
    )
    if not item:
        raise HTTPException(status_code=404, detail="Order item not found")
    return item


def recompute_item(item: models.OrderItem):
    breakdown = order_item_breakdown(
        item.quantity,
        item.unit_price,
        item.tax_rate,
        item.discount_rate
    )
    for field, value in breakdown.items():
        setattr(item, field, value)


def touch_order(order: models.Order, user: models.User):
    apply_totals(order)
    order.updated_by = user.id


# -------------------------
# READ
# -------------------------
@router.get("/order/{order_id}")
def list_order_items(
    order_id: int,
    db: Session = Depends(get_db),
    user: models.User = Depends(get_approved_user)
):
    order = get_order_or_404(db, user, order_id)
    return [row_to_dict(i) for i in order.items]


@router.get("/{item_id}")
def get_order_item(
    item_id: int,
    db: Session = Depends(get_db),
    user: models.User = Depends(get_approved_user)
):
    return row_to_dict(get_item_or_404(db, user, item_id))


# -------------------------
# CREATE / UPDATE / DELETE
# -------------------------
@router.post("/", status_code=201)
def create_order_item(
    body: schemas.OrderItemCreate,
    db: Session = Depends(get_db),
    user: models.User = Depends(get_approved_user)
):
    order = get_order_or_404(db, user, body.order_id)

    item_in = schemas.OrderItemIn(**body.model_dump(exclude={"order_id"}))
    item = build_items([item_in])[0]
    order.items.append(item)
    touch_order(order, user)

    db.commit()
    db.refresh(item)

    logger.info("Added item %s to order %s", item.id, order.order_number)

    return row_to_dict(item)


@router.put("/{item_id}")
def update_order_item(
    item_id: int,
    body: schemas.OrderItemUpdate,
    db: Session = Depends(get_db),
    user: models.User = Depends(get_approved_user)
):
    item = get_item_or_404(db, user, item_id)

    apply_changes(item, body.model_dump(exclude_unset=True))
    recompute_item(item)
    touch_order(item.order, user)

    db.commit()
    db.refresh(item)
    return row_to_dict(item)


@router.patch("/{item_id}/delivery-status")
def update_delivery_status(
    item_id: int,
    body: schemas.DeliveryStatusUpdate,
    db: Session = Depends(get_db),
    user: models.User = Depends(get_approved_user)
):
    item = get_item_or_404(db, user, item_id)
    order = item.order

    item.status = body.status
    if body.delivery_date is not None:
        item.delivery_date = body.delivery_date
    elif body.status == DELIVERED and item.delivery_date is None:
        item.delivery_date = date.today()

    if all(i.status == DELIVERED for i in order.items):
        order.status = DELIVERED
    order.updated_by = user.id

    db.commit()
    db.refresh(item)

    logger.info("Item %s of order %s marked %s", item.id, order.order_number, item.status)

    return {**row_to_dict(item), "order_status": order.status}


@router.delete("/{item_id}")
def delete_order_item(
    item_id: int,
    db: Session = Depends(get_db),
    user: models.User = Depends(get_approved_user)
):
    item = get_item_or_404(db, user, item_id)
    order = item.order

    # delete-orphan removes the row on commit
    order.items.remove(item)
    touch_order(order, user)

    db.commit()
    return {"message": "Order item deleted successfully"}
