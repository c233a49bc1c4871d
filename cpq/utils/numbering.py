import logging
import secrets
from datetime import date

from sqlalchemy.orm import Session

from cpq import models

logger = logging.getLogger(__name__)

SKU_ALPHABET = "ABCDEFGHIJKLMNOPQRSTUVWXYZ0123456789"
SKU_LENGTH = 4


# --- Quote reference numbers: 001, 002, ... ---
def next_ref_no(db: Session) -> str:
    last_quote = (
        db.query(models.Quote)
        .order_by(models.Quote.id.desc())
        .first()
    )

    if not last_quote or not last_quote.ref_no:
        return "001"

    try:
        last_number = int(last_quote.ref_no)
    except ValueError:
        # Hand-edited ref numbers fall back to the row count
        last_number = db.query(models.Quote).count()

    return f"{last_number + 1:03d}"


# --- Order numbers: COMPANY-YYMMDD-CUSTOMER-ANCILLARY-NNN ---
def order_number_prefix(company_name: str, customer_name: str, ancillary_name: str | None = None, today: date | None = None) -> str:
    today = today or date.today()

    customer_part = "-".join(
        part.strip() for part in (customer_name, ancillary_name) if part and part.strip()
    )

    return "-".join([
        (company_name or "COMPANY").upper(),
        today.strftime("%y%m%d"),
        customer_part.replace(" - ", "-").upper(),
    ])


def next_order_number(db: Session, company_name: str, customer: models.Customer, today: date | None = None) -> str:
    prefix = order_number_prefix(
        company_name,
        customer.name,
        customer.ancillary_name,
        today=today
    )

    existing = (
        db.query(models.Order.order_number)
        .filter(models.Order.order_number.like(f"{prefix}-%"))
        .all()
    )

    max_count = -1
    for (order_number,) in existing:
        count_str = order_number.split("-")[-1]
        if count_str.isdigit():
            max_count = max(max_count, int(count_str))

    order_number = f"{prefix}-{max_count + 1:03d}"
    logger.info("Generated order number %s", order_number)
    return order_number


# --- SKU ids: 4 chars from A-Z0-9, unique among products ---
def random_sku_id() -> str:
    return "".join(secrets.choice(SKU_ALPHABET) for _ in range(SKU_LENGTH))


def generate_sku_id(db: Session) -> str:
    while True:
        sku_id = random_sku_id()
        exists = (
            db.query(models.Product)
            .filter(models.Product.sku_id == sku_id)
            .first()
        )
        if not exists:
            return sku_id
