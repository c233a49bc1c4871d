import logging
from typing import List

from fastapi import APIRouter, Depends, HTTPException, Query
from fastapi.responses import FileResponse
from sqlalchemy.orm import Session

from cpq import models, schemas
from cpq.auth import get_approved_user
from cpq.database import get_db
from cpq.pdf_utils import generate_quote_pdf
from cpq.routes.common import TableParams, apply_changes, row_to_dict
from cpq.utils.numbering import next_ref_no
from cpq.utils.pricing import line_amount, quote_total
from cpq.utils.table_view import QUOTE_COLUMNS, QUOTE_ITEM_COLUMNS

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/api/quotes",
    tags=["Quotes"]
)


# -------------------------
# HELPERS
# -------------------------
def company_quotes(db: Session, user: models.User):
    return db.query(models.Quote).filter(
        models.Quote.company_name == user.company_name
    )


def get_quote_or_404(db: Session, user: models.User, ref_no: str) -> models.Quote:
    quote = company_quotes(db, user).filter(models.Quote.ref_no == ref_no).first()
    if not quote:
        raise HTTPException(status_code=404, detail="Quote not found")
    return quote


def build_items(items: List[schemas.QuoteItemIn]) -> List[models.QuoteItem]:
    # Amounts are always recomputed here, whatever the client sent
    return [
        models.QuoteItem(
            **item.model_dump(),
            amount=line_amount(item.quantity, item.unit_price, item.discount, item.tax)
        )
        for item in items
    ]


def serialize_quote_row(quote: models.Quote) -> dict:
    return {
        "id": quote.id,
        "ref_no": quote.ref_no,
        "status": quote.status,
        "created_by": quote.created_by,
        "total_amount": quote.total_amount,
        "updated_at": quote.updated_at,
        "customer": {"id": quote.customer_id, "name": quote.customer.name},
        "items": [row_to_dict(i) for i in quote.items],
    }


def user_names(db: Session, user_ids) -> list[dict]:
    if not user_ids:
        return []
    users = db.query(models.User).filter(models.User.id.in_(user_ids)).all()
    return [{"id": u.id, "name": u.full_name} for u in users]


def serialize_quote_detail(db: Session, quote: models.Quote) -> dict:
    customer = quote.customer
    return {
        **row_to_dict(quote),
        "items": [row_to_dict(i) for i in quote.items],
        "customer": row_to_dict(customer) if customer else None,
        "pending_approval_by_details": user_names(db, quote.pending_approval_by),
        "approved_by_details": user_names(db, quote.approved_by),
        "last_updated_by": quote.updater.full_name if quote.updater else None,
    }


# -------------------------
# LIST QUOTES
# -------------------------
@router.get("/")
def list_quotes(
    params: TableParams = Depends(),
    customer_name: List[str] = Query([]),
    status: List[str] = Query([]),
    created_by: List[str] = Query([]),
    product_names: List[str] = Query([]),
    min_amount: float | None = None,
    max_amount: float | None = None,
    db: Session = Depends(get_db),
    user: models.User = Depends(get_approved_user)
):
    quotes = company_quotes(db, user).order_by(models.Quote.id).all()

    view = params.view(
        QUOTE_COLUMNS,
        quotes,
        column_filters={
            "customer.name": customer_name,
            "status": status,
            "created_by": created_by,
            "product_names": product_names,
        },
        range_filters={"total_amount": (min_amount, max_amount)},
    )
    return view.snapshot(serialize=serialize_quote_row)


# -------------------------
# CREATE QUOTE
# -------------------------
@router.post("/", status_code=201)
def create_quote(
    quote: schemas.QuoteCreate,
    db: Session = Depends(get_db),
    user: models.User = Depends(get_approved_user)
):
    customer = (
        db.query(models.Customer)
        .filter(models.Customer.id == quote.customer_id)
        .first()
    )
    if not customer:
        raise HTTPException(status_code=404, detail="Customer not found")
    if customer.company_name != user.company_name:
        raise HTTPException(status_code=403, detail="Not authorized for this customer")

    items = build_items(quote.items)

    new_quote = models.Quote(
        ref_no=next_ref_no(db),
        user_id=user.id,
        customer_id=customer.id,
        invoice_date=quote.invoice_date,
        created_by=quote.created_by,
        total_amount=quote_total(items),
        status=models.QuoteStatus.DRAFTED,
        company_name=user.company_name,
        pending_approval_by=quote.pending_approval_by,
        approved_by=quote.approved_by,
        remarks=quote.remarks,
        visible_columns=quote.visible_columns,
        items=items
    )
    db.add(new_quote)
    db.commit()
    db.refresh(new_quote)

    logger.info("Created quote %s for customer %s", new_quote.ref_no, customer.id)

    return serialize_quote_detail(db, new_quote)


# -------------------------
# QUOTE BY REF NO
# -------------------------
@router.get("/ref/{ref_no}")
def get_quote_by_ref_no(
    ref_no: str,
    db: Session = Depends(get_db),
    user: models.User = Depends(get_approved_user)
):
    return serialize_quote_detail(db, get_quote_or_404(db, user, ref_no))


@router.get("/ref/{ref_no}/items")
def list_quote_items(
    ref_no: str,
    params: TableParams = Depends(),
    db: Session = Depends(get_db),
    user: models.User = Depends(get_approved_user)
):
    quote = get_quote_or_404(db, user, ref_no)
    view = params.view(QUOTE_ITEM_COLUMNS, quote.items)
    return {
        **view.snapshot(serialize=row_to_dict),
        "total_amount": quote.total_amount,
    }


@router.put("/ref/{ref_no}")
def update_quote_by_ref_no(
    ref_no: str,
    body: schemas.QuoteUpdate,
    db: Session = Depends(get_db),
    user: models.User = Depends(get_approved_user)
):
    quote = get_quote_or_404(db, user, ref_no)
    data = body.model_dump(exclude_unset=True)

    items = data.pop("items", None)
    if items is not None:
        quote.items = build_items(body.items)
        quote.total_amount = quote_total(quote.items)

    pending = data.get("pending_approval_by", quote.pending_approval_by) or []
    approved = data.get("approved_by", quote.approved_by) or []
    # Asking someone to approve again withdraws their earlier approval
    data["approved_by"] = [uid for uid in approved if uid not in pending]

    apply_changes(quote, data)
    quote.updated_by = user.id

    db.commit()
    db.refresh(quote)
    return serialize_quote_detail(db, quote)


@router.post("/approve/{ref_no}")
def approve_quote(
    ref_no: str,
    db: Session = Depends(get_db),
    user: models.User = Depends(get_approved_user)
):
    quote = get_quote_or_404(db, user, ref_no)

    pending = list(quote.pending_approval_by or [])
    if user.id not in pending:
        raise HTTPException(
            status_code=400,
            detail="User is not pending approval for this quote."
        )

    # Reassign new lists so the JSON columns are flagged dirty
    quote.pending_approval_by = [uid for uid in pending if uid != user.id]
    quote.approved_by = list(quote.approved_by or []) + [user.id]

    if not quote.pending_approval_by and quote.status == models.QuoteStatus.PENDING_APPROVAL:
        quote.status = models.QuoteStatus.APPROVED

    db.commit()

    logger.info("User %s approved quote %s", user.id, ref_no)

    return {"message": "Quote approved successfully.", "status": quote.status}


# -------------------------
# QUOTE PDF
# -------------------------
@router.get("/download/{ref_no}")
def download_quote_pdf(
    ref_no: str,
    db: Session = Depends(get_db),
    user: models.User = Depends(get_approved_user)
):
    quote = get_quote_or_404(db, user, ref_no)

    try:
        pdf_path = generate_quote_pdf(quote=quote, customer=quote.customer)
    except OSError:
        logger.exception("PDF generation failed for quote %s", ref_no)
        raise HTTPException(status_code=500, detail="Failed to generate PDF")

    return FileResponse(
        path=pdf_path,
        media_type="application/pdf",
        headers={
            "Content-Disposition": f"inline; filename=quote-{ref_no}.pdf",
            "Cache-Control": "no-cache, no-store, must-revalidate",
        }
    )


# -------------------------
# BY ID / BULK DELETE
# -------------------------
@router.get("/{quote_id}")
def get_quote(
    quote_id: int,
    db: Session = Depends(get_db),
    user: models.User = Depends(get_approved_user)
):
    quote = company_quotes(db, user).filter(models.Quote.id == quote_id).first()
    if not quote:
        raise HTTPException(status_code=404, detail="Quote not found")
    return serialize_quote_detail(db, quote)


@router.delete("/")
def delete_quotes(
    body: schemas.QuoteRefNos,
    db: Session = Depends(get_db),
    user: models.User = Depends(get_approved_user)
):
    if not body.ref_nos:
        raise HTTPException(status_code=400, detail="Invalid Ref Numbers provided.")

    quotes = company_quotes(db, user).filter(models.Quote.ref_no.in_(body.ref_nos)).all()

    # Orders placed from these quotes stay, without the quote link
    db.query(models.Order).filter(
        models.Order.quote_id.in_([q.id for q in quotes])
    ).update({models.Order.quote_id: None}, synchronize_session=False)

    for quote in quotes:
        db.delete(quote)
    db.commit()

    logger.info("User %s deleted %d quote(s)", user.id, len(quotes))

    return {"message": "Quote(s) deleted successfully.", "deleted_count": len(quotes)}
