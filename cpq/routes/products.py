import logging

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from cpq import models, schemas
from cpq.auth import get_approved_user
from cpq.database import get_db
from cpq.routes.common import TableParams, apply_changes, row_to_dict, distinct_options
from cpq.utils.numbering import generate_sku_id
from cpq.utils.pricing import price_with_gst
from cpq.utils.table_view import PRODUCT_COLUMNS

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/api/products",
    tags=["Products"]
)


def company_products(db: Session, user: models.User):
    return db.query(models.Product).filter(
        models.Product.company_name == user.company_name
    )


def get_product_or_404(db: Session, user: models.User, sku_id: str) -> models.Product:
    product = company_products(db, user).filter(
        models.Product.sku_id == sku_id
    ).first()
    if not product:
        raise HTTPException(status_code=404, detail="Product not found")
    return product


# ------------------------
# LIST / LOOKUPS
# ------------------------
@router.get("/")
def list_products(
    params: TableParams = Depends(),
    db: Session = Depends(get_db),
    user: models.User = Depends(get_approved_user)
):
    products = company_products(db, user).order_by(models.Product.product_name).all()
    view = params.view(PRODUCT_COLUMNS, products)
    return view.snapshot(serialize=row_to_dict)


@router.get("/generate-sku-id")
def new_sku_id(db: Session = Depends(get_db), _: models.User = Depends(get_approved_user)):
    return {"sku_id": generate_sku_id(db)}


@router.get("/brands")
def list_brands(db: Session = Depends(get_db), user: models.User = Depends(get_approved_user)):
    return distinct_options(p.brand for p in company_products(db, user).all())


@router.get("/categories")
def list_categories(db: Session = Depends(get_db), user: models.User = Depends(get_approved_user)):
    return distinct_options(p.category for p in company_products(db, user).all())


@router.get("/units")
def list_units(db: Session = Depends(get_db), user: models.User = Depends(get_approved_user)):
    return distinct_options(p.unit_of_measurement for p in company_products(db, user).all())


@router.get("/names")
def list_product_names(db: Session = Depends(get_db), user: models.User = Depends(get_approved_user)):
    return distinct_options(p.product_name for p in company_products(db, user).all())


@router.get("/brands-with-products")
def brands_with_products(db: Session = Depends(get_db), user: models.User = Depends(get_approved_user)):
    grouped = {}
    for product in company_products(db, user).order_by(models.Product.product_name).all():
        brand = product.brand or "Unbranded"
        grouped.setdefault(brand, []).append({
            "value": product.id,
            "label": product.product_name,
            "sku_id": product.sku_id,
        })

    return [
        {"brand": brand, "products": grouped[brand]}
        for brand in sorted(grouped)
    ]


@router.get("/name/{product_name}")
def get_product_by_name(
    product_name: str,
    db: Session = Depends(get_db),
    user: models.User = Depends(get_approved_user)
):
    product = company_products(db, user).filter(
        models.Product.product_name == product_name
    ).first()
    if not product:
        raise HTTPException(status_code=404, detail="Product not found")
    return row_to_dict(product)


@router.get("/{sku_id}")
def get_product(sku_id: str, db: Session = Depends(get_db), user: models.User = Depends(get_approved_user)):
    return row_to_dict(get_product_or_404(db, user, sku_id))


# ------------------------
# CREATE / UPDATE / DELETE
# ------------------------
@router.post("/", status_code=201)
def create_product(
    product: schemas.ProductCreate,
    db: Session = Depends(get_db),
    user: models.User = Depends(get_approved_user)
):
    existing = (
        db.query(models.Product)
        .filter(models.Product.sku_id == product.sku_id)
        .first()
    )
    if existing:
        raise HTTPException(status_code=409, detail="SKU already exists")

    new_product = models.Product(
        **product.model_dump(),
        price_with_gst=price_with_gst(product.price_per_piece, product.gst),
        company_name=user.company_name,
        user_id=user.id
    )
    db.add(new_product)
    db.commit()
    db.refresh(new_product)
    return row_to_dict(new_product)


@router.put("/{sku_id}")
def update_product(
    sku_id: str,
    product: schemas.ProductUpdate,
    db: Session = Depends(get_db),
    user: models.User = Depends(get_approved_user)
):
    db_product = get_product_or_404(db, user, sku_id)

    apply_changes(db_product, product.model_dump(exclude_unset=True))

    # Derived at save time, never on read
    db_product.price_with_gst = price_with_gst(db_product.price_per_piece, db_product.gst)

    db.commit()
    db.refresh(db_product)
    return row_to_dict(db_product)


@router.delete("/")
def delete_products(
    body: schemas.SkuIds,
    db: Session = Depends(get_db),
    user: models.User = Depends(get_approved_user)
):
    if not body.sku_ids:
        raise HTTPException(status_code=400, detail="No SKU IDs provided")

    product_ids = [
        p.id for p in company_products(db, user).filter(models.Product.sku_id.in_(body.sku_ids)).all()
    ]

    # Order lines keep their name / SKU snapshot but drop the product link
    db.query(models.OrderItem).filter(
        models.OrderItem.product_id.in_(product_ids)
    ).update({models.OrderItem.product_id: None}, synchronize_session=False)

    deleted = (
        db.query(models.Product)
        .filter(models.Product.id.in_(product_ids))
        .delete(synchronize_session=False)
    )
    db.commit()

    logger.info("User %s deleted %d product(s)", user.id, deleted)

    return {"message": "Product(s) deleted successfully", "deleted_count": deleted}
