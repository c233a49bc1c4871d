import logging
from typing import List

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from cpq import models, schemas
from cpq.auth import get_approved_user
from cpq.database import get_db
from cpq.routes.common import TableParams, apply_changes, row_to_dict, distinct_options
from cpq.utils.address import ADDRESS_FIELDS, address_of
from cpq.utils.table_view import LICENSE_COLUMNS

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/api/licenses",
    tags=["Licenses"]
)

# Columns the client never writes directly
COMPUTED_FIELDS = (
    "id", "company_name", "user_id", "created_by", "last_updated_by",
    "created_at", "updated_at",
    "contact_person_id", "contact_person_name", "contact_person_number",
    "contact_person_email",
)


# -------------------------
# HELPERS
# -------------------------
def company_licenses(db: Session, user: models.User):
    return db.query(models.License).filter(
        models.License.company_name == user.company_name
    )


def get_license_or_404(db: Session, user: models.User, license_id: int) -> models.License:
    lic = company_licenses(db, user).filter(models.License.id == license_id).first()
    if not lic:
        raise HTTPException(status_code=404, detail="License not found")
    return lic


def licensed_customer(db: Session, user: models.User, customer_id: int) -> models.Customer:
    customer = db.query(models.Customer).filter(models.Customer.id == customer_id).first()
    if not customer:
        raise HTTPException(status_code=404, detail="Customer not found")
    if customer.company_name != user.company_name:
        raise HTTPException(status_code=403, detail="Not authorized for this customer")
    return customer


def build_devices(devices: List[schemas.LicenseDeviceIn]) -> List[models.LicenseDevice]:
    return [models.LicenseDevice(**device.model_dump()) for device in devices]


def set_contact_person(db: Session, lic: models.License, poc_id: int | None):
    if poc_id is None:
        lic.contact_person_id = None
        return

    poc = (
        db.query(models.Poc)
        .filter(models.Poc.id == poc_id, models.Poc.customer_id == lic.customer_id)
        .first()
    )
    if not poc:
        raise HTTPException(status_code=400, detail="Contact person not found for this customer")

    lic.contact_person_id = poc.id
    lic.contact_person_name = poc.name
    lic.contact_person_number = poc.phone
    lic.contact_person_email = poc.email


def prefill_wpc_address(data: dict, customer: models.Customer) -> dict:
    """An empty WPC block starts from the customer's WPC address."""
    if any(address_of(data, "wpc").values()):
        return data
    for field in ADDRESS_FIELDS:
        data[f"wpc_{field}"] = getattr(customer, f"wpc_{field}")
    return data


def serialize_license(lic: models.License) -> dict:
    return {
        **row_to_dict(lic),
        "customer_name": lic.customer.name if lic.customer else None,
        "devices": [row_to_dict(d) for d in lic.devices],
    }


# -------------------------
# LIST / LOOKUPS
# -------------------------
@router.get("/")
def list_licenses(
    params: TableParams = Depends(),
    db: Session = Depends(get_db),
    user: models.User = Depends(get_approved_user)
):
    licenses = company_licenses(db, user).order_by(models.License.expiry_date).all()
    view = params.view(LICENSE_COLUMNS, licenses)
    return view.snapshot(serialize=serialize_license)


@router.get("/select-options")
def license_select_options(db: Session = Depends(get_db), user: models.User = Depends(get_approved_user)):
    licenses = company_licenses(db, user).all()
    devices = [d for lic in licenses for d in lic.devices]

    return {
        "license_types": distinct_options(lic.license_type for lic in licenses),
        "statuses": distinct_options(lic.status for lic in licenses),
        "issuing_authorities": distinct_options(lic.issuing_authority for lic in licenses),
        "geographical_coverages": distinct_options(lic.geographical_coverage for lic in licenses),
        "end_use_purposes": distinct_options(lic.end_use_purpose for lic in licenses),
        "countries_of_origin": distinct_options(d.country_of_origin for d in devices),
        "equipment_types": distinct_options(d.equipment_type for d in devices),
        "technologies_used": distinct_options(d.technology_used for d in devices),
    }


@router.get("/{license_id}")
def get_license(
    license_id: int,
    db: Session = Depends(get_db),
    user: models.User = Depends(get_approved_user)
):
    return serialize_license(get_license_or_404(db, user, license_id))


# -------------------------
# CREATE / UPDATE
# -------------------------
@router.post("/", status_code=201)
def create_license(
    body: schemas.LicenseCreate,
    db: Session = Depends(get_db),
    user: models.User = Depends(get_approved_user)
):
    customer = licensed_customer(db, user, body.customer_id)

    if body.expiry_date < body.issuing_date:
        raise HTTPException(status_code=400, detail="Expiry date is before issuing date")

    data = body.model_dump(exclude={"devices", "contact_person_id"})
    if data.get("other_documents_urls") is None:
        data["other_documents_urls"] = []
    prefill_wpc_address(data, customer)

    lic = models.License(
        **data,
        company_name=user.company_name,
        user_id=user.id,
        created_by=user.full_name,
        last_updated_by=user.full_name,
        devices=build_devices(body.devices)
    )
    set_contact_person(db, lic, body.contact_person_id)

    db.add(lic)
    db.commit()
    db.refresh(lic)

    logger.info("Created license %s for customer %s", lic.license_number, customer.id)

    return serialize_license(lic)


@router.put("/{license_id}")
def update_license(
    license_id: int,
    body: schemas.LicenseUpdate,
    db: Session = Depends(get_db),
    user: models.User = Depends(get_approved_user)
):
    lic = get_license_or_404(db, user, license_id)
    changes = body.model_dump(exclude_unset=True, exclude={"devices"})

    if changes.get("customer_id") is not None:
        licensed_customer(db, user, changes["customer_id"])

    apply_changes(lic, changes, skip=COMPUTED_FIELDS)

    if lic.expiry_date < lic.issuing_date:
        raise HTTPException(status_code=400, detail="Expiry date is before issuing date")

    if "contact_person_id" in changes:
        set_contact_person(db, lic, changes["contact_person_id"])
    elif changes.get("customer_id") is not None:
        # A contact of the previous customer no longer applies
        set_contact_person(db, lic, None)
    if body.devices is not None:
        # Devices are replaced as a whole
        lic.devices = build_devices(body.devices)

    lic.last_updated_by = user.full_name

    db.commit()
    db.refresh(lic)
    return serialize_license(lic)


# -------------------------
# DELETE
# -------------------------
@router.delete("/{license_id}")
def delete_license(
    license_id: int,
    db: Session = Depends(get_db),
    user: models.User = Depends(get_approved_user)
):
    lic = get_license_or_404(db, user, license_id)
    db.delete(lic)
    db.commit()
    return {"message": "License deleted successfully"}


@router.post("/delete-many")
def delete_licenses(
    body: schemas.LicenseIds,
    db: Session = Depends(get_db),
    user: models.User = Depends(get_approved_user)
):
    if not body.license_ids:
        raise HTTPException(status_code=400, detail="No license IDs provided")

    requested = set(body.license_ids)
    licenses = company_licenses(db, user).filter(models.License.id.in_(requested)).all()
    if len(licenses) != len(requested):
        raise HTTPException(
            status_code=403,
            detail="Some licenses were not found or do not belong to your company"
        )

    for lic in licenses:
        db.delete(lic)
    db.commit()

    logger.info("User %s deleted %d license(s)", user.id, len(licenses))

    return {"message": "Licenses deleted successfully", "deleted_count": len(licenses)}
