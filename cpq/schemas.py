from datetime import date
from typing import List, Optional

from pydantic import BaseModel, Field, field_validator

from cpq.models import QuoteStatus


def _blank_to_none(value):
    if value == "":
        return None
    return value


# ------------------------
# USERS
# ------------------------

class UserCreate(BaseModel):
    id: Optional[str] = None
    email: str
    first_name: str
    last_name: str
    designation: Optional[str] = None
    company_name: Optional[str] = None
    team_name: Optional[str] = None


class UserUpdate(BaseModel):
    # company_name is fixed at registration
    email: Optional[str] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    designation: Optional[str] = None
    team_name: Optional[str] = None

    @field_validator("email", "first_name", "last_name")
    @classmethod
    def not_null(cls, value):
        if value is None:
            raise ValueError("may be omitted but not null")
        return value


class UserCheck(BaseModel):
    email: str


class UserIds(BaseModel):
    user_ids: List[str]


# ------------------------
# CUSTOMERS
# ------------------------

class AddressBlock(BaseModel):
    billing_street_address: Optional[str] = None
    billing_address_line2: Optional[str] = None
    billing_pin: Optional[str] = None
    billing_city: Optional[str] = None
    billing_district: Optional[str] = None
    billing_state: Optional[str] = None
    billing_country: Optional[str] = None

    shipping_street_address: Optional[str] = None
    shipping_address_line2: Optional[str] = None
    shipping_pin: Optional[str] = None
    shipping_city: Optional[str] = None
    shipping_district: Optional[str] = None
    shipping_state: Optional[str] = None
    shipping_country: Optional[str] = None

    wpc_street_address: Optional[str] = None
    wpc_address_line2: Optional[str] = None
    wpc_pin: Optional[str] = None
    wpc_city: Optional[str] = None
    wpc_district: Optional[str] = None
    wpc_state: Optional[str] = None
    wpc_country: Optional[str] = None


class CustomerCreate(AddressBlock):
    name: str
    email: str
    phone: str
    industry: str
    sales_rep: str
    website: Optional[str] = None
    ancillary_name: Optional[str] = None
    social_handles: Optional[dict[str, str]] = None
    type_of_customer: str = ""
    gst_number: Optional[str] = None
    same_as_billing: bool = True
    wpc_same_as_billing: bool = True
    images: List[str] = []


class CustomerUpdate(AddressBlock):
    name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    industry: Optional[str] = None
    sales_rep: Optional[str] = None
    website: Optional[str] = None
    ancillary_name: Optional[str] = None
    social_handles: Optional[dict[str, str]] = None
    type_of_customer: Optional[str] = None
    gst_number: Optional[str] = None
    same_as_billing: Optional[bool] = None
    wpc_same_as_billing: Optional[bool] = None
    images: Optional[List[str]] = None


class CustomerIds(BaseModel):
    ids: List[int]


# ------------------------
# POCS
# ------------------------

class PocCreate(BaseModel):
    customer_id: int
    name: str
    designation: str
    department: str
    phone: str
    email: str
    social_handles: Optional[dict[str, str]] = None
    remarks: Optional[str] = None


class PocUpdate(BaseModel):
    name: Optional[str] = None
    designation: Optional[str] = None
    department: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[str] = None
    social_handles: Optional[dict[str, str]] = None
    remarks: Optional[str] = None


# ------------------------
# PRODUCTS
# ------------------------

class ProductCreate(BaseModel):
    product_name: str
    sku_id: str
    price_per_piece: float = Field(..., ge=0)
    gst: float = Field(..., ge=0)
    stock_quantity: int = Field(..., ge=0)
    unit_of_measurement: str
    brand: Optional[str] = None
    category: Optional[str] = None
    images: List[str] = []
    documents: List[str] = []
    features: Optional[str] = None
    specifications: Optional[str] = None
    notes: Optional[str] = None


class ProductUpdate(BaseModel):
    product_name: Optional[str] = None
    price_per_piece: Optional[float] = Field(None, ge=0)
    gst: Optional[float] = Field(None, ge=0)
    stock_quantity: Optional[int] = Field(None, ge=0)
    unit_of_measurement: Optional[str] = None
    brand: Optional[str] = None
    category: Optional[str] = None
    images: Optional[List[str]] = None
    documents: Optional[List[str]] = None
    features: Optional[str] = None
    specifications: Optional[str] = None
    notes: Optional[str] = None


class SkuIds(BaseModel):
    sku_ids: List[str]


# ------------------------
# QUOTES
# ------------------------

class QuoteItemIn(BaseModel):
    product_name: str
    quantity: int = Field(..., ge=0)
    unit_price: float = Field(..., ge=0)
    tax: float = Field(0, ge=0)
    discount: float = Field(0, ge=0)
    batch_no: Optional[str] = None
    unit: Optional[str] = None
    description: Optional[str] = None
    item_category: Optional[str] = None
    item_code: Optional[str] = None
    model_no: Optional[str] = None
    serial_no: Optional[str] = None
    size: Optional[str] = None
    exp_date: Optional[date] = None
    mfg_date: Optional[date] = None

    @field_validator("exp_date", "mfg_date", mode="before")
    @classmethod
    def blank_dates(cls, value):
        return _blank_to_none(value)


class QuoteCreate(BaseModel):
    customer_id: int
    invoice_date: date
    created_by: str
    items: List[QuoteItemIn] = []
    pending_approval_by: List[str] = []
    approved_by: List[str] = []
    remarks: Optional[str] = None
    visible_columns: Optional[List[str]] = None


class QuoteUpdate(BaseModel):
    invoice_date: Optional[date] = None
    status: Optional[QuoteStatus] = None
    items: Optional[List[QuoteItemIn]] = None
    pending_approval_by: Optional[List[str]] = None
    approved_by: Optional[List[str]] = None
    remarks: Optional[str] = None
    visible_columns: Optional[List[str]] = None


class QuoteRefNos(BaseModel):
    ref_nos: List[str]


# ------------------------
# ORDERS
# ------------------------

class OrderItemIn(BaseModel):
    product_name: str
    quantity: int = Field(..., ge=0)
    unit_price: float = Field(..., ge=0)
    tax_rate: float = Field(0, ge=0)
    discount_rate: float = Field(0, ge=0)
    product_id: Optional[int] = None
    sku_id: Optional[str] = None
    batch_no: Optional[str] = None
    unit: Optional[str] = None
    description: Optional[str] = None
    category: Optional[str] = None
    model_no: Optional[str] = None
    serial_no: Optional[str] = None
    size: Optional[str] = None
    status: str = "Pending"
    delivery_date: Optional[date] = None
    additional_details: Optional[str] = None
    warranty: Optional[str] = None
    manufacturer: Optional[str] = None

    @field_validator("delivery_date", mode="before")
    @classmethod
    def blank_dates(cls, value):
        return _blank_to_none(value)


class OrderBase(AddressBlock):
    order_name: Optional[str] = None
    order_date: Optional[date] = None
    order_creation_date: Optional[date] = None
    notes: Optional[str] = None
    order_remarks: Optional[str] = None
    payment_terms: Optional[str] = None
    payment_method: Optional[str] = None
    delivery_method: Optional[str] = None
    expected_delivery_date: Optional[date] = None
    attachments: Optional[List[str]] = None
    documents: Optional[List[str]] = None

    executive_name: Optional[str] = None
    delivery_instruction: Optional[str] = None
    mode_of_dispatch: Optional[str] = None
    warranty: Optional[str] = None
    performance_bank_guarantee: Optional[str] = None

    requires_license: Optional[bool] = None
    license_type: Optional[str] = None
    license_number: Optional[str] = None
    license_issue_date: Optional[date] = None
    license_expiry_date: Optional[date] = None
    license_quantity: Optional[str] = None
    license_status: Optional[str] = None
    license_verified: Optional[bool] = None
    liaisoning_remarks: Optional[str] = None
    liaisoning_verified: Optional[bool] = None

    liquidated_damages_inclusive: Optional[bool] = None
    liquidated_damages_amount: Optional[float] = Field(None, ge=0)
    freight_charge_inclusive: Optional[bool] = None
    freight_charge_amount: Optional[float] = Field(None, ge=0)
    transit_insurance_inclusive: Optional[bool] = None
    transit_insurance_amount: Optional[float] = Field(None, ge=0)
    installation_inclusive: Optional[bool] = None
    installation_amount: Optional[float] = Field(None, ge=0)
    security_deposit_inclusive: Optional[bool] = None
    security_deposit_amount: Optional[float] = Field(None, ge=0)
    liaisoning_inclusive: Optional[bool] = None
    liaisoning_amount: Optional[float] = Field(None, ge=0)

    same_as_billing: Optional[bool] = None
    wpc_same_as_billing: Optional[bool] = None

    poc_id: Optional[int] = None
    quote_id: Optional[int] = None
    pending_approval_by: Optional[List[str]] = None
    approved_by: Optional[List[str]] = None

    @field_validator(
        "order_date",
        "order_creation_date",
        "expected_delivery_date",
        "license_issue_date",
        "license_expiry_date",
        mode="before"
    )
    @classmethod
    def blank_dates(cls, value):
        return _blank_to_none(value)


class OrderCreate(OrderBase):
    customer_id: int
    order_number: Optional[str] = None
    status: str = "Pending"
    items: List[OrderItemIn] = []


class OrderUpdate(OrderBase):
    status: Optional[str] = None
    items: Optional[List[OrderItemIn]] = None


class OrderNumberRequest(BaseModel):
    customer_id: int


class OrderIds(BaseModel):
    ids: List[int]


class OrderItemCreate(OrderItemIn):
    order_id: int


class OrderItemUpdate(BaseModel):
    product_name: Optional[str] = None
    quantity: Optional[int] = Field(None, ge=0)
    unit_price: Optional[float] = Field(None, ge=0)
    tax_rate: Optional[float] = Field(None, ge=0)
    discount_rate: Optional[float] = Field(None, ge=0)
    product_id: Optional[int] = None
    sku_id: Optional[str] = None
    batch_no: Optional[str] = None
    unit: Optional[str] = None
    description: Optional[str] = None
    category: Optional[str] = None
    model_no: Optional[str] = None
    serial_no: Optional[str] = None
    size: Optional[str] = None
    status: Optional[str] = None
    delivery_date: Optional[date] = None
    additional_details: Optional[str] = None
    warranty: Optional[str] = None
    manufacturer: Optional[str] = None

    @field_validator("delivery_date", mode="before")
    @classmethod
    def blank_dates(cls, value):
        return _blank_to_none(value)


class DeliveryStatusUpdate(BaseModel):
    status: str = "Pending"
    delivery_date: Optional[date] = None

    @field_validator("delivery_date", mode="before")
    @classmethod
    def blank_dates(cls, value):
        return _blank_to_none(value)


# ------------------------
# LICENSES
# ------------------------

class LicenseDeviceIn(BaseModel):
    product_name: str
    brand: str
    frequency_range: str
    power_output: float = Field(..., ge=0)
    quantity_approved: int = Field(..., ge=0)
    equipment_type: str
    country_of_origin: Optional[str] = None
    technology_used: Optional[str] = None


class LicenseBase(BaseModel):
    processed_by: Optional[str] = None

    wpc_street_address: Optional[str] = None
    wpc_address_line2: Optional[str] = None
    wpc_pin: Optional[str] = None
    wpc_city: Optional[str] = None
    wpc_district: Optional[str] = None
    wpc_state: Optional[str] = None
    wpc_country: Optional[str] = None

    contact_person_id: Optional[int] = None
    geographical_coverage: Optional[str] = None
    end_use_purpose: Optional[str] = None

    license_document_url: Optional[str] = None
    eta_certificate_url: Optional[str] = None
    import_license_url: Optional[str] = None
    other_documents_urls: Optional[List[str]] = None


class LicenseCreate(LicenseBase):
    customer_id: int
    license_number: str
    license_type: str
    issuing_date: date
    expiry_date: date
    status: str
    issuing_authority: str
    devices: List[LicenseDeviceIn] = []


class LicenseUpdate(LicenseBase):
    customer_id: Optional[int] = None
    license_number: Optional[str] = None
    license_type: Optional[str] = None
    issuing_date: Optional[date] = None
    expiry_date: Optional[date] = None
    status: Optional[str] = None
    issuing_authority: Optional[str] = None
    devices: Optional[List[LicenseDeviceIn]] = None


class LicenseIds(BaseModel):
    license_ids: List[int]
