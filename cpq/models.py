from sqlalchemy import (
    Column,
    Integer,
    String,
    Float,
    Boolean,
    Date,
    DateTime,
    Text,
    JSON,
    ForeignKey,
    Enum
)
from sqlalchemy.orm import relationship
from datetime import datetime
import enum

from cpq.database import Base


# ------------------------
# ENUMS
# ------------------------

class QuoteStatus(str, enum.Enum):
    DRAFTED = "Drafted"
    PENDING_APPROVAL = "Pending Approval"
    APPROVED = "Approved"
    DECLINED = "Declined"
    ORDER_PLACED = "Order placed"


class UserRole(str, enum.Enum):
    USER = "user"
    ADMIN = "admin"


def _enum_values(enum_cls):
    return [member.value for member in enum_cls]


# ------------------------
# USER
# ------------------------

class User(Base):
    __tablename__ = "users"

    id = Column(String, primary_key=True, index=True)
    email = Column(String, unique=True, nullable=False, index=True)
    first_name = Column(String, nullable=False)
    last_name = Column(String, nullable=False)
    designation = Column(String, nullable=True)
    company_name = Column(String, nullable=True, index=True)
    team_name = Column(String, nullable=True)

    approval_by_admin = Column(Boolean, nullable=False, default=False)
    role = Column(
        Enum(UserRole, values_callable=_enum_values),
        nullable=False,
        default=UserRole.USER
    )

    # Bearer token presented in the Authorization header
    api_token = Column(String, unique=True, nullable=False, index=True)

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(
        DateTime,
        default=datetime.utcnow,
        onupdate=datetime.utcnow
    )

    @property
    def full_name(self):
        return f"{self.first_name} {self.last_name}"


# ------------------------
# CUSTOMER
# ------------------------

class Customer(Base):
    __tablename__ = "customers"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=False)
    website = Column(String, nullable=True)
    ancillary_name = Column(String, nullable=True)
    social_handles = Column(JSON, nullable=True)
    type_of_customer = Column(String, nullable=False, default="")
    company_name = Column(String, nullable=True, index=True)
    email = Column(String, nullable=False)
    phone = Column(String, nullable=False)
    industry = Column(String, nullable=False)
    gst_number = Column(String, nullable=True)
    sales_rep = Column(String, nullable=False)

    billing_street_address = Column(Text, nullable=True)
    billing_address_line2 = Column(String, nullable=True)
    billing_pin = Column(String, nullable=True)
    billing_city = Column(String, nullable=True)
    billing_district = Column(String, nullable=True)
    billing_state = Column(String, nullable=True)
    billing_country = Column(String, nullable=True)

    shipping_street_address = Column(Text, nullable=True)
    shipping_address_line2 = Column(String, nullable=True)
    shipping_pin = Column(String, nullable=True)
    shipping_city = Column(String, nullable=True)
    shipping_district = Column(String, nullable=True)
    shipping_state = Column(String, nullable=True)
    shipping_country = Column(String, nullable=True)
    same_as_billing = Column(Boolean, nullable=False, default=True)

    wpc_street_address = Column(Text, nullable=True)
    wpc_address_line2 = Column(String, nullable=True)
    wpc_pin = Column(String, nullable=True)
    wpc_city = Column(String, nullable=True)
    wpc_district = Column(String, nullable=True)
    wpc_state = Column(String, nullable=True)
    wpc_country = Column(String, nullable=True)
    wpc_same_as_billing = Column(Boolean, nullable=False, default=True)

    images = Column(JSON, nullable=False, default=list)

    user_id = Column(String, ForeignKey("users.id"), nullable=False)

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(
        DateTime,
        default=datetime.utcnow,
        onupdate=datetime.utcnow
    )

    pocs = relationship(
        "Poc",
        back_populates="customer",
        cascade="all, delete-orphan"
    )
    quotes = relationship(
        "Quote",
        back_populates="customer",
        cascade="all, delete-orphan"
    )
    orders = relationship(
        "Order",
        back_populates="customer",
        cascade="all, delete-orphan"
    )
    licenses = relationship(
        "License",
        back_populates="customer",
        cascade="all, delete-orphan"
    )


# ------------------------
# POINT OF CONTACT
# ------------------------

class Poc(Base):
    __tablename__ = "pocs"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=False)
    designation = Column(String, nullable=False)
    department = Column(String, nullable=False)
    social_handles = Column(JSON, nullable=True)
    phone = Column(String, nullable=False)
    email = Column(String, nullable=False)
    remarks = Column(Text, nullable=True)

    customer_id = Column(Integer, ForeignKey("customers.id"), nullable=False)

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(
        DateTime,
        default=datetime.utcnow,
        onupdate=datetime.utcnow
    )

    customer = relationship("Customer", back_populates="pocs")


# ------------------------
# PRODUCT
# ------------------------

class Product(Base):
    __tablename__ = "products"

    id = Column(Integer, primary_key=True, index=True)
    product_name = Column(String, nullable=False, index=True)
    brand = Column(String, nullable=True)
    category = Column(String, nullable=True)
    sku_id = Column(String, unique=True, nullable=False, index=True)
    images = Column(JSON, nullable=True, default=list)

    price_per_piece = Column(Float, nullable=False)
    gst = Column(Float, nullable=False)            # % e.g. 18
    price_with_gst = Column(Float, nullable=False)  # derived at save time
    stock_quantity = Column(Integer, nullable=False)
    unit_of_measurement = Column(String, nullable=False)

    documents = Column(JSON, nullable=True, default=list)
    features = Column(Text, nullable=True)
    specifications = Column(Text, nullable=True)
    notes = Column(Text, nullable=True)

    company_name = Column(String, nullable=True, index=True)
    user_id = Column(String, ForeignKey("users.id"), nullable=False)

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(
        DateTime,
        default=datetime.utcnow,
        onupdate=datetime.utcnow
    )


# ------------------------
# QUOTE
# ------------------------

class Quote(Base):
    __tablename__ = "quotes"

    id = Column(Integer, primary_key=True, index=True)
    ref_no = Column(String, unique=True, nullable=False, index=True)

    user_id = Column(String, ForeignKey("users.id"), nullable=False)
    customer_id = Column(Integer, ForeignKey("customers.id"), nullable=False)

    invoice_date = Column(Date, nullable=False)
    total_amount = Column(Float, nullable=False, default=0)
    status = Column(
        Enum(QuoteStatus, values_callable=_enum_values),
        nullable=False,
        default=QuoteStatus.DRAFTED
    )

    created_by = Column(String, nullable=False)
    company_name = Column(String, nullable=True, index=True)

    # Lists of user ids
    pending_approval_by = Column(JSON, nullable=True, default=list)
    approved_by = Column(JSON, nullable=True, default=list)

    remarks = Column(String, nullable=True)
    visible_columns = Column(JSON, nullable=True)

    updated_by = Column(String, ForeignKey("users.id"), nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(
        DateTime,
        default=datetime.utcnow,
        onupdate=datetime.utcnow
    )

    customer = relationship("Customer", back_populates="quotes")
    updater = relationship("User", foreign_keys=[updated_by])
    items = relationship(
        "QuoteItem",
        back_populates="quote",
        cascade="all, delete-orphan",
        order_by="QuoteItem.id"
    )


# ------------------------
# QUOTE ITEMS
# ------------------------

class QuoteItem(Base):
    __tablename__ = "quote_items"

    id = Column(Integer, primary_key=True, index=True)
    quote_id = Column(Integer, ForeignKey("quotes.id"), nullable=False)

    product_name = Column(String, nullable=False)
    unit_price = Column(Float, nullable=False)
    tax = Column(Float, nullable=False)          # %
    quantity = Column(Integer, nullable=False)
    discount = Column(Float, nullable=False)     # %
    amount = Column(Float, nullable=False)

    batch_no = Column(String, nullable=True)
    unit = Column(String, nullable=True)
    description = Column(String, nullable=True)
    item_category = Column(String, nullable=True)
    item_code = Column(String, nullable=True)
    model_no = Column(String, nullable=True)
    serial_no = Column(String, nullable=True)
    size = Column(String, nullable=True)
    exp_date = Column(Date, nullable=True)
    mfg_date = Column(Date, nullable=True)

    quote = relationship("Quote", back_populates="items")


# ------------------------
# ORDER
# ------------------------

class Order(Base):
    __tablename__ = "orders"

    id = Column(Integer, primary_key=True, index=True)
    order_number = Column(String, unique=True, nullable=False, index=True)
    order_name = Column(String, nullable=True)
    order_date = Column(Date, nullable=True)
    order_creation_date = Column(Date, nullable=True)
    status = Column(String, nullable=False, default="Pending")

    # Amounts (items)
    subtotal = Column(Float, default=0)
    tax_amount = Column(Float, default=0)
    discount_amount = Column(Float, default=0)
    total_amount = Column(Float, default=0)

    notes = Column(Text, nullable=True)
    order_remarks = Column(Text, nullable=True)
    payment_terms = Column(String, nullable=True)
    payment_method = Column(String, nullable=True)
    delivery_method = Column(String, nullable=True)
    expected_delivery_date = Column(Date, nullable=True)

    billing_street_address = Column(Text, nullable=True)
    billing_address_line2 = Column(String, nullable=True)
    billing_pin = Column(String, nullable=True)
    billing_city = Column(String, nullable=True)
    billing_district = Column(String, nullable=True)
    billing_state = Column(String, nullable=True)
    billing_country = Column(String, nullable=True)

    shipping_street_address = Column(Text, nullable=True)
    shipping_address_line2 = Column(String, nullable=True)
    shipping_pin = Column(String, nullable=True)
    shipping_city = Column(String, nullable=True)
    shipping_district = Column(String, nullable=True)
    shipping_state = Column(String, nullable=True)
    shipping_country = Column(String, nullable=True)
    same_as_billing = Column(Boolean, nullable=False, default=False)

    wpc_street_address = Column(Text, nullable=True)
    wpc_address_line2 = Column(String, nullable=True)
    wpc_pin = Column(String, nullable=True)
    wpc_city = Column(String, nullable=True)
    wpc_district = Column(String, nullable=True)
    wpc_state = Column(String, nullable=True)
    wpc_country = Column(String, nullable=True)
    wpc_same_as_billing = Column(Boolean, nullable=False, default=False)

    attachments = Column(JSON, nullable=True, default=list)
    documents = Column(JSON, nullable=True, default=list)

    # Additional details
    executive_name = Column(String, nullable=True)
    delivery_instruction = Column(Text, nullable=True)
    mode_of_dispatch = Column(String, nullable=True)
    warranty = Column(String, nullable=True)
    performance_bank_guarantee = Column(String, nullable=True)

    # License / liaisoning
    requires_license = Column(Boolean, nullable=False, default=False)
    license_type = Column(String, nullable=True)
    license_number = Column(String, nullable=True)
    license_issue_date = Column(Date, nullable=True)
    license_expiry_date = Column(Date, nullable=True)
    license_quantity = Column(String, nullable=True)
    license_status = Column(String, nullable=True)
    license_verified = Column(Boolean, nullable=False, default=False)
    liaisoning_remarks = Column(Text, nullable=True)
    liaisoning_verified = Column(Boolean, nullable=False, default=False)

    # Additional costs: inclusive costs are already part of the item prices
    liquidated_damages_inclusive = Column(Boolean, nullable=False, default=False)
    liquidated_damages_amount = Column(Float, nullable=False, default=0)
    freight_charge_inclusive = Column(Boolean, nullable=False, default=False)
    freight_charge_amount = Column(Float, nullable=False, default=0)
    transit_insurance_inclusive = Column(Boolean, nullable=False, default=False)
    transit_insurance_amount = Column(Float, nullable=False, default=0)
    installation_inclusive = Column(Boolean, nullable=False, default=False)
    installation_amount = Column(Float, nullable=False, default=0)
    security_deposit_inclusive = Column(Boolean, nullable=False, default=False)
    security_deposit_amount = Column(Float, nullable=False, default=0)
    liaisoning_inclusive = Column(Boolean, nullable=False, default=False)
    liaisoning_amount = Column(Float, nullable=False, default=0)

    additional_cost_total = Column(Float, nullable=False, default=0)
    grand_total = Column(Float, nullable=False, default=0)

    # Customer / POC snapshot at order time
    customer_id = Column(Integer, ForeignKey("customers.id"), nullable=False)
    customer_name = Column(String, nullable=True)
    customer_gst = Column(String, nullable=True)
    customer_email = Column(String, nullable=True)
    customer_phone = Column(String, nullable=True)
    poc_id = Column(Integer, ForeignKey("pocs.id", ondelete="SET NULL"), nullable=True)
    poc_name = Column(String, nullable=True)
    poc_email = Column(String, nullable=True)
    poc_phone = Column(String, nullable=True)
    poc_designation = Column(String, nullable=True)
    poc_department = Column(String, nullable=True)

    quote_id = Column(Integer, ForeignKey("quotes.id", ondelete="SET NULL"), nullable=True)

    pending_approval_by = Column(JSON, nullable=True, default=list)
    approved_by = Column(JSON, nullable=True, default=list)

    company_name = Column(String, nullable=True, index=True)
    user_id = Column(String, ForeignKey("users.id"), nullable=False)
    created_by = Column(String, nullable=True)
    updated_by = Column(String, ForeignKey("users.id"), nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(
        DateTime,
        default=datetime.utcnow,
        onupdate=datetime.utcnow
    )

    customer = relationship("Customer", back_populates="orders")
    poc = relationship("Poc")
    items = relationship(
        "OrderItem",
        back_populates="order",
        cascade="all, delete-orphan",
        order_by="OrderItem.id"
    )


# ------------------------
# ORDER ITEMS
# ------------------------

class OrderItem(Base):
    __tablename__ = "order_items"

    id = Column(Integer, primary_key=True, index=True)
    order_id = Column(Integer, ForeignKey("orders.id"), nullable=False)
    product_id = Column(Integer, ForeignKey("products.id", ondelete="SET NULL"), nullable=True)

    product_name = Column(String, nullable=False)
    sku_id = Column(String, nullable=True)
    unit_price = Column(Float, nullable=False)
    tax_rate = Column(Float, nullable=False, default=0)       # %
    quantity = Column(Integer, nullable=False)
    discount_rate = Column(Float, nullable=False, default=0)  # %

    subtotal = Column(Float, nullable=False)         # unit_price * quantity
    tax_amount = Column(Float, nullable=False)
    discount_amount = Column(Float, nullable=False)
    total_amount = Column(Float, nullable=False)

    batch_no = Column(String, nullable=True)
    unit = Column(String, nullable=True)
    description = Column(String, nullable=True)
    category = Column(String, nullable=True)
    model_no = Column(String, nullable=True)
    serial_no = Column(String, nullable=True)
    size = Column(String, nullable=True)
    status = Column(String, nullable=False, default="Pending")
    delivery_date = Column(Date, nullable=True)
    additional_details = Column(Text, nullable=True)
    warranty = Column(String, nullable=True)
    manufacturer = Column(String, nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow)

    order = relationship("Order", back_populates="items")
    product = relationship("Product")


# ------------------------
# LICENSES
# ------------------------

class License(Base):
    __tablename__ = "licenses"

    id = Column(Integer, primary_key=True, index=True)
    license_number = Column(String, nullable=False)
    license_type = Column(String, nullable=False)
    issuing_date = Column(Date, nullable=False)
    expiry_date = Column(Date, nullable=False)
    status = Column(String, nullable=False)
    issuing_authority = Column(String, nullable=False)

    company_name = Column(String, nullable=True, index=True)
    processed_by = Column(String, nullable=True)

    # Licensed customer
    customer_id = Column(Integer, ForeignKey("customers.id"), nullable=False)

    wpc_street_address = Column(Text, nullable=True)
    wpc_address_line2 = Column(String, nullable=True)
    wpc_pin = Column(String, nullable=True)
    wpc_city = Column(String, nullable=True)
    wpc_district = Column(String, nullable=True)
    wpc_state = Column(String, nullable=True)
    wpc_country = Column(String, nullable=True)

    contact_person_id = Column(Integer, ForeignKey("pocs.id", ondelete="SET NULL"), nullable=True)
    contact_person_name = Column(String, nullable=True)
    contact_person_number = Column(String, nullable=True)
    contact_person_email = Column(String, nullable=True)

    geographical_coverage = Column(String, nullable=True)
    end_use_purpose = Column(String, nullable=True)

    # Links to documents stored elsewhere
    license_document_url = Column(String, nullable=True)
    eta_certificate_url = Column(String, nullable=True)
    import_license_url = Column(String, nullable=True)
    other_documents_urls = Column(JSON, nullable=True, default=list)

    user_id = Column(String, ForeignKey("users.id"), nullable=False)
    created_by = Column(String, nullable=True)
    last_updated_by = Column(String, nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(
        DateTime,
        default=datetime.utcnow,
        onupdate=datetime.utcnow
    )

    customer = relationship("Customer", back_populates="licenses")
    contact_person = relationship("Poc")
    devices = relationship(
        "LicenseDevice",
        back_populates="license",
        cascade="all, delete-orphan",
        order_by="LicenseDevice.id"
    )


class LicenseDevice(Base):
    __tablename__ = "license_devices"

    id = Column(Integer, primary_key=True, index=True)
    license_id = Column(Integer, ForeignKey("licenses.id"), nullable=False)

    product_name = Column(String, nullable=False)
    brand = Column(String, nullable=False)
    frequency_range = Column(String, nullable=False)
    power_output = Column(Float, nullable=False)
    quantity_approved = Column(Integer, nullable=False)
    country_of_origin = Column(String, nullable=True)
    equipment_type = Column(String, nullable=False)
    technology_used = Column(String, nullable=True)

    license = relationship("License", back_populates="devices")
