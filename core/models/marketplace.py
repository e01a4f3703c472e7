# =============================================================================
# core/models/marketplace.py - Marketplace Entity Schemas
# =============================================================================
# Shapes of the trading tables:
# - SalesList / SalesListItem: a seller's uploaded surplus inventory
# - Product: one listed item, created from an approved sales list
# - PurchaseRequest: a buyer's request for a product
# - PurchaseOrder: the brokerage record created when a request is approved
# - Resale / Payment: downstream fulfilment records
#
# Status transitions are enforced by the database; these models only
# describe row shapes and validate incoming items.
# =============================================================================

from datetime import datetime
from enum import Enum
from uuid import UUID

from pydantic import Field, field_validator

from lib.utils import normalize_date

from .base import RecordModel, RequestModel


# =============================================================================
# Status Enums
# =============================================================================

class SalesListStatus(str, Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class ProductStatus(str, Enum):
    """
    - active: listed and purchasable
    - sold: stock exhausted by an approved purchase
    - inactive: hidden from the catalogue
    """
    ACTIVE = "active"
    SOLD = "sold"
    INACTIVE = "inactive"


class PurchaseRequestStatus(str, Enum):
    """
    Flow: pending -> confirmed -> approved
    Any open request may end as rejected or cancelled.
    """
    PENDING = "pending"
    CONFIRMED = "confirmed"
    APPROVED = "approved"
    REJECTED = "rejected"
    CANCELLED = "cancelled"


class PurchaseOrderStatus(str, Enum):
    REQUESTED = "requested"
    CONFIRMED = "confirmed"
    APPROVED = "approved"
    REJECTED = "rejected"
    DELIVERED = "delivered"
    COMPLETED = "completed"


class ResaleStatus(str, Enum):
    PREPARING = "preparing"
    CONFIRMED = "confirmed"
    SHIPPING = "shipping"
    DELIVERED = "delivered"
    COMPLETED = "completed"


class PaymentStatus(str, Enum):
    PENDING = "pending"
    COMPLETED = "completed"
    FAILED = "failed"
    REFUNDED = "refunded"


# Requests in these states block deleting the product they reference
ACTIVE_REQUEST_STATUSES = (
    PurchaseRequestStatus.PENDING.value,
    PurchaseRequestStatus.CONFIRMED.value,
)


# =============================================================================
# Sales Lists
# =============================================================================

class SalesListItem(RequestModel):
    """
    One line of a seller's sales list.

    Items are stored as JSON on the sales list and become products once the
    list is approved.
    """

    product_name: str = Field(..., min_length=1)
    specification: str | None = None
    manufacturer: str | None = None
    manufacturing_number: str | None = None
    expiry_date: str | None = None
    quantity: int = Field(..., gt=0)
    insurance_price: float | None = None
    selling_price: float = Field(..., gt=0)
    discount_rate: float | None = None
    storage_condition: str | None = None
    description: str | None = None

    @field_validator("expiry_date", mode="before")
    @classmethod
    def _normalize_expiry(cls, value):
        return normalize_date(value)


class SalesList(RecordModel):
    id: UUID
    seller_id: UUID
    items: list[dict] = Field(default_factory=list)
    status: SalesListStatus = SalesListStatus.PENDING
    submitted_at: datetime | None = None
    reviewed_at: datetime | None = None
    reviewed_by: UUID | None = None
    notes: str | None = None


# =============================================================================
# Products & Purchases
# =============================================================================

class Product(RecordModel):
    id: UUID
    sales_list_id: UUID | None = None
    seller_id: UUID
    product_name: str
    specification: str | None = None
    manufacturer: str | None = None
    manufacturing_number: str | None = None
    expiry_date: str | None = None
    quantity: int
    insurance_price: float | None = None
    selling_price: float
    discount_rate: float | None = None
    storage_condition: str | None = None
    description: str | None = None
    status: ProductStatus = ProductStatus.ACTIVE
    created_at: datetime | None = None
    updated_at: datetime | None = None


class PurchaseRequest(RecordModel):
    id: UUID
    buyer_id: UUID
    product_id: UUID
    quantity: int
    unit_price: float
    total_price: float
    shipping_address: str | None = None
    status: PurchaseRequestStatus = PurchaseRequestStatus.PENDING
    requested_at: datetime | None = None
    reviewed_at: datetime | None = None
    reviewed_by: UUID | None = None
    notes: str | None = None


class PurchaseOrder(RecordModel):
    """
    Brokerage record for an approved purchase.

    total_amount is what the buyer pays; purchase_price is what the seller
    receives (total_amount - commission).
    """

    id: UUID | None = None
    purchase_request_id: UUID
    seller_id: UUID
    product_id: UUID
    product_name: str
    quantity: int
    purchase_price: float
    commission: float
    total_amount: float
    status: PurchaseOrderStatus = PurchaseOrderStatus.APPROVED
    requested_at: datetime | None = None
    delivered_at: datetime | None = None
    notes: str | None = None


class Resale(RecordModel):
    id: UUID
    purchase_order_id: UUID
    purchase_request_id: UUID
    buyer_id: UUID
    product_id: UUID
    quantity: int
    selling_price: float
    total_price: float
    shipping_address: str | None = None
    status: ResaleStatus = ResaleStatus.PREPARING
    shipped_at: datetime | None = None
    delivered_at: datetime | None = None
    tracking_number: str | None = None


class Payment(RecordModel):
    id: UUID
    purchase_request_id: UUID | None = None
    purchase_order_id: UUID | None = None
    payment_method: str
    amount: float
    payment_status: PaymentStatus = PaymentStatus.PENDING
    transaction_id: str | None = None
    paid_at: datetime | None = None
    created_at: datetime | None = None
