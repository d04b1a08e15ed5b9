from __future__ import annotations

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Optional


class ProductStatus(str, Enum):
    ACTIVE = "Active"
    DISCONTINUED = "Discontinued"
    SEASONAL = "Seasonal"


class LocationType(str, Enum):
    WAREHOUSE = "WAREHOUSE"
    STORE = "STORE"


class TransferStatus(str, Enum):
    COMPLETED = "COMPLETED"
    FAILED = "FAILED"


class PaymentMethod(str, Enum):
    CASH = "CASH"
    CARD = "CARD"
    UPI = "UPI"


class NotificationType(str, Enum):
    INFO = "INFO"
    SUCCESS = "SUCCESS"
    WARNING = "WARNING"
    ERROR = "ERROR"


class GoalStatus(str, Enum):
    PENDING = "Pending"
    COMPLETED = "Completed"


class TaxCategory(str, Enum):
    ESSENTIAL = "Essential"
    STANDARD = "Standard"
    LUXURY = "Luxury"
    GOODS = "Goods"


@dataclass(frozen=True)
class Location:
    id: str
    name: str
    address: str
    type: LocationType


@dataclass
class Product:
    id: str
    name: str
    category: str
    price: float
    cost: float
    hsn_code: str
    tax_rate: float  # percentage
    stock: dict[str, int] = field(default_factory=dict)  # location id -> quantity
    min_stock_level: int = 10  # global default
    min_stock_thresholds: dict[str, int] = field(default_factory=dict)  # location id -> override
    max_stock_level: Optional[int] = None
    lead_time_days: int = 7
    sku: str = ""
    barcode: Optional[str] = None
    supplier: Optional[str] = None
    expiry_date: Optional[str] = None  # ISO date
    status: ProductStatus = ProductStatus.ACTIVE
    last_sale_date: Optional[str] = None  # ISO date

    def stock_at(self, location_id: str) -> int:
        return int(self.stock.get(location_id, 0) or 0)

    def total_stock(self) -> int:
        return sum(int(q) for q in self.stock.values())

    def threshold_for(self, location_id: str) -> int:
        override = self.min_stock_thresholds.get(location_id)
        return int(override) if override is not None else int(self.min_stock_level)


@dataclass
class CartItem:
    """
    A product snapshot taken when it was added to the cart, plus quantity and
    the per-line discount percentage.
    """

    product: Product
    quantity: int
    discount: float = 0.0

    @property
    def product_id(self) -> str:
        return self.product.id


@dataclass(frozen=True)
class Sale:
    id: str
    date: str  # ISO date
    items: tuple[CartItem, ...]
    subtotal: float
    total_tax: float
    total_amount: float
    bill_discount: float  # percentage
    location_id: str
    payment_method: PaymentMethod
    transaction_id: str
    customer_id: Optional[str] = None
    customer_name: Optional[str] = None


@dataclass(frozen=True)
class Transfer:
    id: str
    product_id: str
    from_location_id: str
    to_location_id: str
    quantity: int
    date: str  # ISO datetime
    timestamp: float
    status: TransferStatus
    reason: str = ""
    notes: str = ""


@dataclass
class Customer:
    id: str
    name: str
    phone: str
    email: Optional[str] = None
    gst_number: Optional[str] = None
    address: Optional[str] = None
    loyalty_points: int = 0
    total_purchases: float = 0.0


@dataclass
class Supplier:
    id: str
    name: str
    contact_person: str
    phone: str
    email: str
    address: str
    rating: float  # 1-5
    category: str
    payment_terms: str  # e.g. "Net 30"
    last_supply_date: Optional[str] = None


@dataclass
class TaxTier:
    id: str
    name: str
    rate: float  # total percentage
    cgst: float
    sgst: float
    category_type: Optional[TaxCategory] = None


@dataclass
class SalesTarget:
    id: str
    location_id: str
    month: str  # YYYY-MM
    target_amount: float


@dataclass
class BusinessGoal:
    id: str
    text: str
    deadline: Optional[str] = None
    status: GoalStatus = GoalStatus.PENDING


@dataclass(frozen=True)
class Notification:
    id: str
    type: NotificationType
    message: str
    timestamp: float
    details: Optional[str] = None


def snapshot(product: Product) -> Product:
    # Detached copy: later stock changes must not leak into sale history.
    return replace(
        product,
        stock=dict(product.stock),
        min_stock_thresholds=dict(product.min_stock_thresholds),
    )
