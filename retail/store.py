from __future__ import annotations

import logging
from collections import deque
from dataclasses import dataclass, field
from typing import Optional

from retail.models import (
    BusinessGoal,
    Customer,
    Location,
    Notification,
    NotificationType,
    Product,
    Sale,
    SalesTarget,
    Supplier,
    TaxTier,
    Transfer,
)
from retail.utils import new_id, now_ts

logger = logging.getLogger(__name__)

DEFAULT_NOTIFICATION_LIMIT = 50

_LOG_LEVELS = {
    NotificationType.INFO: logging.INFO,
    NotificationType.SUCCESS: logging.INFO,
    NotificationType.WARNING: logging.WARNING,
    NotificationType.ERROR: logging.ERROR,
}


@dataclass
class RetailStore:
    """
    Owns every collection of the app. Pages and services receive the store
    explicitly; nothing else keeps its own copy of these lists.

    Transfers and notifications are kept newest-first. Notifications are
    bounded: only the last ``notification_limit`` entries are retained.
    """

    locations: list[Location] = field(default_factory=list)
    products: list[Product] = field(default_factory=list)
    sales: list[Sale] = field(default_factory=list)
    transfers: list[Transfer] = field(default_factory=list)
    customers: list[Customer] = field(default_factory=list)
    suppliers: list[Supplier] = field(default_factory=list)
    tax_tiers: list[TaxTier] = field(default_factory=list)
    sales_targets: list[SalesTarget] = field(default_factory=list)
    goals: list[BusinessGoal] = field(default_factory=list)
    notification_limit: int = DEFAULT_NOTIFICATION_LIMIT
    notifications: deque = field(default_factory=deque)

    def __post_init__(self) -> None:
        self.notifications = deque(self.notifications, maxlen=max(1, int(self.notification_limit)))

    # -------------------------
    # Notifications
    # -------------------------

    def notify(self, type: NotificationType, message: str, details: Optional[str] = None) -> Notification:
        n = Notification(
            id=new_id("not"),
            type=NotificationType(type),
            message=message,
            timestamp=now_ts(),
            details=details,
        )
        # appendleft on a bounded deque drops the oldest entry from the right.
        self.notifications.appendleft(n)
        logger.log(_LOG_LEVELS[n.type], "%s%s", message, f" ({details})" if details else "")
        return n

    # -------------------------
    # Lookups (never raise)
    # -------------------------

    def product(self, product_id: str) -> Optional[Product]:
        return next((p for p in self.products if p.id == product_id), None)

    def location(self, location_id: str) -> Optional[Location]:
        return next((l for l in self.locations if l.id == location_id), None)

    def location_name(self, location_id: str, default: str = "Unknown") -> str:
        loc = self.location(location_id)
        return loc.name if loc else default

    def customer(self, customer_id: Optional[str]) -> Optional[Customer]:
        if not customer_id:
            return None
        return next((c for c in self.customers if c.id == customer_id), None)

    def supplier(self, supplier_id: str) -> Optional[Supplier]:
        return next((s for s in self.suppliers if s.id == supplier_id), None)

    def tax_tier(self, tier_id: str) -> Optional[TaxTier]:
        return next((t for t in self.tax_tiers if t.id == tier_id), None)

    def location_ids(self) -> list[str]:
        return [l.id for l in self.locations]
