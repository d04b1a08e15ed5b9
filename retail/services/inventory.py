from __future__ import annotations

from datetime import date
from typing import Iterable, Optional

from retail.models import LocationType, NotificationType, Product, Transfer, TransferStatus
from retail.store import RetailStore
from retail.utils import iso_now, new_id, now_ts, parse_iso_date

DEAD_STOCK_DAYS = 60
EXPIRY_WARNING_DAYS = 30
CLEARANCE_MAX_UNITS = 10
CLEARANCE_TARGET_BELOW = 10

SORT_OPTIONS = ("name", "stockAsc", "stockDesc", "valueDesc")
EXPIRY_FILTERS = ("all", "soon", "expired", "safe")


# -------------------------
# Stock movements
# -------------------------

def check_transfer(
    store: RetailStore,
    *,
    product_id: str,
    from_location_id: str,
    quantity: int,
) -> Optional[str]:
    """
    Advisory pre-check used by the transfer form to ask for confirmation.
    The engine re-validates in transfer_stock regardless of the answer.
    """
    product = store.product(product_id)
    if product is None:
        return None
    available = product.stock_at(from_location_id)
    if int(quantity) > available:
        return (
            f"Only {available} units of {product.name} available at "
            f"{store.location_name(from_location_id)}. Requested: {int(quantity)}."
        )
    return None


def _transfer_failure(
    store: RetailStore,
    product: Optional[Product],
    from_location_id: str,
    to_location_id: str,
    quantity: int,
) -> Optional[str]:
    if product is None:
        return "Product not found"
    if from_location_id == to_location_id:
        return "Source and destination locations must be different"
    if quantity <= 0:
        return f"Transfer quantity must be greater than zero. Requested: {quantity}"
    available = product.stock_at(from_location_id)
    if quantity > available:
        return (
            f"Insufficient stock in {store.location_name(from_location_id)}. "
            f"Requested: {quantity}, Available: {available}"
        )
    return None


def transfer_stock(
    store: RetailStore,
    *,
    product_id: str,
    from_location_id: str,
    to_location_id: str,
    quantity: int,
    notes: Optional[str] = None,
) -> Transfer:
    """
    Move stock of one product between two locations.

    The attempt is always recorded, including failures, so the transfer log
    doubles as an audit trail. Failures leave stock untouched and are
    reported through the FAILED record and an ERROR notification; nothing
    is raised to the caller.
    """
    quantity = int(quantity)
    product = store.product(product_id)
    from_name = store.location_name(from_location_id)
    to_name = store.location_name(to_location_id)

    reason = _transfer_failure(store, product, from_location_id, to_location_id, quantity)

    if reason is None:
        product.stock[from_location_id] = product.stock_at(from_location_id) - quantity
        product.stock[to_location_id] = product.stock_at(to_location_id) + quantity
        store.notify(
            NotificationType.SUCCESS,
            "Stock Transfer Successful",
            f"{quantity} units of {product.name} from {from_name} to {to_name}",
        )
    else:
        store.notify(NotificationType.ERROR, "Stock Transfer Failed", reason)

    transfer = Transfer(
        id=new_id("trf"),
        product_id=product_id,
        from_location_id=from_location_id,
        to_location_id=to_location_id,
        quantity=quantity,
        date=iso_now(),
        timestamp=now_ts(),
        status=TransferStatus.COMPLETED if reason is None else TransferStatus.FAILED,
        reason=reason or "",
        notes=notes or "",
    )
    store.transfers.insert(0, transfer)
    return transfer


def update_stock(store: RetailStore, product_id: str, location_id: str, delta: int) -> None:
    """
    Apply a signed delta to one location's stock, clamped at zero.

    A low-stock WARNING fires only on the downward crossing of the effective
    threshold, not on every call while already at or below it.
    """
    product = store.product(product_id)
    if product is None:
        return

    current = product.stock_at(location_id)
    new_stock = max(0, current + int(delta))
    product.stock[location_id] = new_stock

    threshold = effective_threshold(product, location_id)
    if new_stock <= threshold < current:
        store.notify(
            NotificationType.WARNING,
            f"Low Stock Alert: {product.name}",
            f"Location: {store.location_name(location_id)}. Remaining: {new_stock}",
        )


def bulk_transfer(
    store: RetailStore,
    product_ids: Iterable[str],
    *,
    from_location_id: str,
    to_location_id: str,
    quantity: int,
    notes: Optional[str] = None,
) -> list[Transfer]:
    return [
        transfer_stock(
            store,
            product_id=pid,
            from_location_id=from_location_id,
            to_location_id=to_location_id,
            quantity=quantity,
            notes=notes,
        )
        for pid in product_ids
    ]


def clear_dead_stock(store: RetailStore, product_id: str) -> Optional[Transfer]:
    """
    Push slow stock towards a store that is running low on it, tagged as a
    clearance movement. Returns None when the product has no stock anywhere.
    """
    product = store.product(product_id)
    if product is None or not store.locations:
        return None

    source = next((l for l in store.locations if product.stock_at(l.id) > 0), None)
    if source is None:
        return None

    target = next(
        (
            l
            for l in store.locations
            if l.type == LocationType.STORE and product.stock_at(l.id) < CLEARANCE_TARGET_BELOW
        ),
        store.locations[0],
    )

    qty = min(CLEARANCE_MAX_UNITS, product.stock_at(source.id))
    transfer = transfer_stock(
        store,
        product_id=product.id,
        from_location_id=source.id,
        to_location_id=target.id,
        quantity=qty,
        notes="Dead Stock Optimization",
    )
    if transfer.status == TransferStatus.COMPLETED:
        store.notify(
            NotificationType.INFO,
            "Dead Stock Clearance Initiated",
            f"Txn: {new_id('CLR-SALE')}. Moved {qty} units of {product.name} to {target.name} @ 20% OFF",
        )
    return transfer


def product_transfer_history(store: RetailStore, product_id: str) -> list[Transfer]:
    return [t for t in store.transfers if t.product_id == product_id]


# -------------------------
# Classification
# -------------------------

def effective_threshold(product: Product, location_id: str) -> int:
    return product.threshold_for(location_id)


def is_low_stock(
    product: Product,
    location_id: Optional[str] = None,
    location_ids: Iterable[str] = (),
) -> bool:
    """
    At a location: stock strictly below the effective threshold.
    Unfiltered: any location at or below its effective threshold. When no
    location ids are given, every location the product tracks is checked.
    """
    if location_id is not None:
        return product.stock_at(location_id) < effective_threshold(product, location_id)

    ids = list(location_ids) or sorted(set(product.stock) | set(product.min_stock_thresholds))
    return any(product.stock_at(lid) <= effective_threshold(product, lid) for lid in ids)


def is_dead_stock(
    product: Product,
    location_id: Optional[str] = None,
    today: Optional[date] = None,
    days: int = DEAD_STOCK_DAYS,
) -> bool:
    last_sale = parse_iso_date(product.last_sale_date)
    if last_sale is None:
        return False
    days_since_sale = ((today or date.today()) - last_sale).days
    if location_id is None:
        has_stock = any(int(q) > 0 for q in product.stock.values())
    else:
        has_stock = product.stock_at(location_id) > 0
    return days_since_sale > int(days) and has_stock


def expiry_status(product: Product, today: Optional[date] = None, warning_days: int = EXPIRY_WARNING_DAYS) -> str:
    expiry = parse_iso_date(product.expiry_date)
    if expiry is None:
        return "safe"
    diff = (expiry - (today or date.today())).days
    if diff < 0:
        return "expired"
    if diff <= int(warning_days):
        return "soon"
    return "safe"


def display_stock(product: Product, location_id: Optional[str] = None) -> int:
    return product.total_stock() if location_id is None else product.stock_at(location_id)


# -------------------------
# Views
# -------------------------

def filter_products(
    products: Iterable[Product],
    *,
    search: str = "",
    supplier: Optional[str] = None,
    category: Optional[str] = None,
    location_id: Optional[str] = None,
    expiry: str = "all",
    sort: str = "name",
    today: Optional[date] = None,
    warning_days: int = EXPIRY_WARNING_DAYS,
) -> list[Product]:
    if expiry not in EXPIRY_FILTERS:
        raise ValueError(f"Invalid expiry filter. Use one of: {', '.join(EXPIRY_FILTERS)}.")
    if sort not in SORT_OPTIONS:
        raise ValueError(f"Invalid sort option. Use one of: {', '.join(SORT_OPTIONS)}.")

    needle = (search or "").strip()
    lower = needle.lower()

    out: list[Product] = []
    for p in products:
        if needle:
            matches = (
                lower in p.name.lower()
                or (p.sku and lower in p.sku.lower())
                or (p.barcode and needle in p.barcode)
            )
            if not matches:
                continue
        if supplier and p.supplier != supplier:
            continue
        if category and p.category != category:
            continue
        if location_id and p.stock_at(location_id) == 0:
            continue
        if expiry != "all" and expiry_status(p, today=today, warning_days=warning_days) != expiry:
            continue
        out.append(p)

    def stock_of(p: Product) -> int:
        return display_stock(p, location_id)

    if sort == "stockAsc":
        out.sort(key=stock_of)
    elif sort == "stockDesc":
        out.sort(key=stock_of, reverse=True)
    elif sort == "valueDesc":
        out.sort(key=lambda p: stock_of(p) * float(p.cost), reverse=True)
    else:
        out.sort(key=lambda p: p.name.lower())
    return out


def inventory_metrics(
    store: RetailStore,
    location_id: Optional[str] = None,
    today: Optional[date] = None,
    dead_days: int = DEAD_STOCK_DAYS,
) -> dict:
    ids = store.location_ids()
    return {
        "total_items": sum(p.total_stock() for p in store.products),
        "total_value": round(sum(p.total_stock() * float(p.cost) for p in store.products), 2),
        "dead_stock_count": sum(1 for p in store.products if is_dead_stock(p, today=today, days=dead_days)),
        "low_stock_count": sum(
            1 for p in store.products if is_low_stock(p, location_id=location_id, location_ids=ids)
        ),
    }


def inventory_summary(
    store: RetailStore,
    location_id: Optional[str] = None,
    today: Optional[date] = None,
    *,
    dead_days: int = DEAD_STOCK_DAYS,
    warning_days: int = EXPIRY_WARNING_DAYS,
) -> list[dict]:
    ids = store.location_ids()
    rows: list[dict] = []
    for p in store.products:
        stock = display_stock(p, location_id)
        rows.append(
            {
                "id": p.id,
                "name": p.name,
                "sku": p.sku,
                "category": p.category,
                "supplier": p.supplier,
                "status": p.status.value,
                "stock": stock,
                "stock_value": round(stock * float(p.cost), 2),
                "low_stock": is_low_stock(p, location_id=location_id, location_ids=ids),
                "dead_stock": is_dead_stock(p, location_id=location_id, today=today, days=dead_days),
                "expiry": expiry_status(p, today=today, warning_days=warning_days),
            }
        )
    return rows
