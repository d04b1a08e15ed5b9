from __future__ import annotations

from dataclasses import replace
from typing import Any, Iterable, Mapping, Optional

from retail.models import (
    BusinessGoal,
    Customer,
    GoalStatus,
    Location,
    NotificationType,
    Product,
    ProductStatus,
    SalesTarget,
    Supplier,
    TaxCategory,
    TaxTier,
)
from retail.store import RetailStore
from retail.utils import new_id, parse_iso_date

DEFAULT_CATEGORY = "General"
DEFAULT_HSN = "0000"
DEFAULT_MIN_STOCK = 10
DEFAULT_LEAD_TIME_DAYS = 7


def _replace_by_id(items: list, record: Any) -> bool:
    for i, existing in enumerate(items):
        if existing.id == record.id:
            items[i] = record
            return True
    return False


def _clean(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    s = str(value).strip()
    return s if s else None


def _number(value: Any, label: str, *, default: float = 0.0) -> float:
    if value is None or str(value).strip() == "":
        return float(default)
    try:
        n = float(value)
    except (TypeError, ValueError):
        raise ValueError(f"{label} must be a number.")
    if n < 0:
        raise ValueError(f"{label} cannot be negative.")
    return n


def _iso_date(value: Any, label: str) -> Optional[str]:
    s = _clean(value)
    if s is None:
        return None
    try:
        return parse_iso_date(s).isoformat()
    except ValueError:
        raise ValueError(f"{label} must be YYYY-MM-DD.")


def _quantities(values: Optional[Mapping[str, Any]], label: str) -> dict[str, int]:
    return {str(k): int(_number(v, label)) for k, v in (values or {}).items() if v is not None}


# -------------------------
# Products
# -------------------------

def build_product(
    form: Mapping[str, Any],
    locations: Iterable[Location],
    existing: Optional[Product] = None,
) -> Product:
    """
    Turn raw form values into a Product.

    Every known location gets an explicit stock entry (0 when not entered),
    and unset fields fall back to the same defaults the add form shows.
    """
    stock = _quantities(form.get("stock"), "Stock")
    for loc in locations:
        stock.setdefault(loc.id, 0)

    status = form.get("status") or ProductStatus.ACTIVE
    try:
        status = ProductStatus(status)
    except ValueError:
        raise ValueError("Invalid status. Use Active, Discontinued or Seasonal.")

    max_stock = form.get("max_stock_level")

    return Product(
        id=existing.id if existing else new_id("prod"),
        name=_clean(form.get("name")) or "New Product",
        sku=_clean(form.get("sku")) or "",
        category=_clean(form.get("category")) or DEFAULT_CATEGORY,
        price=_number(form.get("price"), "Price"),
        cost=_number(form.get("cost"), "Cost"),
        hsn_code=_clean(form.get("hsn_code")) or DEFAULT_HSN,
        tax_rate=_number(form.get("tax_rate"), "Tax rate"),
        stock=stock,
        min_stock_level=int(_number(form.get("min_stock_level"), "Min stock", default=DEFAULT_MIN_STOCK)),
        min_stock_thresholds=_quantities(form.get("min_stock_thresholds"), "Min stock threshold"),
        max_stock_level=int(_number(max_stock, "Max stock")) if max_stock not in (None, "") else None,
        lead_time_days=existing.lead_time_days if existing else DEFAULT_LEAD_TIME_DAYS,
        supplier=_clean(form.get("supplier")),
        status=status,
        barcode=_clean(form.get("barcode")),
        expiry_date=_iso_date(form.get("expiry_date"), "Expiry date"),
        last_sale_date=existing.last_sale_date if existing else None,
    )


def add_product(store: RetailStore, product: Product) -> None:
    store.products.append(product)
    store.notify(NotificationType.SUCCESS, f"Product Added: {product.name}", f"SKU: {product.sku}")


def update_product(store: RetailStore, product: Product) -> None:
    if _replace_by_id(store.products, product):
        store.notify(NotificationType.INFO, f"Product Updated: {product.name}")


def delete_products(store: RetailStore, product_ids: Iterable[str]) -> None:
    ids = set(product_ids)
    store.products[:] = [p for p in store.products if p.id not in ids]
    store.notify(NotificationType.WARNING, f"{len(ids)} Products Deleted")


def bulk_update_products(
    store: RetailStore,
    product_ids: Iterable[str],
    *,
    supplier: Optional[str] = None,
    status: Optional[ProductStatus] = None,
) -> int:
    supplier = _clean(supplier)
    updated = 0
    for pid in product_ids:
        p = store.product(pid)
        if p is None:
            continue
        changes: dict[str, Any] = {}
        if supplier:
            changes["supplier"] = supplier
        if status:
            changes["status"] = ProductStatus(status)
        update_product(store, replace(p, **changes))
        updated += 1
    return updated


def product_categories(products: Iterable[Product]) -> list[str]:
    return sorted({p.category for p in products})


def product_suppliers(products: Iterable[Product]) -> list[str]:
    return sorted({p.supplier for p in products if p.supplier})


# -------------------------
# Customers
# -------------------------

def add_customer(store: RetailStore, customer: Customer) -> None:
    store.customers.append(customer)
    store.notify(NotificationType.SUCCESS, f"New Customer Added: {customer.name}")


def update_customer(store: RetailStore, customer: Customer) -> None:
    existing = store.customer(customer.id)
    if existing is None:
        return
    # Counters move only through recorded sales; contact edits can't reset them.
    customer = replace(
        customer,
        loyalty_points=existing.loyalty_points,
        total_purchases=existing.total_purchases,
    )
    _replace_by_id(store.customers, customer)
    store.notify(NotificationType.INFO, f"Customer Updated: {customer.name}")


def search_customers(customers: Iterable[Customer], text: str, limit: Optional[int] = 5) -> list[Customer]:
    needle = (text or "").strip().lower()
    if not needle:
        return []
    out = [c for c in customers if needle in c.name.lower() or needle in (c.phone or "")]
    return out[:limit] if limit else out


# -------------------------
# Suppliers
# -------------------------

def add_supplier(store: RetailStore, supplier: Supplier) -> None:
    store.suppliers.append(supplier)
    store.notify(NotificationType.SUCCESS, f"Supplier Added: {supplier.name}")


def update_supplier(store: RetailStore, supplier: Supplier) -> None:
    if _replace_by_id(store.suppliers, supplier):
        store.notify(NotificationType.INFO, f"Supplier Updated: {supplier.name}")


def delete_supplier(store: RetailStore, supplier_id: str) -> None:
    before = len(store.suppliers)
    store.suppliers[:] = [s for s in store.suppliers if s.id != supplier_id]
    if len(store.suppliers) != before:
        store.notify(NotificationType.WARNING, "Supplier Deleted")


def search_suppliers(suppliers: Iterable[Supplier], text: str) -> list[Supplier]:
    needle = (text or "").strip().lower()
    if not needle:
        return list(suppliers)
    return [s for s in suppliers if needle in s.name.lower() or needle in s.category.lower()]


def supplier_products(products: Iterable[Product], supplier_name: str) -> list[Product]:
    return [p for p in products if p.supplier == supplier_name]


# -------------------------
# Tax tiers
# -------------------------

def build_tax_tier(form: Mapping[str, Any]) -> TaxTier:
    name = _clean(form.get("name"))
    if not name:
        raise ValueError("Tax tier name is required.")
    if form.get("rate") in (None, ""):
        raise ValueError("Tax rate is required.")
    category = form.get("category_type") or TaxCategory.STANDARD
    return TaxTier(
        id=new_id("tax"),
        name=name,
        rate=_number(form.get("rate"), "Rate"),
        cgst=_number(form.get("cgst"), "CGST"),
        sgst=_number(form.get("sgst"), "SGST"),
        category_type=TaxCategory(category),
    )


def add_tax_tier(store: RetailStore, tier: TaxTier) -> None:
    store.tax_tiers.append(tier)
    store.notify(NotificationType.INFO, f"New Tax Tier Added: {tier.name}")


def update_tax_tier(store: RetailStore, tier: TaxTier) -> None:
    if _replace_by_id(store.tax_tiers, tier):
        store.notify(NotificationType.INFO, f"Tax Tier Updated: {tier.name}")


def delete_tax_tier(store: RetailStore, tier_id: str) -> None:
    store.tax_tiers[:] = [t for t in store.tax_tiers if t.id != tier_id]
    store.notify(NotificationType.WARNING, "Tax Tier Deleted")


# -------------------------
# Targets & goals
# -------------------------

def set_sales_target(store: RetailStore, target: SalesTarget) -> None:
    """Upsert keyed by (location_id, month)."""
    for i, t in enumerate(store.sales_targets):
        if t.location_id == target.location_id and t.month == target.month:
            store.sales_targets[i] = target
            break
    else:
        store.sales_targets.append(target)
    store.notify(NotificationType.INFO, "Sales Target Updated")


def find_sales_target(store: RetailStore, location_id: str, month: str) -> Optional[SalesTarget]:
    return next(
        (t for t in store.sales_targets if t.location_id == location_id and t.month == month),
        None,
    )


def add_goal(store: RetailStore, text: str, deadline: Optional[str] = None) -> BusinessGoal:
    goal = BusinessGoal(id=new_id("g"), text=str(text), deadline=_clean(deadline))
    store.goals.append(goal)
    return goal


def update_goal(store: RetailStore, goal_id: str, text: str) -> None:
    for g in store.goals:
        if g.id == goal_id:
            g.text = str(text)


def set_goal_status(store: RetailStore, goal_id: str, status: GoalStatus) -> None:
    for g in store.goals:
        if g.id == goal_id:
            g.status = GoalStatus(status)


def delete_goal(store: RetailStore, goal_id: str) -> None:
    store.goals[:] = [g for g in store.goals if g.id != goal_id]
