from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass
from datetime import date, timedelta
from typing import Iterable, Optional

import pandas as pd

from retail.models import Product, Sale, TaxTier
from retail.services.billing import line_totals
from retail.services.inventory import is_low_stock
from retail.store import RetailStore
from retail.utils import current_month, safe_div

DATE_PRESETS = ("thisMonth", "lastMonth", "thisQuarter")

TRANSACTION_COLUMNS = [
    "Invoice ID",
    "Date",
    "Location",
    "Customer",
    "Tax Category",
    "Taxable Amount",
    "Tax Amount",
    "Total Amount",
]


@dataclass(frozen=True)
class TaxSummary:
    taxable: float
    tax: float
    total: float
    count: int


@dataclass(frozen=True)
class BusinessMetrics:
    total_revenue: float
    total_cogs: float
    gross_profit: float
    gross_margin: float  # percentage of revenue
    inventory_value: float
    inventory_turnover: float


def _items_cost(sale: Sale) -> float:
    return sum(float(i.product.cost) * int(i.quantity) for i in sale.items)


def inventory_value(products: Iterable[Product]) -> float:
    return sum(float(p.cost) * p.total_stock() for p in products)


# -------------------------
# GST report
# -------------------------

def date_range(preset: str, today: Optional[date] = None) -> tuple[str, str]:
    today = today or date.today()
    if preset == "thisMonth":
        start, end = today.replace(day=1), today
    elif preset == "lastMonth":
        end = today.replace(day=1) - timedelta(days=1)
        start = end.replace(day=1)
    elif preset == "thisQuarter":
        q = (today.month - 1) // 3
        start, end = date(today.year, q * 3 + 1, 1), today
    else:
        raise ValueError(f"Invalid date range. Use one of: {', '.join(DATE_PRESETS)}.")
    return start.isoformat(), end.isoformat()


def filter_sales(
    sales: Iterable[Sale],
    *,
    start: Optional[str] = None,
    end: Optional[str] = None,
    location_id: Optional[str] = None,
    category: Optional[str] = None,
    tax_tier: Optional[TaxTier] = None,
) -> list[Sale]:
    """
    Dates are inclusive ISO dates. A sale matches a category or tax tier when
    at least one of its lines does.
    """
    if start and end and start > end:
        return []

    out: list[Sale] = []
    for s in sales:
        if location_id and s.location_id != location_id:
            continue
        if start and s.date[:10] < start:
            continue
        if end and s.date[:10] > end:
            continue
        if category and not any(i.product.category == category for i in s.items):
            continue
        if tax_tier is not None and not any(float(i.product.tax_rate) == float(tax_tier.rate) for i in s.items):
            continue
        out.append(s)
    return out


def tax_totals(sales: Iterable[Sale]) -> TaxSummary:
    taxable = tax = total = 0.0
    count = 0
    for s in sales:
        taxable += float(s.subtotal)
        tax += float(s.total_tax)
        total += float(s.total_amount)
        count += 1
    return TaxSummary(taxable=taxable, tax=tax, total=total, count=count)


def sale_tax_category(sale: Sale, tiers: Iterable[TaxTier]) -> str:
    tiers = list(tiers)
    categories = set()
    for item in sale.items:
        tier = next((t for t in tiers if float(t.rate) == float(item.product.tax_rate)), None)
        if tier is not None and tier.category_type:
            categories.add(tier.category_type.value)
    if not categories:
        return "Standard"
    if len(categories) == 1:
        return next(iter(categories))
    return "Mixed"


def tax_by_tier(sales: Iterable[Sale], tiers: Iterable[TaxTier]) -> list[dict]:
    """
    Per-tier taxable value and tax, with the CGST/SGST split in the tier's
    proportions. Line values are scaled by each sale's bill discount so the
    rows add up to the stored sale totals. A line counts towards the first
    tier with its rate, so tiers sharing a rate never double count.
    """
    tiers = list(tiers)
    acc: dict[str, dict] = {t.id: {"taxable": 0.0, "tax": 0.0} for t in tiers}
    by_rate: dict[float, str] = {}
    for t in tiers:
        by_rate.setdefault(float(t.rate), t.id)
    for s in sales:
        factor = 1 - float(s.bill_discount) / 100
        for item in s.items:
            tier_id = by_rate.get(float(item.product.tax_rate))
            if tier_id is None:
                continue
            lt = line_totals(item)
            acc[tier_id]["taxable"] += lt.discounted_value * factor
            acc[tier_id]["tax"] += lt.tax * factor

    rows: list[dict] = []
    for t in tiers:
        bucket = acc[t.id]
        tax = bucket["tax"]
        rows.append(
            {
                "tier": t.name,
                "rate": float(t.rate),
                "taxable": round(bucket["taxable"], 2),
                "tax": round(tax, 2),
                "cgst": round(tax * safe_div(t.cgst, t.rate), 2),
                "sgst": round(tax * safe_div(t.sgst, t.rate), 2),
            }
        )
    return rows


def transactions_frame(sales: Iterable[Sale], store: RetailStore) -> pd.DataFrame:
    rows = [
        [
            s.id,
            s.date,
            store.location_name(s.location_id),
            s.customer_name or "",
            sale_tax_category(s, store.tax_tiers),
            round(float(s.subtotal), 2),
            round(float(s.total_tax), 2),
            round(float(s.total_amount), 2),
        ]
        for s in sales
    ]
    return pd.DataFrame(rows, columns=TRANSACTION_COLUMNS)


def export_transactions_csv(sales: Iterable[Sale], store: RetailStore) -> str:
    return transactions_frame(sales, store).to_csv(index=False, float_format="%.2f")


def export_filename(start: str, end: str) -> str:
    return f"Transaction_History_{start}_{end}.csv"


# -------------------------
# Analytics
# -------------------------

def business_metrics(sales: Iterable[Sale], products: Iterable[Product]) -> BusinessMetrics:
    total_revenue = 0.0
    total_cogs = 0.0
    for s in sales:
        total_revenue += float(s.total_amount)
        total_cogs += _items_cost(s)

    gross_profit = total_revenue - total_cogs
    value = inventory_value(products)
    return BusinessMetrics(
        total_revenue=total_revenue,
        total_cogs=total_cogs,
        gross_profit=gross_profit,
        gross_margin=safe_div(gross_profit, total_revenue) * 100.0,
        inventory_value=value,
        inventory_turnover=safe_div(total_cogs, value),
    )


def gross_profit(sales: Iterable[Sale]) -> float:
    # Dashboard figure: pre-tax subtotal less item cost.
    return sum(float(s.subtotal) - _items_cost(s) for s in sales)


def sales_by_location(store: RetailStore, sales: Optional[Iterable[Sale]] = None) -> dict[str, float]:
    data: dict[str, float] = defaultdict(float)
    for s in store.sales if sales is None else sales:
        data[store.location_name(s.location_id)] += float(s.total_amount)
    return dict(data)


def sales_by_category(sales: Iterable[Sale]) -> dict[str, float]:
    data: dict[str, float] = defaultdict(float)
    for s in sales:
        for i in s.items:
            data[i.product.category] += float(i.product.price) * int(i.quantity)
    return dict(data)


def sales_by_payment_method(sales: Iterable[Sale]) -> dict[str, float]:
    data: dict[str, float] = defaultdict(float)
    for s in sales:
        data[s.payment_method.value] += float(s.total_amount)
    return dict(data)


def daily_transaction_volume(sales: Iterable[Sale], days: int = 14) -> list[tuple[str, int]]:
    volume: dict[str, int] = defaultdict(int)
    for s in sales:
        volume[s.date[:10]] += 1
    return sorted(volume.items())[-int(days):] if days else sorted(volume.items())


def stock_by_location(store: RetailStore) -> dict[str, int]:
    return {loc.name: sum(p.stock_at(loc.id) for p in store.products) for loc in store.locations}


def inventory_overview(store: RetailStore) -> dict:
    total_items = sum(p.total_stock() for p in store.products)
    total_value = inventory_value(store.products)
    return {
        "total_items": total_items,
        "total_value": total_value,
        "low_stock_items": sum(1 for p in store.products if p.total_stock() < p.min_stock_level),
        "active_suppliers": len({p.supplier for p in store.products if p.supplier}),
        "total_transactions": len(store.sales) + len(store.transfers),
        "added_items": sum(int(t.quantity) for t in store.transfers),
        "used_items": sum(int(i.quantity) for s in store.sales for i in s.items),
        "avg_item_value": safe_div(total_value, total_items),
    }


def category_analysis(products: Iterable[Product]) -> list[dict]:
    cats: dict[str, dict] = {}
    for p in products:
        c = cats.setdefault(p.category, {"name": p.category, "count": 0, "qty": 0, "value": 0.0, "low_stock": 0})
        stock = p.total_stock()
        c["count"] += 1
        c["qty"] += stock
        c["value"] += stock * float(p.cost)
        if stock < p.min_stock_level:
            c["low_stock"] += 1
    return list(cats.values())


def supplier_analysis(store: RetailStore) -> list[dict]:
    rows = []
    for s in store.suppliers:
        products = [p for p in store.products if p.supplier == s.name]
        rows.append(
            {
                "name": s.name,
                "rating": float(s.rating),
                "products_count": len(products),
                "stock_value": inventory_value(products),
                "avg_lead_time_days": safe_div(sum(p.lead_time_days for p in products), len(products)),
            }
        )
    return sorted(rows, key=lambda r: r["stock_value"], reverse=True)


def top_customers(store: RetailStore, n: int = 5) -> list[tuple[str, float]]:
    ranked = sorted(store.customers, key=lambda c: c.total_purchases, reverse=True)
    return [(c.name, float(c.total_purchases)) for c in ranked[:n]]


def customer_history(sales: Iterable[Sale], customer_id: str) -> list[Sale]:
    return [s for s in sales if s.customer_id == customer_id]


def sales_target_progress(store: RetailStore, month: Optional[str] = None) -> list[dict]:
    month = month or current_month()
    rows = []
    for loc in store.locations:
        target = next(
            (t for t in store.sales_targets if t.location_id == loc.id and t.month == month),
            None,
        )
        actual = sum(
            float(s.total_amount) for s in store.sales if s.location_id == loc.id and s.date.startswith(month)
        )
        amount = float(target.target_amount) if target else 0.0
        rows.append(
            {
                "location_id": loc.id,
                "name": loc.name,
                "target": amount,
                "target_id": target.id if target else None,
                "actual": actual,
                "percent": min(100.0, actual / amount * 100.0) if amount > 0 else 0.0,
            }
        )
    return rows


def transaction_history(store: RetailStore) -> list[dict]:
    rows = [
        {"id": s.id, "type": "Sale", "date": s.date, "value": float(s.total_amount), "status": "Completed"}
        for s in store.sales
    ]
    for t in store.transfers:
        product = store.product(t.product_id)
        rows.append(
            {
                "id": t.id,
                "type": "Transfer",
                "date": t.date,
                "value": float(product.cost) * int(t.quantity) if product else 0.0,
                "status": t.status.value,
            }
        )
    # Sale dates are plain dates, transfer dates full timestamps; compare on the day.
    return sorted(rows, key=lambda r: r["date"][:10], reverse=True)


def low_stock_products(store: RetailStore, location_id: Optional[str] = None) -> list[Product]:
    ids = store.location_ids()
    return [p for p in store.products if is_low_stock(p, location_id=location_id, location_ids=ids)]


def insights(store: RetailStore) -> dict:
    orders = len(store.sales)
    revenue = sum(float(s.total_amount) for s in store.sales)
    avg_order_value = safe_div(revenue, orders)
    recent = store.sales[-10:]
    recent_avg = sum(float(s.total_amount) for s in recent) / 10
    growth = safe_div(recent_avg - avg_order_value, avg_order_value) * 100.0

    by_cat = sales_by_category(store.sales)
    top_category = max(by_cat.items(), key=lambda kv: kv[1])[0] if by_cat else "General"

    return {
        "avg_order_value": avg_order_value,
        "growth_pct": growth,
        "top_category": top_category,
        "gross_profit": gross_profit(store.sales),
        "order_frequency": "High" if orders > 50 else "Moderate",
    }
