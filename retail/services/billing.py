from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from datetime import date
from typing import Iterable, Optional

from retail.models import CartItem, NotificationType, PaymentMethod, Product, Sale, snapshot
from retail.services.inventory import update_stock
from retail.store import RetailStore
from retail.utils import new_id, parse_iso_date

logger = logging.getLogger(__name__)

LOYALTY_RUPEES_PER_POINT = 100
WALK_IN = "Walk-in"


@dataclass(frozen=True)
class BillTotals:
    raw_subtotal: float
    raw_tax: float
    bill_discount_amount: float
    final_subtotal: float
    final_tax: float
    grand_total: float


@dataclass(frozen=True)
class LineTotals:
    line_value: float
    discounted_value: float
    tax: float


def line_totals(item: CartItem) -> LineTotals:
    line_value = float(item.product.price) * int(item.quantity)
    discounted = line_value * (1 - float(item.discount) / 100)
    tax = discounted * (float(item.product.tax_rate) / 100)
    return LineTotals(line_value=line_value, discounted_value=discounted, tax=tax)


def compute_totals(items: Iterable[CartItem], bill_discount_percent: float = 0.0) -> BillTotals:
    """
    Invoice totals for a cart.

    Per-item discounts come off each line before tax. The bill discount then
    comes off the summed subtotal, and the summed tax is scaled by the same
    factor instead of being recomputed per line. Keep it that way: stored
    sales and reprints rely on this exact arithmetic.
    """
    raw_subtotal = 0.0
    raw_tax = 0.0
    for item in items:
        lt = line_totals(item)
        raw_subtotal += lt.discounted_value
        raw_tax += lt.tax

    pct = float(bill_discount_percent) / 100
    bill_discount_amount = raw_subtotal * pct
    final_subtotal = raw_subtotal - bill_discount_amount
    final_tax = raw_tax * (1 - pct)

    return BillTotals(
        raw_subtotal=raw_subtotal,
        raw_tax=raw_tax,
        bill_discount_amount=bill_discount_amount,
        final_subtotal=final_subtotal,
        final_tax=final_tax,
        grand_total=final_subtotal + final_tax,
    )


def loyalty_points_for(total_amount: float, rupees_per_point: int = LOYALTY_RUPEES_PER_POINT) -> int:
    return int(math.floor(float(total_amount) / rupees_per_point))


# -------------------------
# Cart editing
# -------------------------

def _find(cart: list[CartItem], product_id: str) -> Optional[CartItem]:
    return next((i for i in cart if i.product_id == product_id), None)


def add_to_cart(cart: list[CartItem], product: Product, location_id: str) -> CartItem:
    available = product.stock_at(location_id)
    existing = _find(cart, product.id)
    in_cart = existing.quantity if existing else 0

    if in_cart + 1 > available:
        raise ValueError(f"Stock limit reached! Only {available} units available at this location.")

    if existing:
        existing.quantity += 1
        return existing

    item = CartItem(product=snapshot(product), quantity=1, discount=0.0)
    cart.append(item)
    return item


def update_cart_quantity(cart: list[CartItem], product: Product, location_id: str, delta: int) -> None:
    item = _find(cart, product.id)
    if item is None:
        return
    new_qty = item.quantity + int(delta)
    if new_qty <= 0:
        # Removal goes through remove_from_cart.
        return
    available = product.stock_at(location_id)
    if new_qty > available:
        raise ValueError(f"Cannot add more. Stock limit: {available}")
    item.quantity = new_qty


def set_cart_discount(cart: list[CartItem], product_id: str, percent: float) -> None:
    item = _find(cart, product_id)
    if item is not None:
        item.discount = min(100.0, max(0.0, float(percent)))


def remove_from_cart(cart: list[CartItem], product_id: str) -> None:
    cart[:] = [i for i in cart if i.product_id != product_id]


# -------------------------
# Sales
# -------------------------

def finalize_sale(
    store: RetailStore,
    *,
    cart: Iterable[CartItem],
    bill_discount: float,
    payment_method: PaymentMethod,
    location_id: str,
    customer_id: Optional[str] = None,
    customer_name: Optional[str] = None,
    sale_date: Optional[str] = None,
) -> Sale:
    """
    Freeze the cart into an immutable Sale and record it. Clearing the cart
    is left to the caller.
    """
    items = tuple(CartItem(product=snapshot(i.product), quantity=int(i.quantity), discount=float(i.discount)) for i in cart)
    if not items:
        raise ValueError("Cart is empty.")

    bill_discount = min(100.0, max(0.0, float(bill_discount)))
    totals = compute_totals(items, bill_discount)

    customer = store.customer(customer_id)
    name = customer.name if customer else ((customer_name or "").strip() or WALK_IN)

    sale = Sale(
        id=new_id("INV"),
        date=sale_date or date.today().isoformat(),
        items=items,
        subtotal=totals.final_subtotal,
        total_tax=totals.final_tax,
        total_amount=totals.grand_total,
        bill_discount=bill_discount,
        location_id=location_id,
        payment_method=PaymentMethod(payment_method),
        transaction_id=new_id("TXN"),
        customer_id=customer.id if customer else None,
        customer_name=name,
    )
    add_sale(store, sale)
    return sale


def _is_later(candidate: str, current: Optional[str]) -> bool:
    if not current:
        return True
    return parse_iso_date(candidate) > parse_iso_date(current)


def add_sale(store: RetailStore, sale: Sale) -> None:
    store.sales.append(sale)

    for item in sale.items:
        update_stock(store, item.product_id, sale.location_id, -int(item.quantity))
        product = store.product(item.product_id)
        # Backdated sales never move the last sale date backwards.
        if product is not None and _is_later(sale.date, product.last_sale_date):
            product.last_sale_date = sale.date

    store.notify(
        NotificationType.SUCCESS,
        f"New Sale Recorded: ₹{sale.total_amount:,.2f}",
        f"Invoice: {sale.id}",
    )

    customer = store.customer(sale.customer_id)
    if customer is not None:
        customer.loyalty_points += loyalty_points_for(sale.total_amount)
        customer.total_purchases += float(sale.total_amount)

    logger.info("Sale %s recorded at %s for %.2f", sale.id, sale.location_id, sale.total_amount)


def invoice_lines(sale: Sale) -> list[dict]:
    factor = 1 - float(sale.bill_discount) / 100
    rows: list[dict] = []
    for item in sale.items:
        lt = line_totals(item)
        rows.append(
            {
                "product": item.product.name,
                "hsn_code": item.product.hsn_code,
                "quantity": int(item.quantity),
                "price": float(item.product.price),
                "discount_pct": float(item.discount),
                "tax_rate": float(item.product.tax_rate),
                "taxable": round(lt.discounted_value * factor, 2),
                "tax": round(lt.tax * factor, 2),
                "amount": round((lt.discounted_value + lt.tax) * factor, 2),
            }
        )
    return rows


def sales_history(sales: Iterable[Sale], search: str = "") -> list[Sale]:
    needle = (search or "").strip().lower()
    out = [
        s
        for s in sales
        if not needle
        or needle in s.id.lower()
        or needle in (s.customer_name or "").lower()
        or needle in s.transaction_id.lower()
    ]
    return sorted(out, key=lambda s: s.date, reverse=True)
