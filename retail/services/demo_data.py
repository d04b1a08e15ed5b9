from __future__ import annotations

import random
from datetime import date, datetime, time, timedelta, timezone
from typing import Optional

from retail.config import Settings
from retail.models import (
    BusinessGoal,
    CartItem,
    Customer,
    GoalStatus,
    Location,
    LocationType,
    NotificationType,
    PaymentMethod,
    Product,
    ProductStatus,
    Sale,
    SalesTarget,
    Supplier,
    TaxCategory,
    TaxTier,
    Transfer,
    TransferStatus,
    snapshot,
)
from retail.services.billing import compute_totals
from retail.store import RetailStore

SALES_HISTORY_DAYS = 365
DEMO_TRANSFER_COUNT = 80

DEFAULT_LOCATIONS = [
    ("loc-1", "Main Warehouse", "Industrial Area, Sector 4, New Delhi", LocationType.WAREHOUSE),
    ("loc-2", "City Center Store", "Market Road, Shop 12, Mumbai", LocationType.STORE),
    ("loc-3", "North Branch", "Highway 5, Exit 2, Chandigarh", LocationType.STORE),
]

DEFAULT_TAX_TIERS = [
    ("tax-0", "Exempt", TaxCategory.ESSENTIAL, 0, 0, 0),
    ("tax-5", "GST 5%", TaxCategory.ESSENTIAL, 5, 2.5, 2.5),
    ("tax-12", "GST 12%", TaxCategory.STANDARD, 12, 6, 6),
    ("tax-18", "GST 18%", TaxCategory.STANDARD, 18, 9, 9),
    ("tax-28", "GST 28%", TaxCategory.LUXURY, 28, 14, 14),
]

# (id, name, contact, phone, email, address, rating, category, terms, last supply offset)
DEFAULT_SUPPLIERS = [
    ("sup-1", "AgroFields Ltd", "Vikram Singh", "9876543210", "orders@agrofields.in", "Punjab, India", 4.5, "Grains", "Net 30", -5),
    ("sup-2", "PurePress Oils", "Anita Desai", "9988776655", "sales@purepress.com", "Gujarat, India", 4.8, "Oils", "Immediate", -12),
    ("sup-3", "Golden Harvest", "Rahul Roy", "9123456789", "rahul@goldenharvest.com", "MP, India", 3.9, "Grains", "Net 15", -20),
    ("sup-4", "Dal Mills Corp", "Suresh Raina", "8899001122", "supply@dalmills.com", "Maharashtra, India", 4.2, "Pulses", "Net 45", -2),
    ("sup-5", "FreshDairy Co", "Amulya V", "7766554433", "fresh@dairy.com", "Haryana, India", 4.9, "Dairy", "Net 7", -1),
    ("sup-6", "SpiceWorld", "Karan Johar", "9988223344", "trade@spiceworld.com", "Kerala, India", 4.0, "Spices", "Net 30", -45),
    ("sup-7", "SweetCane Ltd", "Priya Mani", "8877665544", "orders@sweetcane.com", "UP, India", 3.5, "Pantry", "Net 60", -60),
]

DEFAULT_CUSTOMERS = [
    ("cust-1", "Rajesh Kumar", "9876543210", "rajesh@example.com", "29ABCDE1234F1Z5", "123, MG Road, Mumbai", 120, 15000),
    ("cust-2", "Priya Singh", "9988776655", "priya@example.com", "", "45, Civil Lines, Delhi", 45, 5000),
    ("cust-3", "Amitabh Bachchan", "9123456789", "bigb@example.com", "27AAAAA0000A1Z5", "Juhu, Mumbai", 300, 45000),
    ("cust-4", "Deepika P", "9988001122", "dp@example.com", "", "Bangalore", 10, 1200),
]


def _day(today: date, offset: int) -> str:
    return (today + timedelta(days=offset)).isoformat()


def _products(today: date) -> list[Product]:
    d = lambda offset: _day(today, offset)  # noqa: E731
    return [
        Product(
            id="prod-1", name="Basmati Rice (Premium)", sku="GRN-RICE-001", category="Grains",
            price=120, cost=95, hsn_code="100630", tax_rate=5,
            stock={"loc-1": 500, "loc-2": 50, "loc-3": 20},
            min_stock_level=100, min_stock_thresholds={"loc-2": 30, "loc-3": 15}, max_stock_level=1000,
            lead_time_days=7, supplier="AgroFields Ltd", expiry_date=d(365), barcode="8901234567890",
            status=ProductStatus.ACTIVE, last_sale_date=d(-1),
        ),
        Product(
            id="prod-2", name="Sunflower Oil (1L)", sku="OIL-SUN-002", category="Oils",
            price=180, cost=140, hsn_code="151211", tax_rate=5,
            stock={"loc-1": 200, "loc-2": 40, "loc-3": 15},
            min_stock_level=50, max_stock_level=500, lead_time_days=14, supplier="PurePress Oils",
            expiry_date=d(180), barcode="8909876543210", status=ProductStatus.ACTIVE, last_sale_date=d(-2),
        ),
        Product(
            id="prod-3", name="Wheat Flour (Atta 10kg)", sku="GRN-WHT-003", category="Grains",
            price=450, cost=380, hsn_code="110100", tax_rate=0,
            stock={"loc-1": 100, "loc-2": 10, "loc-3": 5},
            min_stock_level=30, max_stock_level=200, lead_time_days=5, supplier="Golden Harvest",
            expiry_date=d(20), status=ProductStatus.ACTIVE, last_sale_date=d(-5),
        ),
        Product(
            id="prod-4", name="Masoor Dal (1kg)", sku="PLS-MAS-004", category="Pulses",
            price=90, cost=65, hsn_code="071340", tax_rate=5,
            stock={"loc-1": 300, "loc-2": 80, "loc-3": 60},
            min_stock_level=80, max_stock_level=400, lead_time_days=10, supplier="Dal Mills Corp",
            expiry_date=d(200), status=ProductStatus.ACTIVE, last_sale_date=d(-10),
        ),
        Product(
            id="prod-5", name="Milk (Tetra Pack 1L)", sku="DRY-MLK-005", category="Dairy",
            price=75, cost=60, hsn_code="040120", tax_rate=5,
            stock={"loc-1": 50, "loc-2": 12, "loc-3": 8},
            min_stock_level=40, max_stock_level=150, lead_time_days=3, supplier="FreshDairy Co",
            expiry_date=d(5), status=ProductStatus.ACTIVE, last_sale_date=d(0),
        ),
        Product(
            id="prod-6", name="Turmeric Powder (500g)", sku="SPC-TUR-006", category="Spices",
            price=150, cost=110, hsn_code="091030", tax_rate=5,
            stock={"loc-1": 400, "loc-2": 100, "loc-3": 50},
            min_stock_level=50, max_stock_level=600, lead_time_days=15, supplier="SpiceWorld",
            expiry_date=d(500), status=ProductStatus.ACTIVE, last_sale_date=d(-15),
        ),
        Product(
            id="prod-7", name="Sugar (5kg)", sku="PAN-SUG-007", category="Pantry",
            price=220, cost=190, hsn_code="170199", tax_rate=5,
            stock={"loc-1": 10, "loc-2": 5, "loc-3": 0},
            min_stock_level=50, max_stock_level=300, lead_time_days=7, supplier="SweetCane Ltd",
            expiry_date=d(700), status=ProductStatus.SEASONAL, last_sale_date=d(-75),
        ),
    ]


def upsert_reference_data(store: RetailStore, *, today: Optional[date] = None) -> None:
    today = today or date.today()

    known = set(store.location_ids())
    for lid, name, address, kind in DEFAULT_LOCATIONS:
        if lid not in known:
            store.locations.append(Location(id=lid, name=name, address=address, type=kind))

    known = {t.id for t in store.tax_tiers}
    for tid, name, category, rate, cgst, sgst in DEFAULT_TAX_TIERS:
        if tid not in known:
            store.tax_tiers.append(
                TaxTier(id=tid, name=name, rate=rate, cgst=cgst, sgst=sgst, category_type=category)
            )

    known = {s.id for s in store.suppliers}
    for sid, name, contact, phone, email, address, rating, category, terms, offset in DEFAULT_SUPPLIERS:
        if sid not in known:
            store.suppliers.append(
                Supplier(
                    id=sid, name=name, contact_person=contact, phone=phone, email=email, address=address,
                    rating=rating, category=category, payment_terms=terms, last_supply_date=_day(today, offset),
                )
            )


def wipe_all(store: RetailStore) -> None:
    # Locations are fixed for the lifetime of the app; everything else goes.
    for items in (
        store.products,
        store.sales,
        store.transfers,
        store.customers,
        store.suppliers,
        store.tax_tiers,
        store.sales_targets,
        store.goals,
    ):
        items.clear()
    store.notifications.clear()


def _demo_sales(rng: random.Random, products: list[Product], customers: list[Customer], today: date) -> list[Sale]:
    sales: list[Sale] = []
    for i in range(SALES_HISTORY_DAYS):
        sale_date = _day(today, -i)
        for t in range(rng.randrange(4)):
            location_id = "loc-2" if rng.random() > 0.3 else "loc-3"
            customer = rng.choice(customers) if rng.random() > 0.5 else None

            items = tuple(
                CartItem(product=snapshot(rng.choice(products)), quantity=rng.randint(1, 3), discount=0.0)
                for _ in range(rng.randint(1, 3))
            )
            totals = compute_totals(items, 0.0)

            if rng.random() > 0.6:
                method = PaymentMethod.UPI
            elif rng.random() > 0.5:
                method = PaymentMethod.CARD
            else:
                method = PaymentMethod.CASH

            sales.append(
                Sale(
                    id=f"INV-{10000 + i}-{t}",
                    date=sale_date,
                    items=items,
                    subtotal=totals.final_subtotal,
                    total_tax=totals.final_tax,
                    total_amount=totals.grand_total,
                    bill_discount=0.0,
                    location_id=location_id,
                    payment_method=method,
                    transaction_id=f"TXN-DEMO-{i:03d}{t}",
                    customer_id=customer.id if customer else None,
                    customer_name=customer.name if customer else "Walk-in",
                )
            )
    return sorted(sales, key=lambda s: s.date)


def _demo_transfers(rng: random.Random, products: list[Product], today: date) -> list[Transfer]:
    transfers: list[Transfer] = []
    for i in range(DEMO_TRANSFER_COUNT):
        product = rng.choice(products)
        when = datetime.combine(today - timedelta(days=rng.randrange(SALES_HISTORY_DAYS)), time(10, 0), tzinfo=timezone.utc)
        failed = rng.random() > 0.9
        transfers.append(
            Transfer(
                id=f"trf-{i}",
                product_id=product.id,
                from_location_id="loc-1",
                to_location_id="loc-2" if rng.random() > 0.5 else "loc-3",
                quantity=rng.randint(10, 59),
                date=when.isoformat(),
                timestamp=when.timestamp(),
                status=TransferStatus.FAILED if failed else TransferStatus.COMPLETED,
                reason="Stock Mismatch" if failed else "",
                notes="Auto-generated transfer",
            )
        )
    return sorted(transfers, key=lambda t: t.timestamp, reverse=True)


def load_demo_data(store: RetailStore, *, seed: int = 7, today: Optional[date] = None) -> None:
    rng = random.Random(seed)
    today = today or date.today()
    upsert_reference_data(store, today=today)

    products = _products(today)
    customers = [
        Customer(id=cid, name=name, phone=phone, email=email, gst_number=gst, address=address,
                 loyalty_points=points, total_purchases=float(total))
        for cid, name, phone, email, gst, address, points, total in DEFAULT_CUSTOMERS
    ]

    store.products.extend(products)
    store.customers.extend(customers)
    store.sales.extend(_demo_sales(rng, products, customers, today))
    store.transfers.extend(_demo_transfers(rng, products, today))

    this_month = today.isoformat()[:7]
    last_month = _day(today, -30)[:7]
    store.sales_targets.extend(
        [
            SalesTarget(id="tgt-1", location_id="loc-2", month=this_month, target_amount=60000),
            SalesTarget(id="tgt-2", location_id="loc-3", month=this_month, target_amount=40000),
            SalesTarget(id="tgt-3", location_id="loc-2", month=last_month, target_amount=55000),
            SalesTarget(id="tgt-4", location_id="loc-3", month=last_month, target_amount=35000),
        ]
    )
    store.goals.extend(
        [
            BusinessGoal(id="g1", text="Increase monthly revenue by 10%", deadline=_day(today, 60)),
            BusinessGoal(id="g2", text="Reduce dead stock by 50 units", deadline=_day(today, 30)),
            BusinessGoal(id="g3", text="Expand to new location in Pune", deadline=_day(today, -45), status=GoalStatus.COMPLETED),
        ]
    )


def build_demo_store(settings: Optional[Settings] = None, *, seed: int = 7, today: Optional[date] = None) -> RetailStore:
    settings = settings or Settings()
    store = RetailStore(notification_limit=settings.notification_limit)
    load_demo_data(store, seed=seed, today=today)
    store.notify(NotificationType.INFO, "System Initialized", f"Welcome to {settings.business_name}")
    return store
