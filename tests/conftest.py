"""
Pytest fixtures for the retail services.

Every test gets a fresh in-memory store; nothing is shared between tests.
"""

from datetime import date

import pytest

from retail.models import Customer, Location, LocationType, Product, TaxCategory, TaxTier
from retail.services.demo_data import build_demo_store
from retail.store import RetailStore

TODAY = date(2024, 6, 15)


@pytest.fixture
def today():
    return TODAY


@pytest.fixture
def store():
    """Two stores and a warehouse, two products, one customer, two tax tiers."""
    return RetailStore(
        locations=[
            Location(id="wh", name="Warehouse", address="Depot", type=LocationType.WAREHOUSE),
            Location(id="a", name="Store A", address="Main St", type=LocationType.STORE),
            Location(id="b", name="Store B", address="High St", type=LocationType.STORE),
        ],
        products=[
            Product(
                id="rice",
                name="Rice",
                category="Grains",
                price=100,
                cost=80,
                hsn_code="1006",
                tax_rate=10,
                stock={"wh": 100, "a": 20, "b": 5},
                min_stock_level=10,
                min_stock_thresholds={"a": 15},
                sku="GRN-1",
                barcode="890100",
                supplier="AgroFields Ltd",
                last_sale_date="2024-06-10",
            ),
            Product(
                id="oil",
                name="Oil",
                category="Oils",
                price=200,
                cost=150,
                hsn_code="1512",
                tax_rate=5,
                stock={"wh": 50, "a": 0, "b": 30},
                min_stock_level=10,
                sku="OIL-1",
                supplier="PurePress Oils",
                expiry_date="2024-07-01",
                last_sale_date="2024-03-01",
            ),
        ],
        customers=[Customer(id="c1", name="Asha", phone="9000000001")],
        tax_tiers=[
            TaxTier(id="t5", name="GST 5%", rate=5, cgst=2.5, sgst=2.5, category_type=TaxCategory.ESSENTIAL),
            TaxTier(id="t10", name="GST 10%", rate=10, cgst=5, sgst=5, category_type=TaxCategory.STANDARD),
        ],
    )


@pytest.fixture
def demo_store():
    return build_demo_store(seed=7, today=TODAY)
