import pytest

from retail.models import (
    Customer,
    GoalStatus,
    NotificationType,
    ProductStatus,
    SalesTarget,
    Supplier,
    TaxCategory,
)
from retail.services.catalog import (
    add_customer,
    add_goal,
    add_product,
    add_supplier,
    add_tax_tier,
    build_product,
    build_tax_tier,
    bulk_update_products,
    delete_goal,
    delete_products,
    delete_supplier,
    delete_tax_tier,
    find_sales_target,
    search_customers,
    set_goal_status,
    set_sales_target,
    supplier_products,
    update_customer,
    update_goal,
    update_product,
)
from retail.store import RetailStore


class TestProducts:
    def test_build_product_fills_every_location(self, store):
        p = build_product({"name": "Salt", "price": "20", "cost": 12, "stock": {"a": 4}}, store.locations)
        assert p.stock == {"a": 4, "wh": 0, "b": 0}
        assert p.category == "General"
        assert p.min_stock_level == 10
        assert p.status == ProductStatus.ACTIVE
        assert p.price == 20.0

    @pytest.mark.parametrize("price,msg", [("abc", "must be a number"), (-1, "cannot be negative")])
    def test_build_product_rejects_bad_numbers(self, store, price, msg):
        with pytest.raises(ValueError, match=msg):
            build_product({"name": "Salt", "price": price}, store.locations)

    def test_build_product_rejects_unknown_status(self, store):
        with pytest.raises(ValueError):
            build_product({"name": "Salt", "status": "Gone"}, store.locations)

    def test_build_product_rejects_bad_expiry_date(self, store):
        with pytest.raises(ValueError, match="Expiry date must be YYYY-MM-DD"):
            build_product({"name": "X", "price": 1, "cost": 1, "expiry_date": "31/12/2025"}, store.locations)

    def test_build_product_normalises_expiry_date(self, store):
        p = build_product({"name": "X", "expiry_date": " 2025-12-31 "}, store.locations)
        assert p.expiry_date == "2025-12-31"
        assert build_product({"name": "X", "expiry_date": ""}, store.locations).expiry_date is None

    def test_edit_keeps_identity_and_sale_date(self, store):
        rice = store.product("rice")
        edited = build_product({"name": "Rice (5kg)", "price": 110}, store.locations, existing=rice)
        update_product(store, edited)

        assert store.product("rice").name == "Rice (5kg)"
        assert store.product("rice").last_sale_date == "2024-06-10"
        assert len(store.products) == 2

    def test_add_and_delete(self, store):
        p = build_product({"name": "Salt", "sku": "SLT"}, store.locations)
        add_product(store, p)
        assert store.product(p.id) is p
        assert store.notifications[0].message == "Product Added: Salt"

        delete_products(store, [p.id, "oil"])
        assert [x.id for x in store.products] == ["rice"]
        assert store.notifications[0].message == "2 Products Deleted"

    def test_bulk_update(self, store):
        n = bulk_update_products(store, ["rice", "oil", "nope"], supplier="New Co", status=ProductStatus.SEASONAL)
        assert n == 2
        assert {p.supplier for p in store.products} == {"New Co"}
        assert {p.status for p in store.products} == {ProductStatus.SEASONAL}


class TestCustomers:
    def test_add_and_search(self, store):
        add_customer(store, Customer(id="c2", name="Bharat", phone="9111111111"))
        assert [c.id for c in search_customers(store.customers, "bha")] == ["c2"]
        assert [c.id for c in search_customers(store.customers, "90000")] == ["c1"]
        assert search_customers(store.customers, "") == []

    def test_update_keeps_counters(self, store):
        c = store.customer("c1")
        c.loyalty_points = 12
        c.total_purchases = 1234.0

        update_customer(store, Customer(id="c1", name="Asha K", phone="9000000001"))

        c = store.customer("c1")
        assert c.name == "Asha K"
        assert c.loyalty_points == 12
        assert c.total_purchases == 1234.0

    def test_update_unknown_is_ignored(self, store):
        update_customer(store, Customer(id="zz", name="Ghost", phone="0"))
        assert store.customer("zz") is None


class TestSuppliers:
    def _supplier(self, **kw):
        values = dict(
            id="s1", name="AgroFields Ltd", contact_person="V", phone="1", email="a@b.c",
            address="Punjab", rating=4.5, category="Grains", payment_terms="Net 30",
        )
        values.update(kw)
        return Supplier(**values)

    def test_crud(self, store):
        add_supplier(store, self._supplier())
        assert [p.id for p in supplier_products(store.products, "AgroFields Ltd")] == ["rice"]

        delete_supplier(store, "s1")
        assert store.suppliers == []
        assert store.notifications[0].message == "Supplier Deleted"


class TestTaxTiers:
    def test_build_requires_name_and_rate(self):
        with pytest.raises(ValueError, match="name"):
            build_tax_tier({"rate": 5})
        with pytest.raises(ValueError, match="rate"):
            build_tax_tier({"name": "GST 3%"})

    def test_add_and_delete(self, store):
        tier = build_tax_tier({"name": "GST 3%", "rate": 3, "cgst": 1.5, "sgst": 1.5, "category_type": "Goods"})
        assert tier.category_type == TaxCategory.GOODS

        add_tax_tier(store, tier)
        assert store.tax_tier(tier.id) is tier
        assert store.notifications[0].message == "New Tax Tier Added: GST 3%"

        delete_tax_tier(store, tier.id)
        assert store.tax_tier(tier.id) is None


class TestSalesTargets:
    def test_upsert_by_location_and_month(self, store):
        set_sales_target(store, SalesTarget(id="t1", location_id="a", month="2024-06", target_amount=1000))
        set_sales_target(store, SalesTarget(id="t2", location_id="a", month="2024-06", target_amount=2500))
        set_sales_target(store, SalesTarget(id="t3", location_id="a", month="2024-07", target_amount=500))

        assert len(store.sales_targets) == 2
        assert find_sales_target(store, "a", "2024-06").target_amount == 2500
        assert find_sales_target(store, "b", "2024-06") is None
        assert store.notifications[0].message == "Sales Target Updated"


def test_goals(store):
    g = add_goal(store, "Open a third store", "2024-12-31")
    assert g.status == GoalStatus.PENDING

    update_goal(store, g.id, "Open a fourth store")
    set_goal_status(store, g.id, GoalStatus.COMPLETED)
    assert store.goals[0].text == "Open a fourth store"
    assert store.goals[0].status == GoalStatus.COMPLETED

    delete_goal(store, g.id)
    assert store.goals == []


def test_notifications_keep_the_latest_fifty():
    store = RetailStore()
    for i in range(60):
        store.notify(NotificationType.INFO, f"event {i}")

    assert len(store.notifications) == 50
    assert store.notifications[0].message == "event 59"
    assert store.notifications[-1].message == "event 10"


def test_notification_limit_is_configurable():
    store = RetailStore(notification_limit=3)
    for i in range(5):
        store.notify(NotificationType.INFO, f"event {i}")
    assert [n.message for n in store.notifications] == ["event 4", "event 3", "event 2"]
