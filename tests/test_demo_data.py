from retail.models import NotificationType
from retail.services.demo_data import build_demo_store, upsert_reference_data, wipe_all
from retail.services.inventory import is_dead_stock


def test_counts(demo_store):
    assert len(demo_store.locations) == 3
    assert len(demo_store.products) == 7
    assert len(demo_store.tax_tiers) == 5
    assert len(demo_store.suppliers) == 7
    assert len(demo_store.customers) == 4
    assert len(demo_store.transfers) == 80
    assert len(demo_store.sales_targets) == 4
    assert len(demo_store.goals) == 3
    assert demo_store.sales


def test_seeded_data_is_deterministic(today):
    a = build_demo_store(seed=11, today=today)
    b = build_demo_store(seed=11, today=today)
    assert [(s.id, s.total_amount) for s in a.sales] == [(s.id, s.total_amount) for s in b.sales]
    assert [t.quantity for t in a.transfers] == [t.quantity for t in b.transfers]


def test_history_ordering(demo_store):
    dates = [s.date for s in demo_store.sales]
    assert dates == sorted(dates)
    stamps = [t.timestamp for t in demo_store.transfers]
    assert stamps == sorted(stamps, reverse=True)
    assert len({s.id for s in demo_store.sales}) == len(demo_store.sales)


def test_initialised_notification(demo_store):
    assert demo_store.notifications[0].type == NotificationType.INFO
    assert demo_store.notifications[0].message == "System Initialized"


def test_has_a_dead_stock_item(demo_store, today):
    dead = [p.name for p in demo_store.products if is_dead_stock(p, today=today)]
    assert dead == ["Sugar (5kg)"]


def test_wipe_keeps_locations_and_reference_data_restores(demo_store, today):
    wipe_all(demo_store)
    assert demo_store.products == []
    assert demo_store.sales == []
    assert len(demo_store.notifications) == 0
    assert len(demo_store.locations) == 3

    upsert_reference_data(demo_store, today=today)
    upsert_reference_data(demo_store, today=today)
    assert len(demo_store.tax_tiers) == 5
    assert len(demo_store.suppliers) == 7
    assert len(demo_store.locations) == 3
