import random
from datetime import date, datetime, timedelta

from conftest import make_transaction
from services.analytics import (
    aggregate_by_category,
    build_trend_series,
    category_averages,
    detect_anomalies,
    filter_transactions,
    flag_anomalies,
    total_spend,
)


class FixedJitter:
    def __init__(self, value):
        self.value = value

    def uniform(self, low, high):
        return self.value


def test_category_totals_sum_to_total_spend():
    transactions = [
        make_transaction(1, 120.5, "Food"),
        make_transaction(2, 80, "Transport"),
        make_transaction(3, 300, "Food"),
        make_transaction(4, 0, "Bills"),
    ]

    totals = aggregate_by_category(transactions)

    assert {t.name: t.value for t in totals} == {"Food": 420.5, "Transport": 80, "Bills": 0}
    assert len({t.name for t in totals}) == len(totals)
    assert sum(t.value for t in totals) == total_spend(transactions) == 500.5


def test_empty_input_yields_empty_aggregates():
    assert aggregate_by_category([]) == []
    assert category_averages([]) == {}
    assert detect_anomalies([]) == []
    assert total_spend([]) == 0


def test_detects_amount_above_twice_category_mean():
    transactions = [
        make_transaction(1, 100),
        make_transaction(2, 100),
        make_transaction(3, 100),
        make_transaction(4, 1000),
        make_transaction(5, 200, "Transport"),
    ]

    anomalies = detect_anomalies(transactions)

    assert [t.id for t in anomalies] == [4]


def test_amount_exactly_twice_mean_is_not_anomalous():
    # Mean is 25, so 50 sits exactly on the threshold
    transactions = [make_transaction(1, 0), make_transaction(2, 50)]
    assert detect_anomalies(transactions) == []


def test_single_transaction_category_is_never_anomalous():
    assert detect_anomalies([make_transaction(1, 99999, "Shopping")]) == []


def test_flag_anomalies_returns_copies():
    transactions = [make_transaction(1, 10), make_transaction(2, 10), make_transaction(3, 10), make_transaction(4, 500)]

    flagged = flag_anomalies(transactions)

    assert [t.anomaly for t in flagged] == [False, False, False, True]
    assert not any(t.anomaly for t in transactions)


def test_anomalies_depend_on_the_filtered_set():
    june = datetime(2024, 6, 10, 12, 0)
    may = datetime(2024, 5, 10, 12, 0)
    transactions = [
        make_transaction(1, 100, date=june),
        make_transaction(2, 100, date=june),
        make_transaction(3, 1000, date=june),
        make_transaction(4, 5000, date=may),
    ]

    june_only = filter_transactions(transactions, month="2024-06")

    assert [t.id for t in detect_anomalies(june_only)] == [3]
    assert [t.id for t in detect_anomalies(transactions)] == [4]


def test_filter_by_category_all_keeps_everything():
    transactions = [make_transaction(1, 10, "Food"), make_transaction(2, 20, "Bills")]

    assert len(filter_transactions(transactions, category="All")) == 2
    assert [t.id for t in filter_transactions(transactions, category="Bills")] == [2]


def test_search_matches_title_category_and_amount():
    transactions = [
        make_transaction(1, 250, "Food", title="Lunch at Cafe"),
        make_transaction(2, 1299, "Shopping", title="Headphones"),
        make_transaction(3, 40, "Transport"),
    ]

    assert [t.id for t in filter_transactions(transactions, search="cafe")] == [1]
    assert [t.id for t in filter_transactions(transactions, search="SHOP")] == [2]
    assert [t.id for t in filter_transactions(transactions, search="129")] == [2]
    assert filter_transactions(transactions, search="nothing-matches") == []


def test_filter_sorts_newest_first():
    base = datetime(2024, 6, 1, 9, 0)
    transactions = [
        make_transaction(1, 10, date=base),
        make_transaction(2, 10, date=base + timedelta(days=2)),
        make_transaction(3, 10, date=base + timedelta(days=1)),
    ]

    assert [t.id for t in filter_transactions(transactions)] == [2, 3, 1]


def test_trend_series_has_window_then_predicted_days():
    today = date(2024, 6, 15)
    transactions = [
        make_transaction(1, 600, date=datetime(2024, 6, 15, 10, 0)),
        make_transaction(2, 400, date=datetime(2024, 6, 15, 18, 0)),
        make_transaction(3, 200, date=datetime(2024, 6, 4, 8, 0)),
        make_transaction(4, 999, date=datetime(2024, 6, 3, 8, 0)),
    ]

    trend = build_trend_series(transactions, today=today, rng=FixedJitter(1.0))

    assert len(trend) == 17
    assert [p.predicted for p in trend] == [False] * 12 + [True] * 5
    assert trend[0].date == "06-04" and trend[0].spend == 200
    assert trend[11].date == "06-15" and trend[11].spend == 1000
    assert trend[12].date == "06-16"
    assert trend[-1].date == "06-20"
    # Window mean: 1200 / 12
    assert all(p.spend == 100 for p in trend[12:])


def test_predicted_values_stay_within_jitter_band():
    today = date(2024, 6, 15)
    transactions = [make_transaction(i, 120, date=datetime(2024, 6, 15 - i, 12, 0)) for i in range(12)]

    trend = build_trend_series(transactions, today=today, rng=random.Random(7))

    for point in trend[12:]:
        assert 96 <= point.spend <= 144


def test_low_jitter_scales_prediction():
    today = date(2024, 6, 15)
    transactions = [make_transaction(1, 1200, date=datetime(2024, 6, 15, 12, 0))]

    trend = build_trend_series(transactions, today=today, rng=FixedJitter(0.8))

    assert [p.spend for p in trend[12:]] == [80] * 5


def test_trend_without_horizon_or_data():
    trend = build_trend_series([], window_days=3, horizon_days=0, today=date(2024, 1, 2))

    assert [(p.date, p.spend, p.predicted) for p in trend] == [
        ("12-31", 0, False),
        ("01-01", 0, False),
        ("01-02", 0, False),
    ]


def test_equal_amounts_are_never_anomalous():
    transactions = [make_transaction(i, 250, "Bills") for i in range(5)]
    assert detect_anomalies(transactions) == []
