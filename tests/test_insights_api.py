from services.seed_data import seed_expenses


def _seed_payload():
    return [t.model_dump(mode="json") for t in seed_expenses()]


def test_dashboard_with_default_budgets_and_goals(client):
    response = client.post("/insights/dashboard", json={"transactions": _seed_payload()})

    assert response.status_code == 200
    data = response.json()
    assert data["total_spend"] == 9300
    assert sum(t["value"] for t in data["totals"]) == 9300
    assert data["health"] == {"overall": 56, "spending": 45, "saving": 25, "budgeting": 80, "planning": 75}
    assert data["kpis"]["transaction_count"] == 6
    assert data["kpis"]["health_score"] == 56
    assert len(data["trend"]) == 17
    assert [p["predicted"] for p in data["trend"]][-5:] == [True] * 5


def test_dashboard_recomputes_anomaly_flags(client):
    data = client.post("/insights/dashboard", json={"transactions": _seed_payload()}).json()

    # The sample shopping expense arrives flagged but is alone in its category
    assert data["anomalies"] == []
    assert not any(t["anomaly"] for t in data["transactions"])


def test_dashboard_filters_apply_to_views_not_health(client):
    data = client.post("/insights/dashboard", json={
        "transactions": _seed_payload(),
        "category": "Food",
        "window_days": 3,
        "horizon_days": 0,
    }).json()

    assert data["total_spend"] == 1850
    assert [t["category"] for t in data["transactions"]] == ["Food", "Food"]
    assert data["kpis"]["category_count"] == 1
    assert data["health"]["overall"] == 56
    assert len(data["trend"]) == 3


def test_dashboard_with_explicit_empty_budgets_and_goals(client):
    data = client.post("/insights/dashboard", json={"transactions": [], "budgets": [], "goals": []}).json()

    assert data["health"] == {"overall": 24, "spending": 50, "saving": 0, "budgeting": 20, "planning": 25}
    assert data["totals"] == []
    assert data["kpis"]["savings_rate"] == 0


def test_dashboard_rejects_bad_month(client):
    response = client.post("/insights/dashboard", json={"transactions": [], "month": "June"})
    assert response.status_code == 422


def test_optimize_budget(client):
    response = client.post("/insights/optimize-budget", json={
        "budgets": [{"category": "Food", "limit": 8000, "priority": "high"}, {"category": "Bills", "limit": 4000}],
        "category": "Food",
        "category_spend": 5000,
    })

    assert response.status_code == 200
    data = response.json()
    assert data["smart_limit"] == 5500
    food, bills = data["budgets"]
    assert food["smartLimit"] == 5500 and food["limit"] == 8000
    assert bills["smartLimit"] is None
    assert "suggested limit is ₹5,500 (current: ₹8,000)" in data["suggestion"]


def test_optimize_budget_uses_transactions_when_spend_omitted(client):
    data = client.post("/insights/optimize-budget", json={
        "budgets": [{"category": "Food", "limit": 8000}],
        "category": "Food",
        "transactions": _seed_payload(),
    }).json()

    # 1850 spent on food plus a 10% buffer
    assert data["smart_limit"] == 2035


def test_optimize_budget_rejects_unknown_category(client):
    response = client.post("/insights/optimize-budget", json={"budgets": [], "category": "Crypto"})
    assert response.status_code == 400
    assert response.json() == {"error": "Unknown category: Crypto"}


def test_categorize(client):
    response = client.post("/insights/categorize", json={"title": "Uber to office", "selectedCategory": "Food"})

    assert response.json() == {"category": "Transport", "confidence": 85}


def test_categorize_without_title(client):
    response = client.post("/insights/categorize", json={"selectedCategory": "Bills"})

    assert response.json() == {"category": "Bills", "confidence": 100}


def test_patterns(client):
    data = client.get("/insights/patterns").json()

    assert [p["pattern"] for p in data["patterns"]] == ["Weekend Splurging", "Stress-induced Shopping"]
    assert len(data["predictions"]) == 3
