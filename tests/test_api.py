from fastapi.testclient import TestClient


def _create(client, amount=1000, when="2026-01-13T12:00:00", description="Lunch", cats=()):
    resp = client.post(
        "/expenses",
        json={
            "amount_minor_units": amount,
            "description": description,
            "occurred_at": when,
            "category_ids": list(cats),
        },
    )
    assert resp.status_code == 201, resp.text
    return resp.json()


def _category(client, name, kind="tag"):
    resp = client.post("/categories", json={"name": name, "kind": kind})
    assert resp.status_code == 201, resp.text
    return resp.json()


def test_health_and_root(client):
    resp = client.get("/health")
    assert resp.status_code == 200
    assert resp.json()["status"] == "ok"
    assert client.get("/").json()["version"] == "0.1.0"


def test_request_id_echoed(client):
    resp = client.get("/health", headers={"X-Request-Id": "abc123"})
    assert resp.headers["X-Request-Id"] == "abc123"


def test_missing_scope_header_is_unauthorized(app):
    with TestClient(app) as anonymous:
        resp = anonymous.get("/expenses")
    assert resp.status_code == 401
    assert resp.json()["error"] == "http_error"


def test_unknown_route(client):
    resp = client.get("/nope")
    assert resp.status_code == 404
    assert resp.json() == {"error": "not_found", "detail": "No route for GET /nope"}


def test_expense_crud(client):
    created = _create(client, description="  Lunch  ")
    assert created["description"] == "Lunch"
    assert created["day_key"] == "2026-01-13"
    assert created["week_key"] == "2026-W03"
    assert created["month_key"] == "2026-01"

    fetched = client.get(f"/expenses/{created['id']}")
    assert fetched.status_code == 200
    assert fetched.json()["amount_minor_units"] == 1000

    patched = client.patch(
        f"/expenses/{created['id']}",
        json={"amount_minor_units": 1250, "occurred_at": "2026-02-02T08:00:00"},
    )
    assert patched.status_code == 200
    body = patched.json()
    assert body["amount_minor_units"] == 1250
    assert body["month_key"] == "2026-02"
    assert body["week_key"] == "2026-W06"

    assert client.delete(f"/expenses/{created['id']}").status_code == 204
    missing = client.get(f"/expenses/{created['id']}")
    assert missing.status_code == 404
    assert missing.json()["error"] == "not_found"


def test_quick_add(client):
    coffee = _category(client, "Coffee")
    _category(client, "Coffee", kind="bank")
    resp = client.post(
        "/expenses/quick", params={"amount": "$4.75", "name": "Latte", "tag": "cOFFee"}
    )
    assert resp.status_code == 201, resp.text
    body = resp.json()
    assert body["amount_minor_units"] == 475
    assert body["description"] == "Latte"
    assert body["category_ids"] == [coffee["id"]]

    today = client.get("/summaries/day").json()
    assert [e["id"] for e in today["expenses"]] == [body["id"]]


def test_quick_add_unknown_tag_and_bad_input(client):
    resp = client.post(
        "/expenses/quick", params={"amount": "12", "name": "Cab", "tag": "travel"}
    )
    assert resp.status_code == 201
    assert resp.json()["category_ids"] == []

    for amount in ("0", "abc", "-"):
        bad = client.post("/expenses/quick", params={"amount": amount, "name": "x"})
        assert bad.status_code == 422, amount
        assert bad.json()["error"] == "validation_error"
    assert client.post("/expenses/quick", params={"amount": "5", "name": " "}).status_code == 422
    assert client.post("/expenses/quick", params={"amount": "5"}).status_code == 422


def test_undated_expense_shows_in_today_view(client):
    resp = client.post(
        "/expenses", json={"amount_minor_units": 300, "description": "Bagel"}
    )
    assert resp.status_code == 201
    today = client.get("/summaries/day").json()
    assert today["total_minor_units"] == 300
    assert today["day_key"] == resp.json()["day_key"]


def test_expense_validation_errors(client):
    resp = client.post(
        "/expenses", json={"amount_minor_units": 0, "description": "x"}
    )
    assert resp.status_code == 422
    assert resp.json()["error"] == "validation_error"

    resp = client.post(
        "/expenses", json={"amount_minor_units": 100, "description": "   "}
    )
    assert resp.status_code == 422

    resp = client.post(
        "/expenses",
        json={"amount_minor_units": 100, "description": "x", "category_ids": ["ghost"]},
    )
    assert resp.status_code == 422
    assert resp.json()["detail"][0]["loc"] == ["body", "category_ids"]

    created = _create(client)
    assert client.patch(f"/expenses/{created['id']}", json={}).status_code == 422
    assert client.patch("/expenses/missing", json={"description": "x"}).status_code == 404


def test_list_expenses_filters(client):
    food = _category(client, "Food")
    a = _create(client, 100, "2026-01-12T09:00:00", cats=[food["id"]])
    b = _create(client, 200, "2026-01-14T09:00:00")
    c = _create(client, 300, "2026-01-20T09:00:00", cats=[food["id"]])

    by_day = client.get("/expenses", params={"day": "2026-01-14"}).json()
    assert [e["id"] for e in by_day] == [b["id"]]

    by_week = client.get("/expenses", params={"week": "2026-W03"}).json()
    assert [e["id"] for e in by_week] == [b["id"], a["id"]]

    by_month = client.get(
        "/expenses", params={"month": "2026-01", "newest_first": "false"}
    ).json()
    assert [e["id"] for e in by_month] == [a["id"], b["id"], c["id"]]

    tagged = client.get(
        "/expenses",
        params={"start": "2026-01-01", "end": "2026-01-31", "category_id": food["id"]},
    ).json()
    assert [e["id"] for e in tagged] == [c["id"], a["id"]]


def test_list_expenses_bad_queries(client):
    assert client.get("/expenses", params={"week": "2026-3"}).status_code == 400
    assert client.get("/expenses", params={"month": "2026-13"}).status_code == 400
    assert client.get("/expenses", params={"start": "2026-01-01"}).status_code == 400
    assert (
        client.get(
            "/expenses", params={"start": "2026-02-01", "end": "2026-01-01"}
        ).status_code
        == 400
    )
    assert (
        client.get(
            "/expenses", params={"day": "2026-01-01", "month": "2026-01"}
        ).status_code
        == 400
    )


def test_categories_crud(client):
    food = _category(client, "Food")
    assert food["color_token"] == "teal-400"
    assert food["color_hex"] == "#2dd4bf"
    bank = _category(client, "Chase", kind="bank")
    assert bank["color_token"] == "purple-400"

    dup = client.post("/categories", json={"name": "Food"})
    assert dup.status_code == 422

    banks = client.get("/categories", params={"kind": "bank"}).json()
    assert [c["name"] for c in banks] == ["Chase"]

    patched = client.patch(
        f"/categories/{food['id']}", json={"name": "Groceries", "color_token": "sky-400"}
    )
    assert patched.status_code == 200
    assert patched.json()["color_hex"] == "#38bdf8"
    assert (
        client.patch(f"/categories/{food['id']}", json={"color_token": "gray-500"}).status_code
        == 422
    )
    assert (
        client.patch(f"/categories/{food['id']}", json={"color_token": "mauve"}).status_code
        == 422
    )

    expense = _create(client, cats=[food["id"], bank["id"]])
    assert client.delete(f"/categories/{food['id']}").status_code == 204
    refreshed = client.get(f"/expenses/{expense['id']}").json()
    assert refreshed["category_ids"] == [bank["id"]]
    assert client.delete(f"/categories/{food['id']}").status_code == 404


def test_settings_endpoints(client):
    assert client.get("/settings").json() == {
        "weekly_budget_minor_units": 25000,
        "week_start_day": 1,
    }
    resp = client.patch("/settings", json={"week_start_day": 0})
    assert resp.json() == {"weekly_budget_minor_units": 25000, "week_start_day": 0}
    assert client.patch("/settings", json={}).status_code == 422
    assert client.patch("/settings", json={"week_start_day": 7}).status_code == 422
    reset = client.post("/settings/reset").json()
    assert reset == {"weekly_budget_minor_units": 25000, "week_start_day": 1}


def test_rekey_weeks_endpoint(client):
    created = _create(client, when="2025-01-12T10:00:00")
    assert created["week_key"] == "2025-W02"
    client.patch("/settings", json={"week_start_day": 0})
    assert client.get(f"/expenses/{created['id']}").json()["week_key"] == "2025-W02"
    resp = client.post("/settings/rekey-weeks")
    assert resp.json() == {"updated": 1, "total_expenses": 1, "week_start_day": 0}
    assert client.get(f"/expenses/{created['id']}").json()["week_key"] == "2025-W03"


def test_scopes_do_not_leak(client):
    created = _create(client)
    other = client.get(f"/expenses/{created['id']}", headers={"X-Scope-Id": "user-b"})
    assert other.status_code == 404


def test_week_summary(client):
    client.patch("/settings", json={"weekly_budget_minor_units": 2000})
    food = _category(client, "Food")
    _create(client, 500, "2026-01-13T12:00:00")
    _create(client, 1500, "2026-01-15T12:00:00", cats=[food["id"]])

    resp = client.get("/summaries/week", params={"date": "2026-01-14"})
    assert resp.status_code == 200
    week = resp.json()
    assert week["week_key"] == "2026-W03"
    assert week["label"] == "Jan 12 - Jan 18, 2026"
    assert week["total_display"] == "$20.00"
    assert week["budget"]["percentage"] == 100.0
    assert week["budget"]["tier"] == "critical"
    assert week["budget"]["is_over"] is False
    assert [b["name"] for b in week["breakdown"]] == ["Food", "Uncategorized"]
    assert [s["visible_width"] for s in week["segments"]] == [75.0, 25.0]
    assert len(week["days"]) == 7
    assert week["navigation"] == {"previous": "2026-01-07", "next": "2026-01-21"}


def test_day_and_month_summaries(client):
    _create(client, 250, "2026-01-31T18:00:00")
    day = client.get("/summaries/day", params={"date": "2026-01-31"}).json()
    assert day["total_minor_units"] == 250
    assert day["day_name"] == "Sat"
    assert day["navigation"]["next"] == "2026-02-01"

    month = client.get("/summaries/month", params={"date": "2026-01-31"}).json()
    assert month["label"] == "January 2026"
    assert month["total_display"] == "$2.50"
    assert [w["week_key"] for w in month["weeks"]][-1] == "2026-W05"
    assert month["navigation"]["next"] == "2026-02-28"


def test_category_and_budget_summaries(client):
    bank = _category(client, "Chase", kind="bank")
    tag = _category(client, "Food")
    _create(client, 900, "2026-01-05T12:00:00", cats=[bank["id"], tag["id"]])
    _create(client, 100, "2026-01-06T12:00:00")

    banks = client.get(
        "/summaries/categories",
        params={"start": "2026-01-01", "end": "2026-01-31", "kind": "bank"},
    ).json()
    assert [(b["name"], b["total_minor_units"]) for b in banks] == [
        ("Chase", 450),
        ("Uncategorized", 100),
    ]

    status = client.get("/summaries/budget", params={"spent": 1500, "budget": 2000}).json()
    assert status["tier"] == "warning"
    assert status["percentage"] == 75.0
    assert status["remaining_display"] == "$5.00"
    assert client.get("/summaries/budget", params={"spent": 5}).json()["tier"] == "normal"
