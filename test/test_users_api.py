"""
Tests for admin user lookup, auth guard and health endpoints
"""
import jwt

BASE = "/cms/admin"


async def test_health(client):
    resp = await client.get("/health")
    assert resp.status_code == 200
    assert resp.json() == {"status": "ok"}


async def test_list_users_only_returns_active_users(client, people, admin_headers):
    resp = await client.get(f"{BASE}/users", headers=admin_headers)
    assert resp.status_code == 200

    body = resp.json()
    emails = {u["email"] for u in body["data"]}
    assert emails == {"admin@trinity.test", "rider@trinity.test"}
    assert body["pagination"]["totalCount"] == 2
    assert body["pagination"]["limit"] == 50


async def test_list_users_search_and_wallet_summary(client, people, admin_headers):
    resp = await client.get(f"{BASE}/users", params={"search": "RIDER"}, headers=admin_headers)
    data = resp.json()["data"]

    assert len(data) == 1
    rider = data[0]
    assert rider["fullName"] == "Rider One"
    assert rider["wallet"] == {"balance": 50.0, "totalDeposits": 50.0, "totalWithdrawals": 0.0}


async def test_list_users_search_by_phone(client, people, admin_headers):
    resp = await client.get(f"{BASE}/users", params={"search": "5550001"}, headers=admin_headers)
    assert [u["email"] for u in resp.json()["data"]] == ["rider@trinity.test"]


async def test_list_users_search_treats_wildcards_literally(client, people, admin_headers):
    resp = await client.get(f"{BASE}/users", params={"search": "%"}, headers=admin_headers)
    assert resp.json()["data"] == []


async def test_list_users_pagination(client, people, admin_headers):
    resp = await client.get(f"{BASE}/users", params={"page": 2, "limit": 1}, headers=admin_headers)
    body = resp.json()
    assert len(body["data"]) == 1
    assert body["pagination"] == {
        "page": 2, "limit": 1, "totalCount": 2, "totalPages": 2, "hasNext": False, "hasPrev": True,
    }


async def test_list_users_rejects_oversized_limit(client, people, admin_headers):
    resp = await client.get(f"{BASE}/users", params={"limit": 101}, headers=admin_headers)
    assert resp.status_code == 400


async def test_user_detail_includes_recent_deposits(client, people, admin_headers):
    for amount in (5, 6, 7):
        await client.post(
            f"{BASE}/manual-deposit",
            json={"userId": people.rider.id, "amount": amount, "currency": "USDC", "network": "POLYGON"},
            headers=admin_headers,
        )

    resp = await client.get(f"{BASE}/users/{people.rider.id}", headers=admin_headers)
    assert resp.status_code == 200
    data = resp.json()["data"]
    assert data["wallet"]["balance"] == 68.0
    assert len(data["recentDeposits"]) == 3
    assert {d["amount"] for d in data["recentDeposits"]} == {5.0, 6.0, 7.0}


async def test_user_detail_caps_recent_deposits_newest_first(client, people, admin_headers):
    for amount in range(1, 13):
        resp = await client.post(
            f"{BASE}/manual-deposit",
            json={"userId": people.rider.id, "amount": amount, "currency": "USDT", "network": "TRC20"},
            headers=admin_headers,
        )
        assert resp.status_code == 200

    data = (await client.get(f"{BASE}/users/{people.rider.id}", headers=admin_headers)).json()["data"]
    assert len(data["recentDeposits"]) == 10
    assert [d["amount"] for d in data["recentDeposits"]] == [float(a) for a in range(12, 2, -1)]


async def test_user_detail_unknown_user(client, people, admin_headers):
    resp = await client.get(f"{BASE}/users/does-not-exist", headers=admin_headers)
    assert resp.status_code == 404
    assert resp.json()["error_code"] == 1001


# ======================================
# 🔐 auth
# ======================================
async def test_missing_token_is_unauthorized(client, people):
    resp = await client.get(f"{BASE}/users")
    assert resp.status_code == 401


async def test_non_admin_is_forbidden(client, people, rider_headers):
    resp = await client.get(f"{BASE}/manual-deposits/stats", headers=rider_headers)
    assert resp.status_code == 403


async def test_tampered_token_is_unauthorized(client, people):
    token = jwt.encode({"uid": people.admin.id, "scope": ["admin"], "type": "access"}, "wrong", algorithm="HS256")
    resp = await client.get(f"{BASE}/users", headers={"Authorization": f"Bearer {token}"})
    assert resp.status_code == 401


async def test_inactive_admin_is_unauthorized(app, client, people):
    people.dormant.role = "ADMIN"
    token = app.state.jwt.create_access_token(people.dormant)
    resp = await client.get(f"{BASE}/users", headers={"Authorization": f"Bearer {token}"})
    assert resp.status_code == 401


async def test_forbidden_request_creates_nothing(app, client, people, rider_headers, balance_of):
    resp = await client.post(
        f"{BASE}/manual-deposit",
        json={"userId": people.rider.id, "amount": 10, "currency": "USDT", "network": "TRC20"},
        headers=rider_headers,
    )
    assert resp.status_code == 403
    assert await balance_of(people.rider.id) == 50
