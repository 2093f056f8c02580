"""
Tests for the admin manual deposit endpoints under /cms/admin
"""
import asyncio
from decimal import Decimal

import pytest
from httpx import AsyncClient
from sqlalchemy import func, select

from trinity.api.cms.model import AuditEvent, BalanceLog, Deposit
from trinity.api.cms.schema.audit import DepositCreatedEvent, load_payload
from trinity.api.cms.services.ledger_service import LedgerService
from trinity.core.db import BaseModel
from trinity.core.enums import LedgerKind

from conftest import FailingNotifier

BASE = "/cms/admin"


def deposit_body(user_id, **overrides):
    body = {
        "userId": user_id,
        "amount": 100.00,
        "currency": "USDT",
        "network": "TRC20",
        "notes": "Support ticket #881",
    }
    body.update(overrides)
    return body


async def create_deposit(client: AsyncClient, headers, user_id, **overrides):
    resp = await client.post(f"{BASE}/manual-deposit", json=deposit_body(user_id, **overrides), headers=headers)
    assert resp.status_code == 200, resp.text
    return resp.json()["data"]


async def count_rows(app, model, **filters) -> int:
    async with app.state.db.session() as s:
        return await s.scalar(select(func.count()).select_from(model).filter_by(**filters))


# ======================================
# 💵 create
# ======================================
async def test_create_manual_deposit_credits_wallet(app, client, people, admin_headers, notifier, balance_of):
    resp = await client.post(f"{BASE}/manual-deposit", json=deposit_body(people.rider.id), headers=admin_headers)
    assert resp.status_code == 200

    body = resp.json()
    assert body["success"] is True
    assert body["message"] == "Manual deposit created successfully"

    deposit, user = body["data"]["deposit"], body["data"]["user"]
    assert deposit["depositType"] == "MANUAL_ADMIN"
    assert deposit["status"] == "CONFIRMED"
    assert deposit["amount"] == 100.0
    assert deposit["adminNotes"] == "Support ticket #881"
    assert user["id"] == people.rider.id
    assert user["newBalance"] == 150.0

    assert await balance_of(people.rider.id) == Decimal("150")

    assert len(notifier.sent) == 1
    sent = notifier.sent[0]
    assert sent["to"] == "rider@trinity.test"
    assert sent["template"] == "manual-deposit-confirmation"
    assert Decimal(sent["data"]["newBalance"]) == Decimal("150")


async def test_create_writes_ledger_entry_and_audit_event(app, client, people, admin_headers):
    data = await create_deposit(client, admin_headers, people.rider.id)

    async with app.state.db.session() as s:
        log = (await s.execute(select(BalanceLog))).scalars().one()
        event = (await s.execute(select(AuditEvent))).scalars().one()

    assert log.kind == "DEPOSIT"
    assert log.reference_id == data["deposit"]["id"]
    assert event.event_type == "DEPOSIT_CREATED"
    assert event.actor_email == "admin@trinity.test"
    assert event.payload["eventType"] == "DEPOSIT_CREATED"
    assert event.payload["manualDeposit"] is True

    payload = load_payload(event.payload)
    assert isinstance(payload, DepositCreatedEvent)
    assert payload.admin_id == people.admin.id


async def test_default_notes_mention_admin(client, people, admin_headers):
    data = await create_deposit(client, admin_headers, people.rider.id, notes=None)
    assert data["deposit"]["adminNotes"] == "Manual deposit by admin admin@trinity.test"


async def test_send_email_false_skips_notification(client, people, admin_headers, notifier):
    await create_deposit(client, admin_headers, people.rider.id, sendEmail=False)
    assert notifier.sent == []


async def test_inactive_user_is_rejected_without_side_effects(app, client, people, admin_headers, balance_of):
    resp = await client.post(f"{BASE}/manual-deposit", json=deposit_body(people.dormant.id), headers=admin_headers)

    assert resp.status_code == 400
    assert resp.json()["error_code"] == 1006
    assert await count_rows(app, Deposit) == 0
    assert await count_rows(app, BalanceLog) == 0
    assert await balance_of(people.dormant.id) == Decimal("0")


async def test_unknown_user_returns_404(client, people, admin_headers):
    resp = await client.post(
        f"{BASE}/manual-deposit",
        json=deposit_body("00000000-0000-0000-0000-000000000000"),
        headers=admin_headers,
    )
    assert resp.status_code == 404
    assert resp.json()["success"] is False


@pytest.mark.parametrize("overrides, field", [
    ({"amount": -5}, "amount"),
    ({"amount": 0}, "amount"),
    ({"amount": "0.123456789123"}, "amount"),
    ({"amount": "1" + "0" * 30}, "amount"),
    ({"currency": "DOGE"}, "currency"),
    ({"network": "SOLANA"}, "network"),
    ({"notes": "x" * 501}, "notes"),
])
async def test_invalid_payload_returns_400_with_field_details(app, client, people, admin_headers, overrides, field):
    resp = await client.post(
        f"{BASE}/manual-deposit", json=deposit_body(people.rider.id, **overrides), headers=admin_headers
    )
    assert resp.status_code == 400
    body = resp.json()
    assert body["error_code"] == 1005
    assert any(d["field"] == field for d in body["details"])
    assert await count_rows(app, Deposit) == 0


async def test_amount_at_full_scale_matches_credited_balance(client, people, admin_headers, balance_of):
    data = await create_deposit(client, admin_headers, people.rider.id, amount="0.12345678")

    assert data["deposit"]["amount"] == 0.12345678
    assert data["user"]["newBalance"] == 50.12345678
    assert await balance_of(people.rider.id) == Decimal("50.12345678")


async def test_concurrent_deposits_all_land(app, client, people, admin_headers, balance_of):
    responses = await asyncio.gather(*[
        client.post(f"{BASE}/manual-deposit", json=deposit_body(people.rider.id, amount=10), headers=admin_headers)
        for _ in range(5)
    ])

    assert [r.status_code for r in responses] == [200] * 5
    balances = sorted(r.json()["data"]["user"]["newBalance"] for r in responses)
    assert balances == [60.0, 70.0, 80.0, 90.0, 100.0]
    assert await balance_of(people.rider.id) == Decimal("100")
    assert await count_rows(app, BalanceLog) == 5


async def test_concurrent_first_deposits_create_one_wallet(client, people, admin_headers, balance_of):
    responses = await asyncio.gather(*[
        client.post(f"{BASE}/manual-deposit", json=deposit_body(people.admin.id), headers=admin_headers)
        for _ in range(3)
    ])

    assert [r.status_code for r in responses] == [200] * 3
    assert await balance_of(people.admin.id) == Decimal("300")


async def test_notification_failure_does_not_fail_request(app, client, people, admin_headers, balance_of):
    failing = FailingNotifier()
    app.state.notifier = failing

    resp = await client.post(f"{BASE}/manual-deposit", json=deposit_body(people.rider.id), headers=admin_headers)

    assert resp.status_code == 200
    assert resp.json()["data"]["user"]["newBalance"] == 150.0
    assert failing.calls == 1
    assert await balance_of(people.rider.id) == Decimal("150")
    assert await count_rows(app, Deposit) == 1


# ======================================
# 📊 stats / history / detail
# ======================================
async def test_stats_include_created_deposit(client, people, admin_headers):
    resp = await client.get(f"{BASE}/manual-deposits/stats", headers=admin_headers)
    assert resp.json()["data"]["total"] == {"amount": 0.0, "count": 0}

    await create_deposit(client, admin_headers, people.rider.id)
    await create_deposit(client, admin_headers, people.rider.id, amount=20, currency="ETH", network="ERC20")

    stats = (await client.get(f"{BASE}/manual-deposits/stats", headers=admin_headers)).json()["data"]
    assert stats["total"] == {"amount": 120.0, "count": 2}
    assert {"currency": "USDT", "amount": 100.0, "count": 1} in stats["byCurrency"]
    assert {"network": "ERC20", "amount": 20.0, "count": 1} in stats["byNetwork"]
    assert stats["byStatus"] == [{"status": "CONFIRMED", "amount": 120.0, "count": 2}]


async def test_stats_ignore_automated_deposits(client, people, admin_headers, automated_deposit):
    stats = (await client.get(f"{BASE}/manual-deposits/stats", headers=admin_headers)).json()["data"]
    assert stats["total"]["count"] == 0


async def test_list_manual_deposits_filters(client, people, admin_headers, automated_deposit):
    await create_deposit(client, admin_headers, people.rider.id)

    resp = await client.get(f"{BASE}/manual-deposits", headers=admin_headers)
    body = resp.json()
    assert resp.status_code == 200
    assert len(body["data"]) == 1
    assert body["data"][0]["user"]["email"] == "rider@trinity.test"
    assert body["pagination"] == {
        "page": 1, "limit": 20, "totalCount": 1, "totalPages": 1, "hasNext": False, "hasPrev": False,
    }

    resp = await client.get(
        f"{BASE}/manual-deposits", params={"userId": people.admin.id}, headers=admin_headers
    )
    assert resp.json()["data"] == []

    resp = await client.get(
        f"{BASE}/manual-deposits", params={"dateFrom": "2999-01-01T00:00:00Z"}, headers=admin_headers
    )
    assert resp.json()["data"] == []

    resp = await client.get(
        f"{BASE}/manual-deposits", params={"dateTo": "2000-01-01T00:00:00Z"}, headers=admin_headers
    )
    assert resp.json()["data"] == []


async def test_list_manual_deposits_rejects_bad_user_id(client, people, admin_headers):
    resp = await client.get(f"{BASE}/manual-deposits", params={"userId": "not-a-uuid"}, headers=admin_headers)
    assert resp.status_code == 400


async def test_get_manual_deposit_returns_audit_trail(client, people, admin_headers):
    created = await create_deposit(client, admin_headers, people.rider.id)
    deposit_id = created["deposit"]["id"]

    detail = (await client.get(f"{BASE}/manual-deposits/{deposit_id}", headers=admin_headers)).json()["data"]
    assert detail["user"]["fullName"] == "Rider One"
    assert [e["eventType"] for e in detail["auditTrail"]] == ["DEPOSIT_CREATED"]
    assert detail["auditTrail"][0]["payload"]["adminEmail"] == "admin@trinity.test"


async def test_get_manual_deposit_hides_automated_deposits(client, admin_headers, automated_deposit):
    resp = await client.get(f"{BASE}/manual-deposits/{automated_deposit.id}", headers=admin_headers)
    assert resp.status_code == 404


# ======================================
# 💸 cancel
# ======================================
async def test_cancel_with_refund_restores_balance(client, people, admin_headers, notifier, balance_of):
    created = await create_deposit(client, admin_headers, people.rider.id)
    deposit_id = created["deposit"]["id"]

    resp = await client.put(
        f"{BASE}/manual-deposits/{deposit_id}/cancel",
        json={"reason": "duplicate credit", "refundAmount": 100.00},
        headers=admin_headers,
    )
    assert resp.status_code == 200
    body = resp.json()
    assert body["message"] == "Manual deposit cancelled successfully"
    assert body["data"]["status"] == "CANCELLED"
    assert body["data"]["refundAmount"] == 100.0
    assert body["data"]["newBalance"] == 50.0
    assert body["data"]["adminNotes"].endswith(
        "\n\nCANCELLED: duplicate credit (by admin admin@trinity.test)"
    )
    assert await balance_of(people.rider.id) == Decimal("50")
    assert notifier.sent[-1]["template"] == "deposit-cancelled"

    again = await client.put(
        f"{BASE}/manual-deposits/{deposit_id}/cancel",
        json={"reason": "duplicate credit", "refundAmount": 100.00},
        headers=admin_headers,
    )
    assert again.status_code == 400
    assert again.json()["error_code"] == 1006
    assert await balance_of(people.rider.id) == Decimal("50")


async def test_concurrent_cancels_refund_once(app, client, people, admin_headers, balance_of):
    created = await create_deposit(client, admin_headers, people.rider.id)
    deposit_id = created["deposit"]["id"]

    responses = await asyncio.gather(*[
        client.put(
            f"{BASE}/manual-deposits/{deposit_id}/cancel",
            json={"reason": "duplicate credit", "refundAmount": 100},
            headers=admin_headers,
        )
        for _ in range(3)
    ])

    assert sorted(r.status_code for r in responses) == [200, 400, 400]
    assert await balance_of(people.rider.id) == Decimal("50")
    assert await count_rows(app, BalanceLog, kind=LedgerKind.REFUND.value) == 1
    assert await count_rows(app, AuditEvent, event_type="DEPOSIT_CANCELLED") == 1


async def test_long_cancel_reason_is_kept_whole_in_ledger_memo(app, client, people, admin_headers):
    created = await create_deposit(client, admin_headers, people.rider.id)
    reason = "chargeback " + "x" * 489

    resp = await client.put(
        f"{BASE}/manual-deposits/{created['deposit']['id']}/cancel",
        json={"reason": reason, "refundAmount": 100},
        headers=admin_headers,
    )
    assert resp.status_code == 200

    async with app.state.db.session() as s:
        refund = (await s.execute(
            select(BalanceLog).where(BalanceLog.kind == LedgerKind.REFUND.value)
        )).scalars().one()
    assert refund.memo.endswith(reason)


async def test_cancel_without_refund_keeps_balance(app, client, people, admin_headers, balance_of):
    created = await create_deposit(client, admin_headers, people.rider.id)
    deposit_id = created["deposit"]["id"]

    resp = await client.put(
        f"{BASE}/manual-deposits/{deposit_id}/cancel", json={"reason": "wrong network"}, headers=admin_headers
    )
    assert resp.status_code == 200
    assert resp.json()["data"]["refundAmount"] == 0.0
    assert resp.json()["data"]["newBalance"] == 150.0
    assert await balance_of(people.rider.id) == Decimal("150")
    assert await count_rows(app, BalanceLog) == 1

    trail = (await client.get(f"{BASE}/manual-deposits/{deposit_id}", headers=admin_headers)).json()["data"]
    assert [e["eventType"] for e in trail["auditTrail"]] == ["DEPOSIT_CREATED", "DEPOSIT_CANCELLED"]
    assert trail["auditTrail"][1]["payload"]["reason"] == "wrong network"


async def test_cancelled_deposits_are_counted_by_status(client, people, admin_headers):
    created = await create_deposit(client, admin_headers, people.rider.id)
    await client.put(
        f"{BASE}/manual-deposits/{created['deposit']['id']}/cancel", json={"reason": "test"}, headers=admin_headers
    )

    stats = (await client.get(f"{BASE}/manual-deposits/stats", headers=admin_headers)).json()["data"]
    assert stats["byStatus"] == [{"status": "CANCELLED", "amount": 100.0, "count": 1}]


async def test_refund_larger_than_deposit_is_rejected(client, people, admin_headers, balance_of):
    created = await create_deposit(client, admin_headers, people.rider.id)

    resp = await client.put(
        f"{BASE}/manual-deposits/{created['deposit']['id']}/cancel",
        json={"reason": "typo", "refundAmount": 100.01},
        headers=admin_headers,
    )
    assert resp.status_code == 400
    assert resp.json()["error_code"] == 1002
    assert await balance_of(people.rider.id) == Decimal("150")


async def test_refund_beyond_wallet_balance_rolls_back(app, client, people, admin_headers, balance_of):
    created = await create_deposit(client, admin_headers, people.rider.id)
    async with app.state.db.session() as s:
        async with BaseModel.auto_commit(s):
            await LedgerService.apply_wallet_operation(
                s, people.rider.id, Decimal("120"), LedgerKind.WITHDRAWAL, "payout"
            )
    assert await balance_of(people.rider.id) == Decimal("30")

    resp = await client.put(
        f"{BASE}/manual-deposits/{created['deposit']['id']}/cancel",
        json={"reason": "chargeback", "refundAmount": 100},
        headers=admin_headers,
    )
    assert resp.status_code == 400
    assert resp.json()["error_code"] == 1006

    detail = (await client.get(f"{BASE}/manual-deposits/{created['deposit']['id']}", headers=admin_headers)).json()
    assert detail["data"]["status"] == "CONFIRMED"
    assert [e["eventType"] for e in detail["data"]["auditTrail"]] == ["DEPOSIT_CREATED"]
    assert await balance_of(people.rider.id) == Decimal("30")


async def test_cancel_automated_deposit_is_rejected(client, people, admin_headers, automated_deposit, balance_of):
    resp = await client.put(
        f"{BASE}/manual-deposits/{automated_deposit.id}/cancel",
        json={"reason": "not allowed", "refundAmount": 25},
        headers=admin_headers,
    )
    assert resp.status_code == 400
    assert resp.json()["error_code"] == 1006
    assert await balance_of(people.rider.id) == Decimal("50")


async def test_cancel_unknown_deposit_returns_404(client, people, admin_headers):
    resp = await client.put(
        f"{BASE}/manual-deposits/00000000-0000-0000-0000-000000000000/cancel",
        json={"reason": "missing"},
        headers=admin_headers,
    )
    assert resp.status_code == 404


@pytest.mark.parametrize("payload", [{"reason": "   "}, {}, {"reason": "ok", "refundAmount": -1}])
async def test_cancel_validates_payload(client, people, admin_headers, payload):
    created = await create_deposit(client, admin_headers, people.rider.id)
    resp = await client.put(
        f"{BASE}/manual-deposits/{created['deposit']['id']}/cancel", json=payload, headers=admin_headers
    )
    assert resp.status_code == 400


@pytest.mark.parametrize("refund", ["1.123456789", "1" + "0" * 30])
async def test_cancel_rejects_refund_beyond_column_precision(client, people, admin_headers, refund, balance_of):
    created = await create_deposit(client, admin_headers, people.rider.id)
    resp = await client.put(
        f"{BASE}/manual-deposits/{created['deposit']['id']}/cancel",
        json={"reason": "typo", "refundAmount": refund},
        headers=admin_headers,
    )
    assert resp.status_code == 400
    assert any(d["field"] == "refundAmount" for d in resp.json()["details"])
    assert await balance_of(people.rider.id) == Decimal("150")
