"""
Pytest configuration and shared fixtures.

The app runs through its real lifespan against a temporary SQLite file, with
a recording notifier in place of the YCloud email service.
"""
from decimal import Decimal
from types import SimpleNamespace
from typing import Any, Dict, List

import pytest
from httpx import ASGITransport, AsyncClient

from trinity import create_app
from trinity.api.cms.model import Deposit, User, Wallet
from trinity.api.cms.services.ledger_service import LedgerService
from trinity.core.config import AppConfig, AuthConfig, DatabaseConfig, EmailConfig, Settings
from trinity.core.enums import DepositStatus, DepositType, UserRole


class RecordingNotifier:
    def __init__(self):
        self.sent: List[Dict[str, Any]] = []

    async def send(self, to, subject, template, data) -> bool:
        self.sent.append({"to": to, "subject": subject, "template": template, "data": data})
        return True


class FailingNotifier:
    def __init__(self):
        self.calls = 0

    async def send(self, to, subject, template, data) -> bool:
        self.calls += 1
        raise RuntimeError("smtp relay unreachable")


@pytest.fixture
def settings(tmp_path):
    return Settings(
        app=AppConfig(env="test", debug=False, log_level="WARNING", log_path=None),
        database=DatabaseConfig(url=f"sqlite+aiosqlite:///{tmp_path / 'trinity.db'}", auto_create=True),
        auth=AuthConfig(secret="test-secret", access_expires_in=600),
        email=EmailConfig(enabled=False),
    )


@pytest.fixture
def notifier():
    return RecordingNotifier()


@pytest.fixture
async def app(settings, notifier):
    application = create_app(settings)
    application.state.notifier = notifier
    async with application.router.lifespan_context(application):
        yield application


@pytest.fixture
async def client(app):
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


@pytest.fixture
async def session(app):
    async with app.state.db.session() as s:
        yield s


@pytest.fixture
async def people(app):
    """admin, an active rider holding 50.00 and an inactive rider"""
    async with app.state.db.session() as s:
        admin = User(full_name="Ada Admin", email="admin@trinity.test", role=UserRole.ADMIN.value)
        rider = User(full_name="Rider One", email="rider@trinity.test", phone="+15550001")
        dormant = User(full_name="Dormant Rider", email="dormant@trinity.test", is_active=False)
        s.add_all([admin, rider, dormant])
        await s.flush()
        s.add_all([
            Wallet(user_id=rider.id, balance=Decimal("50"), total_deposits=Decimal("50")),
            Wallet(user_id=dormant.id, balance=Decimal("0")),
        ])
        await s.commit()
    return SimpleNamespace(admin=admin, rider=rider, dormant=dormant)


@pytest.fixture
def admin_headers(app, people):
    token = app.state.jwt.create_access_token(people.admin)
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def rider_headers(app, people):
    token = app.state.jwt.create_access_token(people.rider)
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
async def automated_deposit(app, people):
    async with app.state.db.session() as s:
        deposit = Deposit(
            user_id=people.rider.id,
            amount=Decimal("25"),
            currency="USDT",
            network="BEP20",
            deposit_type=DepositType.AUTOMATED.value,
            status=DepositStatus.CONFIRMED.value,
            tx_hash="0xabc123",
        )
        s.add(deposit)
        await s.commit()
    return deposit


@pytest.fixture
def balance_of(app):
    async def _balance(user_id) -> Decimal:
        async with app.state.db.session() as s:
            snapshot = await LedgerService.get_snapshot(s, user_id)
        return snapshot.balance if snapshot else Decimal("0")
    return _balance
