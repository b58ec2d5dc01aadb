"""
Test configuration

Flask app on in-memory SQLite with a controllable clock.
"""
from datetime import datetime, timedelta, timezone

import jwt
import pytest

from app import create_app
from extensions import db
from models import MiningAccount, UserServer, ServerInventory

JWT_SECRET = 'test-jwt-secret-for-admin-routes-0123456789'
START = datetime(2026, 1, 1, 12, 0, 0)


@pytest.fixture
def app():
    test_app = create_app({
        'TESTING': True,
        'SECRET_KEY': 'test-secret-key',
        'JWT_SECRET': JWT_SECRET,
        'SQLALCHEMY_DATABASE_URI': 'sqlite:///:memory:',
        'SQLALCHEMY_ENGINE_OPTIONS': {},
    })

    with test_app.app_context():
        db.create_all()
        yield test_app
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


class FrozenClock:
    def __init__(self, now):
        self.now = now

    def advance(self, **kwargs):
        self.now += timedelta(**kwargs)
        return self.now


@pytest.fixture
def clock(app, monkeypatch):
    frozen = FrozenClock(START)
    monkeypatch.setattr('utils.clock.utcnow', lambda: frozen.now)
    return frozen


@pytest.fixture
def admin_headers():
    token = jwt.encode(
        {'username': 'admin', 'exp': datetime.now(timezone.utc) + timedelta(hours=1)},
        JWT_SECRET, algorithm='HS256'
    )
    return {'Authorization': f'Bearer {token}'}


@pytest.fixture
def make_account(app):
    counter = {'telegram_id': 1000}

    def _make(mining_power=1, mining_duration_hours=4, **kwargs):
        counter['telegram_id'] += 1
        account = MiningAccount(
            telegram_id=counter['telegram_id'],
            token_balance=0,
            usdt_balance=0,
            ton_balance=0,
            mining_power=mining_power,
            mining_duration_hours=mining_duration_hours,
            created_at=START,
            updated_at=START,
            **kwargs
        )
        db.session.add(account)
        db.session.commit()
        return account

    return _make


@pytest.fixture
def make_server(app):
    def _make(account, bolt=0, usdt=0, ton=0, purchased_at=None, last_claim_at=None, is_active=True):
        server = UserServer(
            account_id=account.id,
            server_tier='basic',
            server_name='Basic Rig',
            hash_rate='10 TH/s',
            daily_bolt_yield=bolt,
            daily_usdt_yield=usdt,
            daily_ton_yield=ton,
            purchased_at=purchased_at or START,
            last_claim_at=last_claim_at,
            is_active=is_active,
        )
        db.session.add(server)
        db.session.commit()
        return server

    return _make


@pytest.fixture
def make_inventory(app):
    def _make(server_id='rig-basic', total_stock=2, sold_count=0, bolt=240, usdt=0, ton=0):
        item = ServerInventory(
            server_id=server_id,
            server_name='Basic Rig',
            server_tier='basic',
            hash_rate='10 TH/s',
            daily_bolt_yield=bolt,
            daily_usdt_yield=usdt,
            daily_ton_yield=ton,
            total_stock=total_stock,
            sold_count=sold_count,
        )
        db.session.add(item)
        db.session.commit()
        return item

    return _make


@pytest.fixture
def reload(app):
    """丢弃 session 缓存，从数据库重新读取"""
    def _reload(model, pk):
        db.session.expire_all()
        return db.session.get(model, pk)

    return _reload
