from decimal import Decimal
from types import SimpleNamespace

import pytest

import utils.upgrade_service as upgrade_service
from extensions import db
from models import MiningAccount, UpgradeRecord, UserServer
from utils.errors import MaxTierReached, NotFound, UpgradeConflict
from utils.upgrade_service import (
    MAX_MINING_POWER, next_duration_tier, next_power_tier, upgrade_account
)


class TestTierTables:

    def test_power_steps(self):
        tiers = [Decimal(1)]
        while True:
            nxt = next_power_tier(tiers[-1])
            if nxt is None:
                break
            tiers.append(nxt)

        assert tiers == [Decimal(v) for v in (1, 3, 5, 7, 9, 11, 21, 31, 41, 51, 76, 101, 151, 200)]

    def test_power_next_tier_is_strictly_greater(self):
        for current in range(1, 200):
            nxt = next_power_tier(current)
            assert nxt > current
            assert nxt <= MAX_MINING_POWER

    def test_power_at_cap(self):
        assert next_power_tier(200) is None
        assert next_power_tier(Decimal('200.00')) is None

    def test_duration_steps(self):
        assert next_duration_tier(4) == 12
        assert next_duration_tier(6) == 12
        assert next_duration_tier(12) == 24
        assert next_duration_tier(24) is None


class TestUpgradeAccount:

    def test_power_upgrade_records_audit_trail(self, clock, make_account, reload):
        account = make_account()

        result = upgrade_account(account.id, 'power')

        assert result['previous'] == Decimal('1')
        assert result['new'] == Decimal('3')
        assert reload(MiningAccount, account.id).mining_power == Decimal('3')

        record = UpgradeRecord.query.one()
        assert record.upgrade_type == 'mining_power'
        assert record.previous_level == Decimal('1')
        assert record.upgrade_level == Decimal('3')
        assert record.created_at == clock.now

    def test_duration_upgrades_until_max(self, clock, make_account, reload):
        account = make_account()

        assert upgrade_account(account.id, 'duration')['new'] == 12
        assert upgrade_account(account.id, 'duration')['new'] == 24
        with pytest.raises(MaxTierReached):
            upgrade_account(account.id, 'duration')

        assert reload(MiningAccount, account.id).mining_duration_hours == 24
        assert UpgradeRecord.query.count() == 2

    def test_power_at_max_is_rejected(self, clock, make_account):
        account = make_account(mining_power=200)

        with pytest.raises(MaxTierReached):
            upgrade_account(account.id, 'power')
        assert UpgradeRecord.query.count() == 0

    def test_upgrade_does_not_touch_servers(self, clock, make_account, make_server, reload):
        account = make_account()
        server = make_server(account, bolt=240)

        upgrade_account(account.id, 'power')

        assert reload(UserServer, server.id).daily_bolt_yield == Decimal('240')

    def test_concurrent_upgrade_is_rejected(self, clock, monkeypatch, make_account, reload):
        account = make_account()
        MiningAccount.query.filter_by(id=account.id).update(
            {MiningAccount.mining_power: 3}, synchronize_session=False
        )
        db.session.commit()

        # 读到的是另一个请求升级之前的档位
        monkeypatch.setattr(upgrade_service, 'get_account',
                            lambda account_id: SimpleNamespace(mining_power=Decimal('1')))

        with pytest.raises(UpgradeConflict):
            upgrade_account(account.id, 'power')

        assert reload(MiningAccount, account.id).mining_power == Decimal('3')
        assert UpgradeRecord.query.count() == 0

    def test_unknown_kind(self, make_account):
        account = make_account()
        with pytest.raises(ValueError):
            upgrade_account(account.id, 'speed')

    def test_unknown_account(self, clock):
        with pytest.raises(NotFound):
            upgrade_account(404, 'power')
