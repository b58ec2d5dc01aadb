from datetime import timedelta
from decimal import Decimal

import pytest
from sqlalchemy.dialects import mysql, postgresql, sqlite
from sqlalchemy.schema import CreateTable

import utils.mining_service as mining_service
from models import MiningAccount, MiningSession, RewardHistory
from utils.errors import NotFound, SessionAlreadyActive, SessionNotComplete
from utils.mining_service import (
    complete_session, get_mining_status, session_progress, settle_expired_sessions, start_session
)
from utils.upgrade_service import upgrade_account


class TestStartSession:

    def test_start_freezes_rate_and_end_time(self, clock, make_account):
        account = make_account(mining_power=3, mining_duration_hours=12)

        session = start_session(account.id)

        assert session.is_active is True
        assert session.start_time == clock.now
        assert session.end_time == clock.now + timedelta(hours=12)
        assert session.tokens_per_hour == Decimal('3')
        assert session.duration_hours == 12

    def test_start_twice_is_rejected(self, clock, make_account):
        account = make_account()
        start_session(account.id)

        with pytest.raises(SessionAlreadyActive):
            start_session(account.id)
        assert MiningSession.query.filter_by(account_id=account.id).count() == 1

    def test_unique_constraint_blocks_concurrent_start(self, clock, monkeypatch, make_account):
        account = make_account()
        start_session(account.id)

        # 并发请求都没看到进行中的会话，由唯一约束拦下第二个
        monkeypatch.setattr(mining_service, 'get_active_session', lambda account_id: None)

        with pytest.raises(SessionAlreadyActive):
            start_session(account.id)
        assert MiningSession.query.filter_by(account_id=account.id).count() == 1

    def test_active_slot_constraint_is_portable(self):
        for dialect in (mysql.dialect(), postgresql.dialect(), sqlite.dialect()):
            ddl = str(CreateTable(MiningSession.__table__).compile(dialect=dialect))
            assert 'UNIQUE (active_account_id)' in ddl

    def test_start_for_unknown_account(self, clock):
        with pytest.raises(NotFound):
            start_session(42)

    def test_base_rate_comes_from_config(self, app, clock, make_account):
        app.config['MINING_BASE_RATE'] = 2.5
        account = make_account(mining_power=2)

        session = start_session(account.id)

        assert session.tokens_per_hour == Decimal('5')


class TestProgress:

    def test_progress_is_derived_from_elapsed_time(self, clock, make_account):
        account = make_account(mining_power=3)
        session = start_session(account.id)

        progress = session_progress(session, clock.now + timedelta(hours=1))

        assert progress['progress'] == 0.25
        assert progress['tokens_mined'] == Decimal('3')
        assert progress['time_remaining_seconds'] == 3 * 3600
        assert progress['is_completable'] is False

    def test_progress_stops_at_end_time(self, clock, make_account):
        account = make_account(mining_power=3)
        session = start_session(account.id)

        progress = session_progress(session, clock.now + timedelta(hours=10))

        assert progress['progress'] == 1.0
        assert progress['tokens_mined'] == Decimal('12')
        assert progress['time_remaining_seconds'] == 0
        assert progress['is_completable'] is True

    def test_status_does_not_persist_progress(self, clock, make_account):
        account = make_account()
        start_session(account.id)
        clock.advance(hours=2)

        status = get_mining_status(account.id)

        assert status['is_mining'] is True
        assert status['progress']['tokens_mined'] == Decimal('2')
        assert MiningSession.query.one().total_mined is None


class TestCompleteSession:

    def test_complete_before_end_time_fails(self, clock, make_account):
        account = make_account()
        start_session(account.id)
        clock.advance(hours=3, minutes=59)

        with pytest.raises(SessionNotComplete):
            complete_session(account.id)

    def test_complete_credits_once(self, clock, make_account, reload):
        account = make_account(mining_power=3)
        start_session(account.id)
        clock.advance(hours=4)

        result = complete_session(account.id)

        assert result['reward'] == Decimal('12')
        assert result['session']['is_active'] is False
        assert reload(MiningAccount, account.id).token_balance == Decimal('12')

        with pytest.raises(NotFound):
            complete_session(account.id)
        assert reload(MiningAccount, account.id).token_balance == Decimal('12')
        assert RewardHistory.query.filter_by(change_type='mining_reward').count() == 1

    def test_new_session_can_start_after_completion(self, clock, make_account):
        account = make_account()
        start_session(account.id)
        clock.advance(hours=4)
        complete_session(account.id)

        session = start_session(account.id)

        assert session.is_active is True
        assert session.active_account_id == account.id
        finished = MiningSession.query.filter_by(is_active=False).one()
        assert finished.active_account_id is None
        status = get_mining_status(account.id)
        assert status['session']['id'] == session.id

    def test_status_reports_last_completed_session(self, clock, make_account):
        account = make_account()
        start_session(account.id)
        clock.advance(hours=5)
        complete_session(account.id)

        status = get_mining_status(account.id)

        assert status['is_mining'] is False
        assert status['session'] is None
        assert status['last_session']['total_mined'] is not None


class TestRateFreezing:

    def test_upgrade_mid_session_only_affects_next_session(self, clock, make_account, reload):
        account = make_account()
        first = start_session(account.id)

        upgrade_account(account.id, 'power')
        upgrade_account(account.id, 'duration')

        assert reload(MiningSession, first.id).tokens_per_hour == Decimal('1')
        assert reload(MiningSession, first.id).duration_hours == 4

        clock.advance(hours=4)
        assert complete_session(account.id)['reward'] == Decimal('4')

        second = start_session(account.id)
        assert second.tokens_per_hour == Decimal('3')
        assert second.end_time == clock.now + timedelta(hours=12)


class TestSettleExpiredSessions:

    def test_only_expired_sessions_are_settled(self, clock, make_account, reload):
        expired = make_account(mining_power=5)
        running = make_account(mining_duration_hours=24)
        start_session(expired.id)
        start_session(running.id)
        clock.advance(hours=6)

        first = settle_expired_sessions()
        second = settle_expired_sessions()

        assert first == {'settled': 1, 'failed': 0}
        assert second == {'settled': 0, 'failed': 0}
        assert reload(MiningAccount, expired.id).token_balance == Decimal('20')
        assert reload(MiningAccount, running.id).token_balance == 0
