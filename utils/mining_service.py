import logging
from datetime import timedelta
from decimal import Decimal, ROUND_FLOOR
from flask import current_app
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from extensions import db
from models import MiningSession
from utils import clock
from utils.claim_engine import to_decimal
from utils.errors import MiningError, NotFound, SessionAlreadyActive, SessionNotComplete, LedgerWriteFailure
from utils.ledger import get_account, credit

logger = logging.getLogger("mining")

SECONDS_PER_HOUR = Decimal(3600)


def session_progress(session, now):
    """
    计算挖矿进度（纯计算，不落库，可以频繁轮询）
    :return: 剩余秒数、进度(0~1)、目前已挖出的 BOLT
    """
    total = (session.end_time - session.start_time).total_seconds()
    elapsed = (now - session.start_time).total_seconds()
    elapsed = min(max(0, elapsed), total)
    remaining = max(0, (session.end_time - now).total_seconds())

    progress = elapsed / total if total > 0 else 1.0
    tokens_mined = to_decimal(session.tokens_per_hour) * to_decimal(elapsed) / SECONDS_PER_HOUR

    return {
        'time_remaining_seconds': int(remaining),
        'elapsed_seconds': int(elapsed),
        'progress': round(progress, 4),
        'tokens_mined': tokens_mined.quantize(Decimal('0.0001'), rounding=ROUND_FLOOR),
        'is_completable': now >= session.end_time,
    }


def calculate_reward(session):
    """整个会话的奖励：冻结的每小时产出 × 冻结的时长，向下取整"""
    reward = to_decimal(session.tokens_per_hour) * session.duration_hours
    return reward.quantize(Decimal('1'), rounding=ROUND_FLOOR)


def get_active_session(account_id):
    return MiningSession.query.filter_by(account_id=account_id, is_active=True) \
        .order_by(MiningSession.start_time.desc()) \
        .first()


def start_session(account_id, now=None):
    now = now or clock.utcnow()
    base_rate = to_decimal(current_app.config['MINING_BASE_RATE'])

    # 锁住账户行，同一账户的并发 start 串行化
    account = get_account(account_id, lock=True)
    if get_active_session(account_id):
        db.session.rollback()
        raise SessionAlreadyActive('Mining already in progress')

    mining_power = to_decimal(account.mining_power)
    session = MiningSession(
        account_id=account_id,
        active_account_id=account_id,
        start_time=now,
        end_time=now + timedelta(hours=account.mining_duration_hours),
        duration_hours=account.mining_duration_hours,
        mining_power=mining_power,
        tokens_per_hour=base_rate * mining_power,
        is_active=True,
        created_at=now,
    )
    try:
        db.session.add(session)
        db.session.commit()
    except IntegrityError as e:
        # 唯一约束兜底：另一个请求抢先创建了会话
        db.session.rollback()
        raise SessionAlreadyActive('Mining already in progress') from e
    except SQLAlchemyError as e:
        db.session.rollback()
        logger.error(f"[start_session] account {account_id} failed: {e}")
        raise LedgerWriteFailure('Failed to start mining session') from e

    logger.info(f"[start_session] account {account_id}: session {session.id}, "
                f"{session.tokens_per_hour}/h for {session.duration_hours}h")
    return session


def finalize_session(session, now):
    """
    结算会话：is_active 条件更新保证只入账一次
    不满足条件（已被结算）时抛出 NotFound
    """
    reward = calculate_reward(session)
    session_id, account_id = session.id, session.account_id

    try:
        updated = MiningSession.query.filter_by(id=session_id, is_active=True).update({
            MiningSession.is_active: False,
            MiningSession.active_account_id: None,
            MiningSession.completed_at: now,
            MiningSession.total_mined: reward,
        }, synchronize_session=False)
        if updated != 1:
            db.session.rollback()
            raise NotFound('Mining session already completed')

        credit(account_id, {'BOLT': reward}, 'mining_reward',
               description=f'Mining session {session_id} reward', now=now)
        db.session.commit()
    except MiningError:
        db.session.rollback()
        raise
    except SQLAlchemyError as e:
        db.session.rollback()
        logger.error(f"[finalize_session] session {session_id} failed: {e}")
        raise LedgerWriteFailure('Failed to complete mining session') from e

    db.session.expire(session)
    logger.info(f"[finalize_session] session {session_id} completed, account {account_id} +{reward} BOLT")
    return reward


def complete_session(account_id, now=None):
    now = now or clock.utcnow()

    get_account(account_id)
    session = get_active_session(account_id)
    if not session:
        raise NotFound('No active mining session found')
    if now < session.end_time:
        raise SessionNotComplete('Mining session has not reached its end time')

    reward = finalize_session(session, now)
    return {'session': session.to_dict(), 'reward': reward}


def get_mining_status(account_id, now=None):
    now = now or clock.utcnow()

    account = get_account(account_id)
    session = get_active_session(account_id)
    if session:
        return {
            'is_mining': now < session.end_time,
            'session': session.to_dict(),
            'progress': session_progress(session, now),
            'account': account.to_dict(),
        }

    last_completed = MiningSession.query.filter_by(account_id=account_id, is_active=False) \
        .order_by(MiningSession.completed_at.desc()) \
        .first()
    return {
        'is_mining': False,
        'session': None,
        'last_session': last_completed.to_dict() if last_completed else None,
        'account': account.to_dict(),
    }


def settle_expired_sessions(now=None):
    """结算所有已到结束时间但仍为 active 的会话"""
    now = now or clock.utcnow()
    sessions = MiningSession.query.filter(
        MiningSession.is_active.is_(True),
        MiningSession.end_time <= now
    ).all()

    settled = failed = 0
    for session in sessions:
        try:
            finalize_session(session, now)
            settled += 1
        except NotFound:
            # 用户已手动结算
            continue
        except LedgerWriteFailure:
            failed += 1

    if sessions:
        logger.info(f"[settle_expired_sessions] settled {settled}, failed {failed}")
    return {'settled': settled, 'failed': failed}
