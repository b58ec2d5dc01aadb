import logging
from decimal import Decimal
from sqlalchemy.exc import SQLAlchemyError
from extensions import db
from models import MiningAccount, UpgradeRecord
from utils import clock
from utils.claim_engine import to_decimal
from utils.errors import MaxTierReached, UpgradeConflict, LedgerWriteFailure
from utils.ledger import get_account

logger = logging.getLogger("upgrades")

MAX_MINING_POWER = Decimal('200')
DURATION_STEPS = (4, 12, 24)
MAX_MINING_DURATION = DURATION_STEPS[-1]


def next_power_tier(current):
    """算力倍数档位：<10 +2，<50 +10，<100 +25，其余 +50，最高 200"""
    current = to_decimal(current)
    if current >= MAX_MINING_POWER:
        return None

    if current < 10:
        step = 2
    elif current < 50:
        step = 10
    elif current < 100:
        step = 25
    else:
        step = 50
    return min(MAX_MINING_POWER, current + step)


def next_duration_tier(current):
    """挖矿时长档位：4 -> 12 -> 24 小时"""
    for hours in DURATION_STEPS:
        if hours > current:
            return hours
    return None


UPGRADE_KINDS = {
    'power': ('mining_power', MiningAccount.mining_power, next_power_tier),
    'duration': ('mining_duration', MiningAccount.mining_duration_hours, next_duration_tier),
}


def upgrade_account(account_id, kind, now=None):
    """
    升级算力或时长，只影响之后开始的挖矿会话
    :return: {'upgrade_type', 'previous', 'new'}
    """
    if kind not in UPGRADE_KINDS:
        raise ValueError(f'Unknown upgrade kind: {kind}')

    upgrade_type, column, next_tier = UPGRADE_KINDS[kind]
    now = now or clock.utcnow()

    account = get_account(account_id)
    previous = getattr(account, column.key)
    new = next_tier(previous)
    if new is None:
        raise MaxTierReached(f'Maximum {upgrade_type.replace("_", " ")} reached')

    try:
        # 以读取到的档位为条件更新，防止并发升级跳档
        updated = MiningAccount.query.filter(MiningAccount.id == account_id, column == previous) \
            .update({column: new, MiningAccount.updated_at: now}, synchronize_session=False)
        if updated != 1:
            db.session.rollback()
            raise UpgradeConflict('Account was upgraded concurrently, please retry')

        db.session.add(UpgradeRecord(
            account_id=account_id,
            upgrade_type=upgrade_type,
            previous_level=previous,
            upgrade_level=new,
            created_at=now,
        ))
        db.session.commit()
    except SQLAlchemyError as e:
        db.session.rollback()
        logger.error(f"[upgrade] account {account_id} {upgrade_type} failed: {e}")
        raise LedgerWriteFailure(f'Failed to upgrade {upgrade_type}') from e

    logger.info(f"[upgrade] account {account_id} {upgrade_type}: {previous} -> {new}")
    return {'upgrade_type': upgrade_type, 'previous': previous, 'new': new}
