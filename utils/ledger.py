import logging
from sqlalchemy.exc import SQLAlchemyError
from extensions import db
from models import MiningAccount, RewardHistory
from utils import clock
from utils.errors import NotFound, LedgerWriteFailure

logger = logging.getLogger("ledger")

BALANCE_COLUMNS = {
    'BOLT': MiningAccount.token_balance,
    'USDT': MiningAccount.usdt_balance,
    'TON': MiningAccount.ton_balance,
}


def get_account(account_id, lock=False):
    query = MiningAccount.query.filter_by(id=account_id)
    if lock:
        query = query.with_for_update()  # 行级锁，防止并发修改
    account = query.first()
    if not account:
        raise NotFound(f'Account {account_id} not found')
    return account


def sync_account(telegram_id, username=None, first_name=None):
    """首次同步身份时创建账户，之后只刷新资料字段"""
    try:
        account = MiningAccount.query.filter_by(telegram_id=telegram_id).with_for_update().first()
        created = account is None
        if created:
            now = clock.utcnow()
            account = MiningAccount(
                telegram_id=telegram_id,
                token_balance=0,
                usdt_balance=0,
                ton_balance=0,
                mining_power=1,
                mining_duration_hours=4,
                created_at=now,
                updated_at=now,
            )
            db.session.add(account)

        if username is not None:
            account.username = username
        if first_name is not None:
            account.first_name = first_name

        db.session.commit()
    except SQLAlchemyError as e:
        db.session.rollback()
        logger.error(f"[sync_account] telegram_id={telegram_id} failed: {e}")
        raise LedgerWriteFailure('Failed to sync account') from e

    if created:
        logger.info(f"[sync_account] created account {account.id} for telegram_id={telegram_id}")
    return account, created


def credit(account_id, amounts, change_type, description=None, now=None):
    """
    原子累加余额（balance = balance + delta）并写入收益记录
    不提交事务，由调用方与水位线推进放在同一个事务里提交
    :return: 是否有实际入账
    """
    deltas = {currency: amount for currency, amount in amounts.items() if amount > 0}
    if not deltas:
        return False

    now = now or clock.utcnow()
    values = {BALANCE_COLUMNS[currency]: BALANCE_COLUMNS[currency] + amount
              for currency, amount in deltas.items()}
    values[MiningAccount.updated_at] = now

    updated = MiningAccount.query.filter_by(id=account_id).update(values, synchronize_session=False)
    if updated != 1:
        raise NotFound(f'Account {account_id} not found')

    for currency, amount in deltas.items():
        db.session.add(RewardHistory(
            account_id=account_id,
            currency=currency,
            change_type=change_type,
            change_amount=amount,
            description=description,
            created_at=now,
        ))

    # 同一 session 中已加载的账户对象需要重新读取余额
    account = db.session.identity_map.get(db.session.identity_key(MiningAccount, account_id))
    if account is not None:
        db.session.expire(account)
    return True


def get_reward_history(account_id, page=1, limit=10):
    get_account(account_id)

    query = RewardHistory.query.filter_by(account_id=account_id)
    total = query.count()
    records = query.order_by(RewardHistory.created_at.desc(), RewardHistory.id.desc()) \
        .offset((page - 1) * limit) \
        .limit(limit) \
        .all()

    return {
        'total': total,
        'page': page,
        'limit': limit,
        'records': [{
            'id': record.id,
            'currency': record.currency,
            'change_type': record.change_type,
            'change_amount': str(record.change_amount),
            'description': record.description,
            'created_at': record.created_at.isoformat() if record.created_at else None,
        } for record in records],
    }
