import logging
from flask import current_app
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm.attributes import set_committed_value
from extensions import db
from models import UserServer, ServerInventory
from utils import clock
from utils.claim_engine import CURRENCIES, calculate_claim, pending_rewards, zero_amounts
from utils.errors import MiningError, NotFound, ServerSoldOut, LedgerWriteFailure
from utils.ledger import get_account, credit

logger = logging.getLogger("server_rewards")


def get_active_servers(account_id):
    return UserServer.query.filter_by(account_id=account_id, is_active=True) \
        .order_by(UserServer.purchased_at.desc()) \
        .all()


def advance_watermark(server, now):
    """
    条件更新水位线：只有数据库中的 last_claim_at 仍是读取时的值才推进
    返回 False 说明已被其他请求（或定时发放）领取过
    """
    read_value = server.last_claim_at
    if read_value is None:
        condition = UserServer.last_claim_at.is_(None)
    else:
        condition = UserServer.last_claim_at == read_value

    updated = UserServer.query.filter(UserServer.id == server.id, condition) \
        .update({UserServer.last_claim_at: now}, synchronize_session=False)
    if updated != 1:
        return False

    set_committed_value(server, 'last_claim_at', now)
    return True


def settle_servers(account_id, servers, now, min_hours, max_hours, change_type, advance_on_zero=True):
    """
    即时领取与定时发放共用的结算逻辑：逐台计算、推进水位线、汇总后一次性入账
    不提交事务
    :return: (各币种合计, 处理的服务器数)
    """
    totals = zero_amounts()
    processed = 0

    for server in servers:
        claim = calculate_claim(server.watermark, now, server.daily_yields(), min_hours, max_hours)
        if claim is None:
            logger.debug(f"[settle] server {server.id}: below {min_hours}h since last claim, skipping")
            continue

        amounts, hours = claim
        if not advance_on_zero and not any(amounts.values()):
            # 四舍五入后为零：关闭 ADVANCE_WATERMARK_ON_ZERO_REWARD 时保留水位线让零头继续累计
            continue

        if not advance_watermark(server, now):
            logger.warning(f"[settle] server {server.id}: watermark moved concurrently, skipping")
            continue

        logger.info(
            f"[settle] server {server.id} ({server.server_name}): {hours:.2f}h = "
            + ", ".join(f"+{amounts[c]} {c}" for c in CURRENCIES)
        )
        for currency, amount in amounts.items():
            totals[currency] += amount
        processed += 1

    if any(totals.values()):
        credit(account_id, totals, change_type,
               description=f"Server rewards from {processed} server(s)", now=now)
    return totals, processed


def claim_server_rewards(account_id, now=None):
    """用户主动领取：所有服务器收益汇总后一次入账（单次最多累计 CLAIM_MAX_HOURS）"""
    config = current_app.config
    now = now or clock.utcnow()

    get_account(account_id)
    servers = get_active_servers(account_id)
    if not servers:
        logger.info(f"[claim] account {account_id}: no active servers")
        return {
            'success': True,
            'message': 'No active servers',
            'claimed': zero_amounts(),
            'assets_processed': 0,
            'servers_count': 0,
        }

    try:
        totals, processed = settle_servers(
            account_id, servers, now,
            min_hours=config['CLAIM_MIN_HOURS'],
            max_hours=config['CLAIM_MAX_HOURS'],
            change_type='server_claim',
            advance_on_zero=config['ADVANCE_WATERMARK_ON_ZERO_REWARD'],
        )
        db.session.commit()
    except MiningError:
        db.session.rollback()
        raise
    except SQLAlchemyError as e:
        db.session.rollback()
        logger.error(f"[claim] account {account_id}: ledger write failed: {e}")
        raise LedgerWriteFailure('Failed to credit server rewards') from e

    if any(totals.values()):
        logger.info(f"[claim] account {account_id}: claimed "
                    + ", ".join(f"{totals[c]} {c}" for c in CURRENCIES))
        message = 'Rewards claimed'
    else:
        message = 'Nothing to claim yet'

    return {
        'success': True,
        'message': message,
        'claimed': totals,
        'assets_processed': processed,
        'servers_count': len(servers),
    }


def get_pending_rewards(account_id, now=None):
    config = current_app.config
    now = now or clock.utcnow()

    get_account(account_id)
    servers = get_active_servers(account_id)
    return pending_rewards(servers, now, config['CLAIM_MIN_HOURS'], config['CLAIM_MAX_HOURS'])


def get_server_stats(account_id):
    servers = get_active_servers(account_id)
    per_day = zero_amounts()
    for server in servers:
        for currency, daily_yield in server.daily_yields().items():
            per_day[currency] += daily_yield
    return {'total_servers': len(servers), 'per_day': per_day}


def purchase_server(account_id, server_id, now=None):
    """从库存购买服务器；库存校验与售出计数在同一条条件更新里完成"""
    now = now or clock.utcnow()

    get_account(account_id)
    item = ServerInventory.query.filter_by(server_id=server_id).first()
    if not item:
        raise NotFound(f'Server {server_id} not found')

    try:
        updated = ServerInventory.query.filter(
            ServerInventory.id == item.id,
            ServerInventory.sold_count < ServerInventory.total_stock
        ).update({ServerInventory.sold_count: ServerInventory.sold_count + 1}, synchronize_session=False)
        if updated != 1:
            db.session.rollback()
            raise ServerSoldOut(f'Server {server_id} sold out')

        server = UserServer(
            account_id=account_id,
            server_tier=item.server_tier,
            server_name=item.server_name,
            hash_rate=item.hash_rate,
            daily_bolt_yield=item.daily_bolt_yield,
            daily_usdt_yield=item.daily_usdt_yield,
            daily_ton_yield=item.daily_ton_yield,
            purchased_at=now,
            is_active=True,
        )
        db.session.add(server)
        db.session.commit()
    except SQLAlchemyError as e:
        db.session.rollback()
        logger.error(f"[purchase] account {account_id} server {server_id} failed: {e}")
        raise LedgerWriteFailure('Failed to record server purchase') from e

    logger.info(f"[purchase] account {account_id} bought {item.server_name}")
    return server
