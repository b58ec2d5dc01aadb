import logging
from collections import defaultdict
from flask import current_app
from sqlalchemy.exc import SQLAlchemyError
from extensions import db
from models import UserServer, DistributionConfig
from utils import clock
from utils.claim_engine import CURRENCIES, zero_amounts
from utils.errors import MiningError
from utils.server_service import settle_servers

logger = logging.getLogger("distribution")


def is_distribution_enabled():
    config = DistributionConfig.query.first()
    return config is None or bool(config.is_task_enabled)


def set_distribution_enabled(enabled):
    config = DistributionConfig.query.first()
    if not config:
        config = DistributionConfig()
        db.session.add(config)
    config.is_task_enabled = bool(enabled)
    db.session.commit()
    return config.is_task_enabled


def distribute_server_rewards(now=None):
    """
    定时发放：遍历所有账户的服务器，按账户汇总后逐个入账
    与即时领取使用同一套计算，但不设 24 小时上限（BATCH_MAX_HOURS，默认 None）
    每个账户单独提交，单个账户失败不影响其他账户
    """
    config = current_app.config
    now = now or clock.utcnow()

    servers = UserServer.query.filter_by(is_active=True) \
        .order_by(UserServer.account_id, UserServer.id) \
        .all()

    report = {
        'accounts_updated': 0,
        'accounts_failed': 0,
        'totals': zero_amounts(),
        'assets_processed': 0,
        'servers_count': len(servers),
    }
    if not servers:
        logger.info("[distribute] No active servers found")
        return report

    # 按账户分组
    servers_by_account = defaultdict(list)
    for server in servers:
        servers_by_account[server.account_id].append(server)

    logger.info(f"[distribute] Processing {len(servers)} servers for {len(servers_by_account)} accounts...")

    for account_id, account_servers in servers_by_account.items():
        try:
            totals, processed = settle_servers(
                account_id, account_servers, now,
                min_hours=config['CLAIM_MIN_HOURS'],
                max_hours=config['BATCH_MAX_HOURS'],
                change_type='server_auto_distribution',
                advance_on_zero=config['ADVANCE_WATERMARK_ON_ZERO_REWARD'],
            )
            db.session.commit()
        except (SQLAlchemyError, MiningError) as e:
            db.session.rollback()  # 回滚当前账户，继续处理其他账户
            report['accounts_failed'] += 1
            logger.error(f"[distribute] account {account_id} failed: {e}")
            continue

        report['assets_processed'] += processed
        if any(totals.values()):
            report['accounts_updated'] += 1
            for currency in CURRENCIES:
                report['totals'][currency] += totals[currency]

    logger.info(
        f"[distribute] Complete! Distributed "
        + ", ".join(f"{report['totals'][c]} {c}" for c in CURRENCIES)
        + f" to {report['accounts_updated']} accounts ({report['accounts_failed']} failed)"
    )
    return report
