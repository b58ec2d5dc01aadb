import logging
from apscheduler.schedulers.background import BackgroundScheduler
from utils.distribution import distribute_server_rewards, is_distribution_enabled
from utils.mining_service import settle_expired_sessions

# ----------------- 日志配置 -----------------
logger = logging.getLogger("scheduler")
logger.setLevel(logging.INFO)

console_handler = logging.StreamHandler()
console_handler.setFormatter(logging.Formatter('[%(asctime)s] %(levelname)s: %(message)s'))
logger.addHandler(console_handler)

scheduler = BackgroundScheduler()


def distribute_server_rewards_job(app):
    with app.app_context():
        try:
            if not is_distribution_enabled():
                logger.info("Server reward distribution is disabled, skipping.")
                return

            logger.info("Running scheduled server reward distribution...")
            report = distribute_server_rewards()
            logger.info(
                f"Distribution completed: {report['accounts_updated']} accounts updated, "
                f"{report['accounts_failed']} failed, {report['assets_processed']} servers processed"
            )
        except Exception:
            logger.exception("Server reward distribution failed")


# 结算已到期的挖矿会话
def settle_expired_sessions_job(app):
    with app.app_context():
        try:
            result = settle_expired_sessions()
            if result['settled'] or result['failed']:
                logger.info(f"Expired mining sessions settled: {result['settled']}, failed: {result['failed']}")
        except Exception:
            logger.exception("Settling expired sessions failed")


def start_scheduler(app):
    scheduler.add_job(
        lambda: distribute_server_rewards_job(app), 'interval',
        minutes=app.config['DISTRIBUTION_INTERVAL_MINUTES'],
        id='distribute_server_rewards', max_instances=1, coalesce=True,
    )
    scheduler.add_job(
        lambda: settle_expired_sessions_job(app), 'interval',
        minutes=app.config['SESSION_SETTLE_INTERVAL_MINUTES'],
        id='settle_expired_sessions', max_instances=1, coalesce=True,
    )

    scheduler.start()
    logger.info(
        f"Scheduler started: server rewards every {app.config['DISTRIBUTION_INTERVAL_MINUTES']}min, "
        f"expired sessions every {app.config['SESSION_SETTLE_INTERVAL_MINUTES']}min"
    )
