from flask import Flask, jsonify
from flask_cors import CORS
from extensions import db, migrate
from dotenv import load_dotenv
import os

# 提前导入模型注册函数（明确显示依赖关系）
from models import register_models

from blueprints.accounts import accounts_bp
from blueprints.mining import mining_bp
from blueprints.servers import servers_bp
from blueprints.upgrades import upgrades_bp
from blueprints.admin import admin_bp

load_dotenv()


def _optional_float(name):
    value = os.getenv(name)
    return float(value) if value not in (None, '') else None


def create_app(test_config=None):
    app = Flask(__name__)

    CORS(app)

    # ===== 配置 =====
    app.config.update(
        SECRET_KEY=os.getenv('SECRET_KEY'),
        JWT_SECRET=os.getenv('JWT_SECRET'),
        SQLALCHEMY_DATABASE_URI=os.getenv('DB_URI'),
        SQLALCHEMY_TRACK_MODIFICATIONS=False,
        SQLALCHEMY_ENGINE_OPTIONS={
            'pool_pre_ping': True,
            'pool_timeout': int(os.getenv('DB_POOL_TIMEOUT', '10')),
        },

        # 挖矿会话：每小时基础产出（再乘以账户算力倍数）
        MINING_BASE_RATE=float(os.getenv('MINING_BASE_RATE', '1.0')),
        # 服务器收益：最短领取间隔 / 单次最多累计小时数
        CLAIM_MIN_HOURS=float(os.getenv('CLAIM_MIN_HOURS', '1')),
        CLAIM_MAX_HOURS=float(os.getenv('CLAIM_MAX_HOURS', '24')),
        # 定时发放默认不封顶（None），与即时领取的 24 小时上限不同
        BATCH_MAX_HOURS=_optional_float('BATCH_MAX_HOURS'),
        ADVANCE_WATERMARK_ON_ZERO_REWARD=os.getenv('ADVANCE_WATERMARK_ON_ZERO_REWARD', 'True') == 'True',

        DISTRIBUTION_INTERVAL_MINUTES=int(os.getenv('DISTRIBUTION_INTERVAL_MINUTES', '60')),
        SESSION_SETTLE_INTERVAL_MINUTES=int(os.getenv('SESSION_SETTLE_INTERVAL_MINUTES', '5')),
    )
    if test_config:
        app.config.update(test_config)

    # ===== 初始化扩展 =====
    db.init_app(app)
    migrate.init_app(app, db)

    with app.app_context():
        register_models()  # 确保在应用上下文中注册

    # ===== 注册蓝图 =====
    blueprints = [
        accounts_bp,
        mining_bp,
        servers_bp,
        upgrades_bp,
        admin_bp,
    ]
    for bp in blueprints:
        app.register_blueprint(bp)

    # 健康检查
    @app.route('/')
    def health_check():
        return jsonify({'status': 'healthy'})

    return app

if __name__ == '__main__':
    from scheduler import start_scheduler  # 延迟导入
    app = create_app()
    start_scheduler(app)
    app.run(host='0.0.0.0', port=5000)
