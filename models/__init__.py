# 1. 显式导入所有模型类（供__all__和直接引用使用）
from extensions import db

from .account_models import MiningAccount, RewardHistory
from .mining_models import MiningSession
from .server_models import UserServer, ServerInventory, DistributionConfig
from .upgrade_models import UpgradeRecord

# 2. 定义__all__（控制from models import *的行为）
__all__ = [
    'MiningAccount',
    'RewardHistory',
    'MiningSession',
    'UserServer',
    'ServerInventory',
    'DistributionConfig',
    'UpgradeRecord',
]

# 3. 显式注册函数（确保Flask-Migrate能发现模型）
def register_models():
    """强制导入所有模型模块（触发SQLAlchemy注册）"""
    from . import account_models
    from . import mining_models
    from . import server_models
    from . import upgrade_models
