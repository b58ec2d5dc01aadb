from utils.clock import utcnow
from sqlalchemy import Numeric
from sqlalchemy.orm import relationship
from extensions import db


class UserServer(db.Model):
    __tablename__ = 'user_servers'

    id = db.Column(db.Integer, primary_key=True)
    account_id = db.Column(db.Integer, db.ForeignKey('mining_accounts.id'), nullable=False, index=True)
    server_tier = db.Column(db.String(32), nullable=False)
    server_name = db.Column(db.String(64), nullable=False)
    hash_rate = db.Column(db.String(32), nullable=True)

    daily_bolt_yield = db.Column(Numeric(24, 8), default=0, nullable=False)
    daily_usdt_yield = db.Column(Numeric(24, 8), default=0, nullable=False)
    daily_ton_yield = db.Column(Numeric(24, 8), default=0, nullable=False)

    purchased_at = db.Column(db.DateTime, default=utcnow, nullable=False)
    last_claim_at = db.Column(db.DateTime, nullable=True)  # 为空时以 purchased_at 为准
    is_active = db.Column(db.Boolean, default=True, nullable=False, index=True)

    account = relationship("MiningAccount", back_populates="servers")

    @property
    def watermark(self):
        return self.last_claim_at or self.purchased_at

    def daily_yields(self):
        return {
            'BOLT': self.daily_bolt_yield or 0,
            'USDT': self.daily_usdt_yield or 0,
            'TON': self.daily_ton_yield or 0,
        }

    def to_dict(self):
        return {
            'id': self.id,
            'server_tier': self.server_tier,
            'server_name': self.server_name,
            'hash_rate': self.hash_rate,
            'daily_bolt_yield': str(self.daily_bolt_yield),
            'daily_usdt_yield': str(self.daily_usdt_yield),
            'daily_ton_yield': str(self.daily_ton_yield),
            'purchased_at': self.purchased_at.isoformat(),
            'last_claim_at': self.last_claim_at.isoformat() if self.last_claim_at else None,
            'is_active': self.is_active,
        }


class ServerInventory(db.Model):
    __tablename__ = 'server_inventory'

    id = db.Column(db.Integer, primary_key=True)
    server_id = db.Column(db.String(64), unique=True, nullable=False)
    server_name = db.Column(db.String(64), nullable=False)
    server_tier = db.Column(db.String(32), nullable=False)
    hash_rate = db.Column(db.String(32), nullable=True)
    daily_bolt_yield = db.Column(Numeric(24, 8), default=0, nullable=False)
    daily_usdt_yield = db.Column(Numeric(24, 8), default=0, nullable=False)
    daily_ton_yield = db.Column(Numeric(24, 8), default=0, nullable=False)
    total_stock = db.Column(db.Integer, default=0, nullable=False)
    sold_count = db.Column(db.Integer, default=0, nullable=False)

    @property
    def remaining(self):
        return self.total_stock - self.sold_count


class DistributionConfig(db.Model):
    __tablename__ = 'distribution_config'

    id = db.Column(db.Integer, primary_key=True)
    is_task_enabled = db.Column(db.Boolean, default=True)  # 定时发放是否开启
