from utils.clock import utcnow
from sqlalchemy import Numeric
from sqlalchemy.orm import relationship
from extensions import db


class MiningAccount(db.Model):
    __tablename__ = 'mining_accounts'

    id = db.Column(db.Integer, primary_key=True)
    telegram_id = db.Column(db.BigInteger, unique=True, nullable=False)
    username = db.Column(db.String(64), nullable=True)
    first_name = db.Column(db.String(128), nullable=True)

    # 余额：BOLT 为主币，USDT / TON 为副币
    token_balance = db.Column(Numeric(24, 8), default=0, nullable=False)
    usdt_balance = db.Column(Numeric(24, 8), default=0, nullable=False)
    ton_balance = db.Column(Numeric(24, 8), default=0, nullable=False)

    mining_power = db.Column(Numeric(10, 2), default=1, nullable=False)
    mining_duration_hours = db.Column(db.Integer, default=4, nullable=False)

    created_at = db.Column(db.DateTime, default=utcnow)
    updated_at = db.Column(db.DateTime, default=utcnow)

    servers = relationship("UserServer", back_populates="account")
    mining_sessions = relationship("MiningSession", back_populates="account")
    reward_history = relationship("RewardHistory", back_populates="account")

    def balances(self):
        return {
            'BOLT': self.token_balance,
            'USDT': self.usdt_balance,
            'TON': self.ton_balance,
        }

    def to_dict(self):
        return {
            'id': self.id,
            'telegram_id': self.telegram_id,
            'username': self.username,
            'first_name': self.first_name,
            'token_balance': str(self.token_balance),
            'usdt_balance': str(self.usdt_balance),
            'ton_balance': str(self.ton_balance),
            'mining_power': str(self.mining_power),
            'mining_duration_hours': self.mining_duration_hours,
        }


class RewardHistory(db.Model):
    __tablename__ = 'reward_history'

    id = db.Column(db.Integer, primary_key=True)
    account_id = db.Column(db.Integer, db.ForeignKey('mining_accounts.id'), nullable=False, index=True)
    currency = db.Column(db.String(10), nullable=False)
    change_type = db.Column(db.String(60), nullable=False)
    change_amount = db.Column(Numeric(24, 8), nullable=False)
    description = db.Column(db.String(255), nullable=True)
    created_at = db.Column(db.DateTime, default=utcnow)

    account = relationship("MiningAccount", back_populates="reward_history")
