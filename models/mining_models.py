from utils.clock import utcnow
from sqlalchemy import Numeric
from extensions import db


class MiningSession(db.Model):
    __tablename__ = 'mining_sessions'

    id = db.Column(db.Integer, primary_key=True)
    account_id = db.Column(db.Integer, db.ForeignKey('mining_accounts.id'), nullable=False, index=True)
    # 进行中时等于 account_id，结束后置空；唯一约束保证每个账户最多一个进行中的会话
    active_account_id = db.Column(db.Integer, nullable=True, unique=True)
    start_time = db.Column(db.DateTime, nullable=False)
    end_time = db.Column(db.DateTime, nullable=False)

    # 开始时冻结，之后的升级不影响进行中的会话
    duration_hours = db.Column(db.Integer, nullable=False)
    mining_power = db.Column(Numeric(10, 2), nullable=False)
    tokens_per_hour = db.Column(Numeric(24, 8), nullable=False)

    is_active = db.Column(db.Boolean, default=True, nullable=False)
    total_mined = db.Column(Numeric(24, 8), nullable=True)  # 仅在完成时写入
    completed_at = db.Column(db.DateTime, nullable=True)
    created_at = db.Column(db.DateTime, default=utcnow)

    account = db.relationship('MiningAccount', back_populates='mining_sessions')

    def to_dict(self):
        return {
            'id': self.id,
            'start_time': self.start_time.isoformat(),
            'end_time': self.end_time.isoformat(),
            'duration_hours': self.duration_hours,
            'mining_power': str(self.mining_power),
            'tokens_per_hour': str(self.tokens_per_hour),
            'is_active': self.is_active,
            'total_mined': str(self.total_mined) if self.total_mined is not None else None,
            'completed_at': self.completed_at.isoformat() if self.completed_at else None,
        }
