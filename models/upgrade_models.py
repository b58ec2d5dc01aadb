from utils.clock import utcnow
from sqlalchemy import Numeric
from extensions import db


class UpgradeRecord(db.Model):
    __tablename__ = 'mining_upgrades'

    id = db.Column(db.Integer, primary_key=True)
    account_id = db.Column(db.Integer, db.ForeignKey('mining_accounts.id'), nullable=False)
    upgrade_type = db.Column(db.String(20), nullable=False)  # mining_power / mining_duration
    previous_level = db.Column(Numeric(10, 2), nullable=False)
    upgrade_level = db.Column(Numeric(10, 2), nullable=False)
    created_at = db.Column(db.DateTime, default=utcnow)

    account = db.relationship('MiningAccount', backref='upgrades')
