from extensions import db
from datetime import datetime
from models.constants import MOVEMENT_XP

class MovementLog(db.Model):
    __tablename__ = 'movement_logs'
    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey('user.id'), nullable=False)
    bristol_type = db.Column(db.Integer, nullable=False)
    pre_weight = db.Column(db.Float, nullable=True)
    post_weight = db.Column(db.Float, nullable=True)
    weight_unit = db.Column(db.String(8), nullable=False, default='lbs')
    xp_earned = db.Column(db.Integer, nullable=False, default=MOVEMENT_XP)
    logged_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow)

    def to_dict(self):
        return {
            'id': self.id,
            'bristol_type': self.bristol_type,
            'pre_weight': self.pre_weight,
            'post_weight': self.post_weight,
            'weight_unit': self.weight_unit,
            'xp_earned': self.xp_earned,
            'logged_at': self.logged_at.isoformat() if self.logged_at else None,
        }
