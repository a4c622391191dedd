from extensions import db
from datetime import datetime
from models.constants import ANONYMOUS_NAME

class LocationLog(db.Model):
    __tablename__ = 'location_logs'
    id = db.Column(db.Integer, primary_key=True)
    movement_log_id = db.Column(db.Integer, db.ForeignKey('movement_logs.id'), nullable=False)
    user_id = db.Column(db.Integer, db.ForeignKey('user.id'), nullable=False)
    latitude = db.Column(db.Float, nullable=False)
    longitude = db.Column(db.Float, nullable=False)
    place_name = db.Column(db.String(255), nullable=True)
    created_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow)

    movement_log = db.relationship('MovementLog', backref='locations')

    def to_dict(self):
        return {
            'id': self.id,
            'movement_log_id': self.movement_log_id,
            'latitude': self.latitude,
            'longitude': self.longitude,
            'place_name': self.place_name,
            'created_at': self.created_at.isoformat() if self.created_at else None,
        }


class LocationRating(db.Model):
    __tablename__ = 'location_ratings'
    id = db.Column(db.Integer, primary_key=True)
    location_log_id = db.Column(db.Integer, db.ForeignKey('location_logs.id'), nullable=False)
    user_id = db.Column(db.Integer, db.ForeignKey('user.id'), nullable=False)
    rating = db.Column(db.Integer, nullable=False)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    __table_args__ = (db.UniqueConstraint('location_log_id', 'user_id', name='_location_user_rating_uc'),)


class LocationComment(db.Model):
    __tablename__ = 'location_comments'
    id = db.Column(db.Integer, primary_key=True)
    location_log_id = db.Column(db.Integer, db.ForeignKey('location_logs.id'), nullable=False)
    user_id = db.Column(db.Integer, db.ForeignKey('user.id'), nullable=False)
    body = db.Column(db.Text, nullable=False)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    author = db.relationship('User')

    def to_dict(self):
        return {
            'id': self.id,
            'user_id': self.user_id,
            'body': self.body,
            'created_at': self.created_at.isoformat() if self.created_at else None,
            'userName': self.author.public_name if self.author else ANONYMOUS_NAME,
        }
