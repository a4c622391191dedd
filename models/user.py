from flask_login import UserMixin
from werkzeug.security import generate_password_hash, check_password_hash
from datetime import datetime
from extensions import db
from models.constants import ANONYMOUS_NAME

class User(db.Model, UserMixin):
    __tablename__ = 'user'
    id = db.Column(db.Integer, primary_key=True)
    username = db.Column(db.String(32), unique=True, nullable=False)
    display_name = db.Column(db.String(64), nullable=True)
    password_hash = db.Column(db.String(256), nullable=False)
    premium = db.Column(db.Boolean, default=False)
    premium_until = db.Column(db.DateTime, nullable=True)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    last_seen = db.Column(db.DateTime, default=datetime.utcnow)

    movement_logs = db.relationship('MovementLog', backref='user', lazy=True)
    location_logs = db.relationship('LocationLog', backref='user', lazy=True)

    def set_password(self, password):
        self.password_hash = generate_password_hash(
            password,
            method='pbkdf2:sha256',
            salt_length=16
        )
    def check_password(self, password):
        return check_password_hash(self.password_hash, password)

    @property
    def public_name(self):
        return self.display_name or self.username or ANONYMOUS_NAME

    def has_premium(self):
        if not self.premium:
            return False
        return self.premium_until is None or self.premium_until > datetime.utcnow()

    def to_dict(self):
        return {
            'id': self.id,
            'username': self.username,
            'displayName': self.display_name,
            'premium': self.has_premium(),
        }

    def __repr__(self):
        return f'<User {self.username}>'
