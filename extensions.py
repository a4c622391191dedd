# extensions.py
from flask import request
from flask_sqlalchemy import SQLAlchemy
from flask_login import LoginManager, current_user
from flask_migrate import Migrate
from flask_wtf import CSRFProtect
from flask_limiter import Limiter
from flask_limiter.util import get_remote_address


def limiter_key_func():
    if current_user and current_user.is_authenticated:
        return f"user:{current_user.get_id()}"
    if request.remote_addr in ('127.0.0.1', '::1'):
        return 'localhost'
    return get_remote_address() or 'localhost'


limiter = Limiter(key_func=limiter_key_func, default_limits=["2000 per day", "300 per hour"])
db = SQLAlchemy()
login_manager = LoginManager()
migrate = Migrate()
csrf = CSRFProtect()
