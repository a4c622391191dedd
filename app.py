# -*- coding: utf-8 -*-
import os
from datetime import datetime, timedelta

import click
from flask import Flask, jsonify
from flask_login import current_user
from flask_wtf.csrf import CSRFError
from sqlalchemy import event
from sqlalchemy.exc import SQLAlchemyError

from extensions import db, login_manager, migrate, csrf, limiter
from models.constants import DATABASE, OVERPASS_URL, BATHROOM_CACHE_TTL


def _env_flag(name, default):
    value = os.environ.get(name)
    if value is None:
        return default
    return value.strip().lower() not in ('0', 'false', 'no', 'off', '')


def _enable_sqlite_fk(dbapi_connection, connection_record):
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def create_app(test_config=None):
    app = Flask(__name__)

    app.config['SECRET_KEY'] = os.environ.get('FLASK_SECRET_KEY', os.urandom(32))
    app.config['SQLALCHEMY_DATABASE_URI'] = os.environ.get('DATABASE_URL', f'sqlite:///{DATABASE}')
    app.config['SQLALCHEMY_TRACK_MODIFICATIONS'] = False
    app.config['PERMANENT_SESSION_LIFETIME'] = timedelta(days=30)
    app.config['RATELIMIT_STORAGE_URI'] = os.environ.get('RATELIMIT_STORAGE_URI', 'memory://')
    app.config['TERRITORY_CLAIMS_ASYNC'] = _env_flag('TERRITORY_CLAIMS_ASYNC', True)
    app.config['CLAIMS_LOG_FILE'] = os.environ.get('CLAIMS_LOG_FILE')
    app.config['OVERPASS_URL'] = os.environ.get('OVERPASS_URL', OVERPASS_URL)
    app.config['BATHROOM_CACHE_TTL'] = int(os.environ.get('BATHROOM_CACHE_TTL', BATHROOM_CACHE_TTL))
    if test_config:
        app.config.update(test_config)

    db.init_app(app)
    login_manager.init_app(app)
    migrate.init_app(app, db)
    csrf.init_app(app)
    limiter.init_app(app)

    import models  # noqa: F401  registers the tables on db.metadata
    from models.api import api_bp
    from models.loggers import configure_loggers, error_logger
    from models.user import User

    app.register_blueprint(api_bp)
    configure_loggers(app)

    with app.app_context():
        if db.engine.url.drivername.startswith('sqlite'):
            event.listen(db.engine, 'connect', _enable_sqlite_fk)
        db.create_all()

    @login_manager.user_loader
    def load_user(user_id):
        return db.session.get(User, int(user_id))

    @login_manager.unauthorized_handler
    def unauthorized():
        return jsonify(error="Unauthorized"), 401

    # Middleware -------------------------------

    @app.before_request
    def update_last_seen():
        if current_user.is_authenticated:
            now = datetime.utcnow()
            if not current_user.last_seen or (now - current_user.last_seen) > timedelta(minutes=5):
                current_user.last_seen = now
                db.session.commit()

    # Errors -------------------------------

    @app.errorhandler(SQLAlchemyError)
    def database_error(error):
        db.session.rollback()
        error_logger.exception("Database error")
        message = str(getattr(error, 'orig', None) or error)
        return jsonify(error=message), 500

    @app.errorhandler(CSRFError)
    def csrf_error(error):
        return jsonify(error=error.description), 400

    @app.errorhandler(404)
    def not_found_error(error):
        return jsonify(error="Not found"), 404

    @app.errorhandler(405)
    def method_not_allowed(error):
        return jsonify(error="Method not allowed"), 405

    @app.errorhandler(429)
    def ratelimit_handler(error):
        return jsonify(error="Too many requests, please slow down!"), 429

    @app.errorhandler(500)
    def internal_error(error):
        return jsonify(error="Internal server error"), 500

    # CLI -------------------------------

    @app.cli.command("init-db")
    def init_db():
        db.create_all()
        print("Database tables created.")

    @app.cli.command("create-user")
    @click.argument("username")
    @click.password_option()
    @click.option("--display-name", default=None)
    @click.option("--premium", is_flag=True, default=False)
    def create_user(username, password, display_name, premium):
        """Create a login for USERNAME."""
        if User.query.filter_by(username=username).first():
            raise click.ClickException(f"User {username} already exists.")
        user = User(username=username, display_name=display_name, premium=premium)
        user.set_password(password)
        db.session.add(user)
        db.session.commit()
        print(f"User {username} created with id {user.id}.")

    return app


if __name__ == '__main__':
    app = create_app()
    app.run(debug=True)
