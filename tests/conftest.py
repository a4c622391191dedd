import pytest

from app import create_app
from extensions import db
from models.user import User
from models.movement import MovementLog
from models.overpass import bathroom_cache

PASSWORD = "secret-pass"


@pytest.fixture
def app(tmp_path):
    app = create_app({
        'TESTING': True,
        'SECRET_KEY': 'test',
        'SQLALCHEMY_DATABASE_URI': f"sqlite:///{tmp_path / 'test.db'}",
        'SQLALCHEMY_ENGINE_OPTIONS': {'connect_args': {'timeout': 30}},
        'WTF_CSRF_ENABLED': False,
        'RATELIMIT_ENABLED': False,
        'TERRITORY_CLAIMS_ASYNC': False,
        'OVERPASS_URL': 'http://overpass.test/api/interpreter',
    })
    bathroom_cache.clear()
    yield app
    with app.app_context():
        db.session.remove()
        db.engine.dispose()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def users(app):
    """alice (premium), bob and carol; returns their ids."""
    with app.app_context():
        alice = User(username='alice', display_name='Alice', premium=True)
        bob = User(username='bob')
        carol = User(username='carol', display_name='Carol')
        for u in (alice, bob, carol):
            u.set_password(PASSWORD)
        db.session.add_all([alice, bob, carol])
        db.session.commit()
        return {'alice': alice.id, 'bob': bob.id, 'carol': carol.id}


def _post_login(client, username, password=PASSWORD):
    return client.post('/api/auth/login', json={'username': username, 'password': password})


@pytest.fixture
def login():
    """Post credentials from a test client; defaults to the shared password."""
    return _post_login


@pytest.fixture
def alice_client(app, users):
    client = app.test_client()
    assert _post_login(client, 'alice').status_code == 200
    return client


@pytest.fixture
def bob_client(app, users):
    client = app.test_client()
    assert _post_login(client, 'bob').status_code == 200
    return client


@pytest.fixture
def make_movement(app):
    """Factory storing a movement log for a user; returns its id."""
    def _make(user_id, bristol_type=4):
        with app.app_context():
            log = MovementLog(user_id=user_id, bristol_type=bristol_type)
            db.session.add(log)
            db.session.commit()
            return log.id
    return _make
