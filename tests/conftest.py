"""
Pytest configuration and fixtures.
"""
import sys
import os
from datetime import datetime, timedelta, timezone

import pytest

# Add project root to Python path
sys.path.insert(0, os.path.abspath(os.path.dirname(__file__) + '/..'))

# Tuesday
FIXED_NOW = datetime(2026, 3, 10, 12, 0, tzinfo=timezone.utc)


class FakeClock:
    """Callable clock the services share during the test session."""

    def __init__(self, now=FIXED_NOW):
        self.now = now

    def __call__(self):
        return self.now

    def advance(self, **kwargs):
        self.now = self.now + timedelta(**kwargs)

    def reset(self):
        self.now = FIXED_NOW


class StubProvider:
    """Stands in for the LLM provider: returns ``reply`` or raises ``error``."""

    def __init__(self, reply=None, error=None):
        self.reply = reply
        self.error = error
        self.calls = []

    def classify(self, text, schema):
        self.calls.append(text)
        if self.error is not None:
            raise self.error
        return self.reply


CLOCK = FakeClock()


@pytest.fixture(scope='session')
def app():
    """Create application for testing."""
    from momfit import create_app
    from config import Config

    class TestConfig(Config):
        TESTING = True
        import tempfile
        db_fd, db_path = tempfile.mkstemp()
        SQLALCHEMY_DATABASE_URI = f'sqlite:///{db_path}'
        SERVER_NAME = 'localhost.localdomain'
        # Keyword classifier only; provider behaviour is tested with stubs
        LLM_API_KEY = None

    app = create_app(TestConfig, clock=CLOCK)

    # Initialize database
    with app.app_context():
        from momfit import db
        db.session.configure(expire_on_commit=False)
        db.create_all()

    return app


@pytest.fixture(scope='function', autouse=True)
def clean_db(app):
    """Clean database, caches and clock between tests."""
    with app.app_context():
        from momfit import db
        from momfit.services import get_role_resolver
        # Drop all tables and recreate them to ensure a clean slate
        db.drop_all()
        db.create_all()
        get_role_resolver().clear_cache()
    CLOCK.reset()
    yield


@pytest.fixture(scope='function')
def client(app):
    """Create test client."""
    return app.test_client()


@pytest.fixture(scope='function')
def clock():
    return CLOCK


@pytest.fixture(scope='function')
def ctx(app):
    """Push an app context for tests that call services directly."""
    with app.app_context():
        yield


@pytest.fixture(scope='function')
def resolver(app, ctx):
    from momfit.services import get_role_resolver
    return get_role_resolver()


@pytest.fixture(scope='function')
def scheduler(app, ctx):
    from momfit.services import get_event_scheduler
    return get_event_scheduler()


@pytest.fixture(scope='function')
def make_user(app):
    """Factory: create an active user with password 'password'."""
    from momfit.models import db, User

    def _make_user(username, **kwargs):
        with app.app_context():
            user = User(username=username, email=f'{username}@example.com', **kwargs)
            user.set_password('password')
            db.session.add(user)
            db.session.commit()
            db.session.refresh(user)
            return user
    return _make_user


@pytest.fixture(scope='function')
def community(app):
    from momfit.models import db, Community
    with app.app_context():
        community = Community(name='Morning Movers', description='Stroller walks and yoga')
        db.session.add(community)
        db.session.commit()
        db.session.refresh(community)
        return community


@pytest.fixture(scope='function')
def other_community(app):
    from momfit.models import db, Community
    with app.app_context():
        community = Community(name='Evening Runners')
        db.session.add(community)
        db.session.commit()
        db.session.refresh(community)
        return community


@pytest.fixture(scope='function')
def default_roles(app):
    """Seed the default roles; returns {name: role id}."""
    from momfit.commands.seed_roles import DEFAULT_ROLES
    from momfit.services import get_role_resolver
    with app.app_context():
        resolver = get_role_resolver()
        ids = {}
        for name, (access_level, description, grants) in DEFAULT_ROLES.items():
            ids[name] = resolver.create_role(name, access_level, grants, description=description).id
        return ids


@pytest.fixture(scope='function')
def member(app, make_user, community, default_roles):
    """A plain community member."""
    from momfit.services import get_role_resolver
    user = make_user('member')
    with app.app_context():
        get_role_resolver().assign_role(user.id, default_roles['Community Member'], community_id=community.id)
    return user


@pytest.fixture(scope='function')
def community_admin(app, make_user, community, default_roles):
    from momfit.services import get_role_resolver
    user = make_user('admin')
    with app.app_context():
        get_role_resolver().assign_role(user.id, default_roles['Community Admin'], community_id=community.id)
    return user


@pytest.fixture(scope='function')
def owner(app, make_user, default_roles):
    from momfit.constants import OWNER_ROLE_NAME
    from momfit.services import get_role_resolver
    user = make_user('owner')
    with app.app_context():
        get_role_resolver().assign_role(user.id, default_roles[OWNER_ROLE_NAME])
    return user


def login(client, user):
    """Log a user in through the session cookie."""
    with client.session_transaction() as sess:
        sess['_user_id'] = str(user.id)
        sess['_fresh'] = True
