"""
Pytest configuration and fixtures.
Ensures tests use an isolated test database, not the production database.

The app fixture does not keep an application context pushed: each test
client request gets its own context (and its own Flask-Login user), and
model-level tests open one with ``with app.app_context():``.
"""

import os
import pytest

# Set test environment BEFORE importing app
os.environ['FLASK_ENV'] = 'test'

ADMIN_EMAIL = 'admin@esp-reservation.fr'
ADMIN_PASSWORD = 'admin123'
MEMBER_PASSWORD = 'motdepasse123'
CEE_EMAIL = 'claire.martin@esp-reservation.fr'
STUDENT_EMAIL = 'lea.petit@esp-reservation.fr'


@pytest.fixture
def app(tmp_path):
    """Create test application with an isolated database file."""
    from app import create_app
    from database import init_db

    app = create_app('test')
    app.config['TESTING'] = True
    app.config['WTF_CSRF_ENABLED'] = False
    app.config['DATABASE_PATH'] = str(tmp_path / 'esp_reservation_test.db')

    with app.app_context():
        init_db()

    yield app


@pytest.fixture
def client(app):
    """Create test client."""
    return app.test_client()


@pytest.fixture
def admin_actor(app):
    """ActorContext for the seeded administrator."""
    from models.user import get_user_by_email
    from utils.permissions import actor_from_user

    with app.app_context():
        return actor_from_user(get_user_by_email(ADMIN_EMAIL))


@pytest.fixture
def commission(app, admin_actor):
    """Id of a commission owning the location fixture."""
    from models.commission import create_commission

    with app.app_context():
        return create_commission(admin_actor, 'Bureau des Sports', 'Salles de sport', '#10B981')


@pytest.fixture
def location(app, admin_actor, commission):
    """Id of a location of the commission fixture, capped at 4 hours."""
    from models.location import create_location

    with app.app_context():
        return create_location(admin_actor, 'Gymnase', commission, 'Grand gymnase', 4)


@pytest.fixture
def other_commission(app, admin_actor):
    """A second commission with one uncapped location."""
    from models.commission import create_commission
    from models.location import create_location

    with app.app_context():
        commission_id = create_commission(admin_actor, 'Bureau des Arts', None, '#8B5CF6')
        location_id = create_location(admin_actor, 'Salle de musique', commission_id)
    return {'commission_id': commission_id, 'location_id': location_id}


def make_actor(app, name, email, role, commission_id=None):
    """Insert a user and return its ActorContext."""
    from models.user import insert_user, get_user_by_id
    from utils.permissions import actor_from_user

    with app.app_context():
        user_id = insert_user(name, email, MEMBER_PASSWORD, role, commission_id)
        return actor_from_user(get_user_by_id(user_id))


@pytest.fixture
def cee_actor(app, commission):
    """CEE member of the commission fixture."""
    return make_actor(app, 'Claire Martin', CEE_EMAIL, 'CEE', commission)


@pytest.fixture
def other_cee_actor(app, other_commission):
    """CEE member of the second commission."""
    return make_actor(app, 'Hugo Bernard', 'hugo.bernard@esp-reservation.fr', 'CEE',
                      other_commission['commission_id'])


@pytest.fixture
def student_actor(app):
    """Student requester."""
    return make_actor(app, 'Léa Petit', STUDENT_EMAIL, 'STUDENT')


@pytest.fixture
def pending_reservation(app, student_actor, location):
    """PENDING reservation (2030-03-02 14:00-16:00) on the location fixture."""
    from models.reservation import create_reservation

    with app.app_context():
        return create_reservation(student_actor, 'Entraînement basket', location,
                                  '2030-03-02T14:00', '2030-03-02T16:00')


@pytest.fixture
def mail_outbox(app):
    """Emails captured while MAIL_SUPPRESS_SEND is on."""
    outbox = app.extensions.setdefault('mail_outbox', [])
    outbox.clear()
    return outbox


def login(client, email, password):
    """Post the login form and return the client."""
    client.post('/login', data={'email': email, 'password': password})
    return client


@pytest.fixture
def admin_client(app):
    """Test client logged in as the administrator."""
    return login(app.test_client(), ADMIN_EMAIL, ADMIN_PASSWORD)


@pytest.fixture
def cee_client(app, cee_actor):
    """Test client logged in as the CEE member."""
    return login(app.test_client(), CEE_EMAIL, MEMBER_PASSWORD)
