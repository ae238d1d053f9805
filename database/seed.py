"""
Database seed data.
Initial data population for fresh database installations.
"""

from werkzeug.security import generate_password_hash

from utils.datetime_helpers import now_timestamp

DEFAULT_ADMIN_NAME = 'Administrateur'
DEFAULT_ADMIN_EMAIL = 'admin@esp-reservation.fr'
DEFAULT_ADMIN_PASSWORD = 'admin123'


def seed_database(db):
    """Insert the default administrator account."""
    now = now_timestamp()

    db.execute('''
        INSERT INTO users (name, email, password_hash, role, active, created_at, updated_at)
        VALUES (?, ?, ?, 'ADMIN', 1, ?, ?)
    ''', (
        DEFAULT_ADMIN_NAME,
        DEFAULT_ADMIN_EMAIL,
        generate_password_hash(DEFAULT_ADMIN_PASSWORD),
        now,
        now
    ))
