"""
Database schema definitions.
Table creation, overlap triggers, indexes.
"""


def drop_tables(db):
    """Drop all existing tables."""
    # Disable foreign key constraints before dropping
    db.execute('PRAGMA foreign_keys = OFF')

    tables = [
        'reservations',
        'locations',
        'users',
        'commissions',
    ]

    for table in tables:
        db.execute(f'DROP TABLE IF EXISTS {table}')

    # Re-enable foreign key constraints
    db.execute('PRAGMA foreign_keys = ON')


def create_tables(db):
    """Create all database tables."""

    # 1. Commissions
    db.execute('''
        CREATE TABLE commissions (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            name TEXT UNIQUE NOT NULL,
            description TEXT,
            color TEXT NOT NULL DEFAULT '#3B82F6',
            created_at TEXT NOT NULL,
            updated_at TEXT NOT NULL
        )
    ''')

    # 2. Users
    db.execute('''
        CREATE TABLE users (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            name TEXT NOT NULL,
            email TEXT UNIQUE NOT NULL,
            password_hash TEXT NOT NULL,
            role TEXT NOT NULL DEFAULT 'STUDENT'
                CHECK (role IN ('STUDENT', 'CEE', 'ADMIN')),
            commission_id INTEGER REFERENCES commissions(id),
            active INTEGER DEFAULT 1,
            created_at TEXT NOT NULL,
            updated_at TEXT NOT NULL,
            last_login TEXT
        )
    ''')

    # 3. Locations
    db.execute('''
        CREATE TABLE locations (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            name TEXT NOT NULL,
            description TEXT,
            max_duration_hours REAL CHECK (max_duration_hours IS NULL OR max_duration_hours > 0),
            commission_id INTEGER NOT NULL REFERENCES commissions(id),
            created_at TEXT NOT NULL,
            updated_at TEXT NOT NULL
        )
    ''')

    # 4. Reservations
    # Times are local wall-clock text 'YYYY-MM-DD HH:MM:SS' so they compare lexically
    db.execute('''
        CREATE TABLE reservations (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            title TEXT NOT NULL,
            description TEXT,
            location_id INTEGER NOT NULL REFERENCES locations(id),
            user_id INTEGER NOT NULL REFERENCES users(id),
            start_at TEXT NOT NULL,
            end_at TEXT NOT NULL,
            status TEXT NOT NULL DEFAULT 'PENDING'
                CHECK (status IN ('PENDING', 'ACCEPTED', 'REJECTED', 'CANCELLED')),
            validated_by INTEGER REFERENCES users(id),
            rejection_reason TEXT,
            created_at TEXT NOT NULL,
            updated_at TEXT NOT NULL,
            CHECK (end_at > start_at),
            CHECK (status != 'ACCEPTED' OR validated_by IS NOT NULL),
            CHECK (status != 'REJECTED' OR (validated_by IS NOT NULL
                                           AND rejection_reason IS NOT NULL
                                           AND TRIM(rejection_reason) != ''))
        )
    ''')

    create_triggers(db)


def create_triggers(db):
    """
    Exclusion constraint for reservations.

    No two PENDING/ACCEPTED reservations on the same location may have
    overlapping [start_at, end_at) intervals.
    """
    db.execute('''
        CREATE TRIGGER reservations_no_overlap_insert
        BEFORE INSERT ON reservations
        WHEN NEW.status IN ('PENDING', 'ACCEPTED')
        BEGIN
            SELECT RAISE(ABORT, 'reservation_overlap')
            WHERE EXISTS (
                SELECT 1 FROM reservations
                WHERE location_id = NEW.location_id
                  AND status IN ('PENDING', 'ACCEPTED')
                  AND start_at < NEW.end_at
                  AND end_at > NEW.start_at
            );
        END
    ''')

    db.execute('''
        CREATE TRIGGER reservations_no_overlap_update
        BEFORE UPDATE OF status, start_at, end_at, location_id ON reservations
        WHEN NEW.status IN ('PENDING', 'ACCEPTED')
        BEGIN
            SELECT RAISE(ABORT, 'reservation_overlap')
            WHERE EXISTS (
                SELECT 1 FROM reservations
                WHERE location_id = NEW.location_id
                  AND id != NEW.id
                  AND status IN ('PENDING', 'ACCEPTED')
                  AND start_at < NEW.end_at
                  AND end_at > NEW.start_at
            );
        END
    ''')


def create_indexes(db):
    """Create database indexes for performance."""
    indexes = [
        'CREATE INDEX idx_users_role ON users(role)',
        'CREATE INDEX idx_users_commission ON users(commission_id)',
        'CREATE INDEX idx_locations_commission ON locations(commission_id)',
        'CREATE INDEX idx_reservations_location_time ON reservations(location_id, start_at, end_at)',
        'CREATE INDEX idx_reservations_status ON reservations(status)',
        'CREATE INDEX idx_reservations_created ON reservations(created_at)',
        'CREATE INDEX idx_reservations_user ON reservations(user_id)',
        'CREATE INDEX idx_reservations_validated_by ON reservations(validated_by)',
    ]

    for index_sql in indexes:
        db.execute(index_sql)
