"""
User model and data access functions.
Handles user authentication, CRUD operations, and Flask-Login integration.
"""

import sqlite3

from werkzeug.security import generate_password_hash, check_password_hash

from database import get_db
from utils.datetime_helpers import now_timestamp
from utils.errors import NotFoundError, ValidationError, ReferentialIntegrityError
from utils.messages import MESSAGES
from utils.pagination import paginate, search_param
from utils.permissions import ActorContext, ROLES, ROLE_ADMIN, ROLE_CEE, require_role
from utils.validators import validate_email, sanitize_input


class User:
    """
    User class for Flask-Login integration.
    Wraps database row dictionary with required Flask-Login properties.
    """

    def __init__(self, user_dict):
        """
        Initialize User from database row.

        Args:
            user_dict: Dictionary with user data from database
        """
        self.id = user_dict['id']
        self.name = user_dict['name']
        self.email = user_dict['email']
        self.role = user_dict['role']
        self.commission_id = user_dict.get('commission_id')
        self.commission_name = user_dict.get('commission_name')
        self.active = user_dict['active']
        self.created_at = user_dict['created_at']
        self.last_login = user_dict.get('last_login')

    @property
    def is_authenticated(self):
        """Required by Flask-Login."""
        return True

    @property
    def is_active(self):
        """Required by Flask-Login."""
        return self.active == 1

    @property
    def is_anonymous(self):
        """Required by Flask-Login."""
        return False

    @property
    def is_admin(self):
        return self.role == ROLE_ADMIN

    @property
    def is_cee(self):
        return self.role == ROLE_CEE

    def get_id(self):
        """Required by Flask-Login. Returns user ID as unicode string."""
        return str(self.id)


_USER_SELECT = '''
    SELECT u.id, u.name, u.email, u.role, u.commission_id, u.active,
           u.created_at, u.updated_at, u.last_login,
           c.name as commission_name, c.color as commission_color
    FROM users u
    LEFT JOIN commissions c ON u.commission_id = c.id
'''


def get_user_by_id(user_id: int) -> dict:
    """
    Get user by ID.

    Args:
        user_id: User ID

    Returns:
        User dict (without password hash) or None if not found
    """
    db = get_db()
    cursor = db.cursor()
    cursor.execute(_USER_SELECT + ' WHERE u.id = ?', (user_id,))
    row = cursor.fetchone()
    return dict(row) if row else None


def get_user_by_email(email: str) -> dict:
    """
    Get user by email, including the password hash (login lookup).

    Args:
        email: Email to search for

    Returns:
        User dict or None if not found
    """
    db = get_db()
    cursor = db.cursor()
    cursor.execute('''
        SELECT u.*, c.name as commission_name
        FROM users u
        LEFT JOIN commissions c ON u.commission_id = c.id
        WHERE LOWER(u.email) = LOWER(?)
    ''', (email.strip(),))
    row = cursor.fetchone()
    return dict(row) if row else None


def get_users(actor: ActorContext, search: str = None, role: str = None,
              commission_id: int = None, page: int = 1, per_page: int = 10) -> dict:
    """
    Paginated user list, newest first (ADMIN only).

    Args:
        actor: Calling user
        search: Substring matched against name and email
        role: Role filter
        commission_id: Commission filter
        page: Page number
        per_page: Items per page

    Returns:
        dict: {items, total, page, per_page, pages}; each item carries
        commission_name and reservation_count
    """
    require_role(actor, ROLE_ADMIN)

    query = '''
        SELECT u.id, u.name, u.email, u.role, u.commission_id, u.active,
               u.created_at, u.last_login,
               c.name as commission_name, c.color as commission_color,
               (SELECT COUNT(*) FROM reservations r WHERE r.user_id = u.id) as reservation_count
        FROM users u
        LEFT JOIN commissions c ON u.commission_id = c.id
        WHERE 1=1
    '''
    count_query = 'SELECT COUNT(*) as total FROM users u WHERE 1=1'
    params = []

    if search:
        clause = ' AND (u.name LIKE ? OR u.email LIKE ?)'
        query += clause
        count_query += clause
        params.extend([search_param(search)] * 2)

    if role:
        query += ' AND u.role = ?'
        count_query += ' AND u.role = ?'
        params.append(role)

    if commission_id:
        query += ' AND u.commission_id = ?'
        count_query += ' AND u.commission_id = ?'
        params.append(commission_id)

    return paginate(get_db().cursor(), query, count_query, params,
                    'u.created_at DESC, u.id DESC', page, per_page)


def get_user_detail(actor: ActorContext, user_id: int, recent_limit: int = 10) -> dict:
    """
    User with reservation count and latest reservations (ADMIN only).

    Raises:
        NotFoundError: If the user does not exist
    """
    require_role(actor, ROLE_ADMIN)

    user = get_user_by_id(user_id)
    if not user:
        raise NotFoundError(MESSAGES['user_not_found'])

    cursor = get_db().cursor()
    cursor.execute('SELECT COUNT(*) FROM reservations WHERE user_id = ?', (user_id,))
    user['reservation_count'] = cursor.fetchone()[0]

    cursor.execute('''
        SELECT r.id, r.title, r.status, r.start_at, r.end_at, r.created_at,
               l.name as location_name
        FROM reservations r
        JOIN locations l ON r.location_id = l.id
        WHERE r.user_id = ?
        ORDER BY r.created_at DESC, r.id DESC
        LIMIT ?
    ''', (user_id, recent_limit))
    user['recent_reservations'] = [dict(row) for row in cursor.fetchall()]
    return user


def get_admin_emails() -> list:
    """Email addresses of all active administrators."""
    cursor = get_db().cursor()
    cursor.execute('''
        SELECT email FROM users
        WHERE role = 'ADMIN' AND active = 1
        ORDER BY id
    ''')
    return [row['email'] for row in cursor.fetchall()]


def _validate_identity(name: str, email: str) -> tuple:
    name = sanitize_input(name, 200, single_line=True)
    email = sanitize_input(email, 254).lower()
    if not name:
        raise ValidationError(MESSAGES['name_required'])
    if not validate_email(email):
        raise ValidationError(MESSAGES['invalid_email'])
    return name, email


def _validate_commission_for_role(cursor, role: str, commission_id: int | None) -> int | None:
    if role == ROLE_CEE:
        if not commission_id:
            raise ValidationError(MESSAGES['cee_commission_required'])
        cursor.execute('SELECT 1 FROM commissions WHERE id = ?', (commission_id,))
        if not cursor.fetchone():
            raise NotFoundError(MESSAGES['commission_not_found'])
        return commission_id
    return None


def insert_user(name: str, email: str, password: str, role: str,
                commission_id: int = None) -> int:
    """
    Create a user with a hashed password, without any access check.
    Used by the admin service and the create-admin CLI command.

    Args:
        name: Display name
        email: Unique email
        password: Plain text password (will be hashed)
        role: 'STUDENT', 'CEE' or 'ADMIN'
        commission_id: Required for CEE, ignored otherwise

    Returns:
        New user ID

    Raises:
        ValidationError: Invalid fields or duplicate email
        NotFoundError: Unknown commission
    """
    name, email = _validate_identity(name, email)
    if role not in ROLES:
        raise ValidationError(MESSAGES['invalid_role'])

    db = get_db()
    cursor = db.cursor()
    commission_id = _validate_commission_for_role(cursor, role, commission_id)

    if get_user_by_email(email):
        raise ValidationError(MESSAGES['email_exists'])

    now = now_timestamp()
    try:
        cursor.execute('''
            INSERT INTO users (name, email, password_hash, role, commission_id,
                               active, created_at, updated_at)
            VALUES (?, ?, ?, ?, ?, 1, ?, ?)
        ''', (name, email, generate_password_hash(password), role, commission_id, now, now))
        db.commit()
    except sqlite3.IntegrityError:
        db.rollback()
        raise ValidationError(MESSAGES['email_exists'])

    return cursor.lastrowid


def create_user(actor: ActorContext, name: str, email: str, password: str,
                role: str, commission_id: int = None) -> int:
    """
    Create a user (ADMIN only).

    Returns:
        New user ID
    """
    require_role(actor, ROLE_ADMIN)
    return insert_user(name, email, password, role, commission_id)


def update_user(actor: ActorContext, user_id: int, name: str, email: str) -> dict:
    """
    Update a user's name and email (ADMIN only).

    Returns:
        Updated user dict

    Raises:
        NotFoundError: If the user does not exist
        ValidationError: Invalid fields or email used by another account
    """
    require_role(actor, ROLE_ADMIN)
    return _update_identity(user_id, name, email)


def update_own_profile(actor: ActorContext, name: str, email: str) -> dict:
    """Update the caller's own name and email (any role)."""
    require_role(actor, *ROLES)
    return _update_identity(actor.user_id, name, email)


def _update_identity(user_id: int, name: str, email: str) -> dict:
    if not get_user_by_id(user_id):
        raise NotFoundError(MESSAGES['user_not_found'])

    name, email = _validate_identity(name, email)
    existing = get_user_by_email(email)
    if existing and existing['id'] != user_id:
        raise ValidationError(MESSAGES['email_exists'])

    db = get_db()
    db.execute('''
        UPDATE users SET name = ?, email = ?, updated_at = ?
        WHERE id = ?
    ''', (name, email, now_timestamp(), user_id))
    db.commit()

    return get_user_by_id(user_id)


def update_user_commission(actor: ActorContext, user_id: int, commission_id: int) -> dict:
    """
    Reassign a CEE member to another commission (ADMIN only).

    Raises:
        NotFoundError: Unknown user or commission
        ValidationError: Target user is not a CEE member
    """
    require_role(actor, ROLE_ADMIN)

    user = get_user_by_id(user_id)
    if not user:
        raise NotFoundError(MESSAGES['user_not_found'])
    if user['role'] != ROLE_CEE:
        raise ValidationError(MESSAGES['commission_only_for_cee'])

    db = get_db()
    commission_id = _validate_commission_for_role(db.cursor(), ROLE_CEE, commission_id)

    db.execute('''
        UPDATE users SET commission_id = ?, updated_at = ?
        WHERE id = ?
    ''', (commission_id, now_timestamp(), user_id))
    db.commit()

    return get_user_by_id(user_id)


def update_password(user_id: int, new_password: str) -> bool:
    """
    Update user password.

    Args:
        user_id: User ID
        new_password: New plain text password (will be hashed)

    Returns:
        True if updated successfully
    """
    db = get_db()
    password_hash = generate_password_hash(new_password)

    cursor = db.cursor()
    cursor.execute('''
        UPDATE users
        SET password_hash = ?, updated_at = ?
        WHERE id = ?
    ''', (password_hash, now_timestamp(), user_id))

    db.commit()
    return cursor.rowcount > 0


def delete_user(actor: ActorContext, user_id: int) -> None:
    """
    Permanently delete a user (ADMIN only).

    Blocked for the caller's own account, for administrators, and for users
    who requested or validated any reservation.

    Raises:
        NotFoundError: If the user does not exist
        ReferentialIntegrityError: If a guard blocks the delete
    """
    require_role(actor, ROLE_ADMIN)

    if user_id == actor.user_id:
        raise ReferentialIntegrityError(MESSAGES['cannot_delete_self'])

    user = get_user_by_id(user_id)
    if not user:
        raise NotFoundError(MESSAGES['user_not_found'])
    if user['role'] == ROLE_ADMIN:
        raise ReferentialIntegrityError(MESSAGES['cannot_delete_admin'])

    db = get_db()
    cursor = db.cursor()

    try:
        cursor.execute('BEGIN IMMEDIATE')

        cursor.execute('''
            SELECT COUNT(*) FROM reservations
            WHERE user_id = ? OR validated_by = ?
        ''', (user_id, user_id))
        if cursor.fetchone()[0] > 0:
            raise ReferentialIntegrityError(MESSAGES['user_has_reservations'])

        cursor.execute('DELETE FROM users WHERE id = ?', (user_id,))
        db.commit()

    except Exception:
        db.rollback()
        raise


def update_last_login(user_id: int) -> None:
    """
    Update last login timestamp.

    Args:
        user_id: User ID
    """
    db = get_db()
    cursor = db.cursor()
    cursor.execute('''
        UPDATE users SET last_login = ?
        WHERE id = ?
    ''', (now_timestamp(), user_id))
    db.commit()


def check_password(user_dict: dict, password: str) -> bool:
    """
    Verify password against stored hash.

    Args:
        user_dict: User dictionary with password_hash
        password: Plain text password to check

    Returns:
        True if password matches
    """
    return check_password_hash(user_dict['password_hash'], password)
