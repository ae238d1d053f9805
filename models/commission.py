"""
Commission model.
CRUD for commissions, the administrative units that own locations and CEE members.
"""

import sqlite3

from database import get_db
from utils.datetime_helpers import now_timestamp
from utils.errors import NotFoundError, ValidationError, ReferentialIntegrityError
from utils.messages import MESSAGES
from utils.pagination import paginate, search_param
from utils.permissions import (ActorContext, ROLE_ADMIN, VALIDATOR_ROLES, require_role,
                               require_commission_access)
from utils.validators import sanitize_input, validate_hex_color

DEFAULT_COLOR = '#3B82F6'

_COUNTS = '''
    (SELECT COUNT(*) FROM users u WHERE u.commission_id = c.id) as member_count,
    (SELECT COUNT(*) FROM locations l WHERE l.commission_id = c.id) as location_count
'''


def get_commissions(actor: ActorContext, search: str = None,
                    page: int = 1, per_page: int = 10) -> dict:
    """
    Paginated commission list ordered by name (ADMIN only).

    Args:
        actor: Calling user
        search: Substring matched against name and description
        page: Page number
        per_page: Items per page

    Returns:
        dict: {items, total, page, per_page, pages}; items carry
        member_count and location_count
    """
    require_role(actor, ROLE_ADMIN)

    query = f'SELECT c.*, {_COUNTS} FROM commissions c WHERE 1=1'
    count_query = 'SELECT COUNT(*) as total FROM commissions c WHERE 1=1'
    params = []

    if search:
        clause = ' AND (c.name LIKE ? OR c.description LIKE ?)'
        query += clause
        count_query += clause
        params.extend([search_param(search)] * 2)

    return paginate(get_db().cursor(), query, count_query, params,
                    'c.name COLLATE NOCASE ASC', page, per_page)


def get_commission_by_id(commission_id: int) -> dict:
    """
    Get commission by ID with member and location counts.

    Returns:
        Commission dict or None if not found
    """
    cursor = get_db().cursor()
    cursor.execute(f'SELECT c.*, {_COUNTS} FROM commissions c WHERE c.id = ?', (commission_id,))
    row = cursor.fetchone()
    return dict(row) if row else None


def get_commission_detail(actor: ActorContext, commission_id: int) -> dict:
    """
    Commission with its members and locations.

    ADMIN sees any commission, CEE only their own.

    Raises:
        NotFoundError: If the commission does not exist
    """
    commission = get_commission_by_id(commission_id)
    if not commission:
        raise NotFoundError(MESSAGES['commission_not_found'])
    require_commission_access(actor, commission_id)

    cursor = get_db().cursor()
    cursor.execute('''
        SELECT id, name, email, role, created_at
        FROM users WHERE commission_id = ?
        ORDER BY name COLLATE NOCASE
    ''', (commission_id,))
    commission['members'] = [dict(row) for row in cursor.fetchall()]

    cursor.execute('''
        SELECT l.id, l.name, l.description, l.max_duration_hours,
               (SELECT COUNT(*) FROM reservations r WHERE r.location_id = l.id) as reservation_count
        FROM locations l WHERE l.commission_id = ?
        ORDER BY l.name COLLATE NOCASE
    ''', (commission_id,))
    commission['locations'] = [dict(row) for row in cursor.fetchall()]
    return commission


def get_commissions_for_select(actor: ActorContext) -> list:
    """
    Id/name/color list for form selects.

    ADMIN gets every commission, CEE only their own.
    """
    require_role(actor, *VALIDATOR_ROLES)

    cursor = get_db().cursor()
    if actor.is_admin:
        cursor.execute('SELECT id, name, color FROM commissions ORDER BY name COLLATE NOCASE')
    else:
        cursor.execute('SELECT id, name, color FROM commissions WHERE id = ?', (actor.commission_id,))
    return [dict(row) for row in cursor.fetchall()]


def _clean_fields(name: str, description: str | None, color: str | None) -> tuple:
    name = sanitize_input(name, 100, single_line=True)
    if not name:
        raise ValidationError(MESSAGES['name_required'])
    description = sanitize_input(description, 1000) or None
    color = (color or DEFAULT_COLOR).strip()
    if not validate_hex_color(color):
        raise ValidationError(MESSAGES['invalid_color'])
    return name, description, color


def create_commission(actor: ActorContext, name: str, description: str = None,
                      color: str = None) -> int:
    """
    Create a commission (ADMIN only).

    Args:
        actor: Calling user
        name: Unique commission name
        description: Optional description
        color: '#RRGGBB' tag (defaults to DEFAULT_COLOR)

    Returns:
        New commission ID

    Raises:
        ValidationError: Missing name, bad color or duplicate name
    """
    require_role(actor, ROLE_ADMIN)
    name, description, color = _clean_fields(name, description, color)

    db = get_db()
    cursor = db.cursor()
    now = now_timestamp()
    try:
        cursor.execute('''
            INSERT INTO commissions (name, description, color, created_at, updated_at)
            VALUES (?, ?, ?, ?, ?)
        ''', (name, description, color, now, now))
        db.commit()
    except sqlite3.IntegrityError:
        db.rollback()
        raise ValidationError(MESSAGES['commission_name_exists'])

    return cursor.lastrowid


def update_commission(actor: ActorContext, commission_id: int, name: str,
                      description: str = None, color: str = None) -> dict:
    """
    Update a commission (ADMIN only).

    Returns:
        Updated commission dict

    Raises:
        NotFoundError: If the commission does not exist
        ValidationError: Invalid fields or duplicate name
    """
    require_role(actor, ROLE_ADMIN)

    if not get_commission_by_id(commission_id):
        raise NotFoundError(MESSAGES['commission_not_found'])

    name, description, color = _clean_fields(name, description, color)

    db = get_db()
    try:
        db.execute('''
            UPDATE commissions
            SET name = ?, description = ?, color = ?, updated_at = ?
            WHERE id = ?
        ''', (name, description, color, now_timestamp(), commission_id))
        db.commit()
    except sqlite3.IntegrityError:
        db.rollback()
        raise ValidationError(MESSAGES['commission_name_exists'])

    return get_commission_by_id(commission_id)


def delete_commission(actor: ActorContext, commission_id: int) -> None:
    """
    Delete a commission that has no members and no locations (ADMIN only).

    Raises:
        NotFoundError: If the commission does not exist
        ReferentialIntegrityError: If members or locations still reference it
    """
    require_role(actor, ROLE_ADMIN)

    db = get_db()
    cursor = db.cursor()

    try:
        cursor.execute('BEGIN IMMEDIATE')

        cursor.execute(f'SELECT c.id, {_COUNTS} FROM commissions c WHERE c.id = ?', (commission_id,))
        row = cursor.fetchone()
        if not row:
            raise NotFoundError(MESSAGES['commission_not_found'])

        if row['member_count'] > 0 or row['location_count'] > 0:
            raise ReferentialIntegrityError(MESSAGES['commission_has_dependencies'])

        cursor.execute('DELETE FROM commissions WHERE id = ?', (commission_id,))
        db.commit()

    except Exception:
        db.rollback()
        raise
