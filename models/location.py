"""
Location model.
Bookable places, each owned by one commission, with an optional duration cap.
"""

from database import get_db
from utils.datetime_helpers import now_timestamp
from utils.errors import NotFoundError, ValidationError, ReferentialIntegrityError
from utils.messages import MESSAGES
from utils.pagination import paginate, search_param
from utils.permissions import ActorContext, ROLE_ADMIN, require_role, get_commission_scope
from utils.validators import sanitize_input, parse_positive_number


def get_locations(actor: ActorContext, search: str = None, commission_id: int = None,
                  page: int = 1, per_page: int = 10) -> dict:
    """
    Paginated location list ordered by name.

    ADMIN sees every location (optionally filtered by commission), CEE only
    their commission's.

    Args:
        actor: Calling user
        search: Substring matched against name and description
        commission_id: Commission filter (ADMIN only)
        page: Page number
        per_page: Items per page

    Returns:
        dict: {items, total, page, per_page, pages}; items carry
        commission_name, commission_color and reservation_count
    """
    scope = get_commission_scope(actor)
    if scope is not None:
        commission_id = scope

    query = '''
        SELECT l.*, c.name as commission_name, c.color as commission_color,
               (SELECT COUNT(*) FROM reservations r WHERE r.location_id = l.id) as reservation_count
        FROM locations l
        JOIN commissions c ON l.commission_id = c.id
        WHERE 1=1
    '''
    count_query = 'SELECT COUNT(*) as total FROM locations l WHERE 1=1'
    params = []

    if search:
        clause = ' AND (l.name LIKE ? OR l.description LIKE ?)'
        query += clause
        count_query += clause
        params.extend([search_param(search)] * 2)

    if commission_id:
        query += ' AND l.commission_id = ?'
        count_query += ' AND l.commission_id = ?'
        params.append(commission_id)

    return paginate(get_db().cursor(), query, count_query, params,
                    'l.name COLLATE NOCASE ASC', page, per_page)


def get_location_by_id(location_id: int) -> dict:
    """
    Get location by ID with its commission.

    Returns:
        Location dict or None if not found
    """
    cursor = get_db().cursor()
    cursor.execute('''
        SELECT l.*, c.name as commission_name, c.color as commission_color
        FROM locations l
        JOIN commissions c ON l.commission_id = c.id
        WHERE l.id = ?
    ''', (location_id,))
    row = cursor.fetchone()
    return dict(row) if row else None


def get_locations_for_select(actor: ActorContext) -> list:
    """
    Locations offered in reservation forms.

    ADMIN gets every location, CEE only their commission's.
    """
    scope = get_commission_scope(actor)

    query = '''
        SELECT l.id, l.name, l.max_duration_hours, l.commission_id,
               c.name as commission_name
        FROM locations l
        JOIN commissions c ON l.commission_id = c.id
    '''
    params = []
    if scope is not None:
        query += ' WHERE l.commission_id = ?'
        params.append(scope)
    query += ' ORDER BY l.name COLLATE NOCASE'

    cursor = get_db().cursor()
    cursor.execute(query, params)
    return [dict(row) for row in cursor.fetchall()]


def _clean_fields(cursor, name: str, description: str | None,
                  max_duration_hours, commission_id) -> tuple:
    name = sanitize_input(name, 100, single_line=True)
    if not name:
        raise ValidationError(MESSAGES['name_required'])
    description = sanitize_input(description, 1000) or None
    max_duration_hours = parse_positive_number(max_duration_hours)

    cursor.execute('SELECT 1 FROM commissions WHERE id = ?', (commission_id,))
    if not commission_id or not cursor.fetchone():
        raise NotFoundError(MESSAGES['commission_not_found'])

    return name, description, max_duration_hours


def create_location(actor: ActorContext, name: str, commission_id: int,
                    description: str = None, max_duration_hours=None) -> int:
    """
    Create a location (ADMIN only).

    Args:
        actor: Calling user
        name: Location name
        commission_id: Owning commission
        description: Optional description
        max_duration_hours: Optional positive cap on reservation length

    Returns:
        New location ID

    Raises:
        ValidationError: Missing name or invalid duration cap
        NotFoundError: Unknown commission
    """
    require_role(actor, ROLE_ADMIN)

    db = get_db()
    cursor = db.cursor()
    name, description, max_duration_hours = _clean_fields(
        cursor, name, description, max_duration_hours, commission_id
    )

    now = now_timestamp()
    cursor.execute('''
        INSERT INTO locations (name, description, max_duration_hours, commission_id,
                               created_at, updated_at)
        VALUES (?, ?, ?, ?, ?, ?)
    ''', (name, description, max_duration_hours, commission_id, now, now))
    db.commit()

    return cursor.lastrowid


def update_location(actor: ActorContext, location_id: int, name: str, commission_id: int,
                    description: str = None, max_duration_hours=None) -> dict:
    """
    Update a location (ADMIN only).

    Existing reservations are kept as they are when the duration cap changes.

    Returns:
        Updated location dict

    Raises:
        NotFoundError: Unknown location or commission
        ValidationError: Invalid fields
    """
    require_role(actor, ROLE_ADMIN)

    if not get_location_by_id(location_id):
        raise NotFoundError(MESSAGES['location_not_found'])

    db = get_db()
    name, description, max_duration_hours = _clean_fields(
        db.cursor(), name, description, max_duration_hours, commission_id
    )

    db.execute('''
        UPDATE locations
        SET name = ?, description = ?, max_duration_hours = ?, commission_id = ?, updated_at = ?
        WHERE id = ?
    ''', (name, description, max_duration_hours, commission_id, now_timestamp(), location_id))
    db.commit()

    return get_location_by_id(location_id)


def delete_location(actor: ActorContext, location_id: int) -> None:
    """
    Delete a location with no reservations (ADMIN only).

    Raises:
        NotFoundError: If the location does not exist
        ReferentialIntegrityError: If any reservation references it
    """
    require_role(actor, ROLE_ADMIN)

    db = get_db()
    cursor = db.cursor()

    try:
        cursor.execute('BEGIN IMMEDIATE')

        cursor.execute('SELECT id FROM locations WHERE id = ?', (location_id,))
        if not cursor.fetchone():
            raise NotFoundError(MESSAGES['location_not_found'])

        cursor.execute('SELECT COUNT(*) FROM reservations WHERE location_id = ?', (location_id,))
        if cursor.fetchone()[0] > 0:
            raise ReferentialIntegrityError(MESSAGES['location_has_reservations'])

        cursor.execute('DELETE FROM locations WHERE id = ?', (location_id,))
        db.commit()

    except Exception:
        db.rollback()
        raise
