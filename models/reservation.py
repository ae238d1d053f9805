"""
Reservation model.
Conflict detection, creation, deletion and list queries.

Intervals are half-open [start_at, end_at). Only PENDING and ACCEPTED
reservations occupy a location; REJECTED and CANCELLED ones never block.
"""

import logging
import sqlite3
from datetime import datetime

from database import get_db
from models.location import get_location_by_id
from utils.datetime_helpers import elapsed_hours, format_timestamp, now_timestamp
from utils.errors import (AuthError, ConflictError, NotFoundError, PermissionDeniedError,
                          PolicyError, ValidationError)
from utils.messages import MESSAGES, get_message
from utils.pagination import paginate, search_param
from utils.permissions import (ActorContext, get_commission_scope, require_commission_access)
from utils.validators import parse_datetime, sanitize_input

logger = logging.getLogger(__name__)


# =============================================================================
# CONSTANTS
# =============================================================================

STATUS_PENDING = 'PENDING'
STATUS_ACCEPTED = 'ACCEPTED'
STATUS_REJECTED = 'REJECTED'
STATUS_CANCELLED = 'CANCELLED'

STATUSES = (STATUS_PENDING, STATUS_ACCEPTED, STATUS_REJECTED, STATUS_CANCELLED)
ACTIVE_STATUSES = (STATUS_PENDING, STATUS_ACCEPTED)

OVERLAP_TRIGGER_MESSAGE = 'reservation_overlap'

_RESERVATION_SELECT = '''
    SELECT r.*,
           l.name as location_name, l.commission_id, l.max_duration_hours,
           c.name as commission_name, c.color as commission_color,
           u.name as user_name, u.email as user_email,
           v.name as validator_name
    FROM reservations r
    JOIN locations l ON r.location_id = l.id
    JOIN commissions c ON l.commission_id = c.id
    JOIN users u ON r.user_id = u.id
    LEFT JOIN users v ON r.validated_by = v.id
'''


# =============================================================================
# CONFLICT CHECKER
# =============================================================================

def intervals_overlap(start_a, end_a, start_b, end_b) -> bool:
    """
    Half-open interval overlap: [start_a, end_a) and [start_b, end_b) share time.

    Touching intervals (end_a == start_b) do not overlap.
    """
    return start_a < end_b and start_b < end_a


def validate_interval(start, end) -> tuple[datetime, datetime]:
    """
    Parse and check a reservation interval.

    Returns:
        (start, end) as naive local datetimes

    Raises:
        ValidationError: Unparseable values or start >= end
    """
    start = parse_datetime(start)
    end = parse_datetime(end)
    if not start < end:
        raise ValidationError(MESSAGES['invalid_date_range'])
    return start, end


def _find_conflicts(cursor, location_id: int, start_at: str, end_at: str,
                    exclude_reservation_id: int = None) -> list:
    """Active reservations on the location overlapping [start_at, end_at)."""
    query = '''
        SELECT id, title, start_at, end_at, status, user_id
        FROM reservations
        WHERE location_id = ?
          AND status IN (?, ?)
          AND start_at < ?
          AND end_at > ?
    '''
    params = [location_id, *ACTIVE_STATUSES, end_at, start_at]

    if exclude_reservation_id is not None:
        query += ' AND id != ?'
        params.append(exclude_reservation_id)

    cursor.execute(query + ' ORDER BY start_at', params)
    return [dict(row) for row in cursor.fetchall()]


def get_conflicting_reservations(location_id: int, start, end,
                                 exclude_reservation_id: int = None) -> list:
    """
    Active reservations that block [start, end) on a location.

    Args:
        location_id: Location to check
        start: Interval start (datetime or ISO string)
        end: Interval end (datetime or ISO string)
        exclude_reservation_id: Reservation to ignore (re-validation of itself)

    Returns:
        List of blocking reservation dicts, ordered by start

    Raises:
        ValidationError: Invalid interval
        NotFoundError: Unknown location
    """
    start, end = validate_interval(start, end)
    if not get_location_by_id(location_id):
        raise NotFoundError(MESSAGES['location_not_found'])

    return _find_conflicts(get_db().cursor(), location_id, format_timestamp(start),
                           format_timestamp(end), exclude_reservation_id)


def has_conflict(location_id: int, start, end, exclude_reservation_id: int = None) -> bool:
    """
    Check whether [start, end) overlaps an active reservation on the location.

    Returns:
        True if at least one PENDING or ACCEPTED reservation overlaps

    Raises:
        ValidationError: Invalid interval
        NotFoundError: Unknown location
    """
    return bool(get_conflicting_reservations(location_id, start, end, exclude_reservation_id))


def translate_integrity_error(error: sqlite3.IntegrityError) -> Exception:
    """Map the overlap trigger's abort to ConflictError, leave others untouched."""
    if OVERLAP_TRIGGER_MESSAGE in str(error):
        return ConflictError(MESSAGES['slot_taken'])
    return error


# =============================================================================
# CREATE / DELETE
# =============================================================================

def _format_hours(hours: float) -> str:
    return f'{hours:g}'


def create_reservation(actor: ActorContext, title: str, location_id: int, start, end,
                       description: str = None) -> dict:
    """
    Create a reservation.

    ADMIN and CEE actors create it ACCEPTED and validated by themselves;
    any other actor creates it PENDING. The overlap check and the insert
    run in one write transaction, so of two concurrent overlapping requests
    only one can succeed.

    Args:
        actor: Calling user
        title: Reservation title
        location_id: Location to book
        start: Start (datetime or ISO string)
        end: End (datetime or ISO string)
        description: Optional description

    Returns:
        The created reservation dict

    Raises:
        AuthError: No actor
        ValidationError: Missing title or invalid interval
        NotFoundError: Unknown location
        PolicyError: Duration above the location cap, or CEE booking
            outside their commission
        ConflictError: Interval overlaps an active reservation
    """
    if actor is None:
        raise AuthError(MESSAGES['not_authenticated'])

    title = sanitize_input(title, 200, single_line=True)
    if not title:
        raise ValidationError(MESSAGES['title_required'])
    description = sanitize_input(description, 2000) or None

    start, end = validate_interval(start, end)

    location = get_location_by_id(location_id)
    if not location:
        raise NotFoundError(MESSAGES['location_not_found'])

    # Duration cap is checked before conflicts
    duration_hours = elapsed_hours(start, end)
    max_hours = location['max_duration_hours']
    if max_hours and duration_hours > max_hours:
        raise PolicyError(get_message(
            'duration_exceeded',
            max=_format_hours(max_hours),
            requested=_format_hours(round(duration_hours * 10) / 10)
        ))

    if actor.is_cee and location['commission_id'] != actor.commission_id:
        raise PolicyError(MESSAGES['location_not_in_commission'])

    if actor.is_validator:
        status, validated_by = STATUS_ACCEPTED, actor.user_id
    else:
        status, validated_by = STATUS_PENDING, None

    start_at = format_timestamp(start)
    end_at = format_timestamp(end)

    db = get_db()
    cursor = db.cursor()

    try:
        cursor.execute('BEGIN IMMEDIATE')

        if _find_conflicts(cursor, location_id, start_at, end_at):
            raise ConflictError(MESSAGES['slot_taken'])

        now = now_timestamp()
        cursor.execute('''
            INSERT INTO reservations (
                title, description, location_id, user_id, start_at, end_at,
                status, validated_by, created_at, updated_at
            ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
        ''', (title, description, location_id, actor.user_id, start_at, end_at,
              status, validated_by, now, now))
        reservation_id = cursor.lastrowid

        db.commit()

    except sqlite3.IntegrityError as e:
        db.rollback()
        raise translate_integrity_error(e)
    except Exception:
        db.rollback()
        raise

    logger.info('Reservation %s created by user %s on location %s (%s)',
                reservation_id, actor.user_id, location_id, status)
    return get_reservation_by_id(reservation_id)


def delete_reservation(actor: ActorContext, reservation_id: int) -> None:
    """
    Permanently delete a reservation (ADMIN only, no notification).

    Raises:
        AuthError: No actor
        PermissionDeniedError: Actor is not an administrator
        NotFoundError: Unknown reservation
    """
    if actor is None:
        raise AuthError(MESSAGES['not_authenticated'])
    if not actor.is_admin:
        raise PermissionDeniedError(MESSAGES['admin_only_delete'])

    db = get_db()
    cursor = db.cursor()
    cursor.execute('DELETE FROM reservations WHERE id = ?', (reservation_id,))
    if cursor.rowcount == 0:
        db.rollback()
        raise NotFoundError(MESSAGES['reservation_not_found'])
    db.commit()

    logger.info('Reservation %s deleted by user %s', reservation_id, actor.user_id)


# =============================================================================
# READ
# =============================================================================

def get_reservation_by_id(reservation_id: int) -> dict:
    """
    Get reservation by ID with location, commission, requester and validator.

    Returns:
        Reservation dict or None if not found
    """
    cursor = get_db().cursor()
    cursor.execute(_RESERVATION_SELECT + ' WHERE r.id = ?', (reservation_id,))
    row = cursor.fetchone()
    return dict(row) if row else None


def get_reservation_detail(actor: ActorContext, reservation_id: int) -> dict:
    """
    Reservation visible to the actor.

    Raises:
        NotFoundError: Unknown reservation
        PermissionDeniedError: Reservation outside the CEE's commission
    """
    reservation = get_reservation_by_id(reservation_id)
    if not reservation:
        raise NotFoundError(MESSAGES['reservation_not_found'])
    require_commission_access(actor, reservation['commission_id'])
    return reservation


def get_reservations(
    actor: ActorContext,
    search: str = None,
    status: str = None,
    location_id: int = None,
    commission_id: int = None,
    date_from: str = None,
    date_to: str = None,
    page: int = 1,
    per_page: int = 10
) -> dict:
    """
    Get filtered reservations with pagination, newest first.

    ADMIN sees all reservations, CEE only their commission's.

    Args:
        actor: Calling user
        search: Substring matched against title, requester and location
        status: Status filter
        location_id: Location filter
        commission_id: Commission filter (ADMIN only)
        date_from: Reservations starting on or after this day (YYYY-MM-DD)
        date_to: Reservations starting on or before this day (YYYY-MM-DD)
        page: Page number
        per_page: Items per page

    Returns:
        dict: {items, total, page, per_page, pages}
    """
    scope = get_commission_scope(actor)
    if scope is not None:
        commission_id = scope

    query = _RESERVATION_SELECT + ' WHERE 1=1'
    count_query = '''
        SELECT COUNT(*) as total
        FROM reservations r
        JOIN locations l ON r.location_id = l.id
        JOIN users u ON r.user_id = u.id
        WHERE 1=1
    '''
    params = []

    if search:
        clause = ' AND (r.title LIKE ? OR u.name LIKE ? OR u.email LIKE ? OR l.name LIKE ?)'
        query += clause
        count_query += clause
        params.extend([search_param(search)] * 4)

    if status:
        query += ' AND r.status = ?'
        count_query += ' AND r.status = ?'
        params.append(status)

    if location_id:
        query += ' AND r.location_id = ?'
        count_query += ' AND r.location_id = ?'
        params.append(location_id)

    if commission_id:
        query += ' AND l.commission_id = ?'
        count_query += ' AND l.commission_id = ?'
        params.append(commission_id)

    if date_from:
        query += ' AND r.start_at >= ?'
        count_query += ' AND r.start_at >= ?'
        params.append(date_from)

    if date_to:
        query += " AND r.start_at < date(?, '+1 day')"
        count_query += " AND r.start_at < date(?, '+1 day')"
        params.append(date_to)

    return paginate(get_db().cursor(), query, count_query, params,
                    'r.created_at DESC, r.id DESC', page, per_page)


def get_recent_reservations(commission_id: int = None, limit: int = 10) -> list:
    """
    Latest reservations by creation time.

    Args:
        commission_id: Restrict to one commission's locations
        limit: Maximum rows

    Returns:
        List of reservation dicts
    """
    query = _RESERVATION_SELECT
    params = []
    if commission_id is not None:
        query += ' WHERE l.commission_id = ?'
        params.append(commission_id)
    query += ' ORDER BY r.created_at DESC, r.id DESC LIMIT ?'
    params.append(limit)

    cursor = get_db().cursor()
    cursor.execute(query, params)
    return [dict(row) for row in cursor.fetchall()]
