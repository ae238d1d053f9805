"""
Insights model.
Read-only aggregations for the ADMIN and CEE dashboards.

Every query takes an optional commission scope and an optional half-open
[start, end) window on reservation creation time.
"""

from datetime import date, timedelta

from flask import current_app

from database import get_db
from models.commission import get_commission_by_id
from models.reservation import get_recent_reservations
from utils.datetime_helpers import get_today, get_temporal_windows, format_timestamp
from utils.errors import NotFoundError
from utils.messages import MESSAGES
from utils.permissions import ActorContext, ROLE_ADMIN, require_role, get_commission_scope


# =============================================================================
# PURE HELPERS
# =============================================================================

def calculate_growth_percentage(current: int, previous: int) -> float:
    """
    Month-over-month growth in percent, rounded to one decimal.

    Returns 0.0 when there is nothing to compare against (previous == 0).
    """
    if not previous:
        return 0.0
    return round((current - previous) / previous * 100, 1)


def rank_by_count(items: list, limit: int = None, count_key: str = 'count',
                  name_key: str = 'name') -> list:
    """
    Sort by count descending, then name ascending, and truncate.

    Args:
        items: Dicts carrying count_key and name_key
        limit: Maximum entries (None keeps all)

    Returns:
        New sorted list
    """
    ranked = sorted(items, key=lambda item: (-item[count_key], (item[name_key] or '').lower()))
    return ranked[:limit] if limit is not None else ranked


def build_daily_series(rows: list, start_date: date, days: int) -> list:
    """
    Zero-filled daily status counts from start_date to start_date + days.

    Args:
        rows: Dicts with 'day' (YYYY-MM-DD), 'status' and 'count'
        start_date: First day of the series
        days: Days after start_date to include (series has days + 1 entries)

    Returns:
        List of {date, pending, accepted, rejected, total}, oldest first;
        total is pending + accepted + rejected
    """
    buckets = {}
    for offset in range(days + 1):
        day = (start_date + timedelta(days=offset)).isoformat()
        buckets[day] = {'date': day, 'pending': 0, 'accepted': 0, 'rejected': 0, 'total': 0}

    for row in rows:
        bucket = buckets.get(row['day'])
        key = (row['status'] or '').lower()
        if bucket is not None and key in ('pending', 'accepted', 'rejected'):
            bucket[key] += row['count']

    series = list(buckets.values())
    for bucket in series:
        bucket['total'] = bucket['pending'] + bucket['accepted'] + bucket['rejected']
    return series


def _window_clause(start: str | None, end: str | None, params: list) -> str:
    clause = ''
    if start:
        clause += ' AND r.created_at >= ?'
        params.append(start)
    if end:
        clause += ' AND r.created_at < ?'
        params.append(end)
    return clause


# =============================================================================
# COUNTS
# =============================================================================

def get_overview_counts(commission_id: int = None, start: str = None, end: str = None) -> dict:
    """
    Reservation totals by status.

    Args:
        commission_id: Restrict to one commission's locations
        start: Inclusive lower bound on created_at
        end: Exclusive upper bound on created_at

    Returns:
        dict with total, pending, accepted, rejected
    """
    params = []
    query = '''
        SELECT
            COUNT(r.id) as total,
            COALESCE(SUM(CASE WHEN r.status = 'PENDING' THEN 1 ELSE 0 END), 0) as pending,
            COALESCE(SUM(CASE WHEN r.status = 'ACCEPTED' THEN 1 ELSE 0 END), 0) as accepted,
            COALESCE(SUM(CASE WHEN r.status = 'REJECTED' THEN 1 ELSE 0 END), 0) as rejected
        FROM reservations r
        JOIN locations l ON r.location_id = l.id
        WHERE 1=1
    '''
    if commission_id is not None:
        query += ' AND l.commission_id = ?'
        params.append(commission_id)
    query += _window_clause(start, end, params)

    cursor = get_db().cursor()
    cursor.execute(query, params)
    return dict(cursor.fetchone())


def count_reservations(commission_id: int = None, start: str = None, end: str = None) -> int:
    """Number of reservations created in [start, end)."""
    return get_overview_counts(commission_id, start, end)['total']


def get_temporal_counts(commission_id: int = None, today: date = None) -> dict:
    """
    Reservations created today, this ISO week, this month and last month.

    Returns:
        dict with today, this_week, this_month, last_month and growth
        (this month vs last month, percent)
    """
    windows = get_temporal_windows(today)
    counts = {
        'today': count_reservations(commission_id, *windows['today']),
        'this_week': count_reservations(commission_id, *windows['week']),
        'this_month': count_reservations(commission_id, *windows['month']),
        'last_month': count_reservations(commission_id, *windows['last_month']),
    }
    counts['growth'] = calculate_growth_percentage(counts['this_month'], counts['last_month'])
    return counts


def get_validator_actions(user_id: int, start: str = None, end: str = None) -> dict:
    """
    Decisions recorded under a validator.

    Returns:
        dict with validated (accepted), rejected and total
    """
    params = [user_id]
    query = '''
        SELECT
            COALESCE(SUM(CASE WHEN r.status = 'ACCEPTED' THEN 1 ELSE 0 END), 0) as validated,
            COALESCE(SUM(CASE WHEN r.status = 'REJECTED' THEN 1 ELSE 0 END), 0) as rejected
        FROM reservations r
        WHERE r.validated_by = ?
    '''
    query += _window_clause(start, end, params)

    cursor = get_db().cursor()
    cursor.execute(query, params)
    row = dict(cursor.fetchone())
    row['total'] = row['validated'] + row['rejected']
    return row


# =============================================================================
# ROLLUPS
# =============================================================================

def get_location_counts(commission_id: int = None, start: str = None, end: str = None,
                        include_empty: bool = False) -> list:
    """
    Reservation count and status breakdown per location.

    Args:
        commission_id: Restrict to one commission
        start, end: created_at window
        include_empty: Also list locations without reservations in the window

    Returns:
        List of dicts (unsorted): location_id, name, commission_id,
        commission_name, max_duration_hours, count, pending, accepted, rejected
    """
    params = []
    window = _window_clause(start, end, params)
    query = f'''
        SELECT
            l.id as location_id,
            l.name,
            l.max_duration_hours,
            c.id as commission_id,
            c.name as commission_name,
            COUNT(r.id) as count,
            COALESCE(SUM(CASE WHEN r.status = 'PENDING' THEN 1 ELSE 0 END), 0) as pending,
            COALESCE(SUM(CASE WHEN r.status = 'ACCEPTED' THEN 1 ELSE 0 END), 0) as accepted,
            COALESCE(SUM(CASE WHEN r.status = 'REJECTED' THEN 1 ELSE 0 END), 0) as rejected
        FROM locations l
        JOIN commissions c ON l.commission_id = c.id
        LEFT JOIN reservations r ON r.location_id = l.id {window}
        WHERE 1=1
    '''
    if commission_id is not None:
        query += ' AND l.commission_id = ?'
        params.append(commission_id)
    query += ' GROUP BY l.id, l.name, l.max_duration_hours, c.id, c.name'
    if not include_empty:
        query += ' HAVING COUNT(r.id) > 0'

    cursor = get_db().cursor()
    cursor.execute(query, params)
    return [dict(row) for row in cursor.fetchall()]


def get_top_locations(limit: int = 5, commission_id: int = None,
                      start: str = None, end: str = None) -> list:
    """Most-booked locations, ranked by count then name."""
    return rank_by_count(get_location_counts(commission_id, start, end), limit)


def get_commission_rollup(start: str = None, end: str = None) -> list:
    """
    Reservations per commission, summed over its locations.

    Returns:
        List of dicts ranked by count then name: commission_id, name,
        color, location_count, count, pending, accepted, rejected
    """
    params = []
    window = _window_clause(start, end, params)
    cursor = get_db().cursor()
    cursor.execute(f'''
        SELECT
            c.id as commission_id,
            c.name,
            c.color,
            COUNT(DISTINCT l.id) as location_count,
            COUNT(r.id) as count,
            COALESCE(SUM(CASE WHEN r.status = 'PENDING' THEN 1 ELSE 0 END), 0) as pending,
            COALESCE(SUM(CASE WHEN r.status = 'ACCEPTED' THEN 1 ELSE 0 END), 0) as accepted,
            COALESCE(SUM(CASE WHEN r.status = 'REJECTED' THEN 1 ELSE 0 END), 0) as rejected
        FROM commissions c
        LEFT JOIN locations l ON l.commission_id = c.id
        LEFT JOIN reservations r ON r.location_id = l.id {window}
        GROUP BY c.id, c.name, c.color
    ''', params)
    return rank_by_count([dict(row) for row in cursor.fetchall()])


def get_validator_rollup(commission_id: int = None, start: str = None, end: str = None) -> list:
    """
    Accepted and rejected counts per validator.

    Validators whose account no longer resolves are labelled 'Inconnu'.

    Returns:
        List of dicts ranked by total then name: user_id, name, accepted,
        rejected, total
    """
    params = []
    query = '''
        SELECT
            r.validated_by as user_id,
            v.name as name,
            COALESCE(SUM(CASE WHEN r.status = 'ACCEPTED' THEN 1 ELSE 0 END), 0) as accepted,
            COALESCE(SUM(CASE WHEN r.status = 'REJECTED' THEN 1 ELSE 0 END), 0) as rejected
        FROM reservations r
        JOIN locations l ON r.location_id = l.id
        LEFT JOIN users v ON r.validated_by = v.id
        WHERE r.validated_by IS NOT NULL
    '''
    if commission_id is not None:
        query += ' AND l.commission_id = ?'
        params.append(commission_id)
    query += _window_clause(start, end, params)
    query += ' GROUP BY r.validated_by, v.name'

    cursor = get_db().cursor()
    cursor.execute(query, params)

    validators = []
    for row in cursor.fetchall():
        entry = dict(row)
        entry['name'] = entry['name'] or MESSAGES['unknown_validator']
        entry['total'] = entry['accepted'] + entry['rejected']
        validators.append(entry)
    return rank_by_count(validators, count_key='total')


# =============================================================================
# TIME SERIES
# =============================================================================

def get_time_series(days: int = None, commission_id: int = None, today: date = None) -> list:
    """
    Daily status counts over the last `days` days plus today.

    Args:
        days: Look-back length (defaults to TIME_SERIES_DAYS)
        commission_id: Restrict to one commission
        today: Reference day (defaults to today in the configured timezone)

    Returns:
        days + 1 contiguous entries from build_daily_series
    """
    if days is None:
        days = current_app.config.get('TIME_SERIES_DAYS', 90)
    if today is None:
        today = get_today()
    start_date = today - timedelta(days=days)

    params = [format_timestamp(start_date), format_timestamp(today + timedelta(days=1))]
    query = '''
        SELECT substr(r.created_at, 1, 10) as day, r.status, COUNT(*) as count
        FROM reservations r
        JOIN locations l ON r.location_id = l.id
        WHERE r.created_at >= ? AND r.created_at < ?
    '''
    if commission_id is not None:
        query += ' AND l.commission_id = ?'
        params.append(commission_id)
    query += ' GROUP BY day, r.status'

    cursor = get_db().cursor()
    cursor.execute(query, params)
    return build_daily_series([dict(row) for row in cursor.fetchall()], start_date, days)


# =============================================================================
# DASHBOARDS
# =============================================================================

def get_admin_stats(actor: ActorContext, today: date = None) -> dict:
    """
    Global dashboard for administrators.

    Returns:
        dict with overview, temporal, top_locations, commissions
    """
    require_role(actor, ROLE_ADMIN)

    return {
        'role': ROLE_ADMIN,
        'overview': get_overview_counts(),
        'temporal': get_temporal_counts(today=today),
        'top_locations': get_top_locations(current_app.config.get('DASHBOARD_TOP_LOCATIONS', 5)),
        'commissions': get_commission_rollup(),
    }


def get_cee_stats(actor: ActorContext, today: date = None) -> dict:
    """
    Commission dashboard for CEE members.

    Returns:
        dict with overview, my_actions, temporal, locations (every location
        of the commission, ranked) and commission
    """
    commission_id = get_commission_scope(actor)

    commission = get_commission_by_id(commission_id)
    if not commission:
        raise NotFoundError(MESSAGES['commission_not_found'])

    temporal = get_temporal_counts(commission_id, today)
    return {
        'role': actor.role,
        'overview': get_overview_counts(commission_id),
        'my_actions': get_validator_actions(actor.user_id),
        'temporal': {key: temporal[key] for key in ('today', 'this_week', 'this_month')},
        'locations': rank_by_count(get_location_counts(commission_id, include_empty=True)),
        'commission': {
            'id': commission['id'],
            'name': commission['name'],
            'color': commission['color'],
            'description': commission['description'],
            'member_count': commission['member_count'],
            'location_count': commission['location_count'],
        },
    }


def get_dashboard_stats(actor: ActorContext, today: date = None) -> dict:
    """Dashboard payload for the actor's role."""
    if actor is not None and actor.is_admin:
        return get_admin_stats(actor, today)
    return get_cee_stats(actor, today)


def get_dashboard_time_series(actor: ActorContext, days: int = None) -> list:
    """Time series scoped to the actor's commission (global for ADMIN)."""
    return get_time_series(days, commission_id=get_commission_scope(actor))


def get_recent_activity(actor: ActorContext, limit: int = None) -> list:
    """Latest reservations visible to the actor."""
    if limit is None:
        limit = current_app.config.get('RECENT_ACTIVITY_LIMIT', 10)
    return get_recent_reservations(get_commission_scope(actor), limit)
