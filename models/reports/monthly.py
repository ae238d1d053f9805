"""Monthly and per-commission reservation reports."""
import logging
from datetime import date, timedelta
from typing import Any

from flask import current_app

from database import get_db
from models.commission import get_commission_by_id
from models.insights import (get_overview_counts, get_location_counts, get_commission_rollup,
                             get_validator_rollup, rank_by_count)
from models.user import get_admin_emails
from utils.datetime_helpers import (get_today, get_month_bounds, add_months, format_timestamp,
                                    format_month_label, FRENCH_MONTHS)
from utils.errors import NotFoundError, ValidationError
from utils.mailer import send_monthly_report_email
from utils.messages import MESSAGES, get_message
from utils.permissions import ActorContext, ROLE_ADMIN, require_role, require_commission_access

logger = logging.getLogger(__name__)

PERIOD_CURRENT = 'current'
PERIOD_PREVIOUS = 'previous'
PERIOD_LABELS = {PERIOD_CURRENT: 'en cours', PERIOD_PREVIOUS: 'précédent'}


def get_report_window(year: int | None = None, month: int | None = None) -> dict[str, Any]:
    """
    Calendar month window, defaulting to the current month.

    Returns:
        dict with year, month, label, start and end ([start, end) timestamps)
        and first_day / last_day dates
    """
    if year is None or month is None:
        today = get_today()
        year, month = today.year, today.month

    first_day, next_month = get_month_bounds(year, month)
    return {
        'year': year,
        'month': month,
        'label': format_month_label(year, month),
        'start': format_timestamp(first_day),
        'end': format_timestamp(next_month),
        'first_day': first_day,
        'last_day': next_month - timedelta(days=1),
    }


def get_period_reservations(start: str, end: str, commission_id: int | None = None) -> list[dict[str, Any]]:
    """Reservations created in [start, end), newest first."""
    query = """
        SELECT
            r.id,
            r.title,
            r.status,
            r.start_at,
            r.end_at,
            r.created_at,
            r.rejection_reason,
            l.name as location_name,
            c.name as commission_name,
            u.name as user_name,
            u.email as user_email,
            v.name as validator_name
        FROM reservations r
        JOIN locations l ON r.location_id = l.id
        JOIN commissions c ON l.commission_id = c.id
        JOIN users u ON r.user_id = u.id
        LEFT JOIN users v ON r.validated_by = v.id
        WHERE r.created_at >= ? AND r.created_at < ?
    """
    params = [start, end]
    if commission_id is not None:
        query += " AND l.commission_id = ?"
        params.append(commission_id)
    query += " ORDER BY r.created_at DESC, r.id DESC"

    cursor = get_db().cursor()
    cursor.execute(query, params)
    return [dict(row) for row in cursor.fetchall()]


def build_monthly_report(year: int | None = None, month: int | None = None) -> dict[str, Any]:
    """
    Aggregate one month of reservations across all commissions.

    Returns:
        dict with period, stats, by_commission (commissions with at least
        one reservation), top_locations and reservations
    """
    window = get_report_window(year, month)
    start, end = window['start'], window['end']

    by_commission = [
        {
            'name': entry['name'],
            'color': entry['color'],
            'total': entry['count'],
            'accepted': entry['accepted'],
            'rejected': entry['rejected'],
            'pending': entry['pending'],
        }
        for entry in get_commission_rollup(start, end)
        if entry['count'] > 0
    ]

    top_limit = current_app.config.get('REPORT_TOP_LOCATIONS', 10)
    top_locations = [
        {'name': entry['name'], 'commission_name': entry['commission_name'], 'count': entry['count']}
        for entry in rank_by_count(get_location_counts(start=start, end=end), top_limit)
    ]

    return {
        'period': window,
        'stats': get_overview_counts(start=start, end=end),
        'by_commission': by_commission,
        'top_locations': top_locations,
        'reservations': get_period_reservations(start, end),
    }


def generate_monthly_report(actor: ActorContext, year: int | None = None,
                            month: int | None = None) -> dict[str, Any]:
    """Monthly report for administrators."""
    require_role(actor, ROLE_ADMIN)
    return build_monthly_report(year, month)


def generate_commission_report(actor: ActorContext, commission_id: int,
                               year: int | None = None, month: int | None = None) -> dict[str, Any]:
    """
    One commission's month: stats, every location with its counts, decisions
    per validator, and the reservation list.

    ADMIN may request any commission, CEE only their own.

    Raises:
        NotFoundError: Unknown commission
        PermissionDeniedError: Commission outside the CEE's scope
    """
    require_commission_access(actor, commission_id)

    commission = get_commission_by_id(commission_id)
    if not commission:
        raise NotFoundError(MESSAGES['commission_not_found'])

    window = get_report_window(year, month)
    start, end = window['start'], window['end']

    return {
        'period': window,
        'commission': commission,
        'stats': get_overview_counts(commission_id, start, end),
        'by_location': rank_by_count(
            get_location_counts(commission_id, start, end, include_empty=True)
        ),
        'by_member': get_validator_rollup(commission_id, start, end),
        'reservations': get_period_reservations(start, end, commission_id),
    }


def resolve_report_period(period: str | None, today: date | None = None) -> tuple[int, int]:
    """
    (year, month) for 'current' or 'previous' (default).

    Raises:
        ValidationError: Unknown period keyword
    """
    period = period or PERIOD_PREVIOUS
    if period not in PERIOD_LABELS:
        raise ValidationError(MESSAGES['invalid_period'])

    if today is None:
        today = get_today()
    target = today.replace(day=1) if period == PERIOD_CURRENT else add_months(today, -1)
    return target.year, target.month


def send_monthly_report(period: str | None = None, today: date | None = None) -> dict[str, Any]:
    """
    Build the monthly report and email it to every administrator.

    Args:
        period: 'current' or 'previous' (default)
        today: Reference day

    Returns:
        dict with success, message, stats, period, date_range and recipients;
        sent is False when there was nobody to send to. On delivery failure
        success is False and error carries the message.
    """
    period = period or PERIOD_PREVIOUS
    year, month = resolve_report_period(period, today)

    recipients = get_admin_emails()
    if not recipients:
        logger.warning('Monthly report skipped: no administrators')
        return {'success': True, 'sent': False, 'message': MESSAGES['no_admins'], 'recipients': 0}

    report = build_monthly_report(year, month)
    window = report['period']
    date_range = {
        'start': window['first_day'].strftime('%d/%m/%Y'),
        'end': window['last_day'].strftime('%d/%m/%Y'),
    }

    result = send_monthly_report_email(recipients, {
        'month': FRENCH_MONTHS[month - 1],
        'year': year,
        'period_label': PERIOD_LABELS[period],
        'date_range': date_range,
        'stats': report['stats'],
        'by_commission': report['by_commission'],
        'top_locations': report['top_locations'],
    })

    if not result['success']:
        logger.error('Monthly report delivery failed: %s', result.get('error'))
        return {'success': False, 'sent': False, 'error': MESSAGES['report_send_failed']}

    logger.info('Monthly report for %s sent to %d administrators', window['label'], len(recipients))
    return {
        'success': True,
        'sent': True,
        'message': get_message('report_sent', period=PERIOD_LABELS[period], count=len(recipients)),
        'stats': report['stats'],
        'period': period,
        'date_range': date_range,
        'recipients': len(recipients),
    }
