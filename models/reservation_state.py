"""
Reservation status transitions.
Accept and reject with validator tracking and requester notification.
"""

import logging
import sqlite3

from flask import current_app

from database import get_db
from models.reservation import (
    STATUS_PENDING, STATUS_ACCEPTED, STATUS_REJECTED, STATUS_CANCELLED,
    ACTIVE_STATUSES, _find_conflicts, get_reservation_by_id, translate_integrity_error
)
from utils.datetime_helpers import now_timestamp, format_display
from utils.errors import ConflictError, InvalidStateTransitionError, NotFoundError, ValidationError
from utils.mailer import send_reservation_accepted_email, send_reservation_rejected_email
from utils.messages import MESSAGES, get_message
from utils.permissions import ActorContext, VALIDATOR_ROLES, require_role, require_commission_access

logger = logging.getLogger(__name__)


# =============================================================================
# TRANSITION MATRIX
# =============================================================================

# Nothing returns to PENDING; a decision may be revised either way
VALID_TRANSITIONS = {
    STATUS_PENDING: {STATUS_ACCEPTED, STATUS_REJECTED},
    STATUS_ACCEPTED: {STATUS_REJECTED},
    STATUS_REJECTED: {STATUS_ACCEPTED},
    STATUS_CANCELLED: set(),
}


def validate_state_transition(current_status: str, new_status: str) -> None:
    """
    Check a status change against VALID_TRANSITIONS.

    Raises:
        InvalidStateTransitionError: If the change is not allowed
    """
    if new_status not in VALID_TRANSITIONS.get(current_status, set()):
        raise InvalidStateTransitionError(get_message(
            'invalid_transition',
            from_status=get_status_label(current_status),
            to_status=get_status_label(new_status)
        ))


def get_status_label(status: str) -> str:
    """French label for a status code."""
    return MESSAGES.get(f'status_{status}', status or '')


# =============================================================================
# ACCEPT / REJECT
# =============================================================================

def _load_reservation(cursor, reservation_id: int):
    cursor.execute('''
        SELECT r.id, r.status, r.location_id, r.start_at, r.end_at, l.commission_id
        FROM reservations r
        JOIN locations l ON r.location_id = l.id
        WHERE r.id = ?
    ''', (reservation_id,))
    row = cursor.fetchone()
    if not row:
        raise NotFoundError(MESSAGES['reservation_not_found'])
    return row


def _apply_decision(reservation_id: int, actor: ActorContext, new_status: str,
                    rejection_reason: str = None) -> None:
    """Validate and persist a status change in one write transaction."""
    db = get_db()
    cursor = db.cursor()

    try:
        cursor.execute('BEGIN IMMEDIATE')

        row = _load_reservation(cursor, reservation_id)
        require_commission_access(actor, row['commission_id'])
        validate_state_transition(row['status'], new_status)

        # A reservation coming back into the active set must still fit
        if new_status in ACTIVE_STATUSES and row['status'] not in ACTIVE_STATUSES:
            if _find_conflicts(cursor, row['location_id'], row['start_at'], row['end_at'],
                               exclude_reservation_id=reservation_id):
                raise ConflictError(MESSAGES['slot_taken'])

        cursor.execute('''
            UPDATE reservations
            SET status = ?, validated_by = ?, rejection_reason = ?, updated_at = ?
            WHERE id = ?
        ''', (new_status, actor.user_id, rejection_reason, now_timestamp(), reservation_id))

        db.commit()

    except sqlite3.IntegrityError as e:
        db.rollback()
        raise translate_integrity_error(e)
    except Exception:
        db.rollback()
        raise

    logger.info('Reservation %s set to %s by user %s', reservation_id, new_status, actor.user_id)


def _notification_data(reservation: dict, actor: ActorContext) -> dict:
    return {
        'student_name': reservation['user_name'],
        'reservation_title': reservation['title'],
        'location_name': reservation['location_name'],
        'start_at': format_display(reservation['start_at']),
        'end_at': format_display(reservation['end_at']),
        'validated_by': actor.name,
        'rejection_reason': reservation.get('rejection_reason'),
    }


def _notify(send, reservation: dict, actor: ActorContext) -> bool:
    """Send a decision email; failures are logged, never raised."""
    result = send(reservation['user_email'], _notification_data(reservation, actor))
    if not result['success']:
        logger.warning('Notification for reservation %s not sent: %s',
                       reservation['id'], result.get('error'))
    return result['success']


def accept_reservation(reservation_id: int, actor: ActorContext) -> dict:
    """
    Accept a reservation and notify the requester.

    Clears any previous rejection reason. Re-accepting a rejected
    reservation re-checks the location for overlaps.

    Args:
        reservation_id: Reservation to accept
        actor: ADMIN, or CEE of the location's commission

    Returns:
        {'reservation': dict, 'notification_sent': bool}

    Raises:
        PermissionDeniedError: Actor may not validate this reservation
        NotFoundError: Unknown reservation
        InvalidStateTransitionError: Already accepted or cancelled
        ConflictError: Slot taken since the rejection
    """
    require_role(actor, *VALIDATOR_ROLES)

    _apply_decision(reservation_id, actor, STATUS_ACCEPTED)

    reservation = get_reservation_by_id(reservation_id)
    notification_sent = _notify(send_reservation_accepted_email, reservation, actor)
    return {'reservation': reservation, 'notification_sent': notification_sent}


def reject_reservation(reservation_id: int, actor: ActorContext, reason: str) -> dict:
    """
    Reject a reservation with a reason and notify the requester.

    Args:
        reservation_id: Reservation to reject
        actor: ADMIN, or CEE of the location's commission
        reason: Rejection reason, at least REJECTION_REASON_MIN_LENGTH
            characters once stripped

    Returns:
        {'reservation': dict, 'notification_sent': bool}

    Raises:
        ValidationError: Reason too short
        PermissionDeniedError: Actor may not validate this reservation
        NotFoundError: Unknown reservation
        InvalidStateTransitionError: Already rejected or cancelled
    """
    require_role(actor, *VALIDATOR_ROLES)

    reason = (reason or '').strip()
    min_length = current_app.config.get('REJECTION_REASON_MIN_LENGTH', 10)
    if len(reason) < min_length:
        raise ValidationError(get_message('rejection_reason_too_short', min=min_length))

    _apply_decision(reservation_id, actor, STATUS_REJECTED, rejection_reason=reason)

    reservation = get_reservation_by_id(reservation_id)
    notification_sent = _notify(send_reservation_rejected_email, reservation, actor)
    return {'reservation': reservation, 'notification_sent': notification_sent}
