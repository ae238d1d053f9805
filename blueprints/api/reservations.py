"""
Reservation API endpoints.
Availability checks, listing, creation, validation decisions and deletion.
"""

from flask import current_app, request
from flask_login import login_required

from models.reservation import (
    get_conflicting_reservations, get_reservations, get_reservation_detail,
    create_reservation, delete_reservation
)
from models.reservation_state import accept_reservation, reject_reservation
from utils.actions import perform_action, perform_query
from utils.api_response import api_success, api_error
from utils.decorators import role_required
from utils.errors import ReservationAppError
from utils.messages import MESSAGES
from utils.permissions import get_actor, VALIDATOR_ROLES, ROLE_ADMIN


def _decision_response(result: dict, status: int, success_message: str):
    """Shape an accept/reject outcome, warning when the email did not go out."""
    if not result['success']:
        return api_error(result['error'], status)

    data = result['data']
    warning = None if data['notification_sent'] else MESSAGES['notification_failed']
    return api_success(
        data=data['reservation'],
        message=success_message,
        warning=warning,
        notification_sent=data['notification_sent']
    )


def register_routes(bp):
    """Register reservation API routes on the blueprint."""

    @bp.route('/locations/<int:location_id>/availability', methods=['GET'])
    @login_required
    @role_required(*VALIDATOR_ROLES)
    def location_availability(location_id):
        """
        Check whether an interval is free on a location.

        Query params:
            start: Interval start (ISO 8601)
            end: Interval end (ISO 8601)
            exclude_id: Reservation to ignore (optional)

        Response JSON:
        {
            "success": true,
            "data": {"available": false, "has_conflict": true, "conflicts": [...]}
        }
        """
        try:
            conflicts = get_conflicting_reservations(
                location_id,
                request.args.get('start', ''),
                request.args.get('end', ''),
                exclude_reservation_id=request.args.get('exclude_id', type=int)
            )
        except ReservationAppError as e:
            return api_error(str(e), e.status_code)
        except Exception as e:
            current_app.logger.error(f'Error checking availability: {e}', exc_info=True)
            return api_error(MESSAGES['internal_error'], 500)

        return api_success(data={
            'available': not conflicts,
            'has_conflict': bool(conflicts),
            'conflicts': conflicts
        })

    @bp.route('/reservations', methods=['GET'])
    @login_required
    @role_required(*VALIDATOR_ROLES)
    def reservations_list():
        """
        Paginated reservations visible to the caller.

        Query params:
            search, status, location_id, commission_id, date_from, date_to, page, per_page
        """
        result, status = perform_query(
            get_reservations,
            get_actor(),
            search=request.args.get('search') or None,
            status=request.args.get('status') or None,
            location_id=request.args.get('location_id', type=int),
            commission_id=request.args.get('commission_id', type=int),
            date_from=request.args.get('date_from') or None,
            date_to=request.args.get('date_to') or None,
            page=request.args.get('page', 1, type=int),
            per_page=min(request.args.get('per_page', current_app.config['ITEMS_PER_PAGE'], type=int), 100)
        )
        if status != 200:
            return api_error(result['error'], status)
        return api_success(data=result)

    @bp.route('/reservations/<int:reservation_id>', methods=['GET'])
    @login_required
    @role_required(*VALIDATOR_ROLES)
    def reservations_get(reservation_id):
        """Single reservation with location, commission and people."""
        reservation, status = perform_query(get_reservation_detail, get_actor(), reservation_id)
        if status != 200:
            return api_error(reservation['error'], status)
        return api_success(data=reservation)

    @bp.route('/reservations', methods=['POST'])
    @login_required
    @role_required(*VALIDATOR_ROLES)
    def reservations_create():
        """
        Create a reservation.

        Request body:
        {
            "title": "Réunion de bureau",
            "location_id": 3,
            "start_at": "2026-03-02T14:00",
            "end_at": "2026-03-02T16:00",
            "description": "optionnel"
        }

        A 409 response carries the blocking reservations under "conflicts".
        """
        payload = request.get_json(silent=True) or {}
        location_id = payload.get('location_id')
        start, end = payload.get('start_at'), payload.get('end_at')

        result, status = perform_action(
            create_reservation,
            get_actor(),
            title=payload.get('title'),
            location_id=location_id,
            start=start,
            end=end,
            description=payload.get('description')
        )

        if not result['success']:
            if status == 409:
                conflicts, _ = perform_query(get_conflicting_reservations, location_id, start, end)
                return api_error(result['error'], status,
                                 conflicts=conflicts if isinstance(conflicts, list) else [])
            return api_error(result['error'], status)

        return api_success(
            data=result['data'],
            message=MESSAGES['reservation_created'],
            status=201,
            reservation_id=result['data']['id']
        )

    @bp.route('/reservations/<int:reservation_id>/accept', methods=['POST'])
    @login_required
    @role_required(*VALIDATOR_ROLES)
    def reservations_accept(reservation_id):
        """Accept a PENDING or REJECTED reservation."""
        result, status = perform_action(accept_reservation, reservation_id, get_actor())
        return _decision_response(result, status, MESSAGES['reservation_accepted'])

    @bp.route('/reservations/<int:reservation_id>/reject', methods=['POST'])
    @login_required
    @role_required(*VALIDATOR_ROLES)
    def reservations_reject(reservation_id):
        """
        Reject a reservation.

        Request body:
        {"reason": "Salle réservée pour un examen"}
        """
        payload = request.get_json(silent=True) or {}
        result, status = perform_action(
            reject_reservation, reservation_id, get_actor(), payload.get('reason', '')
        )
        return _decision_response(result, status, MESSAGES['reservation_rejected'])

    @bp.route('/reservations/<int:reservation_id>', methods=['DELETE'])
    @login_required
    @role_required(ROLE_ADMIN)
    def reservations_delete(reservation_id):
        """Delete a reservation permanently (ADMIN only)."""
        result, status = perform_action(delete_reservation, get_actor(), reservation_id)
        if not result['success']:
            return api_error(result['error'], status)
        return api_success(message=MESSAGES['reservation_deleted'])
