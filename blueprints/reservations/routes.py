"""
Reservation routes.
List, detail, creation and validation decisions for the back office.
"""

from flask import Blueprint, render_template, request, redirect, url_for, flash, current_app
from flask_login import login_required

from blueprints.reservations.forms import ReservationForm, RejectForm
from models.commission import get_commissions_for_select
from models.location import get_locations_for_select
from models.reservation import (STATUSES, get_reservations, get_reservation_detail,
                                create_reservation, delete_reservation)
from models.reservation_state import accept_reservation, reject_reservation, VALID_TRANSITIONS
from utils.actions import perform_action, perform_query
from utils.decorators import role_required
from utils.messages import MESSAGES
from utils.permissions import get_actor, VALIDATOR_ROLES, ROLE_ADMIN

reservations_bp = Blueprint('reservations', __name__, template_folder='../../templates/reservations')


def _flash_decision(result: dict, success_message: str) -> None:
    if not result['success']:
        flash(result['error'], 'error')
        return
    flash(success_message, 'success')
    if not result['data']['notification_sent']:
        flash(MESSAGES['notification_failed'], 'warning')


@reservations_bp.route('/')
@login_required
@role_required(*VALIDATOR_ROLES)
def list():
    """Display reservation list with filters."""
    actor = get_actor()
    filters = {
        'search': request.args.get('search', '').strip(),
        'status': request.args.get('status', ''),
        'location_id': request.args.get('location_id', type=int),
        'commission_id': request.args.get('commission_id', type=int),
        'date_from': request.args.get('date_from', ''),
        'date_to': request.args.get('date_to', ''),
    }

    result = get_reservations(
        actor,
        search=filters['search'] or None,
        status=filters['status'] or None,
        location_id=filters['location_id'],
        commission_id=filters['commission_id'],
        date_from=filters['date_from'] or None,
        date_to=filters['date_to'] or None,
        page=request.args.get('page', 1, type=int),
        per_page=current_app.config.get('ITEMS_PER_PAGE', 10)
    )

    return render_template(
        'reservations.html',
        result=result,
        filters=filters,
        statuses=STATUSES,
        locations=get_locations_for_select(actor),
        commissions=get_commissions_for_select(actor)
    )


@reservations_bp.route('/create', methods=['GET', 'POST'])
@login_required
@role_required(*VALIDATOR_ROLES)
def create():
    """Create a reservation (accepted on behalf of the validator)."""
    actor = get_actor()
    form = ReservationForm()
    form.location_id.choices = [
        (loc['id'], f"{loc['name']} ({loc['commission_name']})")
        for loc in get_locations_for_select(actor)
    ]

    if form.validate_on_submit():
        result, _ = perform_action(
            create_reservation, actor,
            title=form.title.data,
            location_id=form.location_id.data,
            start=form.start_at.data,
            end=form.end_at.data,
            description=form.description.data
        )
        if result['success']:
            flash(MESSAGES['reservation_created'], 'success')
            return redirect(url_for('reservations.detail', reservation_id=result['data']['id']))
        flash(result['error'], 'error')

    return render_template('reservation_form.html', form=form)


@reservations_bp.route('/<int:reservation_id>')
@login_required
@role_required(*VALIDATOR_ROLES)
def detail(reservation_id):
    """Reservation detail with decision actions."""
    reservation, status = perform_query(get_reservation_detail, get_actor(), reservation_id)
    if status != 200:
        flash(reservation['error'], 'error')
        return redirect(url_for('reservations.list'))

    return render_template(
        'reservation_detail.html',
        reservation=reservation,
        allowed=VALID_TRANSITIONS.get(reservation['status'], set()),
        reject_form=RejectForm()
    )


@reservations_bp.route('/<int:reservation_id>/accept', methods=['POST'])
@login_required
@role_required(*VALIDATOR_ROLES)
def accept(reservation_id):
    """Accept a reservation."""
    result, _ = perform_action(accept_reservation, reservation_id, get_actor())
    _flash_decision(result, MESSAGES['reservation_accepted'])
    return redirect(url_for('reservations.detail', reservation_id=reservation_id))


@reservations_bp.route('/<int:reservation_id>/reject', methods=['POST'])
@login_required
@role_required(*VALIDATOR_ROLES)
def reject(reservation_id):
    """Reject a reservation with a reason."""
    form = RejectForm()
    if not form.validate_on_submit():
        for errors in form.errors.values():
            for error in errors:
                flash(error, 'error')
        return redirect(url_for('reservations.detail', reservation_id=reservation_id))

    result, _ = perform_action(reject_reservation, reservation_id, get_actor(), form.reason.data)
    _flash_decision(result, MESSAGES['reservation_rejected'])
    return redirect(url_for('reservations.detail', reservation_id=reservation_id))


@reservations_bp.route('/<int:reservation_id>/delete', methods=['POST'])
@login_required
@role_required(ROLE_ADMIN)
def delete(reservation_id):
    """Delete a reservation permanently."""
    result, _ = perform_action(delete_reservation, get_actor(), reservation_id)
    if result['success']:
        flash(MESSAGES['reservation_deleted'], 'success')
        return redirect(url_for('reservations.list'))

    flash(result['error'], 'error')
    return redirect(url_for('reservations.detail', reservation_id=reservation_id))
