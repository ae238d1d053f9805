"""
Admin routes for commission, location and user management.
All pages are restricted to administrators.
"""

from flask import render_template, redirect, url_for, flash, request, Blueprint, current_app
from flask_login import login_required

from utils.actions import perform_action, perform_query
from utils.decorators import role_required
from utils.messages import MESSAGES, get_message
from utils.permissions import get_actor, ROLES, ROLE_ADMIN
from models.commission import (get_commissions, get_commission_by_id, get_commission_detail,
                               get_commissions_for_select, create_commission, update_commission,
                               delete_commission)
from models.location import (get_locations, get_location_by_id, create_location,
                             update_location, delete_location)
from models.user import (get_users, get_user_by_id, get_user_detail, update_user,
                         update_user_commission, delete_user)
from blueprints.admin.services import create_user_account

admin_bp = Blueprint('admin', __name__, template_folder='../../templates/admin')


def _flash_result(result: dict, success_message: str) -> bool:
    """Flash the outcome of a perform_action call."""
    if result['success']:
        flash(success_message, 'success')
        return True
    flash(result['error'], 'error')
    return False


def _page() -> int:
    return request.args.get('page', 1, type=int)


def _per_page() -> int:
    return current_app.config.get('ITEMS_PER_PAGE', 10)


# =============================================================================
# COMMISSIONS
# =============================================================================

@admin_bp.route('/commissions')
@login_required
@role_required(ROLE_ADMIN)
def commissions():
    """List commissions with search."""
    search = request.args.get('search', '').strip()
    result = get_commissions(get_actor(), search=search or None, page=_page(), per_page=_per_page())

    return render_template('commissions.html', result=result, search=search)


@admin_bp.route('/commissions/create', methods=['GET', 'POST'])
@login_required
@role_required(ROLE_ADMIN)
def commissions_create():
    """Create new commission."""
    if request.method == 'POST':
        result, _ = perform_action(
            create_commission, get_actor(),
            name=request.form.get('name', ''),
            description=request.form.get('description', ''),
            color=request.form.get('color') or None
        )
        if _flash_result(result, MESSAGES['commission_created']):
            return redirect(url_for('admin.commissions'))
        return render_template('commission_form.html', commission=request.form, mode='create')

    return render_template('commission_form.html', commission=None, mode='create')


@admin_bp.route('/commissions/<int:commission_id>')
@login_required
@role_required(ROLE_ADMIN)
def commissions_detail(commission_id):
    """Commission with its members and locations."""
    commission, status = perform_query(get_commission_detail, get_actor(), commission_id)
    if status != 200:
        flash(commission['error'], 'error')
        return redirect(url_for('admin.commissions'))

    return render_template('commission_detail.html', commission=commission)


@admin_bp.route('/commissions/<int:commission_id>/edit', methods=['GET', 'POST'])
@login_required
@role_required(ROLE_ADMIN)
def commissions_edit(commission_id):
    """Edit existing commission."""
    commission = get_commission_by_id(commission_id)
    if not commission:
        flash(MESSAGES['commission_not_found'], 'error')
        return redirect(url_for('admin.commissions'))

    if request.method == 'POST':
        result, _ = perform_action(
            update_commission, get_actor(), commission_id,
            name=request.form.get('name', ''),
            description=request.form.get('description', ''),
            color=request.form.get('color') or None
        )
        if _flash_result(result, MESSAGES['commission_updated']):
            return redirect(url_for('admin.commissions'))

    return render_template('commission_form.html', commission=commission, mode='edit')


@admin_bp.route('/commissions/<int:commission_id>/delete', methods=['POST'])
@login_required
@role_required(ROLE_ADMIN)
def commissions_delete(commission_id):
    """Delete a commission without members or locations."""
    result, _ = perform_action(delete_commission, get_actor(), commission_id)
    _flash_result(result, MESSAGES['commission_deleted'])
    return redirect(url_for('admin.commissions'))


# =============================================================================
# LOCATIONS
# =============================================================================

@admin_bp.route('/locations')
@login_required
@role_required(ROLE_ADMIN)
def locations():
    """List locations with search and commission filter."""
    search = request.args.get('search', '').strip()
    commission_filter = request.args.get('commission_id', type=int)
    actor = get_actor()

    result = get_locations(actor, search=search or None, commission_id=commission_filter,
                           page=_page(), per_page=_per_page())

    return render_template('locations.html', result=result, search=search,
                           commission_filter=commission_filter,
                           commissions=get_commissions_for_select(actor))


@admin_bp.route('/locations/create', methods=['GET', 'POST'])
@login_required
@role_required(ROLE_ADMIN)
def locations_create():
    """Create new location."""
    actor = get_actor()

    if request.method == 'POST':
        result, _ = perform_action(
            create_location, actor,
            name=request.form.get('name', ''),
            commission_id=request.form.get('commission_id', type=int),
            description=request.form.get('description', ''),
            max_duration_hours=request.form.get('max_duration_hours', '')
        )
        if _flash_result(result, MESSAGES['location_created']):
            return redirect(url_for('admin.locations'))
        return render_template('location_form.html', location=request.form, mode='create',
                               commissions=get_commissions_for_select(actor))

    return render_template('location_form.html', location=None, mode='create',
                           commissions=get_commissions_for_select(actor))


@admin_bp.route('/locations/<int:location_id>/edit', methods=['GET', 'POST'])
@login_required
@role_required(ROLE_ADMIN)
def locations_edit(location_id):
    """Edit existing location."""
    actor = get_actor()
    location = get_location_by_id(location_id)
    if not location:
        flash(MESSAGES['location_not_found'], 'error')
        return redirect(url_for('admin.locations'))

    if request.method == 'POST':
        result, _ = perform_action(
            update_location, actor, location_id,
            name=request.form.get('name', ''),
            commission_id=request.form.get('commission_id', type=int),
            description=request.form.get('description', ''),
            max_duration_hours=request.form.get('max_duration_hours', '')
        )
        if _flash_result(result, MESSAGES['location_updated']):
            return redirect(url_for('admin.locations'))

    return render_template('location_form.html', location=location, mode='edit',
                           commissions=get_commissions_for_select(actor))


@admin_bp.route('/locations/<int:location_id>/delete', methods=['POST'])
@login_required
@role_required(ROLE_ADMIN)
def locations_delete(location_id):
    """Delete a location without reservations."""
    result, _ = perform_action(delete_location, get_actor(), location_id)
    _flash_result(result, MESSAGES['location_deleted'])
    return redirect(url_for('admin.locations'))


# =============================================================================
# USERS
# =============================================================================

@admin_bp.route('/users')
@login_required
@role_required(ROLE_ADMIN)
def users():
    """List users with search, role and commission filters."""
    search = request.args.get('search', '').strip()
    role_filter = request.args.get('role', '')
    commission_filter = request.args.get('commission_id', type=int)
    actor = get_actor()

    result = get_users(actor, search=search or None, role=role_filter or None,
                       commission_id=commission_filter, page=_page(), per_page=_per_page())

    return render_template('users.html', result=result, search=search,
                           role_filter=role_filter, commission_filter=commission_filter,
                           roles=ROLES, commissions=get_commissions_for_select(actor))


@admin_bp.route('/users/create', methods=['GET', 'POST'])
@login_required
@role_required(ROLE_ADMIN)
def users_create():
    """Create new user with a generated password."""
    actor = get_actor()

    if request.method == 'POST':
        result, _ = perform_action(
            create_user_account, actor,
            name=request.form.get('name', ''),
            email=request.form.get('email', ''),
            role=request.form.get('role', ''),
            commission_id=request.form.get('commission_id', type=int)
        )
        if result['success']:
            account = result['data']
            flash(get_message('user_created_with_password',
                              password=account['default_password']), 'success')
            if not account['welcome_email_sent']:
                flash(MESSAGES['notification_failed'], 'warning')
            return redirect(url_for('admin.users'))

        flash(result['error'], 'error')
        return render_template('user_form.html', user=request.form, mode='create', roles=ROLES,
                               commissions=get_commissions_for_select(actor))

    return render_template('user_form.html', user=None, mode='create', roles=ROLES,
                           commissions=get_commissions_for_select(actor))


@admin_bp.route('/users/<int:user_id>')
@login_required
@role_required(ROLE_ADMIN)
def users_detail(user_id):
    """User with latest reservations."""
    user, status = perform_query(get_user_detail, get_actor(), user_id)
    if status != 200:
        flash(user['error'], 'error')
        return redirect(url_for('admin.users'))

    return render_template('user_detail.html', user=user)


@admin_bp.route('/users/<int:user_id>/edit', methods=['GET', 'POST'])
@login_required
@role_required(ROLE_ADMIN)
def users_edit(user_id):
    """Edit user name and email."""
    actor = get_actor()
    user = get_user_by_id(user_id)
    if not user:
        flash(MESSAGES['user_not_found'], 'error')
        return redirect(url_for('admin.users'))

    if request.method == 'POST':
        result, _ = perform_action(
            update_user, actor, user_id,
            name=request.form.get('name', ''),
            email=request.form.get('email', '')
        )
        if _flash_result(result, MESSAGES['user_updated']):
            return redirect(url_for('admin.users'))

    return render_template('user_form.html', user=user, mode='edit', roles=ROLES,
                           commissions=get_commissions_for_select(actor))


@admin_bp.route('/users/<int:user_id>/commission', methods=['POST'])
@login_required
@role_required(ROLE_ADMIN)
def users_commission(user_id):
    """Reassign a CEE member to a commission."""
    result, _ = perform_action(
        update_user_commission, get_actor(), user_id,
        request.form.get('commission_id', type=int)
    )
    _flash_result(result, MESSAGES['user_updated'])
    return redirect(url_for('admin.users_detail', user_id=user_id))


@admin_bp.route('/users/<int:user_id>/delete', methods=['POST'])
@login_required
@role_required(ROLE_ADMIN)
def users_delete(user_id):
    """Delete user (blocked for self, admins and users with reservations)."""
    result, _ = perform_action(delete_user, get_actor(), user_id)
    _flash_result(result, MESSAGES['user_deleted'])
    return redirect(url_for('admin.users'))
