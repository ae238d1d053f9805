"""
Report routes.
Monthly report (ADMIN) and per-commission report (ADMIN or the commission's CEE).
"""

from flask import Blueprint, render_template, request, redirect, url_for, flash
from flask_login import login_required

from models.commission import get_commissions_for_select
from models.reports import generate_monthly_report, generate_commission_report
from utils.actions import perform_query
from utils.decorators import role_required
from utils.errors import ValidationError
from utils.permissions import get_actor, ROLE_ADMIN, VALIDATOR_ROLES
from utils.validators import parse_month

reports_bp = Blueprint('reports', __name__, template_folder='../../templates/reports')


def _selected_month() -> tuple:
    """(year, month) from ?month=YYYY-MM, or (None, None) for the current month."""
    parsed = parse_month(request.args.get('month'))
    return parsed if parsed else (None, None)


@reports_bp.route('/monthly')
@login_required
@role_required(ROLE_ADMIN)
def monthly():
    """Monthly report across all commissions."""
    try:
        year, month = _selected_month()
    except ValidationError as e:
        flash(str(e), 'error')
        return redirect(url_for('reports.monthly'))

    report, status = perform_query(generate_monthly_report, get_actor(), year, month)
    if status != 200:
        flash(report['error'], 'error')
        return redirect(url_for('dashboard.index'))

    return render_template('monthly_report.html', report=report)


@reports_bp.route('/commission')
@reports_bp.route('/commission/<int:commission_id>')
@login_required
@role_required(*VALIDATOR_ROLES)
def commission(commission_id=None):
    """Report for one commission; CEE members default to their own."""
    actor = get_actor()
    if commission_id is None:
        commission_id = actor.commission_id or request.args.get('commission_id', type=int)

    commissions = get_commissions_for_select(actor)
    if commission_id is None:
        return render_template('commission_report.html', report=None, commissions=commissions)

    try:
        year, month = _selected_month()
    except ValidationError as e:
        flash(str(e), 'error')
        return redirect(url_for('reports.commission', commission_id=commission_id))

    report, status = perform_query(generate_commission_report, actor, commission_id, year, month)
    if status != 200:
        flash(report['error'], 'error')
        return redirect(url_for('dashboard.index'))

    return render_template('commission_report.html', report=report, commissions=commissions)
