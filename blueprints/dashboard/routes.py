"""
Dashboard routes.
Role-routed landing page: global figures for ADMIN, commission figures for CEE.
"""

from flask import Blueprint, render_template, current_app
from flask_login import login_required

from models.insights import get_dashboard_stats, get_recent_activity
from utils.decorators import role_required
from utils.permissions import get_actor, VALIDATOR_ROLES

dashboard_bp = Blueprint('dashboard', __name__, template_folder='../../templates/dashboard')


@dashboard_bp.route('/')
@login_required
@role_required(*VALIDATOR_ROLES)
def index():
    """Dashboard page; the time series is fetched from the API by the page."""
    actor = get_actor()
    stats = get_dashboard_stats(actor)
    recent = get_recent_activity(actor)

    return render_template(
        'dashboard.html',
        stats=stats,
        recent=recent,
        time_series_days=current_app.config.get('TIME_SERIES_DAYS', 90)
    )
