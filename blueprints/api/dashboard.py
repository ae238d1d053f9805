"""
Dashboard API endpoints.
Statistics, daily time series, recent activity and form selects.
"""

from flask import request
from flask_login import login_required

from models.commission import get_commissions_for_select
from models.insights import get_dashboard_stats, get_dashboard_time_series, get_recent_activity
from models.location import get_locations_for_select
from utils.actions import perform_query
from utils.api_response import api_success, api_error
from utils.decorators import role_required
from utils.permissions import get_actor, VALIDATOR_ROLES

MAX_TIME_SERIES_DAYS = 366


def _query_response(operation, *args, **kwargs):
    data, status = perform_query(operation, *args, **kwargs)
    if status != 200:
        return api_error(data['error'], status)
    return api_success(data=data)


def register_routes(bp):
    """Register dashboard API routes on the blueprint."""

    @bp.route('/dashboard/stats', methods=['GET'])
    @login_required
    @role_required(*VALIDATOR_ROLES)
    def dashboard_stats():
        """
        Dashboard figures for the caller's role.

        Response JSON (ADMIN):
        {
            "success": true,
            "data": {
                "role": "ADMIN",
                "overview": {"total": 42, "pending": 5, "accepted": 30, "rejected": 7},
                "temporal": {"today": 2, "this_week": 9, "this_month": 20,
                             "last_month": 16, "growth": 25.0},
                "top_locations": [...],
                "commissions": [...]
            }
        }
        """
        return _query_response(get_dashboard_stats, get_actor())

    @bp.route('/dashboard/time-series', methods=['GET'])
    @login_required
    @role_required(*VALIDATOR_ROLES)
    def dashboard_time_series():
        """
        Daily pending/accepted/rejected counts.

        Query params:
            days: Look-back length (default TIME_SERIES_DAYS, max 366)
        """
        days = request.args.get('days', type=int)
        if days is not None and not 1 <= days <= MAX_TIME_SERIES_DAYS:
            return api_error(f'days doit être compris entre 1 et {MAX_TIME_SERIES_DAYS}', 400)

        return _query_response(get_dashboard_time_series, get_actor(), days)

    @bp.route('/dashboard/recent', methods=['GET'])
    @login_required
    @role_required(*VALIDATOR_ROLES)
    def dashboard_recent():
        """Latest reservations visible to the caller."""
        return _query_response(get_recent_activity, get_actor())

    @bp.route('/locations/select', methods=['GET'])
    @login_required
    @role_required(*VALIDATOR_ROLES)
    def locations_select():
        """Locations the caller may book."""
        return _query_response(get_locations_for_select, get_actor())

    @bp.route('/commissions/select', methods=['GET'])
    @login_required
    @role_required(*VALIDATOR_ROLES)
    def commissions_select():
        """Commissions visible to the caller."""
        return _query_response(get_commissions_for_select, get_actor())
