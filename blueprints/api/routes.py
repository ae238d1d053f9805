"""
API routes for JSON endpoints.
Health check here; entity endpoints live in submodules registered below.
"""

from flask import jsonify, Blueprint, current_app

api_bp = Blueprint('api', __name__)


@api_bp.route('/health')
def health_check():
    """
    Health check endpoint (no authentication required).

    Returns:
        JSON with status and version
    """
    return jsonify({
        'status': 'ok',
        'version': current_app.config.get('APP_VERSION', '1.0.0'),
        'app': current_app.config.get('APP_NAME', 'ESP Réservation')
    })


# Import and register routes from submodules
from blueprints.api import dashboard, reservations, cron  # noqa: E402

dashboard.register_routes(api_bp)
reservations.register_routes(api_bp)
cron.register_routes(api_bp)
