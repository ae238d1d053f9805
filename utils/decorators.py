"""
Route decorators for authentication and authorization.
Provides role-based access control for routes.
"""

from functools import wraps
from flask import flash, request, abort
from flask_login import login_required, current_user

from utils.messages import MESSAGES


def role_required(*roles: str):
    """
    Decorator to require one of the given roles for a route.

    Usage:
        @admin_bp.route('/users')
        @login_required
        @role_required('ADMIN')
        def users():
            ...

    Args:
        *roles: Allowed role codes (e.g., 'ADMIN', 'CEE')

    Returns:
        Decorator function
    """
    def decorator(func):
        @wraps(func)
        def wrapper(*args, **kwargs):
            if not current_user.is_authenticated:
                abort(401)

            if current_user.role not in roles:
                if not request.path.startswith('/api/'):
                    flash(MESSAGES['not_authorized'], 'error')
                abort(403)

            return func(*args, **kwargs)
        return wrapper
    return decorator


# Re-export login_required for convenience
__all__ = ['login_required', 'role_required']
