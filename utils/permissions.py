"""
Role and commission scope checks.

Every model operation that depends on who is calling receives an
ActorContext instead of reading the session itself; routes build it once
with get_actor().
"""

from dataclasses import dataclass

from flask_login import current_user

from utils.errors import AuthError, PermissionDeniedError
from utils.messages import MESSAGES

ROLE_ADMIN = 'ADMIN'
ROLE_CEE = 'CEE'
ROLE_STUDENT = 'STUDENT'

ROLES = (ROLE_STUDENT, ROLE_CEE, ROLE_ADMIN)
VALIDATOR_ROLES = (ROLE_ADMIN, ROLE_CEE)


@dataclass(frozen=True)
class ActorContext:
    """Identity, role and commission of the caller."""

    user_id: int
    role: str
    commission_id: int | None = None
    name: str = ''

    @property
    def is_admin(self) -> bool:
        return self.role == ROLE_ADMIN

    @property
    def is_cee(self) -> bool:
        return self.role == ROLE_CEE

    @property
    def is_validator(self) -> bool:
        return self.role in VALIDATOR_ROLES


def actor_from_user(user) -> ActorContext:
    """
    Build an ActorContext from a Flask-Login user or a user dict.

    Args:
        user: models.user.User instance or user row dict

    Returns:
        ActorContext
    """
    if isinstance(user, dict):
        return ActorContext(
            user_id=user['id'],
            role=user['role'],
            commission_id=user.get('commission_id'),
            name=user.get('name') or ''
        )
    return ActorContext(
        user_id=user.id,
        role=user.role,
        commission_id=user.commission_id,
        name=user.name or ''
    )


def get_actor() -> ActorContext:
    """
    Resolve the current session into an ActorContext.

    Raises:
        AuthError: If no user is logged in
    """
    if not current_user or not current_user.is_authenticated:
        raise AuthError(MESSAGES['not_authenticated'])
    return actor_from_user(current_user)


def require_role(actor: ActorContext | None, *roles: str) -> ActorContext:
    """
    Ensure the actor holds one of the given roles.

    Raises:
        AuthError: If actor is None
        PermissionDeniedError: If the role is not allowed
    """
    if actor is None:
        raise AuthError(MESSAGES['not_authenticated'])
    if actor.role not in roles:
        raise PermissionDeniedError(MESSAGES['not_authorized'])
    return actor


def can_access_commission(actor: ActorContext, commission_id: int | None) -> bool:
    """ADMIN sees every commission; CEE only their own."""
    if actor.is_admin:
        return True
    return actor.is_cee and actor.commission_id is not None and actor.commission_id == commission_id


def require_commission_access(actor: ActorContext, commission_id: int | None,
                              message_key: str = 'commission_scope_only') -> None:
    """
    Ensure the actor may act within a commission.

    Raises:
        PermissionDeniedError: If the commission is outside the actor's scope
    """
    require_role(actor, *VALIDATOR_ROLES)
    if not can_access_commission(actor, commission_id):
        raise PermissionDeniedError(MESSAGES[message_key])


def get_commission_scope(actor: ActorContext) -> int | None:
    """
    Commission filter for read queries.

    Returns:
        None for ADMIN (no filter), the CEE's commission id otherwise

    Raises:
        PermissionDeniedError: For roles without back-office access
    """
    require_role(actor, *VALIDATOR_ROLES)
    if actor.is_admin:
        return None
    if actor.commission_id is None:
        raise PermissionDeniedError(MESSAGES['not_authorized'])
    return actor.commission_id


def get_menu_items(user) -> list:
    """
    Navigation entries visible to the user.

    Args:
        user: User object (Flask-Login)

    Returns:
        List of dicts with 'label', 'endpoint' and 'icon'
    """
    if not user or not user.is_authenticated:
        return []

    items = [
        {'label': 'Tableau de bord', 'endpoint': 'dashboard.index', 'icon': 'fa-gauge'},
        {'label': 'Réservations', 'endpoint': 'reservations.list', 'icon': 'fa-calendar-check'},
    ]

    if user.role == ROLE_ADMIN:
        items.extend([
            {'label': 'Commissions', 'endpoint': 'admin.commissions', 'icon': 'fa-people-group'},
            {'label': 'Lieux', 'endpoint': 'admin.locations', 'icon': 'fa-location-dot'},
            {'label': 'Utilisateurs', 'endpoint': 'admin.users', 'icon': 'fa-users-gear'},
            {'label': 'Rapport mensuel', 'endpoint': 'reports.monthly', 'icon': 'fa-chart-line'},
        ])
    elif user.role == ROLE_CEE:
        items.append(
            {'label': 'Rapport de commission', 'endpoint': 'reports.commission', 'icon': 'fa-chart-line'}
        )

    return items
