"""
Business logic for admin user management.
Account creation with a generated password and a best-effort welcome email.
"""

import logging
import secrets
import string

from models.user import create_user, get_user_by_id
from utils.mailer import send_welcome_email
from utils.messages import MESSAGES
from utils.permissions import ActorContext

logger = logging.getLogger(__name__)

PASSWORD_ALPHABET = string.ascii_letters + string.digits
DEFAULT_PASSWORD_LENGTH = 16


def generate_default_password(length: int = DEFAULT_PASSWORD_LENGTH) -> str:
    """
    Random initial password sent to new users.

    Args:
        length: Number of characters (at least 8)

    Returns:
        Password made of letters and digits
    """
    length = max(length, 8)
    return ''.join(secrets.choice(PASSWORD_ALPHABET) for _ in range(length))


def create_user_account(actor: ActorContext, name: str, email: str, role: str,
                        commission_id: int = None) -> dict:
    """
    Create a user with a generated password and send the welcome email.

    A failed welcome email is logged and does not undo the creation.

    Args:
        actor: Calling administrator
        name: Display name
        email: Unique email
        role: 'STUDENT', 'CEE' or 'ADMIN'
        commission_id: Required for CEE members

    Returns:
        Dict with user, default_password and welcome_email_sent
    """
    default_password = generate_default_password()
    user_id = create_user(actor, name, email, default_password, role, commission_id)
    user = get_user_by_id(user_id)

    result = send_welcome_email(user['email'], {
        'name': user['name'],
        'email': user['email'],
        'password': default_password,
        'role': user['role'],
        'role_label': MESSAGES.get(f"role_{user['role']}", user['role']),
    })
    if not result['success']:
        logger.error('Welcome email for user %s not sent: %s', user_id, result.get('error'))

    return {
        'user': user,
        'default_password': default_password,
        'welcome_email_sent': result['success'],
    }
