"""
Input validation helper functions.
Provides validation and parsing for common input types.
"""

import re
from datetime import date, datetime

from utils.datetime_helpers import to_local_naive
from utils.errors import ValidationError
from utils.messages import get_message

HEX_COLOR_PATTERN = re.compile(r'^#[0-9A-Fa-f]{6}$')
CONTROL_CHARS_PATTERN = re.compile(r'[\x00-\x1f\x7f]')


def validate_email(email: str) -> bool:
    """
    Validate email format.

    Args:
        email: Email address to validate

    Returns:
        True if valid email format
    """
    if not email:
        return False

    pattern = r'^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$'
    return bool(re.match(pattern, email))


def validate_hex_color(color: str) -> bool:
    """Check a '#RRGGBB' color tag."""
    return bool(color) and bool(HEX_COLOR_PATTERN.match(color))


def validate_password(password: str, min_length: int = 6) -> tuple:
    """
    Validate password strength.

    Args:
        password: Password to validate
        min_length: Minimum password length

    Returns:
        Tuple of (is_valid, error_message)
    """
    if not password:
        return False, 'Le mot de passe est requis'

    if len(password) < min_length:
        return False, f'Le mot de passe doit contenir au moins {min_length} caractères'

    return True, ''


def parse_datetime(value) -> datetime:
    """
    Parse a reservation boundary.

    Accepts datetime objects and ISO 8601 strings ('2026-03-02T09:00',
    '2026-03-02 09:00:00', with or without offset). Aware values are
    converted to the configured timezone.

    Raises:
        ValidationError: If the value cannot be parsed
    """
    if isinstance(value, datetime):
        return to_local_naive(value)
    if isinstance(value, date):
        return datetime.combine(value, datetime.min.time())
    if not value or not isinstance(value, str):
        raise ValidationError(get_message('invalid_datetime', value=value))

    text = value.strip()
    if text.endswith('Z'):
        text = text[:-1] + '+00:00'
    try:
        return to_local_naive(datetime.fromisoformat(text))
    except ValueError:
        raise ValidationError(get_message('invalid_datetime', value=value))


def parse_positive_number(value, message_key: str = 'invalid_max_duration') -> float | None:
    """
    Parse an optional strictly positive number.

    Returns:
        float, or None for empty input

    Raises:
        ValidationError: If the value is not a positive number
    """
    if value is None or (isinstance(value, str) and not value.strip()):
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        raise ValidationError(get_message(message_key))
    if number <= 0:
        raise ValidationError(get_message(message_key))
    return number


def parse_month(value: str | None) -> tuple[int, int] | None:
    """
    Parse a 'YYYY-MM' month selector.

    Returns:
        (year, month) tuple, or None for empty input

    Raises:
        ValidationError: If the value is malformed
    """
    if not value:
        return None
    try:
        parsed = datetime.strptime(value.strip(), '%Y-%m')
    except ValueError:
        raise ValidationError(get_message('invalid_month'))
    return parsed.year, parsed.month


def sanitize_input(text: str, max_length: int = None, single_line: bool = False) -> str:
    """
    Sanitize text input by trimming and limiting length.

    Args:
        text: Text to sanitize
        max_length: Maximum length (optional)
        single_line: Collapse line breaks, control characters and
            repeated whitespace into single spaces (titles, names)

    Returns:
        Sanitized text
    """
    if not text:
        return ''

    # Strip whitespace
    sanitized = text.strip()

    if single_line:
        sanitized = ' '.join(CONTROL_CHARS_PATTERN.sub(' ', sanitized).split())

    # Limit length if specified
    if max_length and len(sanitized) > max_length:
        sanitized = sanitized[:max_length]

    return sanitized
