"""
Route-boundary runners for model operations.

Mutations come back as {'success': True, 'data': result} or
{'success': False, 'error': message}; reads come back as the data or
{'error': message}. Domain errors keep their message and HTTP status,
anything else is logged and replaced by a generic message.
"""

import logging

from utils.errors import ReservationAppError
from utils.messages import MESSAGES

logger = logging.getLogger(__name__)


def perform_action(operation, *args, **kwargs) -> tuple[dict, int]:
    """
    Run a mutation and wrap its outcome.

    Args:
        operation: Model function to call
        *args, **kwargs: Forwarded to the operation

    Returns:
        Tuple of (result dict, HTTP status)
    """
    try:
        result = operation(*args, **kwargs)
    except ReservationAppError as e:
        logger.info('%s refused: %s', operation.__name__, e)
        return {'success': False, 'error': str(e)}, e.status_code
    except Exception:
        logger.exception('Unexpected error in %s', operation.__name__)
        return {'success': False, 'error': MESSAGES['internal_error']}, 500

    response = {'success': True}
    if result is not None:
        response['data'] = result
    return response, 200


def perform_query(operation, *args, **kwargs) -> tuple[object, int]:
    """
    Run a read and wrap failures as {'error': message}.

    Returns:
        Tuple of (data or error dict, HTTP status)
    """
    try:
        return operation(*args, **kwargs), 200
    except ReservationAppError as e:
        return {'error': str(e)}, e.status_code
    except Exception:
        logger.exception('Unexpected error in %s', operation.__name__)
        return {'error': MESSAGES['internal_error']}, 500
