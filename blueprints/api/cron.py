"""
Scheduled job endpoints.
Called by an external scheduler, not by logged-in users.
"""

import hmac

from flask import current_app, request

from models.reports import send_monthly_report
from utils.api_response import api_success, api_error
from utils.errors import ValidationError
from utils.messages import MESSAGES


def _authorized() -> bool:
    """Bearer token check; open when CRON_SECRET is not configured."""
    secret = current_app.config.get('CRON_SECRET')
    if not secret:
        return True
    header = request.headers.get('Authorization', '')
    scheme, _, token = header.partition(' ')
    return scheme.lower() == 'bearer' and hmac.compare_digest(token.strip(), secret)


def register_routes(bp):
    """Register cron API routes on the blueprint."""

    @bp.route('/cron/monthly-report', methods=['GET'])
    def cron_monthly_report():
        """
        Email the monthly report to every administrator.

        Query params:
            period: 'previous' (default) or 'current'

        Response JSON:
        {
            "success": true,
            "message": "Rapport du mois précédent envoyé à 2 administrateur(s)",
            "data": {"stats": {...}, "period": "previous",
                     "date_range": {"start": "01/02/2026", "end": "28/02/2026"},
                     "recipients": 2}
        }
        """
        if not _authorized():
            return api_error(MESSAGES['not_authenticated'], 401)

        try:
            result = send_monthly_report(request.args.get('period'))
        except ValidationError as e:
            return api_error(str(e), 400)
        except Exception as e:
            current_app.logger.error(f'Error generating monthly report: {e}', exc_info=True)
            return api_error(MESSAGES['report_generation_failed'], 500)

        if not result['success']:
            return api_error(result['error'], 500)

        if not result['sent']:
            return api_success(message=result['message'], data={'recipients': 0})

        return api_success(
            message=result['message'],
            data={
                'stats': result['stats'],
                'period': result['period'],
                'date_range': result['date_range'],
                'recipients': result['recipients'],
            }
        )
