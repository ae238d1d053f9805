"""
Transactional email dispatch over SMTP.

Bodies are rendered from templates/emails/<kind>.txt and .html. With
MAIL_SUPPRESS_SEND enabled, messages are appended to
app.extensions['mail_outbox'] instead of being sent.
"""

import logging
import smtplib
import ssl
from email.message import EmailMessage

from flask import current_app, render_template

logger = logging.getLogger(__name__)

SUBJECTS = {
    'reservation_accepted': 'Votre réservation « {reservation_title} » a été acceptée',
    'reservation_rejected': 'Votre réservation « {reservation_title} » a été refusée',
    'monthly_report': 'Rapport mensuel des réservations - {month} {year}',
    'welcome_user': 'Bienvenue sur ESP Réservation - Vos identifiants de connexion',
}


def get_outbox() -> list:
    """Messages captured while MAIL_SUPPRESS_SEND is enabled."""
    return current_app.extensions.setdefault('mail_outbox', [])


def build_message(to, template_kind: str, data: dict) -> EmailMessage:
    """
    Render an email from its templates.

    Args:
        to: Recipient address or list of addresses
        template_kind: Key of SUBJECTS / template base name
        data: Template variables

    Returns:
        EmailMessage ready to send
    """
    recipients = [to] if isinstance(to, str) else list(to)
    context = dict(data, app_name=current_app.config.get('APP_NAME', 'ESP Réservation'))

    message = EmailMessage()
    # Header values must stay on one line
    message['Subject'] = ' '.join(SUBJECTS[template_kind].format(**context).split())
    message['From'] = current_app.config['MAIL_DEFAULT_SENDER']
    message['To'] = ', '.join(recipients)
    message.set_content(render_template(f'emails/{template_kind}.txt', **context))
    message.add_alternative(render_template(f'emails/{template_kind}.html', **context), subtype='html')
    return message


def _deliver(message: EmailMessage) -> None:
    """Hand a message to the SMTP server (or the outbox)."""
    config = current_app.config

    if config.get('MAIL_SUPPRESS_SEND'):
        get_outbox().append(message)
        return

    host = config['MAIL_SERVER']
    port = config['MAIL_PORT']
    username = config.get('MAIL_USERNAME')
    password = config.get('MAIL_PASSWORD')

    if config.get('MAIL_USE_SSL'):
        with smtplib.SMTP_SSL(host, port, context=ssl.create_default_context()) as server:
            if username:
                server.login(username, password)
            server.send_message(message)
    else:
        with smtplib.SMTP(host, port) as server:
            if config.get('MAIL_USE_TLS'):
                server.starttls(context=ssl.create_default_context())
            if username:
                server.login(username, password)
            server.send_message(message)


def send_email(to, template_kind: str, data: dict) -> dict:
    """
    Render and send an email.

    Args:
        to: Recipient address or list of addresses
        template_kind: 'reservation_accepted', 'reservation_rejected',
            'monthly_report' or 'welcome_user'
        data: Template variables

    Returns:
        {'success': True} or {'success': False, 'error': str}
    """
    try:
        message = build_message(to, template_kind, data)
        _deliver(message)
    except Exception as e:
        # Callers have already committed; a mail failure must not surface as an error
        logger.error('Failed to send %s email to %s: %s', template_kind, to, e, exc_info=True)
        return {'success': False, 'error': str(e)}

    logger.info('Sent %s email to %s', template_kind, message['To'])
    return {'success': True}


def send_reservation_accepted_email(to: str, data: dict) -> dict:
    """
    Notify a requester that their reservation was accepted.

    data keys: student_name, reservation_title, location_name, start_at,
    end_at, validated_by
    """
    return send_email(to, 'reservation_accepted', data)


def send_reservation_rejected_email(to: str, data: dict) -> dict:
    """Same keys as the accepted email, plus rejection_reason."""
    return send_email(to, 'reservation_rejected', data)


def send_monthly_report_email(recipients: list, data: dict) -> dict:
    return send_email(recipients, 'monthly_report', data)


def send_welcome_email(to: str, data: dict) -> dict:
    return send_email(to, 'welcome_user', data)
