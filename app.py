"""
ESP Réservation - Room and venue reservation back office
Flask application factory and initialization
"""

import os
import click
import logging
from flask import Flask, render_template, request, redirect, url_for, g
from flask_login import current_user
from dotenv import load_dotenv

# .env must be read before config.py evaluates os.environ
load_dotenv()

from config import config  # noqa: E402
from extensions import login_manager, csrf  # noqa: E402
from database import close_db, init_db  # noqa: E402


def create_app(config_name=None):
    """
    Application factory for Flask app.

    Args:
        config_name: Configuration name ('development', 'production', 'test')

    Returns:
        Flask application instance
    """
    config_name = config_name or os.environ.get('FLASK_ENV', 'development')
    config_class = config[config_name]
    if hasattr(config_class, 'validate'):
        config_class.validate()

    app = Flask(__name__)
    app.config.from_object(config_class)

    initialize_extensions(app)
    register_blueprints(app)
    register_error_handlers(app)
    register_cli_commands(app)
    register_context_processors(app)
    register_teardown_handlers(app)
    configure_logging(app)

    return app


def initialize_extensions(app):
    """Bind Flask-Login and CSRF protection to the app."""
    login_manager.init_app(app)
    csrf.init_app(app)
    # Outbox for emails captured when MAIL_SUPPRESS_SEND is on
    app.extensions.setdefault('mail_outbox', [])


def register_blueprints(app):
    """Register page blueprints and the JSON API."""
    from blueprints.auth.routes import auth_bp
    from blueprints.admin.routes import admin_bp
    from blueprints.dashboard.routes import dashboard_bp
    from blueprints.reservations.routes import reservations_bp
    from blueprints.reports.routes import reports_bp
    from blueprints.api.routes import api_bp

    app.register_blueprint(auth_bp)
    app.register_blueprint(admin_bp, url_prefix='/admin')
    app.register_blueprint(dashboard_bp, url_prefix='/dashboard')
    app.register_blueprint(reservations_bp, url_prefix='/reservations')
    app.register_blueprint(reports_bp, url_prefix='/reports')
    app.register_blueprint(api_bp, url_prefix='/api')

    @app.route('/')
    def index():
        """Dashboard for signed-in validators, login page otherwise."""
        if current_user.is_authenticated:
            return redirect(url_for('dashboard.index'))
        return redirect(url_for('auth.login'))


def register_error_handlers(app):
    """Register error handlers. API paths get JSON, pages get templates."""
    from utils.api_response import api_error
    from utils.messages import MESSAGES

    def wants_json():
        return request.path.startswith('/api/')

    @app.errorhandler(401)
    def unauthorized_error(error):
        """Handle 401 errors."""
        if wants_json():
            return api_error(MESSAGES['not_authenticated'], 401)
        return render_template('errors/403.html'), 401

    @app.errorhandler(404)
    def not_found_error(error):
        """Handle 404 errors."""
        if wants_json():
            return api_error('Ressource introuvable', 404)
        return render_template('errors/404.html'), 404

    @app.errorhandler(500)
    def internal_error(error):
        """Handle 500 errors, discarding any half-written transaction."""
        db = g.get('db')
        if db:
            db.rollback()
        if wants_json():
            return api_error(MESSAGES['internal_error'], 500)
        return render_template('errors/500.html'), 500

    @app.errorhandler(403)
    def forbidden_error(error):
        """Handle 403 errors."""
        if wants_json():
            return api_error(MESSAGES['not_authorized'], 403)
        return render_template('errors/403.html'), 403


def register_cli_commands(app):
    """Register Flask CLI commands."""

    @app.cli.command('init-db')
    @click.option('--no-seed', is_flag=True, help='Skip the default administrator account.')
    def init_db_command(no_seed):
        """Initialize database with schema and seed data."""
        click.echo('Initializing database...')
        with app.app_context():
            init_db(seed=not no_seed)
        click.echo('Database initialized successfully!')

    @app.cli.command('create-admin')
    @click.argument('name')
    @click.argument('email')
    @click.password_option()
    def create_admin_command(name, email, password):
        """Create a new administrator."""
        from models.user import insert_user
        from utils.errors import ReservationAppError
        from utils.permissions import ROLE_ADMIN

        with app.app_context():
            try:
                user_id = insert_user(name=name, email=email, password=password, role=ROLE_ADMIN)
                click.echo(f'Administrator created successfully! ID: {user_id}')
            except ReservationAppError as e:
                click.echo(f'Error creating administrator: {str(e)}', err=True)

    @app.cli.command('send-monthly-report')
    @click.option('--period', type=click.Choice(['previous', 'current']), default='previous',
                  show_default=True, help='Month to report on.')
    def send_monthly_report_command(period):
        """Email the monthly report to every administrator."""
        from models.reports import send_monthly_report

        with app.app_context():
            result = send_monthly_report(period)

        if not result['success']:
            click.echo(f"Error: {result['error']}", err=True)
            raise SystemExit(1)
        click.echo(result['message'])


def register_context_processors(app):
    """Register template context processors."""

    @app.context_processor
    def utility_processor():
        """Inject utility functions into templates."""
        from utils.permissions import get_menu_items
        from models.reservation_state import get_status_label
        from utils.datetime_helpers import get_today

        return {
            'get_menu_items': get_menu_items,
            'status_label': get_status_label,
            'current_year': get_today().year,
            'app_name': app.config.get('APP_NAME', 'ESP Réservation'),
            'app_version': app.config.get('APP_VERSION', '1.0.0')
        }

    @app.template_filter('format_date')
    def format_date_filter(value, format='%d/%m/%Y'):
        """Format a date or timestamp."""
        from utils.datetime_helpers import format_display
        return format_display(value, format)

    @app.template_filter('format_datetime')
    def format_datetime_filter(value, format='%d/%m/%Y %H:%M'):
        """Format a timestamp with its time."""
        from utils.datetime_helpers import format_display
        return format_display(value, format)

    @app.template_filter('role_label')
    def role_label_filter(role):
        """French label for a role code."""
        from utils.messages import MESSAGES
        return MESSAGES.get(f'role_{role}', role)


def register_teardown_handlers(app):
    """Register teardown handlers."""

    @app.teardown_appcontext
    def teardown_db(error):
        """Close database connection at end of request."""
        close_db(error)


def configure_logging(app):
    """
    File logging outside debug and testing.

    The handler sits on the root logger so that module loggers
    (models.*, utils.mailer, ...) end up in the same file as app.logger.
    """
    if app.debug or app.testing:
        app.logger.setLevel(logging.DEBUG)
        return

    log_dir = app.config.get('LOG_DIR', 'logs')
    os.makedirs(log_dir, exist_ok=True)

    file_handler = logging.FileHandler(os.path.join(log_dir, 'esp_reservation.log'))
    file_handler.setFormatter(logging.Formatter(
        '%(asctime)s %(levelname)s %(name)s: %(message)s'
    ))
    file_handler.setLevel(logging.INFO)

    root = logging.getLogger()
    root.addHandler(file_handler)
    root.setLevel(logging.INFO)

    app.logger.setLevel(logging.INFO)
    app.logger.info('%s %s startup', app.config['APP_NAME'], app.config['APP_VERSION'])


if __name__ == '__main__':
    create_app().run(host='0.0.0.0', debug=True)
