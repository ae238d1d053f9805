"""
Tests for user model functions and the admin account service.
"""

import smtplib
import pytest


class TestInsertUser:
    """Tests for insert_user validation."""

    def test_email_lowercased_and_password_hashed(self, app):
        from models.user import insert_user, get_user_by_email, check_password

        with app.app_context():
            insert_user('Paul Durand', '  Paul.Durand@ESP-Reservation.fr ', 'secret-pass', 'STUDENT')
            user = get_user_by_email('paul.durand@esp-reservation.fr')

        assert user['email'] == 'paul.durand@esp-reservation.fr'
        assert user['password_hash'] != 'secret-pass'
        assert check_password(user, 'secret-pass')
        assert user['commission_id'] is None

    def test_name_collapsed_to_one_line(self, app):
        from models.user import insert_user, get_user_by_email

        with app.app_context():
            insert_user('Paul\nDurand', 'paul.durand@esp-reservation.fr', 'secret-pass', 'STUDENT')
            user = get_user_by_email('paul.durand@esp-reservation.fr')

        assert user['name'] == 'Paul Durand'

    def test_duplicate_email(self, app, student_actor):
        from conftest import STUDENT_EMAIL
        from models.user import insert_user
        from utils.errors import ValidationError

        with app.app_context():
            with pytest.raises(ValidationError):
                insert_user('Autre Léa', STUDENT_EMAIL.upper(), 'secret-pass', 'STUDENT')

    @pytest.mark.parametrize('name,email,role', [
        ('', 'vide@esp-reservation.fr', 'STUDENT'),
        ('Sans Arobase', 'sans-arobase', 'STUDENT'),
        ('Mauvais Rôle', 'role@esp-reservation.fr', 'SUPERUSER'),
    ])
    def test_invalid_fields(self, app, name, email, role):
        from models.user import insert_user
        from utils.errors import ValidationError

        with app.app_context():
            with pytest.raises(ValidationError):
                insert_user(name, email, 'secret-pass', role)

    def test_cee_requires_commission(self, app):
        from models.user import insert_user
        from utils.errors import ValidationError

        with app.app_context():
            with pytest.raises(ValidationError):
                insert_user('Membre', 'membre@esp-reservation.fr', 'secret-pass', 'CEE')

    def test_cee_unknown_commission(self, app):
        from models.user import insert_user
        from utils.errors import NotFoundError

        with app.app_context():
            with pytest.raises(NotFoundError):
                insert_user('Membre', 'membre@esp-reservation.fr', 'secret-pass', 'CEE', 9999)

    def test_commission_dropped_for_students(self, app, commission):
        from models.user import insert_user, get_user_by_id

        with app.app_context():
            user_id = insert_user('Élève', 'eleve@esp-reservation.fr', 'secret-pass', 'STUDENT', commission)
            assert get_user_by_id(user_id)['commission_id'] is None


class TestUpdateUser:
    """Tests for identity and commission updates."""

    def test_admin_updates_identity(self, app, admin_actor, student_actor):
        from models.user import update_user

        with app.app_context():
            user = update_user(admin_actor, student_actor.user_id, 'Léa Petit-Roux', 'LEA.ROUX@esp-reservation.fr')

        assert user['name'] == 'Léa Petit-Roux'
        assert user['email'] == 'lea.roux@esp-reservation.fr'

    def test_email_taken_by_other_account(self, app, admin_actor, student_actor, cee_actor):
        from conftest import CEE_EMAIL
        from models.user import update_user
        from utils.errors import ValidationError

        with app.app_context():
            with pytest.raises(ValidationError):
                update_user(admin_actor, student_actor.user_id, 'Léa Petit', CEE_EMAIL)

    def test_keep_own_email(self, app, cee_actor):
        from conftest import CEE_EMAIL
        from models.user import update_own_profile

        with app.app_context():
            user = update_own_profile(cee_actor, 'Claire Martin-Leroy', CEE_EMAIL)
        assert user['name'] == 'Claire Martin-Leroy'

    def test_cee_cannot_update_others(self, app, cee_actor, student_actor):
        from models.user import update_user
        from utils.errors import PermissionDeniedError

        with app.app_context():
            with pytest.raises(PermissionDeniedError):
                update_user(cee_actor, student_actor.user_id, 'X', 'x@esp-reservation.fr')

    def test_reassign_cee_commission(self, app, admin_actor, cee_actor, other_commission):
        from models.user import update_user_commission

        with app.app_context():
            user = update_user_commission(admin_actor, cee_actor.user_id, other_commission['commission_id'])
        assert user['commission_name'] == 'Bureau des Arts'

    def test_reassign_refused_for_students(self, app, admin_actor, student_actor, commission):
        from models.user import update_user_commission
        from utils.errors import ValidationError

        with app.app_context():
            with pytest.raises(ValidationError):
                update_user_commission(admin_actor, student_actor.user_id, commission)

    def test_update_password(self, app, student_actor):
        from conftest import STUDENT_EMAIL
        from models.user import update_password, get_user_by_email, check_password

        with app.app_context():
            assert update_password(student_actor.user_id, 'nouveau-mot-de-passe')
            user = get_user_by_email(STUDENT_EMAIL)
        assert check_password(user, 'nouveau-mot-de-passe')


class TestDeleteUser:
    """Tests for delete_user guards."""

    def test_delete_unused_account(self, app, admin_actor, student_actor):
        from models.user import delete_user, get_user_by_id

        with app.app_context():
            delete_user(admin_actor, student_actor.user_id)
            assert get_user_by_id(student_actor.user_id) is None

    def test_cannot_delete_self(self, app, admin_actor):
        from models.user import delete_user
        from utils.errors import ReferentialIntegrityError

        with app.app_context():
            with pytest.raises(ReferentialIntegrityError):
                delete_user(admin_actor, admin_actor.user_id)

    def test_cannot_delete_admin(self, app, admin_actor):
        from conftest import make_actor
        from models.user import delete_user
        from utils.errors import ReferentialIntegrityError

        other = make_actor(app, 'Autre Admin', 'autre.admin@esp-reservation.fr', 'ADMIN')
        with app.app_context():
            with pytest.raises(ReferentialIntegrityError):
                delete_user(admin_actor, other.user_id)

    def test_requester_with_reservations(self, app, admin_actor, student_actor, pending_reservation):
        from models.user import delete_user
        from utils.errors import ReferentialIntegrityError

        with app.app_context():
            with pytest.raises(ReferentialIntegrityError):
                delete_user(admin_actor, student_actor.user_id)

    def test_validator_of_reservations(self, app, admin_actor, cee_actor, pending_reservation, mail_outbox):
        from models.reservation_state import accept_reservation
        from models.user import delete_user
        from utils.errors import ReferentialIntegrityError

        with app.app_context():
            accept_reservation(pending_reservation['id'], cee_actor)
            with pytest.raises(ReferentialIntegrityError):
                delete_user(admin_actor, cee_actor.user_id)

    def test_unknown_user(self, app, admin_actor):
        from models.user import delete_user
        from utils.errors import NotFoundError

        with app.app_context():
            with pytest.raises(NotFoundError):
                delete_user(admin_actor, 9999)


class TestUserQueries:
    """Tests for user lists and lookups."""

    def test_filters(self, app, admin_actor, cee_actor, other_cee_actor, student_actor, commission):
        from models.user import get_users

        with app.app_context():
            cee_only = get_users(admin_actor, role='CEE')
            by_commission = get_users(admin_actor, commission_id=commission)
            searched = get_users(admin_actor, search='petit')
            everyone = get_users(admin_actor)

        assert cee_only['total'] == 2
        assert [u['name'] for u in by_commission['items']] == ['Claire Martin']
        assert [u['name'] for u in searched['items']] == ['Léa Petit']
        assert everyone['total'] == 4

    def test_detail_with_recent_reservations(self, app, admin_actor, student_actor, pending_reservation):
        from models.user import get_user_detail

        with app.app_context():
            detail = get_user_detail(admin_actor, student_actor.user_id)

        assert detail['reservation_count'] == 1
        assert detail['recent_reservations'][0]['title'] == 'Entraînement basket'
        assert detail['recent_reservations'][0]['location_name'] == 'Gymnase'

    def test_admin_emails_only_active(self, app):
        from conftest import ADMIN_EMAIL, make_actor
        from database import get_db
        from models.user import get_admin_emails

        retired = make_actor(app, 'Ancien Admin', 'ancien.admin@esp-reservation.fr', 'ADMIN')
        with app.app_context():
            db = get_db()
            db.execute('UPDATE users SET active = 0 WHERE id = ?', (retired.user_id,))
            db.commit()
            assert get_admin_emails() == [ADMIN_EMAIL]


class TestCreateUserAccount:
    """Tests for the admin account creation service."""

    def test_generate_default_password(self):
        from blueprints.admin.services import generate_default_password

        password = generate_default_password()
        assert len(password) == 16
        assert password.isalnum()
        assert len(generate_default_password(4)) == 8

    def test_creates_and_sends_welcome(self, app, admin_actor, commission, mail_outbox):
        from blueprints.admin.services import create_user_account
        from models.user import get_user_by_email, check_password

        with app.app_context():
            result = create_user_account(admin_actor, 'Nina Roy', 'nina.roy@esp-reservation.fr',
                                         'CEE', commission)
            stored = get_user_by_email('nina.roy@esp-reservation.fr')

        assert result['welcome_email_sent'] is True
        assert result['user']['commission_id'] == commission
        assert check_password(stored, result['default_password'])

        assert len(mail_outbox) == 1
        assert mail_outbox[0]['To'] == 'nina.roy@esp-reservation.fr'
        body = mail_outbox[0].get_body(preferencelist=('plain',)).get_content()
        assert result['default_password'] in body

    def test_welcome_failure_keeps_account(self, app, admin_actor, monkeypatch):
        import utils.mailer
        from blueprints.admin.services import create_user_account
        from models.user import get_user_by_email

        def failing_deliver(message):
            raise smtplib.SMTPException('Serveur indisponible')

        monkeypatch.setattr(utils.mailer, '_deliver', failing_deliver)

        with app.app_context():
            result = create_user_account(admin_actor, 'Omar Diallo', 'omar.diallo@esp-reservation.fr',
                                         'STUDENT')
            assert get_user_by_email('omar.diallo@esp-reservation.fr') is not None

        assert result['welcome_email_sent'] is False

    def test_cee_cannot_create_accounts(self, app, cee_actor):
        from blueprints.admin.services import create_user_account
        from utils.errors import PermissionDeniedError

        with app.app_context():
            with pytest.raises(PermissionDeniedError):
                create_user_account(cee_actor, 'X', 'x@esp-reservation.fr', 'STUDENT')
