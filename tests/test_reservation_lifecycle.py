"""
Tests for reservation status transitions, notifications and deletion.
"""

import smtplib
import pytest


class TestValidateStateTransition:
    """Tests for the VALID_TRANSITIONS matrix."""

    @pytest.mark.parametrize('current, new', [
        ('PENDING', 'ACCEPTED'),
        ('PENDING', 'REJECTED'),
        ('ACCEPTED', 'REJECTED'),
        ('REJECTED', 'ACCEPTED'),
    ])
    def test_allowed(self, current, new):
        from models.reservation_state import validate_state_transition

        validate_state_transition(current, new)

    @pytest.mark.parametrize('current, new', [
        ('ACCEPTED', 'ACCEPTED'),
        ('REJECTED', 'REJECTED'),
        ('ACCEPTED', 'PENDING'),
        ('REJECTED', 'PENDING'),
        ('CANCELLED', 'ACCEPTED'),
        ('CANCELLED', 'REJECTED'),
    ])
    def test_refused(self, app, current, new):
        from models.reservation_state import validate_state_transition
        from utils.errors import InvalidStateTransitionError

        with pytest.raises(InvalidStateTransitionError):
            validate_state_transition(current, new)

    def test_status_labels(self):
        from models.reservation_state import get_status_label

        assert get_status_label('PENDING') == 'En attente'
        assert get_status_label('UNKNOWN') == 'UNKNOWN'


class TestAcceptReservation:
    """Tests for accept_reservation."""

    def test_cee_accepts_pending(self, app, cee_actor, pending_reservation, mail_outbox):
        from models.reservation_state import accept_reservation

        with app.app_context():
            result = accept_reservation(pending_reservation['id'], cee_actor)

        reservation = result['reservation']
        assert reservation['status'] == 'ACCEPTED'
        assert reservation['validated_by'] == cee_actor.user_id
        assert reservation['rejection_reason'] is None
        assert result['notification_sent'] is True

        assert len(mail_outbox) == 1
        assert mail_outbox[0]['To'] == 'lea.petit@esp-reservation.fr'
        assert 'Entraînement basket' in mail_outbox[0]['Subject']

    def test_admin_accepts_any_commission(self, app, admin_actor, pending_reservation):
        from models.reservation_state import accept_reservation

        with app.app_context():
            result = accept_reservation(pending_reservation['id'], admin_actor)
        assert result['reservation']['validated_by'] == admin_actor.user_id

    def test_cee_of_other_commission_refused(self, app, other_cee_actor, pending_reservation):
        from models.reservation import get_reservation_by_id
        from models.reservation_state import accept_reservation
        from utils.errors import PermissionDeniedError

        with app.app_context():
            with pytest.raises(PermissionDeniedError):
                accept_reservation(pending_reservation['id'], other_cee_actor)
            assert get_reservation_by_id(pending_reservation['id'])['status'] == 'PENDING'

    def test_student_cannot_accept(self, app, student_actor, pending_reservation):
        from models.reservation_state import accept_reservation
        from utils.errors import PermissionDeniedError

        with app.app_context():
            with pytest.raises(PermissionDeniedError):
                accept_reservation(pending_reservation['id'], student_actor)

    def test_accept_twice_is_invalid(self, app, cee_actor, pending_reservation):
        from models.reservation_state import accept_reservation
        from utils.errors import InvalidStateTransitionError

        with app.app_context():
            accept_reservation(pending_reservation['id'], cee_actor)
            with pytest.raises(InvalidStateTransitionError) as exc_info:
                accept_reservation(pending_reservation['id'], cee_actor)
            assert exc_info.value.status_code == 400

    def test_unknown_reservation(self, app, cee_actor):
        from models.reservation_state import accept_reservation
        from utils.errors import NotFoundError

        with app.app_context():
            with pytest.raises(NotFoundError):
                accept_reservation(9999, cee_actor)

    def test_reaccept_clears_rejection_reason(self, app, cee_actor, pending_reservation):
        from models.reservation_state import accept_reservation, reject_reservation

        with app.app_context():
            reject_reservation(pending_reservation['id'], cee_actor, 'Salle en travaux ce jour')
            result = accept_reservation(pending_reservation['id'], cee_actor)

        assert result['reservation']['status'] == 'ACCEPTED'
        assert result['reservation']['rejection_reason'] is None

    def test_reaccept_blocked_when_slot_taken(self, app, cee_actor, student_actor, location,
                                              pending_reservation):
        from models.reservation import create_reservation, get_reservation_by_id
        from models.reservation_state import accept_reservation, reject_reservation
        from utils.errors import ConflictError

        with app.app_context():
            reject_reservation(pending_reservation['id'], cee_actor, 'Créneau prioritaire pris')
            create_reservation(student_actor, 'Remplaçant', location,
                               '2030-03-02T15:00', '2030-03-02T17:00')

            with pytest.raises(ConflictError):
                accept_reservation(pending_reservation['id'], cee_actor)
            assert get_reservation_by_id(pending_reservation['id'])['status'] == 'REJECTED'

    def test_email_failure_keeps_decision(self, app, cee_actor, pending_reservation, monkeypatch):
        import utils.mailer
        from models.reservation import get_reservation_by_id
        from models.reservation_state import accept_reservation

        def failing_deliver(message):
            raise smtplib.SMTPException('Serveur indisponible')

        monkeypatch.setattr(utils.mailer, '_deliver', failing_deliver)

        with app.app_context():
            result = accept_reservation(pending_reservation['id'], cee_actor)
            assert result['notification_sent'] is False
            assert get_reservation_by_id(pending_reservation['id'])['status'] == 'ACCEPTED'

    def test_multiline_stored_title_still_notifies(self, app, cee_actor, pending_reservation, mail_outbox):
        """Rows written before titles were collapsed may hold line breaks."""
        from database import get_db
        from models.reservation_state import accept_reservation

        with app.app_context():
            db = get_db()
            db.execute('UPDATE reservations SET title = ? WHERE id = ?',
                       ('Réunion\nBureau', pending_reservation['id']))
            db.commit()

            result = accept_reservation(pending_reservation['id'], cee_actor)

        assert result['reservation']['status'] == 'ACCEPTED'
        assert result['notification_sent'] is True
        assert mail_outbox[0]['Subject'] == 'Votre réservation « Réunion Bureau » a été acceptée'

    def test_render_failure_keeps_decision(self, app, cee_actor, pending_reservation, monkeypatch):
        import jinja2
        import utils.mailer
        from models.reservation import get_reservation_by_id
        from models.reservation_state import accept_reservation

        def failing_render(template_name, **context):
            raise jinja2.TemplateNotFound(template_name)

        monkeypatch.setattr(utils.mailer, 'render_template', failing_render)

        with app.app_context():
            result = accept_reservation(pending_reservation['id'], cee_actor)
            assert result['notification_sent'] is False
            assert get_reservation_by_id(pending_reservation['id'])['status'] == 'ACCEPTED'


class TestRejectReservation:
    """Tests for reject_reservation."""

    def test_reject_pending(self, app, cee_actor, pending_reservation, mail_outbox):
        from models.reservation_state import reject_reservation

        with app.app_context():
            result = reject_reservation(pending_reservation['id'], cee_actor,
                                        '  Salle réservée pour un examen  ')

        reservation = result['reservation']
        assert reservation['status'] == 'REJECTED'
        assert reservation['rejection_reason'] == 'Salle réservée pour un examen'
        assert reservation['validated_by'] == cee_actor.user_id
        assert result['notification_sent'] is True

        body = mail_outbox[0].get_body(preferencelist=('plain',)).get_content()
        assert 'Salle réservée pour un examen' in body

    def test_reject_accepted(self, app, cee_actor, pending_reservation):
        from models.reservation_state import accept_reservation, reject_reservation

        with app.app_context():
            accept_reservation(pending_reservation['id'], cee_actor)
            result = reject_reservation(pending_reservation['id'], cee_actor, 'Annulation administrative')
        assert result['reservation']['status'] == 'REJECTED'

    def test_reason_too_short(self, app, cee_actor, pending_reservation):
        from models.reservation import get_reservation_by_id
        from models.reservation_state import reject_reservation
        from utils.errors import ValidationError

        with app.app_context():
            with pytest.raises(ValidationError):
                reject_reservation(pending_reservation['id'], cee_actor, 'Non')
            with pytest.raises(ValidationError):
                reject_reservation(pending_reservation['id'], cee_actor, '          ')
            assert get_reservation_by_id(pending_reservation['id'])['status'] == 'PENDING'

    def test_reject_twice_is_invalid(self, app, cee_actor, pending_reservation):
        from models.reservation_state import reject_reservation
        from utils.errors import InvalidStateTransitionError

        with app.app_context():
            reject_reservation(pending_reservation['id'], cee_actor, 'Premier refus motivé')
            with pytest.raises(InvalidStateTransitionError):
                reject_reservation(pending_reservation['id'], cee_actor, 'Second refus motivé')

    def test_other_commission_refused(self, app, other_cee_actor, pending_reservation):
        from models.reservation_state import reject_reservation
        from utils.errors import PermissionDeniedError

        with app.app_context():
            with pytest.raises(PermissionDeniedError):
                reject_reservation(pending_reservation['id'], other_cee_actor, 'Pas ma commission')


class TestDeleteReservation:
    """Tests for delete_reservation."""

    def test_admin_deletes(self, app, admin_actor, pending_reservation, mail_outbox):
        from models.reservation import delete_reservation, get_reservation_by_id

        with app.app_context():
            delete_reservation(admin_actor, pending_reservation['id'])
            assert get_reservation_by_id(pending_reservation['id']) is None
        assert mail_outbox == []

    def test_cee_cannot_delete(self, app, cee_actor, pending_reservation):
        from models.reservation import delete_reservation
        from utils.errors import PermissionDeniedError

        with app.app_context():
            with pytest.raises(PermissionDeniedError):
                delete_reservation(cee_actor, pending_reservation['id'])

    def test_delete_unknown(self, app, admin_actor):
        from models.reservation import delete_reservation
        from utils.errors import NotFoundError

        with app.app_context():
            with pytest.raises(NotFoundError):
                delete_reservation(admin_actor, 9999)

    def test_deleted_slot_is_free(self, app, admin_actor, location, pending_reservation):
        from models.reservation import delete_reservation, has_conflict

        with app.app_context():
            delete_reservation(admin_actor, pending_reservation['id'])
            assert has_conflict(location, '2030-03-02T14:00', '2030-03-02T16:00') is False
