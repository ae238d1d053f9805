"""
Tests for reservation creation and overlap detection.
"""

import pytest
from datetime import datetime


class TestIntervalsOverlap:
    """Tests for the half-open overlap predicate."""

    def test_overlapping_intervals(self):
        from models.reservation import intervals_overlap

        assert intervals_overlap(10, 12, 11, 13)
        assert intervals_overlap(10, 12, 9, 11)

    def test_containment_overlaps(self):
        from models.reservation import intervals_overlap

        assert intervals_overlap(10, 14, 11, 12)
        assert intervals_overlap(11, 12, 10, 14)

    def test_touching_intervals_do_not_overlap(self):
        """[10, 12) and [12, 14) share no time."""
        from models.reservation import intervals_overlap

        assert not intervals_overlap(10, 12, 12, 14)
        assert not intervals_overlap(12, 14, 10, 12)

    def test_works_with_datetimes(self):
        from models.reservation import intervals_overlap

        a = datetime(2030, 3, 2, 14)
        b = datetime(2030, 3, 2, 16)
        c = datetime(2030, 3, 2, 15)
        d = datetime(2030, 3, 2, 17)
        assert intervals_overlap(a, b, c, d)


class TestHasConflict:
    """Tests for has_conflict and get_conflicting_reservations."""

    def test_no_conflict_on_empty_location(self, app, location):
        from models.reservation import has_conflict

        with app.app_context():
            assert has_conflict(location, '2030-03-02T14:00', '2030-03-02T16:00') is False

    def test_overlap_detected(self, app, location, pending_reservation):
        from models.reservation import has_conflict, get_conflicting_reservations

        with app.app_context():
            assert has_conflict(location, '2030-03-02T15:00', '2030-03-02T17:00') is True

            conflicts = get_conflicting_reservations(location, '2030-03-02T15:00', '2030-03-02T17:00')
            assert [c['id'] for c in conflicts] == [pending_reservation['id']]

    def test_adjacent_slots_are_free(self, app, location, pending_reservation):
        from models.reservation import has_conflict

        with app.app_context():
            assert has_conflict(location, '2030-03-02T16:00', '2030-03-02T18:00') is False
            assert has_conflict(location, '2030-03-02T12:00', '2030-03-02T14:00') is False

    def test_excluded_reservation_ignored(self, app, location, pending_reservation):
        from models.reservation import has_conflict

        with app.app_context():
            assert has_conflict(location, '2030-03-02T14:00', '2030-03-02T16:00',
                                exclude_reservation_id=pending_reservation['id']) is False

    def test_other_location_not_blocked(self, app, other_commission, pending_reservation):
        from models.reservation import has_conflict

        with app.app_context():
            assert has_conflict(other_commission['location_id'],
                                '2030-03-02T14:00', '2030-03-02T16:00') is False

    def test_rejected_reservation_does_not_block(self, app, location, pending_reservation, cee_actor):
        from models.reservation import has_conflict
        from models.reservation_state import reject_reservation

        with app.app_context():
            reject_reservation(pending_reservation['id'], cee_actor, 'Salle indisponible ce jour-là')
            assert has_conflict(location, '2030-03-02T14:00', '2030-03-02T16:00') is False

    def test_invalid_interval_raises(self, app, location):
        from models.reservation import has_conflict
        from utils.errors import ValidationError

        with app.app_context():
            with pytest.raises(ValidationError):
                has_conflict(location, '2030-03-02T16:00', '2030-03-02T14:00')

    def test_unknown_location_raises(self, app):
        from models.reservation import has_conflict
        from utils.errors import NotFoundError

        with app.app_context():
            with pytest.raises(NotFoundError):
                has_conflict(9999, '2030-03-02T14:00', '2030-03-02T16:00')


class TestCreateReservation:
    """Tests for create_reservation."""

    def test_student_creates_pending(self, app, student_actor, location):
        from models.reservation import create_reservation

        with app.app_context():
            reservation = create_reservation(student_actor, 'Match amical', location,
                                             '2030-03-05T10:00', '2030-03-05T12:00')

            assert reservation['status'] == 'PENDING'
            assert reservation['validated_by'] is None
            assert reservation['user_id'] == student_actor.user_id
            assert reservation['start_at'] == '2030-03-05 10:00:00'
            assert reservation['end_at'] == '2030-03-05 12:00:00'
            assert reservation['location_name'] == 'Gymnase'

    def test_validator_creates_accepted(self, app, cee_actor, location):
        from models.reservation import create_reservation

        with app.app_context():
            reservation = create_reservation(cee_actor, 'Réunion CEE', location,
                                             '2030-03-05T10:00', '2030-03-05T11:00')

            assert reservation['status'] == 'ACCEPTED'
            assert reservation['validated_by'] == cee_actor.user_id
            assert reservation['validator_name'] == 'Claire Martin'

    def test_overlap_raises_conflict(self, app, student_actor, location, pending_reservation):
        from models.reservation import create_reservation
        from utils.errors import ConflictError

        with app.app_context():
            with pytest.raises(ConflictError) as exc_info:
                create_reservation(student_actor, 'Doublon', location,
                                   '2030-03-02T15:00', '2030-03-02T17:00')
            assert exc_info.value.status_code == 409

    def test_back_to_back_allowed(self, app, student_actor, location, pending_reservation):
        from models.reservation import create_reservation

        with app.app_context():
            reservation = create_reservation(student_actor, 'Suite', location,
                                             '2030-03-02T16:00', '2030-03-02T18:00')
            assert reservation['status'] == 'PENDING'

    def test_slot_reusable_after_rejection(self, app, student_actor, cee_actor, location,
                                           pending_reservation):
        from models.reservation import create_reservation
        from models.reservation_state import reject_reservation

        with app.app_context():
            reject_reservation(pending_reservation['id'], cee_actor, 'Créneau réservé aux examens')
            reservation = create_reservation(student_actor, 'Nouvel essai', location,
                                             '2030-03-02T14:00', '2030-03-02T16:00')
            assert reservation['id'] != pending_reservation['id']

    def test_duration_cap_enforced(self, app, student_actor, location):
        """The location fixture caps bookings at 4 hours."""
        from models.reservation import create_reservation
        from utils.errors import PolicyError

        with app.app_context():
            with pytest.raises(PolicyError) as exc_info:
                create_reservation(student_actor, 'Tournoi', location,
                                   '2030-03-05T08:00', '2030-03-05T13:00')
            assert '4' in str(exc_info.value)
            assert '5' in str(exc_info.value)
            assert exc_info.value.status_code == 422

    def test_duration_equal_to_cap_allowed(self, app, student_actor, location):
        from models.reservation import create_reservation

        with app.app_context():
            reservation = create_reservation(student_actor, 'Tournoi', location,
                                             '2030-03-05T08:00', '2030-03-05T12:00')
            assert reservation['status'] == 'PENDING'

    def test_duration_checked_before_conflict(self, app, student_actor, location, pending_reservation):
        """Too long and overlapping reports the duration first."""
        from models.reservation import create_reservation
        from utils.errors import PolicyError

        with app.app_context():
            with pytest.raises(PolicyError):
                create_reservation(student_actor, 'Trop long', location,
                                   '2030-03-02T10:00', '2030-03-02T18:00')

    def test_duration_counts_real_hours_on_spring_forward(self, app, student_actor, location):
        """Paris skips 02:00-03:00 on 2030-03-31: five wall-clock hours last four."""
        from models.reservation import create_reservation

        with app.app_context():
            reservation = create_reservation(student_actor, 'Nuit du sport', location,
                                             '2030-03-31T00:30', '2030-03-31T05:30')
            assert reservation['status'] == 'PENDING'

    def test_duration_counts_real_hours_on_fall_back(self, app, student_actor, location):
        """Paris repeats 02:00-03:00 on 2030-10-27: four wall-clock hours last five."""
        from models.reservation import create_reservation
        from utils.errors import PolicyError

        with app.app_context():
            with pytest.raises(PolicyError) as exc_info:
                create_reservation(student_actor, 'Nuit du sport', location,
                                   '2030-10-27T00:30', '2030-10-27T04:30')
            assert '5' in str(exc_info.value)

    def test_title_collapsed_to_one_line(self, app, student_actor, location):
        from models.reservation import create_reservation

        with app.app_context():
            reservation = create_reservation(student_actor, ' Réunion\r\nBureau\t élargi ', location,
                                             '2030-03-05T10:00', '2030-03-05T11:00')
            assert reservation['title'] == 'Réunion Bureau élargi'

    def test_uncapped_location_accepts_long_booking(self, app, student_actor, other_commission):
        from models.reservation import create_reservation

        with app.app_context():
            reservation = create_reservation(student_actor, 'Festival', other_commission['location_id'],
                                             '2030-03-05T08:00', '2030-03-05T22:00')
            assert reservation['status'] == 'PENDING'

    def test_end_before_start_rejected(self, app, student_actor, location):
        from models.reservation import create_reservation
        from utils.errors import ValidationError

        with app.app_context():
            with pytest.raises(ValidationError):
                create_reservation(student_actor, 'Inversé', location,
                                   '2030-03-05T12:00', '2030-03-05T10:00')
            with pytest.raises(ValidationError):
                create_reservation(student_actor, 'Vide', location,
                                   '2030-03-05T12:00', '2030-03-05T12:00')

    def test_unparseable_datetime_rejected(self, app, student_actor, location):
        from models.reservation import create_reservation
        from utils.errors import ValidationError

        with app.app_context():
            with pytest.raises(ValidationError):
                create_reservation(student_actor, 'Date ?', location, 'demain', '2030-03-05T10:00')

    def test_title_required(self, app, student_actor, location):
        from models.reservation import create_reservation
        from utils.errors import ValidationError

        with app.app_context():
            with pytest.raises(ValidationError):
                create_reservation(student_actor, '   ', location,
                                   '2030-03-05T10:00', '2030-03-05T11:00')

    def test_unknown_location(self, app, student_actor):
        from models.reservation import create_reservation
        from utils.errors import NotFoundError

        with app.app_context():
            with pytest.raises(NotFoundError):
                create_reservation(student_actor, 'Nulle part', 9999,
                                   '2030-03-05T10:00', '2030-03-05T11:00')

    def test_cee_cannot_book_other_commission(self, app, cee_actor, other_commission):
        from models.reservation import create_reservation
        from utils.errors import PolicyError

        with app.app_context():
            with pytest.raises(PolicyError):
                create_reservation(cee_actor, 'Hors périmètre', other_commission['location_id'],
                                   '2030-03-05T10:00', '2030-03-05T11:00')

    def test_requires_actor(self, app, location):
        from models.reservation import create_reservation
        from utils.errors import AuthError

        with app.app_context():
            with pytest.raises(AuthError):
                create_reservation(None, 'Anonyme', location,
                                   '2030-03-05T10:00', '2030-03-05T11:00')


class TestOverlapTrigger:
    """The database rejects overlapping active rows even without the model check."""

    def test_direct_insert_blocked(self, app, student_actor, location, pending_reservation):
        import sqlite3
        from database import get_db
        from models.reservation import translate_integrity_error
        from utils.errors import ConflictError

        with app.app_context():
            db = get_db()
            with pytest.raises(sqlite3.IntegrityError) as exc_info:
                db.execute('''
                    INSERT INTO reservations (title, location_id, user_id, start_at, end_at,
                                              status, created_at, updated_at)
                    VALUES ('Direct', ?, ?, '2030-03-02 15:00:00', '2030-03-02 17:00:00',
                            'PENDING', '2030-01-01 00:00:00', '2030-01-01 00:00:00')
                ''', (location, student_actor.user_id))
            db.rollback()

            assert isinstance(translate_integrity_error(exc_info.value), ConflictError)

    def test_rejected_rows_may_overlap(self, app, student_actor, cee_actor, location, pending_reservation):
        from database import get_db

        with app.app_context():
            db = get_db()
            db.execute('''
                INSERT INTO reservations (title, location_id, user_id, start_at, end_at, status,
                                          validated_by, rejection_reason, created_at, updated_at)
                VALUES ('Refusée', ?, ?, '2030-03-02 15:00:00', '2030-03-02 17:00:00', 'REJECTED',
                        ?, 'Motif suffisamment long', '2030-01-01 00:00:00', '2030-01-01 00:00:00')
            ''', (location, student_actor.user_id, cee_actor.user_id))
            db.commit()

            count = db.execute('SELECT COUNT(*) FROM reservations').fetchone()[0]
            assert count == 2
