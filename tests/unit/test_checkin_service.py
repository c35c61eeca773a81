"""Unit tests for the check-in flow (credential -> eligibility -> ledger)."""
import pytest
from datetime import datetime, timedelta, timezone

from clubcheckin.core.exceptions import (
    AlreadyCheckedIn,
    ExpiredCredential,
    InvalidCredential,
    NotClubMember,
)
from clubcheckin.db.models import CheckIn
from clubcheckin.services.checkin import check_in_with_passcode, check_in_with_qr
from clubcheckin.services.ledger import list_checked_in
from clubcheckin.services.lifecycle import start_session

T = datetime(2025, 11, 1, 18, 0, tzinfo=timezone.utc)


@pytest.fixture
def session(db_session, club):
    return start_session(db_session, club.event.id, club.leader.user_id, now=T)


@pytest.mark.unit
class TestPasscodeCheckin:
    """Test passcode check-ins."""

    def test_success(self, db_session, club, session):
        record, rotated = check_in_with_passcode(
            db_session, club.member, session.passcode, event_id=club.event.id,
            now=T + timedelta(minutes=1),
        )

        assert record.event_id == club.event.id
        assert record.session_id == session.id
        assert record.method == "passcode"
        assert rotated is None
        assert [r.user_id for r in list_checked_in(db_session, club.event.id)] == [club.member.user_id]

    def test_event_resolved_from_passcode(self, db_session, club, session):
        record, _ = check_in_with_passcode(db_session, club.member, session.passcode, now=T)
        assert record.event_id == club.event.id

    def test_repeat_is_already_checked_in(self, db_session, club, session):
        check_in_with_passcode(db_session, club.member, session.passcode, now=T)
        with pytest.raises(AlreadyCheckedIn):
            check_in_with_passcode(db_session, club.member, session.passcode, now=T + timedelta(minutes=1))

    def test_expiry_boundary(self, db_session, club, session):
        """Valid at T+14m59s, expired at T+15m01s."""
        check_in_with_passcode(
            db_session, club.member, session.passcode, now=T + timedelta(minutes=14, seconds=59)
        )
        with pytest.raises(ExpiredCredential):
            check_in_with_passcode(
                db_session, club.second_member, session.passcode,
                now=T + timedelta(minutes=15, seconds=1),
            )

    def test_wrong_event(self, db_session, club, session):
        with pytest.raises(InvalidCredential, match="not valid for this event"):
            check_in_with_passcode(
                db_session, club.member, session.passcode, event_id=club.other_event.id, now=T
            )
        assert db_session.query(CheckIn).count() == 0

    def test_non_member(self, db_session, club, session):
        with pytest.raises(NotClubMember):
            check_in_with_passcode(db_session, club.outsider, session.passcode, now=T)
        with pytest.raises(NotClubMember):
            check_in_with_passcode(db_session, club.pending, session.passcode, now=T)

    def test_ledger_survives_new_session(self, db_session, club, session):
        """The ledger is cumulative per event."""
        check_in_with_passcode(db_session, club.member, session.passcode, now=T)
        new = start_session(db_session, club.event.id, club.leader.user_id, now=T + timedelta(minutes=5))

        with pytest.raises(AlreadyCheckedIn):
            check_in_with_passcode(db_session, club.member, new.passcode, now=T + timedelta(minutes=6))
        assert len(list_checked_in(db_session, club.event.id)) == 1


@pytest.mark.unit
class TestQrCheckin:
    """Test QR check-ins."""

    def test_success(self, db_session, club, session):
        record, rotated = check_in_with_qr(db_session, club.member, session.qr_token, now=T)
        assert record.method == "qr"
        assert rotated is None

    def test_wrong_event(self, db_session, club, session):
        with pytest.raises(InvalidCredential):
            check_in_with_qr(
                db_session, club.member, session.qr_token, event_id=club.other_event.id, now=T
            )

    def test_mixed_methods_single_record(self, db_session, club, session):
        check_in_with_qr(db_session, club.member, session.qr_token, now=T)
        with pytest.raises(AlreadyCheckedIn):
            check_in_with_passcode(db_session, club.member, session.passcode, now=T)


@pytest.mark.unit
class TestRotationOnCheckin:
    """Sessions flagged regenerate_on_checkin rotate after each accepted check-in."""

    def test_rotates(self, db_session, club):
        session = start_session(
            db_session, club.event.id, club.leader.user_id, regenerate_on_checkin=True, now=T
        )
        old_passcode, old_token = session.passcode, session.qr_token

        _, rotated = check_in_with_passcode(db_session, club.member, old_passcode, now=T)

        assert rotated is not None
        assert rotated.id == session.id
        assert rotated.passcode != old_passcode
        assert rotated.qr_token != old_token

        with pytest.raises(InvalidCredential):
            check_in_with_passcode(db_session, club.second_member, old_passcode, now=T)
        with pytest.raises(InvalidCredential):
            check_in_with_qr(db_session, club.second_member, old_token, now=T)

        record, _ = check_in_with_qr(db_session, club.second_member, rotated.qr_token, now=T)
        assert record.user_id == club.second_member.user_id

    def test_rejected_attempt_does_not_rotate(self, db_session, club):
        session = start_session(
            db_session, club.event.id, club.leader.user_id, regenerate_on_checkin=True, now=T
        )
        passcode = session.passcode

        with pytest.raises(NotClubMember):
            check_in_with_passcode(db_session, club.outsider, passcode, now=T)

        db_session.refresh(session)
        assert session.passcode == passcode

    def test_failed_rotation_keeps_checkin(self, db_session, club, monkeypatch):
        """A committed check-in stands even when rotating the credentials fails."""
        session = start_session(
            db_session, club.event.id, club.leader.user_id, regenerate_on_checkin=True, now=T
        )
        passcode = session.passcode

        def exhausted(db, now):
            raise RuntimeError("Could not generate a unique passcode")

        monkeypatch.setattr("clubcheckin.services.lifecycle._unique_passcode", exhausted)

        record, rotated = check_in_with_passcode(db_session, club.member, passcode, now=T)

        assert rotated is None
        assert record.user_id == club.member.user_id
        assert record.method == "passcode"
        assert db_session.query(CheckIn).filter_by(event_id=club.event.id).count() == 1

        # Rotation rolled back, so the old credentials still work
        monkeypatch.undo()
        record, _ = check_in_with_passcode(db_session, club.second_member, passcode, now=T)
        assert record.user_id == club.second_member.user_id
