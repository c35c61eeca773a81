"""Unit tests for the session store and session lifecycle."""
import re
import pytest
from datetime import datetime, time, timedelta, timezone

from clubcheckin.core.exceptions import InvalidSessionWindow
from clubcheckin.core.utils import to_utc
from clubcheckin.db.models import CheckInSession
from clubcheckin.services import lifecycle
from clubcheckin.services.lifecycle import end_session, rotate_credentials, start_session
from clubcheckin.services.session_store import get_active_session, is_live


@pytest.mark.unit
class TestStartSession:
    """Test opening check-in sessions."""

    def test_defaults(self, db_session, club):
        now = datetime.now(timezone.utc)
        session = start_session(db_session, club.event.id, club.leader.user_id, now=now)

        assert re.fullmatch(r"\d{6}", session.passcode)
        assert session.qr_token.startswith(f"ci1.{club.event.id}.")
        assert session.is_active is True
        assert session.regenerate_on_checkin is False
        assert session.created_by == club.leader.user_id
        assert to_utc(session.expires_at) == now + timedelta(minutes=15)

    def test_replaces_previous_session(self, db_session, club):
        """Starting again leaves exactly one active session for the event."""
        first = start_session(db_session, club.event.id, club.leader.user_id)
        second = start_session(db_session, club.event.id, club.leader.user_id)

        db_session.refresh(first)
        assert first.is_active is False
        assert get_active_session(db_session, club.event.id).id == second.id

        active = db_session.query(CheckInSession).filter(
            CheckInSession.event_id == club.event.id,
            CheckInSession.is_active.is_(True)
        ).count()
        assert active == 1

    def test_sessions_of_other_events_untouched(self, db_session, club):
        mine = start_session(db_session, club.event.id, club.leader.user_id)
        start_session(db_session, club.other_event.id, club.other_leader.user_id)

        assert get_active_session(db_session, club.event.id).id == mine.id

    def test_overnight_window(self, db_session, club):
        now = datetime(2025, 11, 1, 23, 45, tzinfo=timezone.utc)
        session = start_session(
            db_session, club.event.id, club.leader.user_id,
            start_time=time(23, 50), expire_time=time(0, 10), now=now,
        )
        assert to_utc(session.expires_at) == datetime(2025, 11, 2, 0, 10, tzinfo=timezone.utc)

    def test_window_already_closed(self, db_session, club):
        """A start time long past with the default lifetime has already expired."""
        now = datetime(2025, 11, 1, 12, 0, tzinfo=timezone.utc)
        with pytest.raises(InvalidSessionWindow):
            start_session(
                db_session, club.event.id, club.leader.user_id,
                start_time=time(8, 0), now=now,
            )
        assert get_active_session(db_session, club.event.id, now) is None

    def test_regenerate_flag_persisted(self, db_session, club):
        session = start_session(
            db_session, club.event.id, club.leader.user_id, regenerate_on_checkin=True
        )
        assert session.regenerate_on_checkin is True

    def test_passcode_collision_is_redrawn(self, db_session, club, monkeypatch):
        """Two live sessions never share a passcode."""
        codes = iter(["111111", "111111", "222222"])
        monkeypatch.setattr(lifecycle, "generate_passcode", lambda: next(codes))

        first = start_session(db_session, club.event.id, club.leader.user_id)
        second = start_session(db_session, club.other_event.id, club.other_leader.user_id)

        assert first.passcode == "111111"
        assert second.passcode == "222222"

    def test_passcode_of_ended_session_may_be_reused(self, db_session, club, monkeypatch):
        monkeypatch.setattr(lifecycle, "generate_passcode", lambda: "333333")

        start_session(db_session, club.event.id, club.leader.user_id)
        end_session(db_session, club.event.id)
        second = start_session(db_session, club.other_event.id, club.other_leader.user_id)

        assert second.passcode == "333333"

    def test_gives_up_when_no_free_passcode(self, db_session, club, monkeypatch):
        monkeypatch.setattr(lifecycle, "generate_passcode", lambda: "444444")
        start_session(db_session, club.event.id, club.leader.user_id)

        with pytest.raises(RuntimeError, match="unique passcode"):
            start_session(db_session, club.other_event.id, club.other_leader.user_id)


@pytest.mark.unit
class TestEndSession:
    """Test ending sessions."""

    def test_end_active(self, db_session, club):
        session = start_session(db_session, club.event.id, club.leader.user_id)

        assert end_session(db_session, club.event.id) is True
        db_session.refresh(session)
        assert session.is_active is False
        assert get_active_session(db_session, club.event.id) is None

    def test_end_is_idempotent(self, db_session, club):
        start_session(db_session, club.event.id, club.leader.user_id)

        assert end_session(db_session, club.event.id) is True
        assert end_session(db_session, club.event.id) is False
        assert get_active_session(db_session, club.event.id) is None

    def test_end_without_session(self, db_session, club):
        assert end_session(db_session, club.event.id) is False


@pytest.mark.unit
class TestExpiry:
    """Expiry is evaluated lazily on read."""

    def test_is_live_boundary(self, db_session, club):
        created = datetime(2025, 11, 1, 12, 0, tzinfo=timezone.utc)
        session = start_session(db_session, club.event.id, club.leader.user_id, now=created)
        expires_at = created + timedelta(minutes=15)

        assert is_live(session, expires_at - timedelta(seconds=1))
        assert not is_live(session, expires_at)
        assert not is_live(session, expires_at + timedelta(seconds=1))

    def test_expired_session_reported_absent(self, db_session, club):
        created = datetime(2025, 11, 1, 12, 0, tzinfo=timezone.utc)
        session = start_session(db_session, club.event.id, club.leader.user_id, now=created)
        later = created + timedelta(minutes=16)

        assert get_active_session(db_session, club.event.id, later) is None
        # Nothing sweeps the row; only reads treat it as gone
        db_session.refresh(session)
        assert session.is_active is True


@pytest.mark.unit
class TestRotateCredentials:
    """Test credential rotation."""

    def test_new_credentials(self, db_session, club):
        session = start_session(db_session, club.event.id, club.leader.user_id)
        old_token = session.qr_token

        rotated = rotate_credentials(db_session, session)

        assert rotated.id == session.id
        assert rotated.qr_token != old_token
        assert re.fullmatch(r"\d{6}", rotated.passcode)
        assert to_utc(rotated.expires_at) == to_utc(session.expires_at)
