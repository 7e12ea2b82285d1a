"""Tests for the local session model."""

from src.session_sharing.core.models import UserSession


class TestUserSession:
    """Test UserSession model."""

    def test_create_user_session(self):
        session = UserSession.create("user-session-456", user_id=7, session_max_age=600)

        assert session.id == "user-session-456"
        assert session.user_id == 7
        assert session.last_accessed_at == session.created_at
        assert session.expires_at == session.created_at + 600
        assert not session.is_expired()

    def test_user_session_expiration(self):
        session = UserSession.create("user-session-456", user_id=7)

        session.expires_at = session.created_at - 1

        assert session.is_expired()

    def test_round_trips_through_json(self):
        session = UserSession.create("user-session-456", user_id=7)
        assert UserSession.model_validate_json(session.model_dump_json()) == session
