from datetime import datetime, timedelta, timezone
import secrets

from sqlalchemy import select, update

from app.config import settings
from app.database import session_scope
from app.models.db_operation import _update_records
from app.models.session import SessionEntry


class SessionStore:
    def create_session(self, user_id: int) -> str:
        now = datetime.now(timezone.utc)
        token = secrets.token_urlsafe(32)
        with session_scope() as session:
            session.add(
                SessionEntry(
                    token=token,
                    user_id=user_id,
                    is_active=True,
                    created_at=now,
                    expires_at=now + timedelta(seconds=settings.session_ttl_seconds),
                )
            )
        return token

    def revoke_session(self, token: str) -> bool:
        with session_scope() as session:
            result = session.execute(
                update(SessionEntry)
                .where(SessionEntry.token == token, SessionEntry.is_active.is_(True))
                .values(is_active=False)
            )
            return result.rowcount > 0

    def deactivate_all(self, user_id: int) -> int:
        return _update_records("session", values={"is_active": False}, user_id=user_id)

    def get_user_id(self, token: str) -> int | None:
        now = datetime.now(timezone.utc)
        with session_scope() as session:
            result = session.execute(
                select(SessionEntry).where(
                    SessionEntry.token == token,
                    SessionEntry.is_active.is_(True),
                    SessionEntry.expires_at > now,
                )
            )
            entry = result.scalar_one_or_none()
            if entry is None:
                return None
            return entry.user_id


session_store = SessionStore()
