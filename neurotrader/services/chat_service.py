from typing import Dict, List, Optional
from sqlalchemy import literal_column
from sqlalchemy.orm import Session
from sqlalchemy.exc import SQLAlchemyError
from neurotrader.models.chat import ChatSession, ChatMessage
from neurotrader.exceptions import StorageError, ValidationError
from contextlib import contextmanager
from datetime import datetime
import json
import logging
import threading

logger = logging.getLogger(__name__)

USER_ROLE = "user"
ASSISTANT_ROLE = "assistant"

# Role names used by the various chat clients, folded into the two stored roles
_ROLE_ALIASES = {
    "user": USER_ROLE,
    "human": USER_ROLE,
    "assistant": ASSISTANT_ROLE,
    "bot": ASSISTANT_ROLE,
    "agent": ASSISTANT_ROLE,
    "model": ASSISTANT_ROLE,
    "ai": ASSISTANT_ROLE,
}

_locks_guard = threading.Lock()
# session id -> [lock, number of callers holding or waiting for it]
_session_locks: Dict[str, list] = {}


def normalize_role(role: str) -> str:
    normalized = _ROLE_ALIASES.get((role or "").strip().lower())
    if normalized is None:
        raise ValidationError(f"Unknown message role: {role}")
    return normalized


@contextmanager
def _session_lock(session_id: str):
    with _locks_guard:
        entry = _session_locks.get(session_id)
        if entry is None:
            entry = _session_locks[session_id] = [threading.Lock(), 0]
        entry[1] += 1
    try:
        with entry[0]:
            yield
    finally:
        with _locks_guard:
            entry[1] -= 1
            if entry[1] == 0:
                _session_locks.pop(session_id, None)


class ChatService:
    def __init__(self, db: Session):
        self.db = db

    def create_session(self, metadata: Optional[dict] = None) -> ChatSession:
        """Create a new chat session"""
        meta = {"createdAt": datetime.utcnow().isoformat(), "userAgent": "web"}
        if metadata:
            meta.update(metadata)
        try:
            session = ChatSession(metadata_json=json.dumps(meta))
            self.db.add(session)
            self.db.commit()
            self.db.refresh(session)
            logger.debug(f"Created session {session.id}")
            return session
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Error creating session: {str(e)}")
            raise StorageError("Failed to create session") from e

    def get_session(self, session_id: str) -> Optional[ChatSession]:
        """Get a chat session by ID, or None if it does not exist"""
        if not session_id:
            return None
        try:
            return self.db.query(ChatSession).filter(ChatSession.id == session_id).first()
        except SQLAlchemyError as e:
            logger.error(f"Error getting session: {str(e)}")
            raise StorageError("Failed to load session") from e

    def delete_session(self, session_id: str) -> bool:
        """Delete a session and its messages; returns False if there was nothing to delete"""
        try:
            deleted = self.db.query(ChatSession).filter(ChatSession.id == session_id).delete(
                synchronize_session=False
            )
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Error deleting session: {str(e)}")
            raise StorageError("Failed to delete session") from e
        return deleted > 0

    def add_message(self, session_id: str, role: str, content: str) -> ChatMessage:
        """Append a message to a session.

        The session's ``updated_at`` touch and the message insert are committed
        together, so a failure leaves neither behind. Appends to the same
        session are serialised.
        """
        role = normalize_role(role)
        with _session_lock(session_id):
            try:
                now = datetime.utcnow()
                touched = self.db.query(ChatSession).filter(ChatSession.id == session_id).update(
                    {ChatSession.updated_at: now}, synchronize_session=False
                )
                if not touched:
                    raise StorageError(f"Cannot add message to missing session {session_id}")

                message = ChatMessage(
                    session_id=session_id,
                    role=role,
                    content=content,
                    created_at=now,
                )
                self.db.add(message)
                self.db.commit()
                self.db.refresh(message)
                return message
            except SQLAlchemyError as e:
                self.db.rollback()
                logger.error(f"Error adding message: {str(e)}")
                raise StorageError("Failed to save message") from e
            except StorageError:
                self.db.rollback()
                raise

    def get_messages(self, session_id: str, limit: Optional[int] = None) -> List[ChatMessage]:
        """Get the messages of a session, oldest first.

        With ``limit``, only the most recent ``limit`` messages are returned.
        """
        rowid = literal_column("messages.rowid")
        try:
            query = self.db.query(ChatMessage).filter(ChatMessage.session_id == session_id)
            if limit:
                newest = query.order_by(ChatMessage.created_at.desc(), rowid.desc()).limit(limit).all()
                return list(reversed(newest))
            return query.order_by(ChatMessage.created_at.asc(), rowid.asc()).all()
        except SQLAlchemyError as e:
            logger.error(f"Error getting session messages: {str(e)}")
            raise StorageError("Failed to load messages") from e
