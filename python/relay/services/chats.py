"""Chat store.

Persists chat threads and their append-only message lists.

Append protocol (single transaction):
1. Guarded UPDATE on the chat row: next_seq += 1, updated_at = now,
   WHERE id matches (and owner matches, when an owner is given).
   In PostgreSQL the UPDATE holds the row lock until commit, so concurrent
   appends to one chat serialize and each gets a distinct seq.
2. Read back next_seq; the new message takes next_seq - 1.
3. Insert the message row.

If the guarded UPDATE touches no row the chat does not exist (or is not
owned by the given owner) and nothing is written.
"""

from collections.abc import Sequence
from datetime import UTC, datetime
from uuid import UUID

from sqlalchemy import delete, select, update
from sqlalchemy.orm import Session, sessionmaker

from relay.db.models import Chat, ChatMessage
from relay.db.session import transaction
from relay.logging import get_logger
from relay.schemas.chat import ChatOut, ChatSummaryOut, MessageOut

logger = get_logger(__name__)


def parse_chat_id(raw: str | UUID) -> UUID | None:
    """Parse a client-supplied chat id; None if it is not a valid id."""
    if isinstance(raw, UUID):
        return raw
    try:
        return UUID(raw)
    except (ValueError, TypeError, AttributeError):
        return None


def message_to_out(message: ChatMessage) -> MessageOut:
    return MessageOut(role=message.role, content=message.content, timestamp=message.created_at)


def chat_to_out(chat: Chat) -> ChatOut:
    """Convert Chat ORM model (messages loaded) to ChatOut."""
    return ChatOut(
        id=chat.id,
        title=chat.title,
        owner_id=chat.owner_user_id,
        messages=[message_to_out(m) for m in chat.messages],
        created_at=chat.created_at,
        updated_at=chat.updated_at,
    )


class ChatStore:
    """SQLAlchemy-backed chat store."""

    def __init__(self, session_factory: sessionmaker[Session]):
        self._session_factory = session_factory

    def create(self, owner_id: UUID, title: str, messages: Sequence[MessageOut]) -> ChatOut:
        """Create a chat owned by owner_id with its initial messages."""
        now = datetime.now(UTC)
        chat = Chat(
            owner_user_id=owner_id,
            title=title,
            next_seq=len(messages) + 1,
            created_at=now,
            updated_at=now,
        )
        chat.messages = [
            ChatMessage(
                seq=seq,
                role=m.role,
                content=m.content,
                created_at=m.timestamp,
            )
            for seq, m in enumerate(messages, start=1)
        ]

        with self._session_factory() as db:
            with transaction(db):
                db.add(chat)
            out = chat_to_out(chat)

        logger.info("chat_created", chat_id=str(out.id), message_count=len(out.messages))
        return out

    def append_message(
        self,
        chat_id: UUID,
        message: MessageOut,
        owner_id: UUID | None = None,
    ) -> ChatOut | None:
        """Atomically append one message.

        Args:
            chat_id: Target chat.
            message: Message to append.
            owner_id: When given, the append only happens if the chat is owned
                by this user.

        Returns:
            The chat after the append, or None if no matching chat exists.
        """
        guard = [Chat.id == chat_id]
        if owner_id is not None:
            guard.append(Chat.owner_user_id == owner_id)

        with self._session_factory() as db:
            with transaction(db):
                result = db.execute(
                    update(Chat)
                    .where(*guard)
                    .values(next_seq=Chat.next_seq + 1, updated_at=datetime.now(UTC))
                    .execution_options(synchronize_session=False)
                )
                if result.rowcount == 0:
                    return None

                next_seq = db.scalar(select(Chat.next_seq).where(Chat.id == chat_id))
                db.add(
                    ChatMessage(
                        chat_id=chat_id,
                        seq=next_seq - 1,
                        role=message.role,
                        content=message.content,
                        created_at=message.timestamp,
                    )
                )

            chat = db.get(Chat, chat_id, populate_existing=True)
            out = chat_to_out(chat)

        logger.debug(
            "chat_message_appended", chat_id=str(chat_id), role=message.role, seq=next_seq - 1
        )
        return out

    def find_by_id(self, chat_id: UUID) -> ChatOut | None:
        with self._session_factory() as db:
            chat = db.get(Chat, chat_id)
            if chat is None:
                return None
            return chat_to_out(chat)

    def find_by_owner(self, owner_id: UUID) -> list[ChatSummaryOut]:
        """List a user's chats, newest first, without message bodies."""
        with self._session_factory() as db:
            rows = db.execute(
                select(Chat.id, Chat.title, Chat.created_at, Chat.updated_at)
                .where(Chat.owner_user_id == owner_id)
                .order_by(Chat.created_at.desc(), Chat.id.desc())
            ).all()
        return [ChatSummaryOut.model_validate(row) for row in rows]

    def update_title(self, chat_id: UUID, title: str) -> ChatSummaryOut | None:
        with self._session_factory() as db:
            chat = db.get(Chat, chat_id)
            if chat is None:
                return None
            with transaction(db):
                chat.title = title
                chat.updated_at = datetime.now(UTC)
            return ChatSummaryOut.model_validate(chat)

    def delete(self, chat_id: UUID) -> bool:
        with self._session_factory() as db, transaction(db):
            db.execute(delete(ChatMessage).where(ChatMessage.chat_id == chat_id))
            result = db.execute(delete(Chat).where(Chat.id == chat_id))
        return result.rowcount > 0
