"""
Chat Session Store
Handles chat lifecycle, message logs, recency ordering and persistence
"""
from typing import List, Optional
from datetime import date, datetime
import json
import re
from pydantic import TypeAdapter, ValidationError
import schemas
from services.common import generate_id, utc_now
from services.seed_data import seed_chats
from services.session_storage import SessionStorage
from services.settings_store import AssistantSettingsStore
import logging

logger = logging.getLogger(__name__)

CHATS_KEY = "pa_chats_v1"
PATCHABLE_MESSAGE_FIELDS = {"content", "pinned"}

_chat_list = TypeAdapter(List[schemas.Chat])


class ChatSessionStore:
    """
    Owns the collection of chats, most recently active first.

    Every mutation writes the whole collection through to storage so a reload
    restores the exact state. Reads return copies; callers change state only
    through the methods below.
    """

    def __init__(self, storage: SessionStorage, settings_store: AssistantSettingsStore):
        """
        Initialize the chat session store.

        Args:
            storage: Durable key/value storage
            settings_store: Source of the current system prompt for new chats
        """
        self.storage = storage
        self.settings_store = settings_store
        self._chats: List[schemas.Chat] = []
        self.active_chat_id: Optional[str] = None

    # ============ PERSISTENCE ============

    def _read_chats(self) -> List[schemas.Chat]:
        raw = self.storage.get_item(CHATS_KEY)
        if not raw:
            return []
        try:
            return _chat_list.validate_python(json.loads(raw))
        except (json.JSONDecodeError, ValidationError) as e:
            logger.warning(f"Stored chats are unreadable, starting from seed chats: {e}")
            return []

    def _persist(self) -> None:
        payload = _chat_list.dump_python(self._chats, mode="json", by_alias=True, exclude_none=True)
        self.storage.set_item(CHATS_KEY, json.dumps(payload, ensure_ascii=False))

    def load(self) -> List[schemas.Chat]:
        """
        Load chats from storage, seeding two starter chats when nothing usable is stored.

        Returns:
            The loaded chats; the first one becomes active
        """
        self._chats = self._read_chats()
        if not self._chats:
            self._chats = seed_chats(self.settings_store.system_prompt)
            self._persist()
        self.active_chat_id = self._chats[0].id if self._chats else None
        return self.chats

    # ============ READS ============

    def _find_chat(self, chat_id: str) -> Optional[schemas.Chat]:
        return next((c for c in self._chats if c.id == chat_id), None)

    @property
    def chats(self) -> List[schemas.Chat]:
        return [c.model_copy(deep=True) for c in self._chats]

    def get_chat(self, chat_id: str) -> Optional[schemas.Chat]:
        chat = self._find_chat(chat_id)
        return chat.model_copy(deep=True) if chat else None

    def active_chat(self) -> Optional[schemas.Chat]:
        if self.active_chat_id is None:
            return None
        return self.get_chat(self.active_chat_id)

    def search_chats(self, query: str) -> List[schemas.Chat]:
        """Chats whose title or any message contains the query (case-insensitive)."""
        if not query.strip():
            return self.chats
        needle = query.lower()
        return [
            c.model_copy(deep=True) for c in self._chats
            if needle in c.title.lower() or any(needle in m.content.lower() for m in c.messages)
        ]

    # ============ CHAT LIFECYCLE ============

    def create_chat(self, title: Optional[str] = None) -> schemas.Chat:
        """
        Create a chat seeded with the configured system prompt and make it active.

        Args:
            title: Optional chat title; defaults to a timestamped "New Chat"

        Returns:
            The created chat
        """
        now = utc_now()
        chat = schemas.Chat(
            id=generate_id(),
            title=title or f"New Chat {datetime.now().strftime('%d/%m/%Y, %H:%M:%S')}",
            created_at=now,
            messages=[
                schemas.Message(
                    id=generate_id(),
                    role="system",
                    content=self.settings_store.system_prompt,
                    ts=now,
                )
            ],
        )
        self._chats.insert(0, chat)
        self.active_chat_id = chat.id
        self._persist()
        logger.info(f"Created chat {chat.id}")
        return chat.model_copy(deep=True)

    def delete_chat(self, chat_id: str) -> bool:
        """
        Delete a chat and all of its messages.

        If it was the active chat, the most recently used remaining chat becomes
        active (or none). Deleting any other chat leaves the active chat alone.

        Returns:
            True if deleted, False if not found
        """
        chat = self._find_chat(chat_id)
        if not chat:
            return False

        self._chats.remove(chat)
        if self.active_chat_id == chat_id:
            self.active_chat_id = self._chats[0].id if self._chats else None
        self._persist()
        return True

    def rename_chat(self, chat_id: str, title: str) -> bool:
        chat = self._find_chat(chat_id)
        if not chat:
            return False
        chat.title = title
        self._persist()
        return True

    def set_active_chat(self, chat_id: str) -> bool:
        """Mark a chat active and move it to the front of the list."""
        chat = self._find_chat(chat_id)
        if not chat:
            return False
        self.active_chat_id = chat_id
        self._chats.remove(chat)
        self._chats.insert(0, chat)
        self._persist()
        return True

    # ============ MESSAGES ============

    def append_message(self, chat_id: str, role: str, content: str) -> Optional[schemas.Message]:
        """
        Append a message to a chat.

        Args:
            chat_id: Chat ID
            role: 'system', 'user' or 'assistant'
            content: Message content

        Returns:
            The created message, or None if the chat does not exist
        """
        chat = self._find_chat(chat_id)
        if not chat:
            logger.warning(f"Cannot append message, chat {chat_id} not found")
            return None

        message = schemas.Message(id=generate_id(), role=role, content=content, ts=utc_now())
        chat.messages.append(message)
        self._persist()
        return message.model_copy()

    def patch_message(self, chat_id: str, message_id: str, **partial) -> bool:
        """
        Update a message in place.

        Only ``content`` (replaced wholesale, so streaming callers pass the full
        accumulated text) and ``pinned`` can be patched.

        Returns:
            True if the message was found and updated

        Raises:
            ValueError: If a field other than content or pinned is given
        """
        unknown = set(partial) - PATCHABLE_MESSAGE_FIELDS
        if unknown:
            raise ValueError(f"Cannot patch message fields: {', '.join(sorted(unknown))}")

        chat = self._find_chat(chat_id)
        message = next((m for m in chat.messages if m.id == message_id), None) if chat else None
        if not message:
            return False

        for field, value in partial.items():
            setattr(message, field, value)
        self._persist()
        return True

    def delete_message(self, chat_id: str, message_id: str) -> bool:
        chat = self._find_chat(chat_id)
        if not chat:
            return False
        remaining = [m for m in chat.messages if m.id != message_id]
        if len(remaining) == len(chat.messages):
            return False
        chat.messages = remaining
        self._persist()
        return True

    # ============ EXPORT ============

    def export_chat_text(self, chat_id: str, with_timestamps: bool = True) -> Optional[str]:
        """Plain-text transcript: one "[role] ..." block per message, blank-line separated."""
        chat = self._find_chat(chat_id)
        if not chat:
            return None
        blocks = []
        for m in chat.messages:
            if with_timestamps:
                stamp = m.ts.astimezone().strftime("%d/%m/%Y, %H:%M:%S")
                blocks.append(f"[{m.role}] {stamp}\n{m.content}")
            else:
                blocks.append(f"[{m.role}] {m.content}")
        return "\n\n".join(blocks)

    def export_filename(self, chat_id: str, today: Optional[date] = None) -> Optional[str]:
        chat = self._find_chat(chat_id)
        if not chat:
            return None
        slug = re.sub(r"\s+", "-", chat.title).lower()
        return f"{slug}-{(today or date.today()).isoformat()}.txt"
