"""
Assistant Client
Sends chat turns to the finance API and writes the replies into the chat store
"""
import asyncio
from typing import Dict, List
import httpx
import schemas
from services.analytics import aggregate_by_category, flag_anomalies
from services.chat_session_store import ChatSessionStore
from services.health import build_savings_prompt, compute_health_score
from services.settings_store import AssistantSettingsStore
from services.stream_assembler import AssemblerState, StreamAssembler
import logging

logger = logging.getLogger(__name__)

INVALID_MESSAGE_WARNING = "Please enter a valid message."
CHAT_NOT_FOUND_WARNING = "Chat not found."
PLACEHOLDER_TEXT = "⏳ Assistant is thinking..."
QUICK_CHAT_TITLE = "Quick Chat"
SUGGESTION_UNAVAILABLE = "AI suggestions temporarily unavailable. Please try again later."
NO_SUGGESTION = "No suggestion available."


class AssistantClient:
    """
    Drives one chat turn end to end.

    The user's message and an assistant placeholder are appended first; the
    placeholder is then patched in place as the reply arrives. Upstream and
    transport failures end up as the placeholder's content instead of being raised.
    """

    def __init__(
        self,
        store: ChatSessionStore,
        settings_store: AssistantSettingsStore,
        http_client: httpx.AsyncClient,
        chat_path: str = "/chat",
    ):
        """
        Initialize the assistant client.

        Args:
            store: Chat session store receiving the messages
            settings_store: Source of prompt, tone, streaming and token settings
            http_client: Client bound to the finance API
            chat_path: Path of the chat endpoint
        """
        self.store = store
        self.settings_store = settings_store
        self.http_client = http_client
        self.chat_path = chat_path
        self._sending: set = set()
        self._tasks: Dict[str, asyncio.Task] = {}

    def is_sending(self, chat_id: str) -> bool:
        return chat_id in self._sending

    def _build_payload(self, chat_id: str, text: str, history: List[schemas.Message]) -> Dict:
        settings = self.settings_store.settings
        return {
            "message": text,
            "chatId": chat_id,
            "systemPrompt": settings.system_prompt,
            "tone": settings.tone,
            "stream": settings.stream_enabled,
            "maxTokens": settings.max_tokens,
            "history": [
                {"role": m.role, "content": m.content}
                for m in history if m.role != "system"
            ],
        }

    async def send_message(self, chat_id: str, text: str) -> schemas.ChatSendResult:
        """
        Send a user message and assemble the assistant reply.

        Args:
            chat_id: Target chat
            text: Raw user input; surrounding whitespace is trimmed

        Returns:
            Outcome with the created messages and the final assembler state
        """
        trimmed = (text or "").strip()
        if not trimmed:
            return schemas.ChatSendResult(accepted=False, warning=INVALID_MESSAGE_WARNING)

        chat = self.store.get_chat(chat_id)
        if not chat:
            return schemas.ChatSendResult(accepted=False, warning=CHAT_NOT_FOUND_WARNING)

        payload = self._build_payload(chat_id, trimmed, chat.messages)
        user_message = self.store.append_message(chat_id, "user", trimmed)
        placeholder = self.store.append_message(chat_id, "assistant", PLACEHOLDER_TEXT)

        def _patch(content: str) -> None:
            self.store.patch_message(chat_id, placeholder.id, content=content)

        assembler = StreamAssembler(on_update=_patch)
        self._sending.add(chat_id)
        try:
            assembler.begin()
            if payload["stream"]:
                async with self.http_client.stream("POST", self.chat_path, json=payload) as response:
                    await assembler.consume(response)
            else:
                response = await self.http_client.post(self.chat_path, json=payload)
                await assembler.consume(response)
        except httpx.HTTPError as e:
            assembler.fail_network(e)
        except asyncio.CancelledError:
            # Cancelled before headers arrived
            if assembler.state is not AssemblerState.CANCELLED:
                assembler.cancel()
            logger.info(f"Chat {chat_id} turn cancelled")
            raise
        finally:
            self._sending.discard(chat_id)

        logger.info(f"Chat {chat_id} turn finished: {assembler.state.value}")
        updated = self.store.get_chat(chat_id)
        reply = next((m for m in updated.messages if m.id == placeholder.id), None) if updated else None
        return schemas.ChatSendResult(
            accepted=True,
            state=assembler.state.value,
            user_message=user_message,
            assistant_message=reply,
        )

    def start_send(self, chat_id: str, text: str) -> asyncio.Task:
        """Run send_message as a task so the caller can cancel it mid-stream."""
        task = asyncio.create_task(self.send_message(chat_id, text))
        self._tasks[chat_id] = task

        def _forget(done: asyncio.Task) -> None:
            if self._tasks.get(chat_id) is done:
                del self._tasks[chat_id]

        task.add_done_callback(_forget)
        return task

    def cancel(self, chat_id: str) -> bool:
        """
        Abandon an in-flight send. Content received so far stays on the message.

        Returns:
            True if a running send was cancelled
        """
        task = self._tasks.get(chat_id)
        if not task or task.done():
            return False
        task.cancel()
        return True

    async def quick_send(self, text: str, title: str = QUICK_CHAT_TITLE) -> schemas.ChatSendResult:
        """Send to the active chat, creating one first when none is active."""
        if not (text or "").strip():
            return schemas.ChatSendResult(accepted=False, warning=INVALID_MESSAGE_WARNING)

        chat = self.store.active_chat()
        if not chat:
            chat = self.store.create_chat(title)
        return await self.send_message(chat.id, text)

    async def request_savings_suggestion(
        self,
        transactions: List[schemas.Transaction],
        budgets: List[schemas.Budget],
        goals: List[schemas.FinancialGoal],
    ) -> str:
        """
        Ask the assistant for savings advice based on the current figures.

        Returns:
            The suggestion text, or a fixed fallback when the request fails
        """
        flagged = flag_anomalies(transactions)
        prompt = build_savings_prompt(
            aggregate_by_category(flagged),
            compute_health_score(transactions, budgets, goals),
            [t for t in flagged if t.anomaly],
            transactions,
        )
        try:
            response = await self.http_client.post(self.chat_path, json={"message": prompt})
            response.raise_for_status()
            data = response.json()
        except (httpx.HTTPError, ValueError) as e:
            logger.warning(f"Savings suggestion request failed: {e}")
            return SUGGESTION_UNAVAILABLE

        reply = data.get("reply") if isinstance(data, dict) else None
        return reply if isinstance(reply, str) and reply else NO_SUGGESTION
