"""
Streaming Response Assembler
Builds one assistant message from a chunked chat response
"""
import asyncio
import codecs
import json
from enum import Enum
from typing import Any, Callable, Optional
import httpx
import logging

logger = logging.getLogger(__name__)

WARNING_MARKER = "⚠️"
NETWORK_ERROR_PREFIX = f"{WARNING_MARKER} Network error:"
CANCELLED_TEXT = f"{WARNING_MARKER} Response cancelled"


class AssemblerState(str, Enum):
    IDLE = "idle"
    AWAITING_HEADERS = "awaiting_headers"
    STREAMING = "streaming"
    COMPLETE = "complete"
    FAILED = "failed"
    CANCELLED = "cancelled"


def extract_stream_reply(record: Any) -> Optional[str]:
    """Reply text carried by one NDJSON record: reply, content, message.content, then response."""
    if not isinstance(record, dict):
        return None
    message = record.get("message")
    candidates = (
        record.get("reply"),
        record.get("content"),
        message.get("content") if isinstance(message, dict) else None,
        record.get("response"),
    )
    candidate = next((c for c in candidates if c is not None), None)
    return candidate if isinstance(candidate, str) else None


def extract_buffered_reply(body: Any) -> str:
    """Reply text of a complete JSON response: reply, response, message.content, else the body itself."""
    if isinstance(body, dict):
        message = body.get("message")
        candidates = (
            body.get("reply"),
            body.get("response"),
            message.get("content") if isinstance(message, dict) else None,
        )
        candidate = next((c for c in candidates if c is not None), None)
        if candidate is not None:
            return str(candidate)
    return body if isinstance(body, str) else json.dumps(body)


def extract_error_text(response: httpx.Response) -> str:
    """
    Best-effort error text of a failed response.

    Tries the JSON ``error`` field, then ``message``, then the JSON body,
    then the raw text, and finally a generic ``Error <status>``.
    """
    try:
        body = response.json()
    except ValueError:
        text = response.text.strip()
        return text or f"Error {response.status_code}"

    if isinstance(body, dict):
        for key in ("error", "message"):
            if body.get(key) is not None:
                return str(body[key])
    return json.dumps(body)


class StreamAssembler:
    """
    Incrementally materializes one assistant message.

    Raw decoded text is always forwarded as it arrives. Complete lines are
    additionally parsed as JSON records; any reply text found there is appended
    too. Parsing is best effort and never interrupts the raw text path.
    """

    def __init__(
        self,
        on_update: Optional[Callable[[str], None]] = None,
        on_complete: Optional[Callable[[str], None]] = None,
    ):
        """
        Initialize the assembler.

        Args:
            on_update: Called with the full accumulated content after every change
            on_complete: Called once with the final content when the stream ends cleanly
        """
        self.on_update = on_update
        self.on_complete = on_complete
        self.state = AssemblerState.IDLE
        self.content = ""
        self._decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")
        self._line_buffer = ""

    # ============ STATE TRANSITIONS ============

    def begin(self) -> None:
        """Mark the transport request as issued."""
        if self.state is not AssemblerState.IDLE:
            raise RuntimeError(f"Assembler already started (state: {self.state.value})")
        self.state = AssemblerState.AWAITING_HEADERS

    def _replace(self, content: str) -> None:
        self.content = content
        if self.on_update:
            self.on_update(self.content)

    def _append(self, text: str) -> None:
        self._replace(self.content + text)

    def _complete(self) -> None:
        self.state = AssemblerState.COMPLETE
        if self.on_complete:
            self.on_complete(self.content)

    def fail(self, error_text: str) -> None:
        """Finish with an application-level failure shown as the message content."""
        self.state = AssemblerState.FAILED
        self._replace(f"{WARNING_MARKER} {error_text}")

    def fail_network(self, error: BaseException) -> None:
        """Finish with a transport failure, marked distinctly from upstream errors."""
        logger.warning(f"Chat transport failed: {error!r}")
        self.state = AssemblerState.FAILED
        self._replace(f"{NETWORK_ERROR_PREFIX} {str(error) or error.__class__.__name__}")

    def cancel(self) -> None:
        """Stop assembling. Received content is kept; an empty reply gets a cancellation note."""
        self.state = AssemblerState.CANCELLED
        if not self.content:
            self._replace(CANCELLED_TEXT)

    # ============ CHUNK HANDLING ============

    def feed(self, data: bytes) -> None:
        """Decode one transport chunk and forward it, then try the NDJSON path."""
        text = self._decoder.decode(data)
        if not text:
            return
        self._append(text)

        self._line_buffer += text
        lines = self._line_buffer.split("\n")
        self._line_buffer = lines.pop()
        for line in lines:
            if not line.strip():
                continue
            try:
                record = json.loads(line)
            except json.JSONDecodeError:
                continue
            reply = extract_stream_reply(record)
            if reply is not None:
                self._append(reply)

    def _flush_decoder(self) -> None:
        tail = self._decoder.decode(b"", final=True)
        if tail:
            self._append(tail)

    # ============ TRANSPORT ============

    async def consume(self, response: httpx.Response) -> str:
        """
        Assemble the message from a response whose headers have arrived.

        Upstream and transport failures end in the FAILED state with the error
        text as content; they are not raised. Cancelling the awaiting task
        closes the response and re-raises ``CancelledError``.

        Returns:
            The final message content
        """
        if self.state is AssemblerState.IDLE:
            self.begin()

        try:
            if not response.is_success:
                await response.aread()
                self.fail(extract_error_text(response))
                return self.content

            if response.is_stream_consumed:
                # Body was buffered by the transport: emit it as the only chunk
                self._replace(self._buffered_text(response))
                self._complete()
                return self.content

            self.state = AssemblerState.STREAMING
            async for data in response.aiter_bytes():
                self.feed(data)
            self._flush_decoder()
            self._complete()
        except asyncio.CancelledError:
            self.cancel()
            await response.aclose()
            logger.info("Streaming response cancelled")
            raise
        except httpx.HTTPError as e:
            self.fail_network(e)
        return self.content

    @staticmethod
    def _buffered_text(response: httpx.Response) -> str:
        if "application/json" in response.headers.get("content-type", ""):
            try:
                return extract_buffered_reply(response.json())
            except ValueError:
                pass
        return response.text
