"""
Chat API Router
Single-turn assistant endpoint with optional streamed replies
"""
from fastapi import APIRouter, Depends, Request, status
from fastapi.responses import JSONResponse, StreamingResponse
from pydantic import ValidationError
from typing import Dict, List, Optional
import schemas
from services.gemini_service import GeminiService, get_gemini_service
import logging

logger = logging.getLogger(__name__)

router = APIRouter()

INVALID_MESSAGE = "Please enter a valid message."
INVALID_REQUEST = "Invalid chat request"
NOT_CONFIGURED = "Assistant is not configured"

TONE_INSTRUCTIONS = {
    "concise": "Keep answers short and to the point.",
    "friendly": "Use a warm, encouraging and friendly tone.",
    "formal": "Use a formal, professional tone.",
}


def get_assistant_service() -> Optional[GeminiService]:
    """Return the shared Gemini service, or None when no API key is configured."""
    try:
        return get_gemini_service()
    except ValueError as e:
        logger.error(f"Gemini service unavailable: {e}")
        return None


def build_system_instruction(payload: schemas.ChatRequest) -> str:
    instruction = payload.system_prompt or schemas.DEFAULT_SYSTEM_PROMPT
    if payload.tone:
        instruction = f"{instruction}\n\n{TONE_INSTRUCTIONS[payload.tone]}"
    return instruction


def build_messages(payload: schemas.ChatRequest) -> List[Dict[str, str]]:
    """Prior turns followed by the new user message."""
    history = [{"role": h.role, "content": h.content} for h in payload.history or []]
    return history + [{"role": "user", "content": payload.message.strip()}]


def error_response(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message})


@router.post("")
async def chat(
    request: Request,
    gemini_service: Optional[GeminiService] = Depends(get_assistant_service),
):
    """
    Answer one user message.

    With ``stream`` set the reply is sent as chunked plain text; otherwise the
    response is ``{"reply": ...}``. Failures are reported as ``{"error": ...}``.
    """
    try:
        payload = schemas.ChatRequest.model_validate(await request.json())
    except (ValueError, ValidationError) as e:
        logger.warning(f"Rejected chat request: {e}")
        return error_response(status.HTTP_400_BAD_REQUEST, INVALID_REQUEST)

    if not payload.message.strip():
        return error_response(status.HTTP_400_BAD_REQUEST, INVALID_MESSAGE)

    if gemini_service is None:
        return error_response(status.HTTP_503_SERVICE_UNAVAILABLE, NOT_CONFIGURED)

    system_instruction = build_system_instruction(payload)
    messages = build_messages(payload)

    if payload.stream:
        async def stream_reply():
            try:
                async for chunk in gemini_service.generate_streaming_response(
                    system_instruction, messages, max_output_tokens=payload.max_tokens
                ):
                    yield chunk
            except Exception as e:
                # Headers are already sent; the failure goes into the body
                logger.error(f"Streaming chat reply failed: {e}", exc_info=True)
                yield f"\n⚠️ {e}"

        return StreamingResponse(stream_reply(), media_type="text/plain; charset=utf-8")

    try:
        result = await gemini_service.generate_response(
            system_instruction, messages, max_output_tokens=payload.max_tokens
        )
    except Exception as e:
        logger.error(f"Chat reply failed: {e}", exc_info=True)
        return error_response(status.HTTP_500_INTERNAL_SERVER_ERROR, str(e))

    return schemas.ChatReply(reply=result["content"], model_usage=result.get("usage_metadata"))
