"""
Gemini Integration Service
Generates finance assistant replies through the Google Gemini API
"""
import os
from typing import List, Dict, Any, Optional, AsyncGenerator
import google.generativeai as genai
from google.generativeai.types import HarmCategory, HarmBlockThreshold
from dotenv import load_dotenv
import logging

load_dotenv()

logger = logging.getLogger(__name__)

DEFAULT_MODEL = "gemini-2.0-flash"


class GeminiService:
    """Service for generating assistant replies with Google Gemini"""

    def __init__(self):
        api_key = os.getenv("GEMINI_API_KEY")
        if not api_key:
            raise ValueError("GEMINI_API_KEY environment variable is required")

        genai.configure(api_key=api_key)

        self.model_name = os.getenv("GEMINI_MODEL", DEFAULT_MODEL)
        self.temperature = float(os.getenv("GEMINI_TEMPERATURE", "0.7"))

        self.safety_settings = {
            HarmCategory.HARM_CATEGORY_HARASSMENT: HarmBlockThreshold.BLOCK_ONLY_HIGH,
            HarmCategory.HARM_CATEGORY_HATE_SPEECH: HarmBlockThreshold.BLOCK_ONLY_HIGH,
            HarmCategory.HARM_CATEGORY_SEXUALLY_EXPLICIT: HarmBlockThreshold.BLOCK_ONLY_HIGH,
            HarmCategory.HARM_CATEGORY_DANGEROUS_CONTENT: HarmBlockThreshold.BLOCK_ONLY_HIGH,
        }
        logger.info(f"Configured Gemini model: {self.model_name}")

    @staticmethod
    def format_messages_for_gemini(messages: List[Dict[str, str]]) -> List[Dict[str, Any]]:
        """
        Convert chat messages to Gemini contents.

        System messages are dropped (they travel as the system instruction) and
        'assistant' becomes Gemini's 'model' role.
        """
        formatted = []
        for msg in messages:
            role = msg.get("role", "user")
            if role == "system":
                continue
            formatted.append({
                "role": "model" if role == "assistant" else "user",
                "parts": [msg.get("content", "")],
            })
        return formatted

    def _start_chat(self, system_instruction: str, messages: List[Dict[str, str]]):
        formatted = self.format_messages_for_gemini(messages)
        model = genai.GenerativeModel(
            model_name=self.model_name,
            safety_settings=self.safety_settings,
            system_instruction=system_instruction,
        )
        chat = model.start_chat(history=formatted[:-1])
        user_content = formatted[-1]["parts"][0] if formatted else ""
        return chat, user_content

    def _generation_config(self, max_output_tokens: Optional[int]) -> Dict[str, Any]:
        config: Dict[str, Any] = {"temperature": self.temperature}
        if max_output_tokens:
            config["max_output_tokens"] = max_output_tokens
        return config

    async def generate_response(
        self,
        system_instruction: str,
        messages: List[Dict[str, str]],
        max_output_tokens: Optional[int] = None,
    ) -> Dict[str, Any]:
        """
        Generate a complete reply.

        Args:
            system_instruction: System prompt including tone guidance
            messages: Conversation so far, ending with the user's message
            max_output_tokens: Reply length cap

        Returns:
            Dictionary with 'content' and 'usage_metadata'
        """
        try:
            chat, user_content = self._start_chat(system_instruction, messages)
            response = await chat.send_message_async(
                user_content,
                generation_config=self._generation_config(max_output_tokens),
            )

            usage_payload = None
            usage = getattr(response, "usage_metadata", None)
            if usage is not None:
                usage_payload = {
                    "prompt_tokens": getattr(usage, "prompt_token_count", None),
                    "output_tokens": getattr(usage, "candidates_token_count", None),
                    "total_tokens": getattr(usage, "total_token_count", None),
                }

            return {"content": response.text, "usage_metadata": usage_payload}

        except Exception as e:
            logger.error(f"Error generating Gemini response: {e}")
            raise Exception(f"Failed to generate response: {str(e)}")

    async def generate_streaming_response(
        self,
        system_instruction: str,
        messages: List[Dict[str, str]],
        max_output_tokens: Optional[int] = None,
    ) -> AsyncGenerator[str, None]:
        """
        Generate a reply as a stream of text chunks.

        Yields:
            Text chunks as they are generated
        """
        try:
            chat, user_content = self._start_chat(system_instruction, messages)
            response = await chat.send_message_async(
                user_content,
                generation_config=self._generation_config(max_output_tokens),
                stream=True,
            )
            async for chunk in response:
                if chunk.text:
                    yield chunk.text

        except Exception as e:
            logger.error(f"Error in streaming response: {e}")
            raise Exception(f"Failed to stream response: {str(e)}")


# Global instance (singleton pattern)
_gemini_service_instance = None

def get_gemini_service() -> GeminiService:
    """
    Get or create the global GeminiService instance.

    Returns:
        Shared GeminiService instance
    """
    global _gemini_service_instance
    if _gemini_service_instance is None:
        _gemini_service_instance = GeminiService()
    return _gemini_service_instance
