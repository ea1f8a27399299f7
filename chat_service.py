import asyncio
import logging
import random
from typing import Any, Optional

import httpx

logger = logging.getLogger(__name__)

SYSTEM_PROMPT = (
    "You are a compassionate mental health support assistant. Provide empathetic, helpful responses "
    "that encourage positive mental health practices. Keep responses concise and supportive. If someone "
    "expresses serious mental health concerns, gently suggest professional help."
)

DEFAULT_REPLY = "I understand you're sharing something important. How are you feeling about that?"

# Served when the chat service is unavailable
FALLBACK_RESPONSES = [
    "Thank you for sharing that with me. How does writing about this make you feel?",
    "I hear you. It's important to acknowledge your feelings. What would help you feel better right now?",
    "That sounds significant. Remember that it's okay to feel whatever you're feeling. What support do you need?",
    "I appreciate you opening up. Taking time to reflect on your emotions is really valuable. How can I help?",
    "Your feelings are valid. Sometimes just expressing what we're going through can be therapeutic. What's on your mind?",
]

# Returned by the endpoint when anything else in the chat flow breaks
ERROR_REPLY = (
    "I'm here to listen. Sometimes technical issues happen, but your feelings and thoughts are always "
    "important. How are you doing today?"
)

GENERATION_PARAMETERS = {"max_length": 200, "temperature": 0.7, "do_sample": True}


def build_prompt(message: str) -> str:
    return f"{SYSTEM_PROMPT}\n\nUser: {message}\nAssistant:"


def extract_reply(data: Any, prompt: str) -> Optional[str]:
    """Pull the continuation out of an inference API payload, or None."""
    if not isinstance(data, list) or not data or not isinstance(data[0], dict):
        return None
    generated = data[0].get("generated_text")
    if not isinstance(generated, str):
        return None
    return generated.replace(prompt, "").strip() or None


def pick_fallback() -> str:
    return random.choice(FALLBACK_RESPONSES)


class ChatResponder:
    def __init__(
        self,
        api_url: str,
        api_key: Optional[str] = None,
        timeout: float = 10.0,
        client: Optional[httpx.AsyncClient] = None,
    ):
        self.api_url = api_url
        self.api_key = api_key
        self.timeout = timeout
        self._client = client or httpx.AsyncClient(timeout=timeout)

    async def _call(self, prompt: str) -> Any:
        headers = {"Content-Type": "application/json"}
        if self.api_key:
            headers["Authorization"] = f"Bearer {self.api_key}"
        response = await self._client.post(
            self.api_url,
            json={"inputs": prompt, "parameters": GENERATION_PARAMETERS},
            headers=headers,
        )
        response.raise_for_status()
        return response.json()

    async def generate(self, message: str) -> str:
        """Reply to ``message``; degrades to a fallback line instead of raising."""
        prompt = build_prompt(message)
        try:
            data = await asyncio.wait_for(self._call(prompt), timeout=self.timeout)
        except asyncio.TimeoutError:
            logger.warning(f"[Chat] Service did not answer within {self.timeout}s, using fallback")
            return pick_fallback()
        except (httpx.HTTPError, ValueError) as e:
            logger.warning(f"[Chat] Service unavailable, using fallback: {e}")
            return pick_fallback()
        return extract_reply(data, prompt) or DEFAULT_REPLY

    async def aclose(self) -> None:
        await self._client.aclose()
