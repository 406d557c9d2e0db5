# tajiri/services/llm.py
import logging
from typing import Dict, List, Optional

import httpx

from tajiri.core.config import settings

logger = logging.getLogger(__name__)


class LLMUnavailableError(RuntimeError):
    """Raised when neither the primary nor the fallback model produced an answer."""


async def chat_completion(
    messages: List[Dict[str, str]],
    temperature: float = 0.1,
    max_tokens: int = 1024,
    json_mode: bool = False,
    title: str = "Tajiri Financial Assistant",
    client: Optional[httpx.AsyncClient] = None,
) -> str:
    """
    Send a chat completion request to OpenRouter.

    The primary model is tried first; on any non-200 answer or transport error
    the fallback model is tried once. Returns the assistant message content.
    """
    if not settings.OPENROUTER_API_KEY:
        raise LLMUnavailableError("OpenRouter API key not configured")

    headers = {
        "Authorization": f"Bearer {settings.OPENROUTER_API_KEY}",
        "Content-Type": "application/json",
        "HTTP-Referer": settings.BACKEND_BASE_URL,  # Required for OpenRouter API
        "X-Title": title,
    }

    async def try_generate_response(http: httpx.AsyncClient, model: str) -> dict:
        payload = {
            "messages": messages,
            "model": model,
            "temperature": temperature,
            "max_tokens": max_tokens,
        }
        if json_mode:
            payload["response_format"] = {"type": "json_object"}
        try:
            response = await http.post(settings.OPENROUTER_URL, headers=headers, json=payload)
        except httpx.HTTPError as e:
            return {"success": False, "error": str(e)}
        if response.status_code == 200:
            try:
                content = response.json()["choices"][0]["message"]["content"]
            except (KeyError, IndexError, TypeError, ValueError):
                return {"success": False, "error": "Malformed response from model"}
            if content:
                return {"success": True, "response": content}
            return {"success": False, "error": "Empty response from model"}
        return {"success": False, "error": response.text}

    http = client or httpx.AsyncClient(timeout=settings.LLM_TIMEOUT_SECONDS)
    try:
        result = await try_generate_response(http, settings.PRIMARY_MODEL)
        if not result["success"]:
            logger.warning(f"Primary model failed: {result['error']}. Trying fallback model...")
            result = await try_generate_response(http, settings.FALLBACK_MODEL)
            if not result["success"]:
                logger.error(f"Both models failed. Last error: {result['error']}")
                raise LLMUnavailableError(f"Both models failed. Last error: {result['error']}")
        return result["response"]
    finally:
        if client is None:
            await http.aclose()
