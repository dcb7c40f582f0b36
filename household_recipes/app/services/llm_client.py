import json
import logging
import re
from typing import Any, Dict, Optional

import httpx

from household_recipes.app.core.config import get_settings

logger = logging.getLogger(__name__)


class LLMNotConfiguredError(RuntimeError):
    pass


def _strip_invalid_control_chars(s: str) -> str:
    """Remove ASCII control chars that frequently break json.loads (except \n, \r, \t)."""
    return re.sub(r"[\x00-\x08\x0B\x0C\x0E-\x1F]", "", s)


def parse_llm_json_content(raw: str) -> Dict[str, Any]:
    """Parse model output into a JSON object, tolerating code fences and surrounding prose."""
    cleaned = _strip_invalid_control_chars(raw or "").strip()
    try:
        parsed = json.loads(cleaned)
        if isinstance(parsed, dict):
            return parsed
    except json.JSONDecodeError:
        pass
    if cleaned.startswith("```"):
        cleaned = re.sub(r"^```[a-zA-Z0-9_-]*", "", cleaned).strip()
        if cleaned.endswith("```"):
            cleaned = cleaned[:-3].strip()
    start = cleaned.find("{")
    end = cleaned.rfind("}")
    if start != -1 and end > start:
        try:
            parsed = json.loads(cleaned[start : end + 1])
            if isinstance(parsed, dict):
                return parsed
        except json.JSONDecodeError:
            pass
    raise ValueError("LLM response was not valid JSON")


def extract_message_content(data: Any) -> Optional[str]:
    """Pull assistant text from a chat-completions or responses-style payload."""
    if not isinstance(data, dict):
        return None
    choices = data.get("choices")
    if isinstance(choices, list) and choices:
        message = choices[0].get("message") if isinstance(choices[0], dict) else None
        if isinstance(message, dict) and isinstance(message.get("content"), str):
            return message["content"]
    if isinstance(data.get("output_text"), str):
        return data["output_text"]
    parts = []
    for item in data.get("output") or []:
        for content in (item or {}).get("content") or []:
            if isinstance(content, dict) and content.get("type") == "output_text" and isinstance(content.get("text"), str):
                parts.append(content["text"])
    return "".join(parts) or None


def _headers() -> Dict[str, str]:
    settings = get_settings()
    if not settings.llm_api_key:
        raise LLMNotConfiguredError("LLM_API_KEY is not configured")
    return {
        "Content-Type": "application/json",
        "Authorization": f"Bearer {settings.llm_api_key}",
    }


async def call_json_completion(
    system_prompt: str,
    user_prompt: str,
    model_name: str,
    max_tokens: int = 1500,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> Dict[str, Any]:
    """Run one chat completion in JSON mode and return the parsed object."""
    settings = get_settings()
    headers = _headers()
    payload = {
        "model": model_name,
        "temperature": 0.0,
        "response_format": {"type": "json_object"},
        "messages": [
            {"role": "system", "content": system_prompt},
            {"role": "user", "content": user_prompt},
        ],
        "max_tokens": max_tokens,
        "stream": False,
    }
    timeout = httpx.Timeout(settings.llm_timeout_seconds, connect=10.0)
    async with httpx.AsyncClient(timeout=timeout, transport=transport) as client:
        response = await client.post(
            f"{settings.llm_base_url.rstrip('/')}/v1/chat/completions", json=payload, headers=headers
        )
    response.raise_for_status()
    data = response.json()

    if isinstance(data, dict) and isinstance(data.get("error"), dict):
        error_info = data["error"]
        raise ValueError(f"LLM error ({error_info.get('type', 'unknown_error')}): {error_info.get('message', '')}")

    content = extract_message_content(data)
    if not content:
        raise ValueError("LLM response missing assistant content")
    logger.debug("LLM raw content (truncated): %s", content[:1000])
    return parse_llm_json_content(content)
