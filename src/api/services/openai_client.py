from __future__ import annotations

import json
import logging
from typing import Any, Dict, List, Optional

import httpx
from openai import AsyncOpenAI

logger = logging.getLogger("order-agent")


def _safe_json_loads(s: Any) -> Optional[Dict[str, Any]]:
    if not s:
        return None
    if isinstance(s, dict):
        return s
    try:
        obj = json.loads(s)
    except (TypeError, ValueError):
        return None
    return obj if isinstance(obj, dict) else None


class OpenAIClient:
    def __init__(self, api_key: str, chat_model: str, *, timeout_s: float = 10.0):
        self.api_key = api_key
        self.chat_model = chat_model
        self.sdk = AsyncOpenAI(
            api_key=api_key,
            http_client=httpx.AsyncClient(timeout=float(timeout_s)),
        )

    # -------------------------
    # Chat (JSON object mode)
    # -------------------------
    async def chat_json(self, messages: List[Dict[str, str]], temperature: float = 0.0) -> Optional[Dict[str, Any]]:
        """Returns the parsed JSON object, or None when the model did not return one."""
        resp = await self.sdk.chat.completions.create(
            model=self.chat_model,
            messages=messages,
            temperature=float(temperature),
            response_format={"type": "json_object"},
        )
        content = resp.choices[0].message.content or ""
        data = _safe_json_loads(content)
        if data is None:
            logger.info("openai: non-JSON reply len=%s", len(content))
        return data

    async def close(self) -> None:
        await self.sdk.close()
