"""
Gemini client used by the judge to refine the heuristic verdict.
It returns the model's raw text; parsing and fallback are the caller's job.
"""
from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, Callable

from google import genai
from google.genai import types

logger = logging.getLogger(__name__)

LLMCallable = Callable[[str], Awaitable[str]]


class GeminiClient:
    def __init__(self, api_key: str, model: str = "gemini-2.5-flash", timeout_s: float = 30.0):
        self.model = model
        self.timeout_s = timeout_s
        # HttpOptions.timeout is in milliseconds; it bounds the request inside the worker thread.
        self._client = genai.Client(
            api_key=api_key,
            http_options=types.HttpOptions(timeout=int(timeout_s * 1000)),
        )

    def _generate(self, prompt: str) -> str:
        contents = [
            types.Content(
                role="user",
                parts=[types.Part.from_text(text=prompt)],
            )
        ]
        config = types.GenerateContentConfig(
            response_mime_type="application/json",
            temperature=0.2,
            max_output_tokens=1024,
        )
        # Non-streaming so we always get a full JSON document back.
        resp = self._client.models.generate_content(
            model=self.model,
            contents=contents,
            config=config,
        )
        text = (getattr(resp, "text", None) or "").strip()
        if not text:
            raise RuntimeError("Gemini returned an empty response")
        return text

    async def __call__(self, prompt: str) -> str:
        logger.debug("Calling %s (%d prompt chars)", self.model, len(prompt))
        return await asyncio.wait_for(asyncio.to_thread(self._generate, prompt), timeout=self.timeout_s)
