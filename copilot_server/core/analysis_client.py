# copilot_server/core/analysis_client.py
"""
Client for the downstream AI analysis call (Anthropic Messages API).

Responsibilities:
  - Build the image + prompt request.
  - Return the model's text, or raise AnalysisError carrying the upstream
    HTTP status so the route can tell a bad server key (401) from upstream
    rate limiting (429).

The quota layer never sees this module; the route calls it only after the
quota check passed, and records usage only if it returns.
"""
import logging

import httpx

logger = logging.getLogger(__name__)

ANTHROPIC_VERSION = "2023-06-01"


class AnalysisError(Exception):
    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code


class AnthropicAnalysisClient:
    def __init__(
        self,
        api_key: str | None,
        model: str,
        base_url: str = "https://api.anthropic.com",
        max_tokens: int = 4000,
        timeout_seconds: float = 120.0,
    ):
        self.api_key = api_key
        self.model = model
        self.base_url = base_url.rstrip("/")
        self.max_tokens = max_tokens
        self.timeout_seconds = timeout_seconds

    @property
    def configured(self) -> bool:
        return bool(self.api_key)

    def analyze(self, image_base64: str, media_type: str, prompt: str) -> str:
        """
        Send one screenshot + prompt and return the first text block.

        Raises:
            AnalysisError: missing key, transport failure, non-200 reply, or
            a reply without text.
        """
        if not self.api_key:
            raise AnalysisError("Server API key not configured")

        payload = {
            "model": self.model,
            "max_tokens": self.max_tokens,
            "messages": [
                {
                    "role": "user",
                    "content": [
                        {
                            "type": "image",
                            "source": {
                                "type": "base64",
                                "media_type": media_type or "image/png",
                                "data": image_base64,
                            },
                        },
                        {"type": "text", "text": prompt},
                    ],
                }
            ],
        }
        headers = {
            "x-api-key": self.api_key,
            "anthropic-version": ANTHROPIC_VERSION,
            "content-type": "application/json",
        }

        try:
            r = httpx.post(
                f"{self.base_url}/v1/messages",
                json=payload,
                headers=headers,
                timeout=self.timeout_seconds,
            )
        except httpx.RequestError as e:
            raise AnalysisError(f"Request to analysis API failed: {e}") from e

        if r.status_code != 200:
            raise AnalysisError(f"HTTP {r.status_code}: {r.text[:500]}", r.status_code)

        data = r.json()
        # Expected: content[0].text
        for block in data.get("content") or []:
            if block.get("type") == "text" and "text" in block:
                return str(block["text"])
        raise AnalysisError("No text in analysis response")
