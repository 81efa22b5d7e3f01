"""
Minimal client for the OpenAI REST API: image generation and a chat ping.

Failures are typed: QuotaExceeded, RateLimited, ImageValidationError (bad
parameters or a prompt rejected by the content filter) and UnknownImageError
for everything else, including network errors. No retries.
"""

from __future__ import annotations

import requests

from db_errors import (
    ImageGenerationError,
    ImageValidationError,
    QuotaExceeded,
    RateLimited,
    UnknownImageError,
)

API_BASE = "https://api.openai.com/v1"
DEFAULT_MODEL = "dall-e-3"
DEFAULT_SIZE = "1024x1024"
DEFAULT_QUALITY = "standard"
CHAT_MODEL = "gpt-3.5-turbo"
TIMEOUT = 120  # image generation can take a while

QUOTA_CODES = frozenset({"insufficient_quota", "billing_hard_limit_reached"})


def classify_error(status: int | None, body: dict | None, target: str,
                   operation: str = "generate image with") -> ImageGenerationError:
    """Map an HTTP status and OpenAI error body to a typed failure."""
    err = (body.get("error") if isinstance(body, dict) else None) or {}
    if not isinstance(err, dict):
        err = {"message": str(err)}
    code = str(err.get("code") or err.get("type") or "")
    message = str(err.get("message") or (f"HTTP {status}" if status else "no response"))
    if code in QUOTA_CODES:
        cls = QuotaExceeded
    elif status == 429:
        cls = RateLimited
    elif status in (400, 422):
        cls = ImageValidationError
    else:
        cls = UnknownImageError
    if not code and status:
        code = str(status)
    return cls(operation, target, code, message)


class ImageApiClient:
    def __init__(self, api_key: str, session: requests.Session | None = None, base_url: str = API_BASE):
        self.base_url = base_url.rstrip("/")
        self.session = session or requests.Session()
        self.session.headers.update({
            "Authorization": f"Bearer {api_key}",
            "Content-Type": "application/json",
        })

    def _post(self, path: str, payload: dict, target: str, operation: str) -> dict:
        try:
            resp = self.session.post(f"{self.base_url}{path}", json=payload, timeout=TIMEOUT)
        except requests.RequestException as e:
            raise UnknownImageError(operation, target, "", str(e)) from e
        try:
            body = resp.json()
        except ValueError:
            body = None
        if resp.status_code >= 400:
            raise classify_error(resp.status_code, body, target, operation)
        if not isinstance(body, dict):
            raise UnknownImageError(operation, target, str(resp.status_code), "response was not JSON")
        return body

    def generate_image(self, prompt: str, model: str = DEFAULT_MODEL, size: str = DEFAULT_SIZE,
                       quality: str | None = DEFAULT_QUALITY) -> str:
        """Generate one image and return its URL."""
        payload = {"model": model, "prompt": prompt, "n": 1, "size": size, "response_format": "url"}
        # dall-e-2 rejects the quality parameter
        if quality and model != "dall-e-2":
            payload["quality"] = quality
        body = self._post("/images/generations", payload, model, "generate image with")
        data = body.get("data") or []
        url = data[0].get("url") if data and isinstance(data[0], dict) else None
        if not url:
            raise UnknownImageError("generate image with", model, "", "response had no image URL")
        return url

    def chat_ping(self, model: str = CHAT_MODEL, text: str = "Say hello") -> str:
        """Tiny chat completion to check that the key works. Returns the reply text."""
        payload = {"model": model, "messages": [{"role": "user", "content": text}], "max_tokens": 10}
        body = self._post("/chat/completions", payload, model, "chat with")
        choices = body.get("choices") or []
        if not choices:
            raise UnknownImageError("chat with", model, "", "response had no choices")
        return ((choices[0].get("message") or {}).get("content") or "").strip()
