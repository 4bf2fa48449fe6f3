"""Generative image provider: send a source image plus a prompt to Gemini and return the generated image."""

import base64
import logging
import time
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Literal

import httpx

if TYPE_CHECKING:
    from greencdn.core.config import Settings

logger = logging.getLogger(__name__)

ProviderErrorKind = Literal["auth_invalid", "quota_exceeded", "other"]

SYSTEM_INSTRUCTION = (
    "You are a product photographer and graphic designer. "
    "Preserve the graphic design and text on the apparel exactly as in the source image."
)

# Markers Gemini puts in a 400 body when the key itself is the problem.
_INVALID_KEY_MARKERS = ("API_KEY_INVALID", "API key not valid")


class GenerativeProviderError(Exception):
    """Raised when generation fails. kind is auth_invalid, quota_exceeded, or other."""

    def __init__(
        self,
        kind: ProviderErrorKind,
        message: str,
        status_code: int | None = None,
        cause: Exception | None = None,
    ) -> None:
        self.kind = kind
        self.message = message
        self.status_code = status_code
        self.cause = cause
        super().__init__(message)


@dataclass(frozen=True)
class GeneratedImage:
    name: str
    mime_type: str
    data: bytes


def _error_for_response(resp: httpx.Response) -> GenerativeProviderError:
    body = resp.text[:500] if resp.text else ""
    if resp.status_code in (401, 403) or (
        resp.status_code == 400 and any(m in body for m in _INVALID_KEY_MARKERS)
    ):
        return GenerativeProviderError(
            "auth_invalid", "Generative provider rejected the API key.", resp.status_code
        )
    if resp.status_code == 429:
        return GenerativeProviderError(
            "quota_exceeded", "Generative provider quota exceeded.", resp.status_code
        )
    return GenerativeProviderError(
        "other", f"Generative provider returned {resp.status_code}: {body or 'Unknown error'}", resp.status_code
    )


def _extract_image(data: dict[str, Any]) -> tuple[str, bytes]:
    """Return (mime_type, bytes) of the first inline image in a generateContent reply."""
    for candidate in data.get("candidates") or []:
        parts = (candidate.get("content") or {}).get("parts") or []
        for part in parts:
            inline = part.get("inlineData") or part.get("inline_data")
            if inline and inline.get("data"):
                mime = inline.get("mimeType") or inline.get("mime_type") or "image/png"
                try:
                    return mime, base64.b64decode(inline["data"])
                except (ValueError, TypeError) as e:
                    raise GenerativeProviderError(
                        "other", "Generative provider returned undecodable image data.", cause=e
                    ) from e
    raise GenerativeProviderError("other", "No image was generated.")


class GeminiImageProvider:
    """Thin async client for the Gemini generateContent endpoint."""

    def __init__(self, settings: "Settings", api_key: str | None = None) -> None:
        key = (api_key or "").strip()
        if not key and settings.GEMINI_API_KEY is not None:
            key = settings.GEMINI_API_KEY.get_secret_value().strip()
        if not key:
            raise GenerativeProviderError("auth_invalid", "Generative provider API key is not set.")
        self._api_key = key
        self._url = f"{settings.GEMINI_BASE_URL}/v1beta/models/{settings.GEMINI_MODEL}:generateContent"
        self._model = settings.GEMINI_MODEL
        self._timeout = httpx.Timeout(settings.GEMINI_REQUEST_TIMEOUT_SEC)

    async def generate(self, image: bytes, mime_type: str, prompt: str) -> tuple[str, bytes]:
        """
        Generate one image from a source image and a prompt; return (mime_type, bytes).

        Raises GenerativeProviderError on auth, quota, transport or response errors.
        """
        payload = {
            "systemInstruction": {"parts": [{"text": SYSTEM_INSTRUCTION}]},
            "contents": [
                {
                    "parts": [
                        {
                            "inlineData": {
                                "mimeType": mime_type,
                                "data": base64.b64encode(image).decode("ascii"),
                            }
                        },
                        {"text": prompt},
                    ]
                }
            ],
        }
        start = time.perf_counter()
        try:
            async with httpx.AsyncClient(timeout=self._timeout) as client:
                resp = await client.post(
                    self._url,
                    json=payload,
                    headers={"x-goog-api-key": self._api_key},
                )
        except httpx.TimeoutException as e:
            raise GenerativeProviderError(
                "other", "Generative provider request timed out.", cause=e
            ) from e
        except httpx.HTTPError as e:
            raise GenerativeProviderError(
                "other", "Generative provider is unreachable.", cause=e
            ) from e
        elapsed = time.perf_counter() - start

        if resp.status_code >= 400:
            err = _error_for_response(resp)
            logger.info(
                "Image generation failed",
                extra={
                    "latency_seconds": elapsed,
                    "model": self._model,
                    "status_code": resp.status_code,
                    "error_kind": err.kind,
                },
            )
            raise err
        try:
            data = resp.json()
        except ValueError as e:
            raise GenerativeProviderError("other", "Generative provider returned invalid JSON.", cause=e) from e
        result = _extract_image(data)
        logger.info(
            "Image generation completed",
            extra={"latency_seconds": elapsed, "model": self._model, "status": "success"},
        )
        return result
