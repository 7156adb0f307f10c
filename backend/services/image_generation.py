"""
Client for the external image-generation service that turns a photo into
line art.

The service is called once per operator request; failures surface to the
caller and are retried manually from the UI, never here.

Responses are parsed into explicit variants instead of probing fields:
- GeneratedImage: a candidate carried inline image data
- TextOnly: the model answered with text parts only
- Blocked: the prompt was rejected (promptFeedback.blockReason)
- NoCandidates: none of the above
"""
from __future__ import annotations

import base64
import binascii
import logging
from dataclasses import dataclass, field
from io import BytesIO
from typing import List, Optional, Union

import requests
from PIL import Image

from domain.errors import TransformNotConfiguredError, TransformResponseError
from services.image_io import encode_png, open_image
from settings import settings

logger = logging.getLogger(__name__)

PROMPT_SUFFIX = "Transform the provided image according to these instructions."
OUTPUT_ASPECT_RATIO = "3:4"
OUTPUT_IMAGE_SIZE = "2K"

# Linear lift that pushes the model's off-white paper to pure white.
WHITEN_GAIN = 1.1
WHITEN_OFFSET = 10


@dataclass(frozen=True)
class GeneratedImage:
    mime_type: str
    data: bytes


@dataclass(frozen=True)
class TextOnly:
    texts: List[str] = field(default_factory=list)


@dataclass(frozen=True)
class Blocked:
    reason: str


@dataclass(frozen=True)
class NoCandidates:
    finish_reason: Optional[str] = None


GenerationResult = Union[GeneratedImage, TextOnly, Blocked, NoCandidates]


def _inline_part(part: dict) -> Optional[dict]:
    # REST answers in camelCase; some proxies re-serialise as snake_case.
    inline = part.get("inlineData")
    if inline is None:
        inline = part.get("inline_data")
    return inline if isinstance(inline, dict) else None


def parse_generation_response(payload: dict) -> GenerationResult:
    """Classify a generateContent response into one of the known variants."""
    if not isinstance(payload, dict):
        return NoCandidates()

    feedback = payload.get("promptFeedback") or {}
    if isinstance(feedback, dict) and feedback.get("blockReason"):
        return Blocked(reason=str(feedback["blockReason"]))

    candidates = payload.get("candidates") or []
    if not isinstance(candidates, list) or not candidates:
        return NoCandidates()

    texts: List[str] = []
    finish_reason = None
    for candidate in candidates:
        if not isinstance(candidate, dict):
            continue
        finish_reason = finish_reason or candidate.get("finishReason")
        content = candidate.get("content") or {}
        parts = content.get("parts") if isinstance(content, dict) else None
        for part in parts or []:
            if not isinstance(part, dict):
                continue
            inline = _inline_part(part)
            if inline and inline.get("data"):
                try:
                    data = base64.b64decode(inline["data"])
                except (binascii.Error, ValueError) as exc:
                    raise TransformResponseError(f"Generated image is not valid base64: {exc}") from exc
                mime = inline.get("mimeType") or inline.get("mime_type") or "image/png"
                return GeneratedImage(mime_type=mime, data=data)
            if isinstance(part.get("text"), str):
                texts.append(part["text"])

    if texts:
        return TextOnly(texts=texts)
    return NoCandidates(finish_reason=finish_reason)


def whiten_background(img: Image.Image) -> Image.Image:
    """Apply v' = min(255, 1.1 v + 10) to the colour channels, alpha untouched."""
    lut = [min(255, int(v * WHITEN_GAIN + WHITEN_OFFSET)) for v in range(256)]
    if img.mode == "RGBA":
        rgb = img.convert("RGB").point(lut * 3)
        rgb.putalpha(img.getchannel("A"))
        return rgb
    return img.convert("RGB").point(lut * 3)


class ImageGenerationClient:
    """Thin REST client for the Gemini generateContent endpoint."""

    def __init__(
        self,
        api_key: Optional[str] = None,
        model: Optional[str] = None,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        session: Optional[requests.Session] = None,
    ):
        self.api_key = api_key if api_key is not None else settings.GEMINI_API_KEY
        self.model = model or settings.GEMINI_MODEL
        self.base_url = (base_url or settings.GEMINI_API_BASE).rstrip("/")
        self.timeout = timeout or settings.HTTP_TIMEOUT
        self.session = session or requests.Session()

    @property
    def endpoint(self) -> str:
        return f"{self.base_url}/models/{self.model}:generateContent"

    def build_request(self, image_bytes: bytes, mime_type: str, prompt: str) -> dict:
        return {
            "contents": [
                {
                    "role": "user",
                    "parts": [
                        {"text": f"{prompt}\n\n{PROMPT_SUFFIX}"},
                        {
                            "inlineData": {
                                "mimeType": mime_type,
                                "data": base64.b64encode(image_bytes).decode("ascii"),
                            }
                        },
                    ],
                }
            ],
            "generationConfig": {
                "responseModalities": ["IMAGE"],
                "imageConfig": {
                    "aspectRatio": OUTPUT_ASPECT_RATIO,
                    "imageSize": OUTPUT_IMAGE_SIZE,
                },
            },
        }

    def generate(self, image_bytes: bytes, mime_type: str, prompt: str) -> GenerationResult:
        if not self.api_key:
            raise TransformNotConfiguredError("GEMINI_API_KEY not configured")
        try:
            resp = self.session.post(
                self.endpoint,
                json=self.build_request(image_bytes, mime_type, prompt),
                headers={"x-goog-api-key": self.api_key},
                timeout=self.timeout,
            )
            resp.raise_for_status()
            payload = resp.json()
        except requests.RequestException as exc:
            logger.error("[transform] request to %s failed: %s", self.model, exc)
            raise TransformResponseError(f"Image generation request failed: {exc}") from exc
        except ValueError as exc:
            raise TransformResponseError("Image generation returned non-JSON body") from exc
        return parse_generation_response(payload)

    def transform(self, image_bytes: bytes, mime_type: str, prompt: str) -> bytes:
        """
        Generate line art and return it as whitened PNG bytes.

        Raises:
            TransformNotConfiguredError: If no API key is configured
            TransformResponseError: On transport errors or when no image came back
        """
        result = self.generate(image_bytes, mime_type, prompt)
        if isinstance(result, GeneratedImage):
            generated = open_image(result.data, "generated image")
            return encode_png(whiten_background(generated))
        if isinstance(result, Blocked):
            message = f"Prompt was blocked by the image service: {result.reason}"
        elif isinstance(result, TextOnly):
            message = "Image service answered with text only: " + " ".join(result.texts)[:200]
        else:
            message = "No image generated from API"
            if result.finish_reason:
                message += f" (finish reason: {result.finish_reason})"
        logger.warning("[transform] %s", message)
        raise TransformResponseError(message)
