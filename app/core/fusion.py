"""Fusion invoker: validation, encoding, remote call, result interpretation.

Control-flow model:
    1. Gate on `session.can_fuse` (prompt present, every slot filled, idle).
    2. Enter the pending state and start the loading-message rotator.
    3. Encode all populated slots concurrently, in slot order.
    4. Send the ordered images plus prompt to the remote collaborator.
    5. Interpret the first candidate: first inline image part, first text part.
    6. Record the new result as active and at the front of history.

Error handling strategy:
    Any failure in steps 3-5 (read errors, count mismatch, transport errors,
    responses without an image) is logged and surfaced as `session.error`.
    Active result and history are only written on success. The pending state
    and loading message are released on every exit path.

Determinism:
    Payload assembly and interpretation are deterministic for fixed inputs.
    Model output is not.
"""

import asyncio
import inspect
import logging
from typing import Any, Callable, Optional, Protocol, Sequence

from app.core.loading import LoadingMessageRotator, ROTATION_INTERVAL_SECONDS
from app.image.data_url import build_data_url
from app.image.encoder import EncodedImage, encode_files
from app.session.history import FusionResult
from app.session.state import FusionSession


logger = logging.getLogger(__name__)

MISMATCH_MESSAGE = "Mismatch in image processing. Please try again."
NO_IMAGE_MESSAGE = "The AI could not generate an image from your request."
DEFAULT_CAPTION = "Here is your fused image!"
GENERIC_ERROR_MESSAGE = "An error occurred while fusing the images."


class FusionError(RuntimeError):
    """Raised when a fusion attempt cannot produce an image."""


class FusionClient(Protocol):
    """Remote collaborator interface; `generate` may be sync or async."""

    def generate(self, images: Sequence[EncodedImage], prompt: str) -> Any:
        ...


def _default_client() -> FusionClient:
    from app.llm.service import GeminiFusionClient
    return GeminiFusionClient()


def _first_candidate_parts(response: Any) -> list:
    if not isinstance(response, dict):
        return []
    candidates = response.get("candidates") or []
    if not candidates or not isinstance(candidates[0], dict):
        return []
    content = candidates[0].get("content") or {}
    parts = content.get("parts") or []
    return [part for part in parts if isinstance(part, dict)]


def _inline_data(part: dict) -> Optional[dict]:
    inline = part.get("inlineData") or part.get("inline_data")
    if isinstance(inline, dict) and inline.get("data"):
        return inline
    return None


def interpret_response(response: Any, next_id: Callable[[], str]) -> FusionResult:
    """Turn a `generateContent` response into a `FusionResult`.

    Only the first candidate is considered. Raises `FusionError` carrying the
    model's own text (or a fixed fallback) when no image part is present.
    `next_id` is only called once an image part is found.
    """
    parts = _first_candidate_parts(response)
    image_part = next((p for p in parts if _inline_data(p)), None)
    text = next((p["text"] for p in parts if isinstance(p.get("text"), str) and p["text"]), None)

    if image_part is None:
        raise FusionError(text or NO_IMAGE_MESSAGE)

    inline = _inline_data(image_part)
    mime_type = inline.get("mimeType") or inline.get("mime_type") or "image/png"

    return FusionResult(
        id=next_id(),
        image=build_data_url(mime_type, inline["data"]),
        text=text or DEFAULT_CAPTION,
    )


async def _call_client(client: FusionClient, images, prompt: str) -> Any:
    if inspect.iscoroutinefunction(client.generate):
        return await client.generate(images, prompt)
    return await asyncio.to_thread(client.generate, images, prompt)


async def _run_fusion(session: FusionSession, client: FusionClient) -> FusionResult:
    files = session.slots.populated_files()
    image_count = session.image_count
    prompt = session.prompt

    images = await encode_files(files)
    if len(images) != image_count:
        raise FusionError(MISMATCH_MESSAGE)

    response = await _call_client(client, images, prompt)
    return interpret_response(response, session.next_result_id)


async def fuse(
    session: FusionSession,
    client: Optional[FusionClient] = None,
    rotation_interval: float = ROTATION_INTERVAL_SECONDS,
) -> Optional[FusionResult]:
    """Run one fusion attempt against `session`.

    Returns:
        The new `FusionResult`, or `None` when the attempt was not admitted
        (preconditions unmet) or failed (see `session.error`).
    """
    if not session.can_fuse:
        return None

    client = client or _default_client()
    session.begin_fusion()

    def publish(message: str) -> None:
        session.loading_message = message

    try:
        async with LoadingMessageRotator(publish, interval=rotation_interval):
            result = await _run_fusion(session, client)
    except Exception as err:
        logger.exception("Image fusion failed")
        session.fail_fusion(str(err) or GENERIC_ERROR_MESSAGE)
        return None
    finally:
        session.end_fusion()

    session.complete_fusion(result)
    logger.info(
        "Fusion %s completed from %d images (history size %d)",
        result.id, session.image_count, len(session.history),
    )
    return result
