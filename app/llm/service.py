"""Images-plus-prompt to payload adapter for model invocation.

Architectural role:
    Provides the canonical fusion entrypoint used by the core invoker. This module
    bridges encoded slot images to transport (`app.llm.client`).

Model call flow:
    encoded images + prompt -> payload construction -> `client.send_generate_request(...)`.

Determinism:
    Payload construction is deterministic for fixed inputs and configuration.
    Generated output remains non-deterministic because inference runs remotely.
"""

from app.llm.provider_config import MODEL_NAME, RESPONSE_MODALITIES
from app.llm.client import send_generate_request


def build_fusion_payload(images, prompt: str) -> dict:
    """Assemble the `generateContent` body.

    Image parts keep the order of `images` and are followed by a single text
    part carrying the prompt as typed (untrimmed).
    """
    parts = [
        {"inlineData": {"mimeType": image.mime_type, "data": image.data}}
        for image in images
    ]
    parts.append({"text": prompt})

    return {
        "contents": [{"parts": parts}],
        "generationConfig": {"responseModalities": list(RESPONSE_MODALITIES)},
    }


def generate_fusion(images, prompt: str) -> dict:
    """Invoke the configured model with the ordered images and prompt.

    Returns:
        Raw provider response dictionary. Errors from `client` propagate.
    """
    payload = build_fusion_payload(images, prompt)
    return send_generate_request(payload, model=MODEL_NAME)


class GeminiFusionClient:
    """Remote collaborator used by `app.core.fusion.fuse`.

    Any object with a `generate(images, prompt) -> dict` method can take its place.
    """

    def generate(self, images, prompt: str) -> dict:
        return generate_fusion(images, prompt)
