"""Gemini transport client for fusion requests.

Architectural role:
    Executes the single `generateContent` HTTP call against the hosted model and
    returns the decoded JSON body. Response interpretation lives in
    `app.core.fusion`.

Model invocation flow:
    `service.generate_fusion` -> `send_generate_request(payload)` -> Gemini REST.

Retry behavior:
    No retry loop is implemented. Each HTTP call is attempted once; the timeout is
    `REQUEST_TIMEOUT` (unset by default).

Failure handling model:
    Failures raise `RuntimeError` with a sanitized, provider-labeled message so
    the fusion invoker can surface it without leaking raw response bodies.
"""

import logging

import requests

from app.llm.provider_config import (
    GEMINI_KEY_FILE,
    GEMINI_URL_TEMPLATE,
    MODEL_NAME,
    REQUEST_TIMEOUT,
    load_key,
)


logger = logging.getLogger(__name__)

PROVIDER_LABEL = "gemini"


def _build_sanitized_http_error(provider_name: str, err: requests.exceptions.RequestException) -> str:
    """Build provider-labeled HTTP error text without exposing raw internals.

    Args:
        provider_name: Active provider label.
        err: Request exception instance.

    Returns:
        Sanitized error string with optional status code.
    """
    status_code = None
    if getattr(err, "response", None) is not None:
        status_code = getattr(err.response, "status_code", None)

    label = str(provider_name or "provider").upper()
    if status_code:
        return f"{label} HTTP ERROR ({status_code})"
    return f"{label} HTTP ERROR"


def _sanitize_runtime_error(provider_name: str) -> str:
    """Build generic provider-labeled runtime failure text."""
    label = str(provider_name or "provider").upper()
    return f"{label} REQUEST FAILED"


def send_generate_request(payload: dict, model: str = MODEL_NAME, session=None) -> dict:
    """Send one `generateContent` request and return the parsed response body.

    Args:
        payload: Gemini request body built by `app.llm.service`.
        model: Model identifier substituted into the endpoint URL.
        session: Optional `requests.Session`-like object (defaults to module
            level `requests`).

    Returns:
        Decoded JSON dictionary.

    Failure scenarios:
        - Missing key -> `RuntimeError("GEMINI KEY FILE NOT FOUND")`.
        - HTTP status/transport errors -> `RuntimeError("GEMINI HTTP ERROR (...)")`.
        - Non-JSON body -> `RuntimeError("GEMINI REQUEST FAILED")`.
    """
    api_key = load_key(GEMINI_KEY_FILE)
    if not api_key:
        raise RuntimeError(f"{PROVIDER_LABEL.upper()} KEY FILE NOT FOUND")

    url = GEMINI_URL_TEMPLATE.format(model=model)
    headers = {
        "x-goog-api-key": api_key,
        "Content-Type": "application/json",
    }
    http = session or requests

    try:
        response = http.post(
            url,
            headers=headers,
            json=payload,
            timeout=REQUEST_TIMEOUT,
        )
        response.raise_for_status()
    except requests.exceptions.RequestException as err:
        logger.warning("Gemini request failed: %s", type(err).__name__)
        raise RuntimeError(_build_sanitized_http_error(PROVIDER_LABEL, err)) from err

    try:
        return response.json()
    except ValueError as err:
        raise RuntimeError(_sanitize_runtime_error(PROVIDER_LABEL)) from err
