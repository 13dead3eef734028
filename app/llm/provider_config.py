"""Provider/runtime configuration for the fusion model layer.

Architectural role:
    Centralizes model selection, endpoint resolution and credential lookup for
    `app.llm.service` and `app.llm.client`.

Model call flow integration:
    - `service.generate_fusion` consumes `MODEL_NAME` and `RESPONSE_MODALITIES`.
    - `client.send_generate_request` consumes the endpoint template, timeout and
      key resolution.

Determinism:
    Deterministic for a fixed process environment and key files. Values are resolved
    at import time (plus runtime key-file reads in `load_key`).

Failure behavior:
    Missing key material is represented as `None` and turned into a
    `RuntimeError` by `client`.
"""

import os
from dotenv import load_dotenv

load_dotenv()

# Primary model routing controls.
MODEL_NAME = os.getenv("FUSION_MODEL", "gemini-2.5-flash-image-preview")
GEMINI_BASE_URL = os.getenv(
    "GEMINI_BASE_URL", "https://generativelanguage.googleapis.com/v1beta"
).rstrip("/")
GEMINI_KEY_FILE = "config/gemini.key"

GEMINI_URL_TEMPLATE = GEMINI_BASE_URL + "/models/{model}:generateContent"

# Both modalities are requested; the model may still answer with text only.
RESPONSE_MODALITIES = ["IMAGE", "TEXT"]


def _read_timeout(raw):
    """Parse `FUSION_REQUEST_TIMEOUT`; unset or empty means no local timeout."""
    if raw is None or not raw.strip():
        return None
    value = float(raw)
    if value <= 0:
        return None
    return value


REQUEST_TIMEOUT = _read_timeout(os.getenv("FUSION_REQUEST_TIMEOUT"))


def load_key(path):
    """Load API key from environment override or key file.

    Resolution order:
        1. Environment variable inferred from file stem (for example
           `config/gemini.key` -> `GEMINI_API_KEY`).
        2. Raw file contents at `path`.

    Args:
        path: Configured key file path or `None`.

    Returns:
        Key string or `None` when not available.

    Edge cases:
        - `None` path returns `None`.
        - Missing file returns `None`.
    """
    if not path:
        return None
    key_name = os.path.splitext(os.path.basename(path))[0].upper() + "_API_KEY"
    env_value = os.getenv(key_name)
    if env_value:
        return env_value
    if not os.path.exists(path):
        return None
    with open(path, "r") as f:
        return f.read().strip() or None
