"""
HTTP API adapter for the image fusion workspace.

Architectural role:
- Expose the session state machine over JSON endpoints.
- Enforce adapter-level input validation (image count, slot range, file type).
- Delegate fusion work to `app.core.fusion.fuse`.
- Serve preview resources and the active image as a download.

Endpoint responsibilities:
- `GET /v1/state`: full session snapshot for rendering.
- `PUT /v1/image-count`: resize the slot range (2-5).
- `PUT /v1/slots/{index}` / `DELETE /v1/slots/{index}`: assign or remove files.
- `GET /v1/previews/{token}`: bytes of a live slot preview.
- `PUT /v1/prompt`, `GET /v1/prompt-examples`, `POST /v1/prompt-examples/{n}`.
- `POST /v1/fuse`: run one fusion; single in-flight attempt.
- `GET /v1/result`, `GET /v1/result/download`, `GET /v1/history`,
  `POST /v1/history/{id}/select`.

Input validation behavior:
- Image count outside 2..5 -> HTTP 400.
- Slot index out of range -> HTTP 404.
- Non-image upload -> HTTP 400 with the validation message (also kept on state).
- Fuse while pending or with unmet preconditions -> HTTP 409, no state change.

Error handling strategy:
- Fusion failures are captured by the invoker; this adapter maps them to
  HTTP 502 with the session error message.

Side effects:
- Holds one in-memory `FusionSession` for the process.
- Emits debug output only when `DEBUG == "true"`.
- Loads environment variables at import time via `load_dotenv()`.
"""

from dotenv import load_dotenv

load_dotenv()

import os
from typing import List

from fastapi import FastAPI, File, UploadFile
from fastapi.responses import JSONResponse, Response
from pydantic import BaseModel

from app.api.multimodal import file_input_manager
from app.core.fusion import fuse
from app.image.data_url import DOWNLOAD_FILENAME, decode_data_url
from app.prompting.examples import PROMPT_EXAMPLES, PROMPT_PLACEHOLDER
from app.session.state import FusionSession

app = FastAPI(title="Image Fusion")
# Sensitive request/response debug logging is opt-in.
DEBUG = os.getenv("DEBUG") == "true"


# ============================================================
# Session and collaborator wiring
# ============================================================

_SESSION = FusionSession()
_FUSION_CLIENT = None


def get_session() -> FusionSession:
    """Return the process-wide session."""
    return _SESSION


def set_session(session: FusionSession) -> None:
    """Replace the process-wide session (used by tests and embedding apps)."""
    global _SESSION
    _SESSION = session


def set_fusion_client(client) -> None:
    """Override or clear the remote collaborator used by `/v1/fuse`.

    Passing `None` restores the default Gemini client.
    """
    global _FUSION_CLIENT
    _FUSION_CLIENT = client


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message})


# ============================================================
# Request Schemas
# ============================================================

class ImageCountRequest(BaseModel):
    count: int


class PromptRequest(BaseModel):
    prompt: str


# ============================================================
# State
# ============================================================

@app.get("/v1/state")
def read_state():
    """Return the full session snapshot."""
    return get_session().snapshot()


@app.put("/v1/image-count")
def update_image_count(body: ImageCountRequest):
    session = get_session()
    try:
        session.set_image_count(body.count)
    except ValueError as err:
        return _error(400, str(err))
    return session.snapshot()


# ============================================================
# Upload slots
# ============================================================

@app.put("/v1/slots/{index}")
async def upload_slot(index: int, file: List[UploadFile] = File(...)):
    """
    Assign the first uploaded file to slot `index`.

    Multi-file uploads behave like a multi-file drop: only the first file is
    used. Empty files are ignored. Non-image or oversized files are rejected
    and leave the slot unchanged.
    """
    session = get_session()
    if not 0 <= index < session.image_count:
        return _error(404, f"Slot {index} does not exist")

    first = file[0]
    if first.size is not None and first.size > file_input_manager.MAX_FILE_SIZE_BYTES:
        return _error(400, "File exceeds max size limit")

    data = await first.read()
    if not data or not first.filename:
        return session.snapshot()
    try:
        upload = file_input_manager.from_bytes(first.filename, first.content_type, data)
    except ValueError as err:
        return _error(400, str(err))

    if DEBUG:
        print("Upload:", index, first.filename, upload.content_type, len(data))

    if not session.set_slot(index, upload):
        return _error(400, session.error)
    return session.snapshot()


@app.delete("/v1/slots/{index}")
def remove_slot(index: int):
    session = get_session()
    try:
        session.remove_slot(index)
    except IndexError as err:
        return _error(404, str(err))
    return session.snapshot()


@app.get("/v1/previews/{token}")
def read_preview(token: str):
    preview = get_session().slots.previews.get(token)
    if preview is None:
        return _error(404, "Preview not found")
    body, media_type = preview
    return Response(content=body, media_type=media_type)


# ============================================================
# Prompt
# ============================================================

@app.put("/v1/prompt")
def update_prompt(body: PromptRequest):
    session = get_session()
    session.set_prompt(body.prompt)
    return session.snapshot()


@app.get("/v1/prompt-examples")
def list_prompt_examples():
    return {"examples": list(PROMPT_EXAMPLES), "placeholder": PROMPT_PLACEHOLDER}


@app.post("/v1/prompt-examples/{index}")
def apply_prompt_example(index: int):
    session = get_session()
    try:
        session.apply_example(index)
    except IndexError as err:
        return _error(404, str(err))
    return session.snapshot()


# ============================================================
# Fusion
# ============================================================

@app.post("/v1/fuse")
async def fuse_images():
    """
    Run one fusion attempt.

    Admission control:
    - A pending fusion or unmet preconditions return HTTP 409 without
      touching session state.

    Response formatting:
    - Success returns the new result.
    - Failure returns HTTP 502 with the session error message.
    """
    session = get_session()

    if session.is_pending:
        return _error(409, "A fusion is already in progress")
    if not session.can_fuse:
        return _error(409, "Upload every image and enter a prompt first")

    if DEBUG:
        print("Fusing", session.image_count, "images with prompt:", repr(session.prompt))

    result = await fuse(session, client=_FUSION_CLIENT)

    if result is None:
        return _error(502, session.error)

    if DEBUG:
        print("Fusion result:", result.id, repr(result.text))

    return result.model_dump()


# ============================================================
# Results and history
# ============================================================

@app.get("/v1/result")
def read_active_result():
    active = get_session().active_result
    if active is None:
        return _error(404, "No result yet")
    return active.model_dump()


@app.get("/v1/result/download")
def download_active_result():
    """Export the displayed image as a file attachment."""
    active = get_session().active_result
    if active is None:
        return _error(404, "No result yet")

    try:
        media_type, body = decode_data_url(active.image)
    except ValueError as err:
        return _error(500, str(err))

    return Response(
        content=body,
        media_type=media_type,
        headers={"Content-Disposition": f'attachment; filename="{DOWNLOAD_FILENAME}"'},
    )


@app.get("/v1/history")
def list_history():
    return {"data": [item.model_dump() for item in get_session().history]}


@app.post("/v1/history/{result_id}/select")
def select_history_entry(result_id: str):
    session = get_session()
    try:
        result = session.select_history(result_id)
    except KeyError:
        return _error(404, "Unknown history entry")
    return result.model_dump()
