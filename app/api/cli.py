"""
Interactive CLI entrypoint for the image fusion workspace.

Architectural role:
- Provides a terminal-only interface over one in-memory `FusionSession`.
- Delegates fusion to `app.core.fusion.fuse`.

Interface responsibilities:
- Accept stdin commands and render session state to stdout.
- Load local files (or data URLs) into upload slots.
- Save the active result image to disk.

Commands:
- `count N`          choose how many images to fuse (2-5)
- `add I PATH ...`   put a file into slot I (1-based); extra paths are ignored
- `remove I`         clear slot I
- `prompt TEXT`      set the prompt
- `example N`        use prompt example N (1-based); `example` lists them
- `fuse`             run the fusion
- `history`          list previous results
- `select ID`        show a previous result again
- `save [PATH]`      write the active image (default `fused-image.png`)
- `status`           print the current state
- `exit` / `quit`    leave

Error handling strategy:
- Handles EOF and keyboard interrupts without traceback output.
- Command errors are printed and the loop continues.
"""

import sys
import asyncio
import logging
import shlex

from app.api.multimodal.file_input_manager import load_upload
from app.core.fusion import fuse
from app.image.data_url import DOWNLOAD_FILENAME, decode_data_url
from app.prompting.examples import PROMPT_EXAMPLES
from app.session.state import FusionSession


# =========================================================
# UTF-8 SAFE STDOUT
# Configures best-effort UTF-8 console output without failing startup.
# =========================================================

if hasattr(sys.stdout, "reconfigure"):
    try:
        sys.stdout.reconfigure(encoding="utf-8", errors="ignore")
    except (AttributeError, ValueError, OSError):
        pass


HELP_TEXT = __doc__.split("Commands:\n", 1)[1].split("\nError handling", 1)[0].rstrip()


# =========================================================
# RENDERING
# =========================================================

def render_status(session: FusionSession) -> str:
    lines = [f"Images: {session.image_count}"]
    for slot in session.slots.slots:
        label = slot.file.filename if slot.file else "(empty)"
        lines.append(f"  Image {slot.index + 1}: {label}")
    lines.append(f"Prompt: {session.prompt or '(empty)'}")
    lines.append(f"Ready to fuse: {'yes' if session.can_fuse else 'no'}")
    if session.error:
        lines.append(f"Error: {session.error}")
    if session.active_result:
        lines.append(f"Showing result {session.active_result.id}: {session.active_result.text}")
    return "\n".join(lines)


def render_history(session: FusionSession) -> str:
    if not len(session.history):
        return "No fusions yet."
    return "\n".join(
        f"{item.id}  {item.text[:50]}" for item in session.history
    )


def save_active_image(session: FusionSession, path: str = DOWNLOAD_FILENAME) -> str:
    if session.active_result is None:
        raise ValueError("No result to save yet.")
    _, body = decode_data_url(session.active_result.image)
    with open(path, "wb") as f:
        f.write(body)
    return path


# =========================================================
# COMMAND HANDLING
# =========================================================

def _slot_index(raw: str) -> int:
    return int(raw) - 1


def handle_command(session: FusionSession, line: str, client=None) -> str:
    """
    Execute one command line against `session` and return the text to print.

    Raises `ValueError`/`IndexError`/`KeyError` for bad input; the loop reports
    them and keeps going.
    """
    command, _, rest = line.strip().partition(" ")
    command = command.lower()
    rest = rest.strip()

    if command == "help":
        return HELP_TEXT

    if command == "count":
        session.set_image_count(int(rest))
        return render_status(session)

    if command == "add":
        index_raw, _, paths = rest.partition(" ")
        refs = shlex.split(paths)
        if not refs:
            raise ValueError("Usage: add I PATH")
        # Several paths act like a multi-file drop: only the first is used.
        upload = load_upload(refs[0])
        if not session.set_slot(_slot_index(index_raw), upload):
            return f"Error: {session.error}"
        return f"Image {index_raw} set to {upload.filename}"

    if command == "remove":
        session.remove_slot(_slot_index(rest))
        return f"Image {rest} removed"

    if command == "prompt":
        session.set_prompt(rest)
        return "Prompt set."

    if command == "example":
        if not rest:
            return "\n".join(f"{i}. {ex}" for i, ex in enumerate(PROMPT_EXAMPLES, 1))
        return f"Prompt set: {session.apply_example(int(rest) - 1)}"

    if command == "fuse":
        if not session.can_fuse:
            return "Upload every image and enter a prompt first."
        print("Fusing...", flush=True)
        result = asyncio.run(fuse(session, client=client))
        if result is None:
            return f"Error: {session.error}"
        return f"{result.text}\n(result {result.id}; use 'save' to write the image)"

    if command == "history":
        return render_history(session)

    if command == "select":
        result = session.select_history(rest)
        return f"Showing result {result.id}: {result.text}"

    if command == "save":
        path = save_active_image(session, rest or DOWNLOAD_FILENAME)
        return f"Saved {path}"

    if command == "status":
        return render_status(session)

    return f"Unknown command: {command}. Type 'help' for commands."


# =========================================================
# MAIN APPLICATION LOOP
# =========================================================

def main():
    """
    Run the interactive terminal session.

    Error handling strategy:
    - Command errors are printed and the loop continues.
    - EOF and keyboard interrupts are handled gracefully.
    """
    logging.basicConfig(level=logging.WARNING)
    session = FusionSession()

    print("Image Fusion started. (Type 'help' for commands, 'exit' to quit)\n")
    print("-" * 60)

    # -----------------------------------------------------
    # Interactive loop
    # -----------------------------------------------------
    while True:

        try:
            line = input("> ").strip()

        except EOFError:
            print()
            break

        except KeyboardInterrupt:
            print("\nInterrupted.")
            break

        if not line:
            continue

        if line.lower() in ("exit", "quit"):
            session.reset()
            print("Shutting down.")
            break

        try:
            print(handle_command(session, line))
        except KeyError:
            print("Error: unknown history entry")
        except (ValueError, IndexError) as err:
            print(f"Error: {err}")
        except OSError as err:
            print(f"Error: {err.strerror or err}")

        print("-" * 60)


if __name__ == "__main__":
    main()
