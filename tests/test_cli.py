"""
Tests for the interactive CLI commands
"""
import pytest

from app.api.cli import handle_command, main, render_history
from app.prompting.examples import PROMPT_EXAMPLES
from app.session.slots import INVALID_FILE_MESSAGE

from conftest import FakeFusionClient, image_response


@pytest.fixture
def files(tmp_path, png_bytes):
    a = tmp_path / "a.png"
    b = tmp_path / "b.png"
    note = tmp_path / "note.txt"
    a.write_bytes(png_bytes)
    b.write_bytes(png_bytes)
    note.write_text("hi")
    return a, b, note


def test_full_flow(session, files, tmp_path):
    a, b, _ = files
    client = FakeFusionClient(image_response(data="UEFZTE9BRA==", text="Fused!"))

    assert "a.png" in handle_command(session, f"add 1 {a}")
    assert "b.png" in handle_command(session, f"add 2 {b} {a}")
    handle_command(session, "prompt merge these")
    output = handle_command(session, "fuse", client=client)

    assert output.startswith("Fused!")
    assert session.active_result.text == "Fused!"

    target = tmp_path / "out.png"
    assert handle_command(session, f"save {target}") == f"Saved {target}"
    assert target.read_bytes() == b"PAYLOAD"


def test_rejects_non_image(session, files):
    _, _, note = files
    assert handle_command(session, f"add 1 {note}") == f"Error: {INVALID_FILE_MESSAGE}"
    assert session.slots.get(0).file is None


def test_fuse_not_ready(session):
    client = FakeFusionClient()
    assert "first" in handle_command(session, "fuse", client=client)
    assert client.calls == []


def test_count_example_and_history(session):
    assert "Images: 4" in handle_command(session, "count 4")
    assert handle_command(session, "example").splitlines()[0] == f"1. {PROMPT_EXAMPLES[0]}"
    handle_command(session, "example 2")
    assert session.prompt == PROMPT_EXAMPLES[1]
    assert render_history(session) == "No fusions yet."


def test_bad_input_raises(session):
    with pytest.raises(ValueError):
        handle_command(session, "count 9")
    with pytest.raises(IndexError):
        handle_command(session, "remove 3")
    with pytest.raises(KeyError):
        handle_command(session, "select 123")
    with pytest.raises(ValueError):
        handle_command(session, "save")


def test_main_loop_reports_errors(monkeypatch, capsys):
    inputs = iter(["count 7", "status", "exit"])
    monkeypatch.setattr("builtins.input", lambda prompt="": next(inputs))

    main()

    out = capsys.readouterr().out
    assert "Error: Image count must be between 2 and 5" in out
    assert "Images: 2" in out
    assert "Shutting down." in out
