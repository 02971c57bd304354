import json
import logging

import pytest

from quanturnic.logging_utils import configure_logging


@pytest.fixture()
def _restore_root_logger():
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)


def test_configure_logging_writes_json_lines_to_stdout(
    capsys: pytest.CaptureFixture[str],
    _restore_root_logger: None,
) -> None:
    configure_logging("info")
    logging.getLogger("quanturnic.orchestrator").info(
        "command_started",
        extra={"command": "toggle_bot"},
    )

    captured = capsys.readouterr()
    line = captured.out.strip().splitlines()[-1]
    payload = json.loads(line)

    assert payload["msg"] == "command_started"
    assert payload["level"] == "INFO"
    assert payload["logger"] == "quanturnic.orchestrator"
    assert payload["command"] == "toggle_bot"
    assert "command_started" not in captured.err
