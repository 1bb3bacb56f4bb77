from __future__ import annotations

import io
import logging

import pytest

from gh_subissue.logging import configure_logging


@pytest.fixture(autouse=True)
def _reset_package_logger():
    yield
    configure_logging(False)


def test_debug_lines_are_logfmt() -> None:
    stream = io.StringIO()
    configure_logging(True, stream=stream)

    logging.getLogger("gh_subissue.commands.create").debug(
        "Create started", extra={"parent": 42, "title": 'Fix "it"'}
    )

    line = stream.getvalue().strip()
    assert "level=debug" in line
    assert "logger=gh_subissue.commands.create" in line
    assert 'msg="Create started"' in line
    assert "parent=42" in line
    assert 'title="Fix \\"it\\""' in line


def test_disabled_logging_is_silent(capsys: pytest.CaptureFixture[str]) -> None:
    configure_logging(False)

    logging.getLogger("gh_subissue.main").debug("hidden")
    logging.getLogger("gh_subissue.main").error("also hidden")

    assert capsys.readouterr().err == ""


def test_reconfiguring_does_not_duplicate_handlers() -> None:
    stream = io.StringIO()
    configure_logging(True, stream=stream)
    configure_logging(True, stream=stream)

    logging.getLogger("gh_subissue").debug("once")

    assert stream.getvalue().count("msg=once") == 1
