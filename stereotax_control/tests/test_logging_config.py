"""Tests for logging setup and contextual fields."""

from __future__ import annotations

import json
import logging
from pathlib import Path

import pytest

from stereotax_control.utils.logging_config import (
    HumanFormatter,
    JsonFormatter,
    get_context,
    log_context,
    pop_context,
    push_context,
    setup_logging,
)


@pytest.fixture(autouse=True)
def clean_context():
    pop_context()
    yield
    pop_context()


def _record(msg: str = "Saved") -> logging.LogRecord:
    return logging.LogRecord("stereotax_control.session", logging.INFO, __file__, 1, msg, (), None)


class TestContext:
    def test_push_and_pop(self) -> None:
        push_context(app="plan", procedure="drill")
        pop_context(keys=["procedure"])
        assert get_context() == {"app": "plan"}

    def test_log_context_restores(self) -> None:
        push_context(app="plan")
        with log_context(procedure="injection"):
            assert get_context() == {"app": "plan", "procedure": "injection"}
        assert get_context() == {"app": "plan"}

    def test_log_context_restores_on_error(self) -> None:
        with pytest.raises(RuntimeError):
            with log_context(procedure="drill"):
                raise RuntimeError("boom")
        assert get_context() == {}


class TestFormatters:
    def test_human_line(self) -> None:
        with log_context(app="plan"):
            line = HumanFormatter().format(_record())
        fields = line.split(" | ")
        assert fields[0].endswith("Z")
        assert fields[1].strip() == "INFO"
        assert fields[2] == "app=plan"
        assert fields[3] == "Saved"

    def test_json_line(self) -> None:
        with log_context(procedure="drill"):
            entry = json.loads(JsonFormatter().format(_record()))
        assert entry["lvl"] == "INFO"
        assert entry["procedure"] == "drill"
        assert entry["msg"] == "Saved"


class TestSetup:
    def test_repeated_setup_does_not_stack(self, tmp_path: Path) -> None:
        root = logging.getLogger()
        first = setup_logging("DEBUG", str(tmp_path / "logs" / "plan.log"))
        second = setup_logging("INFO")
        try:
            assert len(first) == 2
            assert len(second) == 1
            assert not any(h in root.handlers for h in first)
            assert all(h in root.handlers for h in second)
            assert root.level == logging.INFO
        finally:
            for handler in second:
                root.removeHandler(handler)

    def test_json_file(self, tmp_path: Path) -> None:
        log_file = tmp_path / "plan.log"
        handlers = setup_logging("INFO", str(log_file), json=True, context={"app": "plan"})
        try:
            logging.getLogger("stereotax_control.test").info("hello")
            for handler in handlers:
                handler.flush()
            entry = json.loads(log_file.read_text(encoding="utf-8").splitlines()[-1])
            assert entry["msg"] == "hello"
            assert entry["app"] == "plan"
        finally:
            for handler in handlers:
                logging.getLogger().removeHandler(handler)
                handler.close()
