"""Unit tests for shared utilities and logging setup."""

import hashlib
import json
import logging
from datetime import datetime

import numpy as np
import pytest

from trajviz.infra.utils import Timer, ensure_dir, format_duration, get_file_hash, json_serializer
from trajviz.logging_config import LOGGER_NAME, setup_logging


class TestFormatDuration:

    @pytest.mark.parametrize("seconds, expected", [
        (0.0, "0s"),
        (1.5, "1s 500ms"),
        (59.0, "59s"),
        (3661.0, "1h 1m 1s"),
        (86400.0, "1day"),
        (2 * 86400.0 + 120.0, "2days 2m"),
        (float("inf"), "inf"),
    ])
    def test_format(self, seconds, expected):
        assert format_duration(seconds) == expected

    def test_precision(self):
        assert format_duration(3661.25, precision=2) == "1h 1m"

    @pytest.mark.parametrize("seconds", [-1.0, float("nan")])
    def test_invalid(self, seconds):
        with pytest.raises(ValueError):
            format_duration(seconds)


class TestFileHelpers:

    def test_ensure_dir(self, tmp_path):
        path = ensure_dir(tmp_path / "a" / "b")
        assert path.is_dir()

    def test_file_hash(self, tmp_path):
        path = tmp_path / "data.bin"
        path.write_bytes(b"trajviz")
        assert get_file_hash(path) == hashlib.sha256(b"trajviz").hexdigest()

    def test_json_serializer(self):
        content = {
            "array": np.arange(3),
            "float": np.float64(1.5),
            "int": np.int32(7),
            "time": datetime(2024, 1, 1, 12, 0, 0),
        }
        decoded = json.loads(json.dumps(content, default=json_serializer))

        assert decoded == {"array": [0, 1, 2], "float": 1.5, "int": 7, "time": "2024-01-01T12:00:00"}


class TestTimer:

    def test_logs_elapsed_time(self, caplog):
        with caplog.at_level(logging.INFO, logger="trajviz.infra.utils"):
            with Timer("Loading") as timer:
                pass

        assert timer.elapsed >= 0.0
        assert "Loading completed in" in caplog.text

    def test_elapsed_before_start(self):
        assert Timer().elapsed == 0.0


class TestSetupLogging:

    def teardown_method(self):
        logger = logging.getLogger(LOGGER_NAME)
        for handler in logger.handlers:
            handler.close()
        logger.handlers.clear()
        logger.setLevel(logging.NOTSET)

    def test_repeated_setup_keeps_one_handler(self):
        setup_logging("DEBUG")
        logger = setup_logging(logging.INFO)

        assert logger.name == LOGGER_NAME
        assert logger.level == logging.INFO
        assert len(logger.handlers) == 1

    def test_log_file(self, tmp_path):
        log_file = tmp_path / "logs" / "trajviz.log"
        logger = setup_logging("INFO", log_file=str(log_file))
        logger.info("hello")
        for handler in logger.handlers:
            handler.flush()

        assert "hello" in log_file.read_text()

    def test_unknown_level(self):
        with pytest.raises(ValueError):
            setup_logging("CHATTY")
