"""Test log level filtering of the file sink."""

import pytest

from datebisect.core.log import ConsoleSink, FileSink, setup_logger


@pytest.fixture
def file_logger(tmp_path):
    """Set up a file-only logger, restoring the test logger after."""
    def make(level):
        log_file = tmp_path / f"{level}.log"
        logger = setup_logger(
            console=ConsoleSink(enabled=False),
            file=FileSink(enabled=True, level=level, path=str(log_file)),
        )
        return logger, log_file

    yield make
    setup_logger(console=ConsoleSink(level="debug"))


def test_trace_level_includes_all(file_logger):
    logger, log_file = file_logger("trace")

    logger.trace("TRACE message - should be included")
    logger.debug("DEBUG message - should be included")
    logger.info("INFO message - should be included")
    logger.close()

    content = log_file.read_text()
    assert "TRACE message" in content
    assert "DEBUG message" in content
    assert "INFO message" in content


def test_debug_level_filters_trace(file_logger):
    logger, log_file = file_logger("debug")

    logger.trace("TRACE message - should be filtered")
    logger.debug("DEBUG message - should be included")
    logger.warn("WARN message - should be included")
    logger.close()

    content = log_file.read_text()
    assert "TRACE message" not in content
    assert "DEBUG message" in content
    assert "WARN message" in content


def test_info_level_filters_debug(file_logger):
    logger, log_file = file_logger("info")

    logger.debug("DEBUG message - should be filtered")
    logger.info("INFO message - should be included")
    logger.error("ERROR message - should be included")
    logger.close()

    content = log_file.read_text()
    assert "DEBUG message" not in content
    assert "INFO message" in content
    assert "ERROR message" in content


def test_file_lines_use_template(file_logger):
    logger, log_file = file_logger("info")

    logger.info("Probe done", outcome="before")
    logger.close()

    [line] = [l for l in log_file.read_text().splitlines() if "Probe done" in l]
    assert " info " in line
    assert "outcome='before'" in line
