#!/usr/bin/env python3
"""datebisect CLI - find when a behavior changed, by date."""

import asyncio
from pathlib import Path

from pydantic import BaseModel
from pydantic_settings import CliApp, CliPositionalArg

from datebisect.core.config import load_config
from datebisect.core.errors import BisectError
from datebisect.core.log import logger, setup_logger
from datebisect.search.engine import BisectionEngine
from datebisect.search.report import Reporter


class CliState(BaseModel):
    """Binary search over dates for the point where a test
    outcome flips.

    CONFIG_FILE holds KEY=VALUE lines (LOW_DATE="2024-01-01") or
    YAML. Required: LOW_DATE, HIGH_DATE, REG_UPDATE, REG_BUILD,
    REG_TEST. Optional: DELTA, REG_FINISH, SKIP_LOW, SKIP_HIGH,
    FIRST_MID, HAS_CHANGES, VERBOSITY, DATE_IN_MSG, WORKDIR,
    OUTPUT_DIR, LOG_FILE, LOG_LEVEL. Settings can also come from
    DATEBISECT_* environment variables.
    """

    config_file: CliPositionalArg[Path]

    def cli_cmd(self):
        """Load configuration and run the search."""
        try:
            config = load_config(self.config_file)
        except BisectError as err:
            Reporter().fatal(err)
            raise SystemExit(err.exit_code) from None

        setup_logger(console=config.console_sink(), file=config.file_sink())

        # Use logger as context manager to ensure files are closed on exit
        with logger:
            engine = BisectionEngine(config)
            exit_code = asyncio.run(engine.run_workflow())
        raise SystemExit(exit_code)


def main():
    """Main entry point for CLI."""
    CliApp.run(CliState)


if __name__ == "__main__":
    main()
