"""User-facing output: progress, the final range, and errors."""

from __future__ import annotations

import sys
from datetime import datetime

from datebisect.core.config import BisectConfig, SearchState
from datebisect.core.errors import BisectError, FinishFailure
from datebisect.core.log import logger
from datebisect.core.result import DateInterval
from datebisect.runner.collaborator import CollaboratorRunner

# Logger method for each message verbosity
MESSAGE_LEVELS = {1: "info", 2: "debug", 3: "trace"}


class Reporter:
    """Formats progress and prints results.

    Progress goes through the logger, whose console threshold
    follows VERBOSITY. The result, errors and the resumable range
    are printed directly since they are the program's output.
    """

    def __init__(
        self,
        config: BisectConfig | None = None,
        collaborators: CollaboratorRunner | None = None,
    ):
        """Initialize reporter.

        Args:
            config: Settings; None before configuration has loaded
            collaborators: Runner for the finishing hook
        """
        self.config = config
        self.date_in_msg = config.date_in_msg if config else False
        self.collaborators = collaborators
        if collaborators is None and config is not None:
            self.collaborators = CollaboratorRunner(
                config.workdir, config.output_dir
            )

    def message(self, verbosity: int, text: str, **attrs) -> None:
        """Emit a progress message shown at VERBOSITY >= verbosity."""
        level = MESSAGE_LEVELS[min(max(verbosity, 1), 3)]
        getattr(logger, level)(text, **attrs)

    def _print(self, text: str, error: bool = False) -> None:
        if self.date_in_msg:
            text = f"[{datetime.now().strftime('%Y-%m-%d %H:%M:%S')}] {text}"
        print(text, file=sys.stderr if error else sys.stdout)

    def success(self, interval: DateInterval) -> None:
        """Print the converged range."""
        self._print(f"later than:   {interval.later_than}")
        self._print(f"earlier than: {interval.earlier_than}")

    def finish(self, interval: DateInterval) -> None:
        """Run the finishing hook with the two final dates, if any.

        Raises:
            FinishFailure: If the hook exits non-zero
        """
        if self.config is None or not self.config.reg_finish:
            return

        result = self.collaborators.run(
            "finish",
            self.config.reg_finish,
            interval.later_than,
            interval.earlier_than,
        )
        if not result.success:
            raise FinishFailure(result)

    def fatal(self, error: BisectError, search: SearchState | None = None) -> None:
        """Print an error, plus the range to resume from if it is valid."""
        self._print(f"ERROR: {error}", error=True)
        logger.debug(
            "Search aborted", error_type=type(error).__name__
        )

        if search is None or not search.valid_range_established:
            return

        self._print(
            f"Current range: later than {search.later_than}, "
            f"earlier than {search.earlier_than}"
        )
        self._print("Resume with:")
        for line in resume_settings(search):
            self._print(line)


def resume_settings(search: SearchState) -> list[str]:
    """KEY=VALUE lines that restart the search from its current range."""
    return [
        f'LOW_DATE="{search.later_than}"',
        f'HIGH_DATE="{search.earlier_than}"',
        "SKIP_LOW=1",
        "SKIP_HIGH=1",
    ]
