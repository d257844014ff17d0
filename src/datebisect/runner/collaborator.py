"""Collaborator runner with log management."""

import itertools
import shlex
from datetime import datetime
from pathlib import Path

from datebisect.core.log import logger
from datebisect.core.result import CollaboratorResult
from datebisect.core.runner import Runner


class CollaboratorRunner:
    """Run external collaborators and record their exit status.

    Each collaborator is an executable invoked with date-string
    arguments. Its output is logged at trace level and, when an
    output directory is configured, saved to a numbered log file.
    """

    def __init__(
        self, workdir: Path | None = None, output_dir: Path | None = None
    ):
        """Initialize collaborator runner.

        Args:
            workdir: Working directory for collaborator commands
            output_dir: Directory for per-invocation log files, or
                None to keep output in the log only
        """
        self.workdir = workdir
        self.output_dir = output_dir
        self.runner = Runner()
        self._sequence = itertools.count(1)

    def run(self, name: str, executable: str, *args: str) -> CollaboratorResult:
        """Run a collaborator to completion.

        Args:
            name: Role of the collaborator (update, build, test, ...)
            executable: Path of the executable
            *args: Date-string arguments

        Returns:
            CollaboratorResult with the exit code; a non-zero exit
            is not an error at this level
        """
        timestamp = datetime.now()
        argv = [executable, *args]
        command = shlex.join(argv)

        log_file = None
        if self.output_dir:
            sequence = next(self._sequence)
            log_file = self.output_dir / (
                f"{sequence:04d}-{name}-"
                f"{timestamp.strftime('%Y%m%d-%H%M%S')}.log"
            )
            self.output_dir.mkdir(parents=True, exist_ok=True)

        logger.debug(f"Running {name}: {command}")
        result = self.runner.execute(
            argv,
            cwd=self.workdir,
            log_file=log_file,
            log_level="trace",
        )
        logger.debug(f"{name} exited with {result.exited}")

        return CollaboratorResult(
            name=name,
            command=command,
            returncode=result.exited,
            log_file=log_file,
            timestamp=timestamp,
        )
