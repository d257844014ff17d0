"""Subprocess execution through invoke."""

import shlex
from collections.abc import Sequence
from pathlib import Path

from invoke import Context, Result

from datebisect.core.log import logger


class Runner(Context):
    """invoke.Context that runs one argument vector at a time.

    Commands run to completion with no timeout: a hung
    collaborator hangs the search, and only the caller can stop it.
    A non-zero exit is returned, never raised.
    """

    def execute(
        self,
        argv: Sequence[str],
        cwd: Path | None = None,
        log_file: Path | None = None,
        log_level: str | None = None,
    ) -> Result:
        """Run argv and capture its output.

        Args:
            argv: Executable followed by its arguments; quoted for
                the shell with shlex
            cwd: Working directory, or None for the current one
            log_file: Where to save the command line, its combined
                output and its exit code
            log_level: Level at which each output line is logged,
                or None to log nothing

        Returns:
            invoke.Result with stdout, stderr and exited
        """
        command = shlex.join(argv)
        options = {"hide": True, "warn": True, "in_stream": False}

        if cwd:
            with self.cd(str(cwd)):
                result = self.run(command, **options)
        else:
            result = self.run(command, **options)

        if log_file:
            log_file.parent.mkdir(parents=True, exist_ok=True)
            with open(log_file, "w", encoding="utf-8") as f:
                f.write(f"$ {command}\n")
                f.write(result.stdout)
                f.write(result.stderr)
                f.write(f"[exit {result.exited}]\n")

        if log_level:
            for stream, text in (("stdout", result.stdout),
                                 ("stderr", result.stderr)):
                for line in text.splitlines():
                    logger.log(
                        log_level, "{output}",
                        output=line.rstrip(), stream=stream,
                    )

        return result
