"""Application configuration and search state."""

from __future__ import annotations

import shutil
from pathlib import Path
from typing import Any

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    ValidationError,
    field_validator,
    model_validator,
)
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
)

from datebisect.core.errors import ConfigError
from datebisect.core.log import ConsoleSink, FileSink, verbosity_to_level
from datebisect.core.result import DateInterval, ProbeRecord
from datebisect.core.settings_file import ConfigFileSettingsSource

# Smallest accepted convergence tolerance, in seconds
MIN_DELTA = 120
DEFAULT_DELTA = 3600

# ============================================================
# CONFIG (loaded from the configuration file and environment)
# ============================================================


class BisectConfig(BaseSettings):
    """Settings of one date bisection.

    Sources in priority order:
    1. Keyword arguments
    2. The configuration file given as config_file
    3. Environment variables (DATEBISECT_LOW_DATE=...)
    """

    config_file: Path | None = Field(
        default=None,
        exclude=True,
        description="Configuration file the other settings come from",
    )

    low_date: str = Field(
        description="Date at which the test shows the old behavior"
    )
    high_date: str = Field(
        description="Later date at which the test shows the new behavior"
    )
    reg_update: str = Field(
        description="Executable that updates the source tree to a date"
    )
    reg_build: str = Field(description="Executable that builds the tree")
    reg_test: str = Field(
        description=(
            "Executable that classifies the tree: exit 1 when the change "
            "is still ahead, exit 0 when it has happened"
        )
    )
    delta: int = Field(
        default=DEFAULT_DELTA,
        description=(
            f"Convergence tolerance in seconds (minimum {MIN_DELTA})"
        ),
    )
    reg_finish: str | None = Field(
        default=None,
        description="Executable run with the two final dates",
    )
    skip_low: bool = Field(
        default=False,
        description="Trust low_date without probing it (for resuming)",
    )
    skip_high: bool = Field(
        default=False,
        description="Trust high_date without probing it (for resuming)",
    )
    first_mid: str | None = Field(
        default=None,
        description="Date to probe first instead of the midpoint",
    )
    has_changes: str | None = Field(
        default=None,
        description=(
            "Change oracle run with (date, later_than, earlier_than): "
            "exit 0 to probe normally, 1 if unchanged from later_than, "
            "2 if unchanged from earlier_than"
        ),
    )
    verbosity: int = Field(
        default=0,
        description="0 prints errors and the result only; up to 3",
    )
    date_in_msg: bool = Field(
        default=False,
        description="Prefix messages with the current time",
    )
    workdir: Path | None = Field(
        default=None,
        description="Working directory for all collaborators",
    )
    output_dir: Path | None = Field(
        default=None,
        description="Directory for one log file per collaborator run",
    )
    log_file: Path | None = Field(
        default=None,
        description="Write a detailed log of the search to this file",
    )
    log_level: str = Field(
        default="debug",
        description="Level threshold of the log file",
    )

    model_config = SettingsConfigDict(
        env_prefix="DATEBISECT_",
        case_sensitive=False,
        extra="ignore",
    )

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        """Customize settings source priority.

        The configuration file is named by the config_file init
        argument, so it sits between init arguments and the
        environment.
        """
        sources = [init_settings]
        config_file = init_settings.init_kwargs.get("config_file")
        if config_file:
            sources.append(ConfigFileSettingsSource(settings_cls, config_file))
        sources.append(env_settings)
        return tuple(sources)

    @field_validator(
        "reg_finish", "first_mid", "has_changes",
        "workdir", "output_dir", "log_file",
        mode="before",
    )
    @classmethod
    def _empty_is_unset(cls, value: Any) -> Any:
        if isinstance(value, str) and not value.strip():
            return None
        return value

    @field_validator("delta")
    @classmethod
    def _check_delta(cls, value: int) -> int:
        if value < MIN_DELTA:
            raise ValueError(
                f"DELTA must be at least {MIN_DELTA} seconds, got {value}"
            )
        return value

    @model_validator(mode="after")
    def _check_collaborators(self) -> BisectConfig:
        """Every configured collaborator must be an executable."""
        for name in self.collaborators():
            path = getattr(self, name)
            if shutil.which(path) is None:
                raise ValueError(
                    f"{name.upper()} is not an executable file: {path}"
                )
        return self

    def collaborators(self) -> list[str]:
        """Names of the collaborator settings that are configured."""
        names = ["reg_update", "reg_build", "reg_test"]
        for optional in ("has_changes", "reg_finish"):
            if getattr(self, optional):
                names.append(optional)
        return names

    def console_sink(self) -> ConsoleSink:
        """Console sink matching VERBOSITY and DATE_IN_MSG."""
        return ConsoleSink(
            level=verbosity_to_level(self.verbosity),
            include_timestamps=self.date_in_msg,
        )

    def file_sink(self) -> FileSink:
        """File sink, enabled when LOG_FILE is set."""
        if self.log_file is None:
            return FileSink(enabled=False)
        return FileSink(
            enabled=True, path=str(self.log_file), level=self.log_level
        )


def load_config(config_file: str | Path, **overrides: Any) -> BisectConfig:
    """Load settings from a configuration file.

    Args:
        config_file: KEY=VALUE or YAML configuration file
        **overrides: Settings that win over the file

    Returns:
        Validated configuration

    Raises:
        ConfigError: If the file is missing or a setting is invalid
    """
    try:
        return BisectConfig(config_file=Path(config_file), **overrides)
    except ValidationError as e:
        problems = "; ".join(
            f"{'.'.join(str(p) for p in err['loc']) or 'config'}: "
            f"{err['msg']}"
            for err in e.errors()
        )
        raise ConfigError(f"Invalid configuration: {problems}") from e


# ============================================================
# RUNTIME STATE (mutated while the search runs)
# ============================================================


class SearchState(BaseModel):
    """The active range and what is known about it.

    low is the last date known to classify BEFORE the change and
    high the first known to classify AFTER it; later_than and
    earlier_than are their display forms.
    """

    low: int = Field(default=0, description="Lower bound, epoch seconds")
    high: int = Field(default=0, description="Upper bound, epoch seconds")
    later_than: str = Field(default="", description="Display form of low")
    earlier_than: str = Field(
        default="", description="Display form of high"
    )
    valid_range_established: bool = Field(
        default=False,
        description="Both endpoints validated or explicitly skipped",
    )
    first_mid: int | None = Field(
        default=None,
        description="Caller-chosen first midpoint, epoch seconds",
    )
    iteration: int = Field(
        default=0, description="Number of midpoints probed"
    )
    status: str = Field(
        default="init",
        description=(
            "Search status: init, validating, searching, done, error"
        ),
    )
    history: list[ProbeRecord] = Field(
        default_factory=list,
        description="Every classified probe, in order",
    )

    @property
    def width(self) -> int:
        """Width of the current range in seconds."""
        return self.high - self.low

    def interval(self) -> DateInterval:
        """Current range as a DateInterval."""
        return DateInterval(
            later_than=self.later_than,
            earlier_than=self.earlier_than,
            low=self.low,
            high=self.high,
            probes=len(self.history),
        )


class Runtime(BaseModel):
    """Runtime objects used by the workflow nodes.

    prober and reporter are created from the configuration when
    not supplied, which lets tests substitute their own.
    """

    search: SearchState = Field(
        default_factory=SearchState,
        description="Range and validity of the search",
    )
    prober: Any = Field(
        default=None,
        description="Object with probe(time_point, search) -> ProbeOutcome",
    )
    reporter: Any = Field(
        default=None,
        description="Reporter for progress and results",
    )

    model_config = ConfigDict(arbitrary_types_allowed=True)


class State(BaseModel):
    """Complete search state: configuration plus runtime.

    This is the state object that flows through the workflow graph.
    """

    config: BisectConfig = Field(description="Validated settings")
    runtime: Runtime = Field(
        default_factory=Runtime,
        description="Runtime state (mutates during the search)",
    )

    model_config = ConfigDict(arbitrary_types_allowed=True)


__all__ = [
    "BisectConfig",
    "Runtime",
    "SearchState",
    "State",
    "load_config",
    "MIN_DELTA",
    "DEFAULT_DELTA",
]
