"""Configuration management for alignoth.

Settings come from built-in defaults, a plain mapping, or a TOML file
with a ``[plot]`` table.

Example:
    >>> from alignoth.config import Config
    >>> config = Config.load("alignoth.toml")
    >>> config.plot.max_read_depth
    500
"""

from __future__ import annotations

import tomllib
from pathlib import Path
from typing import Any

import attrs

# =============================================================================
# Default Configuration Values
# =============================================================================

# Maximum number of display rows before rows get subsampled
DEFAULT_MAX_READ_DEPTH = 500

# Minimum gap in bp between two reads placed in the same row
DEFAULT_ROW_BUFFER = 5

# Seed of the row sampler; fixed so identical input yields identical rows
DEFAULT_SUBSAMPLE_SEED = 42


def _non_negative(instance: Any, attribute: attrs.Attribute, value: int) -> None:
    if value < 0:
        raise ValueError(f"{attribute.name} must be >= 0, got {value}")


# =============================================================================
# Configuration Classes
# =============================================================================


@attrs.define
class PlotConfig:
    """Configuration for building plot data.

    Attributes:
        max_read_depth: Maximum number of rows shown before subsampling.
        row_buffer: Minimum distance between reads sharing a row.
        subsample_seed: Seed for the row sampler.
        aux_tags: Auxiliary tags copied from each record into its Read.
    """

    max_read_depth: int = attrs.field(default=DEFAULT_MAX_READ_DEPTH, validator=_non_negative)
    row_buffer: int = attrs.field(default=DEFAULT_ROW_BUFFER, validator=_non_negative)
    subsample_seed: int = DEFAULT_SUBSAMPLE_SEED
    aux_tags: list[str] = attrs.Factory(list)


@attrs.define
class Config:
    """Main configuration container for alignoth.

    Attributes:
        plot: Plot data configuration.
    """

    plot: PlotConfig = attrs.Factory(PlotConfig)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Config:
        """Build a configuration from a nested mapping.

        Args:
            data: Mapping with an optional ``plot`` section.

        Returns:
            Configuration object.

        Raises:
            ValueError: If a section contains unknown keys or invalid values.
        """
        plot_data = dict(data.get("plot", {}))
        known = {a.name for a in attrs.fields(PlotConfig)}
        unknown = set(plot_data) - known
        if unknown:
            raise ValueError(f"Unknown plot settings: {sorted(unknown)}")
        if "aux_tags" in plot_data:
            plot_data["aux_tags"] = list(plot_data["aux_tags"])
        return cls(plot=PlotConfig(**plot_data))

    @classmethod
    def load(cls, path: Path | str | None = None) -> Config:
        """Load configuration from a TOML file.

        Args:
            path: Path to configuration file. If None, returns defaults.

        Returns:
            Loaded configuration object.

        Raises:
            FileNotFoundError: If configuration file doesn't exist.
            ValueError: If configuration file is invalid.
        """
        if path is None:
            return cls()

        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"Configuration file not found: {path}")

        try:
            with open(path, "rb") as f:
                data = tomllib.load(f)
        except tomllib.TOMLDecodeError as e:
            raise ValueError(f"Invalid configuration file {path}: {e}") from e

        return cls.from_dict(data)

    def to_dict(self) -> dict[str, Any]:
        """Convert configuration to dictionary."""
        return attrs.asdict(self)
