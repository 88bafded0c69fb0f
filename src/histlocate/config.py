#!/usr/bin/env python3
"""Configuration dataclasses for histlocate package."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

# Type aliases
Color = tuple[int, int, int]

RED: Color = (255, 0, 0)


@dataclass(frozen=True)
class HistogramConfig:
    """Color histogram quantization settings.

    Changing ``bins`` changes the signature length, so templates computed
    under one configuration cannot be matched against another.
    """

    bins: int = 8  # Per-channel bin count (B), signature has B**3 entries
    max_color: int = 255

    @property
    def num_bins(self) -> int:
        """Length of a signature under this configuration.

        Returns:
            bins cubed.
        """
        return self.bins**3

    def validate(self) -> None:
        """Validate histogram parameters.

        Raises:
            ValueError: If any parameter is invalid.
        """
        if not 1 <= self.bins <= 256:  # noqa: PLR2004
            msg = f"bins must be in [1,256], got {self.bins}"
            raise ValueError(msg)
        if self.max_color != 255:  # noqa: PLR2004
            msg = f"max_color must be 255, got {self.max_color}"
            raise ValueError(msg)


@dataclass
class ReferenceSpec:
    """A labeled reference image: file path plus object box (x, y, width, height)."""

    image_path: Path
    box: tuple[int, int, int, int]


@dataclass
class Config:
    """Main configuration for a localization run."""

    # Required Settings
    query_paths: list[Path]
    output_path: Path
    references: list[ReferenceSpec] = field(default_factory=list)

    # Algorithm Settings
    histogram: HistogramConfig = field(default_factory=HistogramConfig)
    overlay_color: Color = RED

    # Template persistence (None = disabled)
    templates_path: Path | None = None
    save_templates: Path | None = None

    # Batch Settings
    num_workers: int = 1
    output_suffix: str = "_located"

    def __post_init__(self) -> None:
        """Post-initialization processing.

        Coerces string paths to Path objects.
        """
        self.query_paths = [Path(p) for p in self.query_paths]
        self.output_path = Path(self.output_path)
        if self.templates_path is not None:
            self.templates_path = Path(self.templates_path)
        if self.save_templates is not None:
            self.save_templates = Path(self.save_templates)

    @property
    def batch_mode(self) -> bool:
        """Whether output_path names a directory of results rather than one file."""
        return len(self.query_paths) > 1

    def output_for(self, query_path: Path) -> Path:
        """Output file for a query image.

        Args:
            query_path: Query image path

        Returns:
            output_path itself for a single query, otherwise
            ``<output_path>/<stem><output_suffix><suffix>``.
        """
        if not self.batch_mode:
            return self.output_path
        return self.output_path / f"{query_path.stem}{self.output_suffix}{query_path.suffix}"

    def validate(self) -> None:
        """Validate configuration parameters.

        Raises:
            ValueError: If any parameter is invalid.
        """
        self.histogram.validate()
        if not self.query_paths:
            msg = "at least one query image is required"
            raise ValueError(msg)
        if not self.references and self.templates_path is None:
            msg = "either reference images or a templates file is required"
            raise ValueError(msg)
        if self.num_workers < 1:
            msg = f"num_workers must be >= 1, got {self.num_workers}"
            raise ValueError(msg)
        if any(not 0 <= c <= self.histogram.max_color for c in self.overlay_color):
            msg = f"overlay_color channels must be in [0,{self.histogram.max_color}], got {self.overlay_color}"
            raise ValueError(msg)
        for ref in self.references:
            x, y, w, h = ref.box
            if x < 0 or y < 0 or w < 1 or h < 1:
                msg = f"invalid box for {ref.image_path}: {ref.box}"
                raise ValueError(msg)

        targets: dict[Path, Path] = {}
        for query_path in self.query_paths:
            target = self.output_for(query_path)
            if target in targets:
                msg = (
                    f"queries {targets[target]} and {query_path} would both write {target}"
                )
                raise ValueError(msg)
            targets[target] = query_path
