"""Ordered, read-only collection of labeled templates."""

from __future__ import annotations

import json
import logging
from collections.abc import Iterable, Iterator, Sequence
from pathlib import Path
from typing import Any, overload

import numpy as np
import numpy.typing as npt
from pydantic import ValidationError

from .config import HistogramConfig
from .exceptions import ConfigurationError, FormatError
from .histogram import compute_histogram
from .models import BoundingBox, ImageBuffer, Template
from .ppm import atomic_output

logger = logging.getLogger(__name__)


class TemplateStore(Sequence[Template]):
    """Templates built once at startup, then only read during matching.

    Every template signature has ``cfg.num_bins`` entries.
    """

    def __init__(self, templates: Iterable[Template], cfg: HistogramConfig | None = None):
        """Initialize store.

        Args:
            templates: Templates in match order
            cfg: Histogram configuration the signatures were computed with

        Raises:
            ConfigurationError: If a template's signature length does not match cfg.
        """
        self.cfg = cfg or HistogramConfig()
        self._templates: tuple[Template, ...] = tuple(templates)

        for idx, template in enumerate(self._templates):
            if template.histogram.size != self.cfg.num_bins:
                msg = (
                    f"template {idx} has {template.histogram.size} bins, "
                    f"expected {self.cfg.num_bins} (bins={self.cfg.bins})"
                )
                raise ConfigurationError(msg)

        # Stacked signatures for vectorized distance computation
        self.matrix: npt.NDArray[np.int64] = (
            np.stack([t.histogram for t in self._templates])
            if self._templates
            else np.empty((0, self.cfg.num_bins), dtype=np.int64)
        )
        self.matrix.flags.writeable = False

    @classmethod
    def from_images(
        cls,
        examples: Iterable[tuple[ImageBuffer, BoundingBox]],
        cfg: HistogramConfig | None = None,
    ) -> TemplateStore:
        """Build templates from labeled reference images.

        The signature of each template covers the full reference image.

        Args:
            examples: (reference image, object box) pairs in match order
            cfg: Histogram configuration

        Returns:
            New TemplateStore.
        """
        cfg = cfg or HistogramConfig()
        templates = []
        for idx, (image, box) in enumerate(examples):
            if not box.fits_within(image.width, image.height):
                logger.warning(
                    f"Reference {idx}: box {box.as_tuple()} extends beyond "
                    f"{image.width}x{image.height} image"
                )
            templates.append(Template(box=box, histogram=compute_histogram(image, cfg)))

        logger.info(f"Built {len(templates)} template(s) with {cfg.num_bins} bins")
        return cls(templates, cfg)

    @overload
    def __getitem__(self, index: int) -> Template: ...

    @overload
    def __getitem__(self, index: slice) -> Sequence[Template]: ...

    def __getitem__(self, index: int | slice) -> Template | Sequence[Template]:
        return self._templates[index]

    def __len__(self) -> int:
        return len(self._templates)

    def __iter__(self) -> Iterator[Template]:
        return iter(self._templates)

    def to_dict(self) -> dict[str, Any]:
        """Serializable form of the store, tagged with its bin configuration."""
        return {
            "bins": self.cfg.bins,
            "max_color": self.cfg.max_color,
            "templates": [
                {"box": t.box.model_dump(), "histogram": t.histogram.tolist()}
                for t in self._templates
            ],
        }

    def save(self, path: Path | str) -> None:
        """Save templates to a JSON file.

        Args:
            path: Destination file, replaced atomically
        """
        path = Path(path)
        with atomic_output(path) as tmp_path, tmp_path.open("w") as f:
            json.dump(self.to_dict(), f)
        logger.info(f"Saved {len(self)} template(s) to {path}")

    @classmethod
    def load(cls, path: Path | str, cfg: HistogramConfig | None = None) -> TemplateStore:
        """Load templates saved by ``save``.

        Args:
            path: JSON templates file
            cfg: Active histogram configuration

        Returns:
            TemplateStore with the stored templates.

        Raises:
            FormatError: If the file is not a valid templates file.
            ConfigurationError: If it was written with a different bin configuration.
        """
        path = Path(path)
        cfg = cfg or HistogramConfig()

        try:
            with path.open() as f:
                data = json.load(f)
        except json.JSONDecodeError as e:
            msg = f"{path}: invalid templates file: {e}"
            raise FormatError(msg) from e

        if not isinstance(data, dict) or not {"bins", "max_color", "templates"} <= data.keys():
            msg = f"{path}: expected keys 'bins', 'max_color' and 'templates'"
            raise FormatError(msg)

        if data["bins"] != cfg.bins or data["max_color"] != cfg.max_color:
            msg = (
                f"{path}: templates were built with bins={data['bins']}, "
                f"max_color={data['max_color']}; expected bins={cfg.bins}, "
                f"max_color={cfg.max_color}"
            )
            raise ConfigurationError(msg)

        try:
            templates = [Template.model_validate(entry) for entry in data["templates"]]
        except (ValidationError, TypeError) as e:
            msg = f"{path}: invalid template entry: {e}"
            raise FormatError(msg) from e

        logger.info(f"Loaded {len(templates)} template(s) from {path}")
        return cls(templates, cfg)
