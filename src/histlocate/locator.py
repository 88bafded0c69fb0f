"""Object localization pipeline: decode, extract, match, render, encode."""

from __future__ import annotations

import logging
from functools import partial
from pathlib import Path

import numpy.typing as npt
from tqdm import tqdm
from tqdm.contrib.concurrent import process_map

from .config import RED, Color, Config
from .histogram import compute_histogram, populated_bins
from .image_io import load_image, save_image
from .matcher import TemplateMatcher
from .metrics import DistanceMetric
from .models import BoundingBox, ImageBuffer, LocateResult
from .rendering import render_overlay
from .store import TemplateStore

logger = logging.getLogger(__name__)


def _locate_file_worker(
    paths: tuple[Path, Path], locator: ObjectLocator
) -> LocateResult:
    """Worker function for parallel batch localization.

    Args:
        paths: (query_path, output_path) pair
        locator: Locator holding the read-only template store

    Returns:
        LocateResult for the query.
    """
    query_path, output_path = paths
    return locator.locate_file(query_path, output_path)


class ObjectLocator:
    """Locates the best-matching template box in query images."""

    def __init__(
        self,
        store: TemplateStore,
        metric: DistanceMetric | None = None,
        overlay_color: Color = RED,
    ):
        """Initialize locator.

        Args:
            store: Non-empty template store
            metric: Distance metric, Euclidean by default
            overlay_color: RGB color used to mark the located box

        Raises:
            ConfigurationError: If the store is empty.
        """
        self.store = store
        self.cfg = store.cfg
        self.matcher = TemplateMatcher(store, metric)
        self.overlay_color = overlay_color

    def signature(self, image: ImageBuffer) -> npt.NDArray:
        """Compute a query signature under the store's histogram configuration."""
        return compute_histogram(image, self.cfg)

    def locate(self, image: ImageBuffer) -> LocateResult:
        """Find the object box in a query image and draw it.

        Args:
            image: Query image

        Returns:
            LocateResult with the match and the rendered image, which keeps
            the query image's dimensions.
        """
        query = self.signature(image)
        if logger.isEnabledFor(logging.DEBUG):
            logger.debug(f"Query signature populated bins: {populated_bins(query)}")
            logger.debug(f"Closest templates: {self.matcher.rank(query)[:5]}")

        match = self.matcher.match(query)
        logger.info(
            f"Best match: template {match.template_index}, box {match.box.as_tuple()}, "
            f"distance {match.distance:.3f}"
        )
        rendered = render_overlay(image, match.box, self.overlay_color)
        return LocateResult(match=match, image=rendered)

    def locate_file(self, query_path: Path | str, output_path: Path | str) -> LocateResult:
        """Locate the object in an image file and save the rendered result.

        Nothing is written if decoding or matching fails.

        Args:
            query_path: Query image file
            output_path: Destination for the rendered image

        Returns:
            LocateResult for the query.
        """
        query_path = Path(query_path)
        output_path = Path(output_path)

        logger.info(f"Query: {query_path}")
        result = self.locate(load_image(query_path))

        output_path.parent.mkdir(parents=True, exist_ok=True)
        save_image(result.image, output_path)
        logger.info(f"Saved result to {output_path}")
        return result

    def locate_batch(
        self, jobs: list[tuple[Path, Path]], num_workers: int = 1
    ) -> list[LocateResult]:
        """Locate the object in many query files.

        Queries are independent; results come back in input order.

        Args:
            jobs: (query_path, output_path) pairs
            num_workers: Worker processes (1 = run in this process)

        Returns:
            One LocateResult per job.
        """
        if num_workers <= 1 or len(jobs) <= 1:
            return [
                self.locate_file(query_path, output_path)
                for query_path, output_path in tqdm(jobs, desc="Locating", disable=len(jobs) <= 1)
            ]

        return process_map(
            partial(_locate_file_worker, locator=self),
            jobs,
            max_workers=num_workers,
            chunksize=1,
            desc="Locating",
        )


def build_store(cfg: Config) -> TemplateStore:
    """Assemble the template store described by a run configuration.

    Saved templates (``cfg.templates_path``) come first, followed by templates
    from ``cfg.references`` in order.

    Args:
        cfg: Run configuration

    Returns:
        TemplateStore for the run.
    """
    templates = []
    if cfg.templates_path is not None:
        templates.extend(TemplateStore.load(cfg.templates_path, cfg.histogram))

    if cfg.references:
        examples = []
        for ref in cfg.references:
            logger.info(f"Reference: {ref.image_path} box={ref.box}")
            examples.append((load_image(ref.image_path), BoundingBox.from_tuple(ref.box)))
        templates.extend(TemplateStore.from_images(examples, cfg.histogram))

    return TemplateStore(templates, cfg.histogram)


def run(cfg: Config) -> list[LocateResult]:
    """Run the full pipeline for a configuration.

    Args:
        cfg: Run configuration

    Returns:
        One LocateResult per query, in query order.

    Raises:
        ValueError: If the configuration is invalid.
        FormatError: If an input image or templates file is malformed.
        ConfigurationError: If no templates are available or bin counts disagree.
    """
    cfg.validate()
    logger.info(f"Histogram bins per channel: {cfg.histogram.bins} ({cfg.histogram.num_bins} total)")
    logger.info(f"Queries: {len(cfg.query_paths)}")
    logger.info(f"Parallel workers: {cfg.num_workers}")

    store = build_store(cfg)
    locator = ObjectLocator(store, overlay_color=cfg.overlay_color)

    jobs = [(query_path, cfg.output_for(query_path)) for query_path in cfg.query_paths]
    results = locator.locate_batch(jobs, cfg.num_workers)

    # Only a run whose queries all succeeded leaves a templates file behind
    if cfg.save_templates is not None:
        store.save(cfg.save_templates)
    return results
