"""Nearest-neighbor selection of the closest labeled template."""

from __future__ import annotations

import logging
import math
from collections.abc import Sequence

import numpy as np
import numpy.typing as npt

from .exceptions import ConfigurationError
from .metrics import DistanceMetric, EuclideanDistance
from .models import BoundingBox, MatchResult, Template

logger = logging.getLogger(__name__)


def nearest_template(
    query: npt.ArrayLike,
    templates: Sequence[Template],
    metric: DistanceMetric | None = None,
) -> MatchResult:
    """Scan templates in order and keep the closest one.

    A later template replaces the current best only when strictly closer,
    so among equally distant templates the earliest wins.

    Args:
        query: Query signature.
        templates: Non-empty ordered template sequence.
        metric: Distance metric. Defaults to Euclidean distance.

    Returns:
        MatchResult for the closest template.

    Raises:
        ConfigurationError: If templates is empty.
    """
    if not templates:
        msg = "cannot match against an empty template set (expected at least 1 template)"
        raise ConfigurationError(msg)

    metric = metric or EuclideanDistance()
    best_distance = math.inf
    best_index = 0

    for idx, template in enumerate(templates):
        distance = metric.compute_distance(query, template.histogram)
        logger.debug(f"Template {idx}: distance {distance:.3f}")
        if distance < best_distance:
            best_distance = distance
            best_index = idx

    return MatchResult(
        box=templates[best_index].box,
        distance=best_distance,
        template_index=best_index,
    )


def find_best_match(
    query: npt.ArrayLike,
    templates: Sequence[Template],
    metric: DistanceMetric | None = None,
) -> BoundingBox:
    """Return the bounding box of the template closest to the query signature.

    Raises:
        ConfigurationError: If templates is empty.
    """
    return nearest_template(query, templates, metric).box


class TemplateMatcher:
    """Matches query signatures against a fixed, read-only template sequence."""

    def __init__(self, templates: Sequence[Template], metric: DistanceMetric | None = None):
        """Initialize matcher.

        Args:
            templates: Ordered templates (e.g. a TemplateStore)
            metric: Distance metric, Euclidean by default

        Raises:
            ConfigurationError: If templates is empty.
        """
        if not templates:
            msg = "template store is empty (expected at least 1 template)"
            raise ConfigurationError(msg)
        self.templates = templates
        self.metric = metric or EuclideanDistance()

    def match(self, query: npt.ArrayLike) -> MatchResult:
        """Find the closest template to a query signature.

        Args:
            query: Query signature

        Returns:
            MatchResult of the closest template.
        """
        return nearest_template(query, self.templates, self.metric)

    def rank(self, query: npt.ArrayLike) -> list[tuple[int, float]]:
        """Distances from the query to every template, closest first.

        Ties keep store order.

        Args:
            query: Query signature

        Returns:
            List of (template_index, distance) tuples sorted by distance.
        """
        matrix = getattr(self.templates, "matrix", None)
        if matrix is None:
            matrix = np.stack([t.histogram for t in self.templates])

        distances = self.metric.compute_batch_distance(matrix, query)
        return sorted(
            ((idx, float(d)) for idx, d in enumerate(distances)), key=lambda item: item[1]
        )
