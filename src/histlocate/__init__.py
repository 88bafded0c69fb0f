"""histlocate - Locate objects in images by color histogram template matching."""

from .config import Config, HistogramConfig, ReferenceSpec
from .exceptions import ChannelRangeError, ConfigurationError, FormatError
from .histogram import compute_histogram
from .locator import ObjectLocator, run
from .matcher import TemplateMatcher, find_best_match
from .metrics import DistanceMetric, EuclideanDistance, histogram_distance
from .models import BoundingBox, ImageBuffer, LocateResult, MatchResult, Pixel, Template
from .rendering import render_overlay
from .store import TemplateStore

__version__ = "0.1.0"

__all__ = [
    "BoundingBox",
    "ChannelRangeError",
    "Config",
    "ConfigurationError",
    "DistanceMetric",
    "EuclideanDistance",
    "FormatError",
    "HistogramConfig",
    "ImageBuffer",
    "LocateResult",
    "MatchResult",
    "ObjectLocator",
    "Pixel",
    "ReferenceSpec",
    "Template",
    "TemplateMatcher",
    "TemplateStore",
    "compute_histogram",
    "find_best_match",
    "histogram_distance",
    "render_overlay",
    "run",
]
