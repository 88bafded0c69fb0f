#!/usr/bin/env python3
"""Distance metrics between color histogram signatures."""

from __future__ import annotations

from typing import Protocol

import numpy as np
import numpy.typing as npt

from .exceptions import ConfigurationError


class DistanceMetric(Protocol):
    """Protocol defining the interface for signature distance metrics."""

    def compute_distance(self, hist1: npt.ArrayLike, hist2: npt.ArrayLike) -> float:
        """Compute distance between two signatures.

        Args:
            hist1: First signature (B**3 bin counts)
            hist2: Second signature (B**3 bin counts)

        Returns:
            Distance score (lower = more similar)
        """
        ...

    def compute_batch_distance(
        self, hists: npt.ArrayLike, query: npt.ArrayLike
    ) -> npt.NDArray[np.float64]:
        """Compute distances between multiple signatures and a query.

        Args:
            hists: Array of signatures (N, B**3)
            query: Query signature (B**3,)

        Returns:
            Array of distances (N,)
        """
        ...


def _check_lengths(len1: int, len2: int) -> None:
    if len1 != len2:
        msg = f"signature length mismatch: {len1} vs {len2} bins"
        raise ConfigurationError(msg)


class EuclideanDistance:
    """Euclidean distance between bin-count vectors.

    Differences are taken on integer counts, so the result is exactly
    symmetric and zero only for element-wise identical signatures.
    """

    def compute_distance(self, hist1: npt.ArrayLike, hist2: npt.ArrayLike) -> float:
        """Compute Euclidean distance.

        Args:
            hist1: First signature
            hist2: Second signature

        Returns:
            Square root of the summed squared bin differences.

        Raises:
            ConfigurationError: If the signatures differ in length.
        """
        a = np.asarray(hist1, dtype=np.int64).ravel()
        b = np.asarray(hist2, dtype=np.int64).ravel()
        _check_lengths(a.size, b.size)

        diff = a - b
        return float(np.sqrt(np.dot(diff, diff)))

    def compute_batch_distance(
        self, hists: npt.ArrayLike, query: npt.ArrayLike
    ) -> npt.NDArray[np.float64]:
        """Vectorized batch distance computation.

        Args:
            hists: Batch of signatures (N x B**3)
            query: Query signature (B**3,)

        Returns:
            Array of distances for each signature in batch.

        Raises:
            ConfigurationError: If the query length differs from the batch row length.
        """
        mat = np.atleast_2d(np.asarray(hists, dtype=np.int64))
        q = np.asarray(query, dtype=np.int64).ravel()
        _check_lengths(mat.shape[1], q.size)

        diff = mat - q
        return np.sqrt(np.einsum("ij,ij->i", diff, diff).astype(np.float64))


def histogram_distance(hist1: npt.ArrayLike, hist2: npt.ArrayLike) -> float:
    """Euclidean distance between two signatures.

    Args:
        hist1: First signature
        hist2: Second signature

    Returns:
        Non-negative distance.
    """
    return EuclideanDistance().compute_distance(hist1, hist2)
