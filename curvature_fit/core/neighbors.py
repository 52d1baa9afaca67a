"""Neighbor samples and the sources enumerating them for a query point."""

from dataclasses import dataclass

import numpy as np
from sklearn.neighbors import KDTree

from curvature_fit.exceptions import DimensionError, PipelineConfigurationError


def _as_vector(values, name):
    vector = np.array(values, dtype=float)
    if vector.shape != (3,):
        raise DimensionError(f"Sample {name} must have shape (3,), got {vector.shape}")
    vector.setflags(write=False)
    return vector


@dataclass(frozen=True)
class Sample:
    """A neighbor observation: a position and its normal."""

    position: np.ndarray
    normal: np.ndarray

    def __post_init__(self):
        object.__setattr__(self, 'position', _as_vector(self.position, 'position'))
        object.__setattr__(self, 'normal', _as_vector(self.normal, 'normal'))


def _check_cloud(points, normals):
    points = np.asarray(points, dtype=float)
    normals = np.asarray(normals, dtype=float)
    if points.ndim != 2 or points.shape[1] != 3:
        raise DimensionError(f"Points must be an (N, 3) array, got shape {points.shape}")
    if normals.shape != points.shape:
        raise DimensionError(f"Normals must match points shape {points.shape}, got {normals.shape}")
    return points, normals


class NeighborCursor:
    """
    Iteration state over the neighbors of one query.

    Supports both the explicit ``has_next`` / ``current`` / ``advance`` protocol
    and Python iteration. Each cursor owns its position, so several cursors
    over the same source never interfere.
    """

    def __init__(self, indices, make_sample):
        self._indices = indices
        self._make_sample = make_sample
        self._pos = 0

    def __len__(self):
        return len(self._indices)

    def has_next(self):
        return self._pos < len(self._indices)

    def current(self):
        if not self.has_next():
            raise IndexError("Cursor is exhausted")
        return self._make_sample(self._indices[self._pos])

    def advance(self):
        self._pos += 1

    @property
    def index(self):
        """Index, in the source, of the current neighbor."""
        return self._indices[self._pos]

    def __iter__(self):
        return self

    def __next__(self):
        if not self.has_next():
            raise StopIteration
        sample = self.current()
        self.advance()
        return sample


class KDTreeNeighborSource:
    """
    Neighbors of query points in a cloud, found with a KD-tree.

    Exactly one of ``radius`` (range query) or ``k`` (k-nearest query) must be
    given.

    Attributes:
        points (array): (N, 3) array of point coordinates
        normals (array): (N, 3) array of point normals
        radius (float): Range query radius
        k (int): Number of nearest neighbors
    """

    dim = 3

    def __init__(self, points, normals, radius=None, k=None, leaf_size=40):
        if (radius is None) == (k is None):
            raise PipelineConfigurationError("Give exactly one of radius or k")
        if radius is not None and radius <= 0:
            raise PipelineConfigurationError("radius must be positive")
        if k is not None and k < 1:
            raise PipelineConfigurationError("k must be at least 1")

        self.points, self.normals = _check_cloud(points, normals)
        self.radius = radius
        self.k = k
        self.tree = KDTree(self.points, leaf_size=leaf_size)

    def __len__(self):
        return len(self.points)

    def sample(self, index):
        return Sample(self.points[index], self.normals[index])

    def query_indices(self, eval_pos):
        """Indices of the neighbors of ``eval_pos``."""
        eval_pos = np.asarray(eval_pos, dtype=float).reshape(1, -1)
        if eval_pos.shape[1] != self.dim:
            raise DimensionError(f"Expected a query position of dimension {self.dim}, got {eval_pos.shape[1]}")

        if self.radius is not None:
            return self.tree.query_radius(eval_pos, r=self.radius)[0]
        k = min(self.k, len(self.points))
        return self.tree.query(eval_pos, k=k, return_distance=False)[0]

    def begin_query(self, eval_pos):
        return NeighborCursor(self.query_indices(eval_pos), self.sample)


class SequenceNeighborSource:
    """A precomputed neighborhood, returned for any query position."""

    dim = 3

    def __init__(self, samples):
        self.samples = list(samples)

    @classmethod
    def from_arrays(cls, points, normals):
        points, normals = _check_cloud(points, normals)
        return cls(Sample(p, n) for p, n in zip(points, normals))

    def __len__(self):
        return len(self.samples)

    def begin_query(self, eval_pos):
        return NeighborCursor(np.arange(len(self.samples)), self.samples.__getitem__)
