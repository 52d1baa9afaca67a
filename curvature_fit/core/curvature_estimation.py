"""
Curvature estimation from the covariance of neighbor normals.

Two estimators are provided:

* :class:`NormalCovarianceCurvature` analyses the 3x3 covariance of the
  neighbor normals in a single pass.
* :class:`ProjectedNormalCovarianceCurvature` projects the normals on the
  tangent plane of a previously fitted plane and analyses their 2x2
  covariance. It needs two passes over the neighborhood: the first one builds
  the tangent frame, the second one accumulates the projections.

Curvature values are the eigenvalues of the covariance, so they are unsigned
and ``k1 >= k2 >= 0``.
"""

from dataclasses import dataclass
from enum import Enum

import numpy as np

from curvature_fit.config import EigenSelection
from curvature_fit.core.fitting import (FitResult, FittingStage, PROVIDES_PLANE,
                                        PROVIDES_PRINCIPAL_CURVATURES)
from curvature_fit.exceptions import PreconditionError
from curvature_fit.utils.geometry import symmetric_eigen, tangent_frame


@dataclass(frozen=True)
class CurvatureResult:
    """Principal curvatures and their directions at a query point."""

    k1: float
    k2: float
    v1: np.ndarray
    v2: np.ndarray

    @property
    def k_mean(self):
        return (self.k1 + self.k2) / 2.

    @property
    def k_gaussian(self):
        return self.k1 * self.k2


class BaseCurvatureEstimator(FittingStage):
    """
    Holds k1, k2 and their directions.

    k1 is the principal curvature with the highest absolute value, k2 the one
    with the smallest. Values are meaningful only once ``finalize`` returned
    ``STABLE``.
    """

    provides = frozenset({PROVIDES_PRINCIPAL_CURVATURES})

    def reset(self):
        super().reset()
        self._set_flat()

    def _set_flat(self):
        self._k1 = 0.0
        self._k2 = 0.0
        self._v1 = np.zeros(3)
        self._v2 = np.zeros(3)

    def _set_curvatures(self, k1, k2, v1, v2):
        self._k1 = float(k1)
        self._k2 = float(k2)
        self._v1 = np.asarray(v1, dtype=float)
        self._v2 = np.asarray(v2, dtype=float)

    def k1(self):
        """Principal curvature with the highest absolute value."""
        return self._k1

    def k2(self):
        """Principal curvature with the smallest absolute value."""
        return self._k2

    def k1_direction(self):
        return self._v1

    def k2_direction(self):
        return self._v2

    def k_mean(self):
        return (self._k1 + self._k2) / 2.

    def k_gaussian(self):
        return self._k1 * self._k2

    def result(self):
        return CurvatureResult(self._k1, self._k2, self._v1.copy(), self._v2.copy())


class NormalCovarianceCurvature(BaseCurvatureEstimator):
    """
    Curvature from the 3x3 covariance of the neighbor normals.

    The eigenpair standing for the normal axis is discarded according to
    ``config.eigen_selection`` and the two remaining eigenvalues give k1 and k2.
    """

    def _reset_accumulators(self):
        self._sum_normals = np.zeros(3)
        self._sum_outer = np.zeros((3, 3))
        self._reference_normal = None
        self._opposed = False
        self._set_flat()

    def _accumulate(self, sample, w):
        n = sample.normal
        self._sum_normals += w * n
        self._sum_outer += w * np.outer(n, n)
        if self._reference_normal is None:
            self._reference_normal = n
        elif np.dot(n, self._reference_normal) < 0:
            self._opposed = True

    def _select_eigenpairs(self, eigenvecs, mean_normal):
        """Indices (into the ascending eigenvalues) of the pairs giving k1 and k2."""
        rule = self.config.eigen_selection
        if rule == EigenSelection.EXTREME:
            return 2, 0
        if rule == EigenSelection.LARGEST:
            return 2, 1

        if np.linalg.norm(mean_normal) <= self.config.flat_epsilon:
            normal_axis = 0
        else:
            normal_axis = int(np.argmax(np.abs(eigenvecs.T @ mean_normal)))
        first, second = [i for i in (2, 1, 0) if i != normal_axis]
        return first, second

    def _finalize(self):
        if self._state == FitResult.UNDEFINED or self._n_neighbors < self.config.min_samples_covariance:
            return FitResult.UNDEFINED

        total = self._weights_total()
        second_moment = self._sum_outer / total
        cog = self._sum_normals / total
        cov = second_moment - np.outer(cog, cog)

        eigenvals, eigenvecs = symmetric_eigen(cov)
        eigenvals = np.clip(eigenvals, 0.0, None)

        if eigenvals[2] <= self.config.flat_epsilon:
            self._set_flat()
            return FitResult.STABLE

        i1, i2 = self._select_eigenpairs(eigenvecs, cog)
        self._set_curvatures(eigenvals[i1], eigenvals[i2], eigenvecs[:, i1], eigenvecs[:, i2])

        # Normals spread along a single line with opposite orientations
        if not self._opposed:
            return FitResult.STABLE
        moment_vals, _ = symmetric_eigen(second_moment)
        if moment_vals[1] <= self.config.collinearity_ratio * moment_vals[2]:
            return FitResult.UNSTABLE
        return FitResult.STABLE


class Pass(Enum):
    FIRST_PASS = 0
    SECOND_PASS = 1
    DONE = 2


class ProjectedNormalCovarianceCurvature(BaseCurvatureEstimator):
    """
    Curvature from the 2x2 covariance of the neighbor normals projected on the
    tangent plane.

    Needs a stage providing a plane in the same pipeline: the fitted normal,
    read when the first pass is finalized, defines the tangent frame used to
    project the normals during the second pass.
    """

    requires = frozenset({PROVIDES_PLANE})

    def reset(self):
        super().reset()
        self._pass = Pass.FIRST_PASS
        self._tframe = np.zeros((3, 2))
        self._plane_normal = None

    def init(self, eval_pos):
        if self._pass == Pass.DONE:
            self.reset()
        super().init(eval_pos)

    def _reset_accumulators(self):
        self._sum_proj = np.zeros(2)
        self._sum_outer = np.zeros((2, 2))
        self._sum_alignment = 0.0

    def _accumulate(self, sample, w):
        if self._pass != Pass.SECOND_PASS:
            return
        n = sample.normal
        proj = self._tframe.T @ n
        self._sum_proj += w * proj
        self._sum_outer += w * np.outer(proj, proj)
        self._sum_alignment += w * float(np.dot(n, self._plane_normal))

    def _finalize(self):
        if self._pass == Pass.FIRST_PASS:
            return self._finalize_first_pass()
        return self._finalize_second_pass()

    def _finalize_first_pass(self):
        plane = self.provider(PROVIDES_PLANE)
        if not plane.finalized:
            raise PreconditionError(
                "The plane stage must be finalized before the projected curvature in the first pass"
            )

        if self._state == FitResult.UNDEFINED or plane.state == FitResult.UNDEFINED:
            self._pass = Pass.DONE
            return FitResult.UNDEFINED

        self._plane_normal = plane.fitted_normal()
        self._tframe = tangent_frame(self._plane_normal)
        self._pass = Pass.SECOND_PASS
        return FitResult.NEED_OTHER_PASS

    def _finalize_second_pass(self):
        self._pass = Pass.DONE
        if self._state == FitResult.UNDEFINED or self._n_neighbors < self.config.min_samples_projected:
            return FitResult.UNDEFINED

        total = self._weights_total()
        cog = self._sum_proj / total
        cov = self._sum_outer / total - np.outer(cog, cog)

        eigenvals, eigenvecs = symmetric_eigen(cov)
        eigenvals = np.clip(eigenvals, 0.0, None)

        if eigenvals[1] <= self.config.flat_epsilon:
            self._set_flat()
        else:
            self._set_curvatures(eigenvals[1], eigenvals[0],
                                 self._tframe @ eigenvecs[:, 1],
                                 self._tframe @ eigenvecs[:, 0])

        if abs(self._sum_alignment / total) < self.config.min_normal_alignment:
            return FitResult.UNSTABLE
        return FitResult.STABLE

    @property
    def current_pass(self):
        return self._pass

    def tangent_frame(self):
        """(3, 2) tangent frame built at the end of the first pass."""
        if self._plane_normal is None:
            raise PreconditionError("The tangent frame is built when the first pass is finalized")
        return self._tframe
