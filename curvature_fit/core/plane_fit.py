"""Plane fitting by covariance analysis of neighbor positions."""

import numpy as np

from curvature_fit.core.fitting import FitResult, FittingStage, PROVIDES_PLANE
from curvature_fit.exceptions import PreconditionError
from curvature_fit.utils.geometry import normalize, symmetric_eigen


class CovariancePlaneFit(FittingStage):
    """
    Fit a plane to the neighborhood of the query point.

    The normal is the eigenvector of the smallest eigenvalue of the position
    covariance, oriented to agree with the normals carried by the samples.
    Positions are accumulated relative to the query point.
    """

    provides = frozenset({PROVIDES_PLANE})

    def reset(self):
        super().reset()
        self._normal = None
        self._centroid = None
        self._eigenvals = None

    def _reset_accumulators(self):
        self._sum_pos = np.zeros(3)
        self._sum_outer = np.zeros((3, 3))
        self._sum_normals = np.zeros(3)
        self._normal = None
        self._centroid = None
        self._eigenvals = None

    def _accumulate(self, sample, w):
        q = sample.position - self._eval_pos
        self._sum_pos += w * q
        self._sum_outer += w * np.outer(q, q)
        self._sum_normals += w * sample.normal

    def _finalize(self):
        if self._state == FitResult.UNDEFINED or self._n_neighbors < self.config.min_samples_covariance:
            return FitResult.UNDEFINED

        total = self._weights_total()
        cog = self._sum_pos / total
        cov = self._sum_outer / total - np.outer(cog, cog)

        eigenvals, eigenvecs = symmetric_eigen(cov)
        eigenvals = np.clip(eigenvals, 0.0, None)
        normal = eigenvecs[:, 0]

        # Orient along the sample normals, positive Z when they cancel out
        reference = self._sum_normals
        if np.linalg.norm(reference) <= self.config.flat_epsilon:
            reference = np.array([0.0, 0.0, 1.0])
        if np.dot(normal, reference) < 0:
            normal = -normal

        self._normal = normalize(normal)
        self._centroid = self._eval_pos + cog
        self._eigenvals = eigenvals

        if eigenvals[2] <= self.config.flat_epsilon:
            return FitResult.UNSTABLE
        if eigenvals[1] <= self.config.plane_degeneracy_ratio * eigenvals[2]:
            return FitResult.UNSTABLE
        return FitResult.STABLE

    def _check_fitted(self):
        if self._normal is None:
            raise PreconditionError("The plane is only available after a finalize that did not return UNDEFINED")

    def fitted_normal(self):
        """Unit normal of the fitted plane."""
        self._check_fitted()
        return self._normal

    def centroid(self):
        """Barycenter of the accepted neighbors, a point of the fitted plane."""
        self._check_fitted()
        return self._centroid

    def eigenvalues(self):
        """Eigenvalues of the position covariance, ascending."""
        self._check_fitted()
        return self._eigenvals

    def signed_distance(self, q):
        self._check_fitted()
        return float(np.dot(np.asarray(q, dtype=float) - self._centroid, self._normal))

    def project(self, q):
        """Orthogonal projection of ``q`` on the fitted plane."""
        q = np.asarray(q, dtype=float)
        return q - self.signed_distance(q) * self._normal
