"""Weighting of neighbor contributions by their distance to the query point."""

import numpy as np

from curvature_fit.exceptions import PipelineConfigurationError


class ConstantWeightKernel:
    """f(x) = 1"""

    def f(self, x):
        return 1.0


class SmoothWeightKernel:
    """f(x) = (x^2 - 1)^2"""

    def f(self, x):
        return (x * x - 1.0) ** 2


class WendlandWeightKernel:
    """f(x) = (1 - x)^4 (4x + 1)"""

    def f(self, x):
        return (1.0 - x) ** 4 * (4.0 * x + 1.0)


class SingularWeightKernel:
    """f(x) = 1 / x^2, with f(0) = 0 since the kernel is undefined there."""

    def f(self, x):
        if x == 0:
            return 0.0
        return 1.0 / (x * x)


class CompactExpWeightKernel:
    """f(x) = exp(p x^2 / (x^2 - 1)), vanishing at x = 1."""

    def __init__(self, p=1.0):
        self.p = p

    def f(self, x):
        if x >= 1.0:
            return 0.0
        return float(np.exp(self.p * x * x / (x * x - 1.0)))


KERNELS = {
    'constant': ConstantWeightKernel,
    'smooth': SmoothWeightKernel,
    'wendland': WendlandWeightKernel,
    'singular': SingularWeightKernel,
    'compact_exp': CompactExpWeightKernel,
}


def make_kernel(name):
    """Instantiate a kernel from its name in :data:`KERNELS`."""
    try:
        return KERNELS[name]()
    except KeyError:
        raise PipelineConfigurationError(
            f"Unknown kernel '{name}' (expected one of: {', '.join(sorted(KERNELS))})"
        ) from None


class DistanceWeightFunc:
    """
    Weight a sample by ``kernel.f(d / radius)`` where ``d`` is its distance to
    the query point. Samples farther than ``radius`` get a zero weight, which
    makes the fitting stages reject them.
    """

    def __init__(self, radius, kernel=None):
        if radius <= 0:
            raise PipelineConfigurationError("Weight radius must be positive")
        if isinstance(kernel, str):
            kernel = make_kernel(kernel)
        self.radius = float(radius)
        self.kernel = kernel if kernel is not None else SmoothWeightKernel()

    def w(self, eval_pos, sample):
        d = float(np.linalg.norm(sample.position - eval_pos))
        if d > self.radius:
            return 0.0
        return self.kernel.f(d / self.radius)
