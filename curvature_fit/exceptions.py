"""Exceptions raised for incorrect composition or use of the fitting stages.

Problems with the input data (too few neighbors, degenerate normals) are never
raised; they are reported through :class:`curvature_fit.core.fitting.FitResult`.
"""


class CurvatureFitError(Exception):
    """Base class for all CurvatureFit errors."""


class PipelineConfigurationError(CurvatureFitError, ValueError):
    """A pipeline or an estimator was assembled with an invalid configuration."""


class DimensionError(PipelineConfigurationError):
    """Data or a stage does not have the 3D dimensionality the estimators support."""


class PreconditionError(CurvatureFitError, RuntimeError):
    """A stage was driven out of order (e.g. ``finalize`` before ``init``)."""
