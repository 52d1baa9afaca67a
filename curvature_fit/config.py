"""Configuration shared by the fitting stages."""

from dataclasses import dataclass
from enum import Enum

from curvature_fit.exceptions import PipelineConfigurationError


class EigenSelection(Enum):
    """Rule choosing which eigenpairs of the 3x3 normal covariance give k1 and k2."""

    NORMAL_AXIS = 'normal_axis'
    EXTREME = 'extreme'
    LARGEST = 'largest'


@dataclass
class EstimatorConfig:
    """
    Tunable constants of the fitting stages.

    Attributes:
        min_samples_covariance (int): Minimum accepted samples for a 3x3
            covariance (plane fit and 3D curvature estimator)
        min_samples_projected (int): Minimum accepted samples for the 2x2
            covariance of the projected estimator
        flat_epsilon (float): Largest covariance eigenvalue under which the
            neighborhood is treated as flat (k1 = k2 = 0)
        collinearity_ratio (float): Ratio between the middle and the largest
            eigenvalue of the normal second moment under which the normals are
            considered collinear (UNSTABLE)
        plane_degeneracy_ratio (float): Same ratio for the position covariance
            of the plane fit (collinear points)
        min_normal_alignment (float): Minimum mean |n . N| between neighbor
            normals and the fitted plane normal in the projected estimator
        exclude_query_point (bool): Reject samples located on the query point
        coincidence_tolerance (float): Distance under which a sample is
            considered to be on the query point
        use_weights (bool): Scale contributions by the weight functor
        eigen_selection (EigenSelection): Eigenpair selection rule
        max_passes (int): Passes a pipeline may request before it is
            considered misconfigured
        verbose (bool): Log per-pass diagnostics at INFO instead of DEBUG
    """

    min_samples_covariance: int = 3
    min_samples_projected: int = 2
    flat_epsilon: float = 1e-12
    collinearity_ratio: float = 1e-6
    plane_degeneracy_ratio: float = 1e-6
    min_normal_alignment: float = 0.5
    exclude_query_point: bool = True
    coincidence_tolerance: float = 1e-12
    use_weights: bool = False
    eigen_selection: EigenSelection = EigenSelection.NORMAL_AXIS
    max_passes: int = 2
    verbose: bool = False

    def __post_init__(self):
        if isinstance(self.eigen_selection, str):
            try:
                self.eigen_selection = EigenSelection(self.eigen_selection)
            except ValueError:
                choices = ', '.join(rule.value for rule in EigenSelection)
                raise PipelineConfigurationError(
                    f"Unknown eigen_selection '{self.eigen_selection}' (expected one of: {choices})"
                ) from None

        if self.min_samples_covariance < 3:
            raise PipelineConfigurationError("min_samples_covariance must be at least 3")
        if self.min_samples_projected < 2:
            raise PipelineConfigurationError("min_samples_projected must be at least 2")
        if self.max_passes < 1:
            raise PipelineConfigurationError("max_passes must be at least 1")
        for name in ('flat_epsilon', 'collinearity_ratio', 'plane_degeneracy_ratio',
                     'coincidence_tolerance'):
            if getattr(self, name) < 0:
                raise PipelineConfigurationError(f"{name} must be nonnegative")
        if not 0.0 <= self.min_normal_alignment <= 1.0:
            raise PipelineConfigurationError("min_normal_alignment must lie in [0, 1]")
