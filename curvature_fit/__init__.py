"""
CurvatureFit - Principal curvature estimation on unorganized point clouds from
the covariance of neighbor normals.
"""

from curvature_fit.version import __version__, VERSION
from curvature_fit.config import EigenSelection, EstimatorConfig
from curvature_fit.core.fitting import (FitResult, FittingStage, PROVIDES_PLANE,
                                        PROVIDES_PRINCIPAL_CURVATURES)
from curvature_fit.core.neighbors import KDTreeNeighborSource, Sample, SequenceNeighborSource
from curvature_fit.core.plane_fit import CovariancePlaneFit
from curvature_fit.core.curvature_estimation import (CurvatureResult, NormalCovarianceCurvature,
                                                     ProjectedNormalCovarianceCurvature)
from curvature_fit.core.pipeline import (FittingPipeline, normal_covariance_pipeline,
                                         projected_normal_covariance_pipeline)
from curvature_fit.core.weights import DistanceWeightFunc
from curvature_fit.core.curvature_fit import CurvatureFit
from curvature_fit.exceptions import (CurvatureFitError, DimensionError,
                                      PipelineConfigurationError, PreconditionError)

__all__ = [
    'CurvatureFit', 'FittingPipeline', 'normal_covariance_pipeline',
    'projected_normal_covariance_pipeline', 'FittingStage', 'FitResult',
    'PROVIDES_PLANE', 'PROVIDES_PRINCIPAL_CURVATURES', 'CovariancePlaneFit',
    'NormalCovarianceCurvature', 'ProjectedNormalCovarianceCurvature', 'CurvatureResult',
    'Sample', 'KDTreeNeighborSource', 'SequenceNeighborSource', 'DistanceWeightFunc',
    'EstimatorConfig', 'EigenSelection', 'CurvatureFitError', 'DimensionError',
    'PipelineConfigurationError', 'PreconditionError', '__version__', 'VERSION',
]
