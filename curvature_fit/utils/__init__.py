"""Utility functions for CurvatureFit."""

from curvature_fit.utils.geometry import normalize, symmetric_eigen, tangent_frame
from curvature_fit.utils.statistics import describe_values, summarize_curvatures
from curvature_fit.utils.visualization import visualize_curvature, visualize_estimates

__all__ = ['normalize', 'symmetric_eigen', 'tangent_frame', 'describe_values',
           'summarize_curvatures', 'visualize_curvature', 'visualize_estimates']
