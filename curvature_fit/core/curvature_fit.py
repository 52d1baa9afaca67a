"""Main CurvatureFit class implementation."""

from dataclasses import replace

import numpy as np
from tqdm import tqdm

from curvature_fit.config import EstimatorConfig
from curvature_fit.core.fitting import FitResult
from curvature_fit.core.neighbors import KDTreeNeighborSource
from curvature_fit.core.pipeline import (normal_covariance_pipeline,
                                         projected_normal_covariance_pipeline)
from curvature_fit.core.weights import DistanceWeightFunc
from curvature_fit.exceptions import PipelineConfigurationError
from curvature_fit.utils.statistics import summarize_curvatures

METHODS = {
    'covariance': normal_covariance_pipeline,
    'projected': projected_normal_covariance_pipeline,
}


class CurvatureFit:
    """
    Estimate principal curvatures at every query point of a point cloud.

    For each query point a fresh fitting pipeline is driven over the neighbors
    returned by a KD-tree:
    1. 'covariance': single pass analysis of the 3x3 covariance of the normals
    2. 'projected': plane fit, then analysis of the 2x2 covariance of the
       normals projected on the tangent plane (two passes)

    Attributes:
        radius (float): Neighborhood radius (range queries)
        k (int): Number of nearest neighbors (k-nearest queries)
        method (str): 'covariance' or 'projected' (default: 'projected')
        kernel (str): Weight kernel name; requires a radius (default: None)
        config (EstimatorConfig): Tunable constants of the fitting stages; a copy
            with verbose logging is used when verbose is set
        verbose (bool): Whether to output progress and summary information
    """

    def __init__(self, radius=None, k=None, method='projected', kernel=None,
                 config=None, verbose=False):
        if method not in METHODS:
            raise PipelineConfigurationError(
                f"Unknown method '{method}' (expected one of: {', '.join(sorted(METHODS))})"
            )
        if kernel is not None and radius is None:
            raise PipelineConfigurationError("A weight kernel needs a neighborhood radius")

        self.radius = radius
        self.k = k
        self.method = method
        self.kernel = kernel
        if config is None:
            config = EstimatorConfig(verbose=verbose)
        elif verbose and not config.verbose:
            config = replace(config, verbose=True)
        self.config = config
        self.verbose = verbose

    def make_pipeline(self):
        """Build the pipeline used for one query point."""
        weight_func = DistanceWeightFunc(self.radius, self.kernel) if self.kernel is not None else None
        return METHODS[self.method](self.config, weight_func)

    def estimate(self, points, normals, query_points=None):
        """
        Estimate curvatures at ``query_points`` (every input point by default).

        Args:
            points (array): (N, 3) array of point coordinates
            normals (array): (N, 3) array of point normals
            query_points (array, optional): (M, 3) array of query positions

        Returns:
            dict: Arrays 'k1', 'k2', 'k_mean', 'k_gaussian' (M,), 'v1', 'v2'
                (M, 3) and 'status' (M,) of FitResult members
        """
        source = KDTreeNeighborSource(points, normals, radius=self.radius, k=self.k)
        if query_points is None:
            query_points = source.points
        query_points = np.asarray(query_points, dtype=float).reshape(-1, 3)

        n_queries = len(query_points)
        k1 = np.zeros(n_queries)
        k2 = np.zeros(n_queries)
        v1 = np.zeros((n_queries, 3))
        v2 = np.zeros((n_queries, 3))
        status = np.empty(n_queries, dtype=object)

        for i, eval_pos in enumerate(tqdm(query_points, desc="Estimating curvatures",
                                          disable=not self.verbose)):
            pipeline = self.make_pipeline()
            status[i] = pipeline.compute(source, eval_pos)
            if status[i] == FitResult.UNDEFINED:
                k1[i] = k2[i] = np.nan
                v1[i] = v2[i] = np.nan
                continue
            result = pipeline.result()
            k1[i], k2[i] = result.k1, result.k2
            v1[i], v2[i] = result.v1, result.v2

        estimates = {
            'k1': k1,
            'k2': k2,
            'k_mean': (k1 + k2) / 2.,
            'k_gaussian': k1 * k2,
            'v1': v1,
            'v2': v2,
            'status': status,
        }

        if self.verbose:
            stats = self.summarize(estimates)
            print("\nCurvature Estimation Results:")
            print(f"Query points: {stats['query_points']:,}")
            print(f"Stable:       {stats['stable']:,}")
            print(f"Unstable:     {stats['unstable']:,}")
            print(f"Undefined:    {stats['undefined']:,}")

        return estimates

    def summarize(self, estimates):
        """Summary statistics of the output of :meth:`estimate`."""
        return summarize_curvatures(estimates)
