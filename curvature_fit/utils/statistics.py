"""Statistical functions for analyzing curvature estimates."""

import numpy as np
from scipy import stats as scipy_stats

from curvature_fit.core.fitting import FitResult


def describe_values(values):
    """
    Describe the finite entries of ``values``.

    Args:
        values (array): (N,) array, possibly containing NaN

    Returns:
        dict: 'count', 'min', 'max', 'mean', 'median' and 'std' (NaN when empty)
    """
    values = np.asarray(values, dtype=float)
    values = values[np.isfinite(values)]
    if len(values) == 0:
        return {'count': 0, 'min': np.nan, 'max': np.nan, 'mean': np.nan,
                'median': np.nan, 'std': np.nan}
    if len(values) == 1:
        value = float(values[0])
        return {'count': 1, 'min': value, 'max': value, 'mean': value,
                'median': value, 'std': 0.0}

    described = scipy_stats.describe(values)
    return {
        'count': int(described.nobs),
        'min': float(described.minmax[0]),
        'max': float(described.minmax[1]),
        'mean': float(described.mean),
        'median': float(np.median(values)),
        'std': float(np.sqrt(described.variance)),
    }


def summarize_curvatures(estimates):
    """
    Create a summary of a batch of curvature estimates.

    Args:
        estimates (dict): Output of CurvatureFit.estimate

    Returns:
        dict: Status counts and descriptions of k1, k2, mean and Gaussian
            curvature over the STABLE estimates
    """
    status = np.asarray(estimates['status'], dtype=object)
    stable = np.array([s == FitResult.STABLE for s in status], dtype=bool)

    summary = {
        'query_points': len(status),
        'stable': int(stable.sum()),
        'unstable': int(sum(s == FitResult.UNSTABLE for s in status)),
        'undefined': int(sum(s == FitResult.UNDEFINED for s in status)),
    }
    summary['stable_percentage'] = (summary['stable'] / summary['query_points']) * 100 if len(status) else 0.0

    for key in ('k1', 'k2', 'k_mean', 'k_gaussian'):
        summary[key] = describe_values(np.asarray(estimates[key])[stable])

    return summary
