"""Geometric utility functions for the fitting stages."""

import numpy as np

from curvature_fit.exceptions import DimensionError


def normalize(vector):
    """Return ``vector`` scaled to unit length; zero vectors are returned unchanged."""
    vector = np.asarray(vector, dtype=float)
    norm = np.linalg.norm(vector)
    if norm == 0:
        return vector
    return vector / norm


def symmetric_eigen(matrix):
    """
    Eigendecomposition of a small symmetric matrix.

    Args:
        matrix (array): (2, 2) or (3, 3) symmetric matrix

    Returns:
        tuple: (eigenvalues in ascending order, unit eigenvectors as columns)
    """
    matrix = np.asarray(matrix, dtype=float)
    if matrix.shape not in ((2, 2), (3, 3)):
        raise DimensionError(f"Expected a 2x2 or 3x3 matrix, got shape {matrix.shape}")

    # Symmetrize to drop round-off from the accumulation
    matrix = 0.5 * (matrix + matrix.T)
    eigenvals, eigenvecs = np.linalg.eigh(matrix)
    return eigenvals, eigenvecs


def tangent_frame(normal):
    """
    Build an orthonormal basis of the plane orthogonal to ``normal``.

    Args:
        normal (array): (3,) plane normal, not necessarily unit length

    Returns:
        array: (3, 2) matrix whose columns (t1, t2) span the tangent plane,
            with (t1, t2, normal) right-handed
    """
    z_axis = normalize(normal)
    if z_axis.shape != (3,):
        raise DimensionError(f"Expected a 3D normal, got shape {z_axis.shape}")

    x_axis = np.array([1.0, 0.0, 0.0])
    if abs(np.dot(x_axis, z_axis)) > 0.9:
        x_axis = np.array([0.0, 1.0, 0.0])
    y_axis = np.cross(z_axis, x_axis)
    y_axis = y_axis / np.linalg.norm(y_axis)
    x_axis = np.cross(y_axis, z_axis)

    return np.column_stack((x_axis, y_axis))
