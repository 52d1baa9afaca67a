"""Synthetic neighborhoods shared by the tests."""

import numpy as np
import pytest

from curvature_fit import Sample


def make_samples(points, normals):
    return [Sample(p, n) for p, n in zip(points, normals)]


@pytest.fixture
def plane_samples():
    """5x5 grid in the XY plane around the origin, all normals +Z."""
    xs, ys = np.meshgrid(np.linspace(-0.2, 0.2, 5), np.linspace(-0.2, 0.2, 5))
    points = np.column_stack((xs.ravel(), ys.ravel(), np.zeros(xs.size)))
    normals = np.tile([0.0, 0.0, 1.0], (len(points), 1))
    return np.zeros(3), make_samples(points, normals)


@pytest.fixture
def cylinder_samples():
    """Patch of a unit cylinder of axis Z around (1, 0, 0)."""
    theta, z = np.meshgrid(np.linspace(-0.4, 0.4, 9), np.linspace(-0.4, 0.4, 9))
    theta, z = theta.ravel(), z.ravel()
    points = np.column_stack((np.cos(theta), np.sin(theta), z))
    normals = np.column_stack((np.cos(theta), np.sin(theta), np.zeros_like(theta)))
    return np.array([1.0, 0.0, 0.0]), make_samples(points, normals)


@pytest.fixture
def sphere_samples():
    """Patch of a unit sphere around its north pole."""
    xs, ys = np.meshgrid(np.linspace(-0.3, 0.3, 7), np.linspace(-0.3, 0.3, 7))
    xs, ys = xs.ravel(), ys.ravel()
    points = np.column_stack((xs, ys, np.sqrt(1.0 - xs ** 2 - ys ** 2)))
    return np.array([0.0, 0.0, 1.0]), make_samples(points, points.copy())


@pytest.fixture
def flipped_samples():
    """Planar grid whose normals alternate between +Z and -Z."""
    xs, ys = np.meshgrid(np.linspace(-0.2, 0.2, 5), np.linspace(-0.2, 0.2, 5))
    points = np.column_stack((xs.ravel(), ys.ravel(), np.zeros(xs.size)))
    signs = np.where(np.arange(len(points)) % 2 == 0, 1.0, -1.0)
    normals = np.outer(signs, [0.0, 0.0, 1.0])
    # Drop the origin so both orientations are equally represented
    keep = np.any(points != 0, axis=1)
    return np.zeros(3), make_samples(points[keep], normals[keep])


@pytest.fixture
def cylinder_cloud():
    """Dense unit cylinder of axis Z, with outward normals."""
    theta, z = np.meshgrid(np.arange(120) * 2 * np.pi / 120, np.linspace(-1.0, 1.0, 41))
    theta, z = theta.ravel(), z.ravel()
    points = np.column_stack((np.cos(theta), np.sin(theta), z))
    normals = np.column_stack((np.cos(theta), np.sin(theta), np.zeros_like(theta)))
    return points, normals
