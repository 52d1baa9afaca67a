import numpy as np
import pytest

from curvature_fit import (DimensionError, KDTreeNeighborSource, PipelineConfigurationError,
                           Sample, SequenceNeighborSource)


@pytest.fixture
def line_cloud():
    points = np.column_stack((np.arange(10, dtype=float), np.zeros(10), np.zeros(10)))
    normals = np.tile([0.0, 0.0, 1.0], (10, 1))
    return points, normals


def test_sample_is_read_only():
    sample = Sample([1, 2, 3], [0, 0, 1])

    assert sample.position.dtype == float
    with pytest.raises(ValueError):
        sample.position[0] = 5.0


def test_sample_shape():
    with pytest.raises(DimensionError):
        Sample([1.0, 2.0], [0.0, 1.0])


def test_range_query(line_cloud):
    points, normals = line_cloud
    source = KDTreeNeighborSource(points, normals, radius=1.5)

    indices = sorted(source.query_indices([4.0, 0.0, 0.0]))

    assert indices == [3, 4, 5]


def test_knn_query(line_cloud):
    points, normals = line_cloud
    source = KDTreeNeighborSource(points, normals, k=4)

    indices = sorted(source.query_indices([0.2, 0.0, 0.0]))

    assert indices == [0, 1, 2, 3]


def test_knn_larger_than_cloud(line_cloud):
    points, normals = line_cloud
    source = KDTreeNeighborSource(points, normals, k=50)

    assert len(source.query_indices([0.0, 0.0, 0.0])) == 10


def test_cursor_protocol(line_cloud):
    points, normals = line_cloud
    source = KDTreeNeighborSource(points, normals, radius=1.5)
    cursor = source.begin_query([4.0, 0.0, 0.0])

    seen = []
    while cursor.has_next():
        seen.append(cursor.current().position[0])
        cursor.advance()

    assert sorted(seen) == [3.0, 4.0, 5.0]
    with pytest.raises(IndexError):
        cursor.current()


def test_cursors_are_independent(line_cloud):
    points, normals = line_cloud
    source = KDTreeNeighborSource(points, normals, radius=1.5)
    first = source.begin_query([4.0, 0.0, 0.0])
    second = source.begin_query([4.0, 0.0, 0.0])

    next(first)
    next(first)

    assert len(list(second)) == 3
    assert len(list(first)) == 1


def test_source_validation(line_cloud):
    points, normals = line_cloud

    with pytest.raises(PipelineConfigurationError):
        KDTreeNeighborSource(points, normals)
    with pytest.raises(PipelineConfigurationError):
        KDTreeNeighborSource(points, normals, radius=1.0, k=3)
    with pytest.raises(PipelineConfigurationError):
        KDTreeNeighborSource(points, normals, radius=-1.0)
    with pytest.raises(DimensionError):
        KDTreeNeighborSource(points[:, :2], normals[:, :2], radius=1.0)
    with pytest.raises(DimensionError):
        KDTreeNeighborSource(points, normals[:5], radius=1.0)


def test_query_dimension(line_cloud):
    points, normals = line_cloud
    source = KDTreeNeighborSource(points, normals, radius=1.0)

    with pytest.raises(DimensionError):
        source.query_indices([0.0, 0.0])


def test_sequence_source_restarts(line_cloud):
    points, normals = line_cloud
    source = SequenceNeighborSource.from_arrays(points, normals)

    assert len(list(source.begin_query(np.zeros(3)))) == 10
    assert len(list(source.begin_query(np.ones(3)))) == 10
