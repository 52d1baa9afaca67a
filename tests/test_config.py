import pytest

from curvature_fit import EigenSelection, EstimatorConfig, PipelineConfigurationError


def test_defaults():
    config = EstimatorConfig()

    assert config.min_samples_covariance == 3
    assert config.min_samples_projected == 2
    assert config.eigen_selection == EigenSelection.NORMAL_AXIS
    assert not config.use_weights


def test_eigen_selection_from_string():
    assert EstimatorConfig(eigen_selection='extreme').eigen_selection == EigenSelection.EXTREME


@pytest.mark.parametrize("kwargs", [
    {'eigen_selection': 'most_distinct'},
    {'min_samples_covariance': 2},
    {'min_samples_projected': 1},
    {'max_passes': 0},
    {'flat_epsilon': -1.0},
    {'min_normal_alignment': 1.5},
])
def test_invalid_values(kwargs):
    with pytest.raises(PipelineConfigurationError):
        EstimatorConfig(**kwargs)
