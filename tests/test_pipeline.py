import logging

import numpy as np
import pytest

from curvature_fit import (CovariancePlaneFit, DimensionError, EstimatorConfig, FitResult,
                           FittingPipeline, FittingStage, KDTreeNeighborSource,
                           NormalCovarianceCurvature, PipelineConfigurationError,
                           PreconditionError, ProjectedNormalCovarianceCurvature, Sample,
                           SequenceNeighborSource, normal_covariance_pipeline,
                           projected_normal_covariance_pipeline)
from curvature_fit.core.pipeline import PipelineState, combine_results


def test_missing_capability_is_rejected():
    with pytest.raises(PipelineConfigurationError, match="plane"):
        FittingPipeline([ProjectedNormalCovarianceCurvature()])


def test_provider_must_come_first():
    with pytest.raises(PipelineConfigurationError):
        FittingPipeline([ProjectedNormalCovarianceCurvature(), CovariancePlaneFit()])


def test_empty_pipeline():
    with pytest.raises(PipelineConfigurationError):
        FittingPipeline([])


def test_non_3d_stage_is_rejected_at_definition():
    with pytest.raises(DimensionError):
        class PlanarStage(FittingStage):
            dim = 2


def test_query_position_must_be_3d():
    pipeline = normal_covariance_pipeline()

    with pytest.raises(DimensionError):
        pipeline.init(np.zeros(2))


def test_source_dimension_is_checked():
    class PlanarSource:
        dim = 2

        def begin_query(self, eval_pos):
            return iter(())

    with pytest.raises(PipelineConfigurationError):
        normal_covariance_pipeline().compute(PlanarSource(), np.zeros(3))


def test_add_neighbor_requires_init():
    pipeline = normal_covariance_pipeline()

    with pytest.raises(PreconditionError):
        pipeline.add_neighbor(Sample([1.0, 0.0, 0.0], [0.0, 0.0, 1.0]))


def test_finalize_requires_init():
    with pytest.raises(PreconditionError):
        normal_covariance_pipeline().finalize()
    with pytest.raises(PreconditionError):
        NormalCovarianceCurvature().finalize()


def test_stage_add_neighbor_requires_init():
    with pytest.raises(PreconditionError):
        NormalCovarianceCurvature().add_neighbor(Sample([1.0, 0.0, 0.0], [0.0, 0.0, 1.0]))


def test_add_neighbor_after_done(plane_samples):
    eval_pos, samples = plane_samples
    pipeline = normal_covariance_pipeline()
    pipeline.compute_samples(samples, eval_pos)

    assert pipeline.state == PipelineState.DONE
    with pytest.raises(PreconditionError):
        pipeline.add_neighbor(samples[0])


def test_init_twice_without_finalize(plane_samples):
    eval_pos, _ = plane_samples
    pipeline = normal_covariance_pipeline()
    pipeline.init(eval_pos)

    with pytest.raises(PreconditionError):
        pipeline.init(eval_pos)


def test_single_pass_state_machine(cylinder_samples):
    eval_pos, samples = cylinder_samples
    pipeline = normal_covariance_pipeline()
    assert pipeline.state == PipelineState.AWAITING_PASS_1

    pipeline.init(eval_pos)
    assert pipeline.accumulating
    for sample in samples:
        pipeline.add_neighbor(sample)

    assert pipeline.finalize() == FitResult.STABLE
    assert pipeline.state == PipelineState.DONE
    assert not pipeline.accumulating
    assert pipeline.last_result == FitResult.STABLE


def test_max_passes():
    stages = [CovariancePlaneFit(), ProjectedNormalCovarianceCurvature()]
    pipeline = FittingPipeline(stages, max_passes=1)
    samples = [Sample([x, y, 0.0], [0.0, 0.0, 1.0]) for x in (-1, 0, 1) for y in (-1, 1)]

    with pytest.raises(PreconditionError):
        pipeline.compute_samples(samples, np.zeros(3))


def test_add_neighbor_reports_acceptance():
    pipeline = projected_normal_covariance_pipeline()
    pipeline.init(np.zeros(3))

    assert not pipeline.add_neighbor(Sample([0.0, 0.0, 0.0], [0.0, 0.0, 1.0]))
    assert pipeline.add_neighbor(Sample([1.0, 0.0, 0.0], [0.0, 0.0, 1.0]))


def test_combine_results():
    assert combine_results([FitResult.STABLE, FitResult.NEED_OTHER_PASS]) == FitResult.NEED_OTHER_PASS
    assert combine_results([FitResult.UNSTABLE, FitResult.UNDEFINED]) == FitResult.UNDEFINED
    assert combine_results([FitResult.STABLE, FitResult.UNSTABLE]) == FitResult.UNSTABLE
    assert combine_results([FitResult.STABLE]) == FitResult.STABLE


def test_provider_lookup():
    pipeline = normal_covariance_pipeline()

    assert isinstance(pipeline.curvature, NormalCovarianceCurvature)
    with pytest.raises(PipelineConfigurationError):
        pipeline.provider('plane')


def test_compute_matches_compute_samples(cylinder_samples):
    eval_pos, samples = cylinder_samples
    from_source = projected_normal_covariance_pipeline()
    from_samples = projected_normal_covariance_pipeline()

    assert from_source.compute(SequenceNeighborSource(samples), eval_pos) == FitResult.STABLE
    assert from_samples.compute_samples(samples, eval_pos) == FitResult.STABLE
    assert from_source.curvature.k1() == from_samples.curvature.k1()
    assert from_source.curvature.k2() == from_samples.curvature.k2()


def test_compute_over_kdtree(cylinder_cloud):
    points, normals = cylinder_cloud
    source = KDTreeNeighborSource(points, normals, radius=0.3)
    eval_pos = np.array([1.0, 0.0, 0.0])

    for pipeline in (normal_covariance_pipeline(), projected_normal_covariance_pipeline()):
        assert pipeline.compute(source, eval_pos) == FitResult.STABLE
        curvature = pipeline.curvature
        assert curvature.k1() > 0
        assert abs(curvature.k2()) < 1e-3 * curvature.k1()
        assert abs(np.dot(curvature.k2_direction(), [0.0, 0.0, 1.0])) > 0.99


def test_compute_restarts_after_partial_run(cylinder_samples):
    eval_pos, samples = cylinder_samples
    pipeline = projected_normal_covariance_pipeline()
    pipeline.init(eval_pos)
    pipeline.add_neighbor(samples[0])

    assert pipeline.compute_samples(samples, eval_pos) == FitResult.STABLE


def test_verbose_logging(cylinder_samples, caplog):
    eval_pos, samples = cylinder_samples
    pipeline = projected_normal_covariance_pipeline(EstimatorConfig(verbose=True))

    with caplog.at_level(logging.INFO, logger='curvature_fit'):
        pipeline.compute_samples(samples, eval_pos)

    assert "Pass 1 finalized: NEED_OTHER_PASS" in caplog.text
    assert "Pass 2 finalized: STABLE" in caplog.text
