"""Composition of fitting stages into a pipeline driven over a neighborhood."""

import logging
from enum import Enum

from curvature_fit.config import EstimatorConfig
from curvature_fit.core.curvature_estimation import (NormalCovarianceCurvature,
                                                     ProjectedNormalCovarianceCurvature)
from curvature_fit.core.fitting import FitResult, PROVIDES_PRINCIPAL_CURVATURES
from curvature_fit.core.plane_fit import CovariancePlaneFit
from curvature_fit.exceptions import PipelineConfigurationError, PreconditionError

logger = logging.getLogger(__name__)


class PipelineState(Enum):
    AWAITING_PASS_1 = 1
    AWAITING_PASS_2 = 2
    DONE = 3


# Precedence used to merge the results of the stages
_RESULT_PRIORITY = (
    FitResult.NEED_OTHER_PASS,
    FitResult.UNDEFINED,
    FitResult.UNSTABLE,
    FitResult.STABLE,
)


def combine_results(results):
    """Merge stage results: another pass wins, then UNDEFINED, UNSTABLE, STABLE."""
    for result in _RESULT_PRIORITY:
        if result in results:
            return result
    raise PipelineConfigurationError("Cannot combine an empty list of results")


class FittingPipeline:
    """
    An ordered list of fitting stages fed with the same neighbors.

    Capabilities are checked when the pipeline is assembled: every capability a
    stage ``requires`` must be provided by a stage placed before it, which is
    then bound to it. Each neighbor is passed to every stage in order, and
    ``finalize`` closes the stages in order so that providers are finalized
    before their consumers.

    Example:
        pipeline = FittingPipeline([CovariancePlaneFit(), ProjectedNormalCovarianceCurvature()])
        result = pipeline.compute(source, eval_pos)
        if result == FitResult.STABLE:
            k1, k2 = pipeline.curvature.k1(), pipeline.curvature.k2()
    """

    def __init__(self, stages, max_passes=None):
        self.stages = list(stages)
        if not self.stages:
            raise PipelineConfigurationError("A pipeline needs at least one stage")

        dims = {stage.dim for stage in self.stages}
        if len(dims) != 1:
            raise PipelineConfigurationError(f"Stages disagree on dimensionality: {sorted(dims)}")
        self.dim = dims.pop()

        self._providers = {}
        for stage in self.stages:
            missing = [cap for cap in sorted(stage.requires) if cap not in self._providers]
            if missing:
                raise PipelineConfigurationError(
                    f"{type(stage).__name__} requires {', '.join(missing)}, "
                    f"which no earlier stage of the pipeline provides"
                )
            stage.bind({cap: self._providers[cap] for cap in stage.requires})
            for cap in stage.provides:
                self._providers.setdefault(cap, stage)

        if max_passes is None:
            max_passes = max(stage.config.max_passes for stage in self.stages)
        self.max_passes = max_passes

        self._state = PipelineState.AWAITING_PASS_1
        self._pass_index = 0
        self._accumulating = False
        self._result = FitResult.UNDEFINED

    def provider(self, capability):
        """The stage providing ``capability``."""
        try:
            return self._providers[capability]
        except KeyError:
            raise PipelineConfigurationError(f"No stage of the pipeline provides '{capability}'") from None

    @property
    def curvature(self):
        """The stage providing principal curvatures."""
        return self.provider(PROVIDES_PRINCIPAL_CURVATURES)

    def result(self):
        return self.curvature.result()

    @property
    def state(self):
        return self._state

    @property
    def accumulating(self):
        return self._accumulating

    @property
    def last_result(self):
        return self._result

    # Protocol

    def reset(self):
        for stage in self.stages:
            stage.reset()
        self._state = PipelineState.AWAITING_PASS_1
        self._pass_index = 0
        self._accumulating = False
        self._result = FitResult.UNDEFINED

    def init(self, eval_pos):
        """Start the next pass at ``eval_pos``; restarts from the first pass once done."""
        if self._accumulating:
            raise PreconditionError("init called while a pass is still accumulating; call finalize first")
        if self._state == PipelineState.DONE:
            self.reset()

        for stage in self.stages:
            stage.init(eval_pos)
        self._accumulating = True

    def add_neighbor(self, sample):
        """Feed ``sample`` to every stage; returns whether any stage accepted it."""
        if not self._accumulating:
            raise PreconditionError("add_neighbor called outside of a pass; call init first")

        accepted = False
        for stage in self.stages:
            accepted = stage.add_neighbor(sample) or accepted
        return accepted

    def finalize(self):
        if not self._accumulating:
            raise PreconditionError("finalize called without a pass in progress; call init first")

        self._accumulating = False
        results = [stage.finalize() for stage in self.stages]
        self._result = combine_results(results)
        self._pass_index += 1

        if self._result == FitResult.NEED_OTHER_PASS:
            if self._pass_index >= self.max_passes:
                raise PreconditionError(
                    f"Pipeline still requests another pass after {self._pass_index} passes"
                )
            self._state = PipelineState.AWAITING_PASS_2
        else:
            self._state = PipelineState.DONE

        level = logging.INFO if any(stage.config.verbose for stage in self.stages) else logging.DEBUG
        logger.log(level, "Pass %d finalized: %s", self._pass_index, self._result.name)
        return self._result

    # Drivers

    def compute(self, source, eval_pos):
        """
        Run every pass over the neighbors of ``eval_pos`` in ``source``.

        Args:
            source: Neighbor source exposing ``begin_query(eval_pos)``
            eval_pos (array): (3,) query position

        Returns:
            FitResult: Result of the last pass
        """
        if getattr(source, 'dim', self.dim) != self.dim:
            raise PipelineConfigurationError(
                f"Neighbor source is {source.dim}D but the pipeline works in {self.dim}D"
            )
        if self._state != PipelineState.AWAITING_PASS_1 or self._accumulating:
            self.reset()

        while True:
            self.init(eval_pos)
            cursor = source.begin_query(eval_pos)
            while cursor.has_next():
                self.add_neighbor(cursor.current())
                cursor.advance()
            result = self.finalize()
            if result != FitResult.NEED_OTHER_PASS:
                return result

    def compute_samples(self, samples, eval_pos):
        """Same as :meth:`compute` over a re-iterable sequence of samples."""
        if self._state != PipelineState.AWAITING_PASS_1 or self._accumulating:
            self.reset()

        while True:
            self.init(eval_pos)
            for sample in samples:
                self.add_neighbor(sample)
            result = self.finalize()
            if result != FitResult.NEED_OTHER_PASS:
                return result


def normal_covariance_pipeline(config=None, weight_func=None):
    """Single pass pipeline estimating curvature from the 3x3 normal covariance."""
    config = config if config is not None else EstimatorConfig()
    return FittingPipeline([NormalCovarianceCurvature(config, weight_func)])


def projected_normal_covariance_pipeline(config=None, weight_func=None):
    """Two pass pipeline: plane fit, then the 2x2 covariance of projected normals."""
    config = config if config is not None else EstimatorConfig()
    return FittingPipeline([
        CovariancePlaneFit(config, weight_func),
        ProjectedNormalCovarianceCurvature(config, weight_func),
    ])
