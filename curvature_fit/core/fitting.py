"""Accumulate/finalize protocol shared by every fitting stage."""

import logging
from enum import Enum

import numpy as np

from curvature_fit.config import EstimatorConfig
from curvature_fit.exceptions import DimensionError, PreconditionError

logger = logging.getLogger(__name__)

PROVIDES_PLANE = 'plane'
PROVIDES_PRINCIPAL_CURVATURES = 'principal_curvatures'


class FitResult(Enum):
    """Outcome of a ``finalize`` call."""

    STABLE = 0
    UNSTABLE = 1
    UNDEFINED = 2
    NEED_OTHER_PASS = 3


class FittingStage:
    """
    Base class of the stages driven by a :class:`FittingPipeline`.

    A caller runs ``init(eval_pos)``, feeds every neighbor sample to
    ``add_neighbor`` and closes the pass with ``finalize``. Stages that need
    another sweep over the same neighborhood answer ``NEED_OTHER_PASS`` and the
    whole cycle is repeated.

    Subclasses implement the hooks ``_reset_accumulators``, ``_accumulate`` and
    ``_finalize``, and declare the capabilities they ``provides`` and
    ``requires``.

    Attributes:
        config (EstimatorConfig): Tunable constants
        weight_func: Optional functor mapping (eval_pos, sample) to a weight
    """

    provides = frozenset()
    requires = frozenset()
    dim = 3

    def __init_subclass__(cls, **kwargs):
        super().__init_subclass__(**kwargs)
        if cls.dim != 3:
            raise DimensionError(f"{cls.__name__} declares dim={cls.dim}; only 3D stages are supported")

    def __init__(self, config=None, weight_func=None):
        self.config = config if config is not None else EstimatorConfig()
        self.weight_func = weight_func
        self._providers = {}
        self.reset()

    def reset(self):
        """Forget everything, including state kept across passes."""
        self._eval_pos = None
        self._n_neighbors = 0
        self._sum_w = 0.0
        self._state = FitResult.UNDEFINED
        self._accumulating = False
        self._finalized = False

    def bind(self, providers):
        """Receive the stages providing each capability listed in ``requires``."""
        self._providers = dict(providers)

    def provider(self, capability):
        try:
            return self._providers[capability]
        except KeyError:
            raise PreconditionError(
                f"{type(self).__name__} requires a stage providing '{capability}' but none was bound"
            ) from None

    # Protocol

    def init(self, eval_pos):
        """Start a pass at ``eval_pos``."""
        eval_pos = np.asarray(eval_pos, dtype=float)
        if eval_pos.shape != (self.dim,):
            raise DimensionError(f"Expected a query position of shape ({self.dim},), got {eval_pos.shape}")

        self._eval_pos = eval_pos
        self._n_neighbors = 0
        self._sum_w = 0.0
        self._state = FitResult.UNDEFINED
        self._accumulating = True
        self._finalized = False
        self._reset_accumulators()

    def neighbor_weight(self, sample):
        """
        Weight of ``sample`` for the current query, 0 when it is rejected.

        A sample is rejected when its position or normal is not finite, when it
        lies on the query point (if ``exclude_query_point`` is set), or when the
        weight functor gives it a nonpositive weight.
        """
        if not (np.all(np.isfinite(sample.position)) and np.all(np.isfinite(sample.normal))):
            return 0.0
        if self.config.exclude_query_point:
            if np.linalg.norm(sample.position - self._eval_pos) <= self.config.coincidence_tolerance:
                return 0.0
        if self.weight_func is None:
            return 1.0
        return max(float(self.weight_func.w(self._eval_pos, sample)), 0.0)

    def add_neighbor(self, sample):
        """Add ``sample`` to the current pass; returns whether it was accepted."""
        if not self._accumulating:
            raise PreconditionError(f"{type(self).__name__}.add_neighbor called outside of a pass; call init first")

        w = self.neighbor_weight(sample)
        if w <= 0:
            return False

        self._n_neighbors += 1
        self._sum_w += w
        self._accumulate(sample, w if self.config.use_weights else 1.0)
        return True

    def finalize(self):
        """Close the current pass and return its :class:`FitResult`."""
        if self._eval_pos is None:
            raise PreconditionError(f"{type(self).__name__}.finalize called before init")
        if not self._accumulating:
            raise PreconditionError(f"{type(self).__name__}.finalize called twice for the same pass")

        self._accumulating = False
        self._finalized = True
        if self._n_neighbors == 0 or self._sum_w <= 0:
            self._state = FitResult.UNDEFINED
        else:
            self._state = FitResult.STABLE
        self._state = self._finalize()

        self._log("%s finalized with %d neighbors: %s", type(self).__name__,
                  self._n_neighbors, self._state.name)
        return self._state

    # Hooks

    def _reset_accumulators(self):
        pass

    def _accumulate(self, sample, w):
        pass

    def _finalize(self):
        return self._state

    # Accessors

    @property
    def state(self):
        return self._state

    @property
    def eval_pos(self):
        return self._eval_pos

    @property
    def n_neighbors(self):
        return self._n_neighbors

    @property
    def sum_weights(self):
        return self._sum_w

    @property
    def finalized(self):
        """True once ``finalize`` ran for the pass started by the last ``init``."""
        return self._finalized

    @property
    def is_ready(self):
        return self._finalized and self._state in (FitResult.STABLE, FitResult.UNSTABLE)

    @property
    def is_stable(self):
        return self._finalized and self._state == FitResult.STABLE

    def _weights_total(self):
        """Normalization of the accumulated sums."""
        return self._sum_w if self.config.use_weights else float(self._n_neighbors)

    def _log(self, msg, *args):
        level = logging.INFO if self.config.verbose else logging.DEBUG
        logger.log(level, msg, *args)
