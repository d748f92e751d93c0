"""Information gain of a binary threshold split, as used in C4.5:

    ig(X, Y) = entropy(X + Y) - w_X entropy(X) - w_Y entropy(Y)

The unweighted (legacy) criterion takes w_X = |X| / (|X| + |Y|).
The prior-weighted criterion takes w_X = p(X) / p(X + Y), with p the marginal node probability
computed from the class priors. These weights are not renormalized to sum to 1.
"""
import logging
from copy import deepcopy
from typing import Sequence, Tuple

import numpy as np
from joblib import Parallel, delayed, effective_n_jobs
from sklearn.base import BaseEstimator

from priorgain.criterion.entropy import legacy_entropy, weighted_entropy
from priorgain.criterion.priors import PriorConfiguration, configure_priors
from priorgain.util.errors import ComputationError, UndefinedProbabilityError
from priorgain.util.histogram import ClassHistogram, debug_check_partition

gain_logger = logging.getLogger("priorgain.split_gain")


class SplitCriterion:
    """Scores a candidate split of a node into a positive and a negative branch.
    """

    def node_entropy(self, histogram: ClassHistogram) -> float:
        raise NotImplementedError

    def split_gain(self, base: ClassHistogram, positive: ClassHistogram, negative: ClassHistogram) -> float:
        raise NotImplementedError


class UnweightedCriterion(SplitCriterion):
    """Legacy gain: branch entropies weighted by their share of the base instances.
    """

    def node_entropy(self, histogram):
        return legacy_entropy(histogram)

    def split_gain(self, base, positive, negative):
        total_count = base.total
        if total_count <= 0:
            raise UndefinedProbabilityError('cannot compute gain for an empty base histogram')
        proportion_positive = positive.total / total_count
        proportion_negative = negative.total / total_count
        return (self.node_entropy(base)
                - proportion_positive * self.node_entropy(positive)
                - proportion_negative * self.node_entropy(negative))

    def __repr__(self):
        return 'UnweightedCriterion()'


class PriorWeightedCriterion(SplitCriterion):
    """Gain from prior-weighted entropies.

    Each branch is weighted by its prior-adjusted probability of being reached relative to the
    base node, rather than by its raw share of instances, which corrects for class imbalance.
    Not thread-safe: evaluations write into the configuration's scratch buffer.
    """

    def __init__(self, configuration: PriorConfiguration):
        self.configuration = configuration

    def node_entropy(self, histogram):
        return weighted_entropy(histogram, self.configuration)[0]

    def branch_weights(self, base, positive, negative) -> Tuple[float, float]:
        _, base_p = weighted_entropy(base, self.configuration)
        _, pos_p = weighted_entropy(positive, self.configuration)
        _, neg_p = weighted_entropy(negative, self.configuration)
        return pos_p / base_p, neg_p / base_p

    def split_gain(self, base, positive, negative):
        base_entropy, base_p = weighted_entropy(base, self.configuration)
        pos_entropy, pos_p = weighted_entropy(positive, self.configuration)
        neg_entropy, neg_p = weighted_entropy(negative, self.configuration)

        pos_wt = pos_p / base_p
        neg_wt = neg_p / base_p
        return base_entropy - pos_wt * pos_entropy - neg_wt * neg_entropy

    def __deepcopy__(self, memo):
        return PriorWeightedCriterion(self.configuration.copy())

    def __repr__(self):
        return f'PriorWeightedCriterion({self.configuration!r})'


def compute_split_gain(base: ClassHistogram, positive: ClassHistogram, negative: ClassHistogram,
                       criterion: SplitCriterion = None) -> float:
    """Information gain of splitting base into positive and negative.
    Uses the unweighted criterion when no criterion is given.
    """
    if criterion is None:
        criterion = UnweightedCriterion()
    return criterion.split_gain(base, positive, negative)


def _evaluate_chunk(criterion, base, chunk, errors):
    gains = np.empty(len(chunk))
    for i, (positive, negative) in enumerate(chunk):
        try:
            gains[i] = criterion.split_gain(base, positive, negative)
        except ComputationError as e:
            if errors == 'raise':
                raise
            gain_logger.debug("Skipping candidate split: %s", e)
            gains[i] = np.nan
    return gains


class InformationGainEvaluator(BaseEstimator):
    def __init__(self, class_priors: dict = None, check_partition: bool = False, n_jobs: int = None):
        """Information gain criterion for choosing decision tree splits.

        Starts out with the unweighted (legacy) criterion. Calling `configure` or `fit` switches it to
        the prior-weighted criterion for the configured classes.

        Params
        ------
        class_priors: dict, optional
            class label -> prior probability, used when configuring without explicit priors.
            If None, the relative training frequencies are used.
        check_partition: bool
            If True, compute_split_gain raises a ValueError when the branches do not partition the base.
            Off by default since it is comparatively slow.
        n_jobs: int, optional
            Number of joblib workers used by evaluate_candidates. Every worker gets its own copy
            of the criterion.
        """
        self.class_priors = class_priors
        self.check_partition = check_partition
        self.n_jobs = n_jobs

    def configure(self, train_counts, priors=None):
        """Switch to the prior-weighted criterion.

        Params
        ------
        train_counts: mapping
            class label -> number of training instances
        priors: mapping, optional
            class label -> prior probability (defaults to self.class_priors)
        """
        if priors is None:
            priors = self.class_priors
        configuration = configure_priors(train_counts, priors=priors)
        self.criterion_ = PriorWeightedCriterion(configuration)
        self.classes_ = configuration.classes_
        return self

    def fit(self, y, sample_weight=None):
        """Configure from a vector of training labels.
        sample_weight is not supported since training counts are instance counts.
        """
        if sample_weight is not None:
            raise ValueError('sample_weight is not supported, training counts must be instance counts')
        configuration = PriorConfiguration.from_labels(y, priors=self.class_priors)
        self.criterion_ = PriorWeightedCriterion(configuration)
        self.classes_ = configuration.classes_
        return self

    def reset(self):
        """Go back to the unweighted criterion.
        """
        for attr in ['criterion_', 'classes_']:
            if hasattr(self, attr):
                delattr(self, attr)
        return self

    @property
    def is_weighted(self) -> bool:
        return hasattr(self, 'criterion_')

    @property
    def criterion(self) -> SplitCriterion:
        if self.is_weighted:
            return self.criterion_
        return UnweightedCriterion()

    def compute_split_gain(self, base, positive, negative) -> float:
        if self.check_partition and not debug_check_partition(base, positive, negative):
            raise ValueError('positive and negative histograms do not partition the base histogram')
        return self.criterion.split_gain(base, positive, negative)

    def evaluate_candidates(self, base: ClassHistogram, candidates: Sequence[Tuple[ClassHistogram, ClassHistogram]],
                            errors: str = 'raise') -> np.ndarray:
        """Gain of every (positive, negative) candidate split of base.

        Params
        ------
        errors: str
            'raise' propagates computation errors, 'skip' gives the failing candidates a NaN gain
        """
        if errors not in ('raise', 'skip'):
            raise ValueError(f"errors should be 'raise' or 'skip', got {errors!r}")
        candidates = list(candidates)
        if self.check_partition:
            for positive, negative in candidates:
                if not debug_check_partition(base, positive, negative):
                    raise ValueError('positive and negative histograms do not partition the base histogram')
        if len(candidates) == 0:
            return np.empty(0)

        n_jobs = min(effective_n_jobs(self.n_jobs), len(candidates))
        chunks = [c for c in np.array_split(np.arange(len(candidates)), n_jobs) if len(c) > 0]
        gain_logger.debug("Evaluating %d candidate splits in %d chunks", len(candidates), len(chunks))
        results = Parallel(n_jobs=n_jobs)(
            delayed(_evaluate_chunk)(deepcopy(self.criterion), base, [candidates[i] for i in idx], errors)
            for idx in chunks)
        return np.concatenate(results)

    def best_candidate(self, base, candidates, errors: str = 'skip'):
        """Index and gain of the best candidate split. NaN gains are never chosen.
        Returns (None, nan) if no candidate has a valid gain.
        """
        gains = self.evaluate_candidates(base, candidates, errors=errors)
        if gains.size == 0 or np.all(np.isnan(gains)):
            return None, np.nan
        idx = int(np.nanargmax(gains))
        return idx, float(gains[idx])
