"""Entropy of the class distribution at a tree node.

The weighted version follows Breiman et al. (1984), "Classification and Regression Trees":
class probabilities at node t are p(j | t) = p(j, t) / p(t), where
    p(j, t) = prior(j) * (# class j at node t) / (# class j in training)
    p(t) = sum_j p(j, t)
The legacy version uses the empirical class proportions of the node directly.
"""
from typing import Tuple

import numpy as np
from scipy.stats import entropy as shannon_entropy

from priorgain.criterion.priors import PriorConfiguration
from priorgain.util.errors import UndefinedProbabilityError
from priorgain.util.histogram import ClassHistogram

LOG2 = np.log(2)


def lb(x):
    """log_2(x), x should be > 0
    """
    return np.log(x) / LOG2


def weighted_entropy(histogram: ClassHistogram, configuration: PriorConfiguration) -> Tuple[float, float]:
    """Entropy of the histogram weighted by the configured class priors.

    Returns
    -------
    (entropy, p_t): the entropy in bits and the marginal probability of reaching the node
    """
    counts = histogram.counts_for(configuration.classes_)
    train_counts = configuration.train_counts_
    untrained = train_counts == 0
    if np.any(counts[untrained] > 0):
        missing = [c for c, bad in zip(configuration.classes_, untrained & (counts > 0)) if bad]
        raise UndefinedProbabilityError(f'classes {missing} have node counts but no training instances')

    # joint probability p(j, t), written over the previous evaluation's values
    joint = configuration.scratch_
    joint.fill(0.0)
    np.divide(counts, train_counts, out=joint, where=~untrained)
    joint *= configuration.priors_
    p_t = float(joint.sum())
    if not (np.isfinite(p_t) and p_t > 0):
        raise UndefinedProbabilityError(f'marginal node probability is {p_t}')

    # conditional probability p(j | t), 0 * log(0) terms are skipped
    joint /= p_t
    cond = joint[joint > 0]
    entropy = float(-np.sum(cond * lb(cond)))
    return entropy, p_t


def legacy_entropy(histogram: ClassHistogram) -> float:
    """Shannon entropy (bits) of the empirical class proportions, ignoring class priors.
    An empty histogram has entropy 0.
    """
    if histogram.total <= 0:
        return 0.0
    return float(shannon_entropy(histogram.counts_for(histogram.labels), base=2))
