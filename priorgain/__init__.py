"""
Information gain split criterion for decision trees, optionally weighted by class priors.
"""
# Python `priorgain` package, the entropy / information gain criterion used to pick decision tree splits.

from .criterion.entropy import legacy_entropy, weighted_entropy
from .criterion.priors import PriorConfiguration, configure_priors
from .criterion.split_gain import SplitCriterion, UnweightedCriterion, PriorWeightedCriterion, \
    InformationGainEvaluator, compute_split_gain
from .util.errors import ConfigurationError, MissingPriorError, ComputationError, UndefinedProbabilityError
from .util.histogram import ClassHistogram, debug_check_partition

CRITERIA = [UnweightedCriterion, PriorWeightedCriterion]
