from .entropy import lb, legacy_entropy, weighted_entropy
from .priors import PriorConfiguration, configure_priors
from .split_gain import SplitCriterion, UnweightedCriterion, PriorWeightedCriterion, InformationGainEvaluator, \
    compute_split_gain
