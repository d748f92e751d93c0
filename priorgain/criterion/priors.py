import logging
import warnings

import numpy as np
import pandas as pd

from priorgain.util.errors import ConfigurationError, MissingPriorError

criterion_logger = logging.getLogger("priorgain.criterion")


class PriorConfiguration:
    """Class priors and per-class training counts, in a fixed class order.

    Built with `configure_priors`. Also owns the scratch buffer the weighted entropy writes its
    per-class joint probabilities into, so a configuration must not be shared by two gain
    evaluations running at the same time (use `copy` to give each worker its own).

    Attributes
    ----------
    classes_: list
        class labels, in the order of the training counts
    priors_: np.ndarray of float64
        prior probability of each class
    train_counts_: np.ndarray of int64
        number of training instances of each class
    scratch_: np.ndarray of float64
        working space, overwritten by every weighted entropy evaluation
    """

    def __init__(self, classes, priors, train_counts):
        self.classes_ = list(classes)
        self.priors_ = np.asarray(priors, dtype=np.float64)
        self.train_counts_ = np.asarray(train_counts, dtype=np.int64)
        self.scratch_ = np.zeros(len(self.classes_), dtype=np.float64)

    @property
    def n_classes(self) -> int:
        return len(self.classes_)

    @classmethod
    def from_labels(cls, y, priors=None):
        """Configure from a vector of training labels (counts in order of first appearance).
        """
        y = pd.Series(np.asarray(y))
        if y.isna().any():
            raise ConfigurationError(f'{int(y.isna().sum())} training labels are missing (None / NaN)')
        train_counts = y.value_counts().reindex(pd.unique(y))
        return configure_priors(train_counts, priors=priors)

    def copy(self):
        """Same priors and counts, with a scratch buffer of its own.
        """
        return PriorConfiguration(list(self.classes_), self.priors_.copy(), self.train_counts_.copy())

    def prior(self, label) -> float:
        return float(self.priors_[self.classes_.index(label)])

    def to_frame(self) -> pd.DataFrame:
        return pd.DataFrame({'prior': self.priors_, 'train_count': self.train_counts_},
                            index=pd.Index(self.classes_, name='class'))

    def __deepcopy__(self, memo):
        return self.copy()

    def __repr__(self):
        priors = ', '.join(f'{c!r}: {p:.3g}' for c, p in zip(self.classes_, self.priors_))
        return f'PriorConfiguration({{{priors}}})'


def configure_priors(train_counts, priors=None) -> PriorConfiguration:
    """Turn training counts (and optionally externally supplied priors) into a PriorConfiguration.

    Params
    ------
    train_counts: mapping or pd.Series
        class label -> number of training instances. The order of the keys fixes the class order.
    priors: mapping, optional
        class label -> prior probability. If None, priors are the relative training frequencies
        (uniform if there are no training instances at all). Supplied priors are used as given,
        they are not renormalized.

    Raises
    ------
    MissingPriorError
        if priors has no entry for some class of train_counts
    ConfigurationError
        if priors has classes train_counts does not, a prior is outside [0, 1] or a count is negative
        or not a whole number
    """
    if isinstance(train_counts, pd.Series):
        train_counts = train_counts.to_dict()
    if isinstance(priors, pd.Series):
        priors = priors.to_dict()
    classes = list(train_counts.keys())
    counts = np.array([train_counts[c] for c in classes], dtype=np.float64)
    if np.any(~np.isfinite(counts)) or np.any(counts != np.floor(counts)):
        raise ConfigurationError(f'training counts must be whole numbers, got {counts.tolist()}')
    if np.any(counts < 0):
        raise ConfigurationError('training counts must be non-negative')
    counts = counts.astype(np.int64)
    total = counts.sum()

    if priors is None:
        if total > 0:
            klass_priors = counts / float(total)
        else:
            criterion_logger.warning("No training instances in %d classes, using uniform class priors",
                                     len(classes))
            klass_priors = np.full(len(classes), 1.0 / max(len(classes), 1))
    else:
        for c in classes:
            if c not in priors:
                raise MissingPriorError(c)
        unknown = [c for c in priors if c not in train_counts]
        if unknown:
            raise ConfigurationError(f'priors given for classes without training counts: {unknown}')
        klass_priors = np.array([priors[c] for c in classes], dtype=np.float64)
        if np.any(~np.isfinite(klass_priors)) or np.any(klass_priors < 0) or np.any(klass_priors > 1):
            raise ConfigurationError('prior probabilities must lie in [0, 1]')
        if len(classes) > 0 and not np.isclose(klass_priors.sum(), 1.0, rtol=0, atol=1e-6):
            warnings.warn(f'class priors sum to {klass_priors.sum():.6g}, not 1; they are used as given')

    criterion_logger.debug("Configured priors %s for training counts %s", klass_priors, counts)
    return PriorConfiguration(classes, klass_priors, counts)
