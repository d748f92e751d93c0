from typing import Mapping

import numpy as np
import pandas as pd


class ClassHistogram:
    """Immutable count (or weight) per class label, plus the total count.

    Used for the three histograms of a candidate split: the instances reaching a node (base),
    the ones passing the threshold test (positive) and the ones failing it (negative).

    Params
    ------
    counts: mapping or pd.Series
        label -> non-negative count. Labels missing from the mapping have count 0.
    """

    def __init__(self, counts=None):
        if counts is None:
            counts = {}
        if isinstance(counts, pd.Series):
            series = counts.astype(float, copy=True)
        else:
            series = pd.Series(dict(counts), dtype=float)
        values = series.to_numpy()
        if not np.all(np.isfinite(values)):
            raise ValueError('histogram counts must be finite')
        if np.any(values < 0):
            raise ValueError('histogram counts must be non-negative')
        self._counts = series
        self._total = float(values.sum())

    @classmethod
    def from_labels(cls, y, sample_weight=None):
        """Count the labels in y (optionally weighted by sample_weight).
        """
        y = pd.Series(np.asarray(y))
        if sample_weight is None:
            return cls(y.value_counts(sort=False))
        sample_weight = pd.Series(np.asarray(sample_weight, dtype=float))
        if len(sample_weight) != len(y):
            raise ValueError(f'sample_weight has {len(sample_weight)} entries but y has {len(y)}')
        return cls(sample_weight.groupby(y.to_numpy(), sort=False).sum())

    @property
    def total(self) -> float:
        return self._total

    @property
    def labels(self):
        return list(self._counts.index)

    def count(self, label) -> float:
        return float(self._counts.get(label, 0.0))

    def counts_for(self, labels) -> np.ndarray:
        """Counts of the given labels, in that order, as a float array.
        """
        return self._counts.reindex(list(labels), fill_value=0.0).to_numpy(dtype=float)

    def proportions(self) -> pd.Series:
        if self._total <= 0:
            return self._counts * 0.0
        return self._counts / self._total

    def to_dict(self):
        return self._counts.to_dict()

    def __len__(self):
        return len(self._counts)

    def __iter__(self):
        return iter(self._counts.index)

    def __getitem__(self, label):
        return self.count(label)

    def __repr__(self):
        counts = ', '.join(f'{label!r}: {count:g}' for label, count in self._counts.items())
        return f'ClassHistogram({{{counts}}})'


def debug_check_partition(base: ClassHistogram, positive: ClassHistogram, negative: ClassHistogram,
                          atol: float = 1e-9) -> bool:
    """Check that positive and negative exactly partition base (per label and in total).
    Meant for tests and debugging, it is not run when computing gains.
    """
    labels = list(dict.fromkeys(base.labels + positive.labels + negative.labels))
    split_counts = positive.counts_for(labels) + negative.counts_for(labels)
    if not np.allclose(split_counts, base.counts_for(labels), rtol=0, atol=atol):
        return False
    return bool(np.isclose(positive.total + negative.total, base.total, rtol=0, atol=atol))
