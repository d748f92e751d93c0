import numpy as np
import pytest
from sklearn.base import clone

from priorgain import CRITERIA, ClassHistogram, InformationGainEvaluator, PriorWeightedCriterion, \
    UndefinedProbabilityError, UnweightedCriterion, compute_split_gain, configure_priors, legacy_entropy, \
    weighted_entropy


def H(counts):
    return ClassHistogram(counts)


# priors a: 0.9, b: 0.1 with 100 training instances each; base {a: 50, b: 50} split into
# {a: 40, b: 5} (p = 0.365, p(a | t) = 72/73) and {a: 10, b: 45} (p = 0.135, p(a | t) = 2/3)
SCENARIO_GAIN = (-(0.9 * np.log2(0.9) + 0.1 * np.log2(0.1))
                 - 0.73 * (np.log2(73) - 72 / 73 * np.log2(72))
                 - 0.27 * (np.log2(3) - 2 / 3))


def test_classic_binary_split():
    gain = compute_split_gain(H({'a': 10, 'b': 10}), H({'a': 10, 'b': 0}), H({'a': 0, 'b': 10}))
    assert gain == pytest.approx(1.0, abs=1e-12)


def test_uninformative_split():
    gain = compute_split_gain(H({'a': 10, 'b': 10}), H({'a': 5, 'b': 5}), H({'a': 5, 'b': 5}))
    assert gain == pytest.approx(0.0, abs=1e-12)


def test_legacy_gain_with_empty_branch():
    assert compute_split_gain(H({'a': 3, 'b': 1}), H({'a': 3, 'b': 1}), H({})) == pytest.approx(0.0)


def test_legacy_gain_empty_base():
    with pytest.raises(UndefinedProbabilityError):
        compute_split_gain(H({}), H({}), H({}))


class TestPriorWeightedGain:

    def setup_method(self):
        self.config = configure_priors({'a': 100, 'b': 100}, priors={'a': 0.9, 'b': 0.1})
        self.criterion = PriorWeightedCriterion(self.config)
        self.base = H({'a': 50, 'b': 50})
        self.positive = H({'a': 40, 'b': 5})
        self.negative = H({'a': 10, 'b': 45})

    def test_gain_is_positive(self):
        gain = self.criterion.split_gain(self.base, self.positive, self.negative)
        assert gain > 0
        assert gain == pytest.approx(SCENARIO_GAIN, abs=1e-9)

    def test_branch_weights_are_prior_adjusted(self):
        # positive holds 45% of the instances but 73% of the prior-weighted mass
        pos_wt, neg_wt = self.criterion.branch_weights(self.base, self.positive, self.negative)
        assert pos_wt == pytest.approx(0.73)
        assert neg_wt == pytest.approx(0.27)

        base_h, _ = weighted_entropy(self.base, self.config)
        pos_h, _ = weighted_entropy(self.positive, self.config)
        neg_h, _ = weighted_entropy(self.negative, self.config)
        expected = base_h - pos_wt * pos_h - neg_wt * neg_h
        assert self.criterion.split_gain(self.base, self.positive, self.negative) == pytest.approx(expected)

    def test_branch_weights_are_not_normalized(self):
        # branches that do not partition the base keep their raw marginal ratios
        pos_wt, neg_wt = self.criterion.branch_weights(self.base, H({'a': 40}), H({'b': 5}))
        assert pos_wt + neg_wt != pytest.approx(1.0)
        assert pos_wt == pytest.approx(0.36 / 0.5)
        assert neg_wt == pytest.approx(0.005 / 0.5)

    def test_differs_from_legacy(self):
        legacy = UnweightedCriterion().split_gain(self.base, self.positive, self.negative)
        weighted = self.criterion.split_gain(self.base, self.positive, self.negative)
        assert legacy != pytest.approx(weighted)

    def test_repeated_calls_identical(self):
        gains = [self.criterion.split_gain(self.base, self.positive, self.negative) for _ in range(5)]
        weighted_entropy(H({'b': 3}), self.config)
        gains.append(self.criterion.split_gain(self.base, self.positive, self.negative))
        assert len(set(gains)) == 1

    def test_empty_branch_is_an_error(self):
        with pytest.raises(UndefinedProbabilityError):
            self.criterion.split_gain(self.base, self.base, H({}))


@pytest.mark.parametrize('train_counts', [{'a': 10, 'b': 10}, {'a': 30, 'b': 10, 'c': 20}])
def test_empirical_priors_match_legacy(train_counts):
    base = H(train_counts)
    positive = H({'a': 8, 'b': 3}) if len(train_counts) == 2 else H({'a': 25, 'b': 1, 'c': 4})
    negative = H({k: base.count(k) - positive.count(k) for k in train_counts})
    legacy = compute_split_gain(base, positive, negative)
    criterion = PriorWeightedCriterion(configure_priors(train_counts))
    weighted = compute_split_gain(base, positive, negative, criterion=criterion)
    assert weighted == pytest.approx(legacy, abs=1e-9)


class TestInformationGainEvaluator:

    def setup_method(self):
        self.base = H({'a': 50, 'b': 50})
        self.candidates = [
            (H({'a': 25, 'b': 25}), H({'a': 25, 'b': 25})),
            (H({'a': 40, 'b': 5}), H({'a': 10, 'b': 45})),
            (H({'a': 50, 'b': 0}), H({'a': 0, 'b': 50})),
            (H({'a': 45, 'b': 20}), H({'a': 5, 'b': 30})),
        ]

    def test_legacy_mode_by_default(self):
        evaluator = InformationGainEvaluator()
        assert not evaluator.is_weighted
        assert isinstance(evaluator.criterion, UnweightedCriterion)
        assert evaluator.compute_split_gain(self.base, *self.candidates[2]) == pytest.approx(1.0)

    def test_configure_switches_to_weighted(self):
        evaluator = InformationGainEvaluator().configure({'a': 100, 'b': 100}, priors={'a': 0.9, 'b': 0.1})
        assert evaluator.is_weighted
        assert evaluator.classes_ == ['a', 'b']
        gain = evaluator.compute_split_gain(self.base, *self.candidates[1])
        assert gain == pytest.approx(SCENARIO_GAIN, abs=1e-9)

        evaluator.reset()
        assert not evaluator.is_weighted
        assert evaluator.compute_split_gain(self.base, *self.candidates[1]) == pytest.approx(
            compute_split_gain(self.base, *self.candidates[1]))

    def test_class_priors_param(self):
        evaluator = InformationGainEvaluator(class_priors={'a': 0.9, 'b': 0.1})
        evaluator.configure({'a': 100, 'b': 100})
        assert evaluator.criterion_.configuration.priors_.tolist() == [0.9, 0.1]

        evaluator = clone(evaluator)
        assert evaluator.get_params()['class_priors'] == {'a': 0.9, 'b': 0.1}
        assert not evaluator.is_weighted

    def test_fit(self):
        y = np.array(['a'] * 30 + ['b'] * 10)
        evaluator = InformationGainEvaluator().fit(y)
        assert evaluator.criterion_.configuration.train_counts_.tolist() == [30, 10]
        with pytest.raises(ValueError):
            InformationGainEvaluator().fit(y, sample_weight=np.ones(40))

    def test_empty_configuration_then_evaluate(self):
        evaluator = InformationGainEvaluator().configure({})
        assert len(evaluator.criterion_.configuration.priors_) == 0
        with pytest.raises(UndefinedProbabilityError):
            evaluator.compute_split_gain(H({}), H({}), H({}))

    def test_check_partition(self):
        evaluator = InformationGainEvaluator(check_partition=True)
        with pytest.raises(ValueError):
            evaluator.compute_split_gain(self.base, H({'a': 1}), H({'b': 1}))
        evaluator.compute_split_gain(self.base, *self.candidates[0])

    @pytest.mark.parametrize('n_jobs', [None, 2])
    def test_evaluate_candidates(self, n_jobs):
        evaluator = InformationGainEvaluator(n_jobs=n_jobs).configure({'a': 100, 'b': 100})
        gains = evaluator.evaluate_candidates(self.base, self.candidates)
        expected = [evaluator.compute_split_gain(self.base, *c) for c in self.candidates]
        assert np.allclose(gains, expected)
        assert evaluator.best_candidate(self.base, self.candidates) == (2, pytest.approx(1.0))

    def test_evaluate_no_candidates(self):
        evaluator = InformationGainEvaluator()
        assert evaluator.evaluate_candidates(self.base, []).shape == (0,)
        idx, gain = evaluator.best_candidate(self.base, [])
        assert idx is None and np.isnan(gain)

    def test_failing_candidates_never_chosen(self):
        evaluator = InformationGainEvaluator().configure({'a': 100, 'b': 100})
        candidates = [(self.base, H({})), self.candidates[1]]
        with pytest.raises(UndefinedProbabilityError):
            evaluator.evaluate_candidates(self.base, candidates)
        gains = evaluator.evaluate_candidates(self.base, candidates, errors='skip')
        assert np.isnan(gains[0])
        assert evaluator.best_candidate(self.base, candidates) == (1, pytest.approx(gains[1]))

        idx, gain = evaluator.best_candidate(self.base, candidates[:1])
        assert idx is None and np.isnan(gain)

        with pytest.raises(ValueError):
            evaluator.evaluate_candidates(self.base, candidates, errors='ignore')


def test_node_entropy():
    h = H({'a': 12, 'b': 3, 'c': 5})
    config = configure_priors({'a': 30, 'b': 10, 'c': 20}, priors={'a': 0.2, 'b': 0.5, 'c': 0.3})
    assert UnweightedCriterion().node_entropy(h) == legacy_entropy(h)
    assert PriorWeightedCriterion(config).node_entropy(h) == weighted_entropy(h, config)[0]


@pytest.mark.parametrize('criterion_cls', CRITERIA)
def test_criteria_on_pure_and_uninformative_splits(criterion_cls):
    if criterion_cls is PriorWeightedCriterion:
        criterion = criterion_cls(configure_priors({'a': 20, 'b': 20}))
    else:
        criterion = criterion_cls()
    base = H({'a': 20, 'b': 20})
    assert criterion.node_entropy(base) == pytest.approx(1.0)
    assert criterion.split_gain(base, H({'a': 20}), H({'b': 20})) == pytest.approx(1.0)
    assert criterion.split_gain(base, H({'a': 10, 'b': 10}), H({'a': 10, 'b': 10})) == pytest.approx(0.0, abs=1e-12)
