import random

import pytest

import growth
from growth import (
    DEFAULT_SCENARIOS,
    daily_increments,
    days_to_target,
    min_bonus_for_target,
    project_scenarios,
    simulate,
)


@pytest.fixture
def rng():
    return random.Random(1234)


class TestSimulate:
    """Tests for the day-by-day growth simulator."""

    def test_length_matches_days(self, rng):
        assert len(simulate(0.3, 15, rng=rng)) == 15

    def test_zero_days(self, rng):
        assert simulate(0.5, 0, rng=rng) == []

    def test_zero_probability_is_all_zero(self, rng):
        assert simulate(0.0, 10, rng=rng) == [0] * 10

    def test_certain_success(self, rng):
        """Every one of the 100 slots succeeds every day."""
        assert simulate(1.0, 5, rng=rng) == [100, 200, 300, 400, 500]

    def test_hand_off_keeps_cohort_fixed(self, rng):
        # capacity 1 means every success hands the slot off, output is unchanged
        assert simulate(1.0, 3, cohort_size=7, capacity=1, rng=rng) == [7, 14, 21]

    def test_non_decreasing(self, rng):
        results = simulate(0.35, 30, rng=rng)
        assert all(a <= b for a, b in zip(results, results[1:]))

    def test_increments_are_daily_successes(self, rng):
        results = simulate(0.5, 20, rng=rng)
        increments = daily_increments(results)
        assert sum(increments) == results[-1]
        assert all(0 <= inc <= 100 for inc in increments)

    def test_seeded_runs_repeat(self):
        assert simulate(0.4, 10, rng=random.Random(7)) == simulate(0.4, 10, rng=random.Random(7))


class TestDailyIncrements:
    def test_increments(self):
        assert daily_increments([3, 5, 5, 9]) == [3, 2, 0, 4]

    def test_empty(self):
        assert daily_increments([]) == []


class TestProjectScenarios:
    def test_default_scenarios(self, rng):
        projections = project_scenarios(30, rng=rng)
        assert set(projections) == set(DEFAULT_SCENARIOS)
        assert all(len(series) == 30 for series in projections.values())

    def test_custom_scenarios(self, rng):
        projections = project_scenarios(3, {"none": 0.0, "all": 1.0}, rng=rng)
        assert projections == {"none": [0, 0, 0], "all": [100, 200, 300]}


class TestDaysToTarget:
    """Tests for days_to_target search."""

    def test_certain_success(self, rng):
        assert days_to_target(1.0, 250, rng=rng) == 3

    def test_target_already_met(self, rng):
        assert days_to_target(0.5, 0, rng=rng) == 1

    def test_zero_probability_unreachable(self, rng):
        assert days_to_target(0.0, 1, rng=rng) is None

    def test_max_days_exceeded(self, rng):
        assert days_to_target(1.0, 1000, max_days=5, rng=rng) is None

    def test_result_meets_target(self):
        day = days_to_target(0.3, 200, max_days=50, rng=random.Random(99))
        assert day is not None
        # each slot succeeds at most once per day
        assert day >= 2

        # replay the same draws: earlier day counts miss, the returned one hits
        replay = random.Random(99)
        for earlier in range(1, day):
            assert simulate(0.3, earlier, rng=replay)[-1] < 200
        assert simulate(0.3, day, rng=replay)[-1] >= 200


# =============================================================================
# Incentive Optimization Tests
# =============================================================================

def step_adoption(threshold):
    """Adoption is certain at or above threshold, zero below."""
    return lambda bonus: 1.0 if bonus >= threshold else 0.0


class TestMinBonusForTarget:
    """Tests for min_bonus_for_target binary search."""

    def test_finds_threshold(self, rng):
        assert min_bonus_for_target(5, 100, step_adoption(250), rng=rng) == 250

    def test_rounds_up_to_increment(self, rng):
        assert min_bonus_for_target(5, 100, step_adoption(255), rng=rng) == 260

    def test_zero_bonus_enough(self, rng):
        assert min_bonus_for_target(5, 100, step_adoption(0), rng=rng) == 0

    def test_unreachable_returns_none(self, rng):
        # 100 slots for 5 days can never exceed 500
        assert min_bonus_for_target(5, 501, step_adoption(0), rng=rng) is None

    def test_above_upper_bound_returns_none(self, rng):
        assert min_bonus_for_target(5, 100, step_adoption(2000), upper_bound=1000, rng=rng) is None

    def test_zero_days_returns_none(self, rng):
        assert min_bonus_for_target(0, 1, step_adoption(0), rng=rng) is None

    def test_larger_bonus_also_meets_target(self, rng):
        adoption = step_adoption(730)
        bonus = min_bonus_for_target(3, 300, adoption, rng=rng)
        assert bonus == 730
        for larger in (bonus + 10, bonus + 500):
            assert simulate(adoption(larger), 3, rng=rng)[-1] >= 300
        assert simulate(adoption(bonus - 10), 3, rng=rng)[-1] < 300

    def test_custom_increment(self, rng):
        assert min_bonus_for_target(5, 100, step_adoption(120), increment=50, rng=rng) == 150

    def test_coarse_epsilon_returns_hit_within_eps(self, rng):
        bonus = min_bonus_for_target(5, 100, step_adoption(250), eps=1000, rng=rng)
        assert 250 <= bonus <= 1250

    def test_adoption_prob_called_with_increments(self, rng):
        seen = []

        def adoption(bonus):
            seen.append(bonus)
            return 1.0 if bonus >= 400 else 0.0

        min_bonus_for_target(5, 100, adoption, rng=rng)
        assert all(bonus % 10 == 0 for bonus in seen)
        # binary search, not a linear scan
        assert len(seen) < 20

    def test_non_positive_increment_rejected(self, rng):
        with pytest.raises(ValueError):
            min_bonus_for_target(5, 100, step_adoption(0), increment=0, rng=rng)

    def test_negative_upper_bound_never_tests_negative_bonus(self, rng):
        seen = []

        def adoption(bonus):
            seen.append(bonus)
            return 1.0

        assert min_bonus_for_target(5, 100, adoption, upper_bound=-50, rng=rng) == 0
        assert all(bonus >= 0 for bonus in seen)


class TestMinBonusLinearAdoption:
    """Bonus search against a strictly increasing adoption curve."""

    DAYS = 10
    TARGET = 500

    @staticmethod
    def adoption(bonus):
        return min(1.0, bonus / 2000)

    @pytest.fixture
    def outcomes(self, monkeypatch):
        """Record (bonus, final total) for every bonus the search evaluates."""
        tested = []
        totals = []
        real_simulate = growth.simulate

        def recording_simulate(probability, days, **kwargs):
            results = real_simulate(probability, days, **kwargs)
            totals.append(results[-1])
            return results

        def recording_adoption(bonus):
            tested.append(bonus)
            return self.adoption(bonus)

        monkeypatch.setattr(growth, "simulate", recording_simulate)
        return tested, totals, recording_adoption

    def test_smallest_tested_hit(self, outcomes):
        tested, totals, adoption = outcomes
        bonus = growth.min_bonus_for_target(self.DAYS, self.TARGET, adoption, rng=random.Random(2024))

        hits = {b for b, total in zip(tested, totals) if total >= self.TARGET}
        misses = {b for b, total in zip(tested, totals) if total < self.TARGET}
        assert bonus is not None
        assert bonus == min(hits)
        assert bonus - 10 in misses

    def test_larger_bonus_also_meets_target(self):
        rng = random.Random(2024)
        bonus = min_bonus_for_target(self.DAYS, self.TARGET, self.adoption, rng=rng)
        assert bonus is not None
        for larger in (bonus + 500, 2000):
            assert simulate(self.adoption(larger), self.DAYS, rng=rng)[-1] >= self.TARGET
