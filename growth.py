import random
from typing import Callable, Mapping, Optional

from loguru import logger

from config import settings


DEFAULT_SCENARIOS = {
    "conservative": 0.2,
    "moderate": 0.35,
    "aggressive": 0.5,
}


# =============================================================================
# Growth
# =============================================================================

def simulate(
    probability: float,
    days: int,
    *,
    cohort_size: Optional[int] = None,
    capacity: Optional[int] = None,
    rng: Optional[random.Random] = None,
) -> list[int]:
    """
    Stochastic day-by-day referral process.

    Rules:
    - cohort_size active referrer slots (100 by default)
    - Each day, every slot succeeds independently with prob p (max 1/day)
    - A slot that reaches capacity (10 by default) is handed off to the person it
      just referred: its counter restarts at 0, the cohort never grows

    Returns cumulative successful referrals at the end of each day 1..days.
    Unseeded unless rng is given, so two calls normally differ.
    """
    cohort_size = settings.cohort_size if cohort_size is None else cohort_size
    capacity = settings.referrer_capacity if capacity is None else capacity
    rng = rng or random.Random()

    counters = [0] * cohort_size
    results = []
    total = 0
    for _ in range(days):
        for slot in range(cohort_size):
            if rng.random() < probability:
                counters[slot] += 1
                total += 1
                if counters[slot] >= capacity:
                    counters[slot] = 0
        results.append(total)

    logger.debug(f"simulate(p={probability}, days={days}): total={total}")
    return results


def daily_increments(cumulative: list[int]) -> list[int]:
    """Per-day successes from a cumulative series."""
    return [curr - prev for prev, curr in zip([0] + cumulative[:-1], cumulative)]


def project_scenarios(
    days: int,
    scenarios: Optional[Mapping[str, float]] = None,
    *,
    rng: Optional[random.Random] = None,
) -> dict[str, list[int]]:
    """Run simulate once per named adoption probability."""
    scenarios = DEFAULT_SCENARIOS if scenarios is None else scenarios
    return {name: simulate(p, days, rng=rng) for name, p in scenarios.items()}


def days_to_target(
    probability: float,
    target_total: int,
    *,
    max_days: Optional[int] = None,
    cohort_size: Optional[int] = None,
    capacity: Optional[int] = None,
    rng: Optional[random.Random] = None,
) -> Optional[int]:
    """
    Smallest day count whose simulated total reaches target_total.

    Every day count is a fresh, independent simulation (not an extension of the
    previous run), so without a seeded rng the answer varies run to run.
    Cost grows with the square of the answer: O(days^2 * cohort_size) random
    draws, so a tiny positive probability with the default max_days can take
    billions of draws before returning None.
    Returns None if the target is not met within max_days.
    """
    max_days = settings.max_days if max_days is None else max_days
    if probability <= 0 and target_total > 0:
        # no trial can ever succeed
        return None

    rng = rng or random.Random()
    for day in range(1, max_days + 1):
        results = simulate(probability, day, cohort_size=cohort_size, capacity=capacity, rng=rng)
        if results[-1] >= target_total:
            return day

    logger.debug(f"days_to_target: {target_total} unreachable within {max_days} days at p={probability}")
    return None


# =============================================================================
# Incentive Optimization
# =============================================================================

def min_bonus_for_target(
    days: int,
    target_hires: int,
    adoption_prob: Callable[[int], float],
    *,
    upper_bound: Optional[int] = None,
    increment: Optional[int] = None,
    eps: Optional[float] = None,
    max_iterations: Optional[int] = None,
    rng: Optional[random.Random] = None,
) -> Optional[int]:
    """
    Find minimum bonus (in increments, $10 by default) to reach target hires by the last day.

    Args:
        days: number of days to simulate
        target_hires: cumulative referrals needed on the final day
        adoption_prob: black-box function mapping bonus -> probability (monotonic non-decreasing)
        upper_bound: largest bonus considered
        increment: bonus granularity
        eps: stop once the search interval is narrower than max(increment, eps)
        max_iterations: cap on binary search steps

    Returns:
        Smallest bonus achieving target, or None if even upper_bound does not.

    Raises:
        ValueError: if increment is not positive
    """
    increment = settings.bonus_increment if increment is None else increment
    upper_bound = settings.bonus_upper_bound if upper_bound is None else upper_bound
    eps = settings.bonus_epsilon if eps is None else eps
    max_iterations = settings.bonus_max_iterations if max_iterations is None else max_iterations
    if increment <= 0:
        raise ValueError(f"increment must be positive, got {increment}")
    rng = rng or random.Random()

    def reaches_target(bonus: int) -> bool:
        results = simulate(adoption_prob(bonus), days, rng=rng)
        return bool(results) and results[-1] >= target_hires

    # Phase 1: bounds. high must be a known hit, low a known miss.
    high = max(upper_bound, 0) // increment * increment
    if not reaches_target(high):
        logger.debug(f"min_bonus_for_target: ${high} misses target {target_hires}")
        return None
    low = 0
    if reaches_target(low):
        return low

    # Phase 2: binary search on the increment grid.
    iterations = 0
    while high - low > max(increment, eps) and iterations < max_iterations:
        mid = (low + high) // 2 // increment * increment
        if reaches_target(mid):
            high = mid
        else:
            low = mid
        iterations += 1

    logger.debug(f"min_bonus_for_target: ${high} after {iterations} iterations")
    return high
