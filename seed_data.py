"""
Synthetic referral data.

Builds a layered demo network: a band of root referrers, a second level of
sparse referrals, then a batch of fresh candidates hung under random users.
"""

import random
from typing import Optional

from loguru import logger

from referral_network import ReferralError, ReferralNetwork


ROOT_REFERRERS = 20
FIRST_LEVEL_FANOUT = 4
SECOND_LEVEL = (20, 60)  # referrers for the second level
SECOND_LEVEL_TARGETS = (60, 80)
SECOND_LEVEL_PROB = 0.4
EXTRA_CANDIDATES = 30
EXTRA_REFERRER_POOL = 80


def make_user_ids(count: int) -> list[str]:
    return [f"user_{i:03d}" for i in range(1, count + 1)]


def _try_add(network: ReferralNetwork, referrer: str, candidate: str) -> bool:
    try:
        network.add_referral(referrer, candidate)
    except ReferralError as e:
        logger.debug(f"Skipping seed referral {referrer} → {candidate}: {e}")
        return False
    return True


def build_synthetic_network(user_count: int = 100, *, rng: Optional[random.Random] = None) -> ReferralNetwork:
    """
    Populate a fresh ReferralNetwork with demo data.

    Args:
        user_count: number of ``user_NNN`` ids to draw from
        rng: random source; pass a seeded ``random.Random`` for repeatable networks

    Returns:
        The populated network. Rejected referrals are skipped.
    """
    rng = rng or random.Random()
    users = make_user_ids(user_count)
    network = ReferralNetwork()
    added = 0

    # level 1: each root refers 1..4 users from its own block
    for i in range(min(ROOT_REFERRERS, len(users))):
        for j in range(rng.randint(1, FIRST_LEVEL_FANOUT)):
            candidate_index = ROOT_REFERRERS + i * FIRST_LEVEL_FANOUT + j
            if candidate_index < len(users):
                added += _try_add(network, users[i], users[candidate_index])

    # level 2: some level-1 users refer into the 60..79 band
    start, stop = SECOND_LEVEL
    low, high = SECOND_LEVEL_TARGETS
    for i in range(start, min(stop, len(users))):
        if rng.random() < SECOND_LEVEL_PROB:
            candidate_index = rng.randrange(low, high)
            if candidate_index < len(users):
                added += _try_add(network, users[i], users[candidate_index])

    # fresh candidates referred by random existing users
    pool = users[:EXTRA_REFERRER_POOL]
    if pool:
        for n in range(1, EXTRA_CANDIDATES + 1):
            added += _try_add(network, rng.choice(pool), f"new_candidate_{n}")

    logger.debug(f"Seeded synthetic network: {len(network)} users, {added} referrals")
    return network
