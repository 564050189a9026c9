#!/usr/bin/env python3
"""
Referral network report.

Seeds a synthetic referral network, then logs the network statistics and the
growth projections for the default adoption scenarios.

Usage:
    python main.py [--users 100] [--seed 42] [--top-k 5] [--days 30]
"""

import argparse
import random

from loguru import logger

from config import LOG_LEVELS, settings, setup_logging
from growth import DEFAULT_SCENARIOS, daily_increments, project_scenarios
from referral_network import network_stats
from seed_data import build_synthetic_network


def parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Referral network analytics report")
    parser.add_argument("--users", type=int, default=100, help="Synthetic user count")
    parser.add_argument("--seed", type=int, default=None, help="Seed for repeatable output")
    parser.add_argument("--top-k", type=int, default=settings.top_k, help="Entries per ranking")
    parser.add_argument("--days", type=int, default=30, help="Days to project")
    parser.add_argument("--log-level", type=str.upper, choices=LOG_LEVELS, default=settings.log_level)
    return parser.parse_args(argv)


def main(argv=None) -> int:
    args = parse_args(argv)
    setup_logging(args.log_level)
    rng = random.Random(args.seed)

    network = build_synthetic_network(args.users, rng=rng)
    stats = network_stats(network, top_k=args.top_k)

    logger.info(
        f"Network: {stats.total_users} users, {stats.total_referrals} referrals, "
        f"{stats.avg_referrals_per_user:.2f} referrals/user"
    )
    for entry in stats.top_referrers:
        logger.info(f"  reach        {entry.user}: {entry.total_referrals}")
    for entry in stats.unique_influencers:
        logger.info(f"  unique reach {entry.user}: +{entry.unique_reach}")
    for entry in stats.flow_influencers:
        logger.info(f"  flow         {entry.user}: {entry.score}")

    projections = project_scenarios(args.days, DEFAULT_SCENARIOS, rng=rng)
    for name, series in projections.items():
        last_day = daily_increments(series)[-1] if series else 0
        logger.info(
            f"Scenario {name} (p={DEFAULT_SCENARIOS[name]}): "
            f"{series[-1] if series else 0} referrals after {args.days} days ({last_day} on the last day)"
        )
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
