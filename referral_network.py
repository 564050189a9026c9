from collections import defaultdict, deque
from dataclasses import dataclass, field
from typing import Iterator, NamedTuple, Optional

from loguru import logger


class ReferralError(ValueError):
    """Base class for rejected referrals."""

    def __init__(self, message: str, referrer: str, candidate: str):
        super().__init__(message)
        self.referrer = referrer
        self.candidate = candidate


class SelfReferralError(ReferralError):
    pass


class DuplicateReferrerError(ReferralError):
    pass


class CycleDetectedError(ReferralError):
    pass


class ReferralNetwork:
    """
    A directed graph where edges represent referrer → candidate relationships.

    Invariants:
    - No self-referrals
    - Each candidate has at most one referrer
    - Acyclic (no cycles allowed), so the graph is a forest of referral trees
    """

    def __init__(self):
        self._parents: dict[str, str] = {}  # key candidate : value referrer
        self._children: defaultdict[str, set[str]] = defaultdict(set)  # key referrer : value candidates
        self._nodes: set[str] = set()

    def __len__(self) -> int:
        return len(self._nodes)

    def __contains__(self, user: object) -> bool:
        return user in self._nodes

    def __iter__(self) -> Iterator[str]:
        # sorted so every ranking that iterates the network is reproducible
        return iter(sorted(self._nodes))

    def add_user(self, user: str) -> None:
        """Register user with no referrals. No-op if already known."""
        if user not in self._nodes:
            self._nodes.add(user)
            self._children[user] = set()

    def _check_constraints(self, referrer: str, candidate: str) -> None:
        """
        Check if adding edge referrer to candidate satisfies invariants.
        Raises a ReferralError subclass if invalid. Never mutates the graph.
        """
        if referrer == candidate:
            raise SelfReferralError("Self-referral is not allowed.", referrer, candidate)

        if candidate in self._parents:
            raise DuplicateReferrerError(
                f"{candidate} already has a referrer ({self._parents[candidate]}).",
                referrer,
                candidate,
            )

        # the unique-parent rule alone doesn't stop a root from being hung under its own descendant
        if self.can_reach(candidate, referrer):
            raise CycleDetectedError(
                f"Adding {referrer} → {candidate} would create a cycle.", referrer, candidate
            )

    def add_referral(self, referrer: str, candidate: str) -> None:
        """Add edge referrer → candidate. Raises ReferralError if constraints violated."""
        try:
            self._check_constraints(referrer, candidate)
        except ReferralError as exc:
            logger.debug(f"Rejected referral {referrer} → {candidate}: {exc}")
            raise

        self.add_user(referrer)
        self.add_user(candidate)
        self._parents[candidate] = referrer
        self._children[referrer].add(candidate)
        logger.debug(f"Added referral {referrer} → {candidate}")

    def can_reach(self, source: str, target: str) -> bool:
        """BFS over forward edges: True if target is source or one of its descendants."""
        if source == target:
            return True
        visited = {source}
        queue = deque([source])
        while queue:
            node = queue.popleft()
            for child in self._children.get(node, ()):
                if child == target:
                    return True
                if child not in visited:
                    visited.add(child)
                    queue.append(child)
        return False

    def direct_referrals(self, user: str) -> set[str]:
        """Return a snapshot of the immediate children of user (empty if unknown)."""
        return set(self._children.get(user, ()))

    def referrer_of(self, user: str) -> Optional[str]:
        """Return who referred user, or None for roots and unknown users."""
        return self._parents.get(user)

    def downstream_reach(self, user: str) -> set[str]:
        """BFS through graph to find all descendants, either direct or indirect."""
        reached: set[str] = set()
        if user not in self._nodes:
            return reached
        queue = deque([user])
        visited = {user}
        while queue:
            node = queue.popleft()
            for child in self._children.get(node, ()):
                if child not in visited:
                    visited.add(child)
                    reached.add(child)
                    queue.append(child)
        return reached

    def total_referral_count(self, user: str) -> int:
        """Number of distinct users reachable from user, excluding user itself."""
        return len(self.downstream_reach(user))

    def all_ancestors(self, user: str) -> list[str]:
        """Walk up through parents to find all ancestors (direct or indirect), nearest first."""
        result = []
        current = user
        while current in self._parents:
            current = self._parents[current]
            result.append(current)
        return result

    def roots(self) -> set[str]:
        """Users nobody referred."""
        return self._nodes - self._parents.keys()

    def total_referral_edges(self) -> int:
        # one edge per referred candidate
        return len(self._parents)

    def get_all_nodes(self) -> set[str]:
        """Return all nodes in the network."""
        return self._nodes.copy()  # so as not to work w/ funky mutable objects.


# =============================================================================
# Influence Metrics (pure functions - do not mutate network)
# =============================================================================

class ReachEntry(NamedTuple):
    user: str
    total_referrals: int


class InfluenceEntry(NamedTuple):
    user: str
    unique_reach: int  # new users covered when this user was picked


class CentralityEntry(NamedTuple):
    user: str
    score: int


def top_referrers_by_reach(network: ReferralNetwork, k: int) -> list[ReachEntry]:
    """
    Rank users by Reach: number of distinct descendants.
    Returns up to k users with nonzero reach, sorted by reach descending, then id.
    """
    if k <= 0:
        return []
    reach = [ReachEntry(user, network.total_referral_count(user)) for user in network]
    ranked = sorted((e for e in reach if e.total_referrals > 0), key=lambda e: (-e.total_referrals, e.user))
    return ranked[:k]


def unique_reach_influencers(network: ReferralNetwork, k: int) -> list[InfluenceEntry]:
    """
    Greedy maximum coverage over downstream reach sets.

    Each round picks the user adding the most not-yet-covered descendants
    (first in id order on ties). Stops after k picks, or once nobody adds
    anything new. Greedy gives the usual (1 - 1/e) bound for coverage.
    """
    reach_sets = {user: network.downstream_reach(user) for user in network}
    selected: list[InfluenceEntry] = []
    chosen: set[str] = set()
    covered: set[str] = set()

    while len(selected) < k and len(chosen) < len(reach_sets):
        best_user = None
        best_gain = 0
        for user, reach in reach_sets.items():
            if user in chosen:
                continue
            gain = len(reach - covered)
            if gain > best_gain:
                best_user, best_gain = user, gain

        if best_user is None:
            break
        selected.append(InfluenceEntry(best_user, best_gain))
        chosen.add(best_user)
        covered |= reach_sets[best_user]

    return selected


def all_pairs_shortest_paths(network: ReferralNetwork) -> dict[str, dict[str, int]]:
    """
    BFS from every user over forward edges.
    Returns source -> {target: hops}; targets missing from the inner dict are unreachable.
    """
    distances: dict[str, dict[str, int]] = {}
    for source in network:
        dist = {source: 0}
        queue = deque([source])
        while queue:
            node = queue.popleft()
            for child in network.direct_referrals(node):
                if child not in dist:
                    dist[child] = dist[node] + 1
                    queue.append(child)
        distances[source] = dist
    return distances


def flow_centrality_scores(network: ReferralNetwork) -> dict[str, int]:
    """
    Flow Centrality for every user, defined as:
    number of ordered pairs (s, t) for which u lies on some shortest directed path from s to t,
    where s, t and u are distinct users.
    """
    distances = all_pairs_shortest_paths(network)
    scores = {user: 0 for user in distances}

    for source, from_source in distances.items():
        for target, dist_st in from_source.items():
            if target == source:
                continue
            # brokers must be reachable from source, so only scan from_source
            for broker, dist_sb in from_source.items():
                if broker == source or broker == target:
                    continue
                dist_bt = distances[broker].get(target)
                if dist_bt is not None and dist_sb + dist_bt == dist_st:
                    scores[broker] += 1
    return scores


def flow_centrality_influencers(network: ReferralNetwork, k: int) -> list[CentralityEntry]:
    """Top k users by nonzero flow centrality, score descending then id. O(V^3)."""
    if k <= 0:
        return []
    scores = flow_centrality_scores(network)
    ranked = sorted(
        (CentralityEntry(user, score) for user, score in scores.items() if score > 0),
        key=lambda e: (-e.score, e.user),
    )
    return ranked[:k]


@dataclass
class NetworkStats:
    total_users: int
    total_referrals: int
    avg_referrals_per_user: float
    top_referrers: list[ReachEntry] = field(default_factory=list)
    unique_influencers: list[InfluenceEntry] = field(default_factory=list)
    flow_influencers: list[CentralityEntry] = field(default_factory=list)


def network_stats(network: ReferralNetwork, top_k: int = 5) -> NetworkStats:
    """Aggregate the headline numbers and the three rankings, each cut to top_k."""
    total_users = len(network)
    total_referrals = network.total_referral_edges()
    return NetworkStats(
        total_users=total_users,
        total_referrals=total_referrals,
        avg_referrals_per_user=total_referrals / total_users if total_users else 0.0,
        top_referrers=top_referrers_by_reach(network, top_k),
        unique_influencers=unique_reach_influencers(network, top_k),
        flow_influencers=flow_centrality_influencers(network, top_k),
    )
