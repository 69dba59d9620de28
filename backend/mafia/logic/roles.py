"""
Role composition and dealing.

A round deals a fixed multiset: one Doctor, one Detective, `mafia_count`
Mafia, and Citizens for every remaining seat of the active pool. The
multiset is shuffled with Fisher-Yates (random.Random.shuffle) and dealt
positionally to the pool in join order.

The random source is injected so that tests can pin a seed. Production code
uses random.SystemRandom, which draws from the OS entropy pool.
"""

from __future__ import annotations

import random
from collections import Counter
from typing import TYPE_CHECKING

from mafia.logic.enums import Role

if TYPE_CHECKING:
    from collections.abc import Sequence

    from mafia.logic.models import Player

MIN_ACTIVE_PLAYERS = 3


def default_rng() -> random.Random:
    return random.SystemRandom()


def build_role_pool(pool_size: int, mafia_count: int) -> list[Role]:
    """Return the unshuffled role multiset for a pool of `pool_size` players.

    When `mafia_count + 2` exceeds the pool there are no Citizens and the list
    is longer than the pool; deal_roles then leaves the surplus undealt.
    """
    roles = [Role.DOCTOR, Role.DETECTIVE]
    roles.extend([Role.MAFIA] * mafia_count)
    roles.extend([Role.CITIZEN] * (pool_size - len(roles)))
    return roles


def deal_roles(players: Sequence[Player], mafia_count: int, rng: random.Random) -> dict[str, Role]:
    """Shuffle the role multiset and assign it to `players` in order.

    Mutates each player's role and returns a token -> role mapping.
    """
    roles = build_role_pool(len(players), mafia_count)
    rng.shuffle(roles)
    assignment: dict[str, Role] = {}
    for player, role in zip(players, roles, strict=False):
        player.role = role
        assignment[player.token] = role
    return assignment


def role_counts(roles: Sequence[Role | None]) -> Counter[Role]:
    """Count assigned roles, ignoring unassigned entries."""
    return Counter(role for role in roles if role is not None)
