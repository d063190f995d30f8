"""
Sponsor chain walking.

Handles upline retrieval with loop detection over the invite edges.
"""

from collections.abc import Mapping

from loguru import logger


def get_upline(
    sponsor_of: Mapping[int, int], user_id: int, depth: int
) -> list[int]:
    """
    Sponsors above a user, nearest first.

    Stops at the top of the tree, at the depth limit, or when the walk
    would revisit a user (malformed cyclic edges).

    Args:
        sponsor_of: Invitee -> sponsor mapping
        user_id: Starting user
        depth: Maximum number of levels

    Returns:
        Sponsor IDs for levels 1..n
    """
    chain: list[int] = []
    seen = {user_id}
    current = user_id

    while len(chain) < depth:
        sponsor_id = sponsor_of.get(current)
        if sponsor_id is None:
            break
        if sponsor_id in seen:
            logger.warning(f"Referral loop detected above user {user_id} at {sponsor_id}")
            break
        chain.append(sponsor_id)
        seen.add(sponsor_id)
        current = sponsor_id

    return chain


def would_create_loop(
    sponsor_of: Mapping[int, int], user_id: int, sponsor_id: int
) -> bool:
    """Whether making sponsor_id the sponsor of user_id closes a cycle."""
    if user_id == sponsor_id:
        return True
    current = sponsor_id
    seen = set()
    while current is not None and current not in seen:
        if current == user_id:
            return True
        seen.add(current)
        current = sponsor_of.get(current)
    return False
