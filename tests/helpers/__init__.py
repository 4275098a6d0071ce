"""Test helpers for the territory engine tests.

Helpers:
    FakeTimeAuthority: Controllable time authority for deterministic tests
    make_resource / make_agent / seed_store: fixture builders

Usage:
    from tests.helpers import FakeTimeAuthority
"""

from tests.helpers.fake_time_authority import DEFAULT_FROZEN_AT, FakeTimeAuthority
from tests.helpers.territory_factories import make_agent, make_resource, seed_store

__all__ = [
    "DEFAULT_FROZEN_AT",
    "FakeTimeAuthority",
    "make_agent",
    "make_resource",
    "seed_store",
]
