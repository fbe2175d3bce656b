# -*- coding: utf-8 -*-
"""
stewards.tests.conftest
=======================

Pytest fixtures for the governance engine.

- `clock`: a ManualClock pinned at T0; tests move time with `clock.advance`.
- `guild`: an engine with three founders (ALICE, BOB, CAROL), all full
  members from genesis, and an empty treasury.
- `funded_guild`: the same engine with 1_000 units donated by DONOR.
- `make_guild`: factory for engines with custom windows/compat switches.
"""
from __future__ import annotations

from typing import Callable, List

import pytest

from stewards.clock import ManualClock
from stewards.config import CompatConfig, Founder, GuildConfig, WindowConfig
from stewards.engine import Guild
from stewards.events import EventLog
from stewards.records.events import Event
from stewards.tests import ALICE, BOB, CAROL, DONOR, T0

FOUNDERS = [
    Founder(principal=ALICE, handle="alice"),
    Founder(principal=BOB, handle="bob"),
    Founder(principal=CAROL, handle="carol"),
]


@pytest.fixture
def clock() -> ManualClock:
    return ManualClock(T0)


@pytest.fixture
def events() -> EventLog:
    return EventLog()


@pytest.fixture
def make_guild(clock: ManualClock, events: EventLog) -> Callable[..., Guild]:
    def _make(
        *,
        veto_window_seconds: int = WindowConfig().veto_window_seconds,
        action_cooldown_seconds: int = WindowConfig().action_cooldown_seconds,
        release_handle_on_veto: bool = False,
        require_existing_proposal: bool = False,
        founders: List[Founder] = FOUNDERS,
    ) -> Guild:
        cfg = GuildConfig(
            windows=WindowConfig(
                veto_window_seconds=veto_window_seconds,
                action_cooldown_seconds=action_cooldown_seconds,
            ),
            compat=CompatConfig(
                release_handle_on_veto=release_handle_on_veto,
                require_existing_proposal=require_existing_proposal,
            ),
            founders=list(founders),
        )
        return Guild(cfg, clock=clock, events=events)

    return _make


@pytest.fixture
def guild(make_guild: Callable[..., Guild]) -> Guild:
    return make_guild()


@pytest.fixture
def funded_guild(guild: Guild) -> Guild:
    guild.donate(DONOR, 1_000)
    return guild


@pytest.fixture
def captured(events: EventLog) -> List[Event]:
    """Events delivered to a subscriber, in publish order."""
    seen: List[Event] = []
    events.subscribe(seen.append)
    return seen
