from __future__ import annotations

"""
JSON snapshot adapter
=====================

Persists `Guild.dump()` to a single JSON file and restores it with
`Guild.load()`. Writes are atomic: the snapshot goes to a sibling temp file
that is fsync'ed and then moved over the target with `os.replace`, so a crash
leaves either the old or the new snapshot, never a torn one.

Example
-------
    guild = load_snapshot("guild.json", clock=SystemClock())
    guild.donate(donor, 100)
    save_snapshot(guild, "guild.json")
"""

import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Callable, Optional, Union

from stewards.clock import Clock
from stewards.engine import Guild
from stewards.events import EventLog

log = logging.getLogger(__name__)

PathLike = Union[str, "os.PathLike[str]"]


def save_snapshot(guild: Guild, path: PathLike) -> Path:
    p = Path(path)
    p.parent.mkdir(parents=True, exist_ok=True)
    payload = json.dumps(guild.dump(), indent=2, sort_keys=True)

    fd, tmp = tempfile.mkstemp(prefix=f".{p.name}.", suffix=".tmp", dir=str(p.parent))
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            f.write(payload)
            f.flush()
            os.fsync(f.fileno())
        os.replace(tmp, p)
    except BaseException:
        if os.path.exists(tmp):
            os.unlink(tmp)
        raise
    log.debug("state_file: wrote snapshot %s (%d bytes)", p, len(payload))
    return p


def load_snapshot(
    path: PathLike,
    *,
    clock: Optional[Clock] = None,
    events: Optional[EventLog] = None,
) -> Guild:
    p = Path(path)
    if not p.exists():
        raise FileNotFoundError(p)
    data = json.loads(p.read_text(encoding="utf-8") or "{}")
    guild = Guild.load(data, clock=clock, events=events)
    log.debug("state_file: loaded snapshot %s", p)
    return guild


def persist_on_commit(guild: Guild, path: PathLike) -> Callable[[], None]:
    """
    Save a snapshot to `path` after every committed transition. The write
    happens under the engine lock, so snapshots land in commit order and a
    failed write reaches the caller as PersistenceError. Returns the hook
    remover.
    """
    p = Path(path)
    return guild.add_commit_hook(lambda g: save_snapshot(g, p))


__all__ = ["save_snapshot", "load_snapshot", "persist_on_commit"]
