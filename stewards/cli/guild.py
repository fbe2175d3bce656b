from __future__ import annotations

"""
stewards.cli.guild
------------------

Operate a guild kept in a JSON snapshot file.

Every command loads the snapshot, runs one operation through the engine and
writes the snapshot back only if the operation committed. `--now` pins the
clock (UNIX seconds), which makes scripted scenarios reproducible.

Examples
--------
# Create a guild with two founders
python -m stewards.cli.guild --state guild.json init \
  --founder 0x1111111111111111111111111111111111111111:alice \
  --founder 0x2222222222222222222222222222222222222222:bob

# Fund it and sponsor a new member
python -m stewards.cli.guild --state guild.json donate 0x3333...3333 1000
python -m stewards.cli.guild --state guild.json sponsor 0x1111...1111 0x4444...4444 carol

# Submit, then claim a week later
python -m stewards.cli.guild --state guild.json submit 0x2222...2222 \
  https://example.org/p/1 0x<64 hex digest> 0x5555...5555 250
python -m stewards.cli.guild --state guild.json --now 1700604800 claim 0x<proposal id>
"""

import json
import logging
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional

import typer

from stewards import config as config_mod
from stewards.adapters.state_file import load_snapshot, persist_on_commit, save_snapshot
from stewards.clock import Clock, ManualClock, SystemClock
from stewards.config import Founder, GuildConfig
from stewards.engine import Guild
from stewards.errors import StewardsError
from stewards.rpc.methods import member_view, proposal_view

log = logging.getLogger(__name__)

DEFAULT_STATE_FILE = "stewards_state.json"

app = typer.Typer(
    name="guild",
    add_completion=False,
    no_args_is_help=True,
    help="Membership-gated treasury: sponsor, veto, propose, claim.",
)


# -------------------- utils --------------------


def _emit(obj: Dict[str, Any]) -> None:
    typer.echo(json.dumps(obj, indent=2, sort_keys=True))


def _clock(ctx: typer.Context) -> Clock:
    now = ctx.obj["now"]
    return ManualClock(now) if now is not None else SystemClock()


def _open(ctx: typer.Context) -> Guild:
    path: Path = ctx.obj["state"]
    try:
        return load_snapshot(path, clock=_clock(ctx))
    except FileNotFoundError:
        typer.echo(f"no guild state at {path}; run `init` first", err=True)
        raise typer.Exit(code=2)


def _mutate(ctx: typer.Context, fn: Callable[[Guild], Dict[str, Any]]) -> None:
    guild = _open(ctx)
    try:
        out = fn(guild)
    except StewardsError as e:
        typer.echo(json.dumps(e.to_dict(), sort_keys=True), err=True)
        raise typer.Exit(code=1)
    save_snapshot(guild, ctx.obj["state"])
    _emit(out)


def _parse_founder(text: str) -> Founder:
    principal, sep, handle = text.partition(":")
    if not sep or not principal or not handle:
        raise typer.BadParameter(f"expected PRINCIPAL:HANDLE, got {text!r}")
    return Founder(principal=principal, handle=handle)


# -------------------- root --------------------


@app.callback()
def main(
    ctx: typer.Context,
    state: Path = typer.Option(
        DEFAULT_STATE_FILE, "--state", envvar="STEWARDS_STATE_FILE", help="Guild snapshot file."
    ),
    now: Optional[int] = typer.Option(None, "--now", min=0, help="Pin the clock to this UNIX time."),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log engine activity to stderr."),
) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    ctx.obj = {"state": state, "now": now}


# -------------------- commands --------------------


@app.command("init")
def init_cmd(
    ctx: typer.Context,
    founder: List[str] = typer.Option(
        [], "--founder", "-f", help="Founding member as PRINCIPAL:HANDLE (repeatable)."
    ),
    config_file: Optional[Path] = typer.Option(
        None, "--config", "-c", exists=True, dir_okay=False, help="JSON/YAML config file."
    ),
    force: bool = typer.Option(False, "--force", help="Overwrite an existing state file."),
) -> None:
    """Create a new guild snapshot."""
    path: Path = ctx.obj["state"]
    if path.exists() and not force:
        typer.echo(f"{path} already exists (use --force to overwrite)", err=True)
        raise typer.Exit(code=2)

    base = config_mod.from_file(config_file) if config_file else GuildConfig()
    cfg = config_mod.from_env(base=base)
    cfg.founders = list(cfg.founders) + [_parse_founder(s) for s in founder]
    try:
        cfg.validate()
        guild = Guild(cfg, clock=_clock(ctx))
    except (ValueError, StewardsError) as e:
        typer.echo(str(e), err=True)
        raise typer.Exit(code=1)
    save_snapshot(guild, path)
    _emit({"state": str(path), "members": guild.registry.member_count()})


@app.command("donate")
def donate_cmd(ctx: typer.Context, donor: str, amount: int = typer.Argument(..., min=1)) -> None:
    """Add funds to the treasury."""
    _mutate(ctx, lambda g: {"balance": g.donate(donor, amount)})


@app.command("sponsor")
def sponsor_cmd(ctx: typer.Context, caller: str, new_member: str, handle: str) -> None:
    """Admit NEW_MEMBER under HANDLE, sponsored by CALLER."""
    _mutate(ctx, lambda g: member_view(new_member.lower(), g.sponsor_member(caller, new_member, handle)))


@app.command("veto-member")
def veto_member_cmd(ctx: typer.Context, caller: str, target: str) -> None:
    """Remove a member still inside its provisional week."""

    def _do(g: Guild) -> Dict[str, Any]:
        g.veto_member(caller, target)
        return {"vetoed": target.lower()}

    _mutate(ctx, _do)


@app.command("submit")
def submit_cmd(
    ctx: typer.Context,
    caller: str,
    url: str,
    digest: str,
    wallet: str,
    value: int = typer.Argument(..., min=0),
) -> None:
    """Submit a spending proposal."""

    def _do(g: Guild) -> Dict[str, Any]:
        pid = g.submit_proposal(caller, url, digest, wallet, value)
        return proposal_view(pid, g.get_proposal(pid))

    _mutate(ctx, _do)


@app.command("veto-proposal")
def veto_proposal_cmd(ctx: typer.Context, caller: str, proposal_id: str) -> None:
    """Neutralize a proposal inside its veto window."""

    def _do(g: Guild) -> Dict[str, Any]:
        g.veto_proposal(caller, proposal_id)
        return {"vetoed": proposal_id.lower()}

    _mutate(ctx, _do)


@app.command("claim")
def claim_cmd(ctx: typer.Context, proposal_id: str) -> None:
    """Release a matured proposal's value to its wallet."""
    _mutate(ctx, lambda g: {"proposalId": proposal_id.lower(), "paid": g.claim_proposal(proposal_id)})


@app.command("member")
def member_cmd(ctx: typer.Context, principal: str) -> None:
    """Show a member record."""
    guild = _open(ctx)
    try:
        _emit(member_view(principal.lower(), guild.get_member(principal)))
    except StewardsError as e:
        typer.echo(json.dumps(e.to_dict(), sort_keys=True), err=True)
        raise typer.Exit(code=1)


@app.command("proposal")
def proposal_cmd(ctx: typer.Context, proposal_id: str) -> None:
    """Show a proposal record."""
    guild = _open(ctx)
    try:
        _emit(proposal_view(proposal_id.lower(), guild.get_proposal(proposal_id)))
    except StewardsError as e:
        typer.echo(json.dumps(e.to_dict(), sort_keys=True), err=True)
        raise typer.Exit(code=1)


@app.command("treasury")
def treasury_cmd(ctx: typer.Context) -> None:
    """Show treasury balance and counters."""
    _emit(_open(ctx).stats())


@app.command("config")
def config_cmd(
    config_file: Optional[Path] = typer.Option(None, "--config", "-c", exists=True, dir_okay=False),
) -> None:
    """Print the effective configuration."""
    base = config_mod.from_file(config_file) if config_file else GuildConfig()
    typer.echo(config_mod.pretty(config_mod.from_env(base=base)))


@app.command("serve")
def serve_cmd(
    ctx: typer.Context,
    host: str = typer.Option("127.0.0.1", "--host"),
    port: int = typer.Option(8080, "--port", min=1, max=65535),
) -> None:
    """Serve the REST API and /metrics for the guild in the state file."""
    import uvicorn

    from stewards.rpc.mount import create_app

    guild = _open(ctx)
    persist_on_commit(guild, ctx.obj["state"])
    uvicorn.run(create_app(guild), host=host, port=port)


if __name__ == "__main__":  # pragma: no cover
    app()
