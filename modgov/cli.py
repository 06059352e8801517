"""modgov CLI -- operate the moderation governance engine from a terminal."""

import logging
from datetime import timedelta

import click
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from modgov import __version__
from modgov.clock import utcnow
from modgov.config import load_config
from modgov.errors import GovernanceError
from modgov.proposals.models import ProposalStatus

console = Console()


def _fail(exc: GovernanceError) -> None:
    console.print(f"[red]x[/] {exc.message} [dim]({exc.code})[/]")
    raise SystemExit(1)


@click.group()
@click.version_option(version=__version__)
@click.option("--config", "config_path", default=None, type=click.Path(exists=True), help="YAML config file")
@click.option("--data-dir", default=None, help="Override the data directory")
@click.option("--verbose", "-v", is_flag=True, help="Log engine activity")
@click.pass_context
def main(ctx: click.Context, config_path: str | None, data_dir: str | None, verbose: bool):
    """modgov -- report-driven moderation governance.

    Reports accumulate per content item; the 50th opens a 24 hour
    token-weighted vote, which is settled once the deadline passes.
    """
    from modgov.engine import GovernanceEngine

    config = load_config(config_path)
    if data_dir:
        config.data_dir = data_dir
    logging.basicConfig(
        level=logging.DEBUG if verbose else getattr(logging, config.log_level, logging.WARNING),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )
    ctx.obj = GovernanceEngine(config)


# ── Reports ──────────────────────────────────────────────────────────


@main.command()
@click.argument("content_id")
@click.argument("reporter_id")
@click.option("--reason", "-r", default="", help="Why the content should be removed")
@click.pass_obj
def report(engine, content_id: str, reporter_id: str, reason: str):
    """File a report against CONTENT_ID on behalf of REPORTER_ID."""
    try:
        engine.submit_report(content_id, reporter_id, reason)
    except GovernanceError as exc:
        _fail(exc)

    count = engine.get_report_count(content_id)
    console.print(f"[green]v[/] Report recorded ({count} in current round)")
    active = engine.proposals.active_proposal_for(content_id)
    if active is not None:
        console.print(f"  Under review: proposal [cyan]{active.proposal_id}[/] closes {active.deadline}")


@main.command()
@click.argument("content_id")
@click.pass_obj
def count(engine, content_id: str):
    """Show the report count of CONTENT_ID's current round."""
    console.print(engine.get_report_count(content_id))


# ── Proposals ────────────────────────────────────────────────────────


@main.group()
def proposal():
    """Inspect and open proposals."""


@proposal.command(name="open")
@click.argument("content_id")
@click.pass_obj
def open_proposal(engine, content_id: str):
    """Open a proposal for CONTENT_ID without waiting for the threshold."""
    try:
        record = engine.proposals.create_proposal(content_id, strict=True, actor="operator")
    except GovernanceError as exc:
        _fail(exc)
    console.print(f"[green]v[/] Proposal [cyan]{record.proposal_id}[/] open until {record.deadline}")


@proposal.command(name="show")
@click.argument("proposal_id")
@click.pass_obj
def show_proposal(engine, proposal_id: str):
    """Show one proposal with its votes."""
    try:
        record = engine.get_proposal(proposal_id)
        votes = engine.votes.list_votes(proposal_id)
    except GovernanceError as exc:
        _fail(exc)

    expired = engine.proposals.is_expired(proposal_id)
    lines = [
        f"Content:   {record.content_id}",
        f"Status:    {record.status.value}" + (" (expired, awaiting settlement)" if expired else ""),
        f"Created:   {record.created_at}",
        f"Deadline:  {record.deadline}",
        f"Remove:    {record.remove_weight}",
        f"Keep:      {record.keep_weight}",
    ]
    if record.outcome:
        lines.append(f"Outcome:   {record.outcome.value} at {record.settled_at}")
    console.print(Panel("\n".join(lines), title=f"Proposal {proposal_id}"))

    if votes:
        table = Table(title=f"Votes ({len(votes)})")
        table.add_column("Voter", style="cyan")
        table.add_column("Choice")
        table.add_column("Weight", justify="right", style="green")
        table.add_column("Cast at", style="dim")
        for v in votes:
            table.add_row(v.voter_id, v.choice.value, str(v.weight), v.cast_at)
        console.print(table)


@proposal.command(name="list")
@click.option("--status", type=click.Choice([s.value for s in ProposalStatus]), default=None)
@click.pass_obj
def list_proposals(engine, status: str | None):
    """List proposals, optionally filtered by status."""
    records = engine.proposals.list_proposals(ProposalStatus(status) if status else None)
    if not records:
        console.print("[yellow]No proposals.[/]")
        return

    table = Table(title=f"Proposals ({len(records)})")
    table.add_column("ID", style="cyan")
    table.add_column("Content")
    table.add_column("Status")
    table.add_column("Remove", justify="right", style="red")
    table.add_column("Keep", justify="right", style="green")
    table.add_column("Deadline", style="dim")
    for r in records:
        table.add_row(r.proposal_id, r.content_id, r.status.value, str(r.remove_weight), str(r.keep_weight), r.deadline)
    console.print(table)


# ── Voting ───────────────────────────────────────────────────────────


@main.command()
@click.argument("proposal_id")
@click.argument("voter_id")
@click.argument("choice", type=click.Choice(["remove", "keep"]))
@click.pass_obj
def vote(engine, proposal_id: str, voter_id: str, choice: str):
    """Cast VOTER_ID's vote on PROPOSAL_ID."""
    try:
        record = engine.cast_vote(proposal_id, voter_id, choice)
    except GovernanceError as exc:
        _fail(exc)
    console.print(f"[green]v[/] Voted {record.choice.value} with weight {record.weight}")


@main.command()
@click.argument("proposal_id")
@click.pass_obj
def tally(engine, proposal_id: str):
    """Show the running tally of PROPOSAL_ID."""
    try:
        t = engine.get_tally(proposal_id)
    except GovernanceError as exc:
        _fail(exc)
    console.print(f"remove [red]{t.remove_weight}[/]  keep [green]{t.keep_weight}[/]")


# ── Settlement ───────────────────────────────────────────────────────


def _print_settlement(result) -> None:
    colour = "red" if result.outcome.value == "removed" else "green"
    console.print(
        f"[{colour}]{result.outcome.value.upper()}[/] {result.content_id} "
        f"(remove {result.remove_weight} / keep {result.keep_weight})"
    )
    if result.pending_rewards:
        console.print(f"  [yellow]![/] {len(result.pending_rewards)} reward(s) pending redelivery")


@main.command()
@click.argument("proposal_id")
@click.pass_obj
def settle(engine, proposal_id: str):
    """Settle PROPOSAL_ID once its voting window has closed."""
    try:
        result = engine.settle(proposal_id)
    except GovernanceError as exc:
        _fail(exc)
    _print_settlement(result)


@main.command()
@click.pass_obj
def sweep(engine):
    """Settle every proposal whose voting window has closed."""
    results = engine.settlement.sweep()
    if not results:
        console.print("[dim]Nothing to settle.[/]")
        return
    for result in results:
        _print_settlement(result)


@main.group()
def rewards():
    """Inspect and redeliver reward deltas."""


@rewards.command(name="pending")
@click.pass_obj
def pending_rewards(engine):
    """List reward deltas still waiting for the reward ledger."""
    pending = engine.settlement.pending_rewards()
    if not pending:
        console.print("[green]No pending rewards.[/]")
        return

    table = Table(title="Pending rewards")
    table.add_column("Proposal", style="cyan")
    table.add_column("Account")
    table.add_column("Amount", justify="right")
    table.add_column("Reason")
    table.add_column("Attempts", justify="right", style="dim")
    for proposal_id, deltas in pending.items():
        for d in deltas:
            table.add_row(proposal_id, d.account_id, str(d.amount), d.reason_tag, str(d.attempts))
    console.print(table)


@rewards.command(name="retry")
@click.pass_obj
def retry_rewards(engine):
    """Redeliver pending reward deltas."""
    delivered = engine.settlement.retry_rewards()
    console.print(f"Delivered {delivered} pending reward(s)")


# ── Accounts ─────────────────────────────────────────────────────────


@main.group()
def account():
    """Manage accounts in the local file-backed adapters."""


@account.command(name="add")
@click.argument("account_id")
@click.option("--stake", default=0, type=click.IntRange(min=0), help="Staked tokens")
@click.option("--age-days", default=0, type=click.IntRange(min=0), help="Backdate account creation")
@click.option("--tokens", default=None, type=click.IntRange(min=0), help="Also set the voting balance")
@click.pass_obj
def add_account(engine, account_id: str, stake: int, age_days: int, tokens: int | None):
    """Register ACCOUNT_ID."""
    engine.accounts.register_account(account_id, created_at=utcnow() - timedelta(days=age_days), stake=stake)
    if tokens is not None:
        engine.balances.set_balance(account_id, tokens)
    console.print(f"[green]v[/] Account {account_id} registered")


@account.command(name="balance")
@click.argument("account_id")
@click.argument("tokens", type=click.IntRange(min=0))
@click.pass_obj
def set_balance(engine, account_id: str, tokens: int):
    """Set ACCOUNT_ID's governance token balance."""
    engine.balances.set_balance(account_id, tokens)
    console.print(f"[green]v[/] {account_id} now holds {tokens} token(s)")


@account.command(name="reputation")
@click.argument("account_id")
@click.pass_obj
def reputation(engine, account_id: str):
    """Show ACCOUNT_ID's reputation."""
    state = engine.reward_ledger.get_reputation(account_id)
    console.print(f"{account_id}: score {state.score}, streak {state.streak_count}")


# ── Audit ────────────────────────────────────────────────────────────


@main.command()
@click.option("--actor", default=None)
@click.option("--action", default=None)
@click.option("--resource-id", default=None)
@click.option("--format", "fmt", type=click.Choice(["table", "json", "csv"]), default="table")
@click.option("--limit", default=50, type=int)
@click.pass_obj
def audit(engine, actor: str | None, action: str | None, resource_id: str | None, fmt: str, limit: int):
    """Show the governance audit trail."""
    filters = {"actor": actor, "action": action, "resource_id": resource_id, "limit": limit}
    if fmt != "table":
        click.echo(engine.audit.export_events(fmt, **filters))
        return

    entries = engine.audit.get_events(**filters)
    table = Table(title=f"Audit ({len(entries)})")
    table.add_column("Time", style="dim")
    table.add_column("Actor", style="cyan")
    table.add_column("Action")
    table.add_column("Resource")
    table.add_column("OK")
    for e in entries:
        table.add_row(e.timestamp, e.actor, e.action, f"{e.resource_type}:{e.resource_id}", "v" if e.success else "x")
    console.print(table)
