"""
CLI Entry Point for CrapsAgents.

Commands:
  simulate  - Play rounds with the bot roster and print the results
  bots      - Show the bot roster
  rules     - Show the bet catalog and pay table
  config    - Show current configuration
"""

import asyncio
import logging
from dataclasses import replace
from pathlib import Path

import click
from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel

from craps_agents import __version__
from craps_agents.bets.catalog import BetCatalog
from craps_agents.config import CasinoConfig
from craps_agents.errors import CrapsError
from craps_agents.report import print_session, roster_table, rules_table
from craps_agents.rolls.base import RandomRollSource
from craps_agents.rolls.http_source import HttpRollSource
from craps_agents.strategies.personalities import JsonPersonalityProvider, default_provider
from craps_agents.table import CrapsTable, derive_seeds

console = Console()


def _setup_logging(verbose: bool):
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, rich_tracebacks=True, show_path=False)],
        force=True,
    )


def _load_provider(roster):
    return JsonPersonalityProvider(roster) if roster else default_provider()


@click.group()
@click.version_option(version=__version__, prog_name="CrapsAgents")
@click.option("-v", "--verbose", is_flag=True, help="Debug logging")
@click.pass_context
def cli(ctx, verbose):
    """CrapsAgents - a craps table full of betting bots, backed by an LP pool."""
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    _setup_logging(verbose)


@cli.command()
@click.option("--rounds", default=20, show_default=True, help="Rolls to play")
@click.option("--seed", type=int, default=None, help="Seed for dice and bot decisions")
@click.option("--roll-url", default=None, help="Fetch dice from an HTTP randomness gateway")
@click.option("--series-end", type=click.Choice(["IDLE", "COME_OUT"], case_sensitive=False),
              default=None, help="Phase the table returns to when a series ends")
@click.option("--roster", type=click.Path(exists=True, dir_okay=False, path_type=Path),
              default=None, help="JSON roster instead of the house bots")
@click.option("--quiet", is_flag=True, help="Only print the end-of-session summary")
def simulate(rounds, seed, roll_url, series_end, roster, quiet):
    """Play ROUNDS rolls and show the results."""
    cfg = CasinoConfig()
    if seed is not None:
        cfg.engine = replace(cfg.engine, seed=seed)
    if series_end:
        cfg.engine = replace(cfg.engine, series_end_phase=series_end)

    _, dice_seed = derive_seeds(cfg.engine.seed)
    roll_url = roll_url or cfg.rolls.url
    fallback = None
    if roll_url:
        source = HttpRollSource(cfg.rolls, url=roll_url)
        fallback = RandomRollSource(seed=dice_seed)
    else:
        source = RandomRollSource(seed=dice_seed)

    try:
        table = CrapsTable(cfg, roll_source=source, provider=_load_provider(roster),
                           fallback_source=fallback)
    except (CrapsError, ValueError) as e:
        raise click.ClickException(str(e))

    console.print(Panel(
        f"Bots: {len(table.bots)}\n"
        f"Rolls from: {source.name}\n"
        f"Pool: {table.pool.pool_total:,.2f}\n"
        f"Seed: {cfg.engine.seed if cfg.engine.seed is not None else 'random'}",
        title="[bold]CrapsAgents[/bold]",
    ))

    async def _session():
        reports = []
        try:
            for _ in range(rounds):
                reports.append(await table.play_round())
        finally:
            await source.close()
        return reports

    try:
        reports = asyncio.run(_session())
    except CrapsError as e:
        console.print(Panel(f"[red]{type(e).__name__}: {e}[/red]", title="Session stopped"))
        print_session(console, table, table.reports, verbose=not quiet)
        raise SystemExit(1)

    print_session(console, table, reports, verbose=not quiet)


@cli.command()
@click.option("--roster", type=click.Path(exists=True, dir_okay=False, path_type=Path),
              default=None, help="JSON roster instead of the house bots")
def bots(roster):
    """Show the bot roster."""
    try:
        provider = _load_provider(roster)
    except (CrapsError, ValueError, KeyError) as e:
        raise click.ClickException(f"Bad roster: {e}")
    console.print(roster_table(list(provider.participants())))


@cli.command()
def rules():
    """Show the bet catalog with payouts and house edge."""
    cfg = CasinoConfig()
    console.print(rules_table(BetCatalog(rules=cfg.table)))


@cli.command()
def config():
    """Show current table configuration."""
    cfg = CasinoConfig()

    console.print(Panel(
        f"Min Bet: {cfg.table.min_bet:,.2f}\n"
        f"Max Bet: {cfg.table.max_bet:,.2f}\n"
        f"Field pays 2 at {cfg.table.field_two_payout}:1, 12 at {cfg.table.field_twelve_payout}:1\n"
        f"Max Open Wagers: {cfg.table.max_open_wagers}\n"
        f"Series End Phase: {cfg.engine.series_end_phase}\n"
        f"Roll Timeout: {cfg.engine.roll_timeout_secs:.0f}s\n"
        f"Unverified Rolls: {'Allowed' if cfg.engine.allow_unverified_rolls else 'Refused'}\n"
        f"Seed: {cfg.engine.seed if cfg.engine.seed is not None else 'Not set'}\n"
        f"Roll Source: {cfg.rolls.url or 'Local PRNG'}\n"
        f"LP Deposits: {', '.join(f'{k}={v:,.2f}' for k, v in cfg.escrow.deposits.items()) or 'None'}",
        title="[bold]Table Configuration[/bold]",
    ))


def main():
    cli()


if __name__ == "__main__":
    main()
