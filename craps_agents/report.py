"""Rich rendering for rounds, bots and the escrow pool."""

from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from craps_agents.bets.catalog import BetCatalog
from craps_agents.bets.wager_book import WagerStatus
from craps_agents.escrow.pool import EscrowPool, LiquidityProvider
from craps_agents.strategies.bot_policy import BotWagerPolicy
from craps_agents.strategies.personalities import Participant
from craps_agents.table import CrapsTable, RoundReport

OUTCOME_STYLES = {
    WagerStatus.WON: "green",
    WagerStatus.LOST: "red",
    WagerStatus.PUSHED: "yellow",
}


def round_panel(report: RoundReport) -> Panel:
    """One round: the dice, what happened and who got paid."""
    lines = [
        f"Roll: [bold]{report.roll}[/bold] ({report.event.value})",
        f"Now: {report.phase.value}" + (f" on {report.point}" if report.point else ""),
        f"House: {report.house_net:+,.2f}",
    ]
    if not report.verified:
        lines.append("[bold yellow]UNVERIFIED ROLL[/bold yellow]")
    for result in report.results:
        style = OUTCOME_STYLES.get(result.outcome, "white")
        amount = f" +{result.payout:,.2f}" if result.outcome is WagerStatus.WON else ""
        lines.append(
            f"  [{style}]{result.wager.bettor_id}: {result.wager.bet_type.value} "
            f"{result.wager.amount:,.2f} {result.outcome.value}{amount}[/{style}]"
        )
    if report.still_open:
        lines.append(f"[dim]{report.still_open} wagers still working[/dim]")
    return Panel("\n".join(lines), title=f"Round {report.round_number} / series {report.series_id}")


def leaderboard_table(providers: list[LiquidityProvider]) -> Table:
    table = Table(title="LP Leaderboard", show_header=True)
    table.add_column("#", justify="right")
    table.add_column("LP", style="cyan")
    table.add_column("Deposit", justify="right")
    table.add_column("Balance", justify="right")
    table.add_column("ROI", justify="right")

    for rank, lp in enumerate(providers, start=1):
        style = "green" if lp.roi >= 0 else "red"
        table.add_row(
            str(rank),
            lp.lp_id,
            f"{lp.initial_deposit:,.2f}",
            f"{lp.current_balance:,.2f}",
            f"[{style}]{lp.roi:+.2%}[/{style}]",
        )
    return table


def pool_panel(pool: EscrowPool) -> Panel:
    summary = pool.get_pool_summary()
    return Panel(
        f"Pool: [bold green]{summary['pool_total']}[/bold green]\n"
        f"Deposits: {summary['deposits']}\n"
        f"Withdrawn: {summary['withdrawn']}\n"
        f"Return: {summary['total_return']}\n"
        f"Rounds: {summary['rounds']} "
        f"(house up {summary['house_winning_rounds']}, down {summary['house_losing_rounds']})\n"
        f"Largest win: {summary['largest_win']}\n"
        f"Largest loss: {summary['largest_loss']}",
        title="[bold]Escrow Pool[/bold]",
    )


def roster_table(participants: list[Participant]) -> Table:
    table = Table(title="Bot Roster", show_header=True)
    table.add_column("ID", style="cyan")
    table.add_column("Name")
    table.add_column("Aggr", justify="right")
    table.add_column("Risk", justify="right")
    table.add_column("Bet", justify="right")
    table.add_column("Prefers")
    table.add_column("Tagline", style="dim")

    for p in participants:
        if not p.is_bot:
            continue
        table.add_row(
            p.participant_id,
            p.name,
            str(p.personality.aggressiveness),
            str(p.personality.risk_tolerance),
            f"{p.strategy.base_bet_size:,.0f}-{p.strategy.max_bet_size:,.0f}",
            ", ".join(b.value for b in p.strategy.preferred_bet_types),
            p.tagline,
        )
    return table


def bot_results_table(table: CrapsTable, policy: BotWagerPolicy) -> Table:
    """Per-bot results and bankroll at the end of a session."""
    out = Table(title="Bot Results", show_header=True)
    out.add_column("Bot", style="cyan")
    out.add_column("W", justify="right")
    out.add_column("L", justify="right")
    out.add_column("P", justify="right")
    out.add_column("Win Rate", justify="right")
    out.add_column("Net", justify="right")
    out.add_column("Streak")
    out.add_column("Bankroll", justify="right")

    for bot in table.bots:
        status = policy.get_status_report(bot.participant_id)
        out.add_row(
            bot.name,
            str(status["wins"]),
            str(status["losses"]),
            str(status["pushes"]),
            status["win_rate"],
            status["net"],
            status["streak"],
            f"{table.book.balance_of(bot.participant_id):,.2f}",
        )
    return out


def rules_table(catalog: BetCatalog) -> Table:
    table = Table(title="Bet Catalog", show_header=True)
    table.add_column("Bet", style="cyan")
    table.add_column("Kind")
    table.add_column("Phases")
    table.add_column("Pays")
    table.add_column("House Edge", justify="right")

    for definition in catalog:
        if definition.total_ratios:
            pays = ", ".join(f"{t}:{r}" for t, r in sorted(definition.total_ratios.items()))
        else:
            pays = f"{definition.payout_ratio.numerator}:{definition.payout_ratio.denominator}"
        table.add_row(
            definition.label,
            definition.kind.value,
            ", ".join(p.value for p in sorted(definition.valid_phases, key=lambda p: p.value)),
            pays,
            f"{definition.house_edge:.2f}%",
        )
    return table


def print_session(console: Console, table: CrapsTable, reports: list[RoundReport], verbose: bool = True):
    if verbose:
        for report in reports:
            console.print(round_panel(report))
    console.print(bot_results_table(table, table.policy))
    console.print(pool_panel(table.pool))
    console.print(leaderboard_table(table.pool.leaderboard()))
