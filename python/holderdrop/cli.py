"""Interactive command line for holder distributions.

Thin glue over the distribution engine: prompts are questionary, output is
rich. Operational errors are printed and the menu continues; only Exit or
an interrupted prompt (EOF / Ctrl-C) leaves the program.
"""

import logging
from datetime import datetime
from typing import Any

import questionary
from pydantic import ValidationError
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.table import Table

from .config import Settings
from .errors import DistributionError, InputError
from .mechanisms.svm.distribution import (
    DistributionCoordinator,
    DistributionPlan,
    DistributionReport,
    RecurrenceScheduler,
    RunStatus,
    ScheduleConfig,
    WeightMode,
    explicit_recipients,
    interval_from_units,
    parse_percentage,
)
from .mechanisms.svm.holders import HolderSnapshotProvider, summarize_holders
from .mechanisms.svm.register import (
    create_rpc_client,
    create_svm_coordinator,
    create_svm_gateway,
    create_svm_holder_snapshot,
    create_svm_scheduler,
)
from .mechanisms.svm.signers import KeypairSigner, decode_signer
from .mechanisms.svm.utils import format_sol, shorten_address

logger = logging.getLogger(__name__)

MENU_HOLDERS = "Check ALL token holders"
MENU_DISTRIBUTE_ALL = "Distribute SOL to ALL token holders"
MENU_MANUAL = "Quick send SOL to specific addresses"
MENU_TOP_100 = "Fast send SOL to top 100 holders only"
MENU_TOP_10 = "Fast send SOL to top 10 holders only"
MENU_SCHEDULE = "Schedule automatic distributions"
MENU_MANAGE = "Manage schedules"
MENU_EXIT = "Exit"

MENU_CHOICES = [
    MENU_HOLDERS,
    MENU_DISTRIBUTE_ALL,
    MENU_MANUAL,
    MENU_TOP_100,
    MENU_TOP_10,
    MENU_SCHEDULE,
    MENU_MANAGE,
    MENU_EXIT,
]

PREVIEW_ROWS = 20


class QuitRequested(Exception):
    """The user closed a prompt (EOF or Ctrl-C)."""


def configure_logging(level: str, console: Console | None = None) -> None:
    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, rich_tracebacks=True, show_path=False)],
    )


def plan_table(plan: DistributionPlan, rows: int = PREVIEW_ROWS) -> Table:
    table = Table(title=f"Distribution of {format_sol(plan.budget.spendable_units)}")
    table.add_column("#", justify="right")
    table.add_column("Recipient")
    table.add_column("Share", justify="right")
    table.add_column("Amount", justify="right")

    total_weight = sum(r.weight for r in plan.recipients) or 1
    for i, r in enumerate(plan.top_recipients(rows), start=1):
        table.add_row(
            str(i),
            shorten_address(r.owner),
            f"{r.weight / total_weight * 100:.6f}%",
            format_sol(r.allocated_units),
        )
    if len(plan.recipients) > rows:
        table.caption = f"... and {len(plan.recipients) - rows} more recipients"
    return table


def report_table(report: DistributionReport) -> Table:
    table = Table(title=f"Distribution {report.status.value}")
    table.add_column("Batch", justify="right")
    table.add_column("Status")
    table.add_column("Recipients", justify="right")
    table.add_column("Amount", justify="right")
    table.add_column("Signature / reason")
    for o in report.outcomes:
        table.add_row(
            str(o.batch_index + 1),
            o.status.value,
            str(o.recipients_included),
            format_sol(o.units_transferred),
            o.signature or escape(o.reason or ""),
        )
    table.caption = (
        f"{report.successful_batches} successful, {report.failed_batches} failed, "
        f"{report.skipped_batches} skipped; {report.recipients_paid} recipients received "
        f"{format_sol(report.units_transferred)}"
    )
    return table


class HolderDropApp:
    """Menu-driven front end. ``prompts`` defaults to the questionary module."""

    def __init__(
        self,
        settings: Settings,
        coordinator: DistributionCoordinator,
        holders: HolderSnapshotProvider,
        scheduler: RecurrenceScheduler,
        console: Console | None = None,
        prompts: Any = questionary,
    ):
        self._settings = settings
        self._coordinator = coordinator
        self._holders = holders
        self._scheduler = scheduler
        self._console = console or Console()
        self._prompts = prompts

    def run(self) -> None:
        self._console.rule("PumpFun Token Holder Distributions")
        try:
            while self.handle(self._ask(self._prompts.select("Select an option", choices=MENU_CHOICES))):
                pass
        except QuitRequested:
            pass
        active = self._scheduler.stop_all()
        if active:
            self._console.print(f"Stopped {active} schedule(s).")
        self._console.print("Exiting program. Goodbye!")

    def handle(self, choice: str) -> bool:
        """Run one menu action. Returns False when the user chose Exit."""
        actions = {
            MENU_HOLDERS: self.show_holders,
            MENU_DISTRIBUTE_ALL: lambda: self.distribute_to_holders(0),
            MENU_MANUAL: self.distribute_manual,
            MENU_TOP_100: lambda: self.distribute_to_holders(100),
            MENU_TOP_10: lambda: self.distribute_to_holders(10),
            MENU_SCHEDULE: self.create_schedule,
            MENU_MANAGE: self.manage_schedules,
        }
        if choice == MENU_EXIT:
            return False
        action = actions.get(choice)
        if action is None:
            self._console.print("Invalid option. Please try again.")
            return True
        try:
            action()
        except (DistributionError, ValidationError) as e:
            self._console.print(f"[red]Error:[/red] {escape(str(e))}")
        except QuitRequested:
            raise
        except Exception as e:
            logger.exception("Unexpected error in %r", choice)
            self._console.print(f"[red]Error:[/red] {escape(str(e))}")
        return True

    def show_holders(self) -> None:
        asset_id = self._ask(self._prompts.text("Enter token address:")).strip()
        holders = self._holders.get_holders(asset_id)
        if not holders:
            self._console.print("No token accounts found for this mint address.")
            return

        summary = summarize_holders(holders)
        table = Table(title=f"ALL TOKEN HOLDERS ({summary.holder_count})")
        table.add_column("#", justify="right")
        table.add_column("Owner")
        table.add_column("Balance (raw units)", justify="right")
        table.add_column("Share", justify="right")
        for i, h in enumerate(holders[:PREVIEW_ROWS], start=1):
            table.add_row(str(i), h.owner, f"{h.weight:,}", f"{h.weight / summary.total_supply * 100:.6f}%")
        if len(holders) > PREVIEW_ROWS:
            table.caption = f"... and {len(holders) - PREVIEW_ROWS} more holders"
        self._console.print(table)
        self._console.print(f"Total holders: {summary.holder_count}")
        self._console.print(f"Total token supply: {summary.total_supply:,}")
        self._console.print(f"Top 10% of holders control: {summary.top_decile_share:.2f}% of supply")

    def distribute_to_holders(self, holder_limit: int) -> DistributionReport | None:
        asset_id = self._ask(self._prompts.text("Enter token address to find holders:")).strip()
        signer = self._ask_signer()

        holders = self._holders.get_holders(asset_id, holder_limit or None)
        if not holders:
            self._console.print("Could not find any token holders. Operation cancelled.")
            return None
        self._console.print(f"Found {len(holders)} holders. Preparing distribution...")

        report = self._coordinator.distribute(
            signer,
            holders,
            self._settings.distribution_fraction,
            mode=WeightMode.PROPORTIONAL,
            confirm=self._confirm_plan,
            confirm_threshold=0,
        )
        self._print_report(report)
        return report

    def distribute_manual(self) -> DistributionReport | None:
        signer = self._ask_signer()
        self._console.print('Enter recipient addresses one at a time. Type "done" when finished.')

        pairs: list[tuple[str, float]] = []
        while True:
            address = self._ask(self._prompts.text('Address (or "done"):')).strip()
            if address.lower() == "done":
                break
            if any(address == existing for existing, _ in pairs):
                self._console.print(f"[red]{escape(address)} already added.[/red] Skipping this address.")
                continue
            percentage = self._ask(self._prompts.text(f"Percentage for {address} (1-100):"))
            try:
                explicit_recipients([(address, percentage)])
            except DistributionError as e:
                self._console.print(f"[red]{escape(str(e))}[/red] Skipping this address.")
                continue
            pairs.append((address, float(percentage)))
            self._console.print(f"Added recipient: {address} with {float(percentage):g}%")

        if not pairs:
            self._console.print("No valid recipients added. Operation cancelled.")
            return None

        recipients = explicit_recipients(pairs)
        report = self._coordinator.distribute(
            signer,
            recipients,
            self._settings.distribution_fraction,
            mode=WeightMode.EXPLICIT,
            confirm=self._confirm_plan,
            confirm_threshold=0,
        )
        self._print_report(report)
        return report

    def create_schedule(self) -> str:
        asset_id = self._ask(self._prompts.text("Enter token address to find holders:")).strip()
        limit = self._ask(self._prompts.text("Maximum number of holders to distribute to (0 for all):"))
        signer = self._ask_signer()
        unit = self._ask(self._prompts.select("Select interval type", choices=["minutes", "hours", "days"]))
        value = self._ask(self._prompts.text(f"Enter number of {unit}:"))
        percentage = self._ask(
            self._prompts.text("Percentage of SOL balance to distribute each time (1-100):")
        )

        config = ScheduleConfig(
            asset_id=asset_id,
            holder_limit=parse_holder_limit(limit),
            interval_seconds=interval_from_units(value, unit),
            distribution_percentage=parse_percentage(percentage),
        )
        job_id = self._scheduler.create(config, signer)
        job = self._scheduler.get(job_id)
        self._console.print(f"[green]Scheduler configured successfully![/green] ID: {job_id}")
        if job is not None:
            self._console.print(f"First distribution will run at: {_format_time(job.next_run_at)}")
        return job_id

    def manage_schedules(self) -> None:
        jobs = self._scheduler.list()
        if not jobs:
            self._console.print("No active schedulers.")
            return

        table = Table(title=f"Active schedules: {len(jobs)}")
        for column in ("ID", "Token", "Distribution", "Interval", "Next run", "Runs", "Last"):
            table.add_column(column)
        for job in jobs:
            table.add_row(
                job.id,
                shorten_address(job.asset_id),
                f"{job.distribution_fraction * 100:g}% to {job.holder_limit or 'ALL'} holders",
                f"{job.interval_seconds:g}s",
                _format_time(job.next_run_at),
                str(job.runs_completed),
                job.last_status.value if isinstance(job.last_status, RunStatus) else "-",
            )
        self._console.print(table)

        action = self._ask(
            self._prompts.select(
                "Management options",
                choices=["Stop a scheduler", "Stop all schedulers", "Return to main menu"],
            )
        )
        if action == "Stop a scheduler":
            job_id = self._ask(self._prompts.text("Enter the ID of the scheduler to stop:")).strip()
            if self._scheduler.stop(job_id):
                self._console.print(f"Scheduler {job_id} has been stopped.")
            else:
                self._console.print("Scheduler ID not found. Check the ID and try again.")
        elif action == "Stop all schedulers":
            if self._ask(self._prompts.confirm("Stop all schedulers?", default=False)):
                count = self._scheduler.stop_all()
                self._console.print(f"{count} scheduler(s) stopped.")

    def _ask_signer(self) -> KeypairSigner:
        secret = self._ask(self._prompts.password("Enter your wallet private key to send SOL from:"))
        signer = decode_signer(secret)
        self._console.print(f"Sender wallet: {signer.address}")
        return signer

    def _confirm_plan(self, plan: DistributionPlan) -> bool:
        self._console.print(plan_table(plan))
        self._console.print(f"Reserved for fees: {format_sol(plan.budget.reserve_units)}")
        if len(plan.recipients) > self._settings.large_fanout_threshold:
            self._console.print(
                f"[yellow]WARNING: You are about to distribute SOL to {len(plan.recipients)} addresses "
                f"in {len(plan.batches)} transactions.[/yellow]"
            )
        return bool(self._ask(self._prompts.confirm("Continue with distribution?", default=False)))

    def _print_report(self, report: DistributionReport) -> None:
        if report.status is RunStatus.CANCELLED:
            self._console.print("Distribution cancelled.")
            return
        if report.error:
            self._console.print(f"[red]Distribution failed:[/red] {escape(report.error)}")
            return
        self._console.print(report_table(report))
        if report.status is RunStatus.FAILED:
            self._console.print("[red]Distribution failed.[/red]")
        else:
            self._console.print("[green]Distribution completed![/green]")

    @staticmethod
    def _ask(question: Any) -> Any:
        answer = question.ask()
        if answer is None:
            raise QuitRequested()
        return answer


def _format_time(timestamp: float) -> str:
    return datetime.fromtimestamp(timestamp).strftime("%Y-%m-%d %H:%M:%S")


def parse_holder_limit(text: str) -> int:
    """Parse a holder limit; blank or 0 means all holders."""
    text = (text or "").strip()
    if not text:
        return 0
    try:
        limit = int(text)
    except ValueError:
        raise InputError(f"Invalid holder limit: {text!r}") from None
    if limit < 0:
        raise InputError("Holder limit cannot be negative")
    return limit


def main() -> None:
    settings = Settings.from_env()
    console = Console()
    configure_logging(settings.log_level, console)

    client = create_rpc_client(settings)
    gateway = create_svm_gateway(settings, client)
    holders = create_svm_holder_snapshot(settings, client)
    coordinator = create_svm_coordinator(settings, gateway)
    scheduler = create_svm_scheduler(coordinator, holders)

    HolderDropApp(settings, coordinator, holders, scheduler, console=console).run()


if __name__ == "__main__":
    main()
