"""
Command Line Interface Module
Registration bot: generate accounts, submit them, keep the table locally
"""

import argparse
import asyncio
import logging
import signal
import sys
from typing import List, Optional, Tuple

from rich import box
from rich.console import Console
from rich.logging import RichHandler
from rich.progress import Progress, BarColumn, TextColumn, TimeRemainingColumn
from rich.table import Table

from .config import BotConfig, MAX_BATCH_SIZE
from .exceptions import AccountMachineError, ConfigurationError
from .models.account import AccountStatus, GeneratedAccount
from .services.account_service import AccountService
from .services.export_service import ExportService
from .services.local_store import LocalStore
from .services.registration_client import RegistrationClient
from .services.registration_service import RegistrationService

STATUS_STYLES = {
    AccountStatus.SUCCESS: "[green]SUCCESS[/green]",
    AccountStatus.ERROR: "[red]ERROR[/red]",
    AccountStatus.PENDING: "[yellow]PENDING[/yellow]",
}


def setup_logging(verbose: bool = False, console: Optional[Console] = None):
    """Route log records through rich, INFO and above only when verbose"""
    logging.basicConfig(
        level=logging.INFO if verbose else logging.WARNING,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, rich_tracebacks=True, show_path=False)],
        force=True
    )


class CLIHandler:
    """CLI Handler Class"""

    def __init__(self, console: Optional[Console] = None):
        self.console = console or Console()
        self.config = BotConfig()
        self.account_service: Optional[AccountService] = None
        self.registration_service: Optional[RegistrationService] = None

    def create_argument_parser(self) -> argparse.ArgumentParser:
        """Create command line argument parser"""
        parser = argparse.ArgumentParser(
            description="Account Machine - registration bot",
            prog="main.py",
            formatter_class=argparse.RawDescriptionHelpFormatter
        )

        parser.add_argument("--count", type=int, default=self.config.count,
                            help=f"Number of accounts to generate and register (1-{MAX_BATCH_SIZE})")
        parser.add_argument("--delay-ms", type=int, default=self.config.delay_ms,
                            help="Delay between two registrations in milliseconds")
        parser.add_argument("--endpoint", type=str, default=self.config.endpoint,
                            help="Registration endpoint URL (default: REGISTRATION_ENDPOINT)")
        parser.add_argument("--store-dir", type=str, default=self.config.store_dir,
                            help="Directory holding the local account table")
        parser.add_argument("--export", choices=["csv", "txt"],
                            help="Export the account table instead of registering")
        parser.add_argument("--output", type=str, help="Export filename (default: timestamped)")
        parser.add_argument("--list", action="store_true", help="Show the stored account table")
        parser.add_argument("--delete", metavar="ID", help="Delete one stored account by id")
        parser.add_argument("--clear", action="store_true", help="Delete all stored accounts")
        parser.add_argument("--enforce-response-code", action="store_true",
                            default=self.config.enforce_response_code,
                            help="Treat response codes other than 200/0 as failures")
        parser.add_argument("--verbose", action="store_true", help="Enable verbose logging output")

        return parser

    def validate_arguments(self, endpoint: Optional[str]) -> Tuple[bool, Optional[str]]:
        """
        Validate the registration endpoint; ranges are checked by BotConfig.validate

        Returns:
            Tuple[bool, Optional[str]]: (is_valid, error_message)
        """
        if not endpoint or not endpoint.strip():
            return False, "Registration endpoint is required (--endpoint or REGISTRATION_ENDPOINT)"

        if not endpoint.startswith(("http://", "https://")):
            return False, "Registration endpoint must be an http(s) URL"

        return True, None

    def apply_arguments(self, args: argparse.Namespace):
        """Copy parsed arguments over the environment defaults"""
        self.config.count = args.count
        self.config.delay_ms = args.delay_ms
        self.config.endpoint = args.endpoint
        self.config.store_dir = args.store_dir
        self.config.enforce_response_code = args.enforce_response_code
        self.config.verbose = args.verbose

    def initialize_account_service(self) -> AccountService:
        store = LocalStore(self.config.store_dir)
        self.account_service = AccountService(store=store)
        loaded = self.account_service.load()
        logging.getLogger(__name__).info(f"Loaded {loaded} stored accounts from {store.directory}")
        return self.account_service

    def setup_callbacks(self, progress: Progress, task_id):
        """Setup registration service callbacks"""
        def on_account_start(account: GeneratedAccount):
            progress.update(task_id, description=f"Registering {account.email}")

        def on_account_complete(account: GeneratedAccount):
            if account.status == AccountStatus.SUCCESS:
                progress.console.print(f"[green]OK[/green]    {account.email}")
            else:
                progress.console.print(f"[red]ERROR[/red] {account.email}: {account.error_message}")
            progress.advance(task_id)

        def on_log_message(message: str):
            if self.config.verbose:
                progress.console.print(f"[dim]{message}[/dim]")

        self.registration_service.set_callbacks(
            on_account_start=on_account_start,
            on_account_complete=on_account_complete,
            on_log_message=on_log_message
        )

    async def run_registration(self) -> Tuple[int, int]:
        """Run one batch with a progress bar; Ctrl-C stops after the current account"""
        client = RegistrationClient(
            self.config.endpoint,
            timeout=self.config.timeout_seconds,
            enforce_response_code=self.config.enforce_response_code
        )
        self.registration_service = RegistrationService(
            client, self.account_service,
            delay_ms=self.config.delay_ms,
            user_type=self.config.user_type
        )

        loop = asyncio.get_running_loop()
        stop_handler_installed = False
        try:
            loop.add_signal_handler(
                signal.SIGINT,
                lambda: asyncio.ensure_future(self.registration_service.request_stop())
            )
            stop_handler_installed = True
        except (NotImplementedError, RuntimeError):
            pass

        try:
            with Progress(
                TextColumn("[progress.description]{task.description}"),
                BarColumn(),
                TextColumn("({task.completed}/{task.total})"),
                TimeRemainingColumn(),
                console=self.console
            ) as progress:
                task_id = progress.add_task("Starting", total=self.config.count)
                self.setup_callbacks(progress, task_id)
                return await self.registration_service.run(self.config.count)
        finally:
            if stop_handler_installed:
                loop.remove_signal_handler(signal.SIGINT)
            client.close()

    def build_accounts_table(self, accounts: List[GeneratedAccount]) -> Table:
        table = Table(title="Accounts", box=box.ROUNDED)
        table.add_column("ID", style="dim")
        table.add_column("Email", style="cyan")
        table.add_column("Password")
        table.add_column("MD5", style="dim")
        table.add_column("Status", justify="center")
        table.add_column("Created", style="magenta")
        table.add_column("Error", style="dim")

        for account in accounts:
            table.add_row(
                account.id[:8],
                account.email,
                account.password_plain,
                account.password_md5,
                STATUS_STYLES.get(account.status, account.status.value),
                account.created_at[:19],
                account.error_message or "-"
            )
        return table

    def show_results(self, accounts: List[GeneratedAccount]):
        stats = self.account_service.get_statistics()
        self.console.print(self.build_accounts_table(accounts))
        self.console.print(
            f"Total {stats['total']}  "
            f"[green]success {stats['success']}[/green]  "
            f"[red]error {stats['error']}[/red]  "
            f"[yellow]pending {stats['pending']}[/yellow]"
        )

    def handle_table_commands(self, args: argparse.Namespace) -> Optional[int]:
        """Run list/delete/clear/export; returns an exit code, None when none was requested"""
        if args.delete:
            matches = [a for a in self.account_service.get_accounts() if a.id.startswith(args.delete)]
            if len(matches) != 1:
                self.console.print(f"[red]No unique account matches id {args.delete}[/red]")
                return 1
            self.account_service.delete_account(matches[0].id)
            self.console.print(f"Deleted {matches[0].email}")
            return 0

        if args.clear:
            count = self.account_service.get_account_count()
            self.account_service.clear_accounts()
            self.console.print(f"Cleared {count} accounts")
            return 0

        if args.export:
            exporter = ExportService()
            accounts = self.account_service.get_accounts()
            if args.export == "csv":
                path = exporter.export_csv(accounts, args.output)
            else:
                path = exporter.export_text(accounts, args.output)
            self.console.print(f"Exported {len(accounts)} accounts to {path}")
            return 0

        if args.list:
            self.show_results(self.account_service.get_accounts())
            return 0

        return None

    def run(self, argv: Optional[List[str]] = None) -> int:
        """Parse arguments and run; returns the process exit code"""
        parser = self.create_argument_parser()
        args = parser.parse_args(argv)
        self.apply_arguments(args)
        setup_logging(args.verbose, self.console)

        try:
            self.initialize_account_service()

            exit_code = self.handle_table_commands(args)
            if exit_code is not None:
                return exit_code

            try:
                self.config.validate()
            except ConfigurationError as e:
                self.console.print(f"[red]Error: {e.message}[/red]")
                return 2

            is_valid, error_msg = self.validate_arguments(self.config.endpoint)
            if not is_valid:
                self.console.print(f"[red]Error: {error_msg}[/red]")
                return 2

            before = {a.id for a in self.account_service.get_accounts()}
            success, errors = asyncio.run(self.run_registration())
            batch = [a for a in self.account_service.get_accounts() if a.id not in before]

            self.show_results(batch)
            self.console.print(f"Batch finished: {success} succeeded, {errors} failed")
            return 0 if errors == 0 else 1

        except AccountMachineError as e:
            self.console.print(f"[red]Error: {e.message}[/red]")
            return 1


def main(argv: Optional[List[str]] = None):
    """CLI main entry point"""
    cli_handler = CLIHandler()
    try:
        sys.exit(cli_handler.run(argv))
    except KeyboardInterrupt:
        cli_handler.console.print("\n[yellow]Operation cancelled by user[/yellow]")
        sys.exit(1)


if __name__ == "__main__":
    main()
