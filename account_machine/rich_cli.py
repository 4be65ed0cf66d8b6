#!/usr/bin/env python3
"""
Rich UI Command Line Interface Module
Interactive machine game: sign in, generate accounts, step through them
"""

import logging
from typing import Optional

from rich import box
from rich.align import Align
from rich.console import Console
from rich.panel import Panel
from rich.prompt import Prompt, IntPrompt, Confirm
from rich.table import Table
from rich.text import Text

from .config import SupabaseConfig, MAX_BATCH_SIZE
from .exceptions import AccountMachineError, AuthenticationError, RemoteStoreError
from .models.game_state import MAX_LEVEL
from .services.local_store import LocalStore
from .services.machine_service import MachineService, ACCOUNTS_TABLE, STATE_TABLE
from .services.supabase_client import AuthSession, SupabaseAuth, SupabaseTable

QUIT = "quit"
SIGNED_OUT = "signed_out"


class RichMachineCLI:
    """Rich UI handler for the machine game"""

    def __init__(self, config: Optional[SupabaseConfig] = None, console: Optional[Console] = None):
        self.console = console or Console()
        self.config = config or SupabaseConfig()
        self.logger = logging.getLogger(f"{__name__}.{self.__class__.__name__}")
        self.auth: Optional[SupabaseAuth] = None
        self.session: Optional[AuthSession] = None
        self.machine: Optional[MachineService] = None

    def _on_auth_event(self, event: str, session: Optional[AuthSession]):
        self.logger.info(f"Auth event: {event}")
        self.session = session

    def show_welcome(self):
        self.console.print(Panel(
            Align.center(Text("The Smart Machine\n", style="bold green") +
                         Text("Generate accounts, then step through them level by level", style="dim")),
            box=box.DOUBLE,
            style="green",
            padding=(1, 2)
        ))

    # Authentication
    def auth_screen(self) -> Optional[str]:
        """Sign in or sign up; returns QUIT when the user leaves"""
        mode = "login"
        while self.session is None:
            action = Prompt.ask(
                "Sign in (l), create an account (s) or quit (q)",
                choices=["l", "s", "q"],
                default="l" if mode == "login" else "s",
                console=self.console
            )
            if action == "q":
                return QUIT
            mode = "signup" if action == "s" else "login"

            email = Prompt.ask("Email", console=self.console).strip()
            password = Prompt.ask("Password", password=True, console=self.console)
            if not email or not password:
                self.console.print("[red]Email and password are required[/red]")
                continue

            try:
                if mode == "signup":
                    self.auth.sign_up(email, password)
                    self.console.print("[green]Account created successfully[/green]")
                    mode = "login"
                else:
                    self.auth.sign_in(email, password)
            except AuthenticationError as e:
                self.console.print(f"[red]{e.user_message}[/red]")
        return None

    # Machine views
    def build_account_card(self) -> Panel:
        account = self.machine.current_account
        table = Table.grid(padding=(0, 2))
        table.add_column(style="bold")
        table.add_column()
        table.add_row("[green]Email[/green]", account.email)
        table.add_row("[blue]Password[/blue]", account.password_plain)

        return Panel(
            table,
            title=f"Account {self.machine.state.current_index + 1} of {len(self.machine.accounts)}",
            subtitle=f"Level {self.machine.level_label}",
            box=box.ROUNDED,
            border_style="green"
        )

    def generator_view(self) -> Optional[str]:
        """Shown while the machine is empty"""
        self.console.print(Panel("The machine is empty. Generate accounts to start the game.",
                                 title="Generator", box=box.ROUNDED, style="yellow"))
        action = Prompt.ask("Generate (g), sign out (l) or quit (q)", choices=["g", "l", "q"],
                            default="g", console=self.console)
        if action == "q":
            return QUIT
        if action == "l":
            self.auth.sign_out()
            return SIGNED_OUT

        count = IntPrompt.ask("How many accounts", default=10, console=self.console)
        if count < 1 or count > MAX_BATCH_SIZE:
            self.console.print(f"[red]Count must be between 1 and {MAX_BATCH_SIZE}[/red]")
            return None

        with self.console.status("Generating accounts..."):
            try:
                self.machine.generate(count)
            except RemoteStoreError as e:
                self.console.print(f"[red]Generation failed: {e.reason}[/red]")
        return None

    def completed_view(self) -> Optional[str]:
        self.console.print(Panel(
            Align.center(Text(f"Congratulations! You finished the challenge and reached level {MAX_LEVEL}!",
                              style="bold yellow")),
            box=box.DOUBLE,
            border_style="yellow"
        ))
        if Confirm.ask("Reset the machine?", default=True, console=self.console):
            return self.reset()
        return QUIT

    def reset(self) -> Optional[str]:
        try:
            self.machine.reset()
            self.console.print("[yellow]Machine reset to level 1[/yellow]")
        except RemoteStoreError as e:
            self.console.print(f"[red]Delete failed: {e.reason}[/red]")
        return None

    def game_view(self) -> Optional[str]:
        self.console.print(self.build_account_card())
        action = Prompt.ask("Press Enter for the next account, reset (r), sign out (l), quit (q)",
                            choices=["", "r", "l", "q"], default="", show_choices=False, show_default=False,
                            console=self.console)
        if action == "q":
            return QUIT
        if action == "l":
            self.auth.sign_out()
            return SIGNED_OUT
        if action == "r":
            if Confirm.ask("Are you sure? All accounts will be deleted and the level goes back to 1.",
                           default=False, console=self.console):
                return self.reset()
            return None

        self.machine.next()
        return None

    def machine_screen(self) -> str:
        """Game loop for the signed-in user; returns QUIT or SIGNED_OUT"""
        accounts_table = SupabaseTable(self.config, ACCOUNTS_TABLE, self.auth)
        state_table = SupabaseTable(self.config, STATE_TABLE, self.auth)
        self.machine = MachineService(accounts_table, state_table, self.session.user_id)

        with self.console.status("Loading the machine..."):
            self.machine.load()

        while True:
            if not self.machine.accounts:
                outcome = self.generator_view()
            elif self.machine.is_complete:
                outcome = self.completed_view()
            else:
                outcome = self.game_view()
            if outcome is not None:
                return outcome

    def run(self) -> int:
        self.show_welcome()
        try:
            self.auth = SupabaseAuth(self.config, LocalStore(self.config.store_dir))
        except AccountMachineError as e:
            self.console.print(f"[red]{e.message}[/red]")
            return 1

        unsubscribe = self.auth.on_auth_state_change(self._on_auth_event)
        try:
            while True:
                if self.auth.get_session() is None:
                    self.session = None
                    if self.auth_screen() == QUIT:
                        return 0
                if self.machine_screen() == QUIT:
                    return 0
        except KeyboardInterrupt:
            self.console.print("\n[yellow]Interrupted by user[/yellow]")
            return 1
        finally:
            unsubscribe()


def main():
    """Main entry point"""
    return RichMachineCLI().run()


if __name__ == "__main__":
    raise SystemExit(main())
