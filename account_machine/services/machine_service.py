"""
Machine game service

Keeps one user's generated accounts and game state in the hosted tables and
steps through the accounts one at a time.
"""

import logging
from dataclasses import replace
from typing import List, Optional

from ..account_generator import AccountGenerator
from ..exceptions import RemoteStoreError
from ..models.account import GeneratedAccount, utc_now_iso
from ..models.game_state import GameState, MAX_LEVEL
from .supabase_client import SupabaseTable

ACCOUNTS_TABLE = "generated_accounts"
STATE_TABLE = "game_state"


class MachineService:
    """Account list plus the per-user position/level counter"""

    def __init__(self, accounts_table: SupabaseTable, state_table: SupabaseTable, user_id: str,
                 generator: Optional[AccountGenerator] = None):
        self.logger = logging.getLogger(f"{__name__}.{self.__class__.__name__}")
        self.accounts_table = accounts_table
        self.state_table = state_table
        self.user_id = user_id
        self.account_generator = generator or AccountGenerator()

        self.accounts: List[GeneratedAccount] = []
        self.state = GameState(user_id=user_id)

    def load(self):
        """Fetch the user's accounts and game state, creating the state when missing"""
        try:
            rows = self.accounts_table.select({"user_id": self.user_id}, order_by="created_at", ascending=True)
            self.accounts = self._parse_rows(rows)
        except RemoteStoreError as e:
            # An empty or missing table is not worth interrupting the player for
            self.logger.error(f"Account fetch error: {e}")

        try:
            row = self.state_table.maybe_single({"user_id": self.user_id})
        except RemoteStoreError as e:
            self.logger.error(f"Game state fetch error: {e}")
            row = None

        if row:
            self.state = GameState.from_row(row)
        else:
            self.state = GameState(user_id=self.user_id)
            try:
                self.state_table.upsert(self.state.to_row(include_timestamp=False), on_conflict="user_id")
            except RemoteStoreError as e:
                self.logger.error(f"Init state error: {e}")

        if self.accounts and self.state.current_index >= len(self.accounts):
            self.logger.warning(
                f"Stored index {self.state.current_index} is past the end of {len(self.accounts)} accounts, "
                f"starting level {self.state.current_level} from the first account"
            )
            self._save_state(replace(self.state, current_index=0, updated_at=utc_now_iso()))

        self.logger.info(f"Loaded {len(self.accounts)} accounts at level {self.state.current_level}")

    def generate(self, count: int) -> List[GeneratedAccount]:
        """Generate ``count`` accounts and store them remotely in one insert"""
        if count < 1:
            raise ValueError("Count must be positive")

        rows = []
        for _ in range(count):
            email, password = self.account_generator.generate_credentials()
            rows.append(GeneratedAccount.create(email, password).to_row(self.user_id))

        stored = self.accounts_table.insert(rows)
        new_accounts = self._parse_rows(stored)

        was_empty = not self.accounts
        self.accounts.extend(new_accounts)
        if was_empty:
            self._save_state(self.state.reset(), include_timestamp=False)

        self.logger.info(f"Generated {len(new_accounts)} accounts")
        return new_accounts

    def next(self) -> GameState:
        """Advance to the next account, wrapping into the next level"""
        if not self.accounts:
            return self.state

        # Local state moves first, the remote write follows
        self.state = self.state.advanced(len(self.accounts))
        try:
            self.state_table.upsert(self.state.to_row(), on_conflict="user_id")
        except RemoteStoreError as e:
            self.logger.error(f"Game state save error: {e}")
        return self.state

    def reset(self):
        """Delete all of the user's accounts and go back to level 1"""
        self.accounts_table.delete({"user_id": self.user_id})
        self._save_state(self.state.reset(), include_timestamp=False)
        self.accounts = []

    def _parse_rows(self, rows) -> List[GeneratedAccount]:
        accounts = []
        for row in rows:
            try:
                accounts.append(GeneratedAccount.from_row(row))
            except (KeyError, ValueError) as e:
                self.logger.warning(f"Skipping invalid account row {row.get('id')}: {e}")
        return accounts

    def _save_state(self, state: GameState, include_timestamp: bool = True):
        self.state = state
        try:
            self.state_table.upsert(state.to_row(include_timestamp), on_conflict="user_id")
        except RemoteStoreError as e:
            self.logger.error(f"Game state save error: {e}")

    @property
    def current_account(self) -> Optional[GeneratedAccount]:
        if not self.accounts:
            return None
        if self.state.current_index < len(self.accounts):
            return self.accounts[self.state.current_index]
        return self.accounts[0]

    @property
    def position_label(self) -> str:
        return f"{self.state.current_index + 1} / {len(self.accounts)}"

    @property
    def level_label(self) -> str:
        return f"{self.state.current_level} / {MAX_LEVEL}"

    @property
    def is_complete(self) -> bool:
        return self.state.is_complete
