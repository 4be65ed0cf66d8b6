"""
Unit tests for MachineService
"""

from unittest.mock import MagicMock

import pytest

from account_machine.exceptions import RemoteStoreError
from account_machine.models.game_state import GameState
from account_machine.services.machine_service import MachineService


def stored_rows(rows):
    """Mimic the database returning inserted rows with ids assigned"""
    return [dict(row, id=i + 1) for i, row in enumerate(rows)]


class TestMachineService:
    """Game flow against mocked remote tables"""

    def setup_method(self):
        self.accounts_table = MagicMock()
        self.accounts_table.select.return_value = []
        self.accounts_table.insert.side_effect = stored_rows
        self.state_table = MagicMock()
        self.state_table.maybe_single.return_value = None
        self.service = MachineService(self.accounts_table, self.state_table, "user-1")

    def test_load_creates_missing_state(self):
        self.service.load()

        assert self.service.state == GameState(user_id="user-1")
        self.state_table.upsert.assert_called_once_with(
            {"user_id": "user-1", "current_index": 0, "current_level": 1}, on_conflict="user_id"
        )
        self.accounts_table.select.assert_called_once_with(
            {"user_id": "user-1"}, order_by="created_at", ascending=True
        )

    def test_load_existing_state_and_accounts(self):
        self.accounts_table.select.return_value = [
            {"id": 1, "email": "a@b.co", "password_plain": "Passw0rdAbc", "status": "ready"},
            {"id": 2, "email": "c@d.co", "password_plain": "Passw0rdDef", "status": "ready"},
        ]
        self.state_table.maybe_single.return_value = {"user_id": "user-1", "current_index": 1, "current_level": 4}

        self.service.load()

        assert len(self.service.accounts) == 2
        assert self.service.current_account.email == "c@d.co"
        assert self.service.position_label == "2 / 2"
        assert self.service.level_label == "4 / 10"
        self.state_table.upsert.assert_not_called()

    def test_load_restarts_level_when_index_past_end(self):
        self.accounts_table.select.return_value = [
            {"id": i, "email": f"a{i}@x.com", "password_plain": f"Passw0rd{i}xyz", "status": "ready"}
            for i in range(3)
        ]
        self.state_table.maybe_single.return_value = {"user_id": "user-1", "current_index": 7, "current_level": 2}

        self.service.load()

        assert self.service.state.current_index == 0
        assert self.service.state.current_level == 2
        assert self.service.position_label == "1 / 3"
        saved = self.state_table.upsert.call_args[0][0]
        assert (saved["current_index"], saved["current_level"]) == (0, 2)

        state = self.service.next()
        assert (state.current_index, state.current_level) == (1, 2)

    def test_load_keeps_index_inside_list(self):
        self.accounts_table.select.return_value = [
            {"id": i, "email": f"a{i}@x.com", "password_plain": f"Passw0rd{i}xyz"} for i in range(3)
        ]
        self.state_table.maybe_single.return_value = {"user_id": "user-1", "current_index": 2, "current_level": 5}

        self.service.load()

        assert self.service.state.current_index == 2
        self.state_table.upsert.assert_not_called()

    def test_load_skips_malformed_rows(self):
        self.accounts_table.select.return_value = [
            {"id": 1, "email": "a@b.co", "password_plain": "Passw0rdAbc"},
            {"id": 2, "email": "c@d.co", "password_plain": ""},
            {"id": 3, "password_plain": "Passw0rdGhi"},
            {"id": 4, "email": "e@f.co", "password_plain": "Passw0rdJkl", "password_md5": "not-a-hash"},
            {"id": 5, "email": "g@h.co", "password_plain": "Passw0rdMno"},
        ]

        self.service.load()

        assert [a.email for a in self.service.accounts] == ["a@b.co", "g@h.co"]

    def test_load_tolerates_fetch_errors(self):
        self.accounts_table.select.side_effect = RemoteStoreError("generated_accounts", "select", "relation missing")
        self.state_table.maybe_single.side_effect = RemoteStoreError("game_state", "select", "relation missing")
        self.state_table.upsert.side_effect = RemoteStoreError("game_state", "upsert", "relation missing")

        self.service.load()

        assert self.service.accounts == []
        assert self.service.state.current_level == 1

    def test_generate_inserts_once_and_resets_when_empty(self):
        self.service.state = GameState(user_id="user-1", current_index=0, current_level=3)

        accounts = self.service.generate(5)

        assert len(accounts) == 5
        self.accounts_table.insert.assert_called_once()
        rows = self.accounts_table.insert.call_args[0][0]
        assert all(row["user_id"] == "user-1" and row["status"] == "ready" for row in rows)
        assert self.service.state.current_level == 1
        self.state_table.upsert.assert_called_once()

    def test_generate_appends_without_reset(self):
        self.service.generate(2)
        self.service.next()
        self.state_table.upsert.reset_mock()

        self.service.generate(3)

        assert len(self.service.accounts) == 5
        assert self.service.state.current_index == 1
        self.state_table.upsert.assert_not_called()

    def test_generate_rejects_non_positive(self):
        with pytest.raises(ValueError):
            self.service.generate(0)

    def test_generate_insert_failure_propagates(self):
        self.accounts_table.insert.side_effect = RemoteStoreError("generated_accounts", "insert", "denied")

        with pytest.raises(RemoteStoreError):
            self.service.generate(1)
        assert self.service.accounts == []

    def test_next_wraps_into_next_level(self):
        self.service.generate(3)

        for _ in range(3):
            state = self.service.next()

        assert (state.current_index, state.current_level) == (0, 2)
        last_row = self.state_table.upsert.call_args[0][0]
        assert last_row["current_level"] == 2
        assert "updated_at" in last_row

    def test_next_on_empty_list_is_noop(self):
        state = self.service.next()

        assert state == GameState(user_id="user-1")
        self.state_table.upsert.assert_not_called()

    def test_next_keeps_local_state_when_save_fails(self):
        self.service.generate(2)
        self.state_table.upsert.side_effect = RemoteStoreError("game_state", "upsert", "offline")

        self.service.next()

        assert self.service.state.current_index == 1

    def test_completes_after_last_level(self):
        self.service.generate(1)

        for _ in range(10):
            self.service.next()

        assert self.service.state.current_level == 11
        assert self.service.is_complete

    def test_reset(self):
        self.service.generate(2)
        self.service.next()

        self.service.reset()

        self.accounts_table.delete.assert_called_once_with({"user_id": "user-1"})
        assert self.service.accounts == []
        assert self.service.state == GameState(user_id="user-1")
        assert self.service.current_account is None

    def test_reset_delete_failure_propagates(self):
        self.service.generate(2)
        self.accounts_table.delete.side_effect = RemoteStoreError("generated_accounts", "delete", "denied")

        with pytest.raises(RemoteStoreError):
            self.service.reset()
        assert len(self.service.accounts) == 2
