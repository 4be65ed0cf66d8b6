"""
Unit tests for CLI module
"""

import argparse
import io
from unittest.mock import patch

import pytest
from rich.console import Console

from account_machine.cli import CLIHandler
from account_machine.exceptions import NetworkError
from account_machine.services.account_service import AccountService
from account_machine.services.local_store import LocalStore

ENDPOINT = "https://api.test/register"


class TestCLIHandler:
    """CLI handler test class"""

    @pytest.fixture(autouse=True)
    def handler(self, monkeypatch):
        monkeypatch.delenv("REGISTRATION_ENDPOINT", raising=False)
        monkeypatch.delenv("ENFORCE_RESPONSE_CODE", raising=False)
        self.output = io.StringIO()
        self.cli_handler = CLIHandler(console=Console(file=self.output, width=200))
        with patch("account_machine.cli.setup_logging"):
            yield self.cli_handler

    def test_create_argument_parser(self):
        parser = self.cli_handler.create_argument_parser()

        assert isinstance(parser, argparse.ArgumentParser)

        args = parser.parse_args(["--count", "5", "--delay-ms", "0", "--endpoint", ENDPOINT])
        assert args.count == 5
        assert args.delay_ms == 0
        assert args.endpoint == ENDPOINT
        assert args.enforce_response_code is False

        with pytest.raises(SystemExit):
            parser.parse_args(["--export", "xlsx"])

    def test_validate_arguments_valid(self):
        is_valid, error_msg = self.cli_handler.validate_arguments(ENDPOINT)
        assert is_valid is True
        assert error_msg is None

    @pytest.mark.parametrize("endpoint", [None, "   ", "ftp://api.test", "api.test/register"])
    def test_validate_arguments_invalid(self, endpoint):
        is_valid, error_msg = self.cli_handler.validate_arguments(endpoint)
        assert is_valid is False
        assert error_msg

    def test_missing_endpoint_exit_code(self, tmp_path):
        assert self.cli_handler.run(["--store-dir", str(tmp_path)]) == 2
        assert "endpoint" in self.output.getvalue()

    @pytest.mark.parametrize("argv", [
        ["--count", "0"],
        ["--count", "1001"],
        ["--delay-ms", "-1"],
    ])
    @patch("account_machine.cli.RegistrationClient")
    def test_out_of_range_arguments_exit_code(self, mock_client_cls, argv, tmp_path):
        exit_code = self.cli_handler.run(["--endpoint", ENDPOINT, "--store-dir", str(tmp_path), *argv])

        assert exit_code == 2
        mock_client_cls.assert_not_called()

    @patch("account_machine.cli.RegistrationClient")
    def test_zero_timeout_is_rejected(self, mock_client_cls, monkeypatch, tmp_path):
        monkeypatch.setenv("REGISTRATION_TIMEOUT", "0")
        cli_handler = CLIHandler(console=Console(file=self.output, width=200))

        exit_code = cli_handler.run(["--count", "1", "--endpoint", ENDPOINT, "--store-dir", str(tmp_path)])

        assert exit_code == 2
        assert "Timeout must be positive" in self.output.getvalue()
        mock_client_cls.assert_not_called()

    @patch("account_machine.cli.RegistrationClient")
    def test_run_registers_batch(self, mock_client_cls, tmp_path):
        mock_client_cls.return_value.register.return_value = {"code": 200}

        exit_code = self.cli_handler.run([
            "--count", "3", "--delay-ms", "0", "--endpoint", ENDPOINT, "--store-dir", str(tmp_path)
        ])

        assert exit_code == 0
        assert mock_client_cls.return_value.register.call_count == 3
        mock_client_cls.return_value.close.assert_called_once()
        assert len(LocalStore(tmp_path).load("generated_accounts")) == 3
        assert "3 succeeded, 0 failed" in self.output.getvalue()

    @patch("account_machine.cli.RegistrationClient")
    def test_run_with_failures_exit_code(self, mock_client_cls, tmp_path):
        mock_client_cls.return_value.register.side_effect = [{"code": 200}, NetworkError("HTTP 500: oops")]

        exit_code = self.cli_handler.run([
            "--count", "2", "--delay-ms", "0", "--endpoint", ENDPOINT, "--store-dir", str(tmp_path)
        ])

        assert exit_code == 1
        assert "HTTP 500: oops" in self.output.getvalue()

    @patch("account_machine.cli.RegistrationClient")
    def test_enforce_flag_passed_to_client(self, mock_client_cls, tmp_path):
        mock_client_cls.return_value.register.return_value = {"code": 200}

        self.cli_handler.run([
            "--count", "1", "--delay-ms", "0", "--endpoint", ENDPOINT,
            "--store-dir", str(tmp_path), "--enforce-response-code"
        ])

        assert mock_client_cls.call_args[1]["enforce_response_code"] is True


class TestTableCommands:
    """List, delete, clear and export against a stored table"""

    @pytest.fixture(autouse=True)
    def stored(self, tmp_path):
        self.store_dir = tmp_path / "store"
        service = AccountService(store=LocalStore(self.store_dir))
        self.first = service.create_account("first@example.com", "FirstPassw0rd")
        self.second = service.create_account("second@example.com", "SecondPassw0rd")
        service.mark_success(self.first.id)

        self.output = io.StringIO()
        self.cli_handler = CLIHandler(console=Console(file=self.output, width=200))
        with patch("account_machine.cli.setup_logging"):
            yield

    def run(self, *argv):
        return self.cli_handler.run(["--store-dir", str(self.store_dir), *argv])

    def test_list(self):
        assert self.run("--list") == 0

        text = self.output.getvalue()
        assert "first@example.com" in text
        assert "second@example.com" in text

    def test_delete_by_id_prefix(self):
        assert self.run("--delete", self.first.id[:12]) == 0

        remaining = LocalStore(self.store_dir).load("generated_accounts")
        assert [row["email"] for row in remaining] == ["second@example.com"]

    def test_delete_unknown_id(self):
        assert self.run("--delete", "zzzz") == 1

    def test_clear(self):
        assert self.run("--clear") == 0
        assert LocalStore(self.store_dir).load("generated_accounts") == []

    def test_export_csv(self, tmp_path):
        target = tmp_path / "export.csv"

        assert self.run("--export", "csv", "--output", str(target)) == 0

        lines = target.read_text(encoding="utf-8").splitlines()
        assert lines[0].startswith("email,password,password_md5,status")
        assert len(lines) == 3

    def test_export_text(self, tmp_path):
        target = tmp_path / "export.txt"

        assert self.run("--export", "txt", "--output", str(target)) == 0

        assert "first@example.com --- FirstPassw0rd" in target.read_text(encoding="utf-8")

    def test_status_column(self):
        table = self.cli_handler.build_accounts_table([self.first])
        assert table.row_count == 1
