"""
Integration tests for the end-to-end registration flow
"""

import pandas as pd
import pytest

from account_machine.crypto import digest_md5
from account_machine.models.account import AccountStatus
from account_machine.services.account_service import AccountService
from account_machine.services.export_service import ExportService
from account_machine.services.local_store import LocalStore
from account_machine.services.registration_client import RegistrationClient
from account_machine.services.registration_service import RegistrationService

ENDPOINT = "https://api.test/register"


class FakeResponse:

    def __init__(self, status_code, body):
        self.status_code = status_code
        self.ok = 200 <= status_code < 300
        self.reason = "OK" if self.ok else "Error"
        self._body = body

    def json(self):
        return self._body


class FakeSession:
    """Stands in for requests.Session, failing every n-th request when asked to"""

    def __init__(self, fail_every=0):
        self.headers = {}
        self.received = []
        self.fail_every = fail_every
        self.closed = False

    def post(self, url, json=None, timeout=None):
        self.received.append(json)
        if self.fail_every and len(self.received) % self.fail_every == 0:
            return FakeResponse(500, {"message": "temporarily unavailable"})
        return FakeResponse(200, {"code": 200, "msg": "ok"})

    def close(self):
        self.closed = True


class TestRegistrationFlow:
    """Integration test suite for the registration loop"""

    def setup_method(self):
        self.events = []

    def build(self, tmp_path, http):
        store = LocalStore(tmp_path / "store")
        account_service = AccountService(store=store)
        client = RegistrationClient(ENDPOINT, session=http)
        service = RegistrationService(client, account_service, delay_ms=0)
        service.set_callbacks(
            on_account_complete=lambda account: self.events.append((account.email, account.status))
        )
        return store, account_service, service

    @pytest.mark.asyncio
    async def test_batch_is_submitted_and_persisted(self, tmp_path):
        http = FakeSession()
        store, account_service, service = self.build(tmp_path, http)

        success, errors = await service.run(5)

        assert (success, errors) == (5, 0)
        assert len(http.received) == 5
        for payload, account in zip(http.received, account_service.get_accounts()):
            assert payload["account"] == account.email
            assert payload["user_email"] == account.email
            assert payload["pwd"] == digest_md5(account.password_plain)
            assert payload["user_type"] == 1
            assert account.password_plain not in payload.values()

        reloaded = AccountService(store=store)
        assert reloaded.load() == 5
        assert all(a.status == AccountStatus.SUCCESS for a in reloaded.get_accounts())

    @pytest.mark.asyncio
    async def test_failures_are_recorded_and_exported(self, tmp_path):
        http = FakeSession(fail_every=2)
        _, account_service, service = self.build(tmp_path, http)

        success, errors = await service.run(4)

        assert (success, errors) == (2, 2)
        assert [status for _, status in self.events] == [
            AccountStatus.SUCCESS, AccountStatus.ERROR, AccountStatus.SUCCESS, AccountStatus.ERROR
        ]

        path = ExportService(tmp_path).export_csv(account_service.get_accounts(), "results.csv")
        df = pd.read_csv(path, keep_default_na=False)
        assert df["status"].tolist() == ["SUCCESS", "ERROR", "SUCCESS", "ERROR"]
        assert df["error_message"].tolist()[1] == "HTTP 500: temporarily unavailable"

    @pytest.mark.asyncio
    async def test_consecutive_batches_accumulate(self, tmp_path):
        http = FakeSession()
        _, account_service, service = self.build(tmp_path, http)

        await service.run(2)
        await service.run(3)

        emails = [a.email for a in account_service.get_accounts()]
        assert len(emails) == 5
        assert len(set(emails)) == 5
