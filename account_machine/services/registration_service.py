"""
Registration service coordinator

Runs the bot loop: generate one account, submit it, record the outcome,
wait, repeat. The loop lifecycle is a small state machine so a stop
request can only take effect between two accounts, never mid-request.
"""

import asyncio
import logging
from typing import Callable, Optional, Tuple

from transitions.extensions.asyncio import AsyncMachine

from ..exceptions import AccountMachineError
from ..models.account import GeneratedAccount
from ..models.registration import RegistrationPayload
from .account_service import AccountService
from .registration_client import RegistrationClient


class CallbackManager:
    """Manages callbacks for UI updates"""

    def __init__(self):
        self.on_account_start: Optional[Callable[[GeneratedAccount], None]] = None
        self.on_account_complete: Optional[Callable[[GeneratedAccount], None]] = None
        self.on_batch_complete: Optional[Callable[[int, int], None]] = None
        self.on_log_message: Optional[Callable[[str], None]] = None

    def set_callbacks(self,
                      on_account_start: Callable[[GeneratedAccount], None] = None,
                      on_account_complete: Callable[[GeneratedAccount], None] = None,
                      on_batch_complete: Callable[[int, int], None] = None,
                      on_log_message: Callable[[str], None] = None):
        """Set callback functions for UI updates"""
        self.on_account_start = on_account_start
        self.on_account_complete = on_account_complete
        self.on_batch_complete = on_batch_complete
        self.on_log_message = on_log_message


class RegistrationService:
    """
    Sequential batch registration

    One request in flight at a time, no retries. A failed request marks its
    account as ERROR and the loop moves on to the next one.
    """

    states = ['idle', 'running', 'stopping']

    def __init__(self, client: RegistrationClient, account_service: AccountService,
                 delay_ms: int = 1500, user_type: int = 1):
        self.logger = logging.getLogger(f"{__name__}.{self.__class__.__name__}")
        self.client = client
        self.account_service = account_service
        self.delay_ms = delay_ms
        self.user_type = user_type

        self.target_count = 0
        self.processed_count = 0
        self.success_count = 0
        self.error_count = 0

        self._callbacks = CallbackManager()

        self.machine = AsyncMachine(
            model=self,
            states=RegistrationService.states,
            initial='idle',
            auto_transitions=False,
            ignore_invalid_triggers=True
        )
        self.machine.add_transitions([
            ['begin', 'idle', 'running'],
            ['halt', 'running', 'stopping'],
            ['finish', ['running', 'stopping'], 'idle'],
        ])

    def _log_message(self, message: str):
        """Internal logging and callback"""
        self.logger.info(message)
        if self._callbacks.on_log_message:
            self._callbacks.on_log_message(message)

    def set_callbacks(self,
                      on_account_start: Callable[[GeneratedAccount], None] = None,
                      on_account_complete: Callable[[GeneratedAccount], None] = None,
                      on_batch_complete: Callable[[int, int], None] = None,
                      on_log_message: Callable[[str], None] = None):
        """Set callback functions for UI updates"""
        self._callbacks.set_callbacks(on_account_start, on_account_complete,
                                      on_batch_complete, on_log_message)

    @property
    def is_active(self) -> bool:
        return self.state != 'idle'

    async def request_stop(self) -> bool:
        """Ask the loop to stop after the account currently in progress"""
        if self.state != 'running':
            return False
        await self.halt()
        self._log_message("Stop requested, finishing current account")
        return True

    async def register_account(self, account: GeneratedAccount) -> bool:
        """Submit one account and record the outcome on it"""
        payload = RegistrationPayload.for_account(account, self.user_type)
        try:
            await asyncio.to_thread(self.client.register, payload)
        except AccountMachineError as e:
            self.account_service.mark_error(account.id, e.message)
            self._log_message(f"Registration failed for {account.email}: {e.message}")
            return False
        except Exception as e:
            self.logger.error(f"Unexpected registration error: {e}")
            self.account_service.mark_error(account.id, f"Unexpected error: {e}")
            self._log_message(f"Registration failed for {account.email}: {e}")
            return False

        self.account_service.mark_success(account.id)
        self._log_message(f"Registration successful for {account.email}")
        return True

    async def run(self, count: int) -> Tuple[int, int]:
        """
        Generate and register ``count`` accounts

        Returns:
            (success_count, error_count) for this run
        """
        if count < 1:
            raise ValueError("Count must be positive")
        if self.is_active:
            raise RuntimeError("Registration is already running")

        await self.begin()
        self.target_count = count
        self.processed_count = 0
        self.success_count = 0
        self.error_count = 0
        self._log_message(f"Started batch registration for {count} accounts")

        try:
            for i in range(count):
                if self.state == 'stopping':
                    self._log_message(f"Stopped after {self.processed_count} of {count} accounts")
                    break

                account = self.account_service.create_account()
                if self._callbacks.on_account_start:
                    self._callbacks.on_account_start(account)

                if await self.register_account(account):
                    self.success_count += 1
                else:
                    self.error_count += 1
                self.processed_count += 1

                if self._callbacks.on_account_complete:
                    self._callbacks.on_account_complete(account)

                if i < count - 1 and self.state == 'running' and self.delay_ms > 0:
                    await asyncio.sleep(self.delay_ms / 1000)
        finally:
            await self.finish()

        self._log_message(f"Batch finished: {self.success_count} succeeded, {self.error_count} failed")
        if self._callbacks.on_batch_complete:
            self._callbacks.on_batch_complete(self.success_count, self.error_count)

        return self.success_count, self.error_count

    def get_progress_info(self) -> dict:
        """Get current progress information"""
        total = self.target_count
        return {
            'total': total,
            'completed': self.processed_count,
            'success': self.success_count,
            'error': self.error_count,
            'progress_percent': int(self.processed_count * 100 / total) if total else 0,
            'is_active': self.is_active,
            'stop_requested': self.state == 'stopping'
        }
