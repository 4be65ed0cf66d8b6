"""
Account service for managing the generated account table
"""

import logging
import uuid
from typing import List, Optional, Dict, Any

from ..models.account import GeneratedAccount, AccountStatus
from ..account_generator import AccountGenerator
from .local_store import LocalStore


class AccountService:
    """Service for account data management and business logic"""

    def __init__(self, store: Optional[LocalStore] = None,
                 generator: Optional[AccountGenerator] = None,
                 storage_key: str = "generated_accounts"):
        """Initialize the account service with an optional persistent store"""
        self.logger = logging.getLogger(f"{__name__}.{self.__class__.__name__}")
        self._accounts: List[GeneratedAccount] = []
        self.store = store
        self.storage_key = storage_key
        self.account_generator = generator or AccountGenerator()

    # Persistence
    def load(self) -> int:
        """Load accounts from the store, returns number loaded"""
        if self.store is None:
            return 0

        accounts = []
        seen_ids = set()
        for data in self.store.load(self.storage_key):
            try:
                account = GeneratedAccount.from_dict(data)
            except (KeyError, ValueError) as e:
                self.logger.warning(f"Skipping invalid stored account: {e}")
                continue
            if account.id in seen_ids:
                self.logger.warning(f"Skipping duplicate stored account id: {account.id}")
                continue
            seen_ids.add(account.id)
            accounts.append(account)

        self._accounts = accounts
        return len(accounts)

    def save(self):
        """Write all accounts to the store"""
        if self.store is not None:
            self.store.save(self.storage_key, [account.to_dict() for account in self._accounts])

    # Core account operations
    def get_accounts(self) -> List[GeneratedAccount]:
        """Get all accounts"""
        return self._accounts.copy()

    def get_account_count(self) -> int:
        """Get total number of accounts"""
        return len(self._accounts)

    def get_account(self, account_id: str) -> Optional[GeneratedAccount]:
        """Get account by ID"""
        return next((acc for acc in self._accounts if acc.id == account_id), None)

    def create_account(self, email: Optional[str] = None, password: Optional[str] = None) -> GeneratedAccount:
        """Create a pending account, generating whatever credentials are missing"""
        email = email or self.account_generator.generate_email()
        password = password or self.account_generator.generate_password()

        account = GeneratedAccount.create(email, password)
        while self.get_account(account.id) is not None:
            account.id = uuid.uuid4().hex

        self._accounts.append(account)
        self.save()
        return account

    def update_account_status(self, account_id: str, status: AccountStatus, error_message: str = "") -> bool:
        """Update account status, persisting the change"""
        account = self.get_account(account_id)
        if account is None:
            return False

        if status == AccountStatus.SUCCESS:
            account.mark_success()
        elif status == AccountStatus.ERROR:
            account.mark_error(error_message)
        else:
            account.mark_pending()
        self.save()
        return True

    def mark_pending(self, account_id: str) -> bool:
        return self.update_account_status(account_id, AccountStatus.PENDING)

    def mark_success(self, account_id: str) -> bool:
        """Mark account as successfully registered"""
        return self.update_account_status(account_id, AccountStatus.SUCCESS)

    def mark_error(self, account_id: str, error_message: str) -> bool:
        """Mark account as failed with error message"""
        return self.update_account_status(account_id, AccountStatus.ERROR, error_message)

    def delete_account(self, account_id: str) -> bool:
        """Delete a single account"""
        account = self.get_account(account_id)
        if account is None:
            return False
        self._accounts.remove(account)
        self.save()
        return True

    def clear_accounts(self):
        """Clear all accounts"""
        self._accounts.clear()
        self.save()

    # Account statistics and filtering
    def get_accounts_by_status(self, status: AccountStatus) -> List[GeneratedAccount]:
        """Get accounts filtered by status"""
        return [account for account in self._accounts if account.status == status]

    def get_statistics(self) -> Dict[str, Any]:
        """Get account statistics"""
        total = len(self._accounts)
        success = len(self.get_accounts_by_status(AccountStatus.SUCCESS))
        error = len(self.get_accounts_by_status(AccountStatus.ERROR))

        return {
            'total': total,
            'pending': total - success - error,
            'success': success,
            'error': error,
            'progress': int((success + error) * 100 / total) if total > 0 else 0
        }
