"""
Export service for writing the account table to files.

Provides:
- Pandas DataFrame for CSV output
- File locking to prevent concurrent writers on the same file
- Timestamp-based default filenames to avoid overwriting earlier exports
- Plain "email --- password" text listings
"""

import logging
from datetime import datetime
from pathlib import Path
from typing import List, Optional

import pandas as pd
from filelock import FileLock

from ..models.account import GeneratedAccount

BASE_COLUMNS = ['email', 'password', 'password_md5']
RESULT_COLUMNS = ['status', 'error_message', 'created_at']


class ExportService:
    """Service for exporting generated accounts"""

    def __init__(self, output_dir: str = "."):
        """
        Initialize export service

        Args:
            output_dir: Directory for exported files (default: current directory)
        """
        self.output_dir = Path(output_dir)
        self.logger = logging.getLogger(f"{__name__}.{self.__class__.__name__}")

    def _target(self, filename: Optional[str], suffix: str) -> Path:
        if not filename:
            timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
            filename = f"accounts_{timestamp}.{suffix}"
        self.output_dir.mkdir(parents=True, exist_ok=True)
        return self.output_dir / filename

    def to_dataframe(self, accounts: List[GeneratedAccount], include_results: bool = True) -> pd.DataFrame:
        """Build the export table, one row per account"""
        columns = BASE_COLUMNS + (RESULT_COLUMNS if include_results else [])
        records = []
        for account in accounts:
            record = {
                'email': account.email,
                'password': account.password_plain,
                'password_md5': account.password_md5,
            }
            if include_results:
                record.update({
                    'status': account.status.value,
                    'error_message': account.error_message or "",
                    'created_at': account.created_at,
                })
            records.append(record)
        return pd.DataFrame(records, columns=columns)

    def export_csv(self, accounts: List[GeneratedAccount], filename: Optional[str] = None,
                   include_results: bool = True) -> Path:
        """Write accounts to a CSV file and return its path"""
        csv_file = self._target(filename, "csv")
        df = self.to_dataframe(accounts, include_results)

        with FileLock(str(csv_file) + ".lock"):
            df.to_csv(csv_file, index=False, encoding='utf-8')

        self.logger.info(f"Exported {len(df)} accounts to {csv_file}")
        return csv_file

    def export_text(self, accounts: List[GeneratedAccount], filename: Optional[str] = None) -> Path:
        """Write one 'email --- password' line per account"""
        txt_file = self._target(filename, "txt")

        with FileLock(str(txt_file) + ".lock"):
            with open(txt_file, 'w', encoding='utf-8') as f:
                for account in accounts:
                    f.write(f"{account.email} --- {account.password_plain}\n")

        self.logger.info(f"Exported {len(accounts)} accounts to {txt_file}")
        return txt_file
