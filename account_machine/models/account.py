"""
Account record data model for generated credentials
"""

import re
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Optional

from ..crypto import digest_md5

_MD5_PATTERN = re.compile(r"^[0-9a-f]{32}$")


def utc_now_iso() -> str:
    """Current UTC time as an ISO-8601 string"""
    return datetime.now(timezone.utc).isoformat()


class AccountStatus(Enum):
    """Account registration status"""
    PENDING = "PENDING"
    SUCCESS = "SUCCESS"
    ERROR = "ERROR"

    @classmethod
    def from_value(cls, value: Optional[str]) -> "AccountStatus":
        """Map a stored status string to a status, unknown values become PENDING"""
        try:
            return cls(str(value).upper())
        except ValueError:
            return cls.PENDING


@dataclass
class GeneratedAccount:
    """One generated identity: email, password, hash and lifecycle status"""
    email: str
    password_plain: str
    password_md5: str
    id: str = field(default_factory=lambda: uuid.uuid4().hex)
    status: AccountStatus = AccountStatus.PENDING
    created_at: str = field(default_factory=utc_now_iso)
    error_message: Optional[str] = None

    def __post_init__(self):
        """Post initialization validation"""
        if not self.email or not self.password_plain:
            raise ValueError("Email and password are required")
        if not _MD5_PATTERN.match(self.password_md5 or ""):
            raise ValueError("password_md5 must be 32 lowercase hex characters")

    @classmethod
    def create(cls, email: str, password: str) -> "GeneratedAccount":
        """Create a pending record, hashing the password"""
        return cls(email=email, password_plain=password, password_md5=digest_md5(password))

    def mark_pending(self):
        """Mark account as waiting for registration"""
        self.status = AccountStatus.PENDING
        self.error_message = None

    def mark_success(self):
        """Mark account as successfully registered"""
        self.status = AccountStatus.SUCCESS
        self.error_message = None

    def mark_error(self, message: str = ""):
        """Mark account as failed with the failure message"""
        self.status = AccountStatus.ERROR
        self.error_message = message or "Registration failed"

    # Local store representation
    def to_dict(self) -> dict:
        data = {
            "id": self.id,
            "email": self.email,
            "passwordPlain": self.password_plain,
            "passwordMd5": self.password_md5,
            "status": self.status.value,
            "createdAt": self.created_at,
        }
        if self.error_message:
            data["errorMessage"] = self.error_message
        return data

    @classmethod
    def from_dict(cls, data: dict) -> "GeneratedAccount":
        return cls(
            id=str(data["id"]),
            email=data["email"],
            password_plain=data["passwordPlain"],
            password_md5=data["passwordMd5"],
            status=AccountStatus.from_value(data.get("status")),
            created_at=data.get("createdAt") or utc_now_iso(),
            error_message=data.get("errorMessage"),
        )

    # Remote table representation
    def to_row(self, user_id: str, status: str = "ready") -> dict:
        """Row for the generated_accounts table, the database assigns the id"""
        return {
            "user_id": user_id,
            "email": self.email,
            "password_plain": self.password_plain,
            "password_md5": self.password_md5,
            "created_at": self.created_at,
            "status": status,
        }

    @classmethod
    def from_row(cls, row: dict) -> "GeneratedAccount":
        password = row["password_plain"]
        return cls(
            id=str(row.get("id") or uuid.uuid4().hex),
            email=row["email"],
            password_plain=password,
            password_md5=row.get("password_md5") or digest_md5(password),
            status=AccountStatus.from_value(row.get("status")),
            created_at=row.get("created_at") or utc_now_iso(),
        )
