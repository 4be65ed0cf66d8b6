"""
Request body sent to the registration endpoint
"""

from dataclasses import dataclass, asdict

from .account import GeneratedAccount


@dataclass
class RegistrationPayload:
    account: str
    pwd: str
    user_type: int = 1
    user_email: str = ""
    code: str = ""
    captcha: str = ""
    telegram: str = ""
    whatsapp: str = ""

    @classmethod
    def for_account(cls, account: GeneratedAccount, user_type: int = 1) -> "RegistrationPayload":
        """Build the payload for a record; only the MD5 hash is sent"""
        return cls(
            account=account.email,
            pwd=account.password_md5,
            user_type=user_type,
            user_email=account.email,
        )

    def to_json(self) -> dict:
        return asdict(self)
