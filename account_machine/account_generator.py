#!/usr/bin/python
# -*- coding: utf-8 -*-
import logging
import random
import re
import string
from pathlib import Path
from faker import Faker

logger = logging.getLogger(__name__)


class AccountGenerator:
    DEFAULT_PASSWORD_MIN_LENGTH = 10
    DEFAULT_PASSWORD_MAX_LENGTH = 14
    # Lower bound enforced regardless of configuration
    PASSWORD_POLICY_MIN_LENGTH = 8
    TOKEN_LENGTH = 8

    def __init__(self, config=None):
        """Initialize generator with configuration."""
        self.config = config or {}
        self.fake = Faker('en_US')  # Initialize Faker with English locale
        self.random = random.SystemRandom()

        self.output_dir = Path("output")
        self.output_file = self.output_dir / "accounts.csv"

    def _settings(self):
        return self.config.get("account_generator", {})

    def _name(self, kind="first"):
        """Faker name reduced to plain lowercase ascii."""
        raw = self.fake.first_name() if kind == "first" else self.fake.last_name()
        return re.sub(r"[^a-z0-9]", "", raw.lower()) or "user"

    def _token(self, length=None):
        alphabet = string.ascii_lowercase + string.digits
        return "".join(self.random.choice(alphabet) for _ in range(length or self.TOKEN_LENGTH))

    def generate_local_part(self):
        """Generate the part of the address before the '@'."""
        patterns = [
            lambda: self._name() + "." + self._name("last"),
            lambda: self._name() + "_" + self._name("last"),
            lambda: self._name() + self._name("last"),
            lambda: self._name()[0] + self._name("last"),
            lambda: self._name() + str(self.random.randint(1985, 2005)),
            lambda: self._name("last") + "." + self._name(),
            lambda: self.random.choice(["the", "real", "its", "mr", "ms"]) + self._name(),
        ]

        stem = self.random.choice(patterns)()
        separator = self.random.choice([".", "_", ""])
        local_part = f"{stem}{separator}{self._token()}"

        # Collapse anything that would make the address invalid
        local_part = re.sub(r"[._]{2,}", ".", local_part)
        return local_part[:64].strip("._")

    def generate_domain(self):
        """Pick a mail domain, configured list first, Faker's free domains otherwise."""
        domains = self._settings().get("email_domains")
        if domains:
            return self.random.choice(list(domains))
        return self.fake.free_email_domain()

    def generate_email(self):
        """Generate a random, syntactically valid email address."""
        return f"{self.generate_local_part()}@{self.generate_domain()}"

    def generate_password(self):
        """Generate a random password with lowercase, uppercase and digits."""
        config = self._settings()
        min_length = max(config.get("password_min_length", self.DEFAULT_PASSWORD_MIN_LENGTH),
                         self.PASSWORD_POLICY_MIN_LENGTH)
        max_length = max(config.get("password_max_length", self.DEFAULT_PASSWORD_MAX_LENGTH), min_length)
        length = self.random.randint(min_length, max_length)

        special_chars = config.get("password_special_chars", "")
        required_sets = [string.ascii_lowercase, string.ascii_uppercase, string.digits]
        if special_chars:
            required_sets.append(special_chars)

        # One character from every required set, the rest from all of them
        chars = [self.random.choice(charset) for charset in required_sets]
        all_chars = "".join(required_sets)
        chars.extend(self.random.choice(all_chars) for _ in range(length - len(chars)))

        self.random.shuffle(chars)
        return "".join(chars)

    def generate_credentials(self):
        """Generate an (email, password) pair."""
        return self.generate_email(), self.generate_password()

    def generate_unique_accounts(self, num_accounts) -> list[dict]:
        """Generate specified number of accounts with email uniqueness guarantee.

        Args:
            num_accounts (int): Number of accounts to generate (must be non-negative)

        Returns:
            list[dict]: List of account dictionaries with 'email' and 'password' keys

        Raises:
            ValueError: If num_accounts is negative
        """
        if num_accounts < 0:
            raise ValueError("Number of accounts must be non-negative")

        accounts = []
        used_emails = set()
        # Reasonable retry limit to prevent infinite loops
        max_attempts = num_accounts * 5
        attempts = 0

        while len(accounts) < num_accounts and attempts < max_attempts:
            email = self.generate_email()
            attempts += 1

            if email in used_emails:
                continue

            used_emails.add(email)
            accounts.append({
                "email": email,
                "password": self.generate_password()
            })

        if len(accounts) < num_accounts:
            logger.warning(f"Only generated {len(accounts)} unique accounts out of {num_accounts} requested")

        return accounts

    def save_to_csv(self, accounts):
        """Save accounts to CSV file"""
        self.output_dir.mkdir(parents=True, exist_ok=True)
        with open(self.output_file, 'w', encoding='utf-8') as f:
            f.write("email,password\n")
            for account in accounts:
                f.write(f"{account['email']},{account['password']}\n")
        return self.output_file


_default_generator = None


def _get_default_generator():
    global _default_generator
    if _default_generator is None:
        _default_generator = AccountGenerator()
    return _default_generator


def generate_email() -> str:
    """Generate a random email address with the default generator."""
    return _get_default_generator().generate_email()


def generate_password() -> str:
    """Generate a random password with the default generator."""
    return _get_default_generator().generate_password()


def main(argv=None):
    import argparse
    parser = argparse.ArgumentParser(description="Generate random accounts and optionally save them to CSV.")
    parser.add_argument("--generate", type=int, default=10, help="Number of accounts to generate")
    parser.add_argument("--save-csv", action="store_true", help="Save accounts to CSV file (default: False)")
    parser.add_argument("--output", type=str, default="accounts.csv", help="Output CSV filename (default: accounts.csv)")
    args = parser.parse_args(argv)

    generator = AccountGenerator()
    if args.output != "accounts.csv":
        generator.output_file = generator.output_dir / args.output

    accounts = generator.generate_unique_accounts(args.generate)

    print(f"\nGenerated {len(accounts)} accounts:")
    print("-" * 50)
    for i, account in enumerate(accounts, 1):
        print(f"{i:2d}. {account['email']} --- {account['password']}")
    print("-" * 50)

    if args.save_csv:
        path = generator.save_to_csv(accounts)
        print(f"Accounts also saved to {path}")
    return accounts


if __name__ == "__main__":
    main()
