"""
Accounts - Credential check collaborator.

Registration, password storage and reset are owned by the account
backend. The service only asks "who is this?" at login.
"""

from __future__ import annotations
from abc import ABC, abstractmethod
import hmac
import threading

from ..session.store import Identity


class AccountDirectory(ABC):
    """Resolves credentials to an identity."""

    @abstractmethod
    def authenticate(self, email: str, password: str) -> Identity | None:
        """Return the identity, or None if the credentials do not match."""


class InMemoryAccountDirectory(AccountDirectory):
    """
    Development directory.

    Usage:
        accounts = InMemoryAccountDirectory()
        accounts.add("u1", "Ani", "ani@example.com", "secret")
    """

    def __init__(self):
        self._accounts: dict[str, tuple[Identity, str]] = {}
        self._lock = threading.Lock()

    def add(self, user_id: str, name: str, email: str, password: str) -> Identity:
        identity = Identity(user_id=user_id, name=name, email=email)
        with self._lock:
            self._accounts[email.lower()] = (identity, password)
        return identity

    def authenticate(self, email: str, password: str) -> Identity | None:
        with self._lock:
            account = self._accounts.get((email or "").lower())
        if account is None:
            return None
        identity, expected = account
        if not hmac.compare_digest(expected.encode(), (password or "").encode()):
            return None
        return identity
