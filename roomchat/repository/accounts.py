"""Identity binding: network address -> user account."""

import uuid

from ..errors import DuplicateError, ValidationError
from ..logging_config import get_logger
from ..models import UserAccount
from . import keys
from .base import Repository

logger = get_logger(__name__)

USERNAME_MIN_LENGTH = 3
USERNAME_MAX_LENGTH = 20


class AccountRepository(Repository):
    """Accounts plus address and lowercase-username indexes."""

    async def lookup(self, ip_address: str) -> UserAccount | None:
        """Account bound to the address, refreshing lastLogin. Never creates."""
        binding = await self._store.hget(keys.IP_TO_USER, ip_address)
        if binding is None:
            return None

        record = await self._store.hget(keys.ACCOUNTS, binding["userId"])
        if record is None:
            logger.warning("Address %s points at missing account", ip_address)
            return None

        account = UserAccount.from_dict(record)
        account.last_login = self._clock()
        await self._store.hset(keys.ACCOUNTS, account.id, account.to_dict())
        return account

    async def register(self, username: str, ip_address: str) -> UserAccount:
        """Log in the address's account, or create one for it."""
        existing = await self.lookup(ip_address)
        if existing is not None:
            return existing

        if not isinstance(username, str) or not (
            USERNAME_MIN_LENGTH <= len(username) <= USERNAME_MAX_LENGTH
        ):
            raise ValidationError(
                f"Username must be between {USERNAME_MIN_LENGTH} "
                f"and {USERNAME_MAX_LENGTH} characters"
            )

        account_id = f"user_{uuid.uuid4().hex[:12]}"
        username_key = username.lower()
        if not await self._store.hsetnx(
            keys.USERNAMES, username_key, {"userId": account_id}
        ):
            raise DuplicateError("Username already taken")

        now = self._clock()
        account = UserAccount(
            id=account_id,
            username=username,
            ip_address=ip_address,
            created_at=now,
            last_login=now,
        )
        await self._store.hset(keys.ACCOUNTS, account.id, account.to_dict())

        if not await self._store.hsetnx(
            keys.IP_TO_USER, ip_address, {"userId": account.id}
        ):
            # Concurrent registration from the same address won; use its account
            await self._store.hdel(keys.ACCOUNTS, account.id)
            await self._store.hdel(keys.USERNAMES, username_key)
            winner = await self.lookup(ip_address)
            if winner is not None:
                return winner

        logger.info("Account registered: %s", account.id)
        return account
