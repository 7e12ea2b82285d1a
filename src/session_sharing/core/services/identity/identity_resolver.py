"""Map an external identity onto a local account."""

import asyncio

from loguru import logger

from src.session_sharing.core.models.sharing import ResolvedIdentity
from src.session_sharing.core.services.user.account_service import AccountService
from src.session_sharing.core.storage.kv_storage import KeyValueStorage


def parse_uid(value) -> int | None:
    """Return ``value`` as a positive account id, or None when it is not one."""
    if value is None or isinstance(value, bool):
        return None
    try:
        uid = int(value)
    except (TypeError, ValueError):
        return None
    return uid if uid > 0 else None


class IdentityResolver:
    """Resolve an external identity to a local account id.

    Decision order:
    1. an existing mapping for the external id wins, with no writes
    2. an account found by email is bound to the external id
    3. otherwise a new account is created and bound

    Mapping writes are set-if-absent: when two first logins for the same
    external id race, the first binding wins and both callers receive it.
    """

    def __init__(self, storage: KeyValueStorage, accounts: AccountService, mapping_key: str):
        self._storage = storage
        self._accounts = accounts
        self._mapping_key = mapping_key

    async def _lookup_email(self, email: str | None) -> int | None:
        if not email:
            return None
        return await self._accounts.get_uid_by_email(email)

    async def _bind(self, external_id: str, uid: int) -> int:
        stored = await self._storage.set_field_if_absent(self._mapping_key, external_id, str(uid))
        winner = parse_uid(stored)
        if winner is None:
            # An unusable value occupies the field, overwrite it
            await self._storage.set_field(self._mapping_key, external_id, str(uid))
            return uid
        if winner != uid:
            logger.warning(
                "External id {} was bound to account {} concurrently, account {} is unused",
                external_id,
                winner,
                uid,
            )
        return winner

    async def resolve(self, identity: ResolvedIdentity) -> int:
        existing, merge = await asyncio.gather(
            self._storage.get_field(self._mapping_key, identity.external_id),
            self._lookup_email(identity.email),
        )

        existing_uid = parse_uid(existing)
        if existing_uid is not None:
            return existing_uid

        merge_uid = parse_uid(merge)
        if identity.email and merge_uid is not None:
            logger.info(
                "Found user via their email, associating this id ({}) with account {}",
                identity.external_id,
                merge_uid,
            )
            return await self._bind(identity.external_id, merge_uid)

        logger.info("No user found, creating a new user for this login")
        new_uid = await self._accounts.create_account(
            username=identity.username.strip(),
            email=identity.email,
            picture=identity.picture,
        )
        return await self._bind(identity.external_id, new_uid)
