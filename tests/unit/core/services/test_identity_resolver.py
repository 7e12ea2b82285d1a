"""Tests for resolving external identities to local accounts."""

import asyncio
from unittest.mock import AsyncMock

import pytest

from src.session_sharing.core.errors import AccountCreationError, StorageError
from src.session_sharing.core.models import ResolvedIdentity
from src.session_sharing.core.services import AccountService, IdentityResolver
from src.session_sharing.core.services.identity.identity_resolver import parse_uid


@pytest.mark.parametrize(
    ("value", "expected"),
    [
        ("7", 7),
        (7, 7),
        ("0", None),
        ("-3", None),
        ("abc", None),
        ("", None),
        (None, None),
        (True, None),
    ],
)
def test_parse_uid(value, expected):
    assert parse_uid(value) == expected


class TestExistingMapping:
    @pytest.mark.asyncio
    async def test_mapped_external_id_returns_stored_account(
        self, storage, mock_accounts, mapping_key
    ):
        """demo:uid["ext-42"] = 7 resolves to 7 without touching accounts or storage."""
        await storage.set_field(mapping_key, "ext-42", "7")
        resolver = IdentityResolver(storage, mock_accounts, mapping_key)

        uid = await resolver.resolve(
            ResolvedIdentity(external_id="ext-42", username="alice", email="a@example.com")
        )

        assert uid == 7
        mock_accounts.create_account.assert_not_called()
        assert await storage.get_field(mapping_key, "ext-42") == "7"

    @pytest.mark.asyncio
    async def test_mapping_wins_over_email_match(self, storage, mock_accounts, mapping_key):
        await storage.set_field(mapping_key, "ext-42", "7")
        mock_accounts.get_uid_by_email.return_value = 3
        resolver = IdentityResolver(storage, mock_accounts, mapping_key)

        uid = await resolver.resolve(
            ResolvedIdentity(external_id="ext-42", username="alice", email="a@example.com")
        )

        assert uid == 7

    @pytest.mark.asyncio
    async def test_unusable_mapping_value_is_replaced(self, storage, mock_accounts, mapping_key):
        await storage.set_field(mapping_key, "ext-42", "garbage")
        mock_accounts.create_account.return_value = 12
        resolver = IdentityResolver(storage, mock_accounts, mapping_key)

        uid = await resolver.resolve(ResolvedIdentity(external_id="ext-42", username="alice"))

        assert uid == 12
        assert await storage.get_field(mapping_key, "ext-42") == "12"


class TestEmailMerge:
    @pytest.mark.asyncio
    async def test_existing_account_bound_by_email(
        self, resolver, account_service, storage, mapping_key
    ):
        existing = await account_service.create_account("alice", email="alice@example.com")

        uid = await resolver.resolve(
            ResolvedIdentity(external_id="ext-1", username="Alice2", email="ALICE@example.com")
        )

        assert uid == existing
        assert await storage.get_field(mapping_key, "ext-1") == str(existing)

    @pytest.mark.asyncio
    async def test_email_lookup_skipped_without_email(self, storage, mock_accounts, mapping_key):
        mock_accounts.create_account.return_value = 5
        resolver = IdentityResolver(storage, mock_accounts, mapping_key)

        await resolver.resolve(ResolvedIdentity(external_id="ext-1", username="alice"))

        mock_accounts.get_uid_by_email.assert_not_called()


class TestAccountCreation:
    @pytest.mark.asyncio
    async def test_new_identity_creates_and_binds_account(
        self, resolver, account_service, storage, mapping_key
    ):
        uid = await resolver.resolve(
            ResolvedIdentity(
                external_id="ext-9",
                username="bob",
                email="bob@example.com",
                picture="https://cdn.test/bob.png",
            )
        )

        user = await account_service.get_user(uid)
        assert user is not None
        assert user.username == "bob"
        assert user.email == "bob@example.com"
        assert user.picture == "https://cdn.test/bob.png"
        assert await storage.get_field(mapping_key, "ext-9") == str(uid)

    @pytest.mark.asyncio
    async def test_resolution_is_idempotent(self, storage, mock_accounts, mapping_key):
        mock_accounts.create_account.return_value = 21
        resolver = IdentityResolver(storage, mock_accounts, mapping_key)
        identity = ResolvedIdentity(external_id="ext-9", username="bob")

        first = await resolver.resolve(identity)
        second = await resolver.resolve(identity)

        assert first == second == 21
        mock_accounts.create_account.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_username_is_trimmed(self, storage, mock_accounts, mapping_key):
        mock_accounts.create_account.return_value = 1
        resolver = IdentityResolver(storage, mock_accounts, mapping_key)

        await resolver.resolve(
            ResolvedIdentity(external_id="ext-1", username="  alice \n", picture="p.png")
        )

        mock_accounts.create_account.assert_awaited_once_with(
            username="alice", email=None, picture="p.png"
        )

    @pytest.mark.asyncio
    async def test_creation_failure_writes_no_mapping(self, storage, mock_accounts, mapping_key):
        mock_accounts.create_account.side_effect = AccountCreationError("boom")
        resolver = IdentityResolver(storage, mock_accounts, mapping_key)

        with pytest.raises(AccountCreationError):
            await resolver.resolve(ResolvedIdentity(external_id="ext-1", username="alice"))

        assert await storage.get_field(mapping_key, "ext-1") is None

    @pytest.mark.asyncio
    async def test_blank_username_fails_creation(self, resolver, storage, mapping_key):
        with pytest.raises(AccountCreationError):
            await resolver.resolve(ResolvedIdentity(external_id="ext-1", username="   "))

        assert await storage.get_field(mapping_key, "ext-1") is None


class TestFailures:
    @pytest.mark.asyncio
    async def test_storage_failure_propagates(self, mock_accounts, mapping_key):
        storage = AsyncMock()
        storage.get_field.side_effect = StorageError("redis down")
        resolver = IdentityResolver(storage, mock_accounts, mapping_key)

        with pytest.raises(StorageError):
            await resolver.resolve(ResolvedIdentity(external_id="ext-1", username="alice"))

        mock_accounts.create_account.assert_not_called()

    @pytest.mark.asyncio
    async def test_email_lookup_failure_propagates(self, storage, mapping_key):
        accounts = AsyncMock(spec=AccountService)
        accounts.get_uid_by_email.side_effect = StorageError("db down")
        resolver = IdentityResolver(storage, accounts, mapping_key)

        with pytest.raises(StorageError):
            await resolver.resolve(
                ResolvedIdentity(external_id="ext-1", username="alice", email="a@example.com")
            )

        accounts.create_account.assert_not_called()
        assert await storage.get_field(mapping_key, "ext-1") is None


class TestConcurrentFirstLogin:
    @pytest.mark.asyncio
    async def test_racing_logins_agree_on_one_account(
        self, storage, mock_accounts, mapping_key, log_messages
    ):
        mock_accounts.create_account.side_effect = [11, 12]
        resolver = IdentityResolver(storage, mock_accounts, mapping_key)
        identity = ResolvedIdentity(external_id="ext-1", username="alice")

        first, second = await asyncio.gather(resolver.resolve(identity), resolver.resolve(identity))

        assert first == second
        assert await storage.get_field(mapping_key, "ext-1") == str(first)
        if mock_accounts.create_account.await_count == 2:
            assert any(level == "WARNING" for level, _ in log_messages)
