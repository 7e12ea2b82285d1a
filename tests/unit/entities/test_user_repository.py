"""Tests for the user entity package and the account service."""

import pytest
from sqlalchemy.exc import IntegrityError

from src.session_sharing.core.errors import AccountCreationError
from src.session_sharing.entities.user import User, UserRepository


class TestUserRepository:
    def test_create_assigns_integer_id(self, session):
        repo = UserRepository(session)

        created = repo.create(User(username="alice", email="alice@example.com"))

        assert isinstance(created.id, int)
        assert created.id > 0
        assert repo.get(created.id) == created

    def test_ids_are_sequential(self, session):
        repo = UserRepository(session)

        first = repo.create(User(username="alice"))
        second = repo.create(User(username="bob"))

        assert second.id > first.id

    def test_get_missing_user(self, session):
        assert UserRepository(session).get(999) is None

    def test_email_lookup_is_case_insensitive(self, session):
        repo = UserRepository(session)
        created = repo.create(User(username="alice", email="Alice@Example.com"))

        assert repo.get_uid_by_email("alice@example.com") == created.id
        assert repo.get_uid_by_email("ALICE@EXAMPLE.COM") == created.id
        assert repo.get_uid_by_email("bob@example.com") is None

    def test_accounts_without_email_never_match(self, session):
        repo = UserRepository(session)
        repo.create(User(username="alice"))
        repo.create(User(username="bob"))

        assert repo.get_uid_by_email("") is None

    def test_email_is_unique(self, session):
        repo = UserRepository(session)
        repo.create(User(username="alice", email="alice@example.com"))

        with pytest.raises(IntegrityError):
            repo.create(User(username="alice2", email="alice@example.com"))


class TestAccountService:
    @pytest.mark.asyncio
    async def test_create_and_lookup(self, account_service):
        uid = await account_service.create_account(
            "alice", email="alice@example.com", picture="https://cdn.test/a.png"
        )

        assert await account_service.get_uid_by_email("ALICE@example.com") == uid
        user = await account_service.get_user(uid)
        assert user.username == "alice"
        assert user.picture == "https://cdn.test/a.png"

    @pytest.mark.asyncio
    async def test_empty_username_rejected(self, account_service):
        with pytest.raises(AccountCreationError):
            await account_service.create_account("")

    @pytest.mark.asyncio
    async def test_duplicate_email_rejected(self, account_service):
        await account_service.create_account("alice", email="alice@example.com")

        with pytest.raises(AccountCreationError):
            await account_service.create_account("alice2", email="alice@example.com")

