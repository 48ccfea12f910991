"""
Registration and login tests at the service layer.
"""
import asyncio

import pytest

from app.services.auth_service import decode_access_token
from app.services.errors import DuplicateUser, InvalidInput
from app.services.user_service import InvalidCredentials


class TestRegister:

    @pytest.mark.asyncio
    async def test_grants_free_trials(self, user_service, get_user_record, notifier):
        user = await user_service.register("Ani", "ani@example.com", "rahasia123", "081234567890")

        stored = await get_user_record(user.id)
        assert stored.free_trials == 5
        assert stored.points == 0
        assert stored.password_hash != "rahasia123"

        await notifier.drain()
        assert notifier.sent[0]["subject"] == "[新用户] PolyglotQuest 用户注册"

    @pytest.mark.asyncio
    async def test_phone_duplicate_ignores_formatting(self, user_service):
        await user_service.register("Ani", "ani@example.com", "rahasia123", "+62 812-3456-7890")

        with pytest.raises(DuplicateUser):
            await user_service.register("Ani 2", "ani2@example.com", "rahasia123", "6281234567890")

    @pytest.mark.asyncio
    async def test_short_password(self, user_service, store):
        with pytest.raises(InvalidInput):
            await user_service.register("Ani", "ani@example.com", "1234567", "081234567890")

        assert await store.get("users") == []


class TestAuthenticate:

    @pytest.mark.asyncio
    async def test_token_carries_user_id(self, user_service, user_factory, hashed_password):
        user = await user_factory(email="rina@example.com", password_hash=hashed_password)

        token, authed = await user_service.authenticate("rina@example.com", "rahasia123")

        assert authed.id == user.id
        assert decode_access_token(token)["user_id"] == user.id

    @pytest.mark.asyncio
    async def test_wrong_password(self, user_service, user_factory, hashed_password):
        await user_factory(email="rina@example.com", password_hash=hashed_password)

        with pytest.raises(InvalidCredentials):
            await user_service.authenticate("rina@example.com", "salah-sandi")


class TestConcurrentRegister:

    @pytest.mark.asyncio
    async def test_same_email_registers_once(self, user_service, store):
        results = await asyncio.gather(
            user_service.register("Ani", "ani@example.com", "rahasia123", "081234567890"),
            user_service.register("Ani", "ani@example.com", "rahasia123", "081299998888"),
            return_exceptions=True,
        )

        assert sum(isinstance(r, DuplicateUser) for r in results) == 1
        assert len(await store.get("users")) == 1

    @pytest.mark.asyncio
    async def test_same_phone_registers_once(self, user_service, store):
        results = await asyncio.gather(
            user_service.register("Ani", "ani@example.com", "rahasia123", "+62 812-3456-7890"),
            user_service.register("Ani 2", "ani2@example.com", "rahasia123", "6281234567890"),
            return_exceptions=True,
        )

        assert sum(isinstance(r, DuplicateUser) for r in results) == 1
        users = await store.get("users")
        assert len(users) == 1
