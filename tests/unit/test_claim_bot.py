"""
Unit tests for ClaimBot wiring and global command error handling.
"""

import pytest
import pytest_asyncio
from discord.ext import commands

from claimbot.bot.claim_bot import ClaimBot
from claimbot.core.exceptions import StoreFaultError
from claimbot.modules.claims.cog import ClaimCog
from claimbot.modules.claims.coordinator import ClaimCoordinator
from claimbot.modules.shared.exceptions import ValidationError


@pytest_asyncio.fixture
async def bot(mock_store):
    bot = ClaimBot(
        store=mock_store,
        coordinator=ClaimCoordinator(mock_store),
        channel_id=42,
        command_prefix="!",
    )
    await bot.setup_hook()
    return bot


@pytest.mark.unit
class TestSetup:
    async def test_registers_cog_and_commands(self, bot):
        assert isinstance(bot.claim_cog, ClaimCog)
        assert {"codestats", "detailed", "updateclaim"} <= {c.name for c in bot.commands}

    async def test_panel_view_is_persistent(self, bot):
        assert bot.panel_view in bot.persistent_views

    async def test_message_content_intent(self, bot):
        assert bot.intents.message_content is True


@pytest.mark.unit
class TestOnReady:
    async def test_panel_published_once(self, mocker, bot):
        ensure = mocker.patch.object(
            ClaimCog, "ensure_claim_panel", mocker.AsyncMock(return_value=mocker.MagicMock())
        )

        await bot.on_ready()
        await bot.on_ready()

        ensure.assert_awaited_once()
        assert bot.panel_published

    async def test_retries_after_failed_publish(self, mocker, bot):
        ensure = mocker.patch.object(
            ClaimCog, "ensure_claim_panel", mocker.AsyncMock(return_value=None)
        )

        await bot.on_ready()
        await bot.on_ready()

        assert ensure.await_count == 2
        assert not bot.panel_published


@pytest.mark.unit
class TestOnCommandError:
    async def test_command_not_found_is_ignored(self, bot, mock_context):
        await bot.on_command_error(mock_context, commands.CommandNotFound("nope"))
        mock_context.send.assert_not_awaited()

    async def test_missing_permissions(self, bot, mock_context):
        await bot.on_command_error(mock_context, commands.MissingPermissions(["administrator"]))

        embed = mock_context.send.await_args.kwargs["embed"]
        assert embed.title == "Permission Denied"

    async def test_dm_usage(self, bot, mock_context):
        await bot.on_command_error(mock_context, commands.NoPrivateMessage())

        embed = mock_context.send.await_args.kwargs["embed"]
        assert embed.title == "Server Only"

    async def test_unexpected_error(self, bot, mock_context):
        error = commands.CommandInvokeError(RuntimeError("boom"))

        await bot.on_command_error(mock_context, error)

        embed = mock_context.send.await_args.kwargs["embed"]
        assert embed.title == "Unexpected Error"
        assert bot.errors_by_type["RuntimeError"] == 1

    async def test_store_fault_text_is_not_shown(self, bot, mock_context):
        fault = StoreFaultError("get_stats", RuntimeError("disk I/O error at /var/lib/codes.db"))

        await bot.on_command_error(mock_context, commands.CommandInvokeError(fault))

        embed = mock_context.send.await_args.kwargs["embed"]
        assert embed.title == "Service Unavailable"
        assert "disk I/O error" not in embed.description
        assert bot.errors_by_type["StoreFaultError"] == 1

    async def test_domain_error_message_is_shown(self, bot, mock_context):
        error = commands.CommandInvokeError(ValidationError("user_id", "must not be blank"))

        await bot.on_command_error(mock_context, error)

        embed = mock_context.send.await_args.kwargs["embed"]
        assert embed.title == "Error"
        assert "Invalid user_id: must not be blank" in embed.description
