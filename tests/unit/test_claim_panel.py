"""
Unit tests for the claim panel view and outcome rendering.
"""

import discord
import pytest

from claimbot.modules.claims.coordinator import ClaimCoordinator, Exhausted, Fault, Granted, QuotaExceeded
from claimbot.ui.embeds import CLAIM_SUCCESS_TITLE
from claimbot.ui.views.claim_panel import (
    CLAIM_BUTTON_ID,
    EXHAUSTED_TEXT,
    FAULT_TEXT,
    QUOTA_EXCEEDED_TEXT,
    ClaimPanelView,
    render_claim_outcome,
)


@pytest.mark.unit
class TestRenderClaimOutcome:
    def test_granted_renders_success_embed(self):
        content, embed = render_claim_outcome(Granted(code="ABC123"))
        assert content is None
        assert embed.title == CLAIM_SUCCESS_TITLE
        assert "ABC123" in embed.description

    @pytest.mark.parametrize(
        "outcome, expected",
        [
            (QuotaExceeded(claims_held=1, limit=1), QUOTA_EXCEEDED_TEXT),
            (Exhausted(), EXHAUSTED_TEXT),
            (Fault(diagnostic="disk I/O error", error_code="STORE_FAULT"), FAULT_TEXT),
        ],
    )
    def test_rejections_render_fixed_text(self, outcome, expected):
        content, embed = render_claim_outcome(outcome)
        assert content == expected
        assert embed is None

    def test_fault_text_hides_diagnostic(self):
        content, _ = render_claim_outcome(Fault(diagnostic="secret path /var/db", error_code="STORE_FAULT"))
        assert "secret" not in content

    def test_texts(self):
        assert QUOTA_EXCEEDED_TEXT == "❌ You have already claimed the maximum number of codes allowed."
        assert EXHAUSTED_TEXT == "❌ Sorry, no codes are currently available."
        assert FAULT_TEXT == "❌ An error occurred while claiming your code. Please try again later."


@pytest.mark.unit
class TestClaimPanelView:
    async def test_view_is_persistent(self, mock_store):
        view = ClaimPanelView(ClaimCoordinator(mock_store))

        assert view.timeout is None
        assert view.is_persistent()
        button = view.children[0]
        assert isinstance(button, discord.ui.Button)
        assert button.custom_id == CLAIM_BUTTON_ID
        assert button.label == "Claim Code"
        assert button.style is discord.ButtonStyle.primary

    async def test_press_defers_then_delivers_code(self, mock_store, mock_interaction):
        view = ClaimPanelView(ClaimCoordinator(mock_store))

        await view.handle_claim(mock_interaction)

        mock_interaction.response.defer.assert_awaited_once_with(ephemeral=True, thinking=True)
        mock_store.claim_one.assert_awaited_once_with("555", max_claims=1)
        kwargs = mock_interaction.edit_original_response.await_args.kwargs
        assert kwargs["embed"].title == CLAIM_SUCCESS_TITLE

    async def test_press_over_quota_gets_rejection_text(self, mock_store, mock_interaction):
        mock_store.count_user_claims.return_value = 1
        view = ClaimPanelView(ClaimCoordinator(mock_store))

        await view.handle_claim(mock_interaction)

        mock_interaction.edit_original_response.assert_awaited_once_with(content=QUOTA_EXCEEDED_TEXT)

    async def test_delivery_failure_is_logged_not_raised(self, mocker, mock_store, mock_interaction):
        response = mocker.MagicMock(status=500, reason="Server Error")
        mock_interaction.edit_original_response.side_effect = discord.HTTPException(response, "boom")
        view = ClaimPanelView(ClaimCoordinator(mock_store))

        await view.handle_claim(mock_interaction)

        mock_store.claim_one.assert_awaited_once()

    async def test_on_error_sends_generic_text(self, mock_store, mock_interaction):
        view = ClaimPanelView(ClaimCoordinator(mock_store))

        await view.on_error(mock_interaction, RuntimeError("boom"), view.children[0])

        mock_interaction.followup.send.assert_awaited_once_with(FAULT_TEXT, ephemeral=True)
