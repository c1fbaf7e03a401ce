from claimbot.ui.views.claim_panel import ClaimPanelView, render_claim_outcome

__all__ = ["ClaimPanelView", "render_claim_outcome"]
