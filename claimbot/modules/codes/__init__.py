from claimbot.modules.codes.store import CodeStats, CodeStore

__all__ = ["CodeStore", "CodeStats"]
