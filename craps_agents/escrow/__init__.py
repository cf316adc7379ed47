from craps_agents.escrow.pool import EscrowPool, EscrowRound, LiquidityProvider

__all__ = ["EscrowPool", "EscrowRound", "LiquidityProvider"]
