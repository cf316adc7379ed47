"""
craps-agents - a craps table run by bots, bankrolled by liquidity providers.

Rolls the dice, judges every wager on the felt, lets personality-driven bots
decide what to bet, and splits the house result pro-rata across the
liquidity providers backing the table.
"""

__version__ = "0.1.0"
