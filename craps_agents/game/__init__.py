from craps_agents.game.dice import DiceRoll
from craps_agents.game.state_machine import (
    GamePhase,
    GameSeries,
    GameStateMachine,
    GameStateSnapshot,
    RollEvent,
    Transition,
)

__all__ = [
    "DiceRoll",
    "GamePhase",
    "GameSeries",
    "GameStateMachine",
    "GameStateSnapshot",
    "RollEvent",
    "Transition",
]
