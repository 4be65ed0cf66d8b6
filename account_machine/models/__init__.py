from .account import AccountStatus, GeneratedAccount
from .game_state import GameState, MAX_LEVEL, advance_position
from .registration import RegistrationPayload

__all__ = [
    'AccountStatus',
    'GeneratedAccount',
    'GameState',
    'MAX_LEVEL',
    'advance_position',
    'RegistrationPayload',
]
