"""Arena domain services: wallet ledger, matchmaking and wagered matches.

This package holds the game/wallet logic used by HTTP routes and socket
handlers. Nothing in here imports Flask request or Socket.IO objects;
outbound notifications go through the `EventChannel` and the transport
layer relays them.
"""

from .engine import Arena, create_arena
from .errors import ArenaError

__all__ = ['Arena', 'ArenaError', 'create_arena']
