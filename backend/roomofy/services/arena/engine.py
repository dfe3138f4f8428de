import logging
from typing import List, Optional

from .directory import SessionDirectory
from .errors import InvalidRequest, NotRegistered
from .events import EventChannel
from .ledger import Ledger
from .matches import MatchRegistry
from .pools import Matchmaker
from .settings import ArenaSettings

logger = logging.getLogger(__name__)


class Arena:
    """Entry point the transport layer talks to.

    Wires the ledger, session directory, matchmaker and match registry
    together. Every method either returns a plain dict or raises an
    `ArenaError`; pushed notifications go out through `self.events`.
    """

    def __init__(self, ledger: Ledger, settings: Optional[ArenaSettings] = None,
                 events: Optional[EventChannel] = None):
        self.settings = settings or ArenaSettings()
        self.ledger = ledger
        self.events = events or EventChannel()
        self.directory = SessionDirectory(ledger)
        self.matches = MatchRegistry(ledger, self.events, self.directory, self.settings)
        self.pools = Matchmaker(self.matches, self.events, self.directory, self.settings)

    # ---- identity ----

    def register(self, handle: str, identity) -> dict:
        identity = str(identity).strip() if identity is not None else ''
        if not identity:
            raise InvalidRequest('user_id is required')
        if identity == self.settings.platform_account:
            raise InvalidRequest('That account id is reserved')
        previous = self.directory.lookup(handle)
        if previous is not None and previous != identity:
            # the connection switches identity: the old one is gone
            self.directory.unregister(handle)
            self._release(previous, handle)
        account = self.directory.register(handle, identity)
        self.pools.rebind(identity, handle)
        self.matches.rebind(identity, handle)
        logger.info(f"[register] account={identity} handle={handle} balance={account.balance}")
        return {
            'accountId': account.id,
            'balance': account.balance,
            'startingBalance': self.settings.starting_balance,
            'activeMatch': self.directory.active_match(identity),
        }

    def identity_of(self, handle: str) -> str:
        identity = self.directory.lookup(handle)
        if identity is None:
            raise NotRegistered('Register before playing')
        return identity

    def get_wallet(self, account_id: str) -> dict:
        return self.ledger.get_statement(account_id)

    # ---- pools ----

    def create_pool(self, title: str, entry_fee, max_players=None) -> dict:
        return self.pools.create_pool(title, entry_fee, max_players).to_dict()

    def list_pools(self, include_closed: bool = False) -> List[dict]:
        if include_closed:
            return self.pools.list_all()
        return self.pools.list_open()

    def join_pool(self, pool_id: str, account_id: str) -> dict:
        handle = self._require_handle(account_id)
        return self.pools.join(pool_id, account_id, handle).to_dict()

    def quick_join(self, account_id: str, entry_fee) -> dict:
        handle = self._require_handle(account_id)
        return self.pools.quick_join(account_id, handle, entry_fee).to_dict()

    def leave_pool(self, pool_id: str, account_id: str) -> dict:
        return self.pools.leave(pool_id, account_id).to_dict()

    def cancel_pool(self, pool_id: str) -> dict:
        return self.pools.cancel(pool_id).to_dict()

    # ---- matches ----

    def move(self, match_id: str, account_id: str, row, col) -> dict:
        return self.matches.apply_move(match_id, account_id, row, col).to_dict()

    def get_match(self, match_id: str) -> dict:
        return self.matches.get(match_id).to_dict()

    def disconnect(self, handle: str) -> Optional[str]:
        """Clean up after a dropped connection.

        Open pool seats are released for free. A match still being played
        is forfeited to the opponent and settled as a normal win.
        """
        identity = self.directory.unregister(handle)
        if identity is None:
            return None
        self._release(identity, handle)
        return identity

    def _release(self, identity: str, handle: str) -> None:
        self.pools.drop_everywhere(identity)
        match_id = self.directory.active_match(identity)
        if match_id:
            self.matches.forfeit(match_id, identity)
        logger.info(f"[release] account={identity} handle={handle} match={match_id}")

    def _require_handle(self, account_id: str) -> str:
        handle = self.directory.handle_for(account_id)
        if handle is None:
            raise NotRegistered(f'{account_id} has no live connection')
        return handle


def create_arena(session, config) -> Arena:
    settings = ArenaSettings.from_config(config)
    ledger = Ledger(session, starting_balance=settings.starting_balance)
    return Arena(ledger, settings)
