import logging
import threading
import time
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from .codes import generate_code
from .errors import AlreadyFull, AlreadyJoined, InsufficientFunds, InvalidRequest, NotFound

logger = logging.getLogger(__name__)

OPEN = 'open'
FULL = 'full'
CANCELLED = 'cancelled'


@dataclass
class PoolSeat:
    account_id: str
    handle: str


@dataclass
class PoolEntry:
    id: str
    title: str
    entry_fee: int
    max_players: int = 2
    seats: List[PoolSeat] = field(default_factory=list)
    status: str = OPEN
    match_id: Optional[str] = None
    created_at: float = field(default_factory=time.time)

    def has(self, account_id: str) -> bool:
        return any(s.account_id == account_id for s in self.seats)

    def summary(self):
        return {
            'id': self.id,
            'title': self.title,
            'entryFee': self.entry_fee,
            'maxPlayers': self.max_players,
            'currentCount': len(self.seats),
            'status': self.status,
        }

    def to_dict(self):
        payload = self.summary()
        payload['players'] = [s.account_id for s in self.seats]
        payload['matchId'] = self.match_id
        return payload


class Matchmaker:
    """Fee-gated waiting rooms that turn into matches at quorum.

    `join` runs the whole "roster full -> debit both -> start match"
    sequence under one lock, so a pool is never observed half-funded.
    """

    def __init__(self, matches, events, directory, settings):
        self._matches = matches
        self._events = events
        self._directory = directory
        self._settings = settings
        self._lock = threading.RLock()
        self._pools: Dict[str, PoolEntry] = {}

    def create_pool(self, title: str, entry_fee, max_players=None) -> PoolEntry:
        title = (title or '').strip()
        if not title:
            raise InvalidRequest('Pool title is required')
        if isinstance(entry_fee, bool) or not isinstance(entry_fee, int) or entry_fee <= 0:
            raise InvalidRequest('Entry fee must be a positive whole number', entryFee=entry_fee)
        if max_players is None:
            max_players = self._settings.max_players
        if max_players != 2:
            raise InvalidRequest('Only two-player pools are supported', maxPlayers=max_players)
        with self._lock:
            pool = PoolEntry(
                id=generate_code(self._pools),
                title=title,
                entry_fee=entry_fee,
                max_players=max_players,
            )
            self._pools[pool.id] = pool
        logger.info(f"[pool-create] pool={pool.id} title={title!r} fee={entry_fee}")
        return pool

    def get(self, pool_id: str) -> PoolEntry:
        with self._lock:
            pool = self._pools.get(pool_id)
            if pool is None:
                raise NotFound(f'Pool {pool_id} not found', poolId=pool_id)
            return pool

    def list_open(self) -> List[dict]:
        with self._lock:
            return [p.summary() for p in self._pools.values() if p.status == OPEN]

    def list_all(self) -> List[dict]:
        with self._lock:
            return [p.summary() for p in self._pools.values()]

    def open_pool_of(self, account_id: str) -> Optional[PoolEntry]:
        with self._lock:
            for pool in self._pools.values():
                if pool.status == OPEN and pool.has(account_id):
                    return pool
        return None

    def join(self, pool_id: str, account_id: str, handle: str) -> PoolEntry:
        with self._lock:
            pool = self.get(pool_id)
            if pool.status == CANCELLED:
                raise NotFound(f'Pool {pool_id} was cancelled', poolId=pool_id)
            if pool.status == FULL or len(pool.seats) >= pool.max_players:
                raise AlreadyFull(f'Pool {pool_id} is full', poolId=pool_id)
            if pool.has(account_id):
                raise AlreadyJoined(f'{account_id} already joined pool {pool_id}', poolId=pool_id)
            waiting = self.open_pool_of(account_id)
            if waiting is not None:
                raise AlreadyJoined(f'{account_id} is already waiting in pool {waiting.id}', poolId=waiting.id)
            if self._directory.active_match(account_id):
                raise AlreadyJoined(f'{account_id} is already playing a match',
                                    roomId=self._directory.active_match(account_id))

            pool.seats.append(PoolSeat(account_id=account_id, handle=handle))
            logger.info(f"[pool-join] pool={pool.id} account={account_id} count={len(pool.seats)}/{pool.max_players}")
            if len(pool.seats) < pool.max_players:
                return pool

            pool.status = FULL
            roster = [(s.account_id, s.handle) for s in pool.seats]
            try:
                match = self._matches.open_funded(roster, pool.entry_fee, pool_id=pool.id, label=pool.title)
            except InsufficientFunds as exc:
                failed = exc.details.get('accountId')
                self._notify_funding_failure(pool, exc)
                pool.seats = [s for s in pool.seats if s.account_id != failed]
                pool.status = OPEN
                if failed == account_id:
                    raise
                return pool
            pool.match_id = match.id
            return pool

    def quick_join(self, account_id: str, handle: str, entry_fee) -> PoolEntry:
        with self._lock:
            candidates = [
                p for p in self._pools.values()
                if p.status == OPEN and p.entry_fee == entry_fee and not p.has(account_id)
                and len(p.seats) < p.max_players
            ]
            candidates.sort(key=lambda p: p.created_at)
            if candidates:
                return self.join(candidates[0].id, account_id, handle)
            pool = self.create_pool(f'Quick match {entry_fee}', entry_fee)
            return self.join(pool.id, account_id, handle)

    def leave(self, pool_id: str, account_id: str) -> PoolEntry:
        with self._lock:
            pool = self.get(pool_id)
            if pool.status != OPEN or not pool.has(account_id):
                raise NotFound(f'{account_id} is not waiting in pool {pool_id}', poolId=pool_id)
            pool.seats = [s for s in pool.seats if s.account_id != account_id]
            logger.info(f"[pool-leave] pool={pool.id} account={account_id} count={len(pool.seats)}")
            return pool

    def cancel(self, pool_id: str) -> PoolEntry:
        with self._lock:
            pool = self.get(pool_id)
            if pool.status != OPEN:
                raise AlreadyFull(f'Pool {pool_id} can no longer be cancelled', poolId=pool_id, status=pool.status)
            seats, pool.seats = pool.seats, []
            pool.status = CANCELLED
        for seat in seats:
            self._events.emit(seat.handle, 'poolCancelled', {'poolId': pool.id})
        logger.info(f"[pool-cancel] pool={pool.id} evicted={[s.account_id for s in seats]}")
        return pool

    def drop_everywhere(self, account_id: str) -> List[PoolEntry]:
        """Remove `account_id` from every open pool roster (disconnect cleanup)."""
        touched = []
        with self._lock:
            for pool in self._pools.values():
                if pool.status == OPEN and pool.has(account_id):
                    pool.seats = [s for s in pool.seats if s.account_id != account_id]
                    touched.append(pool)
        for pool in touched:
            logger.info(f"[pool-drop] pool={pool.id} account={account_id} count={len(pool.seats)}")
        return touched

    def rebind(self, account_id: str, handle: str) -> None:
        with self._lock:
            for pool in self._pools.values():
                if pool.status == OPEN:
                    for seat in pool.seats:
                        if seat.account_id == account_id:
                            seat.handle = handle

    def _notify_funding_failure(self, pool: PoolEntry, exc: InsufficientFunds) -> None:
        payload = {'poolId': pool.id}
        payload.update(exc.to_dict())
        for seat in pool.seats:
            handle = self._directory.handle_for(seat.account_id) or seat.handle
            self._events.emit(handle, 'matchError', payload)
