import logging
import threading
import time
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence, Set, Tuple

from .board import Board, MARKS, other_mark
from .codes import generate_code
from .errors import InsufficientFunds, MatchFinished, NotFound, NotInMatch, NotYourTurn, OutOfBounds
from .settlement import Settlement, settle_draw, settle_win

logger = logging.getLogger(__name__)

PLAYING = 'playing'
FINISHED = 'finished'


@dataclass
class Participant:
    account_id: str
    handle: str
    mark: str


@dataclass
class MatchSession:
    id: str
    board: Board
    bet: int
    participants: List[Participant]
    pool_id: Optional[str] = None
    turn: str = 'X'
    status: str = PLAYING
    moves: int = 0
    created_at: float = field(default_factory=time.time)
    lock: threading.RLock = field(default_factory=threading.RLock, repr=False)

    def participant_for(self, account_id: str) -> Optional[Participant]:
        for p in self.participants:
            if p.account_id == account_id:
                return p
        return None

    def opponent_of(self, account_id: str) -> Optional[Participant]:
        for p in self.participants:
            if p.account_id != account_id:
                return p
        return None

    def to_dict(self):
        return {
            'roomId': self.id,
            'poolId': self.pool_id,
            'players': [{'accountId': p.account_id, 'side': p.mark} for p in self.participants],
            'board': self.board.snapshot(),
            'turn': self.turn if self.status == PLAYING else None,
            'bet': self.bet,
            'status': self.status,
            'moves': self.moves,
        }


class MatchRegistry:
    """Owns live match sessions, applies moves and settles results.

    Settlement happens at most once per match: the session is flipped to
    `finished` under its own lock before any ledger credit is issued.
    """

    def __init__(self, ledger, events, directory, settings):
        self._ledger = ledger
        self._events = events
        self._directory = directory
        self._settings = settings
        self._lock = threading.RLock()
        self._matches: Dict[str, MatchSession] = {}
        self._finished: Set[str] = set()

    # ---- lifecycle ----

    def open_funded(self, roster: Sequence[Tuple[str, str]], entry_fee: int,
                    pool_id: Optional[str] = None, label: str = '') -> MatchSession:
        """Debit every entry fee, then start the match.

        If any debit is refused, fees already taken are refunded and
        `InsufficientFunds` is raised naming the account that could not pay.
        """
        tag = label or pool_id or 'direct'
        charged: List[str] = []
        for account_id, _handle in roster:
            result = self._ledger.debit(account_id, entry_fee, f"Entry fee {tag}")
            if not result.ok:
                for paid in charged:
                    self._ledger.credit(paid, entry_fee, f"Refund {tag}")
                logger.info(f"[match-funding-failed] pool={pool_id} account={account_id} refunded={charged}")
                raise InsufficientFunds(
                    f'{account_id} cannot cover the entry fee of {entry_fee}',
                    accountId=account_id,
                    balance=result.balance,
                )
            charged.append(account_id)
        return self.create(roster, entry_fee, pool_id=pool_id)

    def create(self, roster: Sequence[Tuple[str, str]], entry_fee: int,
               pool_id: Optional[str] = None) -> MatchSession:
        if len(roster) != len(MARKS):
            raise ValueError('a match needs exactly two participants')
        with self._lock:
            match_id = generate_code(set(self._matches) | self._finished)
            participants = [
                Participant(account_id=account_id, handle=handle, mark=mark)
                for (account_id, handle), mark in zip(roster, MARKS)
            ]
            match = MatchSession(
                id=match_id,
                board=Board(self._settings.board_size, self._settings.win_length),
                bet=entry_fee,
                participants=participants,
                pool_id=pool_id,
            )
            self._matches[match_id] = match
        for p in participants:
            self._directory.bind_match(p.account_id, match_id)
        logger.info(f"[match-start] match={match_id} pool={pool_id} players={[p.account_id for p in participants]} bet={entry_fee}")
        for p in participants:
            opponent = match.opponent_of(p.account_id)
            self._emit(p, 'matchFound', {
                'roomId': match_id,
                'side': p.mark,
                'opponent': opponent.account_id if opponent else None,
                'bet': entry_fee,
                'boardSize': match.board.size,
                'winLength': match.board.win_length,
                'turn': match.turn,
            })
        return match

    def get(self, match_id: str) -> MatchSession:
        with self._lock:
            match = self._matches.get(match_id)
            if match is None:
                if match_id in self._finished:
                    raise MatchFinished(f'Match {match_id} is already finished', roomId=match_id)
                raise NotFound(f'Match {match_id} not found', roomId=match_id)
            return match

    def rebind(self, account_id: str, handle: str) -> None:
        match_id = self._directory.active_match(account_id)
        if not match_id:
            return
        with self._lock:
            match = self._matches.get(match_id)
        if match is None:
            return
        with match.lock:
            p = match.participant_for(account_id)
            if p is not None:
                p.handle = handle

    # ---- play ----

    def apply_move(self, match_id: str, account_id: str, row, col) -> MatchSession:
        match = self.get(match_id)
        with match.lock:
            if match.status != PLAYING:
                raise MatchFinished(f'Match {match_id} is already finished', roomId=match_id)
            participant = match.participant_for(account_id)
            if participant is None:
                raise NotInMatch(f'{account_id} is not playing in match {match_id}', roomId=match_id)
            if match.turn != participant.mark:
                raise NotYourTurn(f'It is {match.turn} to move', roomId=match_id, turn=match.turn)
            if isinstance(row, bool) or isinstance(col, bool) or not isinstance(row, int) or not isinstance(col, int):
                raise OutOfBounds('Row and column must be whole numbers', roomId=match_id)
            match.board.place(row, col, participant.mark)
            match.moves += 1

            outcome = None
            if match.board.is_winning_move(row, col):
                outcome = 'win'
            elif match.board.is_full():
                outcome = 'draw'
            else:
                match.turn = other_mark(participant.mark)

            if outcome:
                match.status = FINISHED
            self._broadcast(match, 'boardUpdate', {
                'roomId': match.id,
                'board': match.board.snapshot(),
                'turn': match.turn if outcome is None else None,
                'lastMove': {'row': row, 'col': col, 'side': participant.mark, 'accountId': account_id},
            })
            if outcome == 'win':
                self._finish(match, winner_id=account_id, reason='line')
            elif outcome == 'draw':
                self._finish(match, winner_id=None, reason='draw')
        return match

    def forfeit(self, match_id: str, loser_id: str) -> Optional[Settlement]:
        """End `match_id` in favour of the opponent of `loser_id`."""
        try:
            match = self.get(match_id)
        except (NotFound, MatchFinished):
            return None
        with match.lock:
            if match.status != PLAYING:
                return None
            winner = match.opponent_of(loser_id)
            if winner is None or match.participant_for(loser_id) is None:
                return None
            match.status = FINISHED
            logger.info(f"[forfeit] match={match.id} loser={loser_id} winner={winner.account_id}")
            return self._finish(match, winner_id=winner.account_id, reason='forfeit')

    # ---- internals ----

    def _finish(self, match: MatchSession, winner_id: Optional[str], reason: str) -> Settlement:
        # Caller holds match.lock and has already set status to FINISHED.
        with self._lock:
            self._matches.pop(match.id, None)
            self._finished.add(match.id)
        ids = [p.account_id for p in match.participants]
        if winner_id is None:
            settlement = settle_draw(match.id, match.bet, ids)
        else:
            settlement = settle_win(
                match.id, match.bet, ids, winner_id,
                self._settings.fee_fraction, self._settings.platform_account, reason=reason,
            )
        for credit in settlement.credits:
            if credit.account_id == self._settings.platform_account:
                self._ledger.ensure_account(credit.account_id, starting_balance=0)
            self._ledger.credit(credit.account_id, credit.amount, credit.reason)
        logger.info(
            f"[match-over] match={match.id} outcome={settlement.outcome} winner={winner_id} "
            f"pot={settlement.pot} fee={settlement.platform_fee} reason={reason}"
        )

        if settlement.outcome == 'draw':
            payload = {'roomId': match.id, 'draw': True, 'refund': match.bet}
        else:
            payload = {
                'roomId': match.id,
                'draw': False,
                'winnerId': winner_id,
                'winnerShare': settlement.winner_share,
                'platformFee': settlement.platform_fee,
                'reason': reason,
            }
        self._broadcast(match, 'gameOver', payload)
        for p in match.participants:
            self._directory.clear_match(p.account_id, match.id)
        return settlement

    def _emit(self, participant: Participant, name: str, payload: dict) -> None:
        handle = self._directory.handle_for(participant.account_id) or participant.handle
        self._events.emit(handle, name, payload)

    def _broadcast(self, match: MatchSession, name: str, payload: dict) -> None:
        for p in match.participants:
            self._emit(p, name, payload)
