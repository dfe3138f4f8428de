"""Payout computation for finished matches.

Pure functions: they return the ledger credits to apply and never touch
the ledger themselves.
"""

from dataclasses import dataclass, field
from decimal import Decimal, ROUND_HALF_UP
from typing import List, Optional, Sequence


@dataclass(frozen=True)
class Credit:
    account_id: str
    amount: int
    reason: str


@dataclass(frozen=True)
class Settlement:
    outcome: str  # 'win' or 'draw'
    pot: int
    platform_fee: int = 0
    winner_id: Optional[str] = None
    winner_share: int = 0
    credits: List[Credit] = field(default_factory=list)


def platform_fee_for(pot: int, fee_fraction) -> int:
    """Platform cut of `pot`, rounded half-up to a whole unit."""
    fee = (Decimal(pot) * Decimal(str(fee_fraction))).quantize(Decimal('1'), rounding=ROUND_HALF_UP)
    return max(0, min(pot, int(fee)))


def settle_win(match_id: str, entry_fee: int, participant_ids: Sequence[str], winner_id: str,
               fee_fraction, platform_account: str, reason: str = 'win') -> Settlement:
    if winner_id not in participant_ids:
        raise ValueError(f"winner {winner_id} is not a participant of {match_id}")
    pot = entry_fee * len(participant_ids)
    fee = platform_fee_for(pot, fee_fraction)
    share = pot - fee
    credits = []
    if share:
        credits.append(Credit(winner_id, share, f"Win {match_id} ({reason})"))
    if fee:
        credits.append(Credit(platform_account, fee, f"Platform fee {match_id}"))
    return Settlement(
        outcome='win',
        pot=pot,
        platform_fee=fee,
        winner_id=winner_id,
        winner_share=share,
        credits=credits,
    )


def settle_draw(match_id: str, entry_fee: int, participant_ids: Sequence[str]) -> Settlement:
    credits = [Credit(pid, entry_fee, f"Draw refund {match_id}") for pid in participant_ids]
    return Settlement(outcome='draw', pot=entry_fee * len(participant_ids), credits=credits)
