import logging
import threading
from dataclasses import dataclass
from typing import Optional

from roomofy.models import WalletAccount, WalletTransaction
from .errors import InvalidRequest

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DebitResult:
    ok: bool
    balance: int


def _validate_amount(amount) -> int:
    if isinstance(amount, bool) or not isinstance(amount, int) or amount <= 0:
        raise InvalidRequest('Amount must be a positive whole number', amount=amount)
    return amount


class Ledger:
    """Wallet balances and their append-only transaction log.

    Every mutation validates first, then appends exactly one transaction,
    adjusts the balance and commits once. Any failure rolls the session
    back so `balance` always equals the signed sum of the log.
    """

    def __init__(self, session, starting_balance: int = 1000):
        self._session = session
        self._lock = threading.RLock()
        self.starting_balance = starting_balance

    def ensure_account(self, account_id: str, starting_balance: Optional[int] = None) -> WalletAccount:
        if not account_id:
            raise InvalidRequest('Account id is required')
        with self._lock:
            account = self._session.get(WalletAccount, account_id)
            if account is not None:
                return account
            initial = self.starting_balance if starting_balance is None else starting_balance
            try:
                account = WalletAccount(id=account_id, balance=initial)
                self._session.add(account)
                if initial > 0:
                    self._session.add(WalletTransaction(
                        account_id=account_id, direction='credit', amount=initial, reason='Init',
                    ))
                self._session.commit()
            except Exception:
                self._session.rollback()
                raise
            logger.info(f"[wallet-open] account={account_id} balance={initial}")
            return account

    def credit(self, account_id: str, amount: int, reason: str) -> int:
        amount = _validate_amount(amount)
        with self._lock:
            account = self.ensure_account(account_id)
            try:
                self._session.add(WalletTransaction(
                    account_id=account_id, direction='credit', amount=amount, reason=reason or '',
                ))
                account.balance += amount
                self._session.commit()
            except Exception:
                self._session.rollback()
                raise
            logger.info(f"[credit] account={account_id} amount={amount} balance={account.balance} reason={reason!r}")
            return account.balance

    def debit(self, account_id: str, amount: int, reason: str) -> DebitResult:
        amount = _validate_amount(amount)
        with self._lock:
            account = self.ensure_account(account_id)
            if account.balance < amount:
                logger.info(f"[debit-refused] account={account_id} amount={amount} balance={account.balance}")
                return DebitResult(ok=False, balance=account.balance)
            try:
                self._session.add(WalletTransaction(
                    account_id=account_id, direction='debit', amount=amount, reason=reason or '',
                ))
                account.balance -= amount
                self._session.commit()
            except Exception:
                self._session.rollback()
                raise
            logger.info(f"[debit] account={account_id} amount={amount} balance={account.balance} reason={reason!r}")
            return DebitResult(ok=True, balance=account.balance)

    def balance(self, account_id: str) -> int:
        return self.ensure_account(account_id).balance

    def get_statement(self, account_id: str) -> dict:
        account = self.ensure_account(account_id)
        rows = (
            WalletTransaction.query
            .filter_by(account_id=account_id)
            .order_by(WalletTransaction.id.desc())
            .all()
        )
        return {
            'accountId': account.id,
            'balance': account.balance,
            'transactions': [t.to_dict() for t in rows],
        }

    def verify(self, account_id: str) -> bool:
        """Recompute the balance from the log and compare."""
        account = self.ensure_account(account_id)
        total = sum(t.signed_amount for t in WalletTransaction.query.filter_by(account_id=account_id))
        return total == account.balance and account.balance >= 0
