"""
Account Management Module

An Account is the ledger for one identifier: an append-only list of
transactions whose balance is always derived by replaying them in
chronological order (date, then admission order).
"""

from decimal import Decimal
from datetime import date
from dataclasses import dataclass
from typing import List, Optional, Tuple

from .exceptions import InsufficientFundsError
from .logging_config import get_logger, log_action
from .money import ZERO
from .transactions import Transaction, TransactionType


@dataclass(frozen=True)
class StatementLine:
    """A transaction together with the running balance after it"""
    transaction: Transaction
    balance: Decimal


class Account:
    """
    Ledger for a single account identifier
    
    Transactions are kept in admission order. Every balance is computed over
    the chronological order, so a transaction back-dated before existing
    entries is applied at its date and same-day entries keep the order in
    which they were added.
    """
    
    def __init__(self, account_id: str):
        self.account_id = account_id
        self._transactions: List[Transaction] = []
        self.logger = get_logger("bank_ledger.accounts")
    
    def __repr__(self) -> str:
        return f"Account({self.account_id!r}, transactions={len(self._transactions)})"
    
    @property
    def transactions(self) -> Tuple[Transaction, ...]:
        """Transactions in admission order"""
        return tuple(self._transactions)
    
    def chronological_transactions(self) -> List[Transaction]:
        """Transactions ordered by date; sorted() is stable so ties keep admission order"""
        return sorted(self._transactions, key=lambda txn: txn.date)
    
    @property
    def balance(self) -> Decimal:
        """Current book balance"""
        return sum((txn.signed_amount for txn in self.chronological_transactions()), ZERO)
    
    def balance_as_of(self, as_of: date) -> Decimal:
        """End-of-day balance on as_of"""
        return sum(
            (txn.signed_amount for txn in self._transactions if txn.date <= as_of),
            ZERO
        )
    
    def transactions_between(self, start: date, end: date) -> List[Transaction]:
        """Chronological transactions dated within [start, end]"""
        return [txn for txn in self.chronological_transactions() if start <= txn.date <= end]
    
    def add_transaction(self, transaction: Transaction) -> Transaction:
        """
        Admit a validated transaction to the ledger
        
        Args:
            transaction: Transaction to post
            
        Returns:
            The admitted transaction
            
        Raises:
            InsufficientFundsError: If a withdrawal exceeds the current balance,
                or a back-dated withdrawal would drive the running balance
                below zero on any day. The ledger is left unchanged.
        """
        if transaction.transaction_type == TransactionType.WITHDRAWAL:
            self._check_funds(transaction)
        
        self._transactions.append(transaction)
        
        log_action(
            self.logger, "info",
            f"Posted {transaction.transaction_type.name.lower()} {transaction.txn_id}",
            account_id=self.account_id,
            action="post_transaction",
            resource=transaction.txn_id,
            extra={
                "date": transaction.date.isoformat(),
                "type": transaction.transaction_type.value,
                "amount": str(transaction.amount),
                "balance": str(self.balance)
            }
        )
        return transaction
    
    def _check_funds(self, withdrawal: Transaction) -> None:
        available = self.balance
        if withdrawal.amount > available:
            self._reject(withdrawal, available)
        
        # Replay with the withdrawal placed after everything else on its date
        running = ZERO
        for txn in sorted(self._transactions + [withdrawal], key=lambda t: t.date):
            running += txn.signed_amount
            if running < ZERO:
                self._reject(
                    withdrawal,
                    self.balance_as_of(withdrawal.date),
                    message=(
                        f"Insufficient funds in account {self.account_id}: withdrawal of "
                        f"{withdrawal.amount:.2f} dated {withdrawal.date.isoformat()} would "
                        f"overdraw the account on {txn.date.isoformat()}"
                    )
                )
    
    def _reject(self, withdrawal: Transaction, available: Decimal,
                message: Optional[str] = None) -> None:
        log_action(
            self.logger, "warning", "Withdrawal rejected for insufficient funds",
            account_id=self.account_id,
            action="reject_withdrawal",
            resource=withdrawal.txn_id,
            extra={"requested": str(withdrawal.amount), "available": str(available)}
        )
        raise InsufficientFundsError(self.account_id, withdrawal.amount, available, message)
    
    def statement_lines(self, start: Optional[date] = None,
                        end: Optional[date] = None) -> List[StatementLine]:
        """
        Chronological statement with the running balance after each line
        
        The running balance always covers the full history; start/end only
        restrict which lines are returned.
        """
        lines = []
        running = ZERO
        for txn in self.chronological_transactions():
            running += txn.signed_amount
            if start and txn.date < start:
                continue
            if end and txn.date > end:
                continue
            lines.append(StatementLine(transaction=txn, balance=running))
        return lines
