"""
Transaction Module

Immutable, validated records of single monetary movements. Validation happens
at construction so an invalid Transaction can never reach a ledger.
"""

from decimal import Decimal
from datetime import date
from dataclasses import dataclass
from typing import Iterable
from enum import Enum

from .date_utils import as_date, format_date
from .exceptions import ValidationError
from .money import ZERO, round_money, to_decimal


class TransactionType(Enum):
    """Types of ledger transactions, valued by their statement code"""
    DEPOSIT = "D"
    WITHDRAWAL = "W"
    INTEREST = "I"  # System-generated by the interest engine
    
    @classmethod
    def from_code(cls, code: str, allow_interest: bool = False) -> 'TransactionType':
        """
        Parse a raw external code ("D"/"W", case-insensitive)
        
        Interest postings are only created by the interest engine, so "I" is
        accepted only when reading back persisted data.
        """
        normalized = (code or "").strip().upper()
        try:
            transaction_type = cls(normalized)
        except ValueError:
            raise ValidationError(f"Invalid transaction type '{code}'", field="transaction_type")
        
        if transaction_type == cls.INTEREST and not allow_interest:
            raise ValidationError("Interest transactions cannot be entered manually",
                                  field="transaction_type")
        return transaction_type
    
    @property
    def is_credit(self) -> bool:
        """Deposits and interest increase the balance"""
        return self != TransactionType.WITHDRAWAL


@dataclass(frozen=True)
class Transaction:
    """
    A single monetary movement on an account
    
    Amounts are held at cent precision. Dates are calendar dates; a datetime
    passed in is reduced to its date.
    """
    date: date
    txn_id: str
    transaction_type: TransactionType
    amount: Decimal
    
    def __post_init__(self):
        txn_date = as_date(self.date)
        if txn_date > date.today():
            raise ValidationError(
                f"Transaction date {txn_date.isoformat()} cannot be in the future", field="date"
            )
        object.__setattr__(self, 'date', txn_date)
        
        if not isinstance(self.txn_id, str) or not self.txn_id.strip():
            raise ValidationError("Transaction id must be a non-empty string", field="txn_id")
        
        if not isinstance(self.transaction_type, TransactionType):
            raise ValidationError(
                f"Invalid transaction type: {self.transaction_type!r}", field="transaction_type"
            )
        
        amount = round_money(to_decimal(self.amount))
        if amount <= ZERO:
            raise ValidationError("Amount must be greater than zero", field="amount")
        object.__setattr__(self, 'amount', amount)
    
    @property
    def signed_amount(self) -> Decimal:
        """Balance effect of this transaction"""
        if self.transaction_type.is_credit:
            return self.amount
        return -self.amount
    
    @property
    def is_withdrawal(self) -> bool:
        return self.transaction_type == TransactionType.WITHDRAWAL
    
    @property
    def is_interest(self) -> bool:
        return self.transaction_type == TransactionType.INTEREST


def generate_transaction_id(existing: Iterable[Transaction], txn_date: date) -> str:
    """
    Generate the next id for a transaction on txn_date
    
    Ids take the form YYYYMMdd-NN where NN counts the transactions already
    booked on that date, starting from 01. Ledgers are append-only, so the
    count never decreases and ids stay unique within an account.
    """
    txn_date = as_date(txn_date)
    same_day = sum(1 for txn in existing if txn.date == txn_date)
    return f"{format_date(txn_date)}-{same_day + 1:02d}"
