"""
Ledger Exceptions Module

Typed exception hierarchy for the ledger core. Every exception carries a
machine-readable code so callers can branch on type instead of message text.

    LedgerError
    +-- ValidationError         malformed transaction / rule / input
    +-- InsufficientFundsError  withdrawal would drive the balance negative
    +-- NotFoundError           unknown account identifier
"""

from decimal import Decimal
from typing import Optional


class LedgerError(Exception):
    """Base exception for the ledger core"""
    
    code: str = "LEDGER_ERROR"
    
    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(LedgerError, ValueError):
    """Construction inputs or raw user input are invalid"""
    
    code = "VALIDATION_ERROR"
    
    def __init__(self, message: str, field: Optional[str] = None):
        super().__init__(message)
        self.field = field


class InsufficientFundsError(LedgerError):
    """Withdrawal rejected because it would make the balance negative"""
    
    code = "INSUFFICIENT_FUNDS"
    
    def __init__(self, account_id: str, requested: Decimal, available: Decimal,
                 message: Optional[str] = None):
        self.account_id = account_id
        self.requested = requested
        self.available = available
        super().__init__(
            message or
            f"Insufficient funds in account {account_id}: "
            f"requested {requested:.2f}, available {available:.2f}"
        )


class NotFoundError(LedgerError):
    """Referenced entity does not exist"""
    
    code = "NOT_FOUND"
    
    def __init__(self, resource: str, identifier: str):
        self.resource = resource
        self.identifier = identifier
        super().__init__(f"{resource.capitalize()} {identifier} not found")
