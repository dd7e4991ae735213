"""
Ledger Store Module

LedgerStore is the explicit context object for the whole ledger: it owns the
account map and the interest rule set and is passed to whatever needs them,
so no ledger state lives in module globals.
"""

from decimal import Decimal
from datetime import date
from typing import Dict, List, Optional, Union

from .accounts import Account, StatementLine
from .date_utils import month_bounds
from .exceptions import NotFoundError
from .interest import InterestEngine, InterestRule, InterestRuleSet
from .logging_config import get_logger
from .transactions import Transaction, TransactionType, generate_transaction_id


class LedgerStore:
    """
    Accounts and interest rules for one banking client
    
    Unknown account ids are created on transaction input and rejected with
    NotFoundError on statement and interest requests.
    """
    
    def __init__(self, interest_rules: Optional[InterestRuleSet] = None,
                 interest_engine: Optional[InterestEngine] = None):
        self._accounts: Dict[str, Account] = {}
        self.interest_rules = interest_rules or InterestRuleSet()
        self.interest_engine = interest_engine or InterestEngine()
        self.logger = get_logger("bank_ledger.ledger")
    
    @property
    def accounts(self) -> List[Account]:
        """Accounts in creation order"""
        return list(self._accounts.values())
    
    def has_account(self, account_id: str) -> bool:
        return account_id in self._accounts
    
    def get_account(self, account_id: str) -> Account:
        account = self._accounts.get(account_id)
        if account is None:
            raise NotFoundError("account", account_id)
        return account
    
    def get_or_create_account(self, account_id: str) -> Account:
        account = self._accounts.get(account_id)
        if account is None:
            account = Account(account_id)
            self._accounts[account_id] = account
            self.logger.info(f"Created account {account_id}")
        return account
    
    def record_transaction(self, txn_date: date, account_id: str,
                           transaction_type: TransactionType,
                           amount: Union[Decimal, str, int]) -> Transaction:
        """
        Build and post a transaction with a generated id
        
        The account is created if needed, but only kept when the transaction
        is admitted.
        
        Raises:
            ValidationError: If the transaction is malformed
            InsufficientFundsError: If a withdrawal exceeds the available funds
        """
        existing = self._accounts.get(account_id)
        account = existing or Account(account_id)
        
        transaction = Transaction(
            date=txn_date,
            txn_id=generate_transaction_id(account.transactions, txn_date),
            transaction_type=transaction_type,
            amount=amount
        )
        account.add_transaction(transaction)
        
        if existing is None:
            self._accounts[account_id] = account
            self.logger.info(f"Created account {account_id}")
        return transaction
    
    def add_transaction(self, account_id: str, transaction: Transaction) -> Transaction:
        """Post a prebuilt transaction; the caller guarantees id uniqueness"""
        existing = self._accounts.get(account_id)
        account = existing or Account(account_id)
        account.add_transaction(transaction)
        if existing is None:
            self._accounts[account_id] = account
            self.logger.info(f"Created account {account_id}")
        return transaction
    
    def define_interest_rule(self, effective_date: date, rule_id: str,
                             rate: Union[Decimal, str, int]) -> InterestRule:
        """Create a rule and upsert it by effective date"""
        rule = InterestRule(effective_date=effective_date, rule_id=rule_id, rate=rate)
        self.interest_rules.upsert(rule)
        return rule
    
    def apply_monthly_interest(self, account_id: str, year: int, month: int) -> Optional[Transaction]:
        """
        Post interest earned by an account over a calendar month
        
        Raises:
            NotFoundError: If the account does not exist
            ValidationError: If the month is invalid or has not ended
        """
        account = self.get_account(account_id)
        return self.interest_engine.apply_monthly_interest(account, self.interest_rules, year, month)
    
    def statement(self, account_id: str, year: Optional[int] = None,
                  month: Optional[int] = None) -> List[StatementLine]:
        """
        Statement lines for an account, optionally restricted to one month
        
        Raises:
            NotFoundError: If the account does not exist
        """
        account = self.get_account(account_id)
        if year is None or month is None:
            return account.statement_lines()
        month_start, month_end = month_bounds(year, month)
        return account.statement_lines(month_start, month_end)
    
    def monthly_statement(self, account_id: str, year: int, month: int) -> List[StatementLine]:
        """Apply the month's interest, then return the month's statement lines"""
        self.apply_monthly_interest(account_id, year, month)
        return self.statement(account_id, year, month)
