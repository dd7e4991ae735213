"""
Test suite for accounts module

Tests transaction admission, balance derivation in chronological order,
insufficient funds handling and statement lines.
"""

import pytest
from decimal import Decimal
from datetime import date

from bank_ledger.accounts import Account
from bank_ledger.exceptions import InsufficientFundsError
from bank_ledger.transactions import Transaction, TransactionType


def deposit(day: date, txn_id: str, amount: str) -> Transaction:
    return Transaction(day, txn_id, TransactionType.DEPOSIT, Decimal(amount))


def withdrawal(day: date, txn_id: str, amount: str) -> Transaction:
    return Transaction(day, txn_id, TransactionType.WITHDRAWAL, Decimal(amount))


class TestAdmission:
    """Test adding transactions to an account"""
    
    def setup_method(self):
        """Set up test fixtures"""
        self.account = Account("AC001")
    
    def test_new_account_is_empty(self):
        """Test a new account has no transactions and zero balance"""
        assert self.account.balance == Decimal('0')
        assert self.account.transactions == ()
    
    def test_deposit_increases_balance(self):
        """Test deposit increases balance"""
        self.account.add_transaction(deposit(date(2025, 1, 1), "T1", "1000"))
        assert self.account.balance == Decimal('1000.00')
    
    def test_withdrawal_decreases_balance(self):
        """Test withdrawal decreases balance"""
        self.account.add_transaction(deposit(date(2025, 1, 1), "T1", "1000"))
        self.account.add_transaction(withdrawal(date(2025, 1, 2), "T2", "500"))
        assert self.account.balance == Decimal('500.00')
    
    def test_withdraw_entire_balance(self):
        """Test withdrawing the exact balance leaves zero"""
        self.account.add_transaction(deposit(date(2025, 1, 1), "T1", "100"))
        self.account.add_transaction(withdrawal(date(2025, 1, 1), "T2", "100"))
        assert self.account.balance == Decimal('0.00')
    
    def test_overdraw_rejected_and_ledger_unchanged(self):
        """Test overdraw is rejected and the ledger is unchanged"""
        self.account.add_transaction(deposit(date(2025, 1, 1), "T1", "100"))
        
        with pytest.raises(InsufficientFundsError) as exc_info:
            self.account.add_transaction(withdrawal(date(2025, 1, 2), "T2", "100.01"))
        
        assert exc_info.value.account_id == "AC001"
        assert exc_info.value.requested == Decimal('100.01')
        assert exc_info.value.available == Decimal('100.00')
        assert self.account.balance == Decimal('100.00')
        assert len(self.account.transactions) == 1
    
    def test_withdrawal_from_empty_account_rejected(self):
        """Test withdrawal from an empty account"""
        with pytest.raises(InsufficientFundsError):
            self.account.add_transaction(withdrawal(date(2025, 1, 1), "T1", "500"))
        assert self.account.transactions == ()
    
    def test_back_dated_withdrawal_before_funds_rejected(self):
        """Running balance may not dip below zero on any day"""
        self.account.add_transaction(deposit(date(2025, 3, 1), "T1", "100"))
        
        with pytest.raises(InsufficientFundsError):
            self.account.add_transaction(withdrawal(date(2025, 2, 1), "T2", "50"))
        assert self.account.balance == Decimal('100.00')
    
    def test_back_dated_withdrawal_overdrawing_later_day_rejected(self):
        """Test back-dated withdrawal that would overdraw an earlier day"""
        self.account.add_transaction(deposit(date(2025, 1, 1), "T1", "100"))
        self.account.add_transaction(withdrawal(date(2025, 3, 1), "T2", "80"))
        self.account.add_transaction(deposit(date(2025, 4, 1), "T3", "100"))
        
        with pytest.raises(InsufficientFundsError, match="2025-03-01"):
            self.account.add_transaction(withdrawal(date(2025, 2, 1), "T4", "50"))
        assert self.account.balance == Decimal('120.00')
    
    def test_same_day_deposit_visible_to_withdrawal(self):
        """Test same-day deposit funds a withdrawal"""
        self.account.add_transaction(deposit(date(2025, 1, 5), "T1", "50"))
        self.account.add_transaction(withdrawal(date(2025, 1, 5), "T2", "50"))
        assert self.account.balance == Decimal('0.00')
    
    def test_interest_counts_as_credit(self):
        """Test interest postings count as credits"""
        self.account.add_transaction(deposit(date(2025, 1, 1), "T1", "100"))
        self.account.add_transaction(
            Transaction(date(2025, 1, 31), "I1", TransactionType.INTEREST, Decimal('0.42'))
        )
        assert self.account.balance == Decimal('100.42')


class TestBalanceInvariant:
    """Balance equals deposits + interest - withdrawals"""
    
    def test_balance_matches_component_sums(self):
        """Test balance equals deposits plus interest minus withdrawals"""
        account = Account("AC002")
        entries = [
            deposit(date(2025, 1, 1), "T1", "500.10"),
            withdrawal(date(2025, 1, 3), "T2", "20.05"),
            deposit(date(2025, 1, 2), "T3", "75"),
            Transaction(date(2025, 1, 31), "T4", TransactionType.INTEREST, Decimal('1.23')),
            withdrawal(date(2025, 2, 1), "T5", "300"),
        ]
        for txn in entries:
            account.add_transaction(txn)
        
        deposits = sum(t.amount for t in entries if t.transaction_type == TransactionType.DEPOSIT)
        interest = sum(t.amount for t in entries if t.transaction_type == TransactionType.INTEREST)
        withdrawals = sum(t.amount for t in entries if t.transaction_type == TransactionType.WITHDRAWAL)
        
        assert account.balance == deposits + interest - withdrawals
        assert account.balance == Decimal('256.28')
        assert all(line.balance >= 0 for line in account.statement_lines())


class TestStatementLines:
    """Test chronological ordering and running balances"""
    
    def setup_method(self):
        """Set up test fixtures"""
        self.account = Account("AC001")
        self.account.add_transaction(deposit(date(2025, 2, 10), "T1", "200"))
        self.account.add_transaction(deposit(date(2025, 1, 15), "T2", "100"))
        self.account.add_transaction(withdrawal(date(2025, 2, 10), "T3", "50"))
        self.account.add_transaction(deposit(date(2025, 3, 1), "T4", "10"))
    
    def test_sorted_by_date_then_admission(self):
        """Test statement order is by date, then admission"""
        ids = [line.transaction.txn_id for line in self.account.statement_lines()]
        assert ids == ["T2", "T1", "T3", "T4"]
    
    def test_running_balance(self):
        """Test running balance on each line"""
        balances = [line.balance for line in self.account.statement_lines()]
        assert balances == [Decimal('100'), Decimal('300'), Decimal('250'), Decimal('260')]
    
    def test_filtered_lines_keep_full_history_balance(self):
        """Test filtered lines still carry the full-history balance"""
        lines = self.account.statement_lines(date(2025, 2, 1), date(2025, 2, 28))
        assert [line.transaction.txn_id for line in lines] == ["T1", "T3"]
        assert lines[0].balance == Decimal('300.00')
    
    def test_admission_order_preserved(self):
        """Test transactions keep admission order"""
        assert [t.txn_id for t in self.account.transactions] == ["T1", "T2", "T3", "T4"]
    
    def test_balance_as_of(self):
        """Test balance as of a given day"""
        assert self.account.balance_as_of(date(2025, 1, 14)) == Decimal('0')
        assert self.account.balance_as_of(date(2025, 1, 15)) == Decimal('100.00')
        assert self.account.balance_as_of(date(2025, 2, 10)) == Decimal('250.00')
    
    def test_transactions_between(self):
        """Test transactions within a date range"""
        txns = self.account.transactions_between(date(2025, 2, 1), date(2025, 3, 1))
        assert [t.txn_id for t in txns] == ["T1", "T3", "T4"]
