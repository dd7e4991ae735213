"""
Interest Engine Module

Date-effective interest rules and monthly interest accrual. A month is split
into sub-periods over which both the end-of-day balance and the applicable
annual rate are constant; each contributes balance * rate / 365 * days and
the total is rounded once, half-up, to cents before posting.
"""

from decimal import Decimal
from datetime import date, timedelta
from dataclasses import dataclass, field
from typing import Iterator, List, Optional

from .accounts import Account
from .date_utils import as_date, days_inclusive, format_date, month_bounds, previous_day
from .exceptions import ValidationError
from .logging_config import get_logger, log_action
from .money import ZERO, round_money, to_decimal
from .transactions import Transaction, TransactionType, generate_transaction_id

# Fixed day count, no leap-year adjustment
DAYS_IN_YEAR = Decimal('365')
HUNDRED = Decimal('100')


@dataclass(frozen=True)
class InterestRule:
    """Annual interest rate (percent) in force from effective_date onward"""
    effective_date: date
    rule_id: str
    rate: Decimal
    
    def __post_init__(self):
        object.__setattr__(self, 'effective_date', as_date(self.effective_date))
        
        if not isinstance(self.rule_id, str) or not self.rule_id.strip():
            raise ValidationError("Rule id must be a non-empty string", field="rule_id")
        
        rate = to_decimal(self.rate, field="rate")
        if rate <= ZERO or rate >= HUNDRED:
            raise ValidationError("Interest rate must be greater than 0 and less than 100",
                                  field="rate")
        object.__setattr__(self, 'rate', rate)


class InterestRuleSet:
    """
    Interest rules ordered by effective date
    
    At most one rule is in force per effective date: upserting a rule on a
    date that already has one replaces it.
    """
    
    def __init__(self, rules: Optional[List[InterestRule]] = None):
        self._rules: List[InterestRule] = []
        self.logger = get_logger("bank_ledger.interest")
        for rule in rules or []:
            self.upsert(rule)
    
    def __iter__(self) -> Iterator[InterestRule]:
        return iter(self._rules)
    
    def __len__(self) -> int:
        return len(self._rules)
    
    @property
    def rules(self) -> List[InterestRule]:
        """Rules ascending by effective date"""
        return list(self._rules)
    
    def upsert(self, rule: InterestRule) -> Optional[InterestRule]:
        """
        Add a rule, replacing any rule with the same effective date
        
        Returns:
            The replaced rule, or None
        """
        replaced = next((r for r in self._rules if r.effective_date == rule.effective_date), None)
        self._rules = [r for r in self._rules if r.effective_date != rule.effective_date]
        self._rules.append(rule)
        self._rules.sort(key=lambda r: r.effective_date)
        
        log_action(
            self.logger, "info", f"Interest rule {rule.rule_id} defined",
            action="upsert_rule",
            resource=rule.rule_id,
            extra={
                "effective_date": rule.effective_date.isoformat(),
                "rate": str(rule.rate),
                "replaced": replaced.rule_id if replaced else None
            }
        )
        return replaced
    
    def rule_in_force(self, on_date: date) -> Optional[InterestRule]:
        """Latest rule effective on or before on_date"""
        current = None
        for rule in self._rules:
            if rule.effective_date > on_date:
                break
            current = rule
        return current
    
    def rules_effective_between(self, start: date, end: date) -> List[InterestRule]:
        return [r for r in self._rules if start <= r.effective_date <= end]


@dataclass(frozen=True)
class AccrualPeriod:
    """Contiguous days with constant end-of-day balance and rate"""
    start: date
    end: date
    balance: Decimal
    rule: Optional[InterestRule]
    
    @property
    def days(self) -> int:
        return days_inclusive(self.start, self.end)
    
    @property
    def rate(self) -> Decimal:
        return self.rule.rate if self.rule else ZERO
    
    @property
    def uncovered(self) -> bool:
        """True when no interest rule was in force"""
        return self.rule is None
    
    @property
    def interest(self) -> Decimal:
        """Unrounded interest earned over the period"""
        return self.balance * (self.rate / HUNDRED) / DAYS_IN_YEAR * self.days


@dataclass
class InterestCalculation:
    """Result of a monthly interest calculation"""
    account_id: str
    month_start: date
    month_end: date
    periods: List[AccrualPeriod] = field(default_factory=list)
    
    @property
    def total(self) -> Decimal:
        """Sum of unrounded period interest"""
        return sum((period.interest for period in self.periods), Decimal('0'))
    
    @property
    def amount(self) -> Decimal:
        """Total rounded to cents; this is what gets posted"""
        return round_money(self.total)


class InterestEngine:
    """Calculates and posts monthly interest for an account"""
    
    def __init__(self):
        self.logger = get_logger("bank_ledger.interest")
    
    def accrual_periods(self, account: Account, rules: InterestRuleSet,
                        year: int, month: int) -> List[AccrualPeriod]:
        """
        Partition a calendar month into sub-periods
        
        Boundaries fall on the first day of the month, every day with a
        transaction, and every day a rule takes effect. Each sub-period uses
        the end-of-day balance of its first day.
        """
        month_start, month_end = month_bounds(year, month)
        
        boundaries = {month_start}
        boundaries.update(txn.date for txn in account.transactions_between(month_start, month_end))
        boundaries.update(r.effective_date for r in rules.rules_effective_between(month_start, month_end))
        starts = sorted(boundaries)
        
        # Running balance per day from the opening balance
        balance = account.balance_as_of(previous_day(month_start))
        deltas = {}
        for txn in account.transactions_between(month_start, month_end):
            deltas[txn.date] = deltas.get(txn.date, ZERO) + txn.signed_amount
        
        periods = []
        for index, start in enumerate(starts):
            end = starts[index + 1] - timedelta(days=1) if index + 1 < len(starts) else month_end
            balance += deltas.get(start, ZERO)
            periods.append(AccrualPeriod(
                start=start,
                end=end,
                balance=balance,
                rule=rules.rule_in_force(start)
            ))
        return periods
    
    def calculate_monthly_interest(self, account: Account, rules: InterestRuleSet,
                                   year: int, month: int) -> InterestCalculation:
        """
        Calculate interest earned over one calendar month without posting it
        
        Sub-periods with no rule in force earn nothing and are logged as a
        warning, since history may predate the first rule.
        """
        month_start, month_end = month_bounds(year, month)
        calculation = InterestCalculation(
            account_id=account.account_id,
            month_start=month_start,
            month_end=month_end,
            periods=self.accrual_periods(account, rules, year, month)
        )
        
        for period in calculation.periods:
            if period.uncovered and period.balance > ZERO:
                log_action(
                    self.logger, "warning",
                    "No interest rule in force; sub-period accrues no interest",
                    account_id=account.account_id,
                    action="accrue_interest",
                    extra={
                        "start": period.start.isoformat(),
                        "end": period.end.isoformat(),
                        "balance": str(period.balance)
                    }
                )
        return calculation
    
    def apply_monthly_interest(self, account: Account, rules: InterestRuleSet,
                               year: int, month: int) -> Optional[Transaction]:
        """
        Calculate and post interest for a month
        
        Not idempotent: each call posts a fresh entry dated the last day of the
        month, and earlier postings count toward the balance like deposits.
        
        Returns:
            The posted interest transaction, or None if the interest is zero
            
        Raises:
            ValidationError: If the month has not ended yet
        """
        month_start, month_end = month_bounds(year, month)
        if month_end > date.today():
            raise ValidationError(
                f"Cannot post interest for {format_date(month_start)[:6]} before the month ends",
                field="month"
            )
        
        calculation = self.calculate_monthly_interest(account, rules, year, month)
        amount = calculation.amount
        if amount == ZERO:
            self.logger.debug(f"No interest due for {account.account_id} in {month_start:%Y-%m}")
            return None
        
        transaction = Transaction(
            date=month_end,
            txn_id=generate_transaction_id(account.transactions, month_end),
            transaction_type=TransactionType.INTEREST,
            amount=amount
        )
        account.add_transaction(transaction)
        
        log_action(
            self.logger, "info", f"Interest posted for {month_start:%Y-%m}",
            account_id=account.account_id,
            action="post_interest",
            resource=transaction.txn_id,
            extra={
                "amount": str(amount),
                "unrounded": str(calculation.total),
                "periods": len(calculation.periods)
            }
        )
        return transaction
