"""
Storage Backend Module

Optional persistence for a LedgerStore. Provides an abstract storage
interface and implementations for in-memory (testing), flat text files and
SQLite. Amounts are stored as Decimal strings. Loading replays every
transaction through normal admission, so stored data is re-validated.
"""

from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional, Tuple, Union
from pathlib import Path
import json
import sqlite3

from .config import LedgerConfig
from .date_utils import format_date, parse_date
from .exceptions import ValidationError
from .interest import InterestRule
from .ledger import LedgerStore
from .logging_config import get_logger
from .money import decimal_from_string, format_amount
from .transactions import Transaction, TransactionType

# (account_id, transaction) in admission order
TransactionRecord = Tuple[str, Transaction]

logger = get_logger("bank_ledger.storage")


def transaction_to_dict(account_id: str, transaction: Transaction) -> Dict[str, Any]:
    return {
        "account_id": account_id,
        "txn_id": transaction.txn_id,
        "date": format_date(transaction.date),
        "type": transaction.transaction_type.value,
        "amount": format_amount(transaction.amount)
    }


def transaction_from_dict(data: Dict[str, Any]) -> TransactionRecord:
    transaction = Transaction(
        date=parse_date(data["date"]),
        txn_id=data["txn_id"],
        transaction_type=TransactionType.from_code(data["type"], allow_interest=True),
        amount=decimal_from_string(data["amount"])
    )
    return data["account_id"], transaction


def rule_to_dict(rule: InterestRule) -> Dict[str, Any]:
    return {
        "effective_date": format_date(rule.effective_date),
        "rule_id": rule.rule_id,
        "rate": str(rule.rate)
    }


def rule_from_dict(data: Dict[str, Any]) -> InterestRule:
    return InterestRule(
        effective_date=parse_date(data["effective_date"]),
        rule_id=data["rule_id"],
        rate=decimal_from_string(data["rate"], field="rate")
    )


class StorageInterface(ABC):
    """Abstract interface for storage backends"""
    
    @abstractmethod
    def save_transactions(self, records: List[TransactionRecord]) -> None:
        """Replace all stored transactions"""
        pass
    
    @abstractmethod
    def load_transactions(self) -> List[TransactionRecord]:
        """Load transactions in the order they were saved"""
        pass
    
    @abstractmethod
    def save_interest_rules(self, rules: List[InterestRule]) -> None:
        """Replace all stored interest rules"""
        pass
    
    @abstractmethod
    def load_interest_rules(self) -> List[InterestRule]:
        """Load interest rules"""
        pass
    
    def close(self) -> None:
        """Close storage (default no-op)"""
        pass


class InMemoryStorage(StorageInterface):
    """In-memory storage implementation for testing"""
    
    def __init__(self):
        self._data: Dict[str, List[Dict[str, Any]]] = {"transactions": [], "interest_rules": []}
    
    def save_transactions(self, records: List[TransactionRecord]) -> None:
        # Round-trip through JSON so callers cannot mutate stored state
        rows = [transaction_to_dict(account_id, txn) for account_id, txn in records]
        self._data["transactions"] = json.loads(json.dumps(rows))
    
    def load_transactions(self) -> List[TransactionRecord]:
        return [transaction_from_dict(dict(row)) for row in self._data["transactions"]]
    
    def save_interest_rules(self, rules: List[InterestRule]) -> None:
        self._data["interest_rules"] = json.loads(json.dumps([rule_to_dict(r) for r in rules]))
    
    def load_interest_rules(self) -> List[InterestRule]:
        return [rule_from_dict(dict(row)) for row in self._data["interest_rules"]]
    
    def get_all_data(self) -> Dict[str, List[Dict[str, Any]]]:
        """Get all data for debugging/inspection"""
        return json.loads(json.dumps(self._data))


class FlatFileStorage(StorageInterface):
    """
    Plain text storage, one record per line
    
    Transactions: ``YYYYMMdd <account> <txn_id> <D|W|I> <amount>``
    Interest rules: ``YYYYMMdd <rule_id> <rate>``
    
    Missing files load as empty.
    """
    
    def __init__(self, transactions_path: Union[str, Path], interest_rules_path: Union[str, Path]):
        self.transactions_path = Path(transactions_path)
        self.interest_rules_path = Path(interest_rules_path)
    
    def save_transactions(self, records: List[TransactionRecord]) -> None:
        lines = []
        for account_id, txn in records:
            row = transaction_to_dict(account_id, txn)
            self._check_field(row, "account_id")
            self._check_field(row, "txn_id")
            lines.append(f"{row['date']} {row['account_id']} {row['txn_id']} {row['type']} {row['amount']}")
        self._write_lines(self.transactions_path, lines)
    
    def load_transactions(self) -> List[TransactionRecord]:
        records = []
        for line_number, parts in self._read_lines(self.transactions_path):
            if len(parts) != 5:
                raise ValidationError(
                    f"{self.transactions_path}, line {line_number}: expected 5 fields, got {len(parts)}"
                )
            data = dict(zip(["date", "account_id", "txn_id", "type", "amount"], parts))
            records.append(self._parse(self.transactions_path, line_number, transaction_from_dict, data))
        return records
    
    def save_interest_rules(self, rules: List[InterestRule]) -> None:
        lines = []
        for rule in rules:
            row = rule_to_dict(rule)
            self._check_field(row, "rule_id")
            lines.append(f"{row['effective_date']} {row['rule_id']} {row['rate']}")
        self._write_lines(self.interest_rules_path, lines)
    
    def load_interest_rules(self) -> List[InterestRule]:
        rules = []
        for line_number, parts in self._read_lines(self.interest_rules_path):
            if len(parts) != 3:
                raise ValidationError(
                    f"{self.interest_rules_path}, line {line_number}: expected 3 fields, got {len(parts)}"
                )
            data = dict(zip(["effective_date", "rule_id", "rate"], parts))
            rules.append(self._parse(self.interest_rules_path, line_number, rule_from_dict, data))
        return rules
    
    @staticmethod
    def _check_field(row: Dict[str, Any], name: str) -> None:
        # Fields are whitespace-separated on disk
        value = row[name]
        if not value or any(ch.isspace() for ch in value):
            raise ValidationError(
                f"Cannot store {name} {value!r} in a flat file: it must not contain whitespace",
                field=name
            )
    
    @staticmethod
    def _parse(path: Path, line_number: int, parser, data: Dict[str, Any]):
        try:
            return parser(data)
        except ValidationError as e:
            raise ValidationError(f"{path}, line {line_number}: {e.message}", field=e.field) from e
    
    @staticmethod
    def _read_lines(path: Path) -> List[Tuple[int, List[str]]]:
        if not path.exists():
            return []
        rows = []
        with path.open("r", encoding="utf-8") as handle:
            for line_number, line in enumerate(handle, start=1):
                if line.strip():
                    rows.append((line_number, line.split()))
        return rows
    
    @staticmethod
    def _write_lines(path: Path, lines: List[str]) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        with path.open("w", encoding="utf-8") as handle:
            for line in lines:
                handle.write(line + "\n")


class SQLiteStorage(StorageInterface):
    """SQLite storage implementation for persistence"""
    
    def __init__(self, db_path: Union[str, Path] = ":memory:"):
        self.db_path = str(db_path)
        self._connection = sqlite3.connect(self.db_path)
        self._connection.row_factory = sqlite3.Row
        self._ensure_tables()
    
    def _ensure_tables(self) -> None:
        with self._connection:
            self._connection.execute("""
                CREATE TABLE IF NOT EXISTS transactions (
                    seq INTEGER PRIMARY KEY AUTOINCREMENT,
                    account_id TEXT NOT NULL,
                    txn_id TEXT NOT NULL,
                    date TEXT NOT NULL,
                    type TEXT NOT NULL,
                    amount TEXT NOT NULL,
                    UNIQUE (account_id, txn_id)
                )
            """)
            self._connection.execute("""
                CREATE TABLE IF NOT EXISTS interest_rules (
                    effective_date TEXT PRIMARY KEY,
                    rule_id TEXT NOT NULL,
                    rate TEXT NOT NULL
                )
            """)
    
    def save_transactions(self, records: List[TransactionRecord]) -> None:
        rows = [transaction_to_dict(account_id, txn) for account_id, txn in records]
        # Connection context manager commits, or rolls back on error
        try:
            with self._connection:
                self._connection.execute("DELETE FROM transactions")
                self._connection.executemany(
                    "INSERT INTO transactions (account_id, txn_id, date, type, amount) "
                    "VALUES (:account_id, :txn_id, :date, :type, :amount)",
                    rows
                )
        except sqlite3.IntegrityError as e:
            raise ValidationError(
                f"Cannot store transactions: duplicate transaction id within an account ({e})",
                field="txn_id"
            ) from e
    
    def load_transactions(self) -> List[TransactionRecord]:
        cursor = self._connection.execute(
            "SELECT account_id, txn_id, date, type, amount FROM transactions ORDER BY seq"
        )
        return [transaction_from_dict(dict(row)) for row in cursor.fetchall()]
    
    def save_interest_rules(self, rules: List[InterestRule]) -> None:
        with self._connection:
            self._connection.execute("DELETE FROM interest_rules")
            self._connection.executemany(
                "INSERT INTO interest_rules (effective_date, rule_id, rate) "
                "VALUES (:effective_date, :rule_id, :rate)",
                [rule_to_dict(rule) for rule in rules]
            )
    
    def load_interest_rules(self) -> List[InterestRule]:
        cursor = self._connection.execute(
            "SELECT effective_date, rule_id, rate FROM interest_rules ORDER BY effective_date"
        )
        return [rule_from_dict(dict(row)) for row in cursor.fetchall()]
    
    def close(self) -> None:
        """Close database connection"""
        self._connection.close()


def save_ledger(store: LedgerStore, storage: StorageInterface) -> None:
    """Write every account's transactions and all interest rules"""
    records = [
        (account.account_id, txn)
        for account in store.accounts
        for txn in account.transactions
    ]
    storage.save_transactions(records)
    storage.save_interest_rules(store.interest_rules.rules)
    logger.info(f"Saved {len(records)} transactions and {len(store.interest_rules)} interest rules")


def load_ledger(storage: StorageInterface, store: Optional[LedgerStore] = None) -> LedgerStore:
    """
    Load stored data into a LedgerStore
    
    Transactions go through normal admission, so data that would overdraw an
    account raises InsufficientFundsError.
    """
    store = store or LedgerStore()
    for rule in storage.load_interest_rules():
        store.interest_rules.upsert(rule)
    
    records = storage.load_transactions()
    for account_id, txn in records:
        store.add_transaction(account_id, txn)
    
    logger.info(f"Loaded {len(records)} transactions and {len(store.interest_rules)} interest rules")
    return store


def create_storage(config: LedgerConfig) -> StorageInterface:
    """Create the storage backend named by the configuration"""
    backend = config.storage_backend.lower()
    if backend == "memory":
        return InMemoryStorage()
    elif backend == "file":
        return FlatFileStorage(config.transactions_file, config.interest_rules_file)
    elif backend == "sqlite":
        return SQLiteStorage(config.database_path)
    else:
        raise ValueError(f"Unsupported storage backend: {config.storage_backend}")
