"""
Interactive Shell

Menu-driven console front end for the ledger: input transactions, define
interest rules, print monthly statements. A thin wrapper that parses user
input and calls into LedgerStore.
"""

import sys
from typing import List, Optional, TextIO

from .config import LedgerConfig, get_config
from .date_utils import parse_date, parse_year_month
from .exceptions import LedgerError, ValidationError
from .ledger import LedgerStore
from .logging_config import get_logger, setup_logging
from .money import decimal_from_string
from .reporting import format_interest_rules, format_statement
from .storage import StorageInterface, create_storage, load_ledger, save_ledger
from .transactions import TransactionType


class BankShell:
    """Menu loop over a LedgerStore with injectable input and output streams"""
    
    def __init__(self, store: LedgerStore, config: Optional[LedgerConfig] = None,
                 storage: Optional[StorageInterface] = None,
                 stdin: Optional[TextIO] = None, stdout: Optional[TextIO] = None):
        self.store = store
        self.config = config or get_config()
        self.storage = storage
        self.stdin = stdin or sys.stdin
        self.stdout = stdout or sys.stdout
        self.logger = get_logger("bank_ledger.cli")
    
    def _print(self, text: str = "") -> None:
        self.stdout.write(text + "\n")
    
    def _prompt(self, text: str) -> Optional[str]:
        """Show a prompt and read a line; None on end of input"""
        self._print(text)
        self.stdout.write("> ")
        self.stdout.flush()
        line = self.stdin.readline()
        if not line:
            return None
        return line.strip()
    
    def run(self) -> None:
        greeting = f"Welcome to {self.config.bank_name}! What would you like to do?"
        while True:
            choice = self._prompt(
                f"\n{greeting}\n"
                "[T] Input transactions\n"
                "[I] Define interest rules\n"
                "[P] Print statement\n"
                "[Q] Quit"
            )
            greeting = "Is there anything else you'd like to do?"
            
            if choice is None:
                self.quit()
                return
            
            choice = choice.upper()
            if choice == "T":
                self.input_transactions()
            elif choice == "I":
                self.define_interest_rules()
            elif choice == "P":
                self.print_statement()
            elif choice == "Q":
                self.quit()
                return
            else:
                self._print("Invalid choice. Please try again.")
    
    def input_transactions(self) -> None:
        while True:
            line = self._prompt(
                "\nPlease enter transaction details in <Date> <Account> <Type> <Amount> format\n"
                "(or enter blank to go back to main menu):"
            )
            if not line:
                return
            
            try:
                parts = self._split(line, 4, "<YYYYMMdd> <Account> <D|W> <Amount>")
                transaction = self.store.record_transaction(
                    txn_date=parse_date(parts[0]),
                    account_id=parts[1],
                    transaction_type=TransactionType.from_code(parts[2]),
                    amount=decimal_from_string(parts[3])
                )
            except LedgerError as e:
                self._print(f"Error: {e.message}")
                continue
            
            self.logger.debug(f"Recorded {transaction.txn_id} for {parts[1]}")
            self._print("Transaction added successfully!")
            self._print(format_statement(parts[1], self.store.statement(parts[1])))
    
    def define_interest_rules(self) -> None:
        while True:
            line = self._prompt(
                "\nPlease enter interest rules details in <Date> <RuleId> <Rate in %> format\n"
                "(or enter blank to go back to main menu):"
            )
            if not line:
                return
            
            try:
                parts = self._split(line, 3, "<YYYYMMdd> <RuleId> <Rate>")
                self.store.define_interest_rule(
                    effective_date=parse_date(parts[0]),
                    rule_id=parts[1],
                    rate=decimal_from_string(parts[2], field="rate")
                )
            except LedgerError as e:
                self._print(f"Error: {e.message}")
                continue
            
            self._print("Interest rule added successfully!")
            self._print(format_interest_rules(self.store.interest_rules))
    
    def print_statement(self) -> None:
        line = self._prompt(
            "\nPlease enter account and month to generate the statement <Account> <Year><Month>\n"
            "(or enter blank to go back to main menu):"
        )
        if not line:
            return
        
        try:
            account_id, year_month = self._split(line, 2, "<Account> <YYYYMM>")
            year, month = parse_year_month(year_month)
            lines = self.store.monthly_statement(account_id, year, month)
        except LedgerError as e:
            self._print(f"Error: {e.message}")
            return
        
        self._print(format_statement(account_id, lines))
    
    def quit(self) -> None:
        if self.storage is not None:
            save_ledger(self.store, self.storage)
        self._print(f"\nThank you for banking with {self.config.bank_name}.")
        self._print("Have a nice day!")
    
    @staticmethod
    def _split(line: str, expected: int, usage: str) -> List[str]:
        parts = line.split()
        if len(parts) != expected:
            raise ValidationError(f"Invalid input. Format should be: {usage}")
        return parts


def main() -> int:
    config = get_config()
    setup_logging(config.log_level, log_format=config.log_format, log_file=config.log_file)
    
    storage = None
    if config.storage_backend.lower() != "memory":
        storage = create_storage(config)
    
    try:
        store = load_ledger(storage) if storage is not None else LedgerStore()
        BankShell(store, config=config, storage=storage).run()
    except LedgerError as e:
        sys.stderr.write(f"Error: {e.message}\n")
        return 1
    except KeyboardInterrupt:
        return 130
    finally:
        if storage is not None:
            storage.close()
    return 0


if __name__ == "__main__":
    sys.exit(main())
