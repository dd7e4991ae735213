"""
Reporting Module

Renders statements and interest rule listings. Consumes statement lines
produced by the ledger; never mutates ledger state.
"""

from enum import Enum
from typing import Any, Dict, Iterable, List, Union
import csv
import io
import json

from .accounts import StatementLine
from .date_utils import format_date
from .interest import InterestRule
from .money import format_amount


class ReportFormat(Enum):
    """Output formats for statements"""
    TEXT = "text"
    DICT = "dict"
    JSON = "json"
    CSV = "csv"


STATEMENT_HEADER = "| Date     | Txn Id      | Type | Amount | Balance |"
RULES_HEADER = "| Date     | RuleId | Rate (%) |"


def format_statement(account_id: str, lines: Iterable[StatementLine]) -> str:
    """Render a statement as a text table"""
    rows = [f"Account: {account_id}", STATEMENT_HEADER]
    for line in lines:
        txn = line.transaction
        rows.append(
            f"| {format_date(txn.date)} | {txn.txn_id:<11} | {txn.transaction_type.value:<4} "
            f"| {format_amount(txn.amount):>6} | {format_amount(line.balance):>7} |"
        )
    return "\n".join(rows)


def format_interest_rules(rules: Iterable[InterestRule]) -> str:
    """Render interest rules as a text table"""
    rows = ["Interest rules:", RULES_HEADER]
    for rule in rules:
        rows.append(
            f"| {format_date(rule.effective_date)} | {rule.rule_id:<6} | {format_amount(rule.rate):>8} |"
        )
    return "\n".join(rows)


def statement_rows(lines: Iterable[StatementLine]) -> List[Dict[str, Any]]:
    return [
        {
            'date': format_date(line.transaction.date),
            'txn_id': line.transaction.txn_id,
            'type': line.transaction.transaction_type.value,
            'amount': format_amount(line.transaction.amount),
            'balance': format_amount(line.balance)
        }
        for line in lines
    ]


def export_statement(account_id: str, lines: Iterable[StatementLine],
                     format: ReportFormat) -> Union[Dict, str]:
    """
    Export a statement in the specified format
    """
    lines = list(lines)
    
    if format == ReportFormat.TEXT:
        return format_statement(account_id, lines)
    
    elif format == ReportFormat.DICT:
        return {
            'account_id': account_id,
            'transactions': statement_rows(lines),
            'closing_balance': format_amount(lines[-1].balance) if lines else None
        }
    
    elif format == ReportFormat.JSON:
        export_dict = export_statement(account_id, lines, ReportFormat.DICT)
        return json.dumps(export_dict, indent=2, default=str)
    
    elif format == ReportFormat.CSV:
        output = io.StringIO()
        writer = csv.DictWriter(output, fieldnames=['date', 'txn_id', 'type', 'amount', 'balance'])
        writer.writeheader()
        for row in statement_rows(lines):
            writer.writerow(row)
        
        csv_content = output.getvalue()
        output.close()
        return csv_content
    
    else:
        raise ValueError(f"Unsupported export format: {format}")
