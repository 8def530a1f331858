import csv
from decimal import Decimal
from typing import TextIO

from ledger import AccountLedger
from models import round_amount

HEADER = ["client", "available", "held", "total", "locked"]


def format_amount(value: Decimal) -> str:
    """Format decimal with at most 4 decimal places, in plain (non-exponent) notation."""
    return f"{round_amount(value):f}"


def write_accounts(ledger: AccountLedger, stream: TextIO) -> None:
    """Normalize every account and write the final balances as CSV."""
    csvwriter = csv.writer(stream, lineterminator="\n")
    csvwriter.writerow(HEADER)
    for account in ledger:
        account.normalize()
        csvwriter.writerow([
            account.client_id,
            format_amount(account.available),
            format_amount(account.held),
            format_amount(account.total),
            str(account.locked).lower(),
        ])
