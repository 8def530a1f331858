from typing import Dict, Iterator, List, Optional

from models import ClientAccount, DisputeState


class LedgerInvariantError(RuntimeError):
    """Raised when an account's balances or lock flag are inconsistent."""


class AccountLedger:
    """
    All client accounts for one batch run, keyed by client id.
    Accounts are created on first reference and never removed.
    """

    def __init__(self):
        self._accounts: Dict[int, ClientAccount] = {}

    def get_or_create(self, client_id: int) -> ClientAccount:
        """Get existing account or create new one."""
        account = self._accounts.get(client_id)
        if account is None:
            account = ClientAccount(client_id=client_id)
            self._accounts[client_id] = account
        return account

    def get(self, client_id: int) -> Optional[ClientAccount]:
        """Look up an account without creating it."""
        return self._accounts.get(client_id)

    def accounts(self) -> List[ClientAccount]:
        """Return all accounts in creation order (for final output)."""
        return list(self._accounts.values())

    def check_invariants(self) -> None:
        """
        Verify every account:
            total == available + held
            held >= 0
            locked only after a chargeback
        """
        for account in self._accounts.values():
            if account.total != account.available + account.held:
                raise LedgerInvariantError(
                    f"client {account.client_id}: total ({account.total}) != "
                    f"available ({account.available}) + held ({account.held})"
                )
            if account.held < 0:
                raise LedgerInvariantError(f"client {account.client_id}: held balance is negative: {account.held}")
            if account.locked and not any(
                deposit.dispute == DisputeState.CHARGEBACK for deposit in account.deposits.values()
            ):
                raise LedgerInvariantError(f"client {account.client_id}: account is locked but has no chargebacks")

    def __iter__(self) -> Iterator[ClientAccount]:
        return iter(self._accounts.values())

    def __len__(self) -> int:
        return len(self._accounts)

    def __contains__(self, client_id: int) -> bool:
        return client_id in self._accounts
