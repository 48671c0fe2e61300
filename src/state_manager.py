from typing import Dict, Iterator

from history import TransactionHistory
from models import AccountSnapshot, ClientAccount


class StateManager:
    """
    Owns the account table and the transaction history for one run.
    Created empty, populated by the processor, read once for the report.
    """

    def __init__(self):
        self._accounts: Dict[int, ClientAccount] = {}
        self.history = TransactionHistory()

    def get_or_create_account(self, client_id: int) -> ClientAccount:
        """Get existing account or create new one."""
        account = self._accounts.get(client_id)
        if account is None:
            account = ClientAccount(client_id=client_id)
            self._accounts[client_id] = account
        return account

    def get_all_accounts(self) -> Dict[int, ClientAccount]:
        """Return all accounts (for final output)."""
        return dict(self._accounts)

    def snapshots(self) -> Iterator[AccountSnapshot]:
        """Yield a rounded snapshot of every account, ordered by client id."""
        for client_id in sorted(self._accounts):
            yield self._accounts[client_id].snapshot()
