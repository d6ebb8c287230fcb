"""
Protocol interfaces for collaborators injected into the engine.

The engine itself never performs side effects. Anything that acts on its
results, such as moving money between accounts, is supplied by the caller as
an object implementing one of these protocols.
"""

from typing import Protocol, runtime_checkable


@runtime_checkable
class TransferHandler(Protocol):
    """
    Executes a fund transfer between two accounts.

    Implemented by the data layer (or a UI dialog that asks for confirmation)
    and passed to ``ProjectionService.dispatch_quick_fix``.
    """

    def transfer(self, from_account_id: str, to_account_id: str, amount: float) -> bool:
        """
        Move ``amount`` from one account to another.

        Args:
            from_account_id: Account to debit
            to_account_id: Account to credit
            amount: Positive amount to move

        Returns:
            True if the transfer was accepted
        """
        ...
