"""
Universal Signature - Ledger Protocol Interfaces

The verifier reaches chain state only through these interfaces, so it can
run against a live node, a forked node or a deterministic in-memory chain.
Using Protocol (from typing) allows structural subtyping: any object with
the right methods is a ledger.

Failure contract:
- A call that executes and reverts is ``CallResult(success=False, ...)``.
- A ledger that cannot be reached raises ``LedgerError``.
- Ledgers never retry on the verifier's behalf unless they document it.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from .memory_ledger import InMemoryLedger


@dataclass(frozen=True)
class CallResult:
    """Outcome of invoking an address with calldata."""

    success: bool
    return_data: bytes = b""


@runtime_checkable
class ILedger(Protocol):
    """
    Protocol for the chain state the verifier depends on.

    Thread Safety: implementations shared between threads must guard their
    own state; the verifier holds no locks.
    """

    def code_size_at(self, address: bytes) -> int:
        """
        Return the size in bytes of the code deployed at ``address``.

        Args:
            address: 20-byte account address

        Returns:
            0 for accounts without code, otherwise a positive size
        """
        ...

    def call(self, address: bytes, data: bytes, read_only: bool = False) -> CallResult:
        """
        Invoke ``address`` with ``data``.

        A state-changing call (a deployment) must leave its changes visible
        to later calls, or raise ``LedgerError`` if the ledger cannot do that.
        A read-only call keeps no changes.

        Args:
            address: 20-byte target address
            data: Calldata
            read_only: The caller only needs the return data

        Returns:
            CallResult with the success flag and the returned or revert data
        """
        ...


@runtime_checkable
class IContract(Protocol):
    """Code living at an address of an in-memory ledger."""

    code_size: int

    def handle_call(self, ledger: "InMemoryLedger", data: bytes) -> bytes:
        """
        Execute a call and return its return data.

        Raises:
            RevertError: To revert the call; state changes are rolled back
        """
        ...


@runtime_checkable
class ISnapshotLedger(ILedger, Protocol):
    """Ledger whose state can be rolled back to a snapshot."""

    def snapshot(self) -> int:
        """Record the current state and return an identifier for it."""
        ...

    def revert(self, snapshot_id: int) -> None:
        """Restore the state recorded by ``snapshot_id``, discarding later snapshots."""
        ...
