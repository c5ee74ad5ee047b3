"""
Ledger backed by an Ethereum JSON-RPC node through web3.py.

Read-only calls (contract signature checks) are plain ``eth_call`` requests.
A node does not carry state between ``eth_call`` requests, so a deployment
simulated that way would be invisible to the following signature check.
State-changing calls therefore need ``commit=True`` (with a funded
``default_account``); without it they raise ``LedgerError`` rather than
report a success that did not persist.

In commit mode a state-changing call is first simulated with ``eth_call``
(to obtain return or revert data) and then sent as a transaction.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional

from eth_utils import to_checksum_address
from web3 import Web3
from web3.exceptions import ContractLogicError, TimeExhausted, Web3Exception
from web3.types import TxParams

from . import config
from .crypto_utils import normalize_address
from .exceptions import LedgerError
from .logging_config import short_address
from .protocols import CallResult

logger = logging.getLogger(__name__)


def _revert_data(error: ContractLogicError) -> bytes:
    data = getattr(error, "data", None)
    if isinstance(data, (bytes, bytearray)):
        return bytes(data)
    if isinstance(data, str) and data.startswith("0x"):
        try:
            return bytes.fromhex(data[2:])
        except ValueError:
            return b""
    return b""


class Web3Ledger:
    """
    ILedger implementation over a web3.py connection.

    Args:
        w3: Connected Web3 instance
        commit: Send state-changing calls as transactions from
            ``w3.eth.default_account``; without it they raise LedgerError
        block_identifier: Block to read against for code and eth_call
        receipt_timeout: Seconds to wait for a committed transaction
        call_gas: Gas limit for calls, 0 to let the node decide
    """

    def __init__(
        self,
        w3: Web3,
        commit: bool = False,
        block_identifier: Any = "latest",
        receipt_timeout: Optional[float] = None,
        call_gas: Optional[int] = None,
    ) -> None:
        self.w3 = w3
        self.commit = commit
        self.block_identifier = block_identifier
        self.receipt_timeout = config.WEB3_RECEIPT_TIMEOUT if receipt_timeout is None else receipt_timeout
        self.call_gas = config.WEB3_CALL_GAS if call_gas is None else call_gas

    def _tx(self, address: bytes, data: bytes) -> TxParams:
        tx: Dict[str, Any] = {
            "to": to_checksum_address(address),
            "data": data,
        }
        if self.call_gas:
            tx["gas"] = self.call_gas
        if self.w3.eth.default_account:
            tx["from"] = self.w3.eth.default_account
        return tx

    def code_size_at(self, address: bytes) -> int:
        address = normalize_address(address)
        try:
            code = self.w3.eth.get_code(to_checksum_address(address), self.block_identifier)
        except (Web3Exception, OSError) as e:
            logger.error(
                "Failed to read account code",
                extra={
                    "event": "web3_ledger.get_code_failed",
                    "address": short_address(address),
                    "error": str(e),
                    "error_type": type(e).__name__,
                },
            )
            raise LedgerError(f"Failed to read code at {short_address(address)}: {e}") from e
        return len(code)

    def call(self, address: bytes, data: bytes, read_only: bool = False) -> CallResult:
        address = normalize_address(address)
        data = bytes(data)
        if not read_only and not self.commit:
            logger.warning(
                "State-changing call refused by read-only ledger",
                extra={
                    "event": "web3_ledger.state_change_refused",
                    "address": short_address(address),
                },
            )
            raise LedgerError(
                f"Call to {short_address(address)} changes state, which eth_call cannot persist; "
                "use commit=True",
                details={"address": short_address(address)},
                recoverable=False,
            )
        tx = self._tx(address, data)

        try:
            return_data = bytes(self.w3.eth.call(tx, self.block_identifier))
        except ContractLogicError as e:
            logger.info(
                "Call reverted",
                extra={
                    "event": "web3_ledger.call_reverted",
                    "address": short_address(address),
                    "error": str(e),
                },
            )
            return CallResult(success=False, return_data=_revert_data(e))
        except (Web3Exception, OSError) as e:
            logger.error(
                "Call failed",
                extra={
                    "event": "web3_ledger.call_failed",
                    "address": short_address(address),
                    "error": str(e),
                    "error_type": type(e).__name__,
                },
            )
            raise LedgerError(f"Call to {short_address(address)} failed: {e}") from e

        if read_only:
            return CallResult(success=True, return_data=return_data)

        return self._commit(address, tx, return_data)

    def _commit(self, address: bytes, tx: TxParams, return_data: bytes) -> CallResult:
        if not self.w3.eth.default_account:
            raise LedgerError("Commit mode requires w3.eth.default_account")
        try:
            tx_hash = self.w3.eth.send_transaction(tx)
            receipt = self.w3.eth.wait_for_transaction_receipt(tx_hash, timeout=self.receipt_timeout)
        except TimeExhausted as e:
            raise LedgerError(
                f"Transaction to {short_address(address)} not mined within {self.receipt_timeout}s"
            ) from e
        except ContractLogicError as e:
            return CallResult(success=False, return_data=_revert_data(e))
        except (Web3Exception, OSError) as e:
            raise LedgerError(f"Transaction to {short_address(address)} failed: {e}") from e

        success = receipt["status"] == 1
        logger.info(
            "Transaction committed",
            extra={
                "event": "web3_ledger.transaction_committed",
                "address": short_address(address),
                "tx_hash": Web3.to_hex(tx_hash),
                "success": success,
            },
        )
        return CallResult(success=success, return_data=return_data if success else b"")
