"""
In-memory simulated ledger.

Deterministic chain state for tests and offline verification. Code at an
address is a Python object implementing ``IContract``. A call that raises
``RevertError`` is rolled back and reported as ``CallResult(success=False)``,
mirroring EVM call semantics.

Also provides the two contracts a counterfactual flow needs:
- CounterfactualFactory: CREATE2-style factory deploying owner accounts
- OwnerSignatureAccount: contract account accepting its owner's raw signature
"""

from __future__ import annotations

import copy
import logging
import threading
from dataclasses import dataclass, field
from typing import Any, Dict, List, Tuple

from .abi_codec import decode_abi, encode_abi, encode_call, function_selector
from .constants import (
    ERC1271_SUCCESS,
    IS_VALID_SIGNATURE_SELECTOR,
    SELECTOR_SIZE,
)
from .crypto_utils import AddressLike, keccak256, normalize_address
from .exceptions import (
    AbiDecodingError,
    InvalidRecoveryIdError,
    InvalidSignatureLengthError,
    RevertError,
)
from .key_recovery import parse_raw_signature, recover_address
from .logging_config import short_address
from .protocols import CallResult, IContract

logger = logging.getLogger(__name__)

ERC1271_FAILURE = bytes.fromhex("ffffffff")

DEPLOY_ACCOUNT_SIGNATURE = "deployAccount(address,uint256)"
DEPLOY_ACCOUNT_SELECTOR = function_selector(DEPLOY_ACCOUNT_SIGNATURE)

# Stands in for the account's creation bytecode in address derivation.
ACCOUNT_INIT_CODE_PREFIX = b"universal_sig.OwnerSignatureAccount:"

# address -> (contract, deep copy of its attributes)
_State = Dict[bytes, Tuple[IContract, Dict[str, Any]]]


class InMemoryLedger:
    """
    Simulated chain state with snapshots.

    Rollback restores each contract's attributes in place, so references to
    a contract held by callers (or by a contract still executing) stay valid.

    Thread Safety: all state access goes through an RLock; contracts may call
    back into the ledger while a call is executing.
    """

    def __init__(self) -> None:
        self._lock = threading.RLock()
        self._contracts: Dict[bytes, IContract] = {}
        self._snapshots: List[_State] = []
        # (target, calldata, success) for every call; not rolled back
        self.call_log: List[Tuple[bytes, bytes, bool]] = []

    # ==================== Chain State ====================

    def deploy(self, address: AddressLike, contract: IContract) -> bytes:
        """Place ``contract`` at ``address``; the address must not hold code."""
        address = normalize_address(address)
        with self._lock:
            if address in self._contracts:
                raise RevertError(f"Code already exists at {short_address(address)}")
            self._contracts[address] = contract
        logger.debug(
            "Contract deployed",
            extra={
                "event": "memory_ledger.deployed",
                "address": short_address(address),
                "contract": type(contract).__name__,
            },
        )
        return address

    def contract_at(self, address: AddressLike) -> IContract | None:
        with self._lock:
            return self._contracts.get(normalize_address(address))

    def code_size_at(self, address: bytes) -> int:
        with self._lock:
            contract = self._contracts.get(normalize_address(address))
            return contract.code_size if contract is not None else 0

    def call(self, address: bytes, data: bytes, read_only: bool = False) -> CallResult:
        """
        Execute a call against ``address``.

        A read-only call runs like ``eth_call``: whatever it changes is
        discarded once it returns.
        """
        address = normalize_address(address)
        data = bytes(data)
        with self._lock:
            contract = self._contracts.get(address)
            if contract is None:
                # Calling an address without code succeeds and returns nothing.
                self.call_log.append((address, data, True))
                return CallResult(success=True, return_data=b"")

            checkpoint = self._capture()
            try:
                return_data = contract.handle_call(self, data)
            except RevertError as e:
                self._restore(checkpoint)
                self.call_log.append((address, data, False))
                logger.debug(
                    "Call reverted",
                    extra={
                        "event": "memory_ledger.call_reverted",
                        "address": short_address(address),
                        "reason": e.message,
                    },
                )
                return CallResult(success=False, return_data=e.data)

            if read_only:
                self._restore(checkpoint)
            self.call_log.append((address, data, True))
            return CallResult(success=True, return_data=bytes(return_data))

    def calls_to(self, address: AddressLike) -> List[bytes]:
        """Calldata of every call made to ``address``, in order."""
        address = normalize_address(address)
        return [data for target, data, _ in self.call_log if target == address]

    # ==================== Snapshots ====================

    def snapshot(self) -> int:
        with self._lock:
            self._snapshots.append(self._capture())
            return len(self._snapshots) - 1

    def revert(self, snapshot_id: int) -> None:
        with self._lock:
            if not 0 <= snapshot_id < len(self._snapshots):
                raise ValueError(f"Unknown snapshot id: {snapshot_id}")
            self._restore(self._snapshots[snapshot_id])
            del self._snapshots[snapshot_id:]

    def _capture(self) -> _State:
        return {
            address: (contract, copy.deepcopy(vars(contract)))
            for address, contract in self._contracts.items()
        }

    def _restore(self, state: _State) -> None:
        for address in list(self._contracts):
            if address not in state:
                del self._contracts[address]
        for address, (contract, saved) in state.items():
            current = vars(contract)
            for name in list(current):
                if name not in saved:
                    del current[name]
            # Unchanged attributes keep their objects; code running inside
            # the contract may still hold them.
            for name, value in saved.items():
                if name not in current or current[name] != value:
                    current[name] = copy.deepcopy(value)
            self._contracts[address] = contract


# ==================== Simulated Contracts ====================


def _split_call(data: bytes) -> Tuple[bytes, bytes]:
    if len(data) < SELECTOR_SIZE:
        raise RevertError("Calldata shorter than a selector")
    return data[:SELECTOR_SIZE], data[SELECTOR_SIZE:]


def _decode_args(types: Tuple[str, ...], args: bytes) -> Tuple:
    try:
        return decode_abi(types, args)
    except AbiDecodingError as e:
        raise RevertError(f"Bad calldata: {e.message}") from e


@dataclass
class OwnerSignatureAccount:
    """
    Contract account whose ``isValidSignature`` accepts its owner's raw
    65-byte signature over the hash.
    """

    owner: bytes
    code_size: int = 256

    def __post_init__(self) -> None:
        self.owner = normalize_address(self.owner)

    def handle_call(self, ledger: InMemoryLedger, data: bytes) -> bytes:
        selector, args = _split_call(data)
        if selector != IS_VALID_SIGNATURE_SELECTOR:
            raise RevertError(f"Unknown selector 0x{selector.hex()}")

        message_hash, signature = _decode_args(("bytes32", "bytes"), args)
        try:
            raw = parse_raw_signature(signature)
        except (InvalidSignatureLengthError, InvalidRecoveryIdError):
            return encode_abi(("bytes4",), (ERC1271_FAILURE,))

        signer = recover_address(message_hash, raw.r, raw.s, raw.v)
        magic = ERC1271_SUCCESS if signer == self.owner else ERC1271_FAILURE
        return encode_abi(("bytes4",), (magic,))


@dataclass
class CounterfactualFactory:
    """
    Factory deploying ``OwnerSignatureAccount`` at CREATE2-style addresses.

    The account address is known before deployment:
    ``keccak256(0xff ++ factory ++ salt ++ keccak256(init_code))[12:]``.
    Deploying an account that already exists returns its address.
    """

    address: bytes
    code_size: int = 512
    deployed: List[bytes] = field(default_factory=list)

    def __post_init__(self) -> None:
        self.address = normalize_address(self.address)

    def get_address(self, owner: AddressLike, salt: int) -> bytes:
        """Deterministic account address without deploying."""
        init_code = ACCOUNT_INIT_CODE_PREFIX + encode_abi(("address",), (normalize_address(owner),))
        return keccak256(
            b"\xff"
            + self.address
            + salt.to_bytes(32, "big")
            + keccak256(init_code)
        )[12:]

    def deploy_calldata(self, owner: AddressLike, salt: int) -> bytes:
        return encode_call(
            DEPLOY_ACCOUNT_SIGNATURE,
            ("address", "uint256"),
            (normalize_address(owner), salt),
        )

    def handle_call(self, ledger: InMemoryLedger, data: bytes) -> bytes:
        selector, args = _split_call(data)
        if selector != DEPLOY_ACCOUNT_SELECTOR:
            raise RevertError(f"Unknown selector 0x{selector.hex()}")

        owner, salt = _decode_args(("address", "uint256"), args)
        account = self.get_address(owner, salt)
        if ledger.code_size_at(account) == 0:
            ledger.deploy(account, OwnerSignatureAccount(owner=owner))
            self.deployed.append(account)
            logger.info(
                "Account created",
                extra={
                    "event": "factory.account_created",
                    "owner": short_address(owner),
                    "address": short_address(account),
                },
            )
        return encode_abi(("address",), (account,))
