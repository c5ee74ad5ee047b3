"""
Signer-side helpers.

Produce the hashes and signatures the validator consumes:
- EIP-191 personal message hashes
- Raw 65-byte owner signatures
- Wrapped signatures for accounts that are not deployed yet
"""

from typing import Union

from .crypto_utils import AddressLike, keccak256, sign_hash
from .wrapper_codec import wrap

EIP191_PREFIX = b"\x19Ethereum Signed Message:\n"


def hash_personal_message(message: Union[str, bytes]) -> bytes:
    """
    Hash a personal message (EIP-191 version 0x45).

    The message is prefixed with "\\x19Ethereum Signed Message:\\n<length>"
    to prevent signing arbitrary transaction data.

    Args:
        message: Message to hash (string or bytes)

    Returns:
        32-byte keccak256 hash ready for signing
    """
    if isinstance(message, str):
        message = message.encode("utf-8")

    prefixed = EIP191_PREFIX + str(len(message)).encode("utf-8") + message
    return keccak256(prefixed)


def sign_personal_message(private_hex: str, message: Union[str, bytes]) -> bytes:
    return sign_hash(private_hex, hash_personal_message(message))


def sign_counterfactual(
    private_hex: str,
    message_hash: bytes,
    deployer: AddressLike,
    deployer_calldata: bytes,
) -> bytes:
    """
    Sign ``message_hash`` as the owner of an account that ``deployer`` will
    create when called with ``deployer_calldata``.

    Returns:
        Wrapped signature valid before and after the account is deployed
    """
    return wrap(deployer, deployer_calldata, sign_hash(private_hex, message_hash))
