import pytest

# Well-known key pair from the web3.py documentation.
OWNER_PRIVATE_KEY = "4c0883a69102937d6231471b5dbb6204fe5129617082792ae468d01a3f362318"
OWNER_ADDRESS = bytes.fromhex("2c7536e3605d9c16a7a3d7b1898e529396a65c23")

FACTORY_ADDRESS = bytes.fromhex("00000000000000000000000000000000000fac70")


@pytest.fixture
def owner_key():
    """Private key hex and address of the account owner."""
    return OWNER_PRIVATE_KEY, OWNER_ADDRESS


@pytest.fixture
def message_hash():
    from universal_sig.core.typed_signing import hash_personal_message

    return hash_personal_message("transfer 100 tokens to 0xabc")


@pytest.fixture
def ledger():
    """Empty in-memory ledger."""
    from universal_sig.core.memory_ledger import InMemoryLedger

    return InMemoryLedger()


@pytest.fixture
def factory(ledger):
    """Counterfactual account factory deployed at FACTORY_ADDRESS."""
    from universal_sig.core.memory_ledger import CounterfactualFactory

    factory = CounterfactualFactory(address=FACTORY_ADDRESS)
    ledger.deploy(FACTORY_ADDRESS, factory)
    return factory
