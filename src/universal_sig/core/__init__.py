"""
universal-sig core module

Codec, adapters, ledgers and the validation procedure.
"""

__all__ = []
