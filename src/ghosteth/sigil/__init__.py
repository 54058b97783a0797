"""
Sigil - Key material and account identities.
"""

from .accounts import Account, find_account, load_accounts

__all__ = ["Account", "find_account", "load_accounts"]
