"""
Wire codecs for the supported blog dialects.
"""

from .atom_codec import AtomCodec
from .xmlrpc_dialects import (
    Account,
    Blogger1Dialect,
    MetaWeblogDialect,
    MovableTypeDialect,
    WordpressBuggyDialect,
)

__all__ = [
    "AtomCodec",
    "Account",
    "Blogger1Dialect",
    "MetaWeblogDialect",
    "MovableTypeDialect",
    "WordpressBuggyDialect",
]
