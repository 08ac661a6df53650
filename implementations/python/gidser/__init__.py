"""gidser — JSON serialisation with global id references.

Turn nested data containing model instances into JSON-safe trees and back.
Model instances are stored as global id strings and looked up again on
load.

Quick start:
    >>> from gidser import GlobalID, Identification, to_plain, from_plain
    >>> GlobalID.default_app = "shop"
    >>> class User(Identification):
    ...     records = {}
    ...     def __init__(self, id):
    ...         self.id = id
    ...         User.records[str(id)] = self
    ...     @classmethod
    ...     def find(cls, model_id):
    ...         return cls.records.get(model_id)
    >>> alice = User(123)
    >>> to_plain({"user": alice})
    {'user': 'gid://shop/User/123'}
    >>> from_plain({"user": "gid://shop/User/123"})["user"] is alice
    True

References that can't be resolved decode to None rather than raising:
    >>> from_plain(["gid://shop/User/999"])
    [None]
"""

from __future__ import annotations

from typing import Any, Optional, Union

from ._coder import GlobalIdSerialiser
from ._constants import GID_PREFIX, GID_SCHEME
from ._core import Resolver, pack, unpack
from ._errors import (
    ERR_INVALID_APP,
    ERR_INVALID_GID,
    ERR_MISSING_APP,
    ERR_MISSING_ID,
    ERR_NOT_FOUND,
    ERR_UNKNOWN_MODEL,
    GidError,
)
from ._identity import (
    GlobalID,
    Identifiable,
    Identification,
    Locator,
    default_locator,
    locate,
)
from ._json_adapter import read_json, write_json

__version__ = "1.0.0"

__all__ = [
    # Public API functions
    "to_plain",
    "to_text",
    "from_plain",
    "from_text",
    "pack",
    "unpack",
    "dump",
    "load",
    "marshal",
    "unmarshal",
    # Coder
    "GlobalIdSerialiser",
    # Identity layer
    "GlobalID",
    "Identifiable",
    "Identification",
    "Locator",
    "default_locator",
    "locate",
    "GID_PREFIX",
    "GID_SCHEME",
    # Exception
    "GidError",
    # Error codes
    "ERR_MISSING_APP",
    "ERR_INVALID_APP",
    "ERR_MISSING_ID",
    "ERR_UNKNOWN_MODEL",
    "ERR_NOT_FOUND",
    "ERR_INVALID_GID",
]


# ── Plain-data API ───────────────────────────────────────────

def to_plain(value: Any) -> Any:
    """Return a plain-data tree with every model replaced by its global id."""
    return pack(value)


def from_plain(node: Any, locate: Optional[Resolver] = None) -> Any:
    """Rebuild a value from a plain-data tree, locating every global id.

    Unresolvable ids become None.  `locate` overrides the default locator.
    """
    return unpack(node, locate)


# ── JSON text API ────────────────────────────────────────────
# Malformed JSON raises json.JSONDecodeError straight from the json module.

def to_text(value: Any) -> str:
    """Serialise `value` to compact JSON text."""
    return write_json(pack(value))


def from_text(text: Union[str, bytes, bytearray], locate: Optional[Resolver] = None) -> Any:
    """Parse JSON text and rebuild the value, locating every global id."""
    return unpack(read_json(text), locate)


# Short aliases: dump/load for text, marshal/unmarshal for plain trees.
dump = to_text
load = from_text
marshal = to_plain
unmarshal = from_plain
