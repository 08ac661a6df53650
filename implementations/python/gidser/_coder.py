"""gidser column coder — the dump/load pair ORM attribute hooks expect.

Persistence layers that store a value as text call dump() on write and
load() on read.  GlobalIdSerialiser delegates both straight to the text
entry points; it keeps nothing between calls, so loading the same record
again re-resolves every reference.
"""

from __future__ import annotations

from typing import Any, Optional

from ._core import Resolver, pack, unpack
from ._json_adapter import read_json, write_json


class GlobalIdSerialiser:
    """Coder turning values into JSON text with global id references.

        coder = GlobalIdSerialiser()                      # default locator
        coder = GlobalIdSerialiser(locate=my_locator.locate)
    """

    def __init__(self, locate: Optional[Resolver] = None) -> None:
        self.locate = locate

    def dump(self, value: Any) -> str:
        return write_json(pack(value))

    def load(self, text: Optional[str]) -> Any:
        # NULL or empty column.
        if text is None or text == "":
            return None
        return unpack(read_json(text), self.locate)

    def __repr__(self) -> str:
        return "GlobalIdSerialiser(locate={!r})".format(self.locate)
