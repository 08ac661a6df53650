"""gidser text adapter — plain-data tree <-> JSON text.

The codec works on plain-data trees: dict, list, str, int, float, bool,
None.  This module is the only place that touches JSON text.  Errors from
the json module (JSONDecodeError on read, TypeError on write for leaves
json can't represent) propagate unmodified; nothing here wraps them.
"""

from __future__ import annotations

import json
from typing import Any, Union

from ._constants import JSON_ENSURE_ASCII, JSON_SEPARATORS


def write_json(tree: Any) -> str:
    """Encode a plain-data tree as compact JSON text."""
    return json.dumps(tree, separators=JSON_SEPARATORS, ensure_ascii=JSON_ENSURE_ASCII)


def read_json(text: Union[str, bytes, bytearray]) -> Any:
    """Decode JSON text (str or UTF-8 bytes) into a plain-data tree."""
    # json.loads detects the encoding of bytes input itself.
    return json.loads(text)
