"""gidser error codes and exception class.

The identity layer raises these, and pack raises ERR_INVALID_GID for an
object whose to_global_id() yields no reference.  Unpack absorbs every
resolver failure into None, so a GidError raised while locating a
reference during unpack never reaches the caller.
"""

from __future__ import annotations

# ── Error codes ──────────────────────────────────────────────
# Grep-friendly string codes, compared by tests via `.code`.

ERR_MISSING_APP: str = "ERR_MISSING_APP"      # no app configured for a new GlobalID
ERR_INVALID_APP: str = "ERR_INVALID_APP"      # app name is not a URI host label
ERR_MISSING_ID: str = "ERR_MISSING_ID"        # model has no id yet
ERR_UNKNOWN_MODEL: str = "ERR_UNKNOWN_MODEL"  # no model registered under that name
ERR_NOT_FOUND: str = "ERR_NOT_FOUND"          # model lookup returned nothing
ERR_INVALID_GID: str = "ERR_INVALID_GID"      # to_global_id() gave no gid:// reference


class GidError(Exception):
    """Exception for identity-layer failures.

    The `.code` attribute is one of the ERR_* strings above.
    """

    def __init__(self, code: str, msg: str = "") -> None:
        super().__init__(msg or code)
        self.code = code
