"""gidser core — pack/unpack traversal with identity boundaries.

pack() turns an in-memory value into a plain-data tree: every Identifiable
becomes its reference string, lists and dicts are rebuilt, everything else
passes through.  unpack() is the mirror: every str starting with "gid://"
is handed to a resolver, containers are rebuilt, everything else passes
through.

Two rules carry the whole design:

  - pack never walks into an Identifiable.  The packed tree is only as deep
    as the containers around the objects, so objects that refer to each
    other (or to themselves) can't send pack into a loop.
  - unpack never fails because of a reference.  A miss, a malformed id or a
    resolver that raises all become None at that position, and the rest of
    the tree still decodes.

Neither function keeps state between calls, and unpack doesn't memoize:
the same reference appearing twice is resolved twice.
"""

from __future__ import annotations

from typing import Any, Callable, Optional

from ._constants import GID_PREFIX
from ._errors import ERR_INVALID_GID, GidError
from ._identity import GlobalID, locate as default_locate

Resolver = Callable[[str], Any]


# ── Kind checks ──────────────────────────────────────────────
# Order matters: the Identifiable check runs before the container checks,
# so a model class that happens to subclass dict or list is still encoded
# as a reference.

def _is_identifiable(value: Any) -> bool:
    # A model *class* has to_global_id too (unbound), but only instances
    # have an identity.  getattr() rather than isinstance(value, Identifiable),
    # which ignores __getattr__ on Python 3.12+.
    if isinstance(value, type):
        return False
    return callable(getattr(value, "to_global_id", None))


def _is_reference(value: Any) -> bool:
    return isinstance(value, str) and value.startswith(GID_PREFIX)


# ── Pack ─────────────────────────────────────────────────────

def _reference(value: Any) -> str:
    """The reference string of an Identifiable.

    Only a GlobalID or a str starting with GID_PREFIX is accepted; anything
    else (None, a bare id) would pack into text unpack can never resolve.
    """
    gid = value.to_global_id()
    ref = str(gid) if isinstance(gid, GlobalID) else gid
    if not _is_reference(ref):
        raise GidError(ERR_INVALID_GID,
                       "{}.to_global_id() returned {!r}, not a global id".format(
                           type(value).__name__, gid))
    return ref


def pack(value: Any) -> Any:
    """Convert `value` into a plain-data tree.

    Unrecognised leaves (datetimes, sets, ...) are returned untouched; the
    text adapter decides whether it can encode them.
    """
    if _is_identifiable(value):
        return _reference(value)

    if isinstance(value, (list, tuple)):
        return [pack(item) for item in value]

    if isinstance(value, dict):
        return {k: pack(v) for k, v in value.items()}

    return value


# ── Unpack ───────────────────────────────────────────────────

def _resolve(ref: str, locate: Resolver) -> Optional[Any]:
    """Look up one reference.  Any failure yields None."""
    try:
        return locate(ref)
    except Exception:
        return None


def unpack(node: Any, locate: Optional[Resolver] = None) -> Any:
    """Convert a plain-data tree back into live values.

    `locate` maps a reference string to an object; it defaults to the
    package's default locator.  Dict keys are passed through as-is.
    """
    if locate is None:
        locate = default_locate
    return _unpack(node, locate)


def _unpack(node: Any, locate: Resolver) -> Any:
    if isinstance(node, str):
        return _resolve(node, locate) if _is_reference(node) else node

    if isinstance(node, (list, tuple)):
        return [_unpack(item, locate) for item in node]

    if isinstance(node, dict):
        return {k: _unpack(v, locate) for k, v in node.items()}

    return node
