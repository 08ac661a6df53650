"""gidser identity layer — GlobalID URIs, the Identification mixin, Locator.

A GlobalID names one model instance across the whole application:

    gid://<app>/<model-name>/<model-id>[?<params>]

The codec core (_core.py) depends on two things from here:

  - the Identifiable protocol, to decide that a value is replaced by its
    reference string instead of being walked;
  - locate(), the default resolver used on unpack.

Models opt in by subclassing Identification and implementing find().
Subclasses register with the default locator when the class is defined,
keyed by model_name, so a reference string can be mapped back to the class
that knows how to load it.
"""

from __future__ import annotations

import logging
import os
from typing import Any, ClassVar, Dict, Iterable, List, Optional, Protocol, runtime_checkable
from urllib.parse import parse_qsl, quote, unquote, urlencode, urlsplit

from ._constants import APP_ENV_VAR, APP_NAME_RE, GID_PREFIX, GID_SCHEME
from ._errors import (
    ERR_INVALID_APP,
    ERR_MISSING_APP,
    ERR_MISSING_ID,
    ERR_NOT_FOUND,
    ERR_UNKNOWN_MODEL,
    GidError,
)

logger = logging.getLogger(__name__)


# ── GlobalID ─────────────────────────────────────────────────

class GlobalID:
    """A parsed or freshly built global identifier.

    `model_id` is always held as a str; the URI carries no type information,
    so finders receive the id as text and convert it themselves.
    """

    # Default app for GlobalID.create().  Applications assign this once at
    # startup; the environment variable covers processes that can't.
    default_app: ClassVar[Optional[str]] = os.environ.get(APP_ENV_VAR) or None

    def __init__(self, app: str, model_name: str, model_id: str,
                 params: Optional[Dict[str, str]] = None) -> None:
        self.app = app
        self.model_name = model_name
        self.model_id = model_id
        self.params: Dict[str, str] = dict(params or {})

    @classmethod
    def create(cls, model: Any, app: Optional[str] = None, **params: Any) -> "GlobalID":
        """Build the GlobalID of `model` (anything with an `id` attribute)."""
        app = app or cls.default_app
        if not app:
            raise GidError(ERR_MISSING_APP,
                           "no app configured; set GlobalID.default_app or ${}".format(APP_ENV_VAR))
        if not APP_NAME_RE.match(app):
            raise GidError(ERR_INVALID_APP, "invalid app name: {!r}".format(app))

        model_id = getattr(model, "id", None)
        if model_id is None:
            raise GidError(ERR_MISSING_ID,
                           "cannot build a global id for {} without an id".format(type(model).__name__))

        model_name = getattr(model, "model_name", None) or type(model).__name__
        return cls(app, model_name, str(model_id), {k: str(v) for k, v in params.items()})

    @classmethod
    def parse(cls, gid: Any) -> Optional["GlobalID"]:
        """Parse a reference string.  Returns None for anything malformed."""
        if isinstance(gid, GlobalID):
            return gid
        if not isinstance(gid, str) or not gid.startswith(GID_PREFIX):
            return None

        try:
            parts = urlsplit(gid)
        except ValueError:
            return None
        if parts.scheme != GID_SCHEME or parts.fragment:
            return None
        if not APP_NAME_RE.match(parts.netloc):
            return None

        # "/User/123" splits into ["", "User", "123"]; anything else is junk.
        segments = parts.path.split("/")
        if len(segments) != 3 or segments[0] or not segments[1] or not segments[2]:
            return None

        params = dict(parse_qsl(parts.query, keep_blank_values=True)) if parts.query else {}
        return cls(parts.netloc, unquote(segments[1]), unquote(segments[2]), params)

    def __str__(self) -> str:
        uri = "{}{}/{}/{}".format(GID_PREFIX, self.app,
                                  quote(self.model_name, safe=""),
                                  quote(self.model_id, safe=""))
        if self.params:
            uri += "?" + urlencode(self.params)
        return uri

    def __repr__(self) -> str:
        return "GlobalID({!r})".format(str(self))

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, GlobalID):
            return NotImplemented
        return str(self) == str(other)

    def __hash__(self) -> int:
        return hash(str(self))


# ── Identifiable capability ──────────────────────────────────

@runtime_checkable
class Identifiable(Protocol):
    """Anything that can name itself with a global id.

    str(obj.to_global_id()) is the reference string the packer emits.

    The packer does not use isinstance() against this protocol: from Python
    3.12 that check only sees attributes defined on the class, so proxies
    that supply to_global_id through __getattr__ would be missed.  It looks
    the method up with getattr() instead.
    """

    def to_global_id(self) -> Any:
        ...


class Identification:
    """Mixin giving a model class a global id and locator registration.

    Subclasses must have an `id` attribute and implement `find()`.  Pass
    `register=False` in the class statement to keep a class out of the
    default locator (e.g. when it is registered with a private Locator).
    """

    model_name: ClassVar[str] = ""

    def __init_subclass__(cls, register: bool = True, **kwargs: Any) -> None:
        super().__init_subclass__(**kwargs)
        if "model_name" not in cls.__dict__:
            cls.model_name = cls.__name__
        if register:
            default_locator.register(cls)

    def to_global_id(self, **params: Any) -> GlobalID:
        return GlobalID.create(self, **params)

    def to_gid_param(self) -> str:
        return str(self.to_global_id())

    @classmethod
    def find(cls, model_id: str) -> Any:
        """Load the instance with `model_id` (always a str), or return None.

        Subclasses must override this; the default raises NotImplementedError.
        """
        raise NotImplementedError("{} must implement find()".format(cls.__name__))


# ── Locator ──────────────────────────────────────────────────

class Locator:
    """Maps model names to the classes that can load them."""

    def __init__(self) -> None:
        self._models: Dict[str, Any] = {}

    def register(self, model: Any, name: Optional[str] = None) -> Any:
        key = name or getattr(model, "model_name", None) or model.__name__
        if key in self._models and self._models[key] is not model:
            logger.debug("replacing model registered as %r", key)
        self._models[key] = model
        logger.debug("registered %s as %r", getattr(model, "__qualname__", model), key)
        return model

    def unregister(self, name: str) -> None:
        self._models.pop(name, None)

    def model_for(self, name: str) -> Any:
        try:
            return self._models[name]
        except KeyError:
            raise GidError(ERR_UNKNOWN_MODEL, "no model registered as {!r}".format(name)) from None

    def locate(self, gid: Any) -> Any:
        """Return the object `gid` refers to, or None if it isn't a global id.

        Errors from the model's finder propagate; so does ERR_UNKNOWN_MODEL.
        """
        parsed = GlobalID.parse(gid)
        if parsed is None:
            logger.debug("not a global id: %r", gid)
            return None
        found = self.model_for(parsed.model_name).find(parsed.model_id)
        if found is None:
            logger.debug("no record for %s", parsed)
        return found

    def locate_many(self, gids: Iterable[Any], ignore_missing: bool = False) -> List[Any]:
        """Locate each gid in order.

        With ignore_missing, unresolvable entries are dropped.  Otherwise
        the first miss raises ERR_NOT_FOUND.
        """
        found: List[Any] = []
        for gid in gids:
            try:
                obj = self.locate(gid)
            except GidError:
                if not ignore_missing:
                    raise
                continue
            if obj is None:
                if ignore_missing:
                    continue
                raise GidError(ERR_NOT_FOUND, "could not locate {}".format(gid))
            found.append(obj)
        return found


default_locator = Locator()


def locate(gid: Any) -> Any:
    """Resolve `gid` through the default locator."""
    return default_locator.locate(gid)
