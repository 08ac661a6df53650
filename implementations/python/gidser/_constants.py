"""gidser constants — reference-string prefix, URI grammar, JSON framing.

The codec core only ever looks at GID_PREFIX.  Everything else here is
used by the identity layer (_identity.py) and the text adapter.
"""

from __future__ import annotations

import re

# Scheme of every reference string.  A str starting with GID_PREFIX is a
# candidate reference on unpack; pack never inspects string content.
GID_SCHEME = "gid"
GID_PREFIX = GID_SCHEME + "://"

# Environment variable holding the default app name for new GlobalIDs.
APP_ENV_VAR = "GIDSER_APP"

# App names end up as the URI host, so they must be a valid host label.
APP_NAME_RE = re.compile(r"^[A-Za-z0-9](?:[A-Za-z0-9-]*[A-Za-z0-9])?$")

# ── JSON text framing ────────────────────────────────────────
# Compact output: no whitespace after separators.  Non-ASCII text is
# written as UTF-8 rather than \u escapes.
JSON_SEPARATORS = (",", ":")
JSON_ENSURE_ASCII = False
