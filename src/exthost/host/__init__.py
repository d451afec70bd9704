"""Extension host — external scripts over a JSON stdio protocol.

Discovery: override dir, install-location ancestors, and (dev only) cwd.
INVARIANT: Script failures degrade to built-in behavior; only external edit
surfaces them to the user.
"""

from exthost.host.errors import ExtensionHostError, ExternalEditorError
from exthost.host.extension_host import ExtensionHost
from exthost.host.protocol import ExtensionReply, ReplyOk, ReplySkip

__all__ = [
    "ExtensionHost",
    "ExtensionHostError",
    "ExtensionReply",
    "ExternalEditorError",
    "ReplyOk",
    "ReplySkip",
]
