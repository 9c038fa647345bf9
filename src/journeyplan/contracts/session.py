"""Session record layout shared with the (external) session store.

The session is any mutable mapping owned by the web framework. The journey
engine reads and writes only the keys below; persistence of the mapping
itself is the caller's concern.
"""

from collections.abc import MutableMapping
from typing import Any, TypeAlias

# Keyed mapping of identity id -> JourneyContext.to_object() record
CONTEXT_LIST_KEY = "journeyContextList"

# Legacy single-context record, adopted as the default context on first use
LEGACY_CONTEXT_KEY = "journeyContext"

Session: TypeAlias = MutableMapping[str, Any]
