"""
Context Map

Case-insensitive mapping from placeholder name to resolved string value.
Built once per request; after `register_aliases()` every snake_case key is
also reachable under its PascalCase spelling and vice versa, so lookups
never need naming-convention heuristics.
"""

import logging
import re
from typing import Any, Dict, Iterator, Mapping, MutableMapping, Optional, Tuple

logger = logging.getLogger(__name__)

# Keys eligible for alias derivation (grammar keys such as "heeft/hebben" are not)
_IDENTIFIER = re.compile(r'^[A-Za-z][A-Za-z0-9_]*$')
_CAMEL_BOUNDARY = re.compile(r'(?<=[a-z0-9])(?=[A-Z])|(?<=[A-Z])(?=[A-Z][a-z])')


def to_pascal_case(name: str) -> str:
    """has_children -> HasChildren"""
    return "".join(part[:1].upper() + part[1:].lower() for part in name.split("_") if part)


def to_snake_case(name: str) -> str:
    """HasChildren -> has_children"""
    return _CAMEL_BOUNDARY.sub("_", name).lower()


def alias_for(name: str) -> Optional[str]:
    """
    Return the alternate naming-convention spelling of a key, or None.

    Keys containing an underscore map to PascalCase, keys without one map to
    snake_case. Single words without case boundaries have no alias.
    """
    if not _IDENTIFIER.match(name):
        return None
    if "_" in name:
        alias = to_pascal_case(name)
    else:
        alias = to_snake_case(name)
    if alias.lower() == name.lower():
        return None
    return alias


def _to_value(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


class ContextMap(MutableMapping):
    """
    Case-insensitive string mapping.

    The spelling used by the first insertion of a key is kept for display;
    later writes under any casing replace the value only.
    """

    def __init__(self, data: Optional[Mapping[str, Any]] = None):
        self._store: Dict[str, Tuple[str, str]] = {}
        self._frozen = False
        if data:
            self.update(data)

    # -------------------------------------------------------------------------
    # Mapping protocol
    # -------------------------------------------------------------------------

    def __getitem__(self, key: str) -> str:
        return self._store[key.lower()][1]

    def __setitem__(self, key: str, value: Any):
        if self._frozen:
            raise TypeError("ContextMap is frozen")
        lowered = key.lower()
        original = self._store[lowered][0] if lowered in self._store else key
        self._store[lowered] = (original, _to_value(value))

    def __delitem__(self, key: str):
        if self._frozen:
            raise TypeError("ContextMap is frozen")
        del self._store[key.lower()]

    def __iter__(self) -> Iterator[str]:
        return (original for original, _ in self._store.values())

    def __len__(self) -> int:
        return len(self._store)

    def __contains__(self, key: object) -> bool:
        return isinstance(key, str) and key.lower() in self._store

    def __repr__(self) -> str:
        return f"ContextMap({dict(self.items())!r})"

    # -------------------------------------------------------------------------
    # Engine helpers
    # -------------------------------------------------------------------------

    def lookup(self, key: str) -> Optional[str]:
        """Exact spelling first, then case-insensitive; None when missing."""
        entry = self._store.get(key.lower())
        return entry[1] if entry else None

    def set_default(self, key: str, value: Any) -> bool:
        """Insert only when the key is absent. Returns True if inserted."""
        if key in self:
            return False
        self[key] = value
        return True

    def register_aliases(self) -> int:
        """
        Insert the alternate naming-convention alias of every key.

        Existing keys are never overwritten. Returns the number of aliases added.
        """
        added = 0
        for original, value in list(self._store.values()):
            alias = alias_for(original)
            if alias and self.set_default(alias, value):
                added += 1
        logger.debug("Registered %d context aliases", added)
        return added

    def freeze(self) -> "ContextMap":
        self._frozen = True
        return self

    @property
    def frozen(self) -> bool:
        return self._frozen

    def copy(self) -> "ContextMap":
        """Unfrozen copy preserving original key spellings."""
        clone = ContextMap()
        clone._store = dict(self._store)
        return clone
