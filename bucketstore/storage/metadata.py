"""
Object Metadata Container

User metadata attached to every stored object: string keys mapped to
string values, keys unique. Sets are small (bounded by the provider's
header limits, 2 KiB on S3), so membership tests are linear scans of a
snapshot and no index is maintained.

Two record accessors:

- to_record(): a copy; changes to it do not reach the Metadata.
- as_record(): the live backing dict. BucketInternal passes it straight
  to the capability's put/multipart calls on the upload
  path. Mutating the returned dict mutates the Metadata.
"""

from __future__ import annotations

from typing import Iterator, Mapping, Optional


class Metadata:
    """
    Mutable key/value annotations of one object.

    Example:
        >>> meta = Metadata({"owner": "alice"})
        >>> meta.set("kind", "avatar")
        >>> meta.get("kind")
        'avatar'
        >>> meta.get("missing") is None
        True
    """

    __slots__ = ("_entries",)

    def __init__(self, entries: Optional[Mapping[str, str]] = None) -> None:
        self._entries: dict[str, str] = dict(entries) if entries else {}

    # -------------------------------------------------------------------------
    # MUTATION
    # -------------------------------------------------------------------------

    def get(self, key: str) -> Optional[str]:
        """Value for key, or None when absent."""
        return self._entries.get(key)

    def set(self, key: str, value: str) -> None:
        """Insert or overwrite."""
        self._entries[key] = value

    def delete(self, key: str) -> None:
        """Remove key; no-op when absent."""
        self._entries.pop(key, None)

    def clear(self) -> None:
        self._entries.clear()

    # -------------------------------------------------------------------------
    # SNAPSHOTS
    # -------------------------------------------------------------------------

    def keys(self) -> list[str]:
        return list(self._entries.keys())

    def values(self) -> list[str]:
        return list(self._entries.values())

    def pairs(self) -> list[tuple[str, str]]:
        return list(self._entries.items())

    def length(self) -> int:
        return len(self.keys())

    def is_empty(self) -> bool:
        return self.length() == 0

    # -------------------------------------------------------------------------
    # MEMBERSHIP
    # -------------------------------------------------------------------------

    def contains_key(self, key: str) -> bool:
        return key in self.keys()

    def contains_value(self, value: str) -> bool:
        return value in self.values()

    def contains(self, pair: tuple[str, str]) -> bool:
        """True if the exact (key, value) pair is present."""
        return tuple(pair) in self.pairs()

    # -------------------------------------------------------------------------
    # RECORD ACCESS
    # -------------------------------------------------------------------------

    def to_record(self) -> dict[str, str]:
        """
        Copy of the entries.

        Mutating the result never affects this instance.
        """
        return dict(self._entries)

    def as_record(self) -> dict[str, str]:
        """
        Live backing dict of this instance.

        Mutating the result DOES change subsequent get() results. Used by
        BucketInternal to hand metadata to the transport without copying;
        callers outside the upload path should prefer to_record().
        """
        return self._entries

    # -------------------------------------------------------------------------
    # PROTOCOL
    # -------------------------------------------------------------------------

    def __len__(self) -> int:
        return self.length()

    def __contains__(self, key: object) -> bool:
        return isinstance(key, str) and self.contains_key(key)

    def __iter__(self) -> Iterator[str]:
        return iter(self.keys())

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Metadata):
            return NotImplemented
        return set(self.pairs()) == set(other.pairs())

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        return f"Metadata({self._entries!r})"
