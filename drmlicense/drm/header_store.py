from typing import Dict, Mapping, Optional
from threading import Lock


class KeyRequestHeaders:
    """
    Thread-safe set of custom headers applied to every key request.

    Entries persist until cleared. Every read and write happens under a
    single lock, so a request sees a consistent point-in-time view.
    """

    def __init__(self, initial: Optional[Mapping[str, str]] = None):
        self._headers: Dict[str, str] = {}
        self._lock = Lock()
        for name, value in (initial or {}).items():
            self.set(name, value)

    def set(self, name: str, value: str) -> None:
        """Set a header for key requests. Last writer wins."""
        if name is None:
            raise ValueError("Header name must not be None")
        if value is None:
            raise ValueError(f"Header value for '{name}' must not be None")
        with self._lock:
            self._headers[name] = value

    def clear(self, name: str) -> None:
        """Remove a header; unknown names are ignored"""
        if name is None:
            raise ValueError("Header name must not be None")
        with self._lock:
            self._headers.pop(name, None)

    def clear_all(self) -> None:
        with self._lock:
            self._headers.clear()

    def snapshot(self) -> Dict[str, str]:
        """Copy of the current headers"""
        with self._lock:
            return dict(self._headers)

    def merged_with(self, base: Mapping[str, str]) -> Dict[str, str]:
        """
        Return base updated with the stored headers.

        Stored headers win on collision so operator configured values can
        override scheme defaults.
        """
        merged = dict(base)
        with self._lock:
            merged.update(self._headers)
        return merged

    def __contains__(self, name: str) -> bool:
        with self._lock:
            return name in self._headers

    def __len__(self) -> int:
        with self._lock:
            return len(self._headers)

    def __repr__(self) -> str:
        return f"KeyRequestHeaders({sorted(self.snapshot())})"
