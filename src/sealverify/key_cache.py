"""Process-wide cache of SEAL public keys discovered through DNS."""

from __future__ import annotations

import logging
import threading
from typing import Iterable

from sealverify.types import DnsKeyRecord, PublicKeyEntry

logger = logging.getLogger(__name__)

KEY_ALGORITHMS = ("rsa", "ec")


def _usable(record: DnsKeyRecord) -> bool:
    return bool(record.seal_version and record.key_algorithm and record.public_key_b64)


class KeyCache:
    """Maps a domain to at most one public key per key algorithm.

    Entries are never evicted. Concurrent stores for the same domain are
    merged per algorithm, the later store winning.
    """

    def __init__(self) -> None:
        self._entries: dict[str, PublicKeyEntry] = {}
        self._lock = threading.Lock()

    def lookup(self, domain: str) -> PublicKeyEntry | None:
        with self._lock:
            return self._entries.get(domain)

    def store(self, domain: str, records: Iterable[DnsKeyRecord]) -> PublicKeyEntry | None:
        found: dict[str, str] = {}
        for record in records:
            if not _usable(record) or record.key_algorithm not in KEY_ALGORITHMS:
                continue
            # First key per algorithm in a single response wins.
            found.setdefault(str(record.key_algorithm), str(record.public_key_b64))

        if not found:
            logger.debug("no usable SEAL key records for %s", domain)
            return None

        with self._lock:
            current = self._entries.get(domain) or PublicKeyEntry()
            entry = PublicKeyEntry(
                rsa=found.get("rsa", current.rsa),
                ec=found.get("ec", current.ec),
            )
            self._entries[domain] = entry
        logger.debug("cached SEAL keys for %s: %s", domain, sorted(found))
        return entry

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def __contains__(self, domain: object) -> bool:
        with self._lock:
            return domain in self._entries


_default_cache = KeyCache()


def default_key_cache() -> KeyCache:
    return _default_cache
