from __future__ import annotations

import threading

from sealverify.key_cache import KeyCache
from sealverify.types import DnsKeyRecord, PublicKeyEntry


def test_store_sorts_keys_by_algorithm() -> None:
    cache = KeyCache()
    entry = cache.store(
        "example.com",
        [
            DnsKeyRecord(seal_version="1", key_algorithm="rsa", public_key_b64="RSA1"),
            DnsKeyRecord(seal_version="1", key_algorithm="ec", public_key_b64="EC1"),
        ],
    )
    assert entry == PublicKeyEntry(rsa="RSA1", ec="EC1")
    assert cache.lookup("example.com") == entry


def test_first_key_per_algorithm_wins() -> None:
    cache = KeyCache()
    cache.store(
        "example.com",
        [
            DnsKeyRecord(seal_version="1", key_algorithm="rsa", public_key_b64="FIRST"),
            DnsKeyRecord(seal_version="1", key_algorithm="rsa", public_key_b64="SECOND"),
        ],
    )
    entry = cache.lookup("example.com")
    assert entry is not None
    assert entry.rsa == "FIRST"


def test_unusable_records_are_ignored() -> None:
    cache = KeyCache()
    entry = cache.store(
        "example.com",
        [
            DnsKeyRecord(key_algorithm="rsa", public_key_b64="NOSEAL"),
            DnsKeyRecord(seal_version="1", public_key_b64="NOKA"),
            DnsKeyRecord(seal_version="1", key_algorithm="rsa"),
            DnsKeyRecord(seal_version="1", key_algorithm="dsa", public_key_b64="DSA"),
        ],
    )
    assert entry is None
    assert cache.lookup("example.com") is None
    assert "example.com" not in cache


def test_later_store_merges_per_algorithm() -> None:
    cache = KeyCache()
    cache.store("example.com", [DnsKeyRecord(seal_version="1", key_algorithm="rsa", public_key_b64="R")])
    cache.store("example.com", [DnsKeyRecord(seal_version="1", key_algorithm="ec", public_key_b64="E")])
    assert cache.lookup("example.com") == PublicKeyEntry(rsa="R", ec="E")


def test_concurrent_stores_leave_a_consistent_entry() -> None:
    cache = KeyCache()

    def worker(index: int) -> None:
        cache.store(
            "example.com",
            [DnsKeyRecord(seal_version="1", key_algorithm="rsa", public_key_b64=f"KEY{index}")],
        )

    threads = [threading.Thread(target=worker, args=(index,)) for index in range(16)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    entry = cache.lookup("example.com")
    assert entry is not None
    assert entry.rsa in {f"KEY{index}" for index in range(16)}
    assert len(cache) == 1


def test_clear() -> None:
    cache = KeyCache()
    cache.store("example.com", [DnsKeyRecord(seal_version="1", key_algorithm="ec", public_key_b64="E")])
    cache.clear()
    assert len(cache) == 0
