"""DNS-over-HTTPS lookup of SEAL public key TXT records."""

from __future__ import annotations

import logging
import os
import re
from typing import Any

import httpx

from sealverify.errors import DnsLookupError
from sealverify.retry import DEFAULT_ATTEMPTS, retry_with_backoff_async, should_retry_http_status
from sealverify.types import DnsKeyRecord

logger = logging.getLogger(__name__)

DEFAULT_DOH_API = "https://mozilla.cloudflare-dns.com/dns-query"
DEFAULT_TIMEOUT_SECONDS = 10.0
TXT_RECORD_TYPE = 16

_QUOTED_STRING = re.compile(r'"((?:[^"\\]|\\.)*)"')

_TXT_FIELDS = {
    "seal": "seal_version",
    "ka": "key_algorithm",
    "kv": "key_version",
    "uid": "unique_id",
    "r": "revocation",
}


def _resolve_doh_api(explicit: str | None) -> str:
    return explicit or os.environ.get("SEAL_DOH_API") or DEFAULT_DOH_API


def _resolve_timeout(explicit: float | None) -> float:
    if explicit is not None:
        return explicit
    raw = os.environ.get("SEAL_DOH_TIMEOUT")
    if not raw:
        return DEFAULT_TIMEOUT_SECONDS
    try:
        return float(raw)
    except ValueError as error:
        raise ValueError(f"SEAL_DOH_TIMEOUT must be a number, got {raw!r}") from error


def _join_character_strings(data: str) -> str:
    parts = _QUOTED_STRING.findall(data)
    if not parts:
        return data
    return "".join(part.replace('\\"', '"').replace("\\\\", "\\") for part in parts)


def parse_txt_record(data: str) -> DnsKeyRecord | None:
    """Parse ``seal=1 ka=rsa kv=1 p=MIIB...`` into a ``DnsKeyRecord``.

    ``p=`` is always the last field; everything after it is the key, with
    whitespace and quotes dropped.
    """
    text = _join_character_strings(data).strip()
    if not text.startswith("seal="):
        return None

    values: dict[str, Any] = {}
    key_index = text.find(" p=")
    head = text if key_index == -1 else text[:key_index]
    for token in head.split():
        name, sep, value = token.partition("=")
        if sep and name in _TXT_FIELDS:
            values[_TXT_FIELDS[name]] = value.strip('"')

    if key_index != -1:
        tail = text[key_index + len(" p="):]
        key = "".join(tail.split()).replace('"', "")
        values["public_key_b64"] = key or None

    return DnsKeyRecord(**values)


class DohResolver:
    """Awaitable ``TxtResolver`` querying a JSON DNS-over-HTTPS endpoint."""

    def __init__(
        self,
        api_url: str | None = None,
        *,
        timeout_seconds: float | None = None,
        attempts: int = DEFAULT_ATTEMPTS,
        client: httpx.AsyncClient | None = None,
    ):
        self.api_url = _resolve_doh_api(api_url)
        self.timeout_seconds = _resolve_timeout(timeout_seconds)
        self.attempts = attempts
        self._client = client

    async def _get(self, domain: str) -> httpx.Response:
        params = {"name": domain, "type": "TXT"}
        headers = {"accept": "application/dns-json"}
        if self._client is not None:
            return await self._client.get(self.api_url, params=params, headers=headers)
        async with httpx.AsyncClient(timeout=self.timeout_seconds) as client:
            return await client.get(self.api_url, params=params, headers=headers)

    async def __call__(self, domain: str) -> list[DnsKeyRecord]:
        logger.debug("DoH TXT lookup for %s via %s", domain, self.api_url)
        try:
            response = await retry_with_backoff_async(
                lambda: self._get(domain),
                idempotent=True,
                attempts=self.attempts,
                should_retry_result=lambda value: should_retry_http_status(value.status_code),
                should_retry_error=lambda error: isinstance(error, httpx.TransportError),
            )
        except httpx.HTTPError as error:
            raise DnsLookupError(
                f"Querying DoH {domain} DNS for a TXT record failed",
                cause=error,
            ) from error

        if response.status_code >= 400:
            raise DnsLookupError(
                f"Querying DoH {domain} DNS for a TXT record failed",
                cause=f"HTTP {response.status_code}",
            )

        try:
            payload = response.json()
        except ValueError as error:
            raise DnsLookupError("DoH response is not valid JSON", cause=error) from error
        if not isinstance(payload, dict):
            raise DnsLookupError("DoH response is not a JSON object")

        records: list[DnsKeyRecord] = []
        for answer in payload.get("Answer") or []:
            if answer.get("type") != TXT_RECORD_TYPE or not isinstance(answer.get("data"), str):
                continue
            record = parse_txt_record(answer["data"])
            if record is not None:
                records.append(record)
        logger.debug("DoH returned %d SEAL record(s) for %s", len(records), domain)
        return records
