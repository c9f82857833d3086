"""
Error registry — the catalog of error codes in registry.yaml.

Each entry says how one code is presented (HTTP status, safe message,
remediation) and logged (severity). The file is validated as a whole on
load; one bad entry rejects the file so a half-loaded catalog never serves.

Code format: CMT-<DOMAIN>-<NNN>, where DOMAIN is one of API, SEC, CFG, DB,
SYS and must equal the entry's ``domain`` field.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Mapping

import yaml

from app.core.errors import CODE_PATTERN, ServiceError

logger = logging.getLogger(__name__)

DEFAULT_PATH = os.path.join(os.path.dirname(__file__), "registry.yaml")

VALID_DOMAINS = frozenset({"API", "SEC", "CFG", "DB", "SYS"})
VALID_SEVERITIES = frozenset({"DEBUG", "INFO", "WARN", "ERROR", "CRITICAL"})
REQUIRED_FIELDS = (
    "code",
    "domain",
    "title",
    "severity",
    "retryable",
    "user_action_required",
    "http_status",
    "safe_message",
    "remediation",
)


@dataclass(frozen=True)
class ErrorEntry:
    code: str
    domain: str
    title: str
    severity: str
    retryable: bool
    user_action_required: bool
    http_status: int
    safe_message: str
    remediation: List[str] = field(default_factory=list)
    tags: List[str] = field(default_factory=list)


class RegistryValidationError(Exception):
    """registry.yaml is malformed; the message names the offending entry."""


def _parse_entry(position: int, raw: Any) -> ErrorEntry:
    if not isinstance(raw, Mapping):
        raise RegistryValidationError(f"entry #{position} is not a mapping")

    label = f"entry #{position} ({raw.get('code', '?')})"
    missing = [name for name in REQUIRED_FIELDS if name not in raw]
    if missing:
        raise RegistryValidationError(f"{label}: missing {', '.join(missing)}")

    code, domain = raw["code"], raw["domain"]
    if not CODE_PATTERN.match(code):
        raise RegistryValidationError(f"{label}: code does not match CMT-<DOMAIN>-<NNN>")
    if domain not in VALID_DOMAINS:
        raise RegistryValidationError(f"{label}: unknown domain {domain!r}")
    if code.split("-")[1] != domain:
        raise RegistryValidationError(f"{label}: domain {domain!r} disagrees with the code")
    if raw["severity"] not in VALID_SEVERITIES:
        raise RegistryValidationError(f"{label}: unknown severity {raw['severity']!r}")

    status = int(raw["http_status"])
    if not 400 <= status <= 599:
        raise RegistryValidationError(f"{label}: http_status {status} is not an error status")

    remediation = raw["remediation"] or []
    if not isinstance(remediation, list):
        raise RegistryValidationError(f"{label}: remediation must be a list")

    return ErrorEntry(
        code=code,
        domain=domain,
        title=str(raw["title"]),
        severity=raw["severity"],
        retryable=bool(raw["retryable"]),
        user_action_required=bool(raw["user_action_required"]),
        http_status=status,
        safe_message=str(raw["safe_message"]),
        remediation=[str(step) for step in remediation],
        tags=list(raw.get("tags") or []),
    )


class ErrorRegistry:
    """In-memory view of registry.yaml keyed by code."""

    def __init__(self) -> None:
        self._entries: Dict[str, ErrorEntry] = {}
        self.schema_version: int = 0

    @property
    def loaded(self) -> bool:
        return bool(self._entries)

    def load(self, path: str | None = None) -> None:
        with open(path or DEFAULT_PATH, "r", encoding="utf-8") as f:
            document = yaml.safe_load(f) or {}

        raw_entries = document.get("errors", [])
        if not isinstance(raw_entries, list):
            raise RegistryValidationError("'errors' must be a list")

        entries: Dict[str, ErrorEntry] = {}
        for position, raw in enumerate(raw_entries):
            entry = _parse_entry(position, raw)
            if entry.code in entries:
                raise RegistryValidationError(f"duplicate code {entry.code}")
            entries[entry.code] = entry

        self._entries = entries
        self.schema_version = int(document.get("schema_version", 0))
        logger.info("error_registry_loaded", extra={"count": len(entries), "schema_version": self.schema_version})

    def get(self, code: str) -> ErrorEntry | None:
        return self._entries.get(code)

    def lookup(self, code: str) -> ErrorEntry:
        entry = self._entries.get(code)
        if entry is None:
            raise KeyError(f"Unknown error code: {code!r}")
        return entry

    def missing(self, codes: Iterable[str]) -> List[str]:
        """Codes from ``codes`` that have no registry entry."""
        return sorted({code for code in codes if code not in self._entries})

    def all_codes(self) -> List[str]:
        return list(self._entries)

    def codes_for_domain(self, domain: str) -> List[str]:
        return [code for code, entry in self._entries.items() if entry.domain == domain]

    def __len__(self) -> int:
        return len(self._entries)


def exception_codes() -> List[str]:
    """Default codes of every ServiceError subclass currently defined."""
    pending = [ServiceError]
    codes = set()
    while pending:
        cls = pending.pop()
        codes.add(cls.default_code)
        pending.extend(cls.__subclasses__())
    return sorted(codes)


# Module-level singleton, loaded in the application lifespan
error_registry = ErrorRegistry()
