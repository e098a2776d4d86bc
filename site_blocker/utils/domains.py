#!/usr/bin/env python3
import re

from site_blocker.exceptions import EmptyInputError, InvalidDomainError

_SCHEME_RE = re.compile(r"^https?://")
_WWW_RE = re.compile(r"^www\.")


def _strip_once(d: str) -> str:
    d = _SCHEME_RE.sub("", d, count=1)
    d = _WWW_RE.sub("", d, count=1)
    d = d.split("/")[0]
    return d.lower().strip()


def normalize_domain(raw: str) -> str:
    """Normalize user input to a bare, lowercase domain.
    - strips an http/https scheme
    - strips a leading www.
    - drops any path or query after the first slash
    Repeats until stable so that normalizing a normalized domain is a no-op
    (e.g. "www.www.example.com" -> "example.com").
    Raises EmptyInputError or InvalidDomainError.
    """
    d = raw.strip()
    if not d:
        raise EmptyInputError("Domain cannot be empty")

    while True:
        stripped = _strip_once(d)
        if stripped == d:
            break
        d = stripped

    if "." not in d:
        raise InvalidDomainError(f"Invalid domain: {d}", {"input": raw})
    return d


def normalize_domains(raws):
    """Normalize each entry, preserving order and duplicates."""
    return [normalize_domain(raw) for raw in raws]
