"""Domain extraction from free-form text.

Accepts anything a user might paste (URLs, emails, bare hostnames, noise)
and returns the unique valid hostnames in first-seen order.

Usage:
    extract_domains("https://www.Foo.com/path?q=1, user@bar.co")
    # ['foo.com', 'bar.co']
"""

import re
from typing import Optional

from loguru import logger

MAX_DOMAINS = 1000
MAX_HOSTNAME_LENGTH = 253

# Newlines, whitespace runs, commas, semicolons
_SPLIT_RE = re.compile(r"[\s,;]+")
_EMAIL_RE = re.compile(r"^[^@\s]+@([^@\s]+)$")
_SCHEME_RE = re.compile(r"^[a-z][a-z0-9+.-]*://", re.IGNORECASE)
_WWW_RE = re.compile(r"^(?:www\.)+", re.IGNORECASE)
_HOST_END_RE = re.compile(r"[/?#:]")
_LEADING_JUNK_RE = re.compile(r"^[^a-z0-9]+", re.IGNORECASE)
_TRAILING_JUNK_RE = re.compile(r"[^a-z0-9.-]+$", re.IGNORECASE)

_LABEL_RE = re.compile(r"^[a-z0-9](?:[a-z0-9-]{0,61}[a-z0-9])?$")
_TLD_RE = re.compile(r"^(?:[a-z]{2,63}|xn--[a-z0-9-]{1,59})$")

# Bare hostnames embedded in longer text (second pass)
_EMBEDDED_RE = re.compile(
    r"(?:^|[^a-z0-9.-])"
    r"((?:[a-z0-9](?:[a-z0-9-]{0,61}[a-z0-9])?\.)+(?:[a-z]{2,63}|xn--[a-z0-9-]{1,59}))"
    r"(?=$|[^a-z0-9.-])",
    re.IGNORECASE,
)

# Demo input: one of each shape the extractor handles
SAMPLE_INPUT = [
    "https://openai.com/blog",
    "example.com",
    "wikipedia.org/wiki/React_(web_framework)",
    "https://github.com/vitejs/vite",
    "mailto:abc@nytimes.com",
    "cnn.com/some/path?x=1",
    "web.archive.org",
    "nonexistent-domain-abc-xyz-123.tld",
]


def is_valid_hostname(host: str) -> bool:
    """Check a lower-cased hostname against DNS label rules.

    At least two labels, each 1-63 chars of [a-z0-9] with inner hyphens,
    253 chars total, and an alphabetic (or punycode) final label.
    """
    if not host or len(host) > MAX_HOSTNAME_LENGTH:
        return False
    labels = host.split(".")
    if len(labels) < 2:
        return False
    if not all(_LABEL_RE.match(label) for label in labels):
        return False
    return bool(_TLD_RE.match(labels[-1]))


def normalize_token(token: str) -> Optional[str]:
    """Reduce one raw token to a candidate hostname, or None if invalid."""
    tok = token.strip()
    if not tok:
        return None

    if _SCHEME_RE.match(tok):
        tok = _SCHEME_RE.sub("", tok, count=1)
        authority = re.split(r"[/?#]", tok, maxsplit=1)[0]
        # Drop userinfo (user:pass@host)
        tok = authority.rsplit("@", 1)[-1]
    else:
        email = _EMAIL_RE.match(tok)
        if email:
            tok = email.group(1)

    tok = _LEADING_JUNK_RE.sub("", tok)
    tok = _WWW_RE.sub("", tok)
    tok = _HOST_END_RE.split(tok, maxsplit=1)[0]
    tok = _TRAILING_JUNK_RE.sub("", tok).lower()
    # Root dot (example.com.)
    if tok.endswith("."):
        tok = tok[:-1]

    return tok if is_valid_hostname(tok) else None


def extract_domains(
    text: str,
    scan_embedded: bool = False,
    limit: int = MAX_DOMAINS,
) -> list[str]:
    """Extract unique, valid domains from arbitrary text.

    Args:
        text: Raw input (URLs, emails, hostnames, noise)
        scan_embedded: Also regex-scan for hostnames buried inside longer tokens
        limit: Maximum number of domains returned

    Returns:
        Domains in first-occurrence order. Invalid tokens are dropped.
    """
    if not text:
        return []

    found: dict[str, None] = {}
    dropped = 0

    for raw in _SPLIT_RE.split(text):
        if not raw:
            continue
        host = normalize_token(raw)
        if host is None:
            dropped += 1
            continue
        found.setdefault(host, None)

    if scan_embedded:
        for match in _EMBEDDED_RE.finditer(text):
            host = normalize_token(match.group(1))
            if host:
                found.setdefault(host, None)

    domains = list(found)[:limit]
    logger.debug(
        f"Extracted {len(domains)} domains ({dropped} tokens dropped"
        f"{', truncated' if len(found) > limit else ''})"
    )
    return domains
