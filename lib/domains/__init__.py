"""Domain extraction from pasted text."""

from .extractor import MAX_DOMAINS, SAMPLE_INPUT, extract_domains, is_valid_hostname, normalize_token

__all__ = ["MAX_DOMAINS", "SAMPLE_INPUT", "extract_domains", "is_valid_hostname", "normalize_token"]
