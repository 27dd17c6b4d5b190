# utils/naming.py
"""
Helpers for turning identifiers into the naming conventions CDK and S3 expect
(PascalCase construct ids, kebab-case prefixes, lowercase bucket names).
"""

import re


def to_kebab(s: str) -> str:
    """Convert PascalCase, camelCase or snake_case to kebab-case.
    Example: "EuWest1a" -> "eu-west1a", "fr_dev" -> "fr-dev"
    """
    s = re.sub("([a-z0-9])([A-Z])", r"\1-\2", s)
    return s.replace("_", "-").lower()


def to_pascal(s: str) -> str:
    """
    Convert any naming convention to PascalCase.

    Examples:
        >>> to_pascal("fr-dev")
        'FrDev'
        >>> to_pascal("fr_dev stage")
        'FrDevStage'
        >>> to_pascal("frDev")
        'FrDev'
    """
    if not s:
        return s

    normalized = s.replace("_", "-").replace(" ", "-")
    # "frDev" -> "fr-Dev"
    normalized = re.sub(r"([a-z0-9])([A-Z])", r"\1-\2", normalized)
    return "".join(part.capitalize() for part in normalized.split("-") if part)


def sanitize_bucket_name(s: str, max_length: int = 63) -> str:
    """Make a string usable as an S3 bucket name.

    Lowercases, replaces anything outside [a-z0-9.-] with "-", collapses
    repeated hyphens and trims leading/trailing separators.
    """
    name = re.sub(r"[^a-z0-9.-]", "-", s.lower())
    name = re.sub(r"-{2,}", "-", name)
    return name[:max_length].strip("-.")
