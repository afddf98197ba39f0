"""Read the declared license out of an npm ``package.json`` document."""

from __future__ import annotations

from typing import Any, Mapping, Optional

LICENSE_KEYS = ('"license"', '"licenses"')


def extract_license(manifest: Mapping[str, Any]) -> Optional[str]:
    """Return the license identifier declared by ``manifest``.

    Handles the modern ``license`` string, the deprecated ``{"type": ...}``
    object form and the legacy ``licenses`` list. Several legacy entries are
    combined into a parenthesised ``OR`` expression.
    """

    license_value = manifest.get("license")
    if isinstance(license_value, str):
        return license_value
    if isinstance(license_value, dict):
        license_type = license_value.get("type")
        return license_type if isinstance(license_type, str) else None

    entries = manifest.get("licenses")
    if isinstance(entries, list) and entries:
        found = []
        for entry in entries:
            extracted = extract_license({"license": entry})
            if extracted:
                found.append(extracted)
        if len(found) == 1:
            return found[0]
        if len(found) > 1:
            return "(" + " OR ".join(found) + ")"

    return None


def find_license_line(raw: str) -> Optional[int]:
    """1-based line of the first ``license``/``licenses`` key in ``raw``."""

    for number, line in enumerate(raw.splitlines(), start=1):
        if any(key in line for key in LICENSE_KEYS):
            return number
    return None
