"""SPDX lookups backed by ``license-expression``.

:class:`SpdxOracle` answers the two questions the classifier needs: what is
the canonical SPDX id for a (possibly misspelled) license string, and is that
id OSI-approved. Canonicalisation tries the text as written first and then a
short list of rewrites for spellings commonly found in ``package.json`` files
("Apache 2.0", "GPLv3", "MIT License", ...).
"""

from __future__ import annotations

import logging
import re
from functools import lru_cache
from typing import Iterator, Optional, Protocol

from license_expression import ExpressionError, Licensing, get_spdx_licensing

logger = logging.getLogger(__name__)


OSI_APPROVED = frozenset(
    {
        "0BSD",
        "AAL",
        "AFL-1.1",
        "AFL-1.2",
        "AFL-2.0",
        "AFL-2.1",
        "AFL-3.0",
        "AGPL-3.0",
        "AGPL-3.0-only",
        "AGPL-3.0-or-later",
        "APL-1.0",
        "APSL-1.0",
        "APSL-1.1",
        "APSL-1.2",
        "APSL-2.0",
        "Apache-1.1",
        "Apache-2.0",
        "Artistic-1.0",
        "Artistic-1.0-Perl",
        "Artistic-1.0-cl8",
        "Artistic-2.0",
        "BSD-1-Clause",
        "BSD-2-Clause",
        "BSD-2-Clause-Patent",
        "BSD-3-Clause",
        "BSD-3-Clause-LBNL",
        "BSL-1.0",
        "BlueOak-1.0.0",
        "CAL-1.0",
        "CAL-1.0-Combined-Work-Exception",
        "CATOSL-1.1",
        "CDDL-1.0",
        "CECILL-2.1",
        "CERN-OHL-P-2.0",
        "CERN-OHL-S-2.0",
        "CERN-OHL-W-2.0",
        "CNRI-Python",
        "CPAL-1.0",
        "CPL-1.0",
        "CUA-OPL-1.0",
        "ECL-1.0",
        "ECL-2.0",
        "EFL-1.0",
        "EFL-2.0",
        "EPL-1.0",
        "EPL-2.0",
        "EUDatagrid",
        "EUPL-1.1",
        "EUPL-1.2",
        "Entessa",
        "Fair",
        "Frameworx-1.0",
        "GPL-2.0",
        "GPL-2.0-only",
        "GPL-2.0-or-later",
        "GPL-3.0",
        "GPL-3.0-only",
        "GPL-3.0-or-later",
        "HPND",
        "IPA",
        "IPL-1.0",
        "ISC",
        "Intel",
        "LGPL-2.0",
        "LGPL-2.0-only",
        "LGPL-2.0-or-later",
        "LGPL-2.1",
        "LGPL-2.1-only",
        "LGPL-2.1-or-later",
        "LGPL-3.0",
        "LGPL-3.0-only",
        "LGPL-3.0-or-later",
        "LPL-1.0",
        "LPL-1.02",
        "LPPL-1.3c",
        "MIT",
        "MIT-0",
        "MIT-Modern-Variant",
        "MPL-1.0",
        "MPL-1.1",
        "MPL-2.0",
        "MPL-2.0-no-copyleft-exception",
        "MS-PL",
        "MS-RL",
        "MirOS",
        "Motosoto",
        "MulanPSL-2.0",
        "Multics",
        "NASA-1.3",
        "NCSA",
        "NGPL",
        "NPOSL-3.0",
        "NTP",
        "Naumen",
        "Nokia",
        "OCLC-2.0",
        "OFL-1.1",
        "OFL-1.1-RFN",
        "OFL-1.1-no-RFN",
        "OGTSL",
        "OLDAP-2.8",
        "OSET-PL-2.1",
        "OSL-1.0",
        "OSL-2.0",
        "OSL-2.1",
        "OSL-3.0",
        "PHP-3.0",
        "PHP-3.01",
        "PostgreSQL",
        "Python-2.0",
        "QPL-1.0",
        "RPL-1.1",
        "RPL-1.5",
        "RPSL-1.0",
        "RSCPL",
        "SISSL",
        "SPL-1.0",
        "SimPL-2.0",
        "Sleepycat",
        "UCL-1.0",
        "UPL-1.0",
        "Unicode-DFS-2016",
        "Unlicense",
        "VSL-1.0",
        "W3C",
        "Watcom-1.0",
        "Xnet",
        "ZPL-2.0",
        "ZPL-2.1",
        "Zlib",
    }
)

# Bare family names that npm authors write without a version.
FAMILY_DEFAULTS = {
    "apache": "Apache-2.0",
    "bsd": "BSD-2-Clause",
    "gpl": "GPL-3.0-or-later",
    "lgpl": "LGPL-3.0-or-later",
    "agpl": "AGPL-3.0-or-later",
    "mpl": "MPL-2.0",
    "mozilla": "MPL-2.0",
    "eclipse": "EPL-1.0",
    "artistic": "Artistic-2.0",
}

_LICENSE_WORD = re.compile(r"\b(the|licen[sc]ed?|version)\b", re.IGNORECASE)
_VERSION_SUFFIX = re.compile(r"[\s_-]*v?(\d+)(?:\.(\d+))?$", re.IGNORECASE)
_SEPARATORS = re.compile(r"[\s,]+")


class LicenseOracle(Protocol):
    def correct_to_canonical_id(self, text: str) -> Optional[str]: ...

    def is_osi_approved(self, spdx_id: str) -> bool: ...


@lru_cache(maxsize=1)
def spdx_licensing() -> Licensing:
    # Loading the bundled license index is slow; share one instance.
    return get_spdx_licensing()


def _candidates(text: str) -> Iterator[str]:
    stripped = text.strip()
    yield stripped

    squashed = _SEPARATORS.sub(" ", _LICENSE_WORD.sub(" ", stripped)).strip(" ,-")
    if not squashed:
        return
    yield squashed
    yield squashed.replace(" ", "-")

    match = _VERSION_SUFFIX.search(squashed)
    if match and match.start() > 0:
        family = squashed[: match.start()].strip(" -_")
        major, minor = match.group(1), match.group(2) or "0"
        yield f"{family}-{major}.{minor}".replace(" ", "-")
        for suffix in ("-only", "-or-later"):
            yield f"{family}-{major}.{minor}{suffix}".replace(" ", "-")

    family_default = FAMILY_DEFAULTS.get(squashed.lower())
    if family_default:
        yield family_default


class SpdxOracle:
    """Canonicalise license strings and answer OSI-approval questions."""

    def __init__(self, licensing: Licensing | None = None, osi_approved: frozenset[str] = OSI_APPROVED):
        self._licensing = licensing
        self._osi_approved = osi_approved

    @property
    def licensing(self) -> Licensing:
        if self._licensing is None:
            self._licensing = spdx_licensing()
        return self._licensing

    def _parse(self, text: str):
        try:
            return self.licensing.parse(text, validate=True)
        except ExpressionError:
            return None

    def correct_to_canonical_id(self, text: str) -> Optional[str]:
        if not text or not text.strip():
            return None
        for candidate in _candidates(text):
            parsed = self._parse(candidate)
            if parsed is not None:
                canonical = str(parsed)
                if candidate != text:
                    logger.debug("Corrected license %r to %r", text, canonical)
                return canonical
        logger.debug("No SPDX id matches license %r", text)
        return None

    def is_osi_approved(self, spdx_id: str) -> bool:
        """True when every license named in ``spdx_id`` is OSI-approved."""

        if spdx_id in self._osi_approved:
            return True
        parsed = self._parse(spdx_id)
        if parsed is None:
            return False
        keys = [getattr(symbol, "license_symbol", symbol).key for symbol in parsed.symbols]
        return bool(keys) and all(key in self._osi_approved for key in keys)
