"""
Maps externally named platforms onto locally configured platform records.
"""

from typing import Iterable, Optional

from .models import ExternalPlatformRef, PlatformRecord


def _key(value: Optional[str]) -> str:
    return (value or '').strip().lower()


def match(external_name: Optional[str], external_alias: Optional[str],
          local_platforms: Iterable[PlatformRecord]) -> Optional[PlatformRecord]:
    """
    Find the local platform for an external name/alias pair.

    Tried in order, case-insensitive exact equality only:
    name vs name, name vs alias, alias vs name, alias vs alias.
    Returns None when nothing matches; there is no fallback platform.
    """
    platforms = list(local_platforms)
    attempts = (
        (external_name, lambda p: p.name),
        (external_name, lambda p: p.alias),
        (external_alias, lambda p: p.name),
        (external_alias, lambda p: p.alias),
    )
    for wanted, field_of in attempts:
        wanted_key = _key(wanted)
        if not wanted_key:
            continue
        for platform in platforms:
            if _key(field_of(platform)) == wanted_key:
                return platform
    return None


def match_ref(ref: ExternalPlatformRef,
              local_platforms: Iterable[PlatformRecord]) -> Optional[PlatformRecord]:
    return match(ref.name, ref.alias, local_platforms)


def unmatched_message(external_name: Optional[str], external_alias: Optional[str] = None,
                      source: str = 'the catalog') -> str:
    label = external_name or external_alias or 'unknown'
    return (f'Platform "{label}" from {source} was not found in your configured platforms. '
            'Please select manually.')


class PlatformMatcher:
    def __init__(self, source: str = 'the catalog'):
        self.source = source

    def match(self, external_name, external_alias, local_platforms) -> Optional[PlatformRecord]:
        return match(external_name, external_alias, local_platforms)

    def unmatched_message(self, external_name, external_alias=None) -> str:
        return unmatched_message(external_name, external_alias, self.source)
