"""
Release selection and version extraction.
"""

import re
from typing import Iterable, Optional

from addon_manifest.constants import NUMERIC_VERSION_PATTERN
from addon_manifest.log_utils import logger
from addon_manifest.models import AddonDefinition, ReleaseRecord, SelectedRelease

_NUMERIC_VERSION_RX = re.compile(NUMERIC_VERSION_PATTERN)
_LEADING_NON_NUMERIC_RX = re.compile(r"^\D+")


def _strip_v(value: str) -> str:
    if value[:1] in ("v", "V"):
        return value[1:]
    return value


def extract_version(tag_name: str, tag_prefix: str) -> str:
    """
    Derive the display version of a release tag.

    The tag prefix and then a single leading 'v'/'V' are removed
    ('seoulmap-v1.4.0' with prefix 'seoulmap-v' -> '1.4.0'). Tags that do not
    carry the prefix keep their whole name: after the 'v' strip, a leading
    dotted number is kept as is, otherwise the leading non-numeric run is
    removed. If nothing is left the tag itself is returned.
    """
    if tag_prefix and tag_name.startswith(tag_prefix):
        version = _strip_v(tag_name[len(tag_prefix):])
        return version or tag_name

    candidate = _strip_v(tag_name)
    if _NUMERIC_VERSION_RX.match(candidate):
        return candidate
    stripped = _LEADING_NON_NUMERIC_RX.sub("", candidate)
    return stripped or tag_name


def is_candidate(
    release: ReleaseRecord, tag_prefix: str, include_prerelease: bool
) -> bool:
    """Whether `release` may be selected for an addon with `tag_prefix`."""
    if not release.tag_name.startswith(tag_prefix):
        return False
    if release.draft:
        return False
    if release.prerelease and not include_prerelease:
        return False
    return True


def select_release(
    releases: Iterable[ReleaseRecord],
    addon: AddonDefinition,
    include_prerelease: bool = False,
) -> Optional[SelectedRelease]:
    """
    Pick the newest qualifying release for `addon`.

    Drafts are never selected; prereleases only when `include_prerelease` is
    set. The latest `published_at` (falling back to `created_at`) wins, and
    ties go to the release listed first, so repeated runs over the same
    release list select the same release.

    Returns:
        Optional[SelectedRelease]: The selected release and its version, or None if no release qualifies.
    """
    best: Optional[ReleaseRecord] = None
    for release in releases:
        if not is_candidate(release, addon.tag_prefix, include_prerelease):
            continue
        if best is None or release.sort_time > best.sort_time:
            best = release

    if best is None:
        logger.info(
            f"No qualifying release for addon '{addon.id}' (prefix '{addon.tag_prefix}')"
        )
        return None

    version = extract_version(best.tag_name, addon.tag_prefix)
    logger.debug(f"Selected {best.tag_name} (version {version}) for '{addon.id}'")
    return SelectedRelease(release=best, version=version)
