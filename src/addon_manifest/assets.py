"""
Download artifact resolution.

A selected release is turned into the file(s) the installer downloads:
a multi-volume archive group when the release carries split archive parts,
otherwise the best single asset by extension priority, otherwise the
source snapshot archive of the tagged commit.
"""

import re
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from addon_manifest.constants import SNAPSHOT_ARCHIVE_EXTENSION, VOLUME_PART_PATTERN
from addon_manifest.log_utils import logger
from addon_manifest.models import (
    AssetRecord,
    DownloadArtifact,
    ReleaseRecord,
    ResolvedAssets,
    VolumeGroup,
)

_VOLUME_PART_RX = re.compile(VOLUME_PART_PATTERN, re.IGNORECASE)


def find_volume_groups(assets: Iterable[AssetRecord]) -> List[VolumeGroup]:
    """
    Group split archive parts (e.g. 'pack.7z.001', 'pack.7z.002') by base name.

    Parts are ordered by numeric suffix. Groups are returned in order of the
    first appearance of their base name.
    """
    grouped: Dict[str, List[Tuple[int, AssetRecord]]] = {}
    for asset in assets:
        match = _VOLUME_PART_RX.match(asset.name)
        if not match:
            continue
        grouped.setdefault(match.group("base"), []).append(
            (int(match.group("part")), asset)
        )

    return [
        VolumeGroup(
            base_name=base_name,
            parts=tuple(asset for _, asset in sorted(parts, key=lambda p: p[0])),
        )
        for base_name, parts in grouped.items()
    ]


def choose_volume_group(
    groups: Sequence[VolumeGroup], preference: Optional[str] = None
) -> Optional[VolumeGroup]:
    """
    Choose the multi-volume group representing an addon.

    Preference order: a group whose base name contains `preference`
    (case-insensitive), the only group, then the group with the most parts,
    breaking ties by larger total size and then by base name.
    """
    if not groups:
        return None

    if preference:
        token = preference.lower()
        for group in groups:
            if token in group.base_name.lower():
                return group

    if len(groups) == 1:
        return groups[0]

    return sorted(
        groups,
        key=lambda g: (-len(g.parts), -g.total_size, g.base_name.lower()),
    )[0]


def pick_single_asset(
    assets: Sequence[AssetRecord], priority: Sequence[str]
) -> Optional[AssetRecord]:
    """
    Pick one asset by extension priority.

    Each extension is tried in order and the first asset ending with it
    (case-insensitive) wins. Without any match the first listed asset is
    returned; without assets, None.
    """
    for extension in priority:
        ext = extension.lower()
        for asset in assets:
            if asset.name.lower().endswith(ext):
                return asset
    return assets[0] if assets else None


def snapshot_artifact(release: ReleaseRecord) -> Optional[DownloadArtifact]:
    """The source snapshot archive of the tagged commit, reported with size 0."""
    if not release.zipball_url:
        return None
    return DownloadArtifact(
        file_name=f"{release.tag_name}{SNAPSHOT_ARCHIVE_EXTENSION}",
        download_url=release.zipball_url,
        size=0,
    )


def _artifact(asset: AssetRecord) -> DownloadArtifact:
    return DownloadArtifact(
        file_name=asset.name, download_url=asset.download_url, size=asset.size
    )


def resolve_assets(
    release: ReleaseRecord,
    priority: Sequence[str],
    preference: Optional[str] = None,
) -> Optional[ResolvedAssets]:
    """
    Resolve the download artifacts of `release`.

    Parameters:
        release (ReleaseRecord): The selected release.
        priority (Sequence[str]): Extensions to try in order for single-asset mode.
        preference (Optional[str]): Token identifying the addon's own volume group, usually '<id>_<version>' lower-cased.

    Returns:
        Optional[ResolvedAssets]: The artifacts, or None when nothing downloadable exists.
    """
    group = choose_volume_group(find_volume_groups(release.assets), preference)
    if group is not None:
        logger.debug(
            f"Using {len(group.parts)}-part archive {group.base_name} from {release.tag_name}"
        )
        return ResolvedAssets(
            artifacts=tuple(_artifact(part) for part in group.parts),
            multi_volume=True,
        )

    asset = pick_single_asset(release.assets, priority)
    if asset is not None:
        return ResolvedAssets(artifacts=(_artifact(asset),))

    snapshot = snapshot_artifact(release)
    if snapshot is not None:
        logger.debug(f"No assets on {release.tag_name}; using source snapshot")
        return ResolvedAssets(artifacts=(snapshot,))

    return None
