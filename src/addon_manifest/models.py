"""
Core data structures for addon-manifest.

This module defines the records flowing through the manifest pipeline: the
tracked repositories and addons read from configuration, the release and asset
records returned by GitHub, and the manifest entries written for the installer.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Tuple

from addon_manifest.constants import DEFAULT_ASSET_PRIORITY


@dataclass(frozen=True)
class AddonDefinition:
    """One logical addon tracked inside a repository."""

    id: str
    """Unique addon identifier used in the manifest"""

    tag_prefix: str
    """Leading substring of release tags belonging to this addon (e.g. 'seoulmap-v')"""

    category: Optional[str] = None
    """Category code mapped to a display category"""

    asset_priority: Optional[Tuple[str, ...]] = None
    """Per-addon override of the repository asset extension priority"""

    prerelease: Optional[bool] = None
    """Per-addon override of the repository prerelease policy"""

    display_author: Optional[str] = None
    """Author name shown by the installer instead of the release author"""

    def effective_prerelease(self, repository: "RepositorySource") -> bool:
        if self.prerelease is not None:
            return self.prerelease
        if repository.prerelease is not None:
            return repository.prerelease
        return False

    def effective_asset_priority(
        self, repository: "RepositorySource"
    ) -> Tuple[str, ...]:
        if self.asset_priority:
            return self.asset_priority
        if repository.asset_priority:
            return repository.asset_priority
        return DEFAULT_ASSET_PRIORITY


@dataclass(frozen=True)
class RepositorySource:
    """A tracked GitHub repository and the addons released from it."""

    repo: str
    """Repository identifier in 'owner/name' form"""

    asset_priority: Optional[Tuple[str, ...]] = None
    """Default asset extension priority for the repository's addons"""

    prerelease: Optional[bool] = None
    """Default prerelease inclusion flag for the repository's addons"""

    private: bool = False
    """Whether the repository requires an access token"""

    addons: Tuple[AddonDefinition, ...] = ()
    """Addons tracked in this repository, in configuration order"""

    @property
    def owner(self) -> str:
        return self.repo.split("/", 1)[0]

    @property
    def name(self) -> str:
        return self.repo.split("/", 1)[1]


@dataclass(frozen=True)
class AssetRecord:
    """A downloadable file attached to a release."""

    name: str
    size: int
    download_url: str


@dataclass
class ReleaseRecord:
    """A release as returned by the GitHub releases API."""

    tag_name: str
    name: Optional[str] = None
    body: Optional[str] = None
    draft: bool = False
    prerelease: bool = False
    published_at: Optional[str] = None
    created_at: Optional[str] = None
    author: Optional[str] = None
    assets: List[AssetRecord] = field(default_factory=list)
    zipball_url: Optional[str] = None
    """Source snapshot archive of the tagged commit"""
    tarball_url: Optional[str] = None
    html_url: Optional[str] = None

    @property
    def timestamp(self) -> Optional[str]:
        """Publication timestamp, falling back to the creation timestamp."""
        return self.published_at or self.created_at

    @property
    def sort_time(self) -> datetime:
        """Parsed `timestamp`; releases without a usable timestamp sort oldest."""
        return parse_github_timestamp(self.timestamp)


@dataclass(frozen=True)
class SelectedRelease:
    """The release chosen for one addon, with its extracted version."""

    release: ReleaseRecord
    version: str


@dataclass(frozen=True)
class VolumeGroup:
    """Parts of one multi-volume archive ordered by part number."""

    base_name: str
    parts: Tuple[AssetRecord, ...]

    @property
    def total_size(self) -> int:
        return sum(part.size for part in self.parts)


@dataclass(frozen=True)
class DownloadArtifact:
    """A single file the installer has to download."""

    file_name: str
    download_url: str
    size: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "fileName": self.file_name,
            "downloadUrl": self.download_url,
            "size": self.size,
        }


@dataclass(frozen=True)
class ResolvedAssets:
    """Download artifacts chosen for a selected release."""

    artifacts: Tuple[DownloadArtifact, ...]
    multi_volume: bool = False

    @property
    def total_size(self) -> int:
        return sum(artifact.size for artifact in self.artifacts)

    @property
    def primary(self) -> DownloadArtifact:
        return self.artifacts[0]


@dataclass
class ManifestEntry:
    """One addon as listed in the generated manifest."""

    id: str
    name: str
    author: str
    description: str
    version: str
    category: str
    repo: str
    release_tag: str
    published_at: str
    download_url: str
    file_name: str
    size: int
    size_mb: float
    display_author: Optional[str] = None
    assets: List[DownloadArtifact] = field(default_factory=list)
    extra: Dict[str, Any] = field(default_factory=dict)
    """Additional output fields applied from the overrides file"""

    def to_dict(self) -> Dict[str, Any]:
        """
        Serialize the entry to the installer's camelCase shape.

        `displayAuthor` is emitted only when set and `assets` only for
        multi-volume entries. Fields from `extra` are merged last.
        """
        data: Dict[str, Any] = {
            "id": self.id,
            "name": self.name,
            "author": self.author,
        }
        if self.display_author:
            data["displayAuthor"] = self.display_author
        data.update(
            {
                "description": self.description,
                "version": self.version,
                "category": self.category,
                "repo": self.repo,
                "releaseTag": self.release_tag,
                "publishedAt": self.published_at,
                "downloadUrl": self.download_url,
                "fileName": self.file_name,
                "size": self.size,
                "sizeMB": self.size_mb,
            }
        )
        if self.assets:
            data["assets"] = [asset.to_dict() for asset in self.assets]
        data.update(self.extra)
        return data


@dataclass
class Manifest:
    """The generated manifest document."""

    generated_at: str
    entries: List[ManifestEntry] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "generatedAt": self.generated_at,
            "addons": [entry.to_dict() for entry in self.entries],
        }


_EPOCH = datetime.min.replace(tzinfo=timezone.utc)


def parse_github_timestamp(value: Optional[str]) -> datetime:
    """
    Parse an ISO 8601 timestamp as returned by GitHub (e.g. '2024-05-01T12:00:00Z').

    Returns a timezone-aware datetime; missing or unparsable values map to the
    minimum datetime so they never win a "latest" comparison.
    """
    if not value:
        return _EPOCH
    try:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return _EPOCH
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed
