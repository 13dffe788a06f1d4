"""
Manifest assembly.

ManifestAssembler is the single aggregation point of a run: the pipeline
hands it one resolved addon at a time and it returns the sorted, deduplicated
entries. Field fallbacks:

- name: release name -> tag name -> addon id
- author: release author login -> repository owner
- displayAuthor: addon displayAuthor, omitted when absent
- description: release body -> empty string
- version: extracted from the tag (see selection.extract_version)
- category: CATEGORY_LABELS lookup -> the code itself -> UNCATEGORIZED_LABEL
- publishedAt: published_at -> created_at -> empty string
"""

from typing import Any, Dict, List, Optional

from addon_manifest.constants import CATEGORY_LABELS, UNCATEGORIZED_LABEL
from addon_manifest.log_utils import logger
from addon_manifest.models import (
    AddonDefinition,
    Manifest,
    ManifestEntry,
    RepositorySource,
    ResolvedAssets,
    SelectedRelease,
)
from addon_manifest.utils import bytes_to_mb, collation_key, utc_now_iso


def resolve_category(code: Optional[str]) -> str:
    """
    Map a category code to its display category.

    Lookup is case-insensitive; unknown codes pass through unchanged and
    empty codes map to the uncategorized label.
    """
    if code is None or not code.strip():
        return UNCATEGORIZED_LABEL
    code = code.strip()
    return CATEGORY_LABELS.get(code.lower(), code)


def _first_text(*values: Optional[str]) -> str:
    for value in values:
        if value and value.strip():
            return value.strip()
    return ""


def build_entry(
    repository: RepositorySource,
    addon: AddonDefinition,
    selected: SelectedRelease,
    resolved: ResolvedAssets,
) -> ManifestEntry:
    """Build the manifest entry for one resolved addon."""
    release = selected.release
    primary = resolved.primary
    total_size = resolved.total_size
    return ManifestEntry(
        id=addon.id,
        name=_first_text(release.name, release.tag_name, addon.id),
        author=_first_text(release.author, repository.owner),
        display_author=addon.display_author,
        description=_first_text(release.body),
        version=selected.version,
        category=resolve_category(addon.category),
        repo=repository.repo,
        release_tag=release.tag_name,
        published_at=release.timestamp or "",
        download_url=primary.download_url,
        file_name=primary.file_name,
        size=total_size,
        size_mb=bytes_to_mb(total_size),
        assets=list(resolved.artifacts) if resolved.multi_volume else [],
    )


def sort_entries(entries: List[ManifestEntry]) -> List[ManifestEntry]:
    """Sort entries by category, then name, then id."""
    return sorted(
        entries,
        key=lambda e: (collation_key(e.category), collation_key(e.name), e.id),
    )


def apply_overrides(
    entries: List[ManifestEntry], overrides: Dict[str, Dict[str, Any]]
) -> int:
    """
    Overwrite output fields of entries listed in `overrides`.

    Parameters:
        entries (List[ManifestEntry]): Assembled entries, modified in place.
        overrides (Dict[str, Dict[str, Any]]): Output fields keyed by addon id, using output (camelCase) field names.

    Returns:
        int: Number of fields whose value changed.
    """
    changed = 0
    for entry in entries:
        fields = overrides.get(entry.id)
        if not fields:
            continue
        current = entry.to_dict()
        for key, value in fields.items():
            if key == "id":
                logger.warning(f"Ignoring override of 'id' for {entry.id}")
                continue
            if current.get(key) != value:
                entry.extra[key] = value
                changed += 1
    logger.info(f"Applied overrides: {changed} fields updated")
    return changed


class ManifestAssembler:
    """
    Collects manifest entries for one run.

    Entries are added through `add`; the first entry for an id wins and later
    duplicates are dropped with a warning.
    """

    def __init__(self) -> None:
        self._entries: List[ManifestEntry] = []
        self._ids: Dict[str, str] = {}

    def __len__(self) -> int:
        return len(self._entries)

    def add(
        self,
        repository: RepositorySource,
        addon: AddonDefinition,
        selected: SelectedRelease,
        resolved: ResolvedAssets,
    ) -> Optional[ManifestEntry]:
        if addon.id in self._ids:
            logger.warning(
                f"Duplicate addon id '{addon.id}' in {repository.repo}; "
                f"keeping the entry from {self._ids[addon.id]}"
            )
            return None
        entry = build_entry(repository, addon, selected, resolved)
        self._entries.append(entry)
        self._ids[addon.id] = repository.repo
        return entry

    def entries(self) -> List[ManifestEntry]:
        return sort_entries(self._entries)

    def build(self, generated_at: Optional[str] = None) -> Manifest:
        return Manifest(
            generated_at=generated_at or utc_now_iso(), entries=self.entries()
        )
