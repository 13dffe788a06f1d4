"""
Configuration loading for addon-manifest.

The configuration document lists tracked repositories and, per repository,
the addons released from it. Both JSON and YAML documents are accepted.
Invalid repository or addon entries are skipped individually with a warning;
only a missing or unparsable document is fatal.
"""

import os
import re
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Tuple

import platformdirs
import yaml

from addon_manifest.constants import (
    ADDON_TAG_PATTERN,
    APP_NAME,
    CONFIG_FILE_NAME,
    CONFIG_PATH_ENV_VAR,
    DEFAULT_TAG_PREFIX_SUFFIX,
)
from addon_manifest.exceptions import ConfigMissingError, ConfigParseError
from addon_manifest.log_utils import logger
from addon_manifest.models import AddonDefinition, ReleaseRecord, RepositorySource

_REPO_RX = re.compile(r"^[A-Za-z0-9_.-]+/[A-Za-z0-9_.-]+$")
_ADDON_TAG_RX = re.compile(ADDON_TAG_PATTERN)


def resolve_config_path(explicit: Optional[str] = None) -> Path:
    """
    Determine which configuration file to load.

    Order: the explicit argument, the ADDON_MANIFEST_CONFIG environment
    variable, `addon-repos.json` in the working directory, then the
    platformdirs user config directory. When none of the implicit candidates
    exists, the working-directory path is returned so the caller reports it
    as missing.
    """
    if explicit:
        return Path(explicit)

    env_path = os.environ.get(CONFIG_PATH_ENV_VAR)
    if env_path:
        return Path(env_path)

    local_path = Path.cwd() / CONFIG_FILE_NAME
    if local_path.exists():
        return local_path

    user_path = Path(platformdirs.user_config_dir(APP_NAME)) / CONFIG_FILE_NAME
    if user_path.exists():
        return user_path

    return local_path


def read_structured_file(path: Path) -> Any:
    """
    Read a JSON or YAML document.

    Raises:
        ConfigMissingError: If the file does not exist.
        ConfigParseError: If the file cannot be read or parsed.
    """
    if not path.exists():
        raise ConfigMissingError(str(path))
    try:
        with open(path, "r", encoding="utf-8") as f:
            return yaml.safe_load(f)
    except yaml.YAMLError as exc:
        raise ConfigParseError(str(path), details=str(exc)) from exc
    except (OSError, UnicodeDecodeError) as exc:
        raise ConfigParseError(str(path), details=str(exc)) from exc


def load_config(path: Path) -> List[RepositorySource]:
    """
    Load and validate the tracked repositories from `path`.

    Returns:
        List[RepositorySource]: Valid repositories in document order; empty when the document lists none.

    Raises:
        ConfigMissingError: If the file does not exist.
        ConfigParseError: If the document is not valid JSON/YAML or its top level is not a mapping.
    """
    document = read_structured_file(path)
    if document is None:
        document = {}
    if not isinstance(document, dict):
        raise ConfigParseError(
            str(path),
            details=f"expected a mapping at top level, got {type(document).__name__}",
        )

    repos_data = document.get("repos")
    if not repos_data:
        logger.warning(f"No repositories configured in {path}")
        return []
    if not isinstance(repos_data, list):
        logger.warning(f"'repos' in {path} is not a list; no repositories loaded")
        return []

    repositories = []
    for index, repo_data in enumerate(repos_data):
        repository = parse_repository(repo_data, index)
        if repository is not None:
            repositories.append(repository)

    logger.debug(f"Loaded {len(repositories)} repositories from {path}")
    return repositories


def is_valid_repo(repo: str) -> bool:
    """Whether `repo` looks like an `owner/name` identifier."""
    return bool(_REPO_RX.match(repo))


def parse_repository(data: Any, index: int = 0) -> Optional[RepositorySource]:
    """Build a RepositorySource from one `repos[]` entry, or None if it is invalid."""
    if not isinstance(data, dict):
        logger.warning(f"Skipping repos[{index}]: expected a mapping")
        return None

    repo = data.get("repo")
    if not isinstance(repo, str) or not is_valid_repo(repo.strip()):
        logger.warning(f"Skipping repos[{index}]: invalid repository {repo!r}")
        return None
    repo = repo.strip()

    addons: List[AddonDefinition] = []
    addons_data = data.get("addons") or []
    if not isinstance(addons_data, list):
        logger.warning(f"Ignoring addons of {repo}: expected a list")
        addons_data = []
    for addon_index, addon_data in enumerate(addons_data):
        addon = parse_addon(addon_data, repo, addon_index)
        if addon is not None:
            addons.append(addon)

    if not addons:
        logger.warning(f"No valid addons configured for {repo}")

    return RepositorySource(
        repo=repo,
        asset_priority=_parse_extensions(data.get("assetPriority"), repo),
        prerelease=_parse_optional_bool(data.get("prerelease"), "prerelease", repo),
        private=bool(_parse_optional_bool(data.get("private"), "private", repo)),
        addons=tuple(addons),
    )


def parse_addon(data: Any, repo: str, index: int = 0) -> Optional[AddonDefinition]:
    """
    Build an AddonDefinition from one `addons[]` entry.

    Entries without a string `id` or `tagPrefix` are skipped with a warning.
    """
    if not isinstance(data, dict):
        logger.warning(f"Skipping addon #{index} of {repo}: expected a mapping")
        return None

    addon_id = data.get("id")
    if not isinstance(addon_id, str) or not addon_id.strip():
        logger.warning(f"Skipping addon #{index} of {repo}: missing 'id'")
        return None
    addon_id = addon_id.strip()

    tag_prefix = data.get("tagPrefix")
    if not isinstance(tag_prefix, str) or not tag_prefix:
        logger.warning(f"Skipping addon '{addon_id}' of {repo}: missing 'tagPrefix'")
        return None

    label = f"{repo}:{addon_id}"
    return AddonDefinition(
        id=addon_id,
        tag_prefix=tag_prefix,
        category=_parse_optional_str(data.get("category")),
        asset_priority=_parse_extensions(data.get("assetPriority"), label),
        prerelease=_parse_optional_bool(data.get("prerelease"), "prerelease", label),
        display_author=_parse_optional_str(data.get("displayAuthor")),
    )


def single_repository_source(
    repo: str, releases: Iterable[ReleaseRecord]
) -> RepositorySource:
    """
    Build a RepositorySource for the single-repository scan mode.

    Addons are discovered from release tags of the form `<id>-v<digits>...`;
    each distinct id becomes an addon with tag prefix `<id>-v`, in order of
    first appearance. Tags not following the convention are ignored.
    """
    seen: Dict[str, AddonDefinition] = {}
    for release in releases:
        match = _ADDON_TAG_RX.match(release.tag_name)
        if not match:
            logger.debug(f"Ignoring tag {release.tag_name} in {repo}: no addon id")
            continue
        addon_id = match.group("id")
        if addon_id not in seen:
            seen[addon_id] = AddonDefinition(
                id=addon_id, tag_prefix=f"{addon_id}{DEFAULT_TAG_PREFIX_SUFFIX}"
            )
    logger.info(f"Discovered {len(seen)} addons in {repo}")
    return RepositorySource(repo=repo, addons=tuple(seen.values()))


def load_overrides(path: Path) -> Dict[str, Dict[str, Any]]:
    """
    Load per-addon output overrides (`id -> {field: value}`).

    A missing file yields no overrides. Entries whose value is not a mapping
    are ignored with a warning.

    Raises:
        ConfigParseError: If the file exists but is not valid JSON/YAML or not a mapping.
    """
    if not path.exists():
        logger.debug(f"No overrides file at {path}, skipping")
        return {}
    document = read_structured_file(path) or {}
    if not isinstance(document, dict):
        raise ConfigParseError(str(path), details="expected a mapping of addon ids")

    overrides: Dict[str, Dict[str, Any]] = {}
    for addon_id, fields in document.items():
        if not isinstance(fields, dict):
            logger.warning(f"Ignoring override for {addon_id}: expected a mapping")
            continue
        overrides[str(addon_id)] = dict(fields)
    return overrides


def _parse_optional_str(value: Any) -> Optional[str]:
    if isinstance(value, str) and value.strip():
        return value.strip()
    return None


def _parse_optional_bool(value: Any, key: str, label: str) -> Optional[bool]:
    if value is None:
        return None
    if isinstance(value, bool):
        return value
    logger.warning(f"Ignoring non-boolean '{key}' for {label}: {value!r}")
    return None


def _parse_extensions(value: Any, label: str) -> Optional[Tuple[str, ...]]:
    """Normalize an extension list to lower-case entries with a leading dot."""
    if value is None:
        return None
    if isinstance(value, str):
        value = [value]
    if not isinstance(value, list):
        logger.warning(f"Ignoring invalid 'assetPriority' for {label}: {value!r}")
        return None
    extensions = []
    for item in value:
        if not isinstance(item, str) or not item.strip():
            continue
        ext = item.strip().lower()
        extensions.append(ext if ext.startswith(".") else f".{ext}")
    return tuple(extensions) or None
