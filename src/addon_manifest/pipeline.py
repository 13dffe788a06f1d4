"""
Manifest generation pipeline.

Repositories are processed one at a time and, within a repository, addons one
at a time. Fetch failures skip the repository; selection and resolution
failures skip the addon. Only configuration and credential problems abort the
run.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence

from addon_manifest.assets import resolve_assets
from addon_manifest.config import single_repository_source
from addon_manifest.constants import GITHUB_TOKEN_ENV_VAR
from addon_manifest.exceptions import FetchError, MissingEnvironmentError
from addon_manifest.github_source import GithubReleaseSource
from addon_manifest.log_utils import logger
from addon_manifest.manifest import ManifestAssembler, apply_overrides
from addon_manifest.models import (
    AddonDefinition,
    Manifest,
    ReleaseRecord,
    RepositorySource,
)
from addon_manifest.selection import select_release
from addon_manifest.utils import get_effective_github_token


@dataclass
class RunSummary:
    """Counters reported at the end of a run."""

    repositories: int = 0
    failed_repositories: List[str] = field(default_factory=list)
    addons_resolved: int = 0
    addons_skipped: List[str] = field(default_factory=list)


class ManifestPipeline:
    """
    Drives config -> fetch -> select -> resolve -> assemble for one run.

    The release source memoizes release lists, so every addon of a repository
    is resolved against the same snapshot.
    """

    def __init__(
        self,
        source: GithubReleaseSource,
        overrides: Optional[Dict[str, Dict[str, Any]]] = None,
    ):
        self.source = source
        self.overrides = overrides or {}
        self.summary = RunSummary()

    def check_credentials(self, repositories: Sequence[RepositorySource]) -> None:
        """
        Raises:
            MissingEnvironmentError: If a private repository is tracked and no token is available.
        """
        private = [r.repo for r in repositories if r.private]
        if private and not get_effective_github_token(self.source.github_token):
            raise MissingEnvironmentError(
                GITHUB_TOKEN_ENV_VAR,
                details=f"required for private repositories: {', '.join(private)}",
            )

    def run(
        self,
        repositories: Sequence[RepositorySource],
        generated_at: Optional[str] = None,
    ) -> Manifest:
        """Generate the manifest for the configured repositories."""
        self.check_credentials(repositories)
        assembler = ManifestAssembler()

        for repository in repositories:
            self.summary.repositories += 1
            try:
                releases = self.source.list_releases(repository.repo)
            except FetchError as exc:
                logger.error(f"Skipping repository {repository.repo}: {exc}")
                self.summary.failed_repositories.append(repository.repo)
                continue
            self.process_repository(repository, releases, assembler)

        manifest = assembler.build(generated_at)
        if self.overrides:
            apply_overrides(manifest.entries, self.overrides)
        self.log_summary()
        return manifest

    def scan(self, repo: str, generated_at: Optional[str] = None) -> Manifest:
        """
        Generate the manifest for a single repository without configuration.

        Addons are discovered from the repository's tags. A fetch failure is
        handled like in `run`: the repository is skipped.
        """
        try:
            releases = self.source.list_releases(repo)
        except FetchError as exc:
            logger.error(f"Skipping repository {repo}: {exc}")
            self.summary.repositories += 1
            self.summary.failed_repositories.append(repo)
            return self.run([], generated_at)
        repository = single_repository_source(repo, releases)
        return self.run([repository], generated_at)

    def process_repository(
        self,
        repository: RepositorySource,
        releases: List[ReleaseRecord],
        assembler: ManifestAssembler,
    ) -> None:
        for addon in repository.addons:
            if self.process_addon(repository, addon, releases, assembler):
                self.summary.addons_resolved += 1
            else:
                self.summary.addons_skipped.append(f"{repository.repo}:{addon.id}")

    def process_addon(
        self,
        repository: RepositorySource,
        addon: AddonDefinition,
        releases: List[ReleaseRecord],
        assembler: ManifestAssembler,
    ) -> bool:
        """Resolve one addon into the assembler; returns False when it is skipped."""
        selected = select_release(
            releases, addon, include_prerelease=addon.effective_prerelease(repository)
        )
        if selected is None:
            return False

        preference = f"{addon.id}_{selected.version}".lower()
        resolved = resolve_assets(
            selected.release,
            addon.effective_asset_priority(repository),
            preference=preference,
        )
        if resolved is None:
            logger.warning(
                f"No downloadable asset for '{addon.id}' in {selected.release.tag_name} ({repository.repo})"
            )
            return False

        entry = assembler.add(repository, addon, selected, resolved)
        if entry is None:
            return False
        logger.info(
            f"{addon.id}: {entry.version} ({len(resolved.artifacts)} file(s), {entry.size_mb} MB)"
        )
        return True

    def log_summary(self) -> None:
        summary = self.summary
        logger.info(
            f"Processed {summary.repositories} repositories: "
            f"{summary.addons_resolved} addons resolved, "
            f"{len(summary.addons_skipped)} skipped, "
            f"{len(summary.failed_repositories)} repositories failed"
        )
        if summary.addons_skipped:
            logger.debug(f"Skipped addons: {', '.join(summary.addons_skipped)}")
