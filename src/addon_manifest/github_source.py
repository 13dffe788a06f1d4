"""
GitHub Release Source

This module fetches and parses the release lists of tracked repositories.
Each repository is fetched at most once per run; every addon of that
repository is resolved against the same snapshot.
"""

from typing import Any, Dict, List, Optional

import requests  # type: ignore[import-untyped]

from addon_manifest.constants import (
    DEFAULT_MAX_PAGES,
    GITHUB_API_BASE,
    GITHUB_API_TIMEOUT,
    GITHUB_MAX_PER_PAGE,
)
from addon_manifest.exceptions import FetchError
from addon_manifest.log_utils import logger
from addon_manifest.models import AssetRecord, ReleaseRecord
from addon_manifest.utils import make_github_api_request


class GithubReleaseSource:
    """
    Fetches release lists from the GitHub releases API.

    Results are memoized per repository for the lifetime of the instance
    (one pipeline run); nothing is persisted between runs.

    Usage:
        source = GithubReleaseSource(github_token=token)
        releases = source.list_releases("owner/repo")
    """

    def __init__(
        self,
        github_token: Optional[str] = None,
        per_page: int = GITHUB_MAX_PER_PAGE,
        max_pages: int = DEFAULT_MAX_PAGES,
        timeout: int = GITHUB_API_TIMEOUT,
        session: Optional[requests.Session] = None,
    ):
        """
        Initialize the GitHub release source.

        Parameters:
            github_token (Optional[str]): Token for authenticated requests; falls back to GITHUB_TOKEN.
            per_page (int): Releases requested per page (GitHub caps this at 100).
            max_pages (int): Maximum number of pages fetched per repository.
            timeout (int): Per-request timeout in seconds.
            session (Optional[requests.Session]): Session used for requests, typically with retries mounted.
        """
        self.github_token = github_token
        self.per_page = max(1, min(per_page, GITHUB_MAX_PER_PAGE))
        self.max_pages = max(1, max_pages)
        self.timeout = timeout
        self.session = session
        self._releases: Dict[str, List[ReleaseRecord]] = {}

    @staticmethod
    def releases_url(repo: str) -> str:
        return f"{GITHUB_API_BASE}/{repo}/releases"

    def list_releases(self, repo: str) -> List[ReleaseRecord]:
        """
        Return the parsed releases of `repo`, fetching them on first use.

        Parameters:
            repo (str): Repository identifier in 'owner/name' form.

        Returns:
            List[ReleaseRecord]: Releases in API order (newest first).

        Raises:
            FetchError: If any page cannot be fetched or the payload is not a release list.
        """
        if repo in self._releases:
            logger.debug("Reusing release list for %s", repo)
            return self._releases[repo]

        raw_releases = self.fetch_raw_releases_data(repo)
        releases: List[ReleaseRecord] = []
        for release_data in raw_releases:
            if not isinstance(release_data, dict):
                logger.warning(
                    "Skipping malformed release entry from %s: expected dict, got %s",
                    repo,
                    type(release_data).__name__,
                )
                continue
            try:
                release = create_release_from_github_data(release_data)
            except (KeyError, TypeError, ValueError) as exc:
                logger.warning("Skipping malformed release entry from %s: %s", repo, exc)
                continue
            if release is not None:
                releases.append(release)

        logger.info("Fetched %d releases from %s", len(releases), repo)
        self._releases[repo] = releases
        return releases

    def fetch_raw_releases_data(self, repo: str) -> List[Dict[str, Any]]:
        """
        Fetch the raw release dicts of `repo`, following at most `max_pages` pages.

        Raises:
            FetchError: On network errors, timeouts, non-success responses or a non-list payload.
        """
        url = self.releases_url(repo)
        collected: List[Dict[str, Any]] = []
        for page in range(1, self.max_pages + 1):
            params = {"per_page": self.per_page, "page": page}
            page_data = self._fetch_page(repo, url, params)
            collected.extend(page_data)
            if len(page_data) < self.per_page:
                break
        return collected

    def _fetch_page(
        self, repo: str, url: str, params: Dict[str, Any]
    ) -> List[Dict[str, Any]]:
        try:
            response = make_github_api_request(
                url,
                self.github_token,
                params=params,
                timeout=self.timeout,
                session=self.session,
            )
            data = response.json()
        except requests.HTTPError as exc:
            status = exc.response.status_code if exc.response is not None else None
            raise FetchError(
                repo, url=url, status_code=status, details=str(exc)
            ) from exc
        except requests.RequestException as exc:
            raise FetchError(repo, url=url, details=str(exc)) from exc
        except ValueError as exc:
            raise FetchError(
                repo, message="Invalid JSON in release list", url=url, details=str(exc)
            ) from exc

        if not isinstance(data, list):
            raise FetchError(
                repo,
                message="Unexpected release list payload",
                url=url,
                details=f"expected list, got {type(data).__name__}",
            )
        return data


def _optional_str(value: Any) -> Optional[str]:
    return value if isinstance(value, str) else None


def create_asset_from_github_data(asset_data: Dict[str, Any]) -> Optional[AssetRecord]:
    """
    Create an AssetRecord from a GitHub API asset dict.

    Returns:
        Optional[AssetRecord]: The asset, or None when the name, size or download URL is missing/invalid.
    """
    name = asset_data.get("name")
    if not isinstance(name, str) or not name.strip():
        return None
    download_url = asset_data.get("browser_download_url")
    if not isinstance(download_url, str) or not download_url:
        return None
    try:
        size = int(asset_data.get("size") or 0)
    except (TypeError, ValueError):
        return None
    return AssetRecord(name=name, size=max(size, 0), download_url=download_url)


def create_release_from_github_data(
    release_data: Dict[str, Any],
) -> Optional[ReleaseRecord]:
    """
    Create a ReleaseRecord from GitHub API release data.

    Unlike asset-download use cases, releases without assets are kept: the
    resolver can still fall back to the source snapshot archive.

    Parameters:
        release_data (Dict[str, Any]): Raw release data from GitHub API.

    Returns:
        Optional[ReleaseRecord]: The parsed release, or None when the tag name is missing/invalid.
    """
    tag_name = release_data.get("tag_name")
    if not isinstance(tag_name, str) or not tag_name.strip():
        logger.warning("Skipping release with missing or invalid tag_name")
        return None

    author_data = release_data.get("author")
    author = (
        _optional_str(author_data.get("login")) if isinstance(author_data, dict) else None
    )

    release = ReleaseRecord(
        tag_name=tag_name,
        name=_optional_str(release_data.get("name")),
        body=_optional_str(release_data.get("body")),
        draft=bool(release_data.get("draft", False)),
        prerelease=bool(release_data.get("prerelease", False)),
        published_at=_optional_str(release_data.get("published_at")),
        created_at=_optional_str(release_data.get("created_at")),
        author=author,
        zipball_url=_optional_str(release_data.get("zipball_url")),
        tarball_url=_optional_str(release_data.get("tarball_url")),
        html_url=_optional_str(release_data.get("html_url")),
    )

    assets_data = release_data.get("assets") or []
    if not isinstance(assets_data, list):
        logger.warning("Ignoring invalid assets field for release %s", tag_name)
        assets_data = []

    for asset_data in assets_data:
        if not isinstance(asset_data, dict):
            logger.warning("Skipping malformed asset for release %s", tag_name)
            continue
        asset = create_asset_from_github_data(asset_data)
        if asset is None:
            logger.warning("Skipping invalid asset entry for release %s", tag_name)
            continue
        release.assets.append(asset)

    return release
