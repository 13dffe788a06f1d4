"""
Constants and configuration values for addon-manifest.

This module contains all hardcoded values, URLs, timeouts, and other constants
used throughout the application.
"""

# GitHub API URLs
GITHUB_API_BASE = "https://api.github.com/repos"
GITHUB_API_VERSION = "2022-11-28"

# Network timeouts and delays (in seconds)
GITHUB_API_TIMEOUT = 10
API_CALL_DELAY = 0.1  # Small delay to be respectful to GitHub API
GITHUB_MAX_PER_PAGE = 100
DEFAULT_MAX_PAGES = 1

# Retry settings for transient API failures
DEFAULT_CONNECT_RETRIES = 3
DEFAULT_BACKOFF_FACTOR = 0.3
RETRY_STATUS_FORCELIST = (408, 429, 500, 502, 503, 504)
RATE_LIMIT_LOW_WATERMARK = 10

# Asset selection
DEFAULT_ASSET_PRIORITY = (".7z", ".zip")
VOLUME_ARCHIVE_EXTENSIONS = ("7z", "zip", "rar")
# <base>.<archive ext>.<3+ digit part number>, e.g. pack.7z.001
VOLUME_PART_PATTERN = (
    r"^(?P<base>.+\.(?:" + "|".join(VOLUME_ARCHIVE_EXTENSIONS) + r"))\.(?P<part>\d{3,})$"
)
SNAPSHOT_ARCHIVE_EXTENSION = ".zip"

# Version extraction
NUMERIC_VERSION_PATTERN = r"^\d+(?:\.\d+)*"
# Tags of the form <id>-v<digits>..., used to discover addons in scan mode
ADDON_TAG_PATTERN = r"^(?P<id>.+?)-v\d"
DEFAULT_TAG_PREFIX_SUFFIX = "-v"

# Sizes
BYTES_PER_MB = 1024 * 1024

# Category codes -> display categories used by the installer
CATEGORY_LABELS = {
    "map": "맵",
    "bus": "버스",
    "repaint": "리페인트",
    "sound": "사운드",
    "script": "스크립트",
    "ai": "AI 차량",
    "human": "승객",
    "scenery": "오브젝트",
    "object": "오브젝트",
    "spline": "스플라인",
    "texture": "텍스처",
    "tool": "도구",
    "patch": "패치",
}
UNCATEGORIZED_LABEL = "기타"

# File names and output locations
CONFIG_FILE_NAME = "addon-repos.json"
OVERRIDES_FILE_NAME = "addon-overrides.json"
MANIFEST_FILE_NAME = "omsi-addons.json"
DEFAULT_PRIMARY_OUTPUT = MANIFEST_FILE_NAME
DEFAULT_SECONDARY_OUTPUT = "docs/" + MANIFEST_FILE_NAME
APP_NAME = "addon-manifest"
LOG_FILE_NAME = "addon-manifest.log"

# Published manifests are world-readable
MANIFEST_FILE_PERMISSIONS = 0o644

# Logging configuration
LOGGER_NAME = "addon_manifest"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"
INFO_LOG_FORMAT = "%(asctime)s - %(levelname)s - %(message)s"
DEBUG_LOG_FORMAT = "%(asctime)s - %(levelname)s - %(name)s: %(message)s"
LOG_FILE_MAX_BYTES = 10 * 1024 * 1024  # 10 MB
LOG_FILE_BACKUP_COUNT = 5

# Environment variable names
LOG_LEVEL_ENV_VAR = "ADDON_MANIFEST_LOG_LEVEL"
CONFIG_PATH_ENV_VAR = "ADDON_MANIFEST_CONFIG"
GITHUB_TOKEN_ENV_VAR = "GITHUB_TOKEN"
REPO_ENV_VAR = "REPO"

# Process exit codes
EXIT_SUCCESS = 0
EXIT_FAILURE = 1
