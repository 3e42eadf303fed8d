"""Release repository and API constants."""

# GitHub URL structure
GITHUB_API_BASE = "https://api.github.com"
GITHUB_BASE = "https://github.com"
GITHUB_REPOS_PATH = "repos"
RELEASES_PATH = "releases"
LATEST_PATH = "latest"
DOWNLOAD_PATH = "download"

GITHUB_ACCEPT = "application/vnd.github.v3+json"
USER_AGENT = "memos-mcp"

DEFAULT_REPOSITORY = "jtsang4/memos-mcp"
DEFAULT_VERSION = "latest"
LATEST_VERSION = "latest"

BINARY_PREFIX = "memos-mcp"
CHECKSUMS_FILENAME = "checksums.txt"
TEMP_SUFFIX = ".tmp"

CHUNK_SIZE = 8192
