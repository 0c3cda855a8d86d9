"""
Async GitHub REST client for folio.

Wraps the endpoints the project sync reads. Each method maps one
endpoint to a typed model; "not present" answers (no release, no README)
come back as ``None`` and anything else unexpected raises ``UpstreamError``.
``fetch_complete_snapshot`` decides which failures are fatal.
"""

from __future__ import annotations

import asyncio
import base64
import logging
import re
from typing import Any

import httpx

from folio.core.config.models import GitHubConfig
from folio.core.exceptions import RepositoryNotFoundError, UpstreamError
from folio.core.github.models import (
    Branch,
    Contributor,
    IssueStats,
    PullRequestStats,
    RateBudget,
    Readme,
    Release,
    RepoInfo,
    Repository,
    TreeEntry,
)

logger = logging.getLogger(__name__)

SERVICE = "github"
DEFAULT_ACCEPT = "application/vnd.github.v3+json"
RAW_ACCEPT = "application/vnd.github.raw"
HTML_ACCEPT = "application/vnd.github.html+json"

# Warn once the per-response quota header drops below this
RATE_LIMIT_WARNING = 10

_LAST_PAGE_RE = re.compile(r'[?&]page=(\d+)>; rel="last"')

CODE_EXTENSIONS = frozenset(
    {
        # web
        "js", "jsx", "ts", "tsx", "vue", "svelte", "astro",
        "html", "htm", "css", "scss", "sass", "less", "stylus",
        # backend
        "py", "java", "kt", "scala", "clj", "rb", "php", "go", "rs", "swift",
        "c", "cpp", "cc", "cxx", "h", "hpp", "hxx", "cs", "vb", "fs",
        # other
        "r", "matlab", "m", "pl", "lua", "dart", "elm", "hs", "erl", "ex",
        "ml", "nim", "cr", "zig", "sql",
        # config
        "json", "yaml", "yml", "toml", "xml",
    }
)
LOC_BATCH_SIZE = 10
LOC_BATCH_DELAY_SECONDS = 0.2


def parse_last_page(link_header: str | None) -> int | None:
    """
    Extract the last page number from a GitHub ``Link`` header.

    Example:
        >>> parse_last_page('<https://api.github.com/x?per_page=1&page=42>; rel="last"')
        42
    """
    if not link_header:
        return None
    match = _LAST_PAGE_RE.search(link_header)
    if not match:
        return None
    return int(match.group(1))


def is_code_file(path: str) -> bool:
    name = path.rsplit("/", 1)[-1]
    if "." not in name:
        return False
    return name.rsplit(".", 1)[-1].lower() in CODE_EXTENSIONS


def count_non_empty_lines(text: str) -> int:
    return sum(1 for line in text.split("\n") if line.strip())


class GitHubClient:
    """
    Async client for the GitHub REST API.

    Use as an async context manager so the underlying connection pool is
    closed:

    Example:
        >>> async with GitHubClient(config.github) as client:
        ...     repo = await client.get_repository(RepoInfo(owner="o", name="r"))
        ...     print(repo.stargazers_count)
    """

    def __init__(
        self,
        config: GitHubConfig | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """
        Initialize GitHubClient.

        Args:
            config: GitHub settings (token, base URL, timeout)
            transport: Optional httpx transport, used by tests to fake the API
        """
        self.config = config or GitHubConfig()
        headers = {
            "Accept": DEFAULT_ACCEPT,
            "User-Agent": self.config.user_agent,
        }
        if self.config.token:
            headers["Authorization"] = f"Bearer {self.config.token}"

        self._client = httpx.AsyncClient(
            base_url=self.config.api_url,
            headers=headers,
            timeout=self.config.timeout_seconds,
            transport=transport,
        )

    async def __aenter__(self) -> GitHubClient:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    @property
    def has_token(self) -> bool:
        return bool(self.config.token)

    async def _request(
        self,
        path: str,
        params: dict[str, Any] | None = None,
        accept: str | None = None,
    ) -> httpx.Response:
        headers = {"Accept": accept} if accept else None
        try:
            response = await self._client.get(path, params=params, headers=headers)
        except httpx.HTTPError as e:
            raise UpstreamError(SERVICE, f"Request to {path} failed: {e}", path=path) from e

        self._check_rate_headers(response)
        return response

    def _check_rate_headers(self, response: httpx.Response) -> None:
        remaining = response.headers.get("X-RateLimit-Remaining")
        if remaining is None:
            return
        try:
            value = int(remaining)
        except ValueError:
            return
        if value < RATE_LIMIT_WARNING:
            logger.warning("GitHub API rate limit warning: %d requests remaining", value)
        if value == 0 and response.status_code == 403:
            logger.error(
                "GitHub API rate limit exceeded, resets at %s",
                response.headers.get("X-RateLimit-Reset"),
            )

    @staticmethod
    def _raise_for_status(response: httpx.Response, what: str) -> None:
        if response.is_success:
            return
        raise UpstreamError(
            SERVICE,
            f"GitHub API error fetching {what}: {response.status_code} {response.reason_phrase}",
            status_code=response.status_code,
        )

    def _repo_path(self, repo: RepoInfo, suffix: str = "") -> str:
        return f"/repos/{repo.owner}/{repo.name}{suffix}"

    async def get_repository(self, repo: RepoInfo) -> Repository:
        """
        Fetch core repository metadata.

        Raises:
            RepositoryNotFoundError: If the repository does not exist
            UpstreamError: On any other failure
        """
        response = await self._request(self._repo_path(repo))
        if response.status_code == 404:
            raise RepositoryNotFoundError(repo.full_name)
        self._raise_for_status(response, f"repository {repo.full_name}")
        return Repository.model_validate(response.json())

    async def get_languages(self, repo: RepoInfo) -> dict[str, int]:
        """Language name to byte count, in GitHub's (descending) order."""
        response = await self._request(self._repo_path(repo, "/languages"))
        self._raise_for_status(response, "languages")
        data = response.json()
        return {str(k): int(v) for k, v in data.items()}

    async def get_contributors(self, repo: RepoInfo) -> list[Contributor]:
        """Contributors, 100 per page, up to ``contributor_pages`` pages."""
        contributors: list[Contributor] = []
        for page in range(1, self.config.contributor_pages + 1):
            response = await self._request(
                self._repo_path(repo, "/contributors"),
                params={"per_page": 100, "page": page},
            )
            # 204: repository has no commits yet
            if response.status_code == 204:
                break
            self._raise_for_status(response, "contributors")
            batch = response.json()
            contributors.extend(Contributor.model_validate(item) for item in batch)
            if len(batch) < 100:
                break
        return contributors

    async def get_latest_release(self, repo: RepoInfo) -> Release | None:
        """Latest published release, or None when the repository has none."""
        response = await self._request(self._repo_path(repo, "/releases/latest"))
        if response.status_code == 404:
            return None
        if response.status_code == 403:
            logger.warning("Rate limited fetching latest release for %s", repo.full_name)
            return None
        self._raise_for_status(response, "latest release")
        return Release.model_validate(response.json())

    async def get_commit_count(self, repo: RepoInfo) -> int:
        """
        Total commits on the default branch.

        Requests one commit per page and reads the last page number from
        the ``Link`` header.
        """
        response = await self._request(self._repo_path(repo, "/commits"), params={"per_page": 1})
        # 409: empty repository
        if response.status_code == 409:
            return 0
        self._raise_for_status(response, "commits")
        last_page = parse_last_page(response.headers.get("link"))
        if last_page is not None:
            return last_page
        return len(response.json())

    async def get_file_tree(
        self, repo: RepoInfo, branch: str | None = None
    ) -> list[TreeEntry] | None:
        """
        Recursive file tree, trying ``branch`` then HEAD, main and master.

        Returns:
            Tree entries, or None if no candidate ref resolves
        """
        candidates: list[str] = []
        for ref in (branch, "HEAD", "main", "master"):
            if ref and ref not in candidates:
                candidates.append(ref)

        for ref in candidates:
            try:
                response = await self._request(
                    self._repo_path(repo, f"/git/trees/{ref}"), params={"recursive": 1}
                )
            except UpstreamError as e:
                logger.debug("Tree lookup for %s@%s failed: %s", repo.full_name, ref, e)
                continue
            if response.is_success:
                data = response.json()
                if data.get("truncated"):
                    logger.info("File tree for %s is truncated", repo.full_name)
                return [TreeEntry.model_validate(item) for item in data.get("tree", [])]
        return None

    async def get_branches(self, repo: RepoInfo) -> list[Branch]:
        response = await self._request(self._repo_path(repo, "/branches"), params={"per_page": 100})
        self._raise_for_status(response, "branches")
        return [Branch.model_validate(item) for item in response.json()]

    async def get_readme(self, repo: RepoInfo) -> Readme | None:
        """
        README content.

        Markdown files are returned raw; other formats (RST, AsciiDoc, ...)
        are returned as GitHub-rendered HTML.
        """
        path = self._repo_path(repo, "/readme")
        meta = await self._request(path)
        if meta.status_code == 404:
            return None
        self._raise_for_status(meta, "readme")

        filename = str(meta.json().get("name") or "").lower()
        is_markdown = filename.endswith((".md", ".markdown"))

        response = await self._request(path, accept=RAW_ACCEPT if is_markdown else HTML_ACCEPT)
        self._raise_for_status(response, "readme content")
        return Readme(content=response.text, is_markdown=is_markdown)

    async def _list_state(self, repo: RepoInfo, endpoint: str, state: str) -> list[dict[str, Any]]:
        response = await self._request(
            self._repo_path(repo, endpoint),
            params={"state": state, "per_page": 10, "sort": "updated"},
        )
        self._raise_for_status(response, f"{endpoint.strip('/')} ({state})")
        return list(response.json())

    async def get_issue_stats(self, repo: RepoInfo) -> IssueStats:
        """Open/closed counts over the most recently updated issues."""
        opened, closed = await asyncio.gather(
            self._list_state(repo, "/issues", "open"),
            self._list_state(repo, "/issues", "closed"),
        )
        # The issues endpoint also lists pull requests
        open_count = sum(1 for item in opened if not item.get("pull_request"))
        closed_count = sum(1 for item in closed if not item.get("pull_request"))
        return IssueStats(total=open_count + closed_count, open=open_count, closed=closed_count)

    async def get_pull_request_stats(self, repo: RepoInfo) -> PullRequestStats:
        opened, closed = await asyncio.gather(
            self._list_state(repo, "/pulls", "open"),
            self._list_state(repo, "/pulls", "closed"),
        )
        merged = sum(1 for pr in closed if pr.get("merged_at") is not None)
        return PullRequestStats(
            total=len(opened) + len(closed),
            open=len(opened),
            closed=len(closed) - merged,
            merged=merged,
        )

    async def _file_line_count(self, repo: RepoInfo, path: str) -> int:
        try:
            response = await self._request(self._repo_path(repo, f"/contents/{path}"))
        except UpstreamError as e:
            logger.debug("Skipping %s while counting lines: %s", path, e)
            return 0
        if not response.is_success:
            return 0
        content = response.json().get("content")
        if not content:
            return 0
        text = base64.b64decode(content).decode("utf-8", errors="replace")
        return count_non_empty_lines(text)

    async def count_lines_of_code(self, repo: RepoInfo, tree: list[TreeEntry]) -> int:
        """
        Count non-empty lines across up to ``max_loc_files`` source files.

        Files are downloaded in groups of 10 with a short pause between
        groups. This is expensive (one request per file) and disabled
        unless ``github.count_lines_of_code`` is set.
        """
        files = [entry.path for entry in tree if entry.type == "blob" and is_code_file(entry.path)]
        files = files[: self.config.max_loc_files]

        total = 0
        for start in range(0, len(files), LOC_BATCH_SIZE):
            batch = files[start : start + LOC_BATCH_SIZE]
            counts = await asyncio.gather(*(self._file_line_count(repo, path) for path in batch))
            total += sum(counts)
            if start + LOC_BATCH_SIZE < len(files):
                await asyncio.sleep(LOC_BATCH_DELAY_SECONDS)
        return total

    async def get_rate_limit(self) -> RateBudget | None:
        """
        Current core API quota.

        Returns:
            RateBudget, or None if the quota could not be read
        """
        try:
            response = await self._request("/rate_limit")
        except UpstreamError as e:
            logger.warning("Could not read GitHub rate limit: %s", e)
            return None
        if not response.is_success:
            logger.warning("Could not read GitHub rate limit: HTTP %d", response.status_code)
            return None

        data = response.json()
        core = (data.get("resources") or {}).get("core") or data.get("rate")
        if not core or "remaining" not in core:
            return None
        return RateBudget.model_validate(core)
