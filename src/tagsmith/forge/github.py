"""GitHub Releases as a release store.

Implements the ``ReleaseStore`` protocol over the REST API. Releases
are addressed by tag name; release ids are looked up as needed.
"""

from __future__ import annotations

import logging
import re
from typing import Any

import requests

from tagsmith import __version__
from tagsmith.core.release import RemoteRelease
from tagsmith.exceptions import GitHubError

logger = logging.getLogger(__name__)

API_VERSION = "2022-11-28"
PER_PAGE = 100

_REPO_URL_RE = re.compile(r"github\.com[:/](?P<owner>[^/]+)/(?P<repo>[^/]+?)(?:\.git)?/?$")


def parse_github_repo_from_url(url: str) -> tuple[str, str] | None:
    """Extract ``(owner, repo)`` from an https or ssh GitHub remote URL."""
    match = _REPO_URL_RE.search(url.strip())
    if not match:
        return None
    return match.group("owner"), match.group("repo")


class GitHubReleaseStore:
    """Releases of one GitHub repository.

    Example:
        store = GitHubReleaseStore("acme", "widgets", token="...")
        for release in store.list_releases():
            print(release.tag)

    Args:
        owner: Repository owner or organization
        repo: Repository name
        token: API token; listing public releases works without one
        api_url: API base URL (GitHub Enterprise: ``https://host/api/v3``)
        session: Optional preconfigured ``requests.Session``
        timeout: Request timeout in seconds
    """

    def __init__(
        self,
        owner: str,
        repo: str,
        token: str | None = None,
        *,
        api_url: str = "https://api.github.com",
        session: requests.Session | None = None,
        timeout: float = 30.0,
    ) -> None:
        self.owner = owner
        self.repo = repo
        self.api_url = api_url.rstrip("/")
        self.timeout = timeout
        self._session = session or requests.Session()
        self._session.headers.update(
            {
                "Accept": "application/vnd.github+json",
                "X-GitHub-Api-Version": API_VERSION,
                "User-Agent": f"tagsmith/{__version__}",
            }
        )
        if token:
            self._session.headers["Authorization"] = f"Bearer {token}"
        self._ids: dict[str, int] = {}

    @property
    def _releases_url(self) -> str:
        return f"{self.api_url}/repos/{self.owner}/{self.repo}/releases"

    def _request(self, method: str, url: str, **kwargs: Any) -> requests.Response:
        try:
            response = self._session.request(method, url, timeout=self.timeout, **kwargs)
        except requests.RequestException as e:
            raise GitHubError(f"GitHub API request failed: {method} {url}: {e}") from e

        if response.status_code >= 400:
            try:
                detail = response.json().get("message", response.text)
            except ValueError:
                detail = response.text
            raise GitHubError(
                f"GitHub API error {response.status_code} for {method} {url}: {detail}",
                status_code=response.status_code,
            )
        return response

    def list_releases(self) -> list[RemoteRelease]:
        """All releases of the repository, following pagination."""
        releases = []
        page = 1
        while True:
            response = self._request(
                "GET",
                self._releases_url,
                params={"per_page": PER_PAGE, "page": page},
            )
            batch = response.json()
            for data in batch:
                release = RemoteRelease(
                    tag=data["tag_name"],
                    title=data.get("name"),
                    body=data.get("body"),
                    prerelease=bool(data.get("prerelease", False)),
                    release_id=data.get("id"),
                )
                if release.release_id is not None:
                    self._ids[release.tag] = release.release_id
                releases.append(release)
            if len(batch) < PER_PAGE:
                break
            page += 1

        logger.debug("Found %d releases in %s/%s", len(releases), self.owner, self.repo)
        return releases

    def _release_id(self, tag: str) -> int:
        if tag not in self._ids:
            quoted = requests.utils.quote(tag, safe="")
            response = self._request("GET", f"{self._releases_url}/tags/{quoted}")
            self._ids[tag] = response.json()["id"]
        return self._ids[tag]

    def create_release(self, tag: str, title: str, body: str, *, prerelease: bool = False) -> None:
        payload = {
            "tag_name": tag,
            "name": title,
            "body": body,
            "draft": False,
            "prerelease": prerelease,
        }
        response = self._request("POST", self._releases_url, json=payload)
        self._ids[tag] = response.json()["id"]
        logger.info("Created release %s", tag)

    def update_release(self, tag: str, title: str, body: str, *, prerelease: bool = False) -> None:
        payload = {"tag_name": tag, "name": title, "body": body, "prerelease": prerelease}
        self._request("PATCH", f"{self._releases_url}/{self._release_id(tag)}", json=payload)
        logger.info("Updated release %s", tag)

    def delete_release(self, tag: str) -> None:
        self._request("DELETE", f"{self._releases_url}/{self._release_id(tag)}")
        self._ids.pop(tag, None)
        logger.info("Deleted release %s", tag)
