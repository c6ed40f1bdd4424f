"""GitHub file store, committing through the repository contents API."""

from __future__ import annotations

import base64
import logging
import os
from typing import Any
from urllib.parse import quote

import httpx

from scriptorium.core.exceptions import UnderlyingStoreError
from scriptorium.core.ports import FileStore

logger = logging.getLogger(__name__)

GITHUB_API_URL = "https://api.github.com"


def _encode(content: str | bytes) -> str:
    raw = content.encode("utf-8") if isinstance(content, str) else content
    return base64.b64encode(raw).decode("ascii")


class GitHubStore(FileStore):
    """Stores files in a GitHub repository branch.

    Args:
        user: Repository owner
        repo: Repository name
        branch: Branch to commit to
        token: Personal access token (defaults to ``GITHUB_TOKEN``)
        client: Preconfigured client, mainly for tests
    """

    name = "github"

    def __init__(
        self,
        user: str,
        repo: str,
        branch: str = "main",
        token: str | None = None,
        client: httpx.AsyncClient | None = None,
        base_url: str = GITHUB_API_URL,
    ) -> None:
        self.user = user
        self.repo = repo
        self.branch = branch
        token = token or os.getenv("GITHUB_TOKEN")
        headers = {"Accept": "application/vnd.github+json"}
        if token:
            headers["Authorization"] = f"Bearer {token}"
        self.client = client or httpx.AsyncClient(base_url=base_url, headers=headers, timeout=30.0)

    @property
    def info(self) -> dict[str, str]:
        return {
            "name": f"{self.user}/{self.repo} on GitHub",
            "uid": f"https://github.com/{self.user}/{self.repo}",
        }

    def _contents_url(self, path: str) -> str:
        return f"/repos/{self.user}/{self.repo}/contents/{quote(path)}"

    async def _request(self, method: str, path: str, **kwargs: Any) -> httpx.Response:
        try:
            response = await self.client.request(method, self._contents_url(path), **kwargs)
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            raise UnderlyingStoreError(self.name, str(exc), status=exc.response.status_code) from exc
        except httpx.HTTPError as exc:
            raise UnderlyingStoreError(self.name, str(exc)) from exc
        return response

    async def _sha(self, path: str) -> str:
        response = await self._request("GET", path, params={"ref": self.branch})
        return response.json()["sha"]

    async def create_file(self, path: str, content: str | bytes, *, message: str) -> bool:
        await self._request(
            "PUT",
            path,
            json={"branch": self.branch, "content": _encode(content), "message": message},
        )
        logger.info("Committed %s to %s/%s: %s", path, self.user, self.repo, message)
        return True

    async def read_file(self, path: str) -> str:
        response = await self._request("GET", path, params={"ref": self.branch})
        return base64.b64decode(response.json()["content"]).decode("utf-8")

    async def update_file(
        self,
        path: str,
        content: str | bytes,
        *,
        message: str,
        new_path: str | None = None,
    ) -> bool:
        sha = await self._sha(path)
        if new_path and new_path != path:
            await self.create_file(new_path, content, message=message)
            await self._request(
                "DELETE",
                path,
                json={"branch": self.branch, "message": message, "sha": sha},
            )
            return True

        await self._request(
            "PUT",
            path,
            json={"branch": self.branch, "content": _encode(content), "message": message, "sha": sha},
        )
        logger.info("Committed %s to %s/%s: %s", path, self.user, self.repo, message)
        return True

    async def delete_file(self, path: str, *, message: str) -> bool:
        sha = await self._sha(path)
        await self._request(
            "DELETE",
            path,
            json={"branch": self.branch, "message": message, "sha": sha},
        )
        logger.info("Deleted %s from %s/%s: %s", path, self.user, self.repo, message)
        return True

    async def aclose(self) -> None:
        await self.client.aclose()
