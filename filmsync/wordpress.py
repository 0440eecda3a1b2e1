"""WordPress REST API client for project posts, media and taxonomy terms."""
from __future__ import annotations

import logging
import mimetypes
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Optional

import requests

from filmsync.exceptions import BackendError


def _rendered(value: Any) -> str:
    """WordPress returns title/caption either as a string or {'rendered': ...}."""
    if isinstance(value, dict):
        return value.get("rendered") or value.get("raw") or ""
    return value or ""


@dataclass
class Post:
    title: str = ""
    content: str = ""
    status: str = "draft"
    slug: str = ""
    categories: list[int] = field(default_factory=list)
    featured_media: int = 0
    meta: dict[str, Any] = field(default_factory=dict)
    id: int = 0
    created_at: str = ""
    modified_at: str = ""

    def to_payload(self, category_field: str) -> dict:
        """Request body; empty fields are left out so updates don't clear them."""
        payload: dict[str, Any] = {"title": self.title, "status": self.status}
        if self.content:
            payload["content"] = self.content
        if self.slug:
            payload["slug"] = self.slug
        if self.categories:
            payload[category_field] = self.categories
        if self.featured_media:
            payload["featured_media"] = self.featured_media
        if self.meta:
            payload["meta"] = self.meta
        return payload

    @classmethod
    def from_api(cls, data: dict, category_field: str) -> "Post":
        return cls(
            id=int(data.get("id") or 0),
            title=_rendered(data.get("title")),
            content=_rendered(data.get("content")),
            status=data.get("status", ""),
            slug=data.get("slug", ""),
            categories=list(data.get(category_field) or []),
            featured_media=int(data.get("featured_media") or 0),
            meta=data.get("meta") or {},
            created_at=data.get("date", ""),
            modified_at=data.get("modified", ""),
        )


@dataclass
class Media:
    id: int
    title: str = ""
    source_url: str = ""
    alt_text: str = ""
    mime_type: str = ""

    @classmethod
    def from_api(cls, data: dict) -> "Media":
        return cls(
            id=int(data.get("id") or 0),
            title=_rendered(data.get("title")),
            source_url=data.get("source_url") or data.get("url") or "",
            alt_text=data.get("alt_text", ""),
            mime_type=data.get("mime_type", ""),
        )


@dataclass
class Category:
    id: int
    name: str = ""
    slug: str = ""
    parent: int = 0

    @classmethod
    def from_api(cls, data: dict) -> "Category":
        return cls(
            id=int(data.get("id") or 0),
            name=data.get("name", ""),
            slug=data.get("slug", ""),
            parent=int(data.get("parent") or 0),
        )


@dataclass
class Menu:
    id: int
    name: str = ""
    slug: str = ""


class WordPressClient:
    """Thin REST client authenticated with an application password."""

    def __init__(
        self,
        base_url: str,
        username: str,
        app_password: str,
        *,
        session: Optional[requests.Session] = None,
        post_type: str = "project",
        category_taxonomy: str = "project_category",
        timeout_s: int = 60,
        logger: Optional[logging.Logger] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.api_url = f"{self.base_url}/wp-json/wp/v2"
        self.post_type = post_type
        self.category_taxonomy = category_taxonomy
        self._timeout_s = timeout_s
        self._session = session or requests.Session()
        self._session.auth = (username, app_password)
        self.logger = logger or logging.getLogger(__name__)
        self._media_cache: dict[int, Media] = {}

    @classmethod
    def from_config(cls, config: dict, **kwargs) -> "WordPressClient":
        wp = config["wordpress"]
        return cls(
            wp["base_url"],
            wp["username"],
            wp["application_password"],
            post_type=wp.get("post_type", "project"),
            category_taxonomy=wp.get("category_taxonomy", "project_category"),
            timeout_s=int(wp.get("timeout", 60)),
            **kwargs,
        )

    def close(self) -> None:
        self._session.close()

    def _request(
        self,
        method: str,
        endpoint: str,
        *,
        expected: tuple[int, ...] = (200, 201),
        **kwargs,
    ) -> Any:
        url = f"{self.api_url}/{endpoint.lstrip('/')}"
        self.logger.debug(f"WordPress {method} {url}")
        try:
            resp = self._session.request(method, url, timeout=self._timeout_s, **kwargs)
        except requests.RequestException as e:
            raise BackendError(f"{method} {endpoint} failed: {e}") from e

        if resp.status_code not in expected:
            raise BackendError(
                f"{method} {endpoint} returned {resp.status_code}: {resp.text[:500]}",
                status_code=resp.status_code,
            )
        try:
            return resp.json()
        except ValueError as e:
            raise BackendError(f"{method} {endpoint} returned invalid JSON: {e}", resp.status_code) from e

    # === Posts ===

    def create_post(self, post: Post) -> Post:
        data = self._request("POST", self.post_type, json=post.to_payload(self.category_taxonomy))
        return Post.from_api(data, self.category_taxonomy)

    def update_post(self, post_id: int, post: Post) -> Post:
        data = self._request("POST", f"{self.post_type}/{post_id}", json=post.to_payload(self.category_taxonomy))
        return Post.from_api(data, self.category_taxonomy)

    def get_post(self, post_id: int) -> Post:
        data = self._request("GET", f"{self.post_type}/{post_id}", expected=(200,))
        return Post.from_api(data, self.category_taxonomy)

    # === Media ===

    def get_media(self, media_id: int) -> Media:
        """Fetch media details, cached for the lifetime of the client."""
        if media_id in self._media_cache:
            return self._media_cache[media_id]
        media = Media.from_api(self._request("GET", f"media/{media_id}", expected=(200,)))
        self._media_cache[media_id] = media
        return media

    def upload_media(self, path: Path, title: str, alt_text: str) -> Media:
        """Upload a local file to the media library."""
        mime_type = mimetypes.guess_type(path.name)[0] or "application/octet-stream"
        try:
            with open(path, "rb") as fh:
                data = self._request(
                    "POST",
                    "media",
                    expected=(201,),
                    files={"file": (path.name, fh, mime_type)},
                    data={"title": title, "alt_text": alt_text},
                )
        except OSError as e:
            raise BackendError(f"Cannot read {path}: {e}") from e

        media = Media.from_api(data)
        if not media.alt_text:
            media.alt_text = alt_text
        self._media_cache[media.id] = media
        return media

    # === Taxonomy ===

    def search_categories(self, query: str) -> list[Category]:
        data = self._request(
            "GET",
            self.category_taxonomy,
            expected=(200,),
            params={"search": query, "per_page": 100},
        )
        return [Category.from_api(item) for item in data or []]

    def list_menus(self) -> list[Menu]:
        """List navigation menus.

        Older menu plugins answer with a mapping of location -> menu instead
        of a list; both shapes are accepted.
        """
        data = self._request("GET", "menus", expected=(200,), params={"per_page": 20})
        if isinstance(data, list):
            return [Menu(id=int(m.get("id") or 0), name=m.get("name", ""), slug=m.get("slug", "")) for m in data]
        if isinstance(data, dict):
            return [
                Menu(id=i, name=loc.get("name", ""), slug=slug)
                for i, (slug, loc) in enumerate(data.items(), start=1)
                if isinstance(loc, dict)
            ]
        return []

    def test_connection(self) -> dict:
        """Return the authenticated user, raising BackendError on bad credentials."""
        return self._request("GET", "users/me", expected=(200,))
