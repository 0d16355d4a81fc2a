"""HTTP client for the AnythingLLM document store API.

This module provides:
- DocumentStore: Capability protocol consumed by the synchronizer
- AnythingLLMClient: httpx-based implementation of DocumentStore
- Workspace: Workspace metadata from the store
- APIError and subclasses
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import PurePath
from typing import Any, Protocol

import httpx

from kbsync.core.config import StoreConfig

logger = logging.getLogger(__name__)


class APIError(Exception):
    """Base exception for API errors."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class AuthenticationError(APIError):
    """API key rejected."""


class NotFoundError(APIError):
    """Resource not found."""


class DocumentStore(Protocol):
    """Operations the synchronizer needs from a document store."""

    def ensure_workspace(self, name: str) -> str:
        """Find or create a workspace by name and return its actual slug."""
        ...

    def upload_document(self, filename: str, content: bytes) -> str:
        """Store raw document bytes and return their location."""
        ...

    def add_to_workspace(self, slug: str, locations: list[str]) -> None:
        """Embed uploaded documents into a workspace."""
        ...

    def remove_from_workspace(self, slug: str, locations: list[str]) -> None:
        """Remove embedded documents from a workspace."""
        ...


@dataclass
class Workspace:
    """Workspace entry returned by the store."""

    name: str
    slug: str

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Workspace:
        """Create from API response dictionary."""
        return cls(name=str(data.get("name") or ""), slug=str(data.get("slug") or ""))


class AnythingLLMClient:
    """HTTP client for the AnythingLLM REST API v1."""

    def __init__(
        self,
        config: StoreConfig,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        """Initialize the client.

        Args:
            config: Store connection settings.
            transport: Optional httpx transport (used by tests).
        """
        self._config = config
        self._client = httpx.Client(
            base_url=config.base_url,
            timeout=config.timeout,
            headers={"Authorization": f"Bearer {config.api_key}"},
            transport=transport,
        )

    @property
    def base_url(self) -> str:
        """Base URL of the store."""
        return self._config.base_url

    def close(self) -> None:
        """Close the HTTP client."""
        self._client.close()

    def __enter__(self) -> AnythingLLMClient:
        """Context manager entry."""
        return self

    def __exit__(self, *args: object) -> None:
        """Context manager exit."""
        self.close()

    def _handle_response(self, response: httpx.Response, action: str) -> httpx.Response:
        """Raise an APIError for non-success responses."""
        if response.status_code in (401, 403):
            raise AuthenticationError(f"{action}: invalid API key", response.status_code)
        if response.status_code == 404:
            raise NotFoundError(f"{action}: not found", 404)
        if response.status_code >= 400:
            raise APIError(
                f"{action}: status {response.status_code}: {response.text}",
                response.status_code,
            )
        return response

    def _json_object(self, response: httpx.Response, what: str) -> dict[str, Any]:
        """Decode a response body that must be a JSON object."""
        try:
            data = response.json()
        except ValueError as e:
            raise APIError(f"decode {what}: {e}") from e
        if not isinstance(data, dict):
            raise APIError(f"decode {what}: expected an object, got {type(data).__name__}")
        return data

    # === Health check ===

    def health_check(self) -> bool:
        """Check that the store is reachable and accepts our key.

        Returns:
            True if the auth endpoint answers 200.
        """
        try:
            response = self._client.get("/api/v1/auth")
            return response.status_code == 200
        except httpx.HTTPError:
            return False

    # === Workspace operations ===

    def list_workspaces(self) -> list[Workspace]:
        """List all workspaces.

        Returns:
            List of workspaces.
        """
        response = self._handle_response(
            self._client.get("/api/v1/workspaces"), "list workspaces"
        )
        data = self._json_object(response, "workspaces list")
        entries = data.get("workspaces") or []
        if not isinstance(entries, list) or not all(isinstance(w, dict) for w in entries):
            raise APIError("decode workspaces list: unexpected workspaces field")
        return [Workspace.from_dict(w) for w in entries]

    def find_workspace(self, name: str) -> str | None:
        """Return the slug of the first workspace named name, if any."""
        for workspace in self.list_workspaces():
            if workspace.name == name:
                return workspace.slug
        return None

    def ensure_workspace(self, name: str) -> str:
        """Find or create a workspace and return the slug the store assigned.

        The store may generate a slug that differs from the name
        (e.g. "intels-a1b2c3d4"), so lookup is by name.

        Args:
            name: Workspace name.

        Returns:
            Actual workspace slug.

        Raises:
            APIError: If the workspace cannot be listed, created, or resolved.
        """
        slug = self.find_workspace(name)
        if slug:
            return slug

        response = self._handle_response(
            self._client.post("/api/v1/workspace/new", json={"name": name}),
            "create workspace",
        )
        try:
            workspace = self._json_object(response, "create workspace").get("workspace")
        except APIError:
            workspace = None
        if isinstance(workspace, dict) and workspace.get("slug"):
            logger.info("Created workspace %r (slug %s)", name, workspace["slug"])
            return str(workspace["slug"])

        # Creation response did not carry a slug; look it up.
        slug = self.find_workspace(name)
        if slug:
            return slug
        raise APIError("create workspace: could not determine slug after creation")

    # === Document operations ===

    def upload_document(self, filename: str, content: bytes) -> str:
        """Upload document content to the store.

        Args:
            filename: Name of the document; only the basename is sent.
            content: Raw document bytes.

        Returns:
            Document location, used to embed it in a workspace.

        Raises:
            APIError: If the upload is rejected or returns no document.
        """
        files = {"file": (PurePath(filename).name, content)}
        response = self._handle_response(
            self._client.post("/api/v1/document/upload", files=files), "upload"
        )
        data = self._json_object(response, "upload response")

        if not data.get("success"):
            raise APIError(f"upload failed: {data.get('error') or 'unknown error'}")
        documents = data.get("documents") or []
        if (
            not isinstance(documents, list)
            or not documents
            or not isinstance(documents[0], dict)
            or not documents[0].get("location")
        ):
            raise APIError("upload returned no documents")
        return str(documents[0]["location"])

    def add_to_workspace(self, slug: str, locations: list[str]) -> None:
        """Embed the given document locations into the workspace."""
        self._update_embeddings(slug, adds=locations)

    def remove_from_workspace(self, slug: str, locations: list[str]) -> None:
        """Remove the given document locations from the workspace."""
        self._update_embeddings(slug, deletes=locations)

    def _update_embeddings(
        self,
        slug: str,
        adds: list[str] | None = None,
        deletes: list[str] | None = None,
    ) -> None:
        payload = {"adds": list(adds or []), "deletes": list(deletes or [])}
        self._handle_response(
            self._client.post(f"/api/v1/workspace/{slug}/update-embeddings", json=payload),
            "update-embeddings",
        )
