"""
Data Source Registry

Process-wide registry of DataSourceConfigs persisted to a JSON file
(default ~/.datasculpt/sources.json). At most one source is active; the
safety gate resolves its connection parameters through resolve().

Passwords are encrypted with Fernet when a credentials key is configured,
and stored as plain text otherwise.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Awaitable, Callable, Mapping
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

from cryptography.fernet import Fernet, InvalidToken
from pydantic import SecretStr

from datasculpt.connectors.base import ConnectorError
from datasculpt.connectors.factory import probe_connection
from datasculpt.models.datasource import DataSource, DataSourceConfig

logger = logging.getLogger(__name__)

Prober = Callable[[DataSourceConfig], Awaitable[None]]


class DataSourceRegistry:
    """
    Registry of data sources with a single active selection.

    Args:
        path: JSON file backing the registry
        encryption_key: Fernet key for stored passwords (None = plain text)
        prober: Connectivity check run by add() and refresh()
        defaults: Environment default source per database kind
    """

    def __init__(
        self,
        path: str | Path,
        encryption_key: str | bytes | None = None,
        prober: Prober = probe_connection,
        defaults: Mapping[str, DataSourceConfig] | None = None,
    ) -> None:
        self.path = Path(path).expanduser()
        self.prober = prober
        self.defaults = dict(defaults or {})
        self._encryption_key = encryption_key
        self._cipher: Fernet | None = None
        self._sources: list[DataSource] = []
        self._load()

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def list(self) -> list[DataSource]:
        """All sources in insertion order."""
        return list(self._sources)

    def get(self, source_id: str) -> DataSource:
        """Raises KeyError if the id is unknown."""
        for source in self._sources:
            if source.id == source_id:
                return source
        raise KeyError(source_id)

    def get_active(self) -> DataSource | None:
        return next((source for source in self._sources if source.is_active), None)

    def resolve(self, kind: str | None = None) -> DataSourceConfig | None:
        """
        Connection parameters for an execution.

        The active source when it matches kind (any kind when kind is None),
        else the environment default for kind, else None.
        """
        active = self.get_active()
        if active is not None and (kind is None or active.config.kind == kind):
            return active.config
        if kind is not None:
            return self.defaults.get(kind)
        return next(iter(self.defaults.values()), None)

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    async def add(self, config: DataSourceConfig) -> DataSource:
        """
        Register a source after probing it.

        A failed probe still registers the source, with status "error".
        The first source added becomes active.
        """
        if any(source.id == config.id for source in self._sources):
            raise ValueError(f"Data source already registered: {config.id}")

        source = await self._probe(DataSource(config=config))
        if any(existing.id == config.id for existing in self._sources):
            raise ValueError(f"Data source already registered: {config.id}")
        if not self._sources:
            source = source.model_copy(update={"is_active": True})
        self._sources.append(source)
        self._save()

        logger.info(
            f"Registered data source '{config.name}' ({config.describe()})",
            extra={"source_id": config.id, "status": source.status, "active": source.is_active},
        )
        return source

    def activate(self, source_id: str) -> DataSource:
        """Make one source active and every other inactive."""
        self.get(source_id)
        self._sources = [
            source.model_copy(update={"is_active": source.id == source_id})
            for source in self._sources
        ]
        self._save()
        logger.info(f"Activated data source {source_id}", extra={"source_id": source_id})
        return self.get(source_id)

    def remove(self, source_id: str) -> DataSource:
        """
        Remove a source. If it was active, the first remaining source
        becomes active.
        """
        removed = self.get(source_id)
        self._sources = [source for source in self._sources if source.id != source_id]
        if removed.is_active and self._sources:
            first = self._sources[0]
            self._sources[0] = first.model_copy(update={"is_active": True})
        self._save()
        logger.info(f"Removed data source {source_id}", extra={"source_id": source_id})
        return removed

    async def refresh(self, source_id: str) -> DataSource:
        """
        Re-probe a source and record its status.

        Only status and last_sync are written back; activation or removal
        during the probe is kept.

        Raises:
            KeyError: If the source is unknown, or was removed during the probe
        """
        probed = await self._probe(self.get(source_id))
        current = self.get(source_id)
        updated = current.model_copy(
            update={"status": probed.status, "last_sync": probed.last_sync}
        )
        self._sources = [
            updated if source.id == source_id else source for source in self._sources
        ]
        self._save()
        return updated

    async def _probe(self, source: DataSource) -> DataSource:
        try:
            await self.prober(source.config)
        except ConnectorError as e:
            logger.warning(
                f"Data source '{source.config.name}' is unreachable: {e}",
                extra={"source_id": source.id},
            )
            return source.model_copy(update={"status": "error"})
        return source.model_copy(
            update={"status": "connected", "last_sync": datetime.now(UTC)}
        )

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    def _load(self) -> None:
        if not self.path.exists():
            return
        with open(self.path, encoding="utf-8") as handle:
            payload = json.load(handle)
        self._sources = [self._deserialize(entry) for entry in payload.get("sources", [])]
        logger.debug(f"Loaded {len(self._sources)} data sources from {self.path}")

    def _save(self) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True, mode=0o700)
        payload = {"sources": [self._serialize(source) for source in self._sources]}
        tmp_path = self.path.with_suffix(".tmp")
        with open(tmp_path, "w", encoding="utf-8") as handle:
            json.dump(payload, handle, indent=2)
        tmp_path.replace(self.path)

    def _serialize(self, source: DataSource) -> dict[str, Any]:
        config = source.config
        password = config.password.get_secret_value()
        encrypted = self._encryption_key is not None
        return {
            "id": config.id,
            "name": config.name,
            "type": config.kind,
            "host": config.host,
            "port": config.port,
            "database": config.database,
            "username": config.username,
            "password": self._encrypt(password) if encrypted else password,
            "password_encrypted": encrypted,
            "status": source.status,
            "last_sync": source.last_sync.isoformat() if source.last_sync else None,
            "is_active": source.is_active,
        }

    def _deserialize(self, entry: dict[str, Any]) -> DataSource:
        password = entry.get("password") or ""
        if entry.get("password_encrypted"):
            password = self._decrypt(password)
        config = DataSourceConfig(
            id=entry["id"],
            name=entry["name"],
            kind=entry["type"],
            host=entry["host"],
            port=entry["port"],
            database=entry["database"],
            username=entry["username"],
            password=SecretStr(password),
        )
        return DataSource(
            config=config,
            status=entry.get("status", "disconnected"),
            last_sync=entry.get("last_sync"),
            is_active=bool(entry.get("is_active")),
        )

    def _encrypt(self, value: str) -> str:
        return self._ensure_cipher().encrypt(value.encode("utf-8")).decode("utf-8")

    def _decrypt(self, value: str) -> str:
        try:
            return self._ensure_cipher().decrypt(value.encode("utf-8")).decode("utf-8")
        except InvalidToken as exc:
            raise ValueError("Failed to decrypt stored data source password.") from exc

    def _ensure_cipher(self) -> Fernet:
        if self._cipher is not None:
            return self._cipher
        if not self._encryption_key:
            raise ValueError(
                "REGISTRY_CREDENTIALS_KEY must be set to read encrypted data source passwords."
            )
        key = self._encryption_key
        if isinstance(key, str):
            key = key.encode("utf-8")
        try:
            self._cipher = Fernet(key)
        except (ValueError, TypeError) as exc:
            raise ValueError(
                "Invalid REGISTRY_CREDENTIALS_KEY. Use a Fernet-compatible base64 key."
            ) from exc
        return self._cipher
