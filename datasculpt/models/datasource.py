"""
Data source models.

A DataSourceConfig holds the connection parameters of one relational database.
A DataSource is its registry entry: the config plus probe status and the
active flag.
"""

from __future__ import annotations

from datetime import datetime
from typing import Literal
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field, SecretStr

DatabaseKind = Literal["postgresql", "mysql"]
SourceStatus = Literal["connected", "disconnected", "error"]

DEFAULT_PORTS: dict[str, int] = {"postgresql": 5432, "mysql": 3306}


class DataSourceConfig(BaseModel):
    """Connection parameters for one database. Immutable once created."""

    id: str = Field(default_factory=lambda: uuid4().hex, description="Source identifier")
    name: str = Field(..., min_length=1, description="User-friendly name")
    kind: DatabaseKind = Field(..., alias="type", description="Database engine")
    host: str = Field(..., min_length=1, description="Database host")
    port: int = Field(..., gt=0, le=65535, description="Database port")
    database: str = Field(..., min_length=1, description="Database name")
    username: str = Field(..., min_length=1, description="Database user")
    password: SecretStr = Field(default=SecretStr(""), description="Database password")

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    def describe(self) -> str:
        """Credential-free description for logs."""
        return f"{self.kind}://{self.username}@{self.host}:{self.port}/{self.database}"


class DataSource(BaseModel):
    """Registry entry for a data source."""

    config: DataSourceConfig
    status: SourceStatus = Field(default="disconnected")
    last_sync: datetime | None = Field(default=None)
    is_active: bool = Field(default=False)

    @property
    def id(self) -> str:
        return self.config.id


class DataSourceView(BaseModel):
    """Public representation of a registry entry (no password)."""

    id: str
    name: str
    kind: DatabaseKind = Field(..., serialization_alias="type")
    host: str
    port: int
    database: str
    username: str
    status: SourceStatus
    last_sync: datetime | None = Field(None, serialization_alias="lastSync")
    is_active: bool = Field(..., serialization_alias="isActive")

    @classmethod
    def from_source(cls, source: DataSource) -> "DataSourceView":
        config = source.config
        return cls(
            id=config.id,
            name=config.name,
            kind=config.kind,
            host=config.host,
            port=config.port,
            database=config.database,
            username=config.username,
            status=source.status,
            last_sync=source.last_sync,
            is_active=source.is_active,
        )


class ConnectionConfigPayload(BaseModel):
    """Connection parameters as sent by the web client."""

    type: str | None = Field(None, description="postgresql or mysql")
    host: str | None = None
    port: int | None = Field(None, gt=0, le=65535)
    database: str | None = None
    username: str | None = None
    password: SecretStr | None = None

    def missing_fields(self) -> list[str]:
        return [
            field
            for field in ("type", "host", "port", "database", "username", "password")
            if not getattr(self, field)
        ]

    def to_config(self, default_kind: DatabaseKind, name: str = "request override") -> DataSourceConfig:
        """
        Build a DataSourceConfig from the payload.

        The kind falls back to default_kind and the port to the kind's
        default port. Raises ValueError for an unsupported kind or missing
        host, database or username.
        """
        kind = (self.type or default_kind).strip().lower()
        if kind == "postgres":
            kind = "postgresql"
        if kind not in DEFAULT_PORTS:
            raise ValueError(f"Unsupported database type: {self.type}")
        missing = [f for f in ("host", "database", "username") if not getattr(self, f)]
        if missing:
            raise ValueError(f"Missing connection parameters: {', '.join(missing)}")
        return DataSourceConfig(
            name=name,
            kind=kind,
            host=self.host,
            port=self.port or DEFAULT_PORTS[kind],
            database=self.database,
            username=self.username,
            password=self.password or SecretStr(""),
        )


class DataSourceCreate(ConnectionConfigPayload):
    """Payload for registering a data source."""

    name: str = Field(..., min_length=1, description="User-friendly name")
