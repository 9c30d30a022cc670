"""Change-capture webhook schemas."""

from enum import Enum
from typing import Any

from pydantic import AliasChoices, ConfigDict, Field, field_validator

from models.user import UserRole

from .base import BaseSchema
from .push import DeliveryResult


class ChangeEventType(str, Enum):
    """Row-level change kinds emitted by the database webhook."""

    INSERT = "INSERT"
    UPDATE = "UPDATE"
    DELETE = "DELETE"


class ChangeEvent(BaseSchema):
    """Database webhook payload. Records are kept raw until the table is known."""

    db_schema: str | None = Field(None, alias="schema")
    table: str = Field(..., min_length=1)
    commit_timestamp: str | None = None
    event_type: ChangeEventType = Field(
        ..., validation_alias=AliasChoices("eventType", "type", "event_type")
    )
    old: dict[str, Any] | None = Field(None, validation_alias=AliasChoices("old", "old_record"))
    new: dict[str, Any] | None = Field(None, validation_alias=AliasChoices("new", "record"))

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    @property
    def record_id(self) -> str | None:
        for record in (self.new, self.old):
            if record and record.get("id") is not None:
                return str(record["id"])
        return None


class ClaimRecord(BaseSchema):
    """A row of the claims (reclamos) table."""

    model_config = ConfigDict(from_attributes=True, extra="ignore")

    id: str = Field(..., min_length=1)
    creado_por: str | None = None
    tecnico_asignado: str | None = None
    tipo_servicio: str | None = None
    cliente_nombre: str | None = None
    cliente_telefono: str | None = None
    direccion: str | None = None
    latitud: float | None = None
    longitud: float | None = None
    descripcion: str | None = None
    estado: str | None = None
    fecha_creacion: str | None = None
    fecha_actualizacion: str | None = None
    foto_cierre: str | None = None

    @field_validator("id", "creado_por", "tecnico_asignado", mode="before")
    @classmethod
    def coerce_identifier(cls, v):
        return str(v) if v is not None and not isinstance(v, str) else v

    @property
    def short_id(self) -> str:
        return self.id[:8]

    @property
    def link(self) -> str:
        return f"/reclamos/{self.id}"


class ClaimNotification(BaseSchema):
    """Notification derived from a claim change, addressed to roles."""

    title: str
    body: str
    url: str
    roles: list[UserRole]


class RoleDispatchFailure(BaseSchema):
    error: str


class ClaimNotificationReport(BaseSchema):
    """Per-role dispatch breakdown of one webhook delivery."""

    admin: RoleDispatchFailure | DeliveryResult | None = None
    technicians: RoleDispatchFailure | DeliveryResult | None = Field(None, alias="tecnicos")


class WebhookResponse(BaseSchema):
    ok: bool = True
    table: str
    event_type: ChangeEventType | None = Field(None, alias="eventType")
    record_id: str | None = Field(None, alias="recordId")
    notifications: ClaimNotificationReport | None = None
    message: str | None = None


__all__ = [
    "ChangeEventType",
    "ChangeEvent",
    "ClaimRecord",
    "ClaimNotification",
    "ClaimNotificationReport",
    "RoleDispatchFailure",
    "WebhookResponse",
]
