"""Claim change-capture notifications.

Turns INSERT/UPDATE row changes of the claims table into push notifications
for the admin and technician roles. Content is derived only from the old and
new rows carried by the event; nothing is persisted here.
"""

import logging
from collections.abc import Callable

from pydantic import ValidationError as PydanticValidationError
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import Settings
from app.exceptions.base import ValidationError
from app.schemas.push import PushMessage
from app.schemas.webhook import (
    ChangeEvent,
    ChangeEventType,
    ClaimNotification,
    ClaimNotificationReport,
    ClaimRecord,
    RoleDispatchFailure,
    WebhookResponse,
)
from app.services.directory import DirectoryResolver
from app.services.push_dispatcher import PushDispatcher, PushSender
from app.services.subscription_store import SubscriptionStore
from models.user import UserRole

logger = logging.getLogger(__name__)

SERVICE_LABELS = {
    "fibra_optica": "Fibra Óptica",
    "adsl": "ADSL",
    "tv": "Televisión",
    "telefono": "Teléfono",
}

STATUS_LABELS = {
    "pendiente": "Pendiente",
    "en_proceso": "En Proceso",
    "completado": "Completado",
}

REPORT_FIELDS = {
    UserRole.ADMIN: "admin",
    UserRole.TECHNICIAN: "technicians",
}


def service_label(value: str | None) -> str:
    return SERVICE_LABELS.get(value, value or "")


def status_label(value: str | None) -> str:
    return STATUS_LABELS.get(value, value or "")


def build_insert_notification(record: ClaimRecord) -> ClaimNotification:
    """New claim: everyone (admins and technicians) hears about it."""
    return ClaimNotification(
        title="📋 Nuevo Reclamo",
        body=f"#{record.short_id} - {service_label(record.tipo_servicio)}\n📍 {record.direccion or ''}",
        url=record.link,
        roles=[UserRole.ADMIN, UserRole.TECHNICIAN],
    )


def build_update_notification(old: ClaimRecord, new: ClaimRecord) -> ClaimNotification | None:
    """Status or assignment change; None when neither changed."""
    status_changed = old.estado != new.estado
    technician_changed = old.tecnico_asignado != new.tecnico_asignado
    if not status_changed and not technician_changed:
        return None

    title = "🔄 Reclamo Actualizado"
    body = f"#{new.short_id} - {service_label(new.tipo_servicio)}"

    if status_changed:
        body += f"\n📊 Estado: {status_label(new.estado)}"

    if new.tecnico_asignado and technician_changed:
        title = "🎯 Reclamo Asignado"
        body += "\n👨‍🔧 Se ha asignado un técnico"

    roles = [UserRole.ADMIN]
    if new.tecnico_asignado:
        roles.append(UserRole.TECHNICIAN)

    return ClaimNotification(title=title, body=body, url=new.link, roles=roles)


def _claim(record: dict | None, message: str) -> ClaimRecord:
    if not record:
        raise ValidationError(message)
    try:
        return ClaimRecord.model_validate(record)
    except PydanticValidationError as e:
        errors = [{"loc": list(err["loc"]), "msg": err["msg"]} for err in e.errors()]
        raise ValidationError("Invalid claim record", details={"errors": errors}) from e


def derive_claim_notification(event: ChangeEvent) -> ClaimNotification | None:
    """Derive the notification for a claims-table event, if any.

    Raises:
        ValidationError: If the rows required by the event type are missing
    """
    if event.event_type == ChangeEventType.INSERT:
        return build_insert_notification(_claim(event.new, "Missing new record data for INSERT"))

    if event.event_type == ChangeEventType.UPDATE:
        if not event.old or not event.new:
            raise ValidationError("Missing record data for UPDATE")
        return build_update_notification(
            _claim(event.old, "Missing record data for UPDATE"),
            _claim(event.new, "Missing record data for UPDATE"),
        )

    # Deleted claims are not announced
    return None


class ClaimWebhookService:
    """Handles change-capture deliveries for the claims table.

    The shared secret has been checked by the controller, so there is no
    per-caller authorization here.
    """

    def __init__(
        self,
        db: AsyncSession,
        sender_factory: Callable[[], PushSender],
        settings: Settings,
    ):
        self.db = db
        self.directory = DirectoryResolver(db)
        self.store = SubscriptionStore(db)
        self.sender_factory = sender_factory
        self.claims_table = settings.claims_table

    async def handle(self, event: ChangeEvent) -> WebhookResponse:
        if event.table != self.claims_table:
            logger.info(f"[Webhook] Ignoring event for table: {event.table}")
            return WebhookResponse(
                table=event.table,
                event_type=event.event_type,
                record_id=event.record_id,
                message=f"Ignoring non-{self.claims_table} table: {event.table}",
            )

        logger.info(f"[Webhook] Processing {event.event_type.value} on {event.table} table")
        notification = derive_claim_notification(event)

        report = None
        if notification is None:
            logger.info(f"[Webhook] No notification for claim {event.record_id}")
        else:
            report = await self.dispatch(notification)

        return WebhookResponse(
            table=event.table,
            event_type=event.event_type,
            record_id=event.record_id,
            notifications=report,
        )

    async def dispatch(self, notification: ClaimNotification) -> ClaimNotificationReport:
        """Send to each role in turn; one role failing does not stop the next."""
        dispatcher = PushDispatcher(self.store, self.sender_factory())
        message = PushMessage(title=notification.title, body=notification.body, url=notification.url)
        report = ClaimNotificationReport()

        for role in notification.roles:
            try:
                user_ids = await self.directory.user_ids_for_role(role)
                outcome = await dispatcher.dispatch(user_ids, message)
            except SQLAlchemyError as e:
                await self.db.rollback()
                logger.error(f"[Webhook] Dispatch to role {role.value} failed: {str(e)}")
                outcome = RoleDispatchFailure(error=str(e))
            setattr(report, REPORT_FIELDS[role], outcome)

        return report
