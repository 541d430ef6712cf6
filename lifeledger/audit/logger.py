"""
Audit Logger

DESIGN DECISION: Every change to a money record is logged.
This provides:
1. Complete traceability of payments and budget changes
2. Debugging capability when an overview falls back to empty data
3. User can see history of their records

The audit logger:
- Is async to not block main flow
- Gracefully handles failures (doesn't crash the app if logging fails)
- Supports correlation IDs to trace related events
"""

from typing import Optional
from uuid import UUID, uuid4

import structlog

from lifeledger.models.audit import AuditEvent, AuditEventBuilder, AuditSeverity
from lifeledger.services.storage import AuditStorageInterface


# Configure structlog for local logging
structlog.configure(
    processors=[
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
        structlog.processors.JSONRenderer()
    ],
    wrapper_class=structlog.stdlib.BoundLogger,
    context_class=dict,
    logger_factory=structlog.stdlib.LoggerFactory(),
    cache_logger_on_first_use=True,
)


class AuditLogger:
    """
    Central audit logging service.

    Logs events both to:
    1. Structured local log (for debugging)
    2. Audit storage (for persistence and user visibility)
    """

    def __init__(
        self,
        storage: Optional[AuditStorageInterface] = None,
    ):
        """
        Initialize audit logger.

        Args:
            storage: Storage backend for persistence.
                    If None, only logs locally.
        """
        self._storage = storage
        self._logger = structlog.get_logger("lifeledger.audit")

    async def log(self, event: AuditEvent) -> bool:
        """
        Log an audit event.

        Always logs locally. Persists to storage if available.

        Returns True if storage write succeeded (or no storage configured).
        """
        log_dict = event.to_log_dict()

        if event.severity in (AuditSeverity.ERROR, AuditSeverity.CRITICAL):
            self._logger.error("audit_event", **log_dict)
        elif event.severity == AuditSeverity.WARNING:
            self._logger.warning("audit_event", **log_dict)
        else:
            self._logger.info("audit_event", **log_dict)

        if self._storage:
            try:
                return await self._storage.append_event(event)
            except Exception as e:
                # Log failure but don't raise
                self._logger.error(
                    "audit_storage_failed",
                    error=str(e),
                    event_id=str(event.event_id),
                )
                return False

        return True

    async def log_record_saved(
        self,
        entity_type: str,
        entity_id: UUID,
        name: str,
        amount: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        event = AuditEventBuilder.record_saved(
            entity_type=entity_type,
            entity_id=entity_id,
            name=name,
            amount=amount,
            correlation_id=correlation_id,
        )
        await self.log(event)

    async def log_record_deleted(
        self,
        entity_type: str,
        entity_id: UUID,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        event = AuditEventBuilder.record_deleted(
            entity_type=entity_type,
            entity_id=entity_id,
            correlation_id=correlation_id,
        )
        await self.log(event)

    async def log_save_failed(
        self,
        entity_type: str,
        entity_id: UUID,
        error_message: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log a storage write that did not go through."""
        event = AuditEventBuilder.save_failed(
            entity_type=entity_type,
            entity_id=entity_id,
            error_message=error_message,
            correlation_id=correlation_id,
        )
        await self.log(event)

    async def log_payment_applied(
        self,
        expense_id: UUID,
        payment: str,
        paid_amount: str,
        status: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log a payment that was added to an expense."""
        event = AuditEventBuilder.payment_applied(
            expense_id=expense_id,
            payment=payment,
            paid_amount=paid_amount,
            status=status,
            correlation_id=correlation_id,
        )
        await self.log(event)

    async def log_payment_rejected(
        self,
        expense_id: UUID,
        payment: str,
        reason: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log a payment that failed validation."""
        event = AuditEventBuilder.payment_rejected(
            expense_id=expense_id,
            payment=payment,
            reason=reason,
            correlation_id=correlation_id,
        )
        await self.log(event)

    async def log_payment_status_updated(
        self,
        expense_id: UUID,
        action: str,
        status: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        event = AuditEventBuilder.payment_status_updated(
            expense_id=expense_id,
            action=action,
            status=status,
            correlation_id=correlation_id,
        )
        await self.log(event)

    async def log_next_due_date_advanced(
        self,
        entity_type: str,
        entity_id: UUID,
        next_due_date: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        event = AuditEventBuilder.next_due_date_advanced(
            entity_type=entity_type,
            entity_id=entity_id,
            next_due_date=next_due_date,
            correlation_id=correlation_id,
        )
        await self.log(event)

    async def log_budget_spending_applied(
        self,
        budget_id: UUID,
        expense_id: UUID,
        amount: str,
        status: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log an expense attributed to a budget."""
        event = AuditEventBuilder.budget_spending_applied(
            budget_id=budget_id,
            expense_id=expense_id,
            amount=amount,
            status=status,
            correlation_id=correlation_id,
        )
        await self.log(event)

    async def log_budget_status_updated(
        self,
        budget_id: UUID,
        action: str,
        status: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        event = AuditEventBuilder.budget_status_updated(
            budget_id=budget_id,
            action=action,
            status=status,
            correlation_id=correlation_id,
        )
        await self.log(event)

    async def log_fetch_degraded(
        self,
        category: str,
        error_message: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log a record fetch that failed and was replaced by an empty list."""
        event = AuditEventBuilder.fetch_degraded(
            category=category,
            error_message=error_message,
            correlation_id=correlation_id,
        )
        await self.log(event)

    async def log_health_score_computed(
        self,
        user_id: str,
        currency: str,
        total_score: float,
        health_level: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        event = AuditEventBuilder.health_score_computed(
            user_id=user_id,
            currency=currency,
            total_score=total_score,
            health_level=health_level,
            correlation_id=correlation_id,
        )
        await self.log(event)

    async def log_error(
        self,
        error_type: str,
        error_message: str,
        details: Optional[dict] = None,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log an error."""
        event = AuditEventBuilder.system_error(
            error_type=error_type,
            error_message=error_message,
            details=details,
            correlation_id=correlation_id,
        )
        await self.log(event)


def create_correlation_id() -> UUID:
    """
    Create a new correlation ID for tracking related events.

    Use this at the start of a new user action (e.g., opening the overview).
    Pass it through all subsequent operations.
    """
    return uuid4()
