"""
Audit Models for Life Ledger

Every change to a money record is logged for audit purposes.
This provides:
1. Traceability of payments and status changes
2. Debugging information when an overview degrades
3. A history the user can inspect

DESIGN DECISION: Audit logs are append-only. We never delete or modify them.
"""

import json
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, Field


class AuditEventType(str, Enum):
    """Types of events we audit."""
    # Persistence
    RECORD_SAVED = "record_saved"
    RECORD_DELETED = "record_deleted"
    SAVE_FAILED = "save_failed"

    # Payment ledger
    PAYMENT_APPLIED = "payment_applied"
    PAYMENT_REJECTED = "payment_rejected"
    PAYMENT_STATUS_UPDATED = "payment_status_updated"
    NEXT_DUE_DATE_ADVANCED = "next_due_date_advanced"

    # Budgets
    BUDGET_SPENDING_APPLIED = "budget_spending_applied"
    BUDGET_STATUS_UPDATED = "budget_status_updated"

    # Overview
    FETCH_DEGRADED = "fetch_degraded"
    HEALTH_SCORE_COMPUTED = "health_score_computed"

    # System events
    SYSTEM_ERROR = "system_error"


class AuditSeverity(str, Enum):
    """Severity level for audit events."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class AuditEvent(BaseModel):
    """
    A single audit event.

    Every significant action creates one of these.
    """

    # Identity
    event_id: UUID = Field(
        default_factory=uuid4,
        description="Unique event identifier"
    )
    timestamp: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        description="When the event occurred (UTC)"
    )

    # Event classification
    event_type: AuditEventType = Field(
        ...,
        description="Type of event"
    )
    severity: AuditSeverity = Field(
        default=AuditSeverity.INFO,
        description="Event severity"
    )

    # Context - what entity is this about?
    entity_type: Optional[str] = Field(
        default=None,
        description="Type of entity (e.g., 'expense', 'income', 'budget')"
    )
    entity_id: Optional[UUID] = Field(
        default=None,
        description="ID of the entity this event relates to"
    )

    # Correlation - for tracking related events
    correlation_id: Optional[UUID] = Field(
        default=None,
        description="ID to correlate related events (e.g., one overview request)"
    )

    description: str = Field(
        ...,
        max_length=500,
        description="Human-readable description of what happened"
    )
    details: dict[str, Any] = Field(
        default_factory=dict,
        description="Additional event-specific data"
    )

    # Error information (if applicable)
    error_code: Optional[str] = None
    error_message: Optional[str] = None

    is_user_action: bool = Field(
        default=False,
        description="Was this triggered by a user action?"
    )

    def to_log_dict(self) -> dict:
        """
        Convert to a dictionary suitable for structured logging.
        """
        return {
            "event_id": str(self.event_id),
            "timestamp": self.timestamp.isoformat(),
            "event_type": self.event_type.value,
            "severity": self.severity.value,
            "entity_type": self.entity_type,
            "entity_id": str(self.entity_id) if self.entity_id else None,
            "correlation_id": str(self.correlation_id) if self.correlation_id else None,
            "description": self.description,
            "details": self.details,
            "error_code": self.error_code,
            "error_message": self.error_message,
            "is_user_action": self.is_user_action,
        }

    def to_sheets_row(self) -> list:
        """
        Convert to a row suitable for Google Sheets storage.

        Returns columns in order:
        [event_id, timestamp, event_type, severity, entity_type, entity_id,
         correlation_id, description, details_json, error_message, is_user_action]
        """
        return [
            str(self.event_id),
            self.timestamp.isoformat(),
            self.event_type.value,
            self.severity.value,
            self.entity_type or "",
            str(self.entity_id) if self.entity_id else "",
            str(self.correlation_id) if self.correlation_id else "",
            self.description,
            json.dumps(self.details) if self.details else "",
            self.error_message or "",
            str(self.is_user_action),
        ]


class AuditEventBuilder:
    """
    Helper class to build audit events with common patterns.

    Usage:
        event = AuditEventBuilder.record_saved("expense", expense.id, ...)
        event = AuditEventBuilder.fetch_degraded("budgets", str(exc))
    """

    @staticmethod
    def record_saved(
        entity_type: str,
        entity_id: UUID,
        name: str,
        amount: str,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.RECORD_SAVED,
            entity_type=entity_type,
            entity_id=entity_id,
            correlation_id=correlation_id,
            description=f"{entity_type.capitalize()} saved: {name} - {amount}",
            details={
                "name": name,
                "amount": amount,
            },
        )

    @staticmethod
    def record_deleted(
        entity_type: str,
        entity_id: UUID,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.RECORD_DELETED,
            entity_type=entity_type,
            entity_id=entity_id,
            correlation_id=correlation_id,
            description=f"{entity_type.capitalize()} removed",
            is_user_action=True,
        )

    @staticmethod
    def save_failed(
        entity_type: str,
        entity_id: UUID,
        error_message: str,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SAVE_FAILED,
            severity=AuditSeverity.ERROR,
            entity_type=entity_type,
            entity_id=entity_id,
            correlation_id=correlation_id,
            description=f"Failed to save {entity_type}",
            error_message=error_message,
        )

    @staticmethod
    def payment_applied(
        expense_id: UUID,
        payment: str,
        paid_amount: str,
        status: str,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.PAYMENT_APPLIED,
            entity_type="expense",
            entity_id=expense_id,
            correlation_id=correlation_id,
            description=f"Payment of {payment} applied, expense is now {status}",
            details={
                "payment": payment,
                "paid_amount": paid_amount,
                "payment_status": status,
            },
            is_user_action=True,
        )

    @staticmethod
    def payment_rejected(
        expense_id: UUID,
        payment: str,
        reason: str,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.PAYMENT_REJECTED,
            severity=AuditSeverity.WARNING,
            entity_type="expense",
            entity_id=expense_id,
            correlation_id=correlation_id,
            description=f"Payment of {payment} rejected",
            error_message=reason,
            details={
                "payment": payment,
            },
            is_user_action=True,
        )

    @staticmethod
    def payment_status_updated(
        expense_id: UUID,
        action: str,
        status: str,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.PAYMENT_STATUS_UPDATED,
            entity_type="expense",
            entity_id=expense_id,
            correlation_id=correlation_id,
            description=f"Expense {action}, status is now {status}",
            details={
                "action": action,
                "payment_status": status,
            },
            is_user_action=True,
        )

    @staticmethod
    def next_due_date_advanced(
        entity_type: str,
        entity_id: UUID,
        next_due_date: str,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.NEXT_DUE_DATE_ADVANCED,
            entity_type=entity_type,
            entity_id=entity_id,
            correlation_id=correlation_id,
            description=f"Next due date advanced to {next_due_date}",
            details={
                "next_due_date": next_due_date,
            },
        )

    @staticmethod
    def budget_spending_applied(
        budget_id: UUID,
        expense_id: UUID,
        amount: str,
        status: str,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.BUDGET_SPENDING_APPLIED,
            entity_type="budget",
            entity_id=budget_id,
            correlation_id=correlation_id,
            description=f"Spending of {amount} attributed, budget is {status}",
            details={
                "expense_id": str(expense_id),
                "amount": amount,
                "status": status,
            },
        )

    @staticmethod
    def budget_status_updated(
        budget_id: UUID,
        action: str,
        status: str,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.BUDGET_STATUS_UPDATED,
            entity_type="budget",
            entity_id=budget_id,
            correlation_id=correlation_id,
            description=f"Budget {action}, status is now {status}",
            details={
                "action": action,
                "status": status,
            },
            is_user_action=True,
        )

    @staticmethod
    def fetch_degraded(
        category: str,
        error_message: str,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.FETCH_DEGRADED,
            severity=AuditSeverity.WARNING,
            entity_type=category,
            correlation_id=correlation_id,
            description=f"Fetching {category} failed, using empty result",
            error_message=error_message,
            details={
                "category": category,
            },
        )

    @staticmethod
    def health_score_computed(
        user_id: str,
        currency: str,
        total_score: float,
        health_level: str,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.HEALTH_SCORE_COMPUTED,
            entity_type="overview",
            correlation_id=correlation_id,
            description=f"Financial health {total_score:.0f}/100 ({health_level})",
            details={
                "user_id": user_id,
                "currency": currency,
                "total_score": total_score,
                "health_level": health_level,
            },
        )

    @staticmethod
    def system_error(
        error_type: str,
        error_message: str,
        details: Optional[dict] = None,
        correlation_id: Optional[UUID] = None
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SYSTEM_ERROR,
            severity=AuditSeverity.ERROR,
            description=f"System error: {error_type}",
            error_message=error_message,
            details=details or {},
            correlation_id=correlation_id,
        )
