"""
Provisioning Service Event Schemas
==================================

Inbound ``order.created`` payloads and the outbound provisioning result.
"""

import json
import uuid
from datetime import datetime, timezone
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Any, Dict, Optional

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    ValidationError,
    field_validator,
    model_validator,
)

from ...core.exceptions import OrderEventDecodeError

# ==============================================
# EVENT TYPE CONSTANTS
# ==============================================

ORDER_CREATED = "order.created"


class ResultType(str, Enum):
    FULFILLED = "fulfilled"
    FAILED = "failed"


def _coerce_identifier(value: Any) -> Any:
    # Producers send numeric ids as well as strings
    if isinstance(value, bool):
        return value
    if isinstance(value, int):
        return str(value)
    if isinstance(value, str):
        return value.strip()
    return value


# ==============================================
# INBOUND: ORDER CREATED
# ==============================================


class OrderView(BaseModel):
    """Normalized order view shared by every inbound wire shape"""

    id: str = Field(min_length=1)
    # Required key; an explicit null resolves to the unknown product type
    product_type: Optional[str]
    amount: Optional[Decimal] = None
    customer_id: Optional[str] = None

    model_config = ConfigDict(extra="ignore", frozen=True)

    @field_validator("id", mode="before")
    @classmethod
    def _coerce_ids(cls, value: Any) -> Any:
        return _coerce_identifier(value)

    @field_validator("customer_id", mode="before")
    @classmethod
    def _lenient_customer_id(cls, value: Any) -> Any:
        # Carried for logging only, an odd value is dropped instead of failing
        value = _coerce_identifier(value)
        return value if isinstance(value, str) else None

    @field_validator("amount", mode="before")
    @classmethod
    def _lenient_amount(cls, value: Any) -> Any:
        if value is None or isinstance(value, bool):
            return None
        try:
            amount = Decimal(str(value))
        except InvalidOperation:
            return None
        return amount if amount.is_finite() else None


class OrderEvent(BaseModel):
    """Canonical ``order.created`` event.

    Two producer shapes are accepted and both end up with the same ``order``
    view:

    * nested: ``{"message_id", "occurred_at", "order": {"id", "product_type", ...}}``
    * flat: ``{"message_id", "task_id", "order_id" | "id", "step_key", "product_type"}``
    """

    message_id: str = Field(min_length=1)
    order: OrderView
    occurred_at: Optional[str] = None
    task_id: Optional[str] = None
    step_key: Optional[str] = None

    model_config = ConfigDict(extra="ignore", frozen=True)

    @model_validator(mode="before")
    @classmethod
    def _normalize_wire_shape(cls, data: Any) -> Any:
        if not isinstance(data, dict) or isinstance(data.get("order"), dict):
            return data

        order_id = data.get("order_id")
        if order_id is None:
            order_id = data.get("id")

        normalized = dict(data)
        order: Dict[str, Any] = {"id": order_id}
        if "product_type" in data:
            order["product_type"] = data["product_type"]
        normalized["order"] = order
        return normalized

    @field_validator("message_id", "task_id", "step_key", mode="before")
    @classmethod
    def _coerce_ids(cls, value: Any) -> Any:
        return _coerce_identifier(value)

    @field_validator("occurred_at", mode="before")
    @classmethod
    def _stringify_timestamp(cls, value: Any) -> Any:
        # Carried for logging only, never parsed
        if value is None or isinstance(value, str):
            return value
        return str(value)

    def log_context(self) -> Dict[str, Any]:
        """Fields attached to every log record about this event"""
        context: Dict[str, Any] = {
            "message_id": self.message_id,
            "order_id": self.order.id,
            "product_type": self.order.product_type,
        }
        if self.task_id:
            context["task_id"] = self.task_id
        if self.step_key:
            context["step_key"] = self.step_key
        return context


def decode_order_event(body: bytes) -> OrderEvent:
    """Parse a raw delivery body into an OrderEvent.

    Raises:
        OrderEventDecodeError: the body is not UTF-8 JSON, not an object, or
            lacks ``message_id``, the order identifier or ``product_type``.
    """
    try:
        payload = json.loads(body)
    except ValueError as e:
        raise OrderEventDecodeError(
            "Order event body is not valid JSON", details={"error": str(e)}
        ) from e

    try:
        return OrderEvent.model_validate(payload)
    except ValidationError as e:
        fields = [
            ".".join(str(part) for part in error["loc"]) or "__root__"
            for error in e.errors()
        ]
        raise OrderEventDecodeError(
            "Order event payload is missing or has invalid fields",
            details={"fields": fields},
        ) from e


# ==============================================
# OUTBOUND: PROVISIONING RESULT
# ==============================================


class ResultOrder(BaseModel):
    """Order snapshot carried on the result event"""

    id: str
    product_type: str
    status: ResultType

    model_config = ConfigDict(use_enum_values=True, frozen=True)


class ResultEvent(BaseModel):
    """Outbound provisioning result correlated with the triggering order event"""

    message_id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    correlation_id: str
    type: ResultType
    occurred_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    order: ResultOrder

    model_config = ConfigDict(use_enum_values=True, frozen=True)

    @model_validator(mode="after")
    def _status_matches_type(self) -> "ResultEvent":
        if self.order.status != self.type:
            raise ValueError("order.status must equal the result type")
        return self

    def to_json_bytes(self) -> bytes:
        return self.model_dump_json().encode("utf-8")


def build_result_event(order_event: OrderEvent, success: bool) -> ResultEvent:
    """Build the result event for one pipeline run"""
    result_type = ResultType.FULFILLED if success else ResultType.FAILED
    return ResultEvent(
        correlation_id=order_event.message_id,
        type=result_type,
        order=ResultOrder(
            id=order_event.order.id,
            product_type=order_event.order.product_type or "",
            status=result_type,
        ),
    )


__all__ = [
    "ORDER_CREATED",
    "ResultType",
    "OrderView",
    "OrderEvent",
    "decode_order_event",
    "ResultOrder",
    "ResultEvent",
    "build_result_event",
]
