# lotus_backend/core/errors.py
"""Error taxonomy of the rewards engine.

Infrastructure errors are transient or unexpected failures of the store and
propagate as exceptions. Business-rule errors are expected, user-facing
outcomes; public engine operations hand them back inside a ``Result``.
"""

from typing import Any, Dict, Optional


class EngineError(Exception):
    code = "engine_error"
    status_code = 500
    default_message = "Internal engine error"

    def __init__(self, message: Optional[str] = None, **details: Any):
        self.message = message or self.default_message
        self.details = details
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"code": self.code, "message": self.message}
        if self.details:
            data["details"] = self.details
        return data


# ----------------------------
# Infrastructure
# ----------------------------
class InfrastructureError(EngineError):
    code = "infrastructure_error"


class DatabaseConnectionError(InfrastructureError, ConnectionError):
    code = "connection_error"
    status_code = 503
    default_message = "Database connection failed"


class QueryError(InfrastructureError):
    code = "query_error"
    default_message = "Database query failed"


# ----------------------------
# Business rules
# ----------------------------
class BusinessRuleError(EngineError):
    code = "business_rule"
    status_code = 400
    default_message = "Request violates a business rule"


class ValidationError(BusinessRuleError):
    code = "validation_error"
    default_message = "Invalid input"


class NotFoundError(BusinessRuleError):
    code = "not_found"
    status_code = 404
    default_message = "Resource not found"


class ItemNotFoundError(NotFoundError):
    code = "item_not_found"
    default_message = "Item not found"


class RuleNotFoundError(NotFoundError):
    code = "rule_not_found"
    default_message = "Exchange rule not found"


class ActivityNotFoundError(NotFoundError):
    code = "activity_not_found"
    default_message = "Activity not found"


class InsufficientBalanceError(BusinessRuleError):
    code = "insufficient_balance"

    def __init__(
        self,
        item_id: str,
        item_name: Optional[str],
        required: int,
        available: int,
    ):
        self.item_id = item_id
        self.item_name = item_name
        self.required = required
        self.available = available
        self.shortfall = required - available
        label = item_name or item_id
        super().__init__(
            f"Insufficient {label}: need {required}, have {available}",
            item_id=item_id,
            item_name=item_name,
            required=required,
            available=available,
            shortfall=self.shortfall,
        )


class ItemNotUsableError(BusinessRuleError):
    code = "item_not_usable"
    default_message = "Item cannot be used"


class AlreadyCheckedInError(BusinessRuleError):
    code = "already_checked_in"
    default_message = "Already checked in today, come back tomorrow"


class RuleInactiveError(BusinessRuleError):
    code = "rule_inactive"
    default_message = "Exchange rule is not active"


class ActivityInactiveError(BusinessRuleError):
    code = "activity_inactive"
    default_message = "Activity is not active"


class DuplicateRuleError(BusinessRuleError):
    code = "duplicate_rule"
    status_code = 409
    default_message = "An exchange rule for this item pair already exists"


class ActivityInUseError(BusinessRuleError):
    code = "activity_in_use"
    status_code = 409
    default_message = "Activity has user records; deactivate it instead"
