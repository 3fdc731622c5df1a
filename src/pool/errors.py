"""
Exception hierarchy for the Stryktipset Pool

Every error carries a machine-readable code, a `kind` naming the failed rule,
and a details dict with what the caller needs to correct the input.
"""

from typing import Optional, Dict, Any, List


class PoolError(Exception):
    """Base exception for all pool errors."""

    kind = "PoolError"

    def __init__(
        self,
        message: str,
        error_code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None
    ):
        self.message = message
        self.error_code = error_code
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary for UI/CLI output."""
        return {
            "error": self.message,
            "error_code": self.error_code,
            "kind": self.kind,
            "details": self.details
        }


class TicketValidationError(PoolError):
    """Base exception for a rejected ticket. Caller corrects and resubmits."""
    pass


class StructuralMismatchError(TicketValidationError):
    """Raised when a ticket doesn't have one selection per room match."""

    kind = "StructuralMismatch"

    def __init__(self, expected: int, actual: int, **kwargs):
        message = (
            f"Expected {expected} matches but got {actual}. "
            f"Pick at least one outcome for each of the {expected} matches."
        )
        super().__init__(message, error_code="STRUCTURAL_MISMATCH", **kwargs)
        self.details.update({"expected": expected, "actual": actual})


class EmptySelectionError(TicketValidationError):
    """Raised when a match has no outcomes selected."""

    kind = "EmptySelection"

    def __init__(self, match_index: int, **kwargs):
        message = (
            f"Match {match_index + 1} has no selections. "
            f"Pick at least one of 1, X or 2."
        )
        super().__init__(message, error_code="EMPTY_SELECTION", **kwargs)
        self.details["match_index"] = match_index


class InvalidOutcomeError(TicketValidationError):
    """Raised when a selection contains something other than 1, X or 2."""

    kind = "InvalidOutcome"

    def __init__(self, value: Any, match_index: int, **kwargs):
        message = (
            f'Invalid outcome "{value}" in match {match_index + 1}. '
            f"Use only 1, X or 2."
        )
        super().__init__(message, error_code="INVALID_OUTCOME", **kwargs)
        self.details.update({"value": value, "match_index": match_index})


class CostMismatchError(TicketValidationError):
    """Raised when a ticket's cost differs from the room's target cost."""

    kind = "CostMismatch"

    def __init__(self, required: int, actual: int, **kwargs):
        direction = "Remove" if actual > required else "Add"
        message = (
            f"Ticket cost ({actual} kr) must equal target cost ({required} kr). "
            f"{direction} picks until the ticket costs exactly {required} kr."
        )
        super().__init__(message, error_code="COST_MISMATCH", **kwargs)
        self.details.update({"required": required, "actual": actual})


class InfeasibleTargetCostError(PoolError):
    """Raised when the target cost can't be written as 2^a × 3^b."""

    kind = "InfeasibleTargetCost"

    def __init__(self, target_cost: Any, suggestions: Optional[List[int]] = None, **kwargs):
        suggestions = suggestions or []
        message = (
            f"Target cost {target_cost} kr can't be split into doubles and triples "
            f"(it must be 2^a × 3^b). Create a new room with a different target cost"
        )
        if suggestions:
            message += f", e.g. {' or '.join(f'{s} kr' for s in suggestions)}"
        message += "."
        super().__init__(message, error_code="INFEASIBLE_TARGET_COST", **kwargs)
        self.details.update({"target_cost": target_cost, "suggestions": suggestions})


class AllocationCapacityExceededError(PoolError):
    """Raised when there are too few matches to spend the whole target cost."""

    kind = "AllocationCapacityExceeded"

    def __init__(self, required: int, actual: int, match_count: int, **kwargs):
        message = (
            f"Final ticket costs {actual} kr but the target is {required} kr: "
            f"{match_count} matches can't hold all the doubles and triples. "
            f"Lower the target cost or add matches."
        )
        super().__init__(message, error_code="ALLOCATION_CAPACITY_EXCEEDED", **kwargs)
        self.details.update({
            "required": required,
            "actual": actual,
            "match_count": match_count
        })


class RoomNotFoundError(PoolError):
    """Raised when a room id doesn't exist in the store."""

    kind = "RoomNotFound"

    def __init__(self, room_id: str, **kwargs):
        super().__init__(f"Room {room_id} not found", error_code="ROOM_NOT_FOUND", **kwargs)
        self.details["room_id"] = room_id


class RoomClosedError(PoolError):
    """Raised when a room no longer accepts tickets."""

    kind = "RoomClosed"

    def __init__(self, room_id: str, **kwargs):
        super().__init__(
            "Room is no longer accepting tickets",
            error_code="ROOM_CLOSED",
            **kwargs
        )
        self.details["room_id"] = room_id


class DuplicateSubmissionError(PoolError):
    """Raised when the same client submits twice to one room."""

    kind = "DuplicateSubmission"

    def __init__(self, room_id: str, **kwargs):
        super().__init__(
            "You have already submitted a ticket for this room",
            error_code="DUPLICATE_SUBMISSION",
            **kwargs
        )
        self.details["room_id"] = room_id


class DrawClosedError(PoolError):
    """Raised when Svenska Spel has no open draw to bet on."""

    kind = "DrawClosed"

    def __init__(self, **kwargs):
        super().__init__(
            "Stryktipset is closed. Tickets can't be submitted until the next draw opens.",
            error_code="DRAW_CLOSED",
            **kwargs
        )


class RoomConfigurationError(PoolError):
    """Raised when a room can't be created from the given parameters."""

    kind = "RoomConfiguration"

    def __init__(self, message: str, field: Optional[str] = None, **kwargs):
        super().__init__(message, error_code="ROOM_CONFIGURATION_ERROR", **kwargs)
        if field:
            self.details["field"] = field
