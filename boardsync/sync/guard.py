"""
Convergence guard.

Decides, per invocation, whether derived column values need writing and
whether the write would re-fire the webhook that triggered it. Every decision
is made from the item's current persisted state; nothing is remembered
between calls.
"""

from dataclasses import dataclass, field, replace
from enum import Enum

from boardsync.logger import get_logger
from boardsync.monday.types import ColumnValue, Item

logger = get_logger("sync.guard")


class GuardState(Enum):
    """Outcome of one guard evaluation."""
    NOT_NEEDED = "not_needed"
    NEEDS_WRITE = "needs_write"
    LOOP_RISK = "loop_risk"
    WRITE_PERFORMED = "write_performed"


@dataclass
class GuardDecision:
    """
    What to do for one item.

    Attributes:
        state: Guard state
        writes: Column id -> value to persist (empty unless NEEDS_WRITE or
            WRITE_PERFORMED)
        reason: Short human-readable explanation, echoed in responses
    """
    state: GuardState
    writes: dict[str, ColumnValue] = field(default_factory=dict)
    reason: str = ""

    @property
    def should_write(self) -> bool:
        return self.state is GuardState.NEEDS_WRITE


def marker_value(derived: dict[str, ColumnValue]) -> ColumnValue:
    """
    Idempotency marker for a set of derived values.

    A deterministic text rendering of every target and its value, so the
    marker matches only when this exact derivation has been written before.
    """
    parts = [f"{column_id}={derived[column_id].display()}" for column_id in sorted(derived)]
    return ColumnValue.of_text(";".join(parts))


class ConvergenceGuard:
    """
    Write/skip decision for derived column values.

    When a target column is also one of the columns whose change fires the
    webhook, writing it re-delivers the event. With a marker column
    configured, the marker (set only by this write) decides: once it matches
    the current derivation the invocation stops with LOOP_RISK, whatever the
    visible target says.

    Example:
        guard = ConvergenceGuard({"date_mkzzmse7", "dup__of_hire_starts"}, marker_column="text_sync")
        decision = guard.evaluate(item, {"dup__of_hire_starts": derived}, current)
        if decision.should_write:
            writer.write(board_id, item.id, decision.writes)
    """

    def __init__(self, trigger_columns=(), marker_column: str | None = None):
        """
        Args:
            trigger_columns: Column ids whose change fires this webhook
            marker_column: Text column only ever written by this automation
        """
        self.trigger_columns = frozenset(trigger_columns)
        self.marker_column = marker_column

    def overlaps(self, derived: dict[str, ColumnValue]) -> bool:
        return any(column_id in self.trigger_columns for column_id in derived)

    def evaluate(
        self,
        item: Item,
        derived: dict[str, ColumnValue] | None,
        current: dict[str, ColumnValue],
    ) -> GuardDecision:
        """
        Compare derived values with the item's current values.

        Args:
            item: Item being processed (for logging)
            derived: Target column id -> derived value; None when the source
                value could not be determined
            current: Column id -> current value for every target and, when
                configured, the marker column; missing ids count as empty

        Returns:
            NOT_NEEDED, NEEDS_WRITE or LOOP_RISK decision
        """
        if derived is None:
            return GuardDecision(GuardState.NOT_NEEDED, reason="nothing to do")

        def current_of(column_id: str) -> ColumnValue:
            return current.get(column_id) or ColumnValue.empty()

        differing = {
            column_id: value
            for column_id, value in derived.items()
            if current_of(column_id) != value
        }

        if self.marker_column and self.overlaps(derived):
            expected_marker = marker_value(derived)
            if current_of(self.marker_column) == expected_marker:
                logger.info(
                    "guard.loop_risk",
                    item_id=item.id,
                    marker_column=self.marker_column,
                    targets_match=not differing,
                )
                return GuardDecision(GuardState.LOOP_RISK, reason="already synced (marker matches)")

            differing[self.marker_column] = expected_marker
            return GuardDecision(
                GuardState.NEEDS_WRITE,
                writes=differing,
                reason="write targets and marker",
            )

        if not differing:
            return GuardDecision(GuardState.NOT_NEEDED, reason="already up to date")

        return GuardDecision(GuardState.NEEDS_WRITE, writes=differing, reason="values differ")


def mark_written(decision: GuardDecision) -> GuardDecision:
    """Transition a NEEDS_WRITE decision to WRITE_PERFORMED."""
    if decision.state is not GuardState.NEEDS_WRITE:
        raise ValueError(f"cannot mark {decision.state.value} decision as written")
    return replace(decision, state=GuardState.WRITE_PERFORMED, reason="written")
