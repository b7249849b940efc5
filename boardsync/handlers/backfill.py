"""
Bulk date backfill.

Back-populates the hire date column from the existing target dates using the
reverse of the date copy rule (day after, exempt label copied as-is). Runs in
resumable chunks: each invocation works until its time budget is close to
spent and hands back a cursor for the next one.

Usage:
    GET /bulk-date-migration                       dry run of the first chunk
    GET /bulk-date-migration?execute=true          execute the first chunk
    GET /bulk-date-migration?execute=true&cursor=X continue from a cursor
"""

import time
from dataclasses import dataclass, field
from typing import Any, Callable
from urllib.parse import quote

from boardsync.logger import get_logger
from boardsync.monday import columns
from boardsync.monday.types import ColumnValue, Item
from boardsync.monday.writer import UpstreamWriter
from boardsync.sync import rules
from boardsync.sync.guard import ConvergenceGuard, GuardState

from .http import Request, Response, json_response, method_not_allowed, preflight_response

logger = get_logger("handlers.backfill")

ALLOW_METHODS = "GET, OPTIONS"

# Cursor meaning "restart from the first page"; monday.com has no cursor for it
START_CURSOR = "start"


@dataclass
class BackfillConfig:
    """
    Backfill settings.

    Attributes:
        page_size: Items per items_page / next_items_page request
        delay_between_writes_ms: Pause between consecutive writes
        time_budget_s: Stop taking new work once this much time has passed
        preview_limit: Planned updates listed in a dry-run report
    """
    board_id: int = 2431480012
    source_column: str = "dup__of_hire_starts"
    target_column: str = "date_mkzzmse7"
    status_column: str = "dup__of_vehicle_"
    exempt_label: str = "Rehearsal"
    direction: int = 1
    page_size: int = 200
    delay_between_writes_ms: int = 100
    time_budget_s: float = 50.0
    preview_limit: int = 20

    @classmethod
    def from_dict(cls, data: dict) -> "BackfillConfig":
        defaults = cls()
        values = {}
        for name, default in vars(defaults).items():
            raw = data.get(name, default)
            if isinstance(default, float):
                values[name] = float(raw)
            elif isinstance(default, int):
                values[name] = int(raw)
            else:
                values[name] = raw
        return cls(**values)


@dataclass
class BackfillReport:
    """Counters and findings for one invocation."""
    execute: bool
    items_fetched: int = 0
    pages_processed: int = 0
    needing_update: int = 0
    already_correct: int = 0
    skipped: int = 0
    invalid: int = 0
    successful: int = 0
    failed: int = 0
    updates: list[dict[str, Any]] = field(default_factory=list)
    failures: list[dict[str, Any]] = field(default_factory=list)
    skipped_items: list[dict[str, Any]] = field(default_factory=list)
    invalid_items: list[dict[str, Any]] = field(default_factory=list)
    next_cursor: str | None = None
    duration_ms: int = 0

    def to_dict(self, preview_limit: int = 20) -> dict[str, Any]:
        has_more = self.next_cursor is not None
        next_url = None
        if has_more:
            mode_param = "true" if self.execute else "false"
            next_url = f"?execute={mode_param}&cursor={quote(self.next_cursor, safe='')}"

        chunk: dict[str, Any] = {
            "itemsFetched": self.items_fetched,
            "pagesProcessed": self.pages_processed,
            "itemsNeedingUpdate": self.needing_update,
            "itemsAlreadyCorrect": self.already_correct,
            "itemsSkipped": self.skipped,
            "itemsInvalid": self.invalid,
            "hasMoreItems": has_more,
            "durationMs": self.duration_ms,
        }
        result: dict[str, Any] = {"chunk": chunk}

        if self.execute:
            result["mode"] = "EXECUTED"
            result["status"] = "MORE TO DO - Run again with cursor" if has_more else "COMPLETE - All items processed"
            chunk["updatesAttempted"] = self.successful + self.failed
            chunk["successful"] = self.successful
            chunk["failed"] = self.failed
            result["failures"] = self.failures
        else:
            result["mode"] = "DRY RUN - No changes made"
            result["instruction"] = "Add ?execute=true to URL to run this chunk"
            result["updatePreview"] = self.updates[:preview_limit]
            result["skippedPreview"] = self.skipped_items[:preview_limit]

        # Unreadable source values are reported in both modes
        result["invalidItems"] = self.invalid_items

        result["hasMoreItems"] = has_more
        result["nextCursor"] = self.next_cursor
        result["nextUrl"] = next_url
        return result


class BackfillRunner:
    """Pages through a board applying the reverse date rule."""

    def __init__(
        self,
        client,
        config: BackfillConfig | None = None,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.client = client
        self.config = config or BackfillConfig()
        self.writer = UpstreamWriter(client)
        self.guard = ConvergenceGuard()
        self.clock = clock
        self.sleep = sleep

    def derive(self, item: Item) -> tuple[dict[str, ColumnValue] | None, str]:
        source = columns.get_date(item, self.config.source_column)
        status = columns.get_status_label(item, self.config.status_column).text
        if source.is_empty:
            return None, status
        target_day = rules.shift_date(
            source.day,
            status,
            exempt_label=self.config.exempt_label,
            direction=self.config.direction,
        )
        return {self.config.target_column: ColumnValue.of_date(target_day)}, status

    def run(self, execute: bool = False, cursor: str | None = None) -> BackfillReport:
        """
        Process pages until the board is exhausted or the time budget is spent.

        Args:
            execute: Write changes (False plans them only)
            cursor: Resume cursor from a previous report

        Returns:
            Report whose next_cursor is None once the whole board is done
        """
        started = self.clock()
        report = BackfillReport(execute=execute)
        page_cursor = None if cursor in (None, "", START_CURSOR) else cursor

        while True:
            items, next_cursor = self.client.fetch_items_page(
                self.config.board_id, self.config.page_size, page_cursor
            )
            report.items_fetched += len(items)

            for item in items:
                # Each run handles at least one item that needs an update; dry runs
                # write nothing, so they only stop at page boundaries
                if execute and report.needing_update and self._out_of_time(started):
                    # Revisiting this page is safe: finished items are skipped as already correct
                    report.next_cursor = page_cursor or START_CURSOR
                    logger.info("backfill.budget_exhausted", item_id=item.id, next_cursor=report.next_cursor)
                    return self._finish(report, started)
                self._process(item, report)

            report.pages_processed += 1
            if next_cursor is None:
                report.next_cursor = None
                return self._finish(report, started)
            if self._out_of_time(started):
                report.next_cursor = next_cursor
                return self._finish(report, started)
            page_cursor = next_cursor

    def _out_of_time(self, started: float) -> bool:
        return self.clock() - started >= self.config.time_budget_s

    def _finish(self, report: BackfillReport, started: float) -> BackfillReport:
        report.duration_ms = int((self.clock() - started) * 1000)
        logger.info(
            "backfill.chunk_done",
            execute=report.execute,
            items_fetched=report.items_fetched,
            successful=report.successful,
            failed=report.failed,
            next_cursor=report.next_cursor,
        )
        return report

    def _process(self, item: Item, report: BackfillReport) -> None:
        derived, status = self.derive(item)
        if derived is None:
            error = columns.date_parse_error(item, self.config.source_column)
            if error:
                report.invalid += 1
                report.invalid_items.append({"itemId": item.id, "name": item.name, "error": error})
                logger.warning("backfill.unparseable_source", item_id=item.id, error=error)
            else:
                report.skipped += 1
                report.skipped_items.append({"itemId": item.id, "name": item.name, "reason": "No source date set"})
            return

        target = self.config.target_column
        current = {target: columns.get_date(item, target)}
        decision = self.guard.evaluate(item, derived, current)
        if decision.state is GuardState.NOT_NEEDED:
            report.already_correct += 1
            return

        report.needing_update += 1
        report.updates.append({
            "itemId": item.id,
            "name": item.name,
            "sourceDate": columns.get_date(item, self.config.source_column).display(),
            "currentTargetDate": current[target].display() or "(empty)",
            "newTargetDate": derived[target].display(),
            "isRehearsal": status == self.config.exempt_label,
            "rule": rules.applied_rule(
                status,
                exempt_label=self.config.exempt_label,
                direction=self.config.direction,
            ),
        })
        if not report.execute:
            return

        if report.successful or report.failed:
            self.sleep(self.config.delay_between_writes_ms / 1000)

        result = self.writer.write(self.config.board_id, item.id, decision.writes)
        if result.success:
            report.successful += 1
        else:
            report.failed += 1
            report.failures.append({"itemId": item.id, "name": item.name, "error": result.error})


class BackfillHandler:
    """HTTP front end for BackfillRunner."""

    def __init__(self, runner: BackfillRunner):
        self.runner = runner

    def handle(self, request: Request) -> Response:
        if request.method == "OPTIONS":
            return preflight_response(ALLOW_METHODS)
        if request.method not in ("GET", "POST"):
            return method_not_allowed(ALLOW_METHODS)

        execute = request.query.get("execute", "").lower() == "true"
        cursor = request.query.get("cursor") or None
        try:
            report = self.runner.run(execute=execute, cursor=cursor)
        except Exception as e:
            logger.error("backfill.failed", error=str(e), error_type=type(e).__name__, exc_info=True)
            return json_response(
                500,
                {
                    "error": str(e),
                    "tip": "If this keeps happening, try again - might be a temporary monday.com issue",
                },
                ALLOW_METHODS,
            )
        return json_response(200, report.to_dict(self.runner.config.preview_limit), ALLOW_METHODS)


def run_until_complete(
    runner: BackfillRunner,
    execute: bool = False,
    cursor: str | None = None,
    max_chunks: int | None = None,
    on_chunk: Callable[[int, BackfillReport], None] | None = None,
) -> list[BackfillReport]:
    """
    Run chunks back to back, feeding each report's cursor into the next run.

    Stops when a report's next_cursor is None or after max_chunks chunks.
    """
    reports: list[BackfillReport] = []
    while max_chunks is None or len(reports) < max_chunks:
        report = runner.run(execute=execute, cursor=cursor)
        reports.append(report)
        if on_chunk is not None:
            on_chunk(len(reports), report)
        if report.next_cursor is None:
            break
        cursor = report.next_cursor
    return reports
