# tajiri/services/goal_reconciler.py
"""
Daily goal reconciliation.

Once per scheduled tick every active goal of every user is settled for the
goal's current local day: today's expenses are compared with the daily
limit, the cumulative goal counters are advanced, and an immutable ledger
entry is written for the day.

The reconciler only talks to its collaborators (user directory, goal store,
transaction query, optional notifier), so it can run against the SQL stores
in production and against in-memory fakes in tests. "Now" is always passed
in as ``reference_time``.
"""
import asyncio
import logging
import uuid
from dataclasses import dataclass, field
from datetime import date, datetime, time, timedelta, timezone
from decimal import Decimal
from typing import List, Optional, Protocol, Sequence
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from tajiri.core.config import settings

logger = logging.getLogger(__name__)

STATUS_ACTIVE = "active"
STATUS_COMPLETED = "completed"

DAY_SUCCESS = "success"
DAY_FAILED = "failed"
DAY_SKIPPED = "skipped"

ZERO = Decimal("0")


class GoalConfigurationError(ValueError):
    """A goal record is missing data the reconciliation needs (limit, start date, zone)."""


class OutOfOrderDayError(Exception):
    """The goal already has a ledger entry for a later day than the one being settled."""


# ────────────────────────────────────────────────────────────────────────────────
# DATA
# ────────────────────────────────────────────────────────────────────────────────
@dataclass(frozen=True)
class GoalSnapshot:
    id: uuid.UUID
    user_id: uuid.UUID
    goal_name: str
    target_amount: Optional[Decimal]
    saved_amount: Decimal
    daily_limit: Optional[Decimal]
    start_date: Optional[date]
    timezone: Optional[str]
    status: str = STATUS_ACTIVE
    streak_count: int = 0
    grace_days_used: int = 0


@dataclass(frozen=True)
class DayWindow:
    """One local calendar day expressed as an inclusive range of UTC instants."""
    local_date: date
    start: datetime
    end: datetime


@dataclass(frozen=True)
class DailyLogEntry:
    log_date: date
    date: datetime
    spent_amount: Decimal
    saved_amount: Decimal
    status: str
    comment: str
    opening_saved_amount: Decimal
    opening_streak_count: int
    opening_grace_days_used: int


@dataclass(frozen=True)
class GoalUpdate:
    saved_amount: Decimal
    streak_count: int
    grace_days_used: int
    status: str
    updated_at: datetime


@dataclass(frozen=True)
class GoalOutcome:
    goal: GoalSnapshot
    window: DayWindow
    entry: DailyLogEntry
    update: GoalUpdate

    @property
    def completed(self) -> bool:
        return self.update.status == STATUS_COMPLETED


@dataclass
class ReconciliationReport:
    users: int = 0
    goals: int = 0
    succeeded: int = 0
    failed: int = 0
    skipped: int = 0
    completed: int = 0
    out_of_order: int = 0
    errors: int = 0
    error_goal_ids: List[str] = field(default_factory=list)

    def record(self, outcome: GoalOutcome) -> None:
        if outcome.entry.status == DAY_SUCCESS:
            self.succeeded += 1
        elif outcome.entry.status == DAY_FAILED:
            self.failed += 1
        else:
            self.skipped += 1
        if outcome.completed:
            self.completed += 1

    def as_dict(self) -> dict:
        return {
            "users": self.users,
            "goals": self.goals,
            "succeeded": self.succeeded,
            "failed": self.failed,
            "skipped": self.skipped,
            "completed": self.completed,
            "out_of_order": self.out_of_order,
            "errors": self.errors,
            "error_goal_ids": list(self.error_goal_ids),
        }


# ────────────────────────────────────────────────────────────────────────────────
# COLLABORATORS
# ────────────────────────────────────────────────────────────────────────────────
class UserDirectory(Protocol):
    async def list_users(self) -> Sequence[uuid.UUID]: ...


class TransactionQuery(Protocol):
    async def sum_expenses(self, user_id: uuid.UUID, start: datetime, end: datetime) -> Decimal: ...


class GoalStore(Protocol):
    async def list_active_goals(self, user_id: uuid.UUID) -> Sequence[GoalSnapshot]: ...

    async def get_daily_log(self, goal_id: uuid.UUID, log_date: date) -> Optional[DailyLogEntry]: ...

    async def update_goal(self, goal_id: uuid.UUID, update: GoalUpdate) -> None: ...

    async def put_daily_log(self, goal_id: uuid.UUID, log_date: date, entry: DailyLogEntry) -> None: ...

    async def latest_log_date(self, goal_id: uuid.UUID) -> Optional[date]: ...

    async def claim_notification(self, goal_id: uuid.UUID, log_date: date, claimed_at: datetime) -> bool: ...


class GoalNotifier(Protocol):
    async def notify(self, outcome: GoalOutcome) -> None: ...


# ────────────────────────────────────────────────────────────────────────────────
# PURE HELPERS
# ────────────────────────────────────────────────────────────────────────────────
def as_utc(moment: datetime) -> datetime:
    """Treat naive datetimes as UTC and return an aware UTC datetime."""
    if moment.tzinfo is None:
        return moment.replace(tzinfo=timezone.utc)
    return moment.astimezone(timezone.utc)


def resolve_zone(tz_name: Optional[str], default: str) -> ZoneInfo:
    name = tz_name or default
    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError) as e:
        raise GoalConfigurationError(f"unknown timezone {name!r}") from e


def resolve_day_window(reference_time: datetime, zone: ZoneInfo) -> DayWindow:
    """
    Local day containing ``reference_time`` in ``zone``.

    ``end`` is 1 ms before the next local midnight, so on DST transition days
    the window is 23 or 25 hours long.
    """
    local_now = as_utc(reference_time).astimezone(zone)
    local_date = local_now.date()
    day_start = datetime.combine(local_date, time.min, tzinfo=zone)
    next_start = datetime.combine(local_date + timedelta(days=1), time.min, tzinfo=zone)
    day_end = next_start - timedelta(milliseconds=1)
    return DayWindow(
        local_date=local_date,
        start=day_start.astimezone(timezone.utc),
        end=day_end.astimezone(timezone.utc),
    )


def to_decimal(value) -> Decimal:
    if value is None:
        return ZERO
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def validate_goal(goal: GoalSnapshot) -> None:
    if goal.daily_limit is None or to_decimal(goal.daily_limit) <= 0:
        raise GoalConfigurationError("daily_limit is missing or not positive")
    if goal.start_date is None:
        raise GoalConfigurationError("start_date is missing")
    if goal.target_amount is None or to_decimal(goal.target_amount) <= 0:
        raise GoalConfigurationError("target_amount is missing or not positive")


def apply_daily_outcome(
    goal: GoalSnapshot,
    window: DayWindow,
    spent_today: Decimal,
    updated_at: datetime,
    previous_entry: Optional[DailyLogEntry] = None,
) -> GoalOutcome:
    """
    Build the next goal state and the ledger entry for one local day.

    When ``previous_entry`` exists the day was already applied once; its
    opening counters are used as the starting state so a replay gives the
    same result instead of crediting the day twice.
    """
    validate_goal(goal)
    daily_limit = to_decimal(goal.daily_limit)
    target_amount = to_decimal(goal.target_amount)
    spent_today = to_decimal(spent_today)

    if previous_entry is not None:
        opening_saved = to_decimal(previous_entry.opening_saved_amount)
        opening_streak = previous_entry.opening_streak_count
        opening_grace = previous_entry.opening_grace_days_used
    else:
        opening_saved = to_decimal(goal.saved_amount)
        opening_streak = goal.streak_count or 0
        opening_grace = goal.grace_days_used or 0

    is_first_day = goal.start_date == window.local_date
    streak = opening_streak
    grace = opening_grace

    if spent_today == 0 and is_first_day:
        # Creation day with no spending yet: nothing to credit or penalise
        saved_today = ZERO
        day_status = DAY_SKIPPED
        comment = "First day of the goal, nothing to reconcile yet."
    elif spent_today <= daily_limit:
        saved_today = daily_limit - spent_today
        day_status = DAY_SUCCESS
        streak = opening_streak + 1
        comment = f"Well done, {saved_today:.2f} saved!"
    else:
        saved_today = ZERO
        day_status = DAY_FAILED
        streak = 0
        grace = opening_grace + 1
        comment = f"Overspent by {spent_today - daily_limit:.2f}."

    new_saved = opening_saved + saved_today
    new_status = STATUS_COMPLETED if new_saved >= target_amount else STATUS_ACTIVE

    entry = DailyLogEntry(
        log_date=window.local_date,
        date=window.start,
        spent_amount=spent_today,
        saved_amount=saved_today,
        status=day_status,
        comment=comment,
        opening_saved_amount=opening_saved,
        opening_streak_count=opening_streak,
        opening_grace_days_used=opening_grace,
    )
    update = GoalUpdate(
        saved_amount=new_saved,
        streak_count=streak,
        grace_days_used=grace,
        status=new_status,
        updated_at=updated_at,
    )
    return GoalOutcome(goal=goal, window=window, entry=entry, update=update)


# ────────────────────────────────────────────────────────────────────────────────
# RECONCILER
# ────────────────────────────────────────────────────────────────────────────────
class GoalReconciler:
    def __init__(
        self,
        users: UserDirectory,
        goals: GoalStore,
        transactions: TransactionQuery,
        notifier: Optional[GoalNotifier] = None,
        default_timezone: Optional[str] = None,
        concurrency: Optional[int] = None,
        goal_timeout: Optional[float] = None,
    ):
        self.users = users
        self.goals = goals
        self.transactions = transactions
        self.notifier = notifier
        self.default_timezone = default_timezone or settings.DEFAULT_TIMEZONE
        self.concurrency = concurrency or settings.GOAL_PROCESSING_CONCURRENCY
        self.goal_timeout = goal_timeout if goal_timeout is not None else settings.GOAL_PROCESSING_TIMEOUT_SECONDS

    async def reconcile(self, reference_time: Optional[datetime] = None) -> ReconciliationReport:
        """
        Settle every active goal for its local "today" at ``reference_time``.

        Errors on a single goal (or on listing one user's goals) are logged and
        counted; only a failure to list users propagates.
        """
        reference_time = as_utc(reference_time or datetime.now(timezone.utc))
        logger.info(f"Running daily goal processing at {reference_time.isoformat()}...")
        report = ReconciliationReport()

        user_ids = await self.users.list_users()
        report.users = len(user_ids)

        work: List[GoalSnapshot] = []
        for user_id in user_ids:
            try:
                work.extend(await self.goals.list_active_goals(user_id))
            except Exception as e:
                report.errors += 1
                logger.error(f"Could not list active goals for user {user_id}, skipping user: {str(e)}")
        report.goals = len(work)

        semaphore = asyncio.Semaphore(self.concurrency)
        await asyncio.gather(
            *(self._reconcile_guarded(goal, reference_time, semaphore, report) for goal in work)
        )

        logger.info(
            f"Daily goal processing finished: {report.goals} goals for {report.users} users, "
            f"{report.succeeded} success, {report.failed} failed, {report.skipped} skipped, "
            f"{report.completed} completed, {report.out_of_order} out of order, {report.errors} errors."
        )
        return report

    async def _reconcile_guarded(
        self,
        goal: GoalSnapshot,
        reference_time: datetime,
        semaphore: asyncio.Semaphore,
        report: ReconciliationReport,
    ) -> None:
        async with semaphore:
            try:
                outcome = await asyncio.wait_for(
                    self.reconcile_goal(goal, reference_time),
                    timeout=self.goal_timeout,
                )
                report.record(outcome)
                return
            except OutOfOrderDayError as e:
                report.out_of_order += 1
                logger.warning(f"Not settling goal {goal.id} for user {goal.user_id}: {str(e)}")
                return
            except GoalConfigurationError as e:
                logger.error(f"Skipping misconfigured goal {goal.id} for user {goal.user_id}: {str(e)}")
            except asyncio.TimeoutError:
                logger.error(f"Timed out after {self.goal_timeout}s reconciling goal {goal.id} for user {goal.user_id}")
            except Exception:
                logger.exception(f"Failed to reconcile goal {goal.id} for user {goal.user_id}")
        report.errors += 1
        report.error_goal_ids.append(str(goal.id))

    async def reconcile_goal(self, goal: GoalSnapshot, reference_time: datetime) -> GoalOutcome:
        """
        Settle one goal for its local day at ``reference_time``.

        Only the latest ledger day may be re-settled: rewinding the goal to the
        opening counters of an older day would discard every later day, so
        that case raises ``OutOfOrderDayError`` and writes nothing.
        """
        validate_goal(goal)
        reference_time = as_utc(reference_time)
        zone = resolve_zone(goal.timezone, self.default_timezone)
        window = resolve_day_window(reference_time, zone)

        latest = await self.goals.latest_log_date(goal.id)
        if latest is not None and latest > window.local_date:
            raise OutOfOrderDayError(f"{window.local_date} is before the last settled day {latest}")

        spent_today = to_decimal(
            await self.transactions.sum_expenses(goal.user_id, window.start, window.end)
        )
        previous_entry = await self.goals.get_daily_log(goal.id, window.local_date)
        outcome = apply_daily_outcome(goal, window, spent_today, reference_time, previous_entry)

        # Ledger first: if the goal update fails, a replay finds the entry's opening counters
        await self.goals.put_daily_log(goal.id, window.local_date, outcome.entry)
        await self.goals.update_goal(goal.id, outcome.update)

        if outcome.entry.status == DAY_FAILED:
            logger.warning(
                f"User {goal.user_id} overspent by {spent_today - to_decimal(goal.daily_limit):.2f} "
                f"for goal {goal.id}. Grace days used: {outcome.update.grace_days_used}"
            )
        else:
            logger.info(
                f"Goal {goal.id} of user {goal.user_id} on {window.local_date}: {outcome.entry.status}, "
                f"saved {outcome.entry.saved_amount:.2f}. Streak: {outcome.update.streak_count}"
            )

        if self.notifier is not None:
            await self._notify_once(outcome, reference_time)

        return outcome

    async def _notify_once(self, outcome: GoalOutcome, reference_time: datetime) -> None:
        # The claim is taken after the goal update, so a run that died before
        # updating the goal leaves the day unclaimed for the repairing run.
        goal = outcome.goal
        try:
            claimed = await self.goals.claim_notification(goal.id, outcome.window.local_date, reference_time)
            if claimed:
                await self.notifier.notify(outcome)
        except Exception as e:
            logger.warning(f"Goal notification failed for goal {goal.id}: {str(e)}")
