# tajiri/utils/notifications.py
from typing import List

from tajiri.schemas.notification import NotificationCreate
from tajiri.services.goal_reconciler import DAY_FAILED, DAY_SUCCESS, GoalOutcome

# A success streak is celebrated every this many days
STREAK_MILESTONE_DAYS = 7


def build_goal_notifications(outcome: GoalOutcome) -> List[NotificationCreate]:
    """
    Messages for the user after a goal was reconciled: always a daily update,
    plus a feedback message when the goal was completed, a streak milestone
    was reached, or the day was overspent.
    """
    goal = outcome.goal
    entry = outcome.entry
    state = outcome.update
    name = goal.goal_name

    if entry.status == DAY_SUCCESS:
        title, status = "Daily goal update", "success"
        message = f"🎉 You saved {entry.saved_amount:.2f} towards your {name} goal today! Streak: {state.streak_count} days."
    elif entry.status == DAY_FAILED:
        title, status = "Daily goal update", "alert"
        message = f"⚠️ You overspent today for your {name} goal. Grace days used: {state.grace_days_used}."
    else:
        title, status = "Daily goal update", "info"
        message = f"Daily goal check completed for {name}."

    notifications = [
        NotificationCreate(
            user_id=goal.user_id,
            goal_id=goal.id,
            title=title,
            message=message,
            type="goal_update",
            status=status,
        )
    ]

    feedback = None
    if outcome.completed:
        feedback = ("Goal completed!", "completed",
                    f"🎊 Congrats! You've successfully completed your goal: {name}! Your dedication paid off.")
    elif entry.status == DAY_SUCCESS and state.streak_count > 0 and state.streak_count % STREAK_MILESTONE_DAYS == 0:
        feedback = ("Streak milestone", "success",
                    f"Awesome consistency! You're on a {state.streak_count}-day saving streak for your {name} goal. Keep it up!")
    elif entry.status == DAY_FAILED and state.grace_days_used > 0:
        feedback = ("Back on track tomorrow", "info",
                    f"It looks like you went a little over your daily limit today for your {name} goal. "
                    f"You've used {state.grace_days_used} grace days. Let's get back on track tomorrow!")

    if feedback is not None:
        title, status, message = feedback
        notifications.append(
            NotificationCreate(
                user_id=goal.user_id,
                goal_id=goal.id,
                title=title,
                message=message,
                type="goal_feedback",
                status=status,
            )
        )
    return notifications
