# Importing the models registers every table on Base.metadata
from tajiri.models.user import User  # noqa: F401
from tajiri.models.transaction import Transaction  # noqa: F401
from tajiri.models.goal import Goal  # noqa: F401
from tajiri.models.daily_log import DailyLog  # noqa: F401
from tajiri.models.budget import Budget  # noqa: F401
from tajiri.models.notification import Notification  # noqa: F401
