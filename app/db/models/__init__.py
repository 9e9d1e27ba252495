from app.db.models.challenge_completions import ChallengeCompletion
from app.db.models.daily_challenges import DailyChallenge
from app.db.models.subscription_entitlements import SubscriptionEntitlement
from app.db.models.subscription_notifications import SubscriptionNotification
from app.db.models.user_stats import UserStats

__all__ = [
    "ChallengeCompletion",
    "DailyChallenge",
    "SubscriptionEntitlement",
    "SubscriptionNotification",
    "UserStats",
]
