from app.db.repo.challenge_completions_repo import ChallengeCompletionsRepo
from app.db.repo.challenges_repo import ChallengesRepo
from app.db.repo.subscription_entitlements_repo import SubscriptionEntitlementsRepo
from app.db.repo.subscription_notifications_repo import SubscriptionNotificationsRepo
from app.db.repo.user_stats_repo import UserStatsRepo
