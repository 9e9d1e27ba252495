from app.economy.subscriptions.service import SubscriptionEntitlementService

__all__ = ["SubscriptionEntitlementService"]
