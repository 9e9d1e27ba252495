from app.economy.subscriptions import SubscriptionEntitlementService

__all__ = ["SubscriptionEntitlementService"]
