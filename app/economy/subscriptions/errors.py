class SubscriptionError(Exception):
    pass


class SubscriptionPayloadError(SubscriptionError):
    pass
