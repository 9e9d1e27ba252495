class ChallengeRotationError(Exception):
    pass


class TransientStoreError(ChallengeRotationError):
    pass


class GeneratorError(ChallengeRotationError):
    pass


class HintUnavailableError(Exception):
    pass
