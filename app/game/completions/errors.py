class CompletionError(Exception):
    pass


class CompletionValidationError(CompletionError):
    def __init__(self, code: str, message: str) -> None:
        super().__init__(message)
        self.code = code
        self.message = message
