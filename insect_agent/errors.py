class InsectAgentError(Exception):
    """Base class for cascade errors."""


class EmptyInputError(InsectAgentError, ValueError):
    """The primary classifier produced no candidates."""


class SecondaryModelError(InsectAgentError):
    """
    The secondary model (VLM) could not produce an answer.
    Wraps timeouts, initialization failures and inference errors.
    """

    def __init__(self, message, cause=None):
        super().__init__(message)
        self.cause = cause
        if cause is not None:
            self.__cause__ = cause
