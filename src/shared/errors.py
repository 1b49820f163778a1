class QuizEngineError(Exception):
    pass


class ValidationError(QuizEngineError):
    pass


class NotFoundError(QuizEngineError):
    pass


class InvalidOperationError(QuizEngineError):
    pass


class GenerationError(QuizEngineError):
    pass


class PersistenceError(QuizEngineError):
    pass
