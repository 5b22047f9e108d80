class QAServiceError(Exception):
    """Base class for errors raised inside the QA service."""


class AIGatewayError(QAServiceError):
    """Raised when the AI gateway is unconfigured, fails, or returns an unusable answer."""


class UnknownCalculatorError(QAServiceError, ValueError):
    """Raised when a calculator tag does not name a registered calculator."""
