"""
Error Types

Exception hierarchy shared by the recipe engine.
"""

from inkmix.reason_codes import reason_message, reason_messages


class InkMixError(Exception):
    """Base exception for the recipe engine"""

    pass


class InputError(InkMixError, ValueError):
    """Invalid input (out of range Lab, length mismatch, unknown id, ...)"""

    pass


class InfeasibleError(InkMixError):
    """No acceptable recipe or correction exists.

    The engine itself reports infeasibility as data (see Feasibility);
    this exception is for callers that prefer to raise.
    """

    def __init__(self, reason: str, recommendation: str = "", details=()):
        self.reason = reason
        self.recommendation = recommendation
        self.details = tuple(details)
        message = f"[{reason}] {reason_message(reason)}"
        if self.details:
            message += " " + " ".join(reason_messages(self.details))
        if recommendation:
            message += f" -> {reason_message(recommendation)}"
        super().__init__(message)
