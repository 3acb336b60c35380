"""Error taxonomy for the suggestion session."""


class SpeakAssistError(Exception):
    """Base class for session errors."""


class StaleFragment(SpeakAssistError):
    """Raised when a recognition fragment arrives behind a finalized or newer utterance."""

    def __init__(self, sequence_index: int, expected: int) -> None:
        super().__init__(f"fragment {sequence_index} is stale, lowest accepted index is {expected}")
        self.sequence_index = sequence_index
        self.expected = expected


class PermissionDenied(SpeakAssistError):
    """Raised when microphone access could not be acquired."""


class RecognitionError(SpeakAssistError):
    """Raised for recognition failures other than a denied permission."""


class RequestFailure(SpeakAssistError):
    """Raised by completion backends for transport or service failures."""


class MalformedResponse(SpeakAssistError):
    """Raised when a completion response cannot be turned into a suggestion."""


class StaleResponse(SpeakAssistError):
    """Raised when a response belongs to a session generation that is no longer current."""
