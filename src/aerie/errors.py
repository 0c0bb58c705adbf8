class AerieError(Exception):
    """Base class for errors raised by the exam service."""


class InvalidSlotIndex(AerieError, IndexError):
    def __init__(self, index: int, total: int):
        super().__init__(f"Slot {index} is outside 0..{total - 1}")
        self.index = index
        self.total = total


class ConfigurationMissing(AerieError):
    """The generative-AI backend has no usable credentials."""


class QuestionFormatError(AerieError, ValueError):
    """A generated or imported question does not have a consistent shape."""


class QuestionBankExhausted(AerieError):
    """The static bank cannot supply a full test."""


class EmptyInteractionLog(AerieError):
    pass


class EmptyModelResponse(AerieError):
    """The model answered without any text."""


class SetupAbandoned(AerieError):
    """A newer setup (or a cancel) replaced the one that just finished."""
