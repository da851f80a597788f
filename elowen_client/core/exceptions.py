class ElowenError(Exception):
    """Base class for every error raised by elowen_client."""


class LayoutError(ElowenError, ValueError):
    """Account buffer is too short or malformed for the requested layout."""


class InvalidCurrency(ElowenError, ValueError):
    """Currency (or its decimals) is not known to the program."""


class DivisionByZero(ElowenError, ZeroDivisionError):
    """LP supply or a pool reserve is zero."""


class InstructionDecodeError(ElowenError, ValueError):
    """Instruction data does not match any instruction of the program."""


class DetailNotFound(ElowenError, LookupError):
    """A side effect required to describe a transaction is missing."""


class ClassificationAmbiguous(ElowenError):
    """More than one inner instruction satisfies the same matching rule."""
