"""
Typed errors for forkwatch operations.

Unit managers, the manifest codec and the version service raise these.
Only the interface layers (control plane, CLI) translate them into
protocol-visible payloads or exit codes.
"""


class ForkwatchError(Exception):
    """Base exception for all forkwatch errors."""

    code = "FORKWATCH_ERROR"

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)

    def __str__(self) -> str:
        return self.message


class ValidationError(ForkwatchError):
    """Malformed version key, unit name, or missing required argument."""

    code = "VALIDATION_ERROR"


class NotFoundError(ForkwatchError):
    """Unknown unit or missing version file."""

    code = "NOT_FOUND"


class ConflictError(ForkwatchError):
    """Target already exists, or the operation would delete the last version."""

    code = "CONFLICT"


class FileIOError(ForkwatchError):
    """A filesystem read, write, rename or delete failed."""

    code = "IO_ERROR"

    def __init__(self, message: str, path: object | None = None) -> None:
        self.path = path
        super().__init__(message)


class ManifestSyntaxError(ValidationError):
    """The manifest file does not match the expected structure."""

    def __init__(self, message: str, offset: int | None = None) -> None:
        self.offset = offset
        if offset is not None:
            message = f"{message} (at offset {offset})"
        super().__init__(message)
