"""Error taxonomy for snapvcs.

Every failure the core can report is a ``VCSError`` carrying an ``ErrorKind``
and structured context (path, identifier, branch name, underlying cause).
Each kind maps to one fixed user-facing message and one process exit code;
the CLI prints ``error.message`` and exits with ``error.exit_code``.
"""

from enum import Enum
from typing import Dict, Optional

from snapvcs.constants import EXIT_DATA_ERROR, EXIT_SYSTEM_ERROR, EXIT_USER_ERROR


class ErrorKind(str, Enum):
    """Closed set of failure kinds."""

    OBJECT_NOT_FOUND = "object_not_found"
    PATH_OUTSIDE_REPOSITORY = "path_outside_repository"
    FILE_NOT_FOUND = "file_not_found"
    NO_REASON_TO_REMOVE = "no_reason_to_remove"
    EMPTY_MESSAGE = "empty_message"
    NOTHING_TO_COMMIT = "nothing_to_commit"
    BRANCH_EXISTS = "branch_exists"
    STORAGE_FAULT = "storage_fault"
    SERIALIZATION_FAULT = "serialization_fault"
    WORKING_DIRECTORY = "working_directory"
    NOT_A_REPOSITORY = "not_a_repository"
    ALREADY_INITIALIZED = "already_initialized"
    INVALID_BRANCH_NAME = "invalid_branch_name"


MESSAGES: Dict[ErrorKind, str] = {
    ErrorKind.OBJECT_NOT_FOUND: "No commit with that id exists.",
    ErrorKind.PATH_OUTSIDE_REPOSITORY: "Path is outside the repository.",
    ErrorKind.FILE_NOT_FOUND: "File does not exist.",
    ErrorKind.NO_REASON_TO_REMOVE: "No reason to remove the file.",
    ErrorKind.EMPTY_MESSAGE: "Please enter a commit message.",
    ErrorKind.NOTHING_TO_COMMIT: "No changes added to the commit.",
    ErrorKind.BRANCH_EXISTS: "A branch with that name already exists.",
    ErrorKind.STORAGE_FAULT: "Repository storage failure.",
    ErrorKind.SERIALIZATION_FAULT: "Repository data is corrupted.",
    ErrorKind.WORKING_DIRECTORY: "Failed to update the working directory.",
    ErrorKind.NOT_A_REPOSITORY: "Not in an initialized snapvcs directory.",
    ErrorKind.ALREADY_INITIALIZED: (
        "A snapvcs repository already exists in the current directory."
    ),
    ErrorKind.INVALID_BRANCH_NAME: "Invalid branch name.",
}


class VCSError(Exception):
    """Base class for all snapvcs failures.

    Subclasses fix ``kind`` (and, for system faults, ``exit_code``). Context is
    passed as keyword arguments and kept as attributes so callers can inspect
    it without parsing text.

    Attributes:
        kind: The failure kind
        path: Workspace path involved, if any
        identifier: Object identifier involved, if any
        name: Branch or revision name involved, if any
        cause: Underlying exception, if any
    """

    kind: ErrorKind = ErrorKind.STORAGE_FAULT
    exit_code: int = EXIT_USER_ERROR

    def __init__(
        self,
        *,
        path: Optional[str] = None,
        identifier: Optional[str] = None,
        name: Optional[str] = None,
        cause: Optional[BaseException] = None,
    ) -> None:
        self.path = path
        self.identifier = identifier
        self.name = name
        self.cause = cause
        super().__init__(self.kind.value)

    @property
    def message(self) -> str:
        """Fixed, user-facing message for this kind."""
        return MESSAGES[self.kind]

    def __str__(self) -> str:
        context = []
        if self.path is not None:
            context.append(f"path={self.path}")
        if self.identifier is not None:
            context.append(f"identifier={self.identifier}")
        if self.name is not None:
            context.append(f"name={self.name}")
        if self.cause is not None:
            context.append(f"cause={self.cause!r}")
        if not context:
            return self.message
        return f"{self.message} ({', '.join(context)})"


class ObjectNotFoundError(VCSError):
    """Requested blob or commit is absent or corrupt."""

    kind = ErrorKind.OBJECT_NOT_FOUND


class PathOutsideRepositoryError(VCSError):
    """Operation target resolves outside the workspace root."""

    kind = ErrorKind.PATH_OUTSIDE_REPOSITORY


class FileNotFoundInWorkspaceError(VCSError):
    """Operand path does not exist."""

    kind = ErrorKind.FILE_NOT_FOUND


class NoReasonToRemoveError(VCSError):
    """Path is neither staged for addition nor tracked by the current commit."""

    kind = ErrorKind.NO_REASON_TO_REMOVE


class EmptyMessageError(VCSError):
    """Commit message is blank."""

    kind = ErrorKind.EMPTY_MESSAGE


class NothingToCommitError(VCSError):
    """Both staging sets are empty."""

    kind = ErrorKind.NOTHING_TO_COMMIT


class BranchExistsError(VCSError):
    """Branch name is already bound."""

    kind = ErrorKind.BRANCH_EXISTS


class InvalidBranchNameError(VCSError):
    """Branch name cannot be used as a ref file name."""

    kind = ErrorKind.INVALID_BRANCH_NAME


class NotARepositoryError(VCSError):
    """No metadata directory under the workspace root."""

    kind = ErrorKind.NOT_A_REPOSITORY


class AlreadyInitializedError(VCSError):
    """Metadata directory already exists."""

    kind = ErrorKind.ALREADY_INITIALIZED


class StorageFaultError(VCSError):
    """Underlying I/O failure while reading or writing repository data."""

    kind = ErrorKind.STORAGE_FAULT
    exit_code = EXIT_SYSTEM_ERROR


class SerializationFaultError(VCSError):
    """Persisted repository data cannot be decoded."""

    kind = ErrorKind.SERIALIZATION_FAULT
    exit_code = EXIT_DATA_ERROR


class WorkingDirectoryError(VCSError):
    """A working-directory file could not be deleted during commit."""

    kind = ErrorKind.WORKING_DIRECTORY
    exit_code = EXIT_SYSTEM_ERROR
