"""Custom exceptions for genoprot."""


class GenoprotError(Exception):
    """Base exception for all genoprot errors."""

    pass


class ConfigurationError(GenoprotError):
    """Raised when configuration is invalid, incompatible or unsupported."""

    pass


class MissingInputError(GenoprotError):
    """Raised when a stage is about to run but one of its inputs is absent."""

    pass


class ExternalToolError(GenoprotError):
    """A tool exited non-zero, timed out or could not be started.

    ``returncode`` is -1 when the process never produced an exit status.
    """

    def __init__(self, message="", command=None, returncode=None, stderr=None):
        super().__init__(message)
        self.command = command
        self.returncode = returncode
        self.stderr = stderr

    def stderr_tail(self, lines: int = 20) -> str:
        """Last *lines* lines of the tool's stderr."""
        if not self.stderr:
            return ""
        return "\n".join(self.stderr.rstrip().splitlines()[-lines:])


class PipelineError(GenoprotError):
    """Raised when a pipeline step fails."""

    pass


class FileFormatError(GenoprotError):
    """Raised when a file or record cannot be parsed."""

    pass


class DependencyError(GenoprotError):
    """Raised when required external executables are missing or incompatible."""

    pass


class DownloadError(GenoprotError):
    """Raised when a reference file cannot be downloaded."""

    pass
