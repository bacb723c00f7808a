"""Custom exceptions for PRHawk."""


class PRHawkError(Exception):
    """Base exception for all PRHawk errors."""


class ConfigError(PRHawkError):
    """Configuration-related errors."""


class GitHubError(PRHawkError):
    """Errors talking to the GitHub REST API."""

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code


class FetchError(GitHubError):
    """A comparison or file content could not be fetched."""


class ContentUnavailableError(FetchError):
    """The contents API answered, but not with inline base64 file content.

    Raised for directories, submodules, symlinks, and files too large to be
    inlined (`encoding: "none"`).
    """


class CommentError(GitHubError):
    """The report comment could not be posted."""


class OracleError(PRHawkError):
    """The complexity oracle failed to score a file."""


class UnsupportedLanguageError(OracleError):
    """Raised when the oracle is asked to score an extension it has no grammar for."""

    def __init__(self, extension: str):
        super().__init__(
            f"No complexity grammar for extension '{extension}'. "
            f"Install the tree-sitter grammars with: pip install prhawk"
        )
        self.extension = extension
