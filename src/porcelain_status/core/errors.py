from __future__ import annotations


class PorcelainStatusError(Exception):
    """Base error for the project."""


class PorcelainParseError(PorcelainStatusError):
    """Raised when `git status --porcelain=2 -z` output can't be decoded."""


class FramingError(PorcelainParseError):
    pass


class HeaderFieldError(PorcelainParseError):
    def __init__(self, field: str, value: str, line: str) -> None:
        super().__init__(f"error parsing branch.ab: invalid {field} count {value!r} in {line!r}")
        self.field = field
        self.value = value
        self.line = line


class EntryFormatError(PorcelainParseError):
    pass


class StreamReadError(PorcelainParseError):
    pass


class InvalidRootError(PorcelainStatusError):
    pass


class GitPolicyError(PorcelainStatusError):
    pass


class GitExecutionError(PorcelainStatusError):
    pass
