"""Load-time errors for .pcr / .pcrz documents."""


class TermreelError(Exception):
    """Base class for all termreel errors."""


class IncompatibleFormatError(TermreelError, ValueError):
    def __init__(self, version: str, supported_major: int) -> None:
        super().__init__(
            f"unsupported recording format version {version!r} "
            f"(this engine reads major version {supported_major})"
        )
        self.version = version
        self.supported_major = supported_major


class MalformedDocumentError(TermreelError, ValueError):
    def __init__(self, field: str, detail: str) -> None:
        super().__init__(f"malformed recording: {field}: {detail}")
        self.field = field
        self.detail = detail
