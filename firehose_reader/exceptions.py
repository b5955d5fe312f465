"""
Custom exceptions for the console reader.

Every failure raised while parsing the instrumentation stream derives from
ConsoleReaderError so callers can tell protocol failures apart from
encoder or I/O failures, which propagate unchanged.
"""

from __future__ import annotations


class ConsoleReaderError(Exception):
    """Base exception for all console reader errors."""

    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}
        self.line: str | None = None

    def attach_line(self, line: str) -> ConsoleReaderError:
        """Record the raw line that caused this error.

        Only the first attached line is kept.
        """
        if self.line is None:
            self.line = line
            self.details["line"] = line
            self.message = f"{self.message} (on line {line!r})"
            self.args = (self.message,)
        return self

    def __str__(self) -> str:
        return self.message


class LineFormatError(ConsoleReaderError):
    """Raised when a protocol line cannot be tokenized or has the wrong arity."""

    def __init__(self, reason: str, command: str | None = None):
        details: dict = {"reason": reason}
        if command:
            details["command"] = command
        message = f"invalid {command} line: {reason}" if command else f"invalid log line: {reason}"
        super().__init__(message, details)
        self.reason = reason
        self.command = command


class ProtocolVersionError(ConsoleReaderError):
    """Raised when the node speaks an incompatible protocol major version."""

    def __init__(self, major: int, supported_major: int):
        super().__init__(
            f"only able to consume firehose format with major version {supported_major}, got {major}",
            {"major": major, "supported_major": supported_major},
        )
        self.major = major
        self.supported_major = supported_major


class FieldParseError(ConsoleReaderError):
    """Raised when a numeric parameter (height, version) is not an unsigned integer."""

    def __init__(self, command: str, param: str, value: str):
        super().__init__(
            f"invalid {command} {param!r} param: {value!r} is not an unsigned integer",
            {"command": command, "param": param, "value": value},
        )
        self.command = command
        self.param = param
        self.value = value


class DuplicateHandshakeError(ConsoleReaderError):
    """Raised when a second INIT line arrives after the handshake."""

    def __init__(self) -> None:
        super().__init__("received INIT line while one has already been read")


class NoActiveBlockError(ConsoleReaderError):
    """Raised when a command needs an in-progress block and there is none."""

    def __init__(self, command: str):
        super().__init__(
            f"no active block in progress when reading {command}", {"command": command}
        )
        self.command = command


class PayloadError(ConsoleReaderError):
    """Base for failures decoding a field payload inside a block."""

    def __init__(self, message: str, field: str, block_height: int | None):
        super().__init__(message, {"field": field, "block_height": block_height})
        self.field = field
        self.block_height = block_height


class Base64DecodeError(PayloadError):
    """Raised when a field parameter is not valid base64."""

    def __init__(self, field: str, block_height: int | None, cause: Exception | None = None):
        message = f"read {field} in block {block_height}: invalid base64 value"
        if cause:
            message += f": {cause}"
        super().__init__(message, field, block_height)
        self.cause = cause


class PayloadSchemaError(PayloadError):
    """Raised when decoded bytes do not match the field's binary schema."""

    def __init__(self, field: str, block_height: int | None, reason: str):
        super().__init__(
            f"read {field} in block {block_height}: invalid payload: {reason}",
            field,
            block_height,
        )
        self.details["reason"] = reason
        self.reason = reason


class SequenceMismatchError(ConsoleReaderError):
    """Raised when BLOCK_END names a different height than the active block."""

    def __init__(self, active_height: int, end_height: int):
        super().__init__(
            f"active block's height {active_height} does not match BLOCK_END received height {end_height}",
            {"active_height": active_height, "end_height": end_height},
        )
        self.active_height = active_height
        self.end_height = end_height


class EmptyBlockError(ConsoleReaderError):
    """Raised when BLOCK_END closes a block without any transaction."""

    def __init__(self, block_height: int):
        super().__init__(
            f"active block height {block_height} does not contain any transaction",
            {"block_height": block_height},
        )
        self.block_height = block_height


class IncompleteBlockError(ConsoleReaderError):
    """Raised when the line source ends while a block is still being assembled."""

    def __init__(self, block_height: int):
        super().__init__(
            f"line source closed while block {block_height} was in progress",
            {"block_height": block_height},
        )
        self.block_height = block_height


class ReaderFailedError(ConsoleReaderError):
    """Raised when reading from a reader that already hit a terminal error."""

    def __init__(self, cause: BaseException):
        super().__init__(
            f"console reader is unusable after a previous error: {cause}",
            {"cause": str(cause)},
        )
        self.cause = cause


class ConfigError(ConsoleReaderError):
    """Raised when reader configuration is invalid."""

    def __init__(self, key: str, reason: str):
        super().__init__(f"invalid configuration for {key}: {reason}", {"key": key, "reason": reason})
        self.key = key
        self.reason = reason
