"""
Handshake validation for the INIT line.

Format:
    FIRE INIT <client_name> <client_version> <fork> <major> <minor> <chain_id>
    FIRE INIT <client_name> <client_version> <fork> <major> <minor> <reserved> <chain_id>

The chain identifier is always the last parameter; which form was sent is
told apart only by the parameter count.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from ..exceptions import ProtocolVersionError
from .tokenizer import CommandName, parse_uint, validate_count

SUPPORTED_MAJOR = 0
SUPPORTED_MINOR = 0

_COMMAND = CommandName.INIT.value


@dataclass(frozen=True)
class Handshake:
    """Identity and protocol version announced by the node."""

    client_name: str
    client_version: str
    fork_name: str
    firehose_major: int
    firehose_minor: int
    chain_id: str

    def to_dict(self) -> dict[str, Any]:
        """Serialize to dictionary."""
        return {
            "client_name": self.client_name,
            "client_version": self.client_version,
            "fork": self.fork_name,
            "firehose_major": self.firehose_major,
            "firehose_minor": self.firehose_minor,
            "chain_id": self.chain_id,
        }


def parse_handshake(params: tuple[str, ...]) -> Handshake:
    """Validate INIT parameters and build the handshake.

    Major and minor versions are read from their own positions (4th and
    5th parameters).

    Raises:
        LineFormatError: If there are not 6 or 7 parameters
        FieldParseError: If a version is not an unsigned integer
        ProtocolVersionError: If the major version is not supported
    """
    validate_count(_COMMAND, params, 6, 7)

    major = parse_uint(_COMMAND, "firehose_major", params[3])
    if major != SUPPORTED_MAJOR:
        raise ProtocolVersionError(major, SUPPORTED_MAJOR)

    minor = parse_uint(_COMMAND, "firehose_minor", params[4])

    return Handshake(
        client_name=params[0],
        client_version=params[1],
        fork_name=params[2],
        firehose_major=major,
        firehose_minor=minor,
        chain_id=params[-1],
    )
