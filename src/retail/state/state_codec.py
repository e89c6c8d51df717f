"""
Binary encoding of PersistedState.

Version 1 layout (32 bytes, big-endian, explicit widths):

    magic    6s  b"RETAIL"
    version  B   1
    pad      x
    inode    Q
    offset   Q
    size     Q

The legacy layout written by earlier releases has no header at all: the
native ino_t, fpos_t and off_t of the writing machine back to back. On 64-bit
glibc that is 8 + 16 + 8 = 32 bytes with the file position in the first eight
bytes of the fpos_t. Only that variant is recognised; anything else is
rejected rather than guessed at.
"""

import struct

from retail.state.persisted_state import PersistedState, StateFormatError

STATE_MAGIC = b"RETAIL"
STATE_VERSION = 1

_V1_STRUCT = struct.Struct(">6sBxQQQ")
_LEGACY_STRUCT = struct.Struct("=Qq8xq")

V1_RECORD_SIZE = _V1_STRUCT.size
LEGACY_RECORD_SIZE = _LEGACY_STRUCT.size


def encode_state(state: PersistedState) -> bytes:
    """Serialize `state` in the current (version 1) format."""
    try:
        return _V1_STRUCT.pack(
            STATE_MAGIC, STATE_VERSION, state.inode, state.offset, state.size
        )
    except struct.error as e:
        raise StateFormatError(f"Cannot encode state {state}: {e}") from e


def is_legacy_record(data: bytes) -> bool:
    return not data.startswith(STATE_MAGIC) and len(data) == LEGACY_RECORD_SIZE


def decode_state(data: bytes, accept_legacy: bool = True) -> PersistedState:
    """
    Decode a state record.

    Raises:
        StateFormatError: empty data, unknown version, wrong length, or a
                          legacy record while `accept_legacy` is False.
    """
    if not data:
        raise StateFormatError("State file is empty")

    if data.startswith(STATE_MAGIC):
        if len(data) != V1_RECORD_SIZE:
            raise StateFormatError(
                f"State record has {len(data)} bytes, expected {V1_RECORD_SIZE}"
            )
        _magic, version, inode, offset, size = _V1_STRUCT.unpack(data)
        if version != STATE_VERSION:
            raise StateFormatError(f"Unsupported state format version {version}")
        return PersistedState(inode=inode, offset=offset, size=size)

    if is_legacy_record(data):
        if not accept_legacy:
            raise StateFormatError(
                "State file is in the legacy format and legacy reading is disabled"
            )
        inode, offset, size = _LEGACY_STRUCT.unpack(data)
        return PersistedState(inode=inode, offset=offset, size=size)

    raise StateFormatError(
        f"Unrecognised state record ({len(data)} bytes, no '{STATE_MAGIC.decode()}' header)"
    )
