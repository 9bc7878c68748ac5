"""Stream cipher and run-length layer of the XSD cell stream.

Layout of the stitch section (all little-endian)::

    seed0 seed1 seed2 seed3          4 x i32, read once
    { length:u32  word:i32 * length }  repeated until width*height records exist

Every word is XOR-ed against a running 32-bit key and the evolving
``seed0``.  After each word the key is rotated left by the next entry of
a 16-slot rotation table and ``seed0`` is advanced by ``seed1``; this
state carries across chunk boundaries.  A zero-length chunk is a no-op.

The decoded words of each chunk are run-length expanded: a word with
bit 30 set is a repeat marker whose bits 16..29 give the number of
copies of the word that follows it.

The XOR keystream is symmetric, so :func:`encode_chunk` and
:func:`encode_stitches_data` produce streams that the decoder accepts.
"""

from __future__ import annotations

import logging
import struct
from dataclasses import dataclass, replace
from typing import Iterable, List, Sequence, Tuple

from .errors import StructuralError
from .stream import ByteReader

logger = logging.getLogger(__name__)

MASK32 = 0xFFFFFFFF
SEED_COUNT = 4
ROTATION_SLOTS = 16
REPEAT_FLAG = 0x40000000
REPEAT_COUNT_MASK = 0x3FFFFFFF
REPEAT_COUNT_SHIFT = 16
MAX_REPEAT = REPEAT_COUNT_MASK >> REPEAT_COUNT_SHIFT
DEFAULT_CHUNK_WORDS = 0x400


def to_i32(value: int) -> int:
    value &= MASK32
    return value - 0x1_0000_0000 if value & 0x8000_0000 else value


def rotate_left(value: int, shift: int) -> int:
    value &= MASK32
    shift %= 32
    return ((value << shift) | (value >> (32 - shift))) & MASK32


def _seed_bytes(seeds: Sequence[int]) -> bytes:
    if len(seeds) != SEED_COUNT:
        raise ValueError(f"expected {SEED_COUNT} seeds, got {len(seeds)}")
    return b"".join(struct.pack("<I", seed & MASK32) for seed in seeds)


def reproduce_decoding_values(seeds: Sequence[int]) -> Tuple[int, Tuple[int, ...]]:
    """Derive ``(decoding_key, rotation_table)`` from the four stream seeds.

    The key is assembled, most significant byte first, from the low byte
    of seed0, byte 1 of seed1, byte 2 of seed2 and byte 0 of seed3.  The
    rotation table reads the 16 seed bytes as four u32 words and takes
    ``(word[i // 4] >> (i % 4)) % 32`` for each slot.
    """
    raw = _seed_bytes(seeds)
    key = ((raw[0] << 8 | raw[5]) << 8 | raw[10]) << 8 | raw[12]
    rotations = tuple(
        (struct.unpack_from("<I", raw, (i // 4) * 4)[0] >> (i % 4)) % 32
        for i in range(ROTATION_SLOTS)
    )
    return to_i32(key), rotations


@dataclass(frozen=True)
class CipherState:
    """Keystream position: key, running seed and rotation slot."""

    key: int  # u32
    seed0: int  # u32
    seed1: int  # u32
    rotations: Tuple[int, ...]
    index: int = 0

    @classmethod
    def from_seeds(cls, seeds: Sequence[int]) -> "CipherState":
        key, rotations = reproduce_decoding_values(seeds)
        return cls(
            key=key & MASK32,
            seed0=seeds[0] & MASK32,
            seed1=seeds[1] & MASK32,
            rotations=rotations,
        )

    def mask(self) -> int:
        return self.key ^ self.seed0

    def advance(self) -> "CipherState":
        return replace(
            self,
            key=rotate_left(self.key, self.rotations[self.index]),
            seed0=(self.seed0 + self.seed1) & MASK32,
            index=(self.index + 1) % ROTATION_SLOTS,
        )


def _apply_keystream(state: CipherState, words: Iterable[int]) -> Tuple[List[int], CipherState]:
    out: List[int] = []
    for word in words:
        out.append(to_i32(word ^ state.mask()))
        state = state.advance()
    return out, state


def decode_chunk(state: CipherState, words: Iterable[int]) -> Tuple[List[int], CipherState]:
    """XOR-decode one chunk; returns the decoded words and the next state."""
    return _apply_keystream(state, words)


def encode_chunk(state: CipherState, records: Iterable[int]) -> Tuple[List[int], CipherState]:
    """Inverse of :func:`decode_chunk` (the keystream is an involution)."""
    return _apply_keystream(state, records)


def is_repeat_marker(word: int) -> bool:
    return bool(word & REPEAT_FLAG)


def repeat_count(word: int) -> int:
    return (word & REPEAT_COUNT_MASK) >> REPEAT_COUNT_SHIFT


def expand_runs(decoded: Sequence[int], limit: int) -> List[int]:
    """Expand run-length markers in one decoded chunk, up to ``limit`` records."""
    out: List[int] = []
    pos = 0
    while pos < len(decoded) and len(out) < limit:
        count = 1
        if is_repeat_marker(decoded[pos]):
            count = repeat_count(decoded[pos])
            pos += 1
            if pos >= len(decoded):
                raise StructuralError(
                    f"repeat marker 0x{decoded[pos - 1] & MASK32:08X} "
                    f"at end of chunk (word {pos - 1})"
                )
        out.extend([decoded[pos]] * min(count, limit - len(out)))
        pos += 1
    return out


def read_stitches_data(reader: ByteReader, total: int) -> List[int]:
    """Decode exactly ``total`` signed cell records from the cell stream."""
    seeds = [reader.read_i32() for _ in range(SEED_COUNT)]
    state = CipherState.from_seeds(seeds)
    records: List[int] = []

    while len(records) < total:
        start = reader.tell()
        length = reader.read_u32()
        if length == 0:
            continue
        try:
            raw = [reader.read_i32() for _ in range(length)]
        except StructuralError as exc:
            raise StructuralError(
                f"cell stream truncated after {len(records)} of {total} records "
                f"(chunk of {length} words at 0x{start:04X}): {exc}"
            ) from exc
        decoded, state = decode_chunk(state, raw)
        records.extend(expand_runs(decoded, total - len(records)))

    logger.debug("decoded %d cell records", len(records))
    return records


def compress_runs(records: Sequence[int], *, min_run: int = 2) -> List[List[int]]:
    """Group records into run-length tokens.

    Each token is either ``[record]`` or ``[marker, record]``.  Records
    that themselves carry bit 30 are always wrapped in a marker of count 1
    so they are not mistaken for one.
    """
    tokens: List[List[int]] = []
    pos = 0
    while pos < len(records):
        value = records[pos]
        run = 1
        while pos + run < len(records) and records[pos + run] == value and run < MAX_REPEAT:
            run += 1
        if run >= min_run or is_repeat_marker(value):
            tokens.append([REPEAT_FLAG | (run << REPEAT_COUNT_SHIFT), value])
        else:
            tokens.append([value])
        pos += run
    return tokens


def encode_stitches_data(
    records: Sequence[int],
    seeds: Sequence[int],
    *,
    chunk_words: int = DEFAULT_CHUNK_WORDS,
) -> bytes:
    """Build a cell stream (seeds plus chunks) that decodes to ``records``."""
    if chunk_words < 2:
        raise ValueError("chunk_words must leave room for a marker and its record")

    chunks: List[List[int]] = [[]]
    for token in compress_runs(records):
        if len(chunks[-1]) + len(token) > chunk_words:
            chunks.append([])
        chunks[-1].extend(token)

    state = CipherState.from_seeds(seeds)
    parts = [struct.pack("<4i", *(to_i32(seed) for seed in seeds))]
    for chunk in chunks:
        if not chunk:
            continue
        encoded, state = encode_chunk(state, chunk)
        parts.append(struct.pack("<I", len(encoded)))
        parts.append(struct.pack(f"<{len(encoded)}i", *encoded))
    return b"".join(parts)
