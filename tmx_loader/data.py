"""
Decoding of <data> elements

=============================================================================
DATA ENCODINGS
=============================================================================

Tile layers (and images embedded in a document) store their payload in a
<data> element:

1. CSV:
   <data encoding="csv">
       1,2,3,4,5,
       6,7,8,9,10
   </data>

2. Base64, optionally compressed:
   <data encoding="base64" compression="zlib">
       eJxjZGBgYAJiZiBmAWIAAEwABQ==
   </data>

   Decompressed, the payload is a sequence of little-endian uint32 gids
   (4 bytes per tile), or the raw bytes of an embedded image.

The deprecated <tile gid=".."/> per-element form is NOT supported, and
neither is any compression other than zlib and gzip.

=============================================================================
LENIENT CSV
=============================================================================

Stray carriage returns are dropped, blank tokens (trailing commas, empty
lines) are skipped, and a token that is not an unsigned 32-bit integer
reads as 0 (empty tile) instead of failing the load:

    "1,2,3,4\\r\\n"  ->  [1, 2, 3, 4]
    "1,,3"           ->  [1, 3]
    "x,2"            ->  [0, 2]
    "+5"             ->  [5]

=============================================================================
"""

import base64
import binascii
import gzip
import zlib
from dataclasses import dataclass
from typing import Optional

import numpy as np

from .errors import TmxParseError
from .events import EventStream, StartTag

U32_MAX = 0xFFFFFFFF

_DECOMPRESSORS = {
    'zlib': zlib.decompress,
    'gzip': gzip.decompress,
}


@dataclass
class LayerData:
    """
    Decoded payload of a <data> element.

    CSV always yields tile ids; base64 yields raw bytes which are turned
    into tile ids (or used as image bytes) by the caller.
    """
    raw: Optional[bytes] = None                      # base64 payload
    tiles: Optional[np.ndarray] = None               # csv payload (uint32)

    def as_bytes(self) -> bytes:
        if self.raw is None:
            raise TmxParseError("csv data cannot be used as raw bytes")
        return self.raw

    def as_tile_ids(self) -> np.ndarray:
        """Tile ids as a uint32 array, in document (row-major) order."""
        if self.tiles is not None:
            return self.tiles
        # 4 bytes per gid; a ragged tail is ignored
        usable = len(self.raw) - len(self.raw) % 4
        return np.frombuffer(self.raw[:usable], dtype='<u4').astype(np.uint32)


def _parse_u32(token: str) -> int:
    digits = token[1:] if token.startswith('+') else token
    if digits.isascii() and digits.isdigit():
        value = int(digits)
        if value <= U32_MAX:
            return value
    return 0


def decode_csv(text: str) -> np.ndarray:
    """Decode CSV tile data (see LENIENT CSV above)."""
    gids = []
    for token in text.split(','):
        token = token.replace('\r', '').strip()
        if token:
            gids.append(_parse_u32(token))
    return np.array(gids, dtype=np.uint32)


def decode_base64(text: str, compression: Optional[str] = None) -> bytes:
    """Decode base64 text and inflate it if a compression is given."""
    try:
        raw = base64.b64decode(text.strip())
    except (binascii.Error, ValueError) as exc:
        raise TmxParseError(f"invalid base64 data: {exc}") from exc

    if compression is None:
        return raw

    decompress = _DECOMPRESSORS.get(compression)
    if decompress is None:
        raise TmxParseError(f"<data> compression {compression!r} is not supported")
    try:
        return decompress(raw)
    except (zlib.error, OSError, EOFError) as exc:
        raise TmxParseError(f"corrupt {compression} data: {exc}") from exc


def parse_data(tag: StartTag, stream: EventStream) -> LayerData:
    """Parse a <data> element whose start tag has just been read."""
    encoding = tag.attributes.get('encoding')
    compression = tag.attributes.get('compression')

    if encoding not in ('csv', 'base64'):
        raise TmxParseError(
            f"<data> encoding {encoding!r}: inline non-csv/base64 tile data is not supported"
        )
    if compression is not None and compression not in _DECOMPRESSORS:
        raise TmxParseError(f"<data> compression {compression!r} is not supported")
    if encoding == 'csv' and compression is not None:
        raise TmxParseError(f"<data> compression {compression!r} cannot be combined with csv")

    text = stream.text()

    if encoding == 'csv':
        return LayerData(tiles=decode_csv(text))
    return LayerData(raw=decode_base64(text, compression))
