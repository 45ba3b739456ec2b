"""
Decoded images (uses PIL)

=============================================================================
WHAT IS A TEXTURE HERE?
=============================================================================

A Texture is an RGBA pixel buffer decoded with Pillow plus a LABEL - the
resolver's unique name of the file it came from, or "embedded#" for images
stored inside a document. Downstream renderers use the label to name
their own GPU assets.

Tilesets share a single atlas Texture between all their tiles; each Tile
only stores the UV rectangle it occupies inside it.

=============================================================================
DEDUPLICATION
=============================================================================

Two keys are available:

    label        same file -> same Texture object (TextureCache)
    content_key  SHA-1 of size + pixels; equal for identical images even
                 when they were loaded from different files

Neither depends on memory addresses, so both stay valid across threads
and processes.

=============================================================================
"""

import hashlib
import io
import logging
import threading
from typing import Callable, Dict, Optional, TYPE_CHECKING

from PIL import Image, UnidentifiedImageError

from .constants import EMBEDDED_PREFIX
from .data import parse_data
from .errors import TmxParseError
from .events import EventStream, StartTag, attr_int

if TYPE_CHECKING:
    from .resolver import FileResolver

logger = logging.getLogger(__name__)


class Texture:
    """
    Immutable RGBA image with a stable label.

    ```python
    texture = Texture.from_bytes(png_bytes, "tiles/terrain.png")
    grass = texture.crop(0, 0, 16, 16)
    ```
    """

    def __init__(self, image: Image.Image, label: str):
        if image.mode != "RGBA":
            image = image.convert("RGBA")
        self._image = image
        self.label = label
        self._content_key: Optional[str] = None

    def __repr__(self) -> str:
        return f"Texture({self.label!r}, {self.width}x{self.height})"

    @classmethod
    def from_bytes(cls, data: bytes, label: str) -> 'Texture':
        """Decode PNG/JPEG/... bytes."""
        try:
            image = Image.open(io.BytesIO(data))
            image.load()
        except (UnidentifiedImageError, OSError) as exc:
            raise TmxParseError(f"could not decode image {label!r}: {exc}") from exc
        return cls(image, label)

    @property
    def width(self) -> int:
        return self._image.width

    @property
    def height(self) -> int:
        return self._image.height

    @property
    def image(self) -> Image.Image:
        """The underlying Pillow image (treat as read-only)."""
        return self._image

    def tobytes(self) -> bytes:
        """Raw RGBA pixels, row by row from the top."""
        return self._image.tobytes()

    @property
    def content_key(self) -> str:
        if self._content_key is None:
            digest = hashlib.sha1(f"{self.width}x{self.height}:".encode('ascii'))
            digest.update(self.tobytes())
            self._content_key = digest.hexdigest()
        return self._content_key

    def crop(self, x: int, y: int, width: int, height: int) -> 'Texture':
        """
        Copy a sub-rectangle into a new Texture with the same label.

        Pillow pads out-of-bounds crops with transparent pixels; we
        refuse them instead.
        """
        if x < 0 or y < 0 or width < 0 or height < 0 \
                or x + width > self.width or y + height > self.height:
            raise TmxParseError(
                f"crop ({x}, {y}, {width}, {height}) is outside image "
                f"{self.label!r} ({self.width}x{self.height})"
            )
        return Texture(self._image.crop((x, y, x + width, y + height)), self.label)


class TextureCache:
    """
    Decode-once cache of textures keyed by label.

    Resolvers derived from one root share a cache. The lock serializes the
    decode-once transition so concurrent loads sharing a cache never decode
    the same file twice.
    """

    def __init__(self):
        self._textures: Dict[str, Texture] = {}
        self._lock = threading.Lock()

    def __len__(self) -> int:
        return len(self._textures)

    def __contains__(self, label: str) -> bool:
        return label in self._textures

    def get_or_decode(self, label: str, load: Callable[[], bytes]) -> Texture:
        with self._lock:
            texture = self._textures.get(label)
            if texture is None:
                texture = Texture.from_bytes(load(), label)
                self._textures[label] = texture
                logger.debug("Decoded %s (%dx%d)", label, texture.width, texture.height)
            else:
                logger.debug("Texture cache hit: %s", label)
            return texture


def parse_image(tag: StartTag, stream: EventStream, resolver: 'FileResolver') -> Texture:
    """
    Parse an <image> element.

    The pixels come from the file named by `source` or, failing that, from
    a nested <data> element. When both `width` and `height` are given the
    decoded image is cropped to that size from the top-left corner.
    """
    source = tag.attributes.get('source')
    width = attr_int(tag, 'width', None)
    height = attr_int(tag, 'height', None)
    data: Optional[bytes] = None

    for event in stream.children():
        if isinstance(event, StartTag):
            if event.name == 'data':
                data = parse_data(event, stream).as_bytes()
            else:
                stream.skip()

    if source:
        label = resolver.unique_name(source)
        image = resolver.textures.get_or_decode(label, lambda: resolver.load(source))
    elif data is not None:
        image = Texture.from_bytes(data, EMBEDDED_PREFIX)
    else:
        raise TmxParseError("<image> has neither a source nor embedded data")

    if width is not None and height is not None \
            and (width, height) != (image.width, image.height):
        image = image.crop(0, 0, width, height)
    return image
