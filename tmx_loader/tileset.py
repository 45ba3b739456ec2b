"""
Tilesets: atlas slicing, per-tile metadata, external .tsx files

=============================================================================
TILESET TYPES
=============================================================================

1. SPRITESHEET TILESET (most common):
   One image divided into a grid of tiles.

   +---+---+---+---+
   | 0 | 1 | 2 | 3 |
   +---+---+---+---+
   | 4 | 5 | 6 | 7 |
   +---+---+---+---+

   Every tile shares the atlas Texture and stores the UV rectangle it
   occupies (top_left / bottom_right, normalized 0..1).

2. IMAGE COLLECTION TILESET:
   Each <tile> brings its own <image>; UVs cover the whole image.

Both can be mixed: explicit <tile> elements are merged into the grid.

=============================================================================
SPACING AND MARGIN
=============================================================================

    margin  = pixels around the EDGE of the image
    spacing = pixels BETWEEN tiles

    +--+===+===+===+--+
    |  | 0 | 1 | 2 |  |  <- margin
    +--+===+===+===+--+
    |  | 3 | 4 | 5 |  |
    +--+===+===+===+--+
         ^
         spacing between tiles

Without an explicit `columns`, the column count is the largest n with

    margin + n * tilewidth + (n - 1) * spacing <= image width

Rows are counted from (image height - 2 * margin), taking
(tileheight + spacing) per row while a full tile still fits.

=============================================================================
EMBEDDED vs EXTERNAL TILESETS
=============================================================================

EMBEDDED: <tileset firstgid="1" name="terrain" tilewidth="32" ...>
              <image source="terrain.png" .../>
          </tileset>
          source label: "embedded#terrain"

EXTERNAL: <tileset firstgid="1" source="../tilesets/terrain.tsx"/>
          The .tsx holds the same <tileset> schema. Paths inside it are
          relative to the .tsx, so it is parsed with a rebased resolver.
          source label: the resolver's unique name of the .tsx file, so
          the same file reached from different maps gets the same label.

=============================================================================
"""

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple, TYPE_CHECKING

from .constants import EMBEDDED_PREFIX
from .errors import TmxError, TmxParseError
from .events import EventStream, StartTag, attr_int
from .layers import parse_object_group
from .objects import Shape
from .properties import Property, parse_properties
from .texture import Texture, parse_image

if TYPE_CHECKING:
    from .resolver import FileResolver

logger = logging.getLogger(__name__)

UV = Tuple[float, float]


@dataclass
class Frame:
    """Animation frame: local tile id shown for `duration` milliseconds."""
    tile: int = 0
    duration: int = 0


@dataclass
class Tile:
    """
    Individual tile within a tileset.

    `image` is the shared atlas for spritesheet tiles, or the tile's own
    image for collection tiles, or None for metadata-only tiles.
    """
    image: Optional[Texture] = None                  # Atlas or own image
    top_left: UV = (0.0, 0.0)                        # UV within image
    bottom_right: UV = (1.0, 1.0)
    width: int = 0                                   # Pixel size
    height: int = 0
    animation: List[Frame] = field(default_factory=list)
    properties: Dict[str, Property] = field(default_factory=dict)
    shapes: List[Shape] = field(default_factory=list)  # Collision/marker shapes

    def merge(self, other: 'Tile'):
        """
        Merge an explicit <tile> definition into a generated atlas tile.

        Properties and animation are replaced, shapes are appended, and
        the image (with its UVs and size) only replaces ours when the
        explicit tile has an image of its own.
        """
        self.properties = other.properties
        self.animation = other.animation
        if other.image is not None:
            self.image = other.image
            self.top_left = other.top_left
            self.bottom_right = other.bottom_right
            self.width = other.width
            self.height = other.height
        self.shapes.extend(other.shapes)

    @classmethod
    def parse(cls, tag: StartTag, stream: EventStream, resolver: 'FileResolver') -> Tuple[int, 'Tile']:
        """Parse a <tile> element, returning (local id, tile)."""
        tile_id = attr_int(tag, 'id')
        tile = cls()

        for event in stream.children():
            if not isinstance(event, StartTag):
                continue
            if event.name == 'properties':
                tile.properties = parse_properties(stream)
            elif event.name == 'image':
                tile.image = parse_image(event, stream, resolver)
                tile.width = tile.image.width
                tile.height = tile.image.height
            elif event.name == 'animation':
                tile.animation = parse_animation(stream)
            elif event.name == 'objectgroup':
                # Collision editor shapes, stored relative to the tile
                group = parse_object_group(event, stream, resolver)
                for obj in group.objects:
                    if obj.shape is not None:
                        tile.shapes.append(obj.shape.translated(obj.x, obj.y))
            else:
                stream.skip()

        return tile_id, tile


def parse_animation(stream: EventStream) -> List[Frame]:
    frames = []
    for event in stream.children():
        if isinstance(event, StartTag):
            if event.name == 'frame':
                frames.append(Frame(attr_int(event, 'tileid'), attr_int(event, 'duration')))
            stream.skip()
    return frames


# =============================================================================
# TILESET CLASS
# =============================================================================

@dataclass
class Tileset:
    """
    Collection of tiles sharing a first gid.

    tiles is sparse: tiles[local_id] may be None for ids the tileset does
    not define. gid = first_gid + local_id.
    """
    first_gid: int = 0                               # First Global ID
    source: str = EMBEDDED_PREFIX                    # File label or embedded#name
    name: str = ""
    tiles: List[Optional[Tile]] = field(default_factory=list)
    image: Optional[Texture] = None                  # Spritesheet atlas
    tile_size: Tuple[float, float] = (0.0, 0.0)      # Tile size in pixels
    tile_count: Optional[int] = None
    columns: Optional[int] = None
    spacing: int = 0
    margin: int = 0
    properties: Dict[str, Property] = field(default_factory=dict)

    @classmethod
    def parse(cls, tag: StartTag, stream: EventStream, resolver: 'FileResolver') -> 'Tileset':
        """
        Parse a <tileset> element of a map (embedded or external reference).

        firstgid always comes from the map's element, never from the .tsx.
        """
        tileset = cls(first_gid=attr_int(tag, 'firstgid'))
        if 'name' in tag.attributes:
            tileset.name = tag.attributes['name']
            tileset.source = EMBEDDED_PREFIX + tileset.name

        source = tag.attributes.get('source')
        if not source:
            tileset._parse_contents(tag, stream, resolver)
            return tileset

        # -----------------------------------------------------------------
        # EXTERNAL TILESET (TSX)
        # -----------------------------------------------------------------
        logger.debug("Loading external tileset %s", resolver.file_path(source))
        try:
            tsx = EventStream(resolver.load(source))
            root = tsx.find_root('tileset')
            tileset._parse_contents(root, tsx, resolver.rebase(source))
        except TmxError as exc:
            raise exc.add_context(f"tileset {source!r}")
        tileset.source = resolver.unique_name(source)

        # The referencing element has no content we need
        stream.skip()
        return tileset

    def _parse_contents(self, tag: StartTag, stream: EventStream, resolver: 'FileResolver'):
        """Read the attributes and children of a <tileset> root."""
        if 'name' in tag.attributes:
            self.name = tag.attributes['name']
        tile_width = attr_int(tag, 'tilewidth')
        tile_height = attr_int(tag, 'tileheight')
        self.tile_size = (float(tile_width), float(tile_height))
        self.spacing = attr_int(tag, 'spacing')
        self.margin = attr_int(tag, 'margin')
        self.tile_count = attr_int(tag, 'tilecount', None)
        self.columns = attr_int(tag, 'columns', None)

        for event in stream.children():
            if not isinstance(event, StartTag):
                continue
            if event.name == 'image':
                self.image = parse_image(event, stream, resolver)
                self._slice_atlas(self.image, tile_width, tile_height)
            elif event.name == 'tile':
                tile_id, tile = Tile.parse(event, stream, resolver)
                self._add_tile(tile_id, tile)
            elif event.name == 'properties':
                self.properties = parse_properties(stream)
            else:
                # <tileoffset>, <grid>, <wangsets>, <transformations>, ...
                stream.skip()

    def _slice_atlas(self, image: Texture, tile_width: int, tile_height: int):
        """Generate one Tile per atlas cell, row by row."""
        width, height = image.width, image.height
        margin, spacing = self.margin, self.spacing

        columns = self.columns
        if columns is None:
            columns = 0
            if tile_width + spacing > 0:
                columns = max(0, (width - margin + spacing) // (tile_width + spacing))

        rows = 0
        if tile_height > 0 and tile_height + spacing > 0:
            space = height - margin * 2
            while space >= tile_height:
                space -= tile_height + spacing
                rows += 1

        added = 0
        for row in range(rows):
            for col in range(columns):
                if self.tile_count is not None and added >= self.tile_count:
                    return
                u = (margin + col * (tile_width + spacing)) / width
                v = (margin + row * (tile_height + spacing)) / height
                self.tiles.append(Tile(
                    image=image,
                    top_left=(u, v),
                    bottom_right=(u + tile_width / width, v + tile_height / height),
                    width=tile_width,
                    height=tile_height,
                ))
                added += 1

    def _add_tile(self, tile_id: int, tile: Tile):
        if tile_id < 0:
            raise TmxParseError(f"<tile> id {tile_id} is negative")
        if tile_id < len(self.tiles):
            existing = self.tiles[tile_id]
            if existing is None:
                self.tiles[tile_id] = tile
            else:
                existing.merge(tile)
        else:
            # Pad the gap with placeholders so indices keep matching ids
            self.tiles.extend([None] * (tile_id - len(self.tiles)))
            self.tiles.append(tile)

    def get_tile(self, local_id: int) -> Optional[Tile]:
        if 0 <= local_id < len(self.tiles):
            return self.tiles[local_id]
        return None
