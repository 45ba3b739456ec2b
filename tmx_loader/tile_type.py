r"""
Tile layout geometry: tile coordinates <-> pixel positions

=============================================================================
LAYOUT FAMILIES
=============================================================================

ORTHOGONAL:
    +---+---+---+
    |0,0|1,0|2,0|          pos = (x * w, y * h)
    +---+---+---+
    |0,1|1,1|2,1|
    +---+---+---+

ISOMETRIC (diamond):
           /\
          /0,0\            Rows run down-right, columns up-right.
         /\    /\          The projection is anchored to the BOTTOM row,
        /0,1\/1,0\         so it needs the layer height in tiles.
        \   /\   /
         \ /1,1\/
          \/  \/

STAGGERED ISOMETRIC / STAGGERED HEXAGONAL:
    Every other row (stagger axis "y") or column (stagger axis "x") is
    pushed by half a tile, giving a brick pattern:

    +---+---+---+
      +---+---+---+        <- shifted rows are the odd or even ones,
    +---+---+---+             depending on the stagger index
      +---+---+---+

    Isometric rows overlap by half a tile. Hexagonal rows overlap less:
    their pitch along the stagger axis is (size + side_length) // 2 - 1,
    where side_length is the length of the hexagon's flat edge.

=============================================================================
INVERSE TRANSFORMS
=============================================================================

Ortho and diamond isometric have closed-form inverses (floor division,
exact for points inside a cell, approximate on cell borders).

Staggered layouts have none. pos_to_coord() picks a reference cell by
floor division by the pitch, then returns the candidate whose CENTER is
nearest (squared distance) among the three cells that can cover that
spot. coord_to_pos() returns the top-left corner of a cell's bounding
box, so the point that maps back to (x, y) exactly is its center:

    px, py = tile_type.coord_to_pos(layer_height, x, y)
    assert tile_type.pos_to_coord(layer_height,
                                  px + w // 2, py + h // 2) == (x, y)

=============================================================================
"""

from dataclasses import dataclass
from enum import Enum
from typing import List, Tuple

Coord = Tuple[int, int]


class RenderOrder(Enum):
    RIGHT_DOWN = "right-down"
    RIGHT_UP = "right-up"
    LEFT_DOWN = "left-down"
    LEFT_UP = "left-up"


class Orientation(Enum):
    ORTHOGONAL = "orthogonal"
    ISOMETRIC = "isometric"
    STAGGERED = "staggered"
    HEXAGONAL = "hexagonal"


class StaggerAxis(Enum):
    X = "x"
    Y = "y"


class StaggerIndex(Enum):
    ODD = "odd"
    EVEN = "even"


def _is_shifted(index: int, stagger_index: StaggerIndex) -> bool:
    # Python's % is always non-negative, so negative rows alternate too
    return (index % 2 == 1) == (stagger_index is StaggerIndex.ODD)


# =============================================================================
# BASE CLASS
# =============================================================================

@dataclass(frozen=True)
class TileType:
    """Pixel size and render order shared by every layout family."""
    width: int                                       # Tile width (widest point)
    height: int                                      # Tile height (tallest point)
    render_order: RenderOrder = RenderOrder.RIGHT_DOWN

    @property
    def tile_width(self) -> int:
        return self.width

    @property
    def tile_height(self) -> int:
        return self.height

    def coord_to_pos(self, layer_height: int, x: int, y: int) -> Coord:
        """Top-left pixel corner of tile (x, y)."""
        raise NotImplementedError

    def pos_to_coord(self, layer_height: int, x: int, y: int) -> Coord:
        """Tile containing pixel (x, y)."""
        raise NotImplementedError


# =============================================================================
# ORTHOGONAL
# =============================================================================

@dataclass(frozen=True)
class OrthoTileType(TileType):

    def coord_to_pos(self, layer_height: int, x: int, y: int) -> Coord:
        return x * self.width, y * self.height

    def pos_to_coord(self, layer_height: int, x: int, y: int) -> Coord:
        return x // self.width, y // self.height


# =============================================================================
# STAGGERED NEAREST-CENTER SEARCH
# =============================================================================

def _nearest_staggered(px: int, py: int, col_w: int, row_h: int, half_w: int, half_h: int,
                       stagger_axis: StaggerAxis, stagger_index: StaggerIndex) -> Coord:
    """
    Inverse of a staggered layout.

    col_w/row_h are the cell pitch, half_w/half_h the offset from a cell's
    top-left corner to its center. Candidate centers are given relative to
    the reference cell's origin.
    """
    ref_x = px // col_w
    ref_y = py // row_h
    rel_x = px - ref_x * col_w
    rel_y = py - ref_y * row_h

    candidates: List[Tuple[int, int, int, int]]
    if stagger_axis is StaggerAxis.Y:
        if _is_shifted(ref_y, stagger_index):
            # Previous row sits straight above, this row straddles the edges
            candidates = [
                (half_w, half_h - row_h, ref_x, ref_y - 1),
                (0, half_h, ref_x - 1, ref_y),
                (col_w, half_h, ref_x, ref_y),
            ]
        else:
            candidates = [
                (half_w, half_h, ref_x, ref_y),
                (0, half_h - row_h, ref_x - 1, ref_y - 1),
                (col_w, half_h - row_h, ref_x, ref_y - 1),
            ]
    else:
        if _is_shifted(ref_x, stagger_index):
            candidates = [
                (half_w - col_w, half_h, ref_x - 1, ref_y),
                (half_w, 0, ref_x, ref_y - 1),
                (half_w, row_h, ref_x, ref_y),
            ]
        else:
            candidates = [
                (half_w, half_h, ref_x, ref_y),
                (half_w - col_w, 0, ref_x - 1, ref_y - 1),
                (half_w - col_w, row_h, ref_x - 1, ref_y),
            ]

    # min() keeps the first of equally near candidates
    _, _, tx, ty = min(candidates,
                       key=lambda c: (c[0] - rel_x) ** 2 + (c[1] - rel_y) ** 2)
    return tx, ty


def _staggered_pos(x: int, y: int, col_w: int, row_h: int, width: int, height: int,
                   stagger_axis: StaggerAxis, stagger_index: StaggerIndex) -> Coord:
    if stagger_axis is StaggerAxis.Y:
        shift = width // 2 if _is_shifted(y, stagger_index) else 0
        return x * width + shift, y * row_h
    shift = height // 2 if _is_shifted(x, stagger_index) else 0
    return x * col_w, y * height + shift


# =============================================================================
# ISOMETRIC
# =============================================================================

@dataclass(frozen=True)
class IsometricTileType(TileType):
    """
    Diamond isometric (stagger=False) or staggered isometric (stagger=True).

    The stagger axis and index only matter when staggered.
    """
    stagger: bool = False
    stagger_axis: StaggerAxis = StaggerAxis.X
    stagger_index: StaggerIndex = StaggerIndex.ODD

    def _pitch(self) -> Coord:
        # Rows (or columns) along the stagger axis overlap by half a tile
        if self.stagger_axis is StaggerAxis.Y:
            return self.width, self.height // 2
        return self.width // 2, self.height

    def coord_to_pos(self, layer_height: int, x: int, y: int) -> Coord:
        w, h = self.width, self.height
        if self.stagger:
            col_w, row_h = self._pitch()
            return _staggered_pos(x, y, col_w, row_h, w, h,
                                  self.stagger_axis, self.stagger_index)
        return (w * x + w * (layer_height - 1 - y)) // 2, (h * x + h * y) // 2

    def pos_to_coord(self, layer_height: int, x: int, y: int) -> Coord:
        w, h = self.width, self.height
        if self.stagger:
            col_w, row_h = self._pitch()
            return _nearest_staggered(x, y, col_w, row_h, w // 2, h // 2,
                                      self.stagger_axis, self.stagger_index)

        # -----------------------------------------------------------------
        # DIAMOND INVERSE
        # -----------------------------------------------------------------
        # With the origin moved to the top vertex of tile (0, 0):
        #   y / h = (tx + ty) / 2
        #   x / w = (tx - ty) / 2
        # Solved for tx and ty, scaled by 2*w*h to stay in integers.
        origin = w * h * layer_height
        tx = (2 * y * w + 2 * x * h - origin) // (2 * w * h)
        ty = (2 * y * w - 2 * x * h + origin) // (2 * w * h)
        return tx, ty


# =============================================================================
# HEXAGONAL
# =============================================================================

@dataclass(frozen=True)
class HexagonalTileType(TileType):
    """Staggered hexagonal layout (Tiled has no non-staggered variant)."""
    stagger_axis: StaggerAxis = StaggerAxis.X
    stagger_index: StaggerIndex = StaggerIndex.ODD
    side_length: int = 0                             # Flat edge length (pixels)

    def _pitch(self) -> Coord:
        if self.stagger_axis is StaggerAxis.Y:
            return self.width, (self.height + self.side_length) // 2 - 1
        return (self.width + self.side_length) // 2 - 1, self.height

    def coord_to_pos(self, layer_height: int, x: int, y: int) -> Coord:
        col_w, row_h = self._pitch()
        return _staggered_pos(x, y, col_w, row_h, self.width, self.height,
                              self.stagger_axis, self.stagger_index)

    def pos_to_coord(self, layer_height: int, x: int, y: int) -> Coord:
        col_w, row_h = self._pitch()
        return _nearest_staggered(x, y, col_w, row_h, self.width // 2, self.height // 2,
                                  self.stagger_axis, self.stagger_index)


def tile_type_from_attributes(orientation: Orientation, width: int, height: int,
                              render_order: RenderOrder = RenderOrder.RIGHT_DOWN,
                              stagger_axis: StaggerAxis = StaggerAxis.X,
                              stagger_index: StaggerIndex = StaggerIndex.ODD,
                              side_length: int = 0) -> TileType:
    """Build the TileType variant described by a <map> element."""
    if orientation is Orientation.ORTHOGONAL:
        return OrthoTileType(width, height, render_order)
    if orientation is Orientation.HEXAGONAL:
        return HexagonalTileType(width, height, render_order,
                                 stagger_axis, stagger_index, side_length)
    return IsometricTileType(width, height, render_order,
                             stagger=orientation is Orientation.STAGGERED,
                             stagger_axis=stagger_axis, stagger_index=stagger_index)
