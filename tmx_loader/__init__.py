"""
TMX Loader - Tiled map (.tmx) parser with tile layout geometry

Requirements:
    pip install pillow numpy
"""

from .errors import TmxError, TmxParseError, TmxResolveError
from .events import EventStream
from .layers import ImageLayer, Layer, LayerGroup, ObjectGroup, TileLayer
from .objects import MapObject, Shape
from .properties import Property, PropertyType, parse_color
from .resolver import FileResolver
from .texture import Texture, TextureCache
from .tile_type import (
    HexagonalTileType, IsometricTileType, Orientation, OrthoTileType,
    RenderOrder, StaggerAxis, StaggerIndex, TileType
)
from .tiled_map import TiledMap, load_from_bytes, load_from_file
from .tileset import Frame, Tile, Tileset

__version__ = "1.0.0"
__all__ = [
    "load_from_file",
    "load_from_bytes",
    "TiledMap",
    "FileResolver",
    "EventStream",
    "Texture",
    "TextureCache",
    "Tileset",
    "Tile",
    "Frame",
    "Layer",
    "TileLayer",
    "ObjectGroup",
    "ImageLayer",
    "LayerGroup",
    "MapObject",
    "Shape",
    "Property",
    "PropertyType",
    "parse_color",
    "TileType",
    "OrthoTileType",
    "IsometricTileType",
    "HexagonalTileType",
    "Orientation",
    "RenderOrder",
    "StaggerAxis",
    "StaggerIndex",
    "TmxError",
    "TmxParseError",
    "TmxResolveError",
]
