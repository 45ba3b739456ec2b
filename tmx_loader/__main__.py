#!/usr/bin/env python3

"""
TMX Loader - print a summary of a Tiled map

Usage:
    python -m tmx_loader <map.tmx> [-v]

Options:
    -v          - Debug logging (tileset, template and texture loads)
"""

import logging
import sys
from pathlib import Path

from . import load_from_file
from .errors import TmxError
from .layers import ImageLayer, LayerGroup, ObjectGroup, TileLayer


def describe_layer(layer, indent: int = 0) -> str:
    pad = "  " * indent
    if isinstance(layer, LayerGroup):
        return f"{pad}[group] {layer.name!r} ({len(layer.layers)} layers)"
    if isinstance(layer, TileLayer):
        kind = f"[tiles] {layer.width}x{layer.height}"
    elif isinstance(layer, ObjectGroup):
        kind = f"[objects] {len(layer.objects)} objects"
    elif isinstance(layer, ImageLayer):
        kind = f"[image] {layer.image.label}"
    else:
        kind = "[?]"
    hidden = "" if layer.visible else " hidden"
    return f"{pad}{kind} {layer.name!r} offset={layer.offset} parallax={layer.parallax}{hidden}"


def print_layers(layers, indent: int = 0):
    for layer in layers:
        print(describe_layer(layer, indent))
        if isinstance(layer, LayerGroup):
            print_layers(layer.layers, indent + 1)


def main():
    args = [arg for arg in sys.argv[1:] if arg != '-v']
    if len(args) != 1:
        print(__doc__)
        sys.exit(1)

    logging.basicConfig(
        level=logging.DEBUG if '-v' in sys.argv[1:] else logging.INFO,
        format="%(levelname)s %(name)s: %(message)s",
    )

    source_path = args[0]

    if not Path(source_path).exists():
        print(f"Error: File '{source_path}' not found")
        sys.exit(1)

    try:
        tiled_map = load_from_file(source_path)
    except TmxError as e:
        print(f"Error: {e}")
        sys.exit(1)

    tile_type = tiled_map.tile_type
    print(f"Map: {tiled_map.width}x{tiled_map.height} tiles")
    print(f"Tile type: {type(tile_type).__name__} "
          f"{tile_type.tile_width}x{tile_type.tile_height} {tile_type.render_order.value}")
    print(f"Tilesets: {len(tiled_map.tilesets)}")
    for tileset in tiled_map.tilesets:
        print(f"  firstgid={tileset.first_gid} {tileset.source} ({len(tileset.tiles)} tiles)")
    print("Layers:")
    print_layers(tiled_map.layers, 1)


if __name__ == "__main__":
    main()
