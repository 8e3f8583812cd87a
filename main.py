#!/usr/bin/env python3
"""
phongtrace - A Python Phong Raytracer

Main entry point for rendering scene files.
"""

import argparse
import dataclasses
import logging
import sys
import time

from phongtrace.scene_parser import SceneParser, SceneParseError
from phongtrace.mesh import MeshFormatError
from phongtrace.vec3 import DegenerateGeometryError


def main(argv=None):
    """Main entry point."""
    parser = argparse.ArgumentParser(
        description='phongtrace - A Python Phong Raytracer',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog='''
Examples:
  python main.py scenes/ball.yaml --output ball.png
  python main.py scenes/room.yaml --width 1024 --height 768 --supersampling 3
  python main.py scenes/room.yaml --no-shadows --threads 1 --seed 7
        '''
    )

    parser.add_argument('scene', type=str, help='Scene description file (YAML or JSON)')
    parser.add_argument('-o', '--output', type=str, default=None,
                        help="Output filename (default: the scene's 'output', else render.png)")
    parser.add_argument('--width', type=int, default=None, help='Image width')
    parser.add_argument('--height', type=int, default=None, help='Image height')
    parser.add_argument('--threads', type=int, default=None, help='Number of threads (0=auto)')
    parser.add_argument('--supersampling', type=int, default=None,
                        help='Samples per pixel side (n gives n*n samples)')
    parser.add_argument('--no-shadows', action='store_true', help='Disable shadow rays')
    parser.add_argument('--no-textures', action='store_true', help='Disable texture mapping')
    parser.add_argument('--no-stars', action='store_true', help='Disable the background star field')
    parser.add_argument('--seed', type=int, default=None, help='Random seed for the star field')
    parser.add_argument('-v', '--verbose', action='store_true', help='Enable debug logging')

    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format='%(asctime)s %(levelname)s %(name)s: %(message)s'
    )

    print("=" * 60)
    print("phongtrace")
    print("=" * 60)

    # Load scene
    print(f"\nLoading scene: {args.scene}")
    scene_parser = SceneParser()
    # Degenerate geometry and bad render settings surface as ValueError
    try:
        raytracer = scene_parser.parse_file(args.scene)
    except (SceneParseError, MeshFormatError, FileNotFoundError, ValueError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    # Command-line flags override the scene's render section
    overrides = {
        name: value for name, value in (
            ('width', args.width),
            ('height', args.height),
            ('num_threads', args.threads),
            ('supersampling', args.supersampling),
            ('seed', args.seed),
        ) if value is not None
    }
    if args.no_shadows:
        overrides['shadows'] = False
    if args.no_textures:
        overrides['textures'] = False
    if args.no_stars:
        overrides['stars'] = False
    try:
        settings = dataclasses.replace(raytracer.settings, **overrides)
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    raytracer.settings = settings

    print(f"\nRender Settings:")
    print(f"  Resolution: {settings.width}x{settings.height}")
    print(f"  Supersampling: {settings.supersampling}x{settings.supersampling}")
    print(f"  Shadows: {settings.shadows}")
    print(f"  Threads: {settings.num_threads}")
    print(f"  Nodes in scene: {scene_parser.builder.node_count}")
    print(f"  Lights: {len(raytracer.lights)}, Volumes: {len(raytracer.volumes)}")

    # Progress tracking
    last_progress = [0]

    def progress_callback(progress: float):
        pct = int(progress * 100)
        if pct > last_progress[0]:
            last_progress[0] = pct
            bar_len = 40
            filled = int(bar_len * progress)
            bar = '█' * filled + '░' * (bar_len - filled)
            print(f'\rRendering: [{bar}] {pct}%', end='', flush=True)

    raytracer.set_progress_callback(progress_callback)

    output = args.output or scene_parser.output or 'render.png'

    # Render
    print("\nRendering...")
    start_time = time.time()

    try:
        raytracer.render(output, settings.width, settings.height)
    except (DegenerateGeometryError, OSError) as e:
        print(f"\nError: {e}", file=sys.stderr)
        return 1

    elapsed = time.time() - start_time
    print(f"\nRender completed in {elapsed:.2f} seconds")
    print(f"Saved to: {output}")

    print("\nDone!")
    return 0


if __name__ == '__main__':
    sys.exit(main())
