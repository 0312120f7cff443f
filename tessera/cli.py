"""
Tessera CLI - Command-line interface for the puzzle service.

Usage:
    tessera serve                         Run the HTTP/WebSocket server
    tessera crop <image> -o <output>      Crop an image to a centered square
    tessera generate --grid 4 --seed 7    Print a shuffled tile set
"""

import argparse
import json
import logging
import random
import sys

from .config import CUSTOM_DIFFICULTY, Settings, configure_logging, resolve_grid_size

logger = logging.getLogger(__name__)


def main():
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        description="Tessera - Image Puzzle Service",
        prog="tessera",
    )
    subparsers = parser.add_subparsers(dest="command", help="Commands")

    # Serve command
    serve_parser = subparsers.add_parser("serve", help="Run the API server")
    serve_parser.add_argument("--host", default="127.0.0.1", help="Bind address")
    serve_parser.add_argument("--port", type=int, default=3000, help="Bind port")
    serve_parser.add_argument(
        "--account",
        action="append",
        default=[],
        metavar="EMAIL:PASSWORD:NAME",
        help="Development account (repeatable)",
    )

    # Crop command
    crop_parser = subparsers.add_parser("crop", help="Crop an image to a centered square")
    crop_parser.add_argument("image_file", help="Path to the source image")
    crop_parser.add_argument("--output", "-o", required=True, help="Output JPEG file")

    # Generate command
    generate_parser = subparsers.add_parser("generate", help="Print a shuffled tile set")
    generate_parser.add_argument("--difficulty", default=CUSTOM_DIFFICULTY, help="mudah, sedang, sulit or custom")
    generate_parser.add_argument("--grid", type=int, help="Grid size for custom difficulty")
    generate_parser.add_argument("--seed", type=int, help="Shuffle seed")

    args = parser.parse_args()

    if args.command == "serve":
        cmd_serve(args)
    elif args.command == "crop":
        cmd_crop(args)
    elif args.command == "generate":
        cmd_generate(args)
    else:
        parser.print_help()
        sys.exit(1)


def parse_account(value: str) -> tuple[str, str, str]:
    """Split EMAIL:PASSWORD:NAME. The name may itself contain colons."""
    parts = value.split(":", 2)
    if len(parts) != 3 or not all(parts):
        raise ValueError(f"Expected EMAIL:PASSWORD:NAME, got {value!r}")
    return parts[0], parts[1], parts[2]


def cmd_serve(args):
    """Run the API server with uvicorn."""
    import uvicorn

    from .api import PuzzleService, create_app
    from .ledger import InMemoryAccountDirectory

    settings = Settings.from_env()
    configure_logging(settings.log_level)

    accounts = InMemoryAccountDirectory()
    for index, account in enumerate(args.account, start=1):
        try:
            email, password, name = parse_account(account)
        except ValueError as e:
            print(f"Error: {e}")
            sys.exit(1)
        accounts.add(f"user{index}", name, email, password)

    if not settings.pexels_api_key:
        logger.warning("PEXELS_API_KEY is not set; every puzzle uses the fallback image")

    service = PuzzleService.from_settings(settings, accounts=accounts)
    app = create_app(service=service)
    uvicorn.run(app, host=args.host, port=args.port, log_level=settings.log_level.lower())


def cmd_crop(args):
    """Crop an image file to a centered square JPEG."""
    from .engine_core.errors import DecodeError
    from .imaging import SquareCropper

    try:
        with open(args.image_file, "rb") as f:
            data = f.read()
    except FileNotFoundError:
        print(f"Error: File not found: {args.image_file}")
        sys.exit(1)

    try:
        cropped = SquareCropper().crop(data)
    except DecodeError as e:
        print(f"Error: {e}")
        sys.exit(1)

    with open(args.output, "wb") as f:
        f.write(cropped.data)

    print(f"Source: {cropped.source_width}x{cropped.source_height}")
    print(f"Square: {cropped.side}x{cropped.side} at ({cropped.offset_x}, {cropped.offset_y})")
    print(f"Wrote {len(cropped.data)} bytes to {args.output}")


def cmd_generate(args):
    """Print a shuffled tile set as JSON."""
    from .engine_core.errors import InvalidGridSize
    from .engine_core.tiles import generate_tiles

    try:
        grid_size = resolve_grid_size(args.difficulty, args.grid)
        rng = random.Random(args.seed) if args.seed is not None else None
        tiles = generate_tiles(grid_size, rng=rng)
    except InvalidGridSize as e:
        print(f"Error: {e}")
        sys.exit(1)

    print(json.dumps(
        {
            "grid_size": grid_size,
            "tiles": [tile.to_dict(grid_size) for tile in tiles],
        },
        indent=2,
    ))


if __name__ == "__main__":
    main()
