"""Subcommand dispatcher for scenecast.

Usage:
    scenecast render --manifest render.yaml --output final.mp4
    scenecast record --manifest render.yaml --output capture.webm
    scenecast map    --manifest render.yaml
    scenecast thumbnail --input final.mp4 --output final.jpg
"""

import argparse
import sys


COMMANDS = {
    "render": "Offline render through ffmpeg (file output)",
    "record": "Live capture: play the template once and encode the frames",
    "map": "Print the scene-to-source mapping for a manifest",
    "thumbnail": "Grab a thumbnail (and optional visual stats) from a video",
}


def main(args=None):
    parser = argparse.ArgumentParser(
        prog="scenecast",
        description="Template-driven vertical video composition.",
    )
    subparsers = parser.add_subparsers(dest="command")

    # Each subcommand delegates to its own module's main().
    for name, help_text in COMMANDS.items():
        subparsers.add_parser(name, help=help_text, add_help=False)

    # Parse only the subcommand name, pass the rest to the subcommand's parser.
    parsed, remaining = parser.parse_known_args(args)

    if parsed.command not in COMMANDS:
        parser.print_help()
        sys.exit(1)

    if parsed.command == "render":
        from .render_cli import main as render_main
        render_main(remaining)
    elif parsed.command == "record":
        from .record_cli import main as record_main
        record_main(remaining)
    elif parsed.command == "map":
        from .map_cli import main as map_main
        map_main(remaining)
    elif parsed.command == "thumbnail":
        from .thumbnail_cli import main as thumbnail_main
        thumbnail_main(remaining)


if __name__ == "__main__":
    main()
