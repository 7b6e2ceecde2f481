"""Command line entry point

    imagegen "A bear on a snowy mountain peak" --save
    imagegen --variation seed.png --size 512x512
"""

import argparse
import asyncio
import logging
import sys
from pathlib import Path
from typing import List, Optional

from .config import ConfigError, load_settings
from .types import DEFAULT_MODEL, DEFAULT_QUALITY, DEFAULT_SIZE, DEFAULT_STYLE, OutputFormat

logger = logging.getLogger(__name__)


LOG_FORMATS = {
    "json": '{"time":"%(asctime)s","level":"%(levelname)s","name":"%(name)s","message":"%(message)s"}',
    "text": "%(asctime)s [%(levelname)s] %(name)s: %(message)s",
}


def setup_logging(level: str = "INFO", log_format: str = "text") -> None:
    """Send log records to stderr, stdout is reserved for the command's result.

    Args:
        level: log level name, unknown names fall back to INFO
        log_format: json or text
    """
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format=LOG_FORMATS.get(log_format, LOG_FORMATS["text"]),
        datefmt="%Y-%m-%d %H:%M:%S",
        stream=sys.stderr,
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="imagegen", description="Generate images with DALL-E")
    parser.add_argument("prompt", nargs="?", default="", help="prompt text")
    parser.add_argument("--variation", metavar="PATH", help="create a variation of this image instead")
    parser.add_argument("--size", default=DEFAULT_SIZE)
    parser.add_argument("--quality", default=DEFAULT_QUALITY, choices=["standard", "hd"])
    parser.add_argument("--style", default=DEFAULT_STYLE, choices=["vivid", "natural"])
    parser.add_argument("--model", default=DEFAULT_MODEL)
    parser.add_argument("--base64", action="store_true", help="request inline base64 data instead of a url")
    parser.add_argument("--save", action="store_true", help="save the image into the image folder")
    parser.add_argument("--config", type=Path, help="YAML settings file")
    return parser


async def main(argv: Optional[List[str]] = None, transport=None) -> int:
    args = build_parser().parse_args(argv)

    settings = load_settings(args.config)
    setup_logging(settings.logging.level, settings.logging.format)

    if not args.prompt and not args.variation:
        logger.error("Either a prompt or --variation is required")
        return 2

    try:
        generator = settings.create_image_generation(transport=transport)
    except ConfigError as e:
        logger.error(f"Failed to configure client: {e}")
        return 1

    prompt = settings.new_prompt(
        prompt=args.prompt,
        variation_image_file_path=args.variation,
        image_size=args.size,
        image_quality=args.quality,
        image_style=args.style,
        model=args.model,
    )
    output_format = OutputFormat.BASE64 if args.base64 else OutputFormat.URL

    if args.variation:
        ok = await generator.create_variation(prompt, args.save, output_format)
    else:
        ok = await generator.generate(prompt, args.save, output_format)

    if not ok:
        print(generator.error_message or "Image generation failed", file=sys.stderr)
        return 1

    if prompt.has_revised_prompt:
        logger.info(f"Revised prompt: {prompt.revised_prompt}")

    if prompt.image_filename:
        print(prompt.image_file_path)
    elif prompt.first_image_url:
        print(prompt.first_image_url)
    elif prompt.base64_data:
        print(prompt.save_image_from_base64())
    else:
        print("No images returned", file=sys.stderr)
        return 1

    return 0


def run() -> None:
    try:
        sys.exit(asyncio.run(main()))
    except KeyboardInterrupt:
        sys.exit(130)
