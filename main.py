"""CLI entry point: write a song and its cover art for a topic."""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import os
import sys
import time
from datetime import datetime
from pathlib import Path

from songcraft.agent.mock_song import MockSongGenerator
from songcraft.agent.song_agent import DEFAULT_TEXT_MODEL, GeminiSongGenerator
from songcraft.errors import SongCraftError
from songcraft.models.song import DEFAULT_LANGUAGE, GeneratedAsset, Language
from songcraft.preprocessing.image import decode_data_uri, image_file_to_data_uri, image_size
from songcraft.services.auth import ApiKeySelector
from songcraft.services.lyrics import cover_filename
from songcraft.services.studio import StudioSession

log = logging.getLogger(__name__)


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Generate a structured song and a 16:9 cover image from a topic."
    )
    parser.add_argument("topic", help="What the song should be about.")
    parser.add_argument(
        "--language", "-l",
        choices=[lang.value for lang in Language],
        default=DEFAULT_LANGUAGE.value,
        help=f"Lyrics language (default: {DEFAULT_LANGUAGE.value}).",
    )
    parser.add_argument(
        "--search",
        action="store_true",
        help="Ground the song in live web search results.",
    )
    parser.add_argument(
        "--no-cover",
        action="store_true",
        help="Only write the song; skip cover generation and edits.",
    )
    parser.add_argument(
        "--edit", "-e",
        action="append",
        default=[],
        help="Refine the cover with this instruction (repeatable, applied in order).",
    )
    parser.add_argument(
        "--edit-image",
        type=str,
        default=None,
        help="Refine this local image instead of generating a new cover.",
    )
    parser.add_argument(
        "--mock",
        action="store_true",
        help="Use canned output instead of calling the model.",
    )
    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Log each step to stderr.",
    )
    parser.add_argument(
        "--debug",
        action="store_true",
        help="Log full prompts, request config and raw model output.",
    )
    parser.add_argument(
        "--output-dir",
        type=str,
        default=None,
        help="Output directory (default: outputs/YYYY-MM-DD/HH-MM-SS).",
    )
    return parser.parse_args(argv)


def setup_output_dir(custom_dir: str | None = None) -> Path:
    """Create output directory with timestamp."""
    if custom_dir:
        output_dir = Path(custom_dir)
    else:
        now = datetime.now()
        output_dir = Path("outputs") / now.strftime("%Y-%m-%d") / now.strftime("%H-%M-%S")

    output_dir.mkdir(parents=True, exist_ok=True)
    return output_dir


def setup_logging(output_dir: Path, verbose: bool = False, debug: bool = False) -> None:
    """Setup logging to both console and file."""
    log_level = logging.DEBUG if (verbose or debug) else logging.INFO
    formatter = logging.Formatter("%(asctime)s %(levelname)s %(name)s: %(message)s")

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setLevel(log_level)
    console_handler.setFormatter(formatter)

    file_handler = logging.FileHandler(output_dir / "execution.log")
    file_handler.setLevel(log_level)
    file_handler.setFormatter(formatter)

    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)
    root_logger.addHandler(console_handler)
    root_logger.addHandler(file_handler)


def render_lyrics(session: StudioSession) -> str:
    """Plain-text rendering of the session's lyric sections."""
    blocks = []
    for section in session.sections:
        lines = [f"== {section.header} =="] if section.header else []
        lines.extend(section.lines)
        blocks.append("\n".join(lines))
    return "\n\n".join(blocks)


async def run(args: argparse.Namespace, output_dir: Path) -> int:
    language = Language(args.language)
    if args.mock:
        generator = MockSongGenerator()
        key_selector = None
    else:
        key_selector = ApiKeySelector()
        generator = GeminiSongGenerator(
            api_key=key_selector.require_api_key(), debug=args.debug
        )

    if not args.topic.strip():
        log.error("Topic must not be empty")
        return 1

    session = StudioSession(generator, key_selector=key_selector, language=language)
    if args.no_cover or args.edit_image:
        # song only; the cover comes from disk or not at all
        session.topic = args.topic
        session.song = await generator.generate_song(args.topic, language, args.search)
        if args.edit_image:
            session.cover = GeneratedAsset(
                type="image", url=image_file_to_data_uri(args.edit_image)
            )
    elif not await session.generate(args.topic, language, args.search):
        if session.song is None:
            log.error("%s", session.notice)
            return 1
        log.warning("Cover failed: %s", session.cover.error if session.cover else None)

    song = session.song
    (output_dir / "song.json").write_text(
        song.model_dump_json(indent=2, by_alias=True, exclude_none=True)
    )

    if session.cover is not None and session.cover.url and not args.no_cover:
        for instruction in args.edit:
            session.start_refine()
            if not await session.submit_refine(instruction):
                log.warning("Edit '%s' failed: %s", instruction, session.cover.error)
                session.cancel_refine()

        width, height = image_size(session.cover.url)
        cover_path = output_dir / cover_filename(song.title)
        cover_path.write_bytes(decode_data_uri(session.cover.url))
        log.info("Cover saved to %s (%dx%d)", cover_path, width, height)

    print(song.model_dump_json(indent=2, by_alias=True, exclude_none=True))
    print()
    print(render_lyrics(session))
    return 0


async def main() -> None:
    args = parse_args()
    output_dir = setup_output_dir(args.output_dir)
    setup_logging(output_dir, args.verbose, args.debug)

    start_time = time.time()
    start_datetime = datetime.now().isoformat()

    log.info("=" * 80)
    log.info("Starting song generation")
    log.info(f"  - Topic: {args.topic}")
    log.info(f"  - Language: {args.language}")
    log.info(f"  - Web search: {args.search}")
    log.info(f"  - Cover edits: {len(args.edit)}")
    log.info(f"  - Mock: {args.mock}")
    log.info(f"  - Output directory: {output_dir}")
    log.info("=" * 80)

    try:
        exit_code = await run(args, output_dir)
    except SongCraftError as e:
        log.error("Error: %s", e)
        print(f"Error: {e}", file=sys.stderr)
        exit_code = 1

    elapsed_time = time.time() - start_time
    params = {
        "timestamp": start_datetime,
        "topic": args.topic,
        "language": args.language,
        "search": args.search,
        "edits": args.edit,
        "edit_image": args.edit_image,
        "model": "mock" if args.mock else os.environ.get("SONGCRAFT_TEXT_MODEL", DEFAULT_TEXT_MODEL),
        "runtime_seconds": elapsed_time,
        "exit_code": exit_code,
    }
    (output_dir / "params.json").write_text(json.dumps(params, indent=2))
    log.info(f"Finished in {elapsed_time:.2f}s (exit code {exit_code})")

    if exit_code:
        sys.exit(exit_code)


if __name__ == "__main__":
    asyncio.run(main())
