"""Command-line entry point for the MangaRock downloader."""

from __future__ import annotations

import argparse
import logging
import sys
import time
from pathlib import Path
from typing import Sequence

from .client import MangaRockClient
from .config import CONTAINER_SUFFIX, ClientConfig, DownloadConfig
from .downloader import download_chapter
from .errors import MangaRockError
from .models import FailurePolicy, Manga
from .mri import convert_directory
from .utils import slugify

logger = logging.getLogger("mangarock.cli")


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s [%(levelname)s] %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
        force=True,
    )


def _add_common_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Enable verbose logging",
    )


def _add_client_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--timeout",
        type=float,
        default=30.0,
        help="Per-request timeout in seconds",
    )
    parser.add_argument(
        "--country",
        default=None,
        help="Country option forwarded to the API",
    )
    _add_common_arguments(parser)


def parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Download MangaRock chapters and convert MRI pages to PNG.",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    download_parser = subparsers.add_parser(
        "download", help="Download every page of a chapter"
    )
    download_parser.add_argument("manga_id", help="Manga oid")
    download_parser.add_argument("chapter_id", help="Chapter oid")
    download_parser.add_argument(
        "--output",
        default="output",
        type=Path,
        help="Directory under which the chapter folder is created",
    )
    download_parser.add_argument(
        "--convert",
        action="store_true",
        help="Convert the downloaded MRI files to PNG afterwards",
    )
    download_parser.add_argument(
        "--keep-going",
        action="store_true",
        help="Attempt every page and report failures at the end",
    )
    _add_client_arguments(download_parser)

    convert_parser = subparsers.add_parser(
        "convert", help="Convert a directory of MRI files to PNG"
    )
    convert_parser.add_argument("directory", type=Path)
    convert_parser.add_argument(
        "--suffix",
        default=CONTAINER_SUFFIX,
        help="Only convert files with this suffix (default: %(default)s)",
    )
    convert_parser.add_argument(
        "--keep-going",
        action="store_true",
        help="Skip files that fail to decode instead of stopping",
    )
    _add_common_arguments(convert_parser)

    search_parser = subparsers.add_parser("search", help="Search mangas by keywords")
    search_parser.add_argument("query")
    _add_client_arguments(search_parser)

    manga_parser = subparsers.add_parser("manga", help="Show a manga and its chapters")
    manga_parser.add_argument("manga_id")
    _add_client_arguments(manga_parser)

    author_parser = subparsers.add_parser("author", help="Show an author's mangas")
    author_parser.add_argument("author_id")
    _add_client_arguments(author_parser)

    latest_parser = subparsers.add_parser("latest", help="List the latest mangas")
    _add_client_arguments(latest_parser)

    return parser.parse_args(argv)


def _client_config(args: argparse.Namespace) -> ClientConfig:
    options = {"country": args.country} if args.country else {}
    return ClientConfig(options=options, timeout=args.timeout)


def _policy(args: argparse.Namespace) -> FailurePolicy:
    return FailurePolicy.COLLECT if args.keep_going else FailurePolicy.ABORT


def _print_mangas(mangas: Sequence[Manga]) -> None:
    for manga in mangas:
        author = manga.author.name if manga.author else "?"
        print(f"{manga.id}\t{manga.name}\t{author}")


def _run_download(args: argparse.Namespace) -> int:
    client_config = _client_config(args)
    config = DownloadConfig(
        output_root=Path(args.output).resolve(),
        convert=args.convert,
        policy=_policy(args),
    )
    with MangaRockClient(client_config) as client:
        chapter = client.chapter(args.manga_id, args.chapter_id)
        directory = config.output_root / slugify(chapter.name or chapter.id)
        start = time.perf_counter()
        results = download_chapter(
            chapter,
            directory,
            config=client_config,
            session=client.session,
            policy=config.policy,
        )
    failures = [result for result in results if not result.ok]
    logger.info(
        "Finished in %.2fs (%d/%d pages saved)",
        time.perf_counter() - start,
        len(results) - len(failures),
        len(results),
    )

    if config.convert:
        conversions = convert_directory(directory, policy=config.policy)
        failures.extend(result for result in conversions if not result.ok)
    return 1 if failures else 0


def _run_convert(args: argparse.Namespace) -> int:
    results = convert_directory(args.directory, suffix=args.suffix, policy=_policy(args))
    return 0 if all(result.ok for result in results) else 1


def _run_search(args: argparse.Namespace) -> int:
    with MangaRockClient(_client_config(args)) as client:
        ids = client.search(args.query)
        _print_mangas(client.mangas(ids))
    return 0


def _run_manga(args: argparse.Namespace) -> int:
    with MangaRockClient(_client_config(args)) as client:
        manga = client.manga(args.manga_id)
    author = manga.author.name if manga.author else "?"
    print(f"{manga.name} by {author}")
    if manga.description:
        print(manga.description)
    for chapter in manga.chapters:
        print(f"{chapter.order}\t{chapter.id}\t{chapter.name}")
    return 0


def _run_author(args: argparse.Namespace) -> int:
    with MangaRockClient(_client_config(args)) as client:
        author, mangas = client.author(args.author_id)
    print(author.name)
    _print_mangas(mangas)
    return 0


def _run_latest(args: argparse.Namespace) -> int:
    with MangaRockClient(_client_config(args)) as client:
        _print_mangas(client.latest())
    return 0


COMMANDS = {
    "download": _run_download,
    "convert": _run_convert,
    "search": _run_search,
    "manga": _run_manga,
    "author": _run_author,
    "latest": _run_latest,
}


def main(argv: Sequence[str] | None = None) -> None:
    args = parse_args(argv)
    _configure_logging(args.verbose)
    try:
        status = COMMANDS[args.command](args)
    except MangaRockError as exc:
        logger.error("%s", exc)
        sys.exit(1)
    if status:
        sys.exit(status)


if __name__ == "__main__":
    main()
