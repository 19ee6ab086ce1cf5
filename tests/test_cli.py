from __future__ import annotations

import tempfile
import unittest
from pathlib import Path
from unittest import mock

from fakes import sample_mri
from mangarock import cli
from mangarock.errors import NotFoundError
from mangarock.models import Chapter, FailurePolicy, PageResult


class TestParseArgs(unittest.TestCase):

    def test_download_defaults(self):
        args = cli.parse_args(["download", "mrs-serie-1", "mrs-chapter-1"])
        self.assertEqual(args.output, Path("output"))
        self.assertFalse(args.convert)
        self.assertEqual(cli._policy(args), FailurePolicy.ABORT)

    def test_keep_going_collects(self):
        args = cli.parse_args(["convert", "pages", "--keep-going"])
        self.assertEqual(cli._policy(args), FailurePolicy.COLLECT)
        self.assertEqual(args.suffix, ".mri")

    def test_country_becomes_option(self):
        args = cli.parse_args(["latest", "--country", "Japan"])
        self.assertEqual(dict(cli._client_config(args).options), {"country": "Japan"})


class TestMain(unittest.TestCase):

    def test_convert_command(self):
        with tempfile.TemporaryDirectory() as tmp:
            (Path(tmp) / "00-a.mri").write_bytes(sample_mri())
            cli.main(["convert", tmp])
            self.assertTrue((Path(tmp) / "00-a.png").exists())

    def test_convert_accepts_suffix_without_dot(self):
        with tempfile.TemporaryDirectory() as tmp:
            (Path(tmp) / "00-a.mri").write_bytes(sample_mri())
            cli.main(["convert", tmp, "--suffix", "mri"])
            self.assertTrue((Path(tmp) / "00-a.png").exists())

    def test_convert_failure_exits_nonzero(self):
        with tempfile.TemporaryDirectory() as tmp:
            (Path(tmp) / "00-a.mri").write_bytes(b"broken")
            with self.assertRaises(SystemExit) as ctx:
                cli.main(["convert", tmp])
            self.assertEqual(ctx.exception.code, 1)

    def test_download_into_chapter_folder(self):
        chapter = Chapter(id="mrs-chapter-1", name="Vol.1 Ch.1", pages=["https://cdn/x/1.mri"])
        with tempfile.TemporaryDirectory() as tmp, \
                mock.patch.object(cli, "MangaRockClient") as client_cls, \
                mock.patch.object(cli, "download_chapter") as download:
            client = client_cls.return_value.__enter__.return_value
            client.chapter.return_value = chapter
            download.return_value = [PageResult(0, chapter.pages[0], Path(tmp) / "00-1.mri")]

            cli.main(["download", "mrs-serie-1", "mrs-chapter-1", "--output", tmp])

            client.chapter.assert_called_once_with("mrs-serie-1", "mrs-chapter-1")
            directory = download.call_args[0][1]
            self.assertEqual(directory, Path(tmp).resolve() / "vol-1-ch-1")

    def test_library_errors_exit_with_status_one(self):
        with mock.patch.object(cli, "MangaRockClient") as client_cls:
            client = client_cls.return_value.__enter__.return_value
            client.chapter.side_effect = NotFoundError("Chapter x not found")
            with self.assertRaises(SystemExit) as ctx:
                cli.main(["download", "a", "x"])
            self.assertEqual(ctx.exception.code, 1)


if __name__ == "__main__":
    unittest.main()
