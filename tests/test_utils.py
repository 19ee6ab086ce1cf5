from __future__ import annotations

import tempfile
import unittest
from pathlib import Path

from mangarock.errors import WriteError
from mangarock.utils import (
    ensure_directory,
    locator_basename,
    normalize_index,
    normalize_suffix,
    page_filename,
    slugify,
    write_atomic,
)


class TestPageFilename(unittest.TestCase):

    def test_single_digit_indices_are_zero_padded(self):
        for index in range(10):
            with self.subTest(index=index):
                prefix = page_filename(index, "https://cdn/x/p.mri").split("-", 1)[0]
                self.assertEqual(len(prefix), 2)
                self.assertEqual(int(prefix), index)

    def test_examples(self):
        self.assertEqual(page_filename(3, "https://cdn/x/007.mri"), "03-007.mri")
        self.assertEqual(page_filename(12, "https://cdn/x/page.mri"), "12-page.mri")

    def test_wide_indices_keep_natural_width(self):
        self.assertEqual(normalize_index(10), "10")
        self.assertEqual(normalize_index(99), "99")
        self.assertEqual(normalize_index(100), "100")
        self.assertEqual(normalize_index(1234), "1234")

    def test_names_sort_in_page_order_up_to_99(self):
        names = [page_filename(i, f"https://cdn/{i}/z.mri") for i in range(100)]
        self.assertEqual(sorted(names), names)

    def test_hundredth_page_breaks_sort_order(self):
        self.assertLess(page_filename(100, "/a"), page_filename(20, "/a"))

    def test_basename_edge_cases(self):
        self.assertEqual(locator_basename(""), "")
        self.assertEqual(locator_basename("no-slash.mri"), "no-slash.mri")
        self.assertEqual(locator_basename("https://cdn/dir/"), "")
        self.assertEqual(page_filename(0, ""), "00-")


class TestSlugify(unittest.TestCase):

    def test_slugify(self):
        self.assertEqual(slugify("Chapter 12: The Return!"), "chapter-12-the-return")
        self.assertEqual(slugify("???"), "chapter")
        self.assertEqual(slugify("", fallback="x"), "x")


class TestNormalizeSuffix(unittest.TestCase):

    def test_adds_missing_dot_and_lowercases(self):
        self.assertEqual(normalize_suffix("mri"), ".mri")
        self.assertEqual(normalize_suffix(".MRI"), ".mri")
        self.assertEqual(normalize_suffix(""), "")


class TestWriteAtomic(unittest.TestCase):

    def test_replaces_existing_file(self):
        with tempfile.TemporaryDirectory() as tmp:
            target = Path(tmp) / "00-a.mri"
            target.write_bytes(b"old")
            write_atomic(target, b"new")
            self.assertEqual(target.read_bytes(), b"new")
            self.assertEqual([p.name for p in Path(tmp).iterdir()], ["00-a.mri"])

    def test_failed_rename_removes_partial_file(self):
        with tempfile.TemporaryDirectory() as tmp:
            target = Path(tmp) / "00-a.png"
            target.mkdir()
            with self.assertRaises(WriteError):
                write_atomic(target, b"data")
            self.assertEqual([p.name for p in Path(tmp).iterdir()], ["00-a.png"])

    def test_ensure_directory_is_idempotent(self):
        with tempfile.TemporaryDirectory() as tmp:
            target = Path(tmp) / "a" / "b"
            ensure_directory(target)
            ensure_directory(target)
            self.assertTrue(target.is_dir())


if __name__ == "__main__":
    unittest.main()
