"""Tests for image decoding, PNG encoding, and the destination folder."""

import io
import os
import shutil
import tempfile
import unittest

import numpy as np
from PIL import Image

from TexRepack.core import (
    DestinationFolder, ImageBuffer, PixelReader, UnreadableSourceError,
    encode_png, load_image,
)
from TexRepack.core.records import AssetContext


def random_rgba(width, height, seed=0):
    rng = np.random.default_rng(seed)
    return rng.integers(0, 256, size=(height, width, 4), dtype=np.uint8)


class TestImageIO(unittest.TestCase):
    def setUp(self):
        self.tmpdir = tempfile.mkdtemp()

    def tearDown(self):
        shutil.rmtree(self.tmpdir, ignore_errors=True)

    def test_load_rgba_roundtrips_exact_bytes(self):
        arr = random_rgba(5, 3)
        path = os.path.join(self.tmpdir, "a.png")
        Image.fromarray(arr).save(path)
        buf = load_image(path)
        self.assertEqual(buf.size, (5, 3))
        np.testing.assert_array_equal(buf.pixels, arr)

    def test_load_rgb_gets_opaque_alpha(self):
        arr = random_rgba(4, 4)[..., :3]
        path = os.path.join(self.tmpdir, "rgb.tga")
        Image.fromarray(arr).save(path)
        buf = load_image(path)
        np.testing.assert_array_equal(buf.pixels[..., :3], arr)
        np.testing.assert_array_equal(buf.pixels[..., 3], 255)

    def test_load_grayscale_expands_channels(self):
        arr = np.arange(16, dtype=np.uint8).reshape(4, 4)
        path = os.path.join(self.tmpdir, "gray.png")
        Image.fromarray(arr).save(path)
        buf = load_image(path)
        for c in range(3):
            np.testing.assert_array_equal(buf.pixels[..., c], arr)

    def test_load_16bit_reduces_to_8bit(self):
        arr = np.full((2, 2), 65535, dtype=np.uint16)
        path = os.path.join(self.tmpdir, "g16.png")
        Image.fromarray(arr).save(path)
        buf = load_image(path)
        self.assertEqual(buf.pixels.dtype, np.uint8)
        np.testing.assert_array_equal(buf.pixels[..., 0], 255)

    def test_missing_and_corrupt_files_raise(self):
        with self.assertRaises(UnreadableSourceError):
            load_image(os.path.join(self.tmpdir, "nope.png"))
        bad = os.path.join(self.tmpdir, "bad.png")
        with open(bad, "wb") as f:
            f.write(b"\x00garbage")
        with self.assertRaises(UnreadableSourceError):
            load_image(bad)

    def test_max_pixels_guard(self):
        path = os.path.join(self.tmpdir, "big.png")
        Image.fromarray(random_rgba(8, 8)).save(path)
        with self.assertRaises(UnreadableSourceError):
            load_image(path, max_pixels=10)

    def test_encode_png_is_lossless_and_deterministic(self):
        buf = ImageBuffer(random_rgba(6, 4, seed=9))
        data = encode_png(buf)
        self.assertEqual(data, encode_png(buf))
        self.assertTrue(data.startswith(b"\x89PNG"))
        with Image.open(io.BytesIO(data)) as img:
            self.assertEqual(img.mode, "RGBA")
            np.testing.assert_array_equal(np.asarray(img), buf.pixels)

    def test_pixel_reader_caches_until_cleared(self):
        path = os.path.join(self.tmpdir, "c.png")
        Image.fromarray(random_rgba(2, 2)).save(path)
        asset = AssetContext(asset_path="c.png", output_name="c.png", full_path=path)
        reader = PixelReader()
        first = reader.read(asset)
        self.assertIs(reader.read(asset), first)
        reader.clear()
        self.assertIsNot(reader.read(asset), first)


class TestImageBuffer(unittest.TestCase):
    def test_rejects_bad_shapes(self):
        with self.assertRaises(ValueError):
            ImageBuffer(np.zeros((2, 2, 3), dtype=np.uint8))
        with self.assertRaises(ValueError):
            ImageBuffer(np.zeros((2, 2, 4), dtype=np.float32))
        with self.assertRaises(ValueError):
            ImageBuffer(np.zeros((0, 2, 4), dtype=np.uint8))

    def test_is_immutable_copy(self):
        arr = random_rgba(2, 2)
        buf = ImageBuffer(arr)
        arr[0, 0, 0] ^= 0xFF
        self.assertNotEqual(int(buf.pixels[0, 0, 0]), int(arr[0, 0, 0]))
        with self.assertRaises(ValueError):
            buf.pixels[0, 0, 0] = 1


class TestDestinationFolder(unittest.TestCase):
    def setUp(self):
        self.tmpdir = tempfile.mkdtemp()

    def tearDown(self):
        shutil.rmtree(self.tmpdir, ignore_errors=True)

    def test_create_publishes_on_success(self):
        dest = DestinationFolder(self.tmpdir)
        stream = dest.create("a/b.png")
        with stream:
            stream.write(b"data")
        with open(os.path.join(self.tmpdir, "a", "b.png"), "rb") as f:
            self.assertEqual(f.read(), b"data")
        self.assertEqual(os.listdir(os.path.join(self.tmpdir, "a")), ["b.png"])

    def test_failure_leaves_no_partial_file(self):
        dest = DestinationFolder(self.tmpdir)
        stream = dest.create("x.png")
        with self.assertRaises(RuntimeError):
            with stream:
                stream.write(b"partial")
                raise RuntimeError("boom")
        self.assertEqual(os.listdir(self.tmpdir), [])

    def test_empty_stream_publishes_nothing(self):
        dest = DestinationFolder(self.tmpdir)
        with dest.create("empty.png"):
            pass
        self.assertEqual(os.listdir(self.tmpdir), [])

    def test_dry_run_and_no_overwrite_decline(self):
        self.assertIsNone(DestinationFolder(self.tmpdir, dry_run=True).create("a.png"))
        self.assertFalse(DestinationFolder(self.tmpdir, dry_run=True)
                         .copy_file(__file__, "a.py"))
        path = os.path.join(self.tmpdir, "keep.png")
        with open(path, "wb") as f:
            f.write(b"old")
        dest = DestinationFolder(self.tmpdir, overwrite=False)
        self.assertIsNone(dest.create("keep.png"))
        self.assertFalse(dest.copy_file(__file__, "keep.png"))
        with open(path, "rb") as f:
            self.assertEqual(f.read(), b"old")

    def test_copy_file(self):
        src = os.path.join(self.tmpdir, "src.bin")
        with open(src, "wb") as f:
            f.write(b"\x01\x02\x03")
        dest = DestinationFolder(os.path.join(self.tmpdir, "out"))
        self.assertTrue(dest.copy_file(src, "Sub\\copy.bin"))
        with open(os.path.join(self.tmpdir, "out", "Sub", "copy.bin"), "rb") as f:
            self.assertEqual(f.read(), b"\x01\x02\x03")

    def test_rejects_escaping_names(self):
        dest = DestinationFolder(self.tmpdir)
        with self.assertRaises(ValueError):
            dest.create("../evil.png")
        with self.assertRaises(ValueError):
            dest.create("/abs.png")
