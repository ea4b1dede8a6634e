"""Tests for channel repacking conversions."""

import unittest

import numpy as np

from TexRepack.config import NamingConfig, SmoothnessChannel, TextureSemantic
from TexRepack.conversion import (
    convert_diffuse,
    convert_metallic_glossiness,
    convert_specular_glossiness,
    specular_metalness,
)
from TexRepack.core import ImageBuffer, get_texture_output_name, replace_extension


def rgba(pixels):
    """Build an ImageBuffer from nested RGBA lists (rows top to bottom)."""
    return ImageBuffer(np.asarray(pixels, dtype=np.uint8))


def random_rgba(width, height, seed=0):
    rng = np.random.default_rng(seed)
    return rng.integers(0, 256, size=(height, width, 4), dtype=np.uint8)


def _direct_metallic(metal: np.ndarray, smooth: np.ndarray) -> np.ndarray:
    out = np.zeros(metal.shape, dtype=np.uint8)
    out[..., 0] = np.round((1.0 - smooth[..., 3] / 255.0) * 255.0)
    out[..., 1] = metal[..., 0]
    out[..., 3] = 255
    return out


class TestMetallicGlossiness(unittest.TestCase):
    def test_channels_for_coincident_source(self):
        src = rgba([
            [[0, 9, 9, 255], [64, 9, 9, 255]],
            [[128, 9, 9, 0], [255, 9, 9, 0]],
        ])
        out = convert_metallic_glossiness(src, src).pixels
        np.testing.assert_array_equal(out[..., 1].ravel(), [0, 64, 128, 255])
        np.testing.assert_array_equal(out[..., 0].ravel(), [0, 0, 255, 255])
        np.testing.assert_array_equal(out[..., 2], 0)
        np.testing.assert_array_equal(out[..., 3], 255)

    def test_defaults_smoothness_to_metallic(self):
        src = ImageBuffer(random_rgba(3, 3))
        self.assertEqual(convert_metallic_glossiness(src), convert_metallic_glossiness(src, src))

    def test_separate_smoothness_source(self):
        metal = ImageBuffer(random_rgba(4, 4, seed=1))
        smooth = ImageBuffer(random_rgba(4, 4, seed=2))
        out = convert_metallic_glossiness(metal, smooth)
        np.testing.assert_array_equal(out.pixels, _direct_metallic(metal.pixels, smooth.pixels))

    def test_output_uses_largest_dimensions(self):
        metal = ImageBuffer(random_rgba(2, 8))
        smooth = ImageBuffer(random_rgba(6, 3))
        out = convert_metallic_glossiness(metal, smooth)
        self.assertEqual(out.size, (6, 8))

    def test_mismatched_sizes_resample_each_input(self):
        metal = rgba([[[10, 0, 0, 0], [200, 0, 0, 0]]])  # 2x1
        smooth = rgba([[[0, 0, 0, 255]], [[0, 0, 0, 0]]])  # 1x2
        out = convert_metallic_glossiness(metal, smooth).pixels
        self.assertEqual(out.shape, (2, 2, 4))
        np.testing.assert_array_equal(out[..., 1], [[10, 200], [10, 200]])
        np.testing.assert_array_equal(out[..., 0], [[0, 0], [255, 255]])

    def test_sources_not_mutated(self):
        arr = random_rgba(3, 2)
        src = ImageBuffer(arr)
        convert_metallic_glossiness(src)
        np.testing.assert_array_equal(src.pixels, arr)
        self.assertFalse(src.pixels.flags.writeable)


class TestSpecularGlossiness(unittest.TestCase):
    def test_equal_luminance_gives_half_metalness(self):
        spec = rgba([[[100, 100, 100, 255]]])
        diff = rgba([[[100, 100, 100, 255]]])
        m = specular_metalness(np.array([0.4]), np.array([0.4]))
        self.assertEqual(float(m[0]), 0.5)
        out = convert_specular_glossiness(spec, diff).pixels
        self.assertEqual(int(out[0, 0, 1]), 128)  # round(0.5 * 255)

    def test_zero_luminance_is_guarded(self):
        spec = rgba([[[0, 0, 0, 255]]])
        diff = rgba([[[0, 0, 0, 255]]])
        out = convert_specular_glossiness(spec, diff).pixels
        self.assertEqual(int(out[0, 0, 1]), 0)
        out = convert_specular_glossiness(spec, diff, zero_value=1.0).pixels
        self.assertEqual(int(out[0, 0, 1]), 255)
        self.assertFalse(np.isnan(specular_metalness(np.zeros(3), np.zeros(3))).any())

    def test_black_diffuse_gives_full_metalness(self):
        spec = rgba([[[200, 180, 160, 255]]])
        diff = rgba([[[0, 0, 0, 255]]])
        out = convert_specular_glossiness(spec, diff).pixels
        self.assertEqual(int(out[0, 0, 1]), 255)

    def test_smoothness_channel_selects_source(self):
        spec = rgba([[[50, 50, 50, 255]]])
        diff = rgba([[[50, 50, 50, 0]]])
        own = convert_specular_glossiness(
            spec, diff, SmoothnessChannel.METALLIC_OR_SPECULAR_ALPHA).pixels
        albedo = convert_specular_glossiness(
            spec, diff, SmoothnessChannel.ALBEDO_ALPHA).pixels
        self.assertEqual(int(own[0, 0, 0]), 0)
        self.assertEqual(int(albedo[0, 0, 0]), 255)

    def test_grid_follows_specular_and_smoothness_source(self):
        spec = ImageBuffer(random_rgba(2, 2))
        diff = ImageBuffer(random_rgba(4, 4))
        own = convert_specular_glossiness(
            spec, diff, SmoothnessChannel.METALLIC_OR_SPECULAR_ALPHA)
        albedo = convert_specular_glossiness(spec, diff, SmoothnessChannel.ALBEDO_ALPHA)
        self.assertEqual(own.size, (2, 2))
        self.assertEqual(albedo.size, (4, 4))

    def test_same_size_matches_direct_formula(self):
        spec_arr = random_rgba(5, 4, seed=3)
        diff_arr = random_rgba(5, 4, seed=4)
        out = convert_specular_glossiness(ImageBuffer(spec_arr), ImageBuffer(diff_arr)).pixels
        w = np.array([0.2126, 0.7152, 0.0722])
        s = (spec_arr[..., :3] / 255.0) @ w
        d = (diff_arr[..., :3] / 255.0) @ w
        expected_m = np.round(np.clip(np.where(d + s > 0, s / np.where(d + s > 0, d + s, 1), 0),
                                      0, 1) * 255).astype(np.uint8)
        np.testing.assert_array_equal(out[..., 1], expected_m)
        np.testing.assert_array_equal(
            out[..., 0], np.round((1.0 - spec_arr[..., 3] / 255.0) * 255.0).astype(np.uint8))


class TestDiffuse(unittest.TestCase):
    def test_adds_specular_and_keeps_alpha(self):
        diff = rgba([[[10, 20, 30, 40]]])
        spec = rgba([[[1, 2, 3, 200]]])
        out = convert_diffuse(diff, spec).pixels
        np.testing.assert_array_equal(out[0, 0], [11, 22, 33, 40])

    def test_saturates(self):
        diff = rgba([[[250, 100, 0, 255]]])
        spec = rgba([[[10, 200, 0, 0]]])
        out = convert_diffuse(diff, spec).pixels
        np.testing.assert_array_equal(out[0, 0], [255, 255, 0, 255])

    def test_missing_specular_is_black(self):
        arr = random_rgba(3, 3)
        out = convert_diffuse(ImageBuffer(arr))
        np.testing.assert_array_equal(out.pixels, arr)

    def test_larger_specular_upsamples_diffuse(self):
        diff = rgba([[[10, 10, 10, 77]]])
        spec = ImageBuffer(np.zeros((2, 3, 4), dtype=np.uint8))
        out = convert_diffuse(diff, spec).pixels
        self.assertEqual(out.shape, (2, 3, 4))
        np.testing.assert_array_equal(out[..., 3], 77)


class TestOutputNames(unittest.TestCase):
    def test_replace_extension(self):
        self.assertEqual(replace_extension("Foo/Bar.tga", ".X.png"), "Foo/Bar.X.png")
        self.assertEqual(replace_extension("Foo/Bar", ".X.png"), "Foo/Bar.X.png")
        self.assertEqual(replace_extension("Foo.d/Bar", ".X.png"), "Foo.d/Bar.X.png")
        self.assertEqual(replace_extension("a.b.c", ".png"), "a.b.png")

    def test_semantic_names(self):
        mr = "Foo/Bar.MetallicRoughness.png"
        self.assertEqual(
            get_texture_output_name("Foo/Bar.tga", TextureSemantic.METALLIC_GLOSSINESS), mr)
        self.assertEqual(
            get_texture_output_name("Foo/Bar", TextureSemantic.METALLIC_GLOSSINESS), mr)
        self.assertEqual(
            get_texture_output_name("Foo/Bar.tga", TextureSemantic.SPECULAR_GLOSSINESS), mr)
        self.assertEqual(
            get_texture_output_name("Foo/Bar.tga", TextureSemantic.DIFFUSE),
            "Foo/Bar.BaseColor.png")
        self.assertEqual(
            get_texture_output_name("Foo/Bar.tga", TextureSemantic.NONE), "Foo/Bar.tga")

    def test_custom_suffixes(self):
        naming = NamingConfig(metallic_roughness_suffix=".mr.png")
        self.assertEqual(
            get_texture_output_name("a.tga", TextureSemantic.METALLIC_GLOSSINESS, naming),
            "a.mr.png")
