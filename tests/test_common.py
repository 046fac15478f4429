"""Tests for scenecast.common utilities."""

import pytest
from PIL import ImageFont

from scenecast.common import (
    load_font,
    parse_color,
    resolve_path_vars,
    to_ffmpeg_color,
)


class TestParseColor:
    def test_hex(self):
        assert parse_color("#e04c77") == (224, 76, 119, 255)

    def test_short_hex(self):
        assert parse_color("#fff") == (255, 255, 255, 255)

    def test_bare_hex(self):
        assert parse_color("1A1A1A") == (26, 26, 26, 255)

    def test_ffmpeg_hex(self):
        assert parse_color("0xFF0000") == (255, 0, 0, 255)

    def test_named(self):
        assert parse_color("black") == (0, 0, 0, 255)

    def test_alpha_suffix(self):
        assert parse_color("black@0.5") == (0, 0, 0, 128)

    def test_alpha_clamped(self):
        assert parse_color("white@3")[3] == 255

    def test_unknown_raises(self):
        with pytest.raises(ValueError, match="Unknown color"):
            parse_color("not-a-color")

    def test_bad_alpha_raises(self):
        with pytest.raises(ValueError, match="Unknown color"):
            parse_color("black@half")


class TestToFfmpegColor:
    def test_opaque(self):
        assert to_ffmpeg_color("#ffffff") == "0xFFFFFF@1.00"

    def test_translucent(self):
        assert to_ffmpeg_color("black@0.5") == "0x000000@0.50"


class TestResolvePathVars:
    def test_single_var(self):
        result = resolve_path_vars("${videos}/broll", {"videos": "/data/vids"})
        assert result == "/data/vids/broll"

    def test_multiple_vars(self):
        paths = {"videos": "/data/vids", "templates": "/data/tpl"}
        result = resolve_path_vars("${videos}/a and ${templates}/b", paths)
        assert result == "/data/vids/a and /data/tpl/b"

    def test_no_vars(self):
        assert resolve_path_vars("/plain/path", {}) == "/plain/path"

    def test_unknown_var_raises(self):
        with pytest.raises(ValueError, match="Unknown path variable"):
            resolve_path_vars("${missing}/x", {})


class TestLoadFont:
    def test_returns_usable_font(self):
        font = load_font(32)
        assert isinstance(font, (ImageFont.FreeTypeFont, ImageFont.ImageFont))
        assert font.getbbox("Hello")[2] > 0

    def test_bold(self):
        assert load_font(32, bold=True).getbbox("Hello")[2] > 0
