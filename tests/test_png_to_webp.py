"""Tests for 3D PNG -> WebP conversion (runs Pillow for real)."""

import json

from PIL import Image

from config import WebpConfig
from png_to_webp import ImageConverter, render_webp


def write_png(path, size=(40, 20), color=(255, 0, 0, 255)):
    path.parent.mkdir(parents=True, exist_ok=True)
    Image.new("RGBA", size, color).save(path, format="PNG")


def make_config(tmp_path, **overrides):
    values = dict(
        assets_dir=tmp_path / "assets",
        resolutions=[16, 32],
        errors_log=tmp_path / "conversion-errors.json",
        concurrent_conversions=2,
    )
    values.update(overrides)
    return WebpConfig(**values)


def test_render_webp_contains_on_transparent_canvas(tmp_path):
    out = tmp_path / "out.webp"
    render_webp(Image.new("RGBA", (40, 20), (255, 0, 0, 255)), 16, out)

    with Image.open(out) as img:
        assert img.format == "WEBP"
        assert img.size == (16, 16)
        rgba = img.convert("RGBA")
        # 40x20 fits as 16x8, centred vertically
        assert rgba.getpixel((8, 0))[3] == 0
        assert rgba.getpixel((8, 8))[3] == 255


def test_render_webp_keeps_semi_transparent_pixels(tmp_path):
    out = tmp_path / "out.webp"
    render_webp(Image.new("RGBA", (16, 16), (255, 0, 0, 128)), 16, out)

    with Image.open(out) as img:
        r, g, b, a = img.convert("RGBA").getpixel((8, 8))
    assert abs(a - 128) <= 3
    assert r > 230
    assert g < 25 and b < 25


def test_render_webp_upscales_small_images(tmp_path):
    out = tmp_path / "out.webp"
    render_webp(Image.new("RGBA", (8, 8), (0, 0, 255, 255)), 32, out)
    with Image.open(out) as img:
        assert img.size == (32, 32)
        assert img.convert("RGBA").getpixel((0, 0))[3] == 255


def test_convert_all_creates_every_size(tmp_path):
    config = make_config(tmp_path)
    write_png(config.assets_dir / "grinning face" / "Default" / "3D.png")
    write_png(config.assets_dir / "waving hand" / "Light" / "3D.png")
    write_png(config.assets_dir / "waving hand" / "Light" / "Color.png")

    converter = ImageConverter(config)
    assert converter.convert_all() is True

    for folder in ["grinning face/Default", "waving hand/Light"]:
        for size in (16, 32):
            assert (config.assets_dir / folder / f"3D_{size}.webp").exists()
    assert not (config.assets_dir / "waving hand" / "Light" / "Color_16.webp").exists()
    assert converter.total_images == 2
    assert converter.processed_count == 2
    assert converter.error_count == 0
    assert not config.errors_log.exists()


def test_broken_image_is_logged_and_retried(tmp_path):
    config = make_config(tmp_path)
    good = config.assets_dir / "ok" / "3D.png"
    bad = config.assets_dir / "bad" / "3D.png"
    write_png(good)
    bad.parent.mkdir(parents=True)
    bad.write_bytes(b"not a png")

    converter = ImageConverter(config)
    converter.convert_all()

    assert converter.processed_count == 1
    assert converter.error_count == 1
    logged = json.loads(config.errors_log.read_text(encoding="utf-8"))
    assert logged[0]["image"] == str(bad)
    assert [f["size"] for f in logged[0]["failures"]] == [16, 32]

    # Fix the file and replay only the logged image
    write_png(bad)
    (good.parent / "3D_16.webp").unlink()

    retry = ImageConverter(config)
    assert retry.retry_failed() is True
    assert retry.total_images == 1
    assert retry.processed_count == 1
    assert (bad.parent / "3D_32.webp").exists()
    assert not (good.parent / "3D_16.webp").exists()
    assert not config.errors_log.exists()


def test_convert_all_without_matches(tmp_path):
    config = make_config(tmp_path)
    config.assets_dir.mkdir()
    assert ImageConverter(config).convert_all() is False


def test_convert_all_missing_dir(tmp_path):
    config = make_config(tmp_path)
    assert ImageConverter(config).convert_all() is False
