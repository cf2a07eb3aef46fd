from pathlib import Path

import pytest
from PIL import Image, features

from thecompressor import engine
from thecompressor.codecs import STRATEGIES, encode_lossy, encode_native
from thecompressor.engine import build_output_path, compress_single, file_size, run_job
from thecompressor.errors import BitmapConversionFailed, DecodeFailed, EncodeFailed, ProbeFailed
from thecompressor.formats import OutputFormat
from thecompressor.results import CompressionJob


def _job(path: Path, fmt=OutputFormat.WEBP, quality=0.8) -> CompressionJob:
    return CompressionJob(source=path, output_format=fmt, quality=quality)


@pytest.fixture
def out_dir(tmp_path: Path) -> Path:
    d = tmp_path / "out"
    d.mkdir()
    return d


def test_file_size(tmp_path: Path):
    p = tmp_path / "blob.bin"
    p.write_bytes(b"x" * 1234)
    assert file_size(p) == 1234


def test_file_size_missing_raises_probe_failed(tmp_path: Path):
    with pytest.raises(ProbeFailed):
        file_size(tmp_path / "nope.png")


def test_output_path_swaps_extension(out_dir: Path):
    job = _job(Path("/photos/holiday.final.jpeg"))
    assert build_output_path(job.source, out_dir, job) == out_dir / "holiday.final.webp"


def test_compress_single_webp(make_image, out_dir: Path):
    src = make_image("photo.png")

    result = compress_single(_job(src), out_dir)

    assert result.filename == "photo.png"
    assert result.output_path == (out_dir / "photo.webp").resolve()
    assert result.output_path.is_absolute()
    assert result.original_size == src.stat().st_size
    assert result.compressed_size == result.output_path.stat().st_size
    with Image.open(result.output_path) as im:
        assert im.format == "WEBP"
        assert im.size == (64, 48)


@pytest.mark.parametrize("mode", ["RGBA", "P", "L"])
def test_compress_single_converts_modes(make_image, out_dir: Path, mode):
    src = make_image(f"m_{mode}.png", mode=mode)
    result = compress_single(_job(src), out_dir)
    assert result.compressed_size > 0


@pytest.mark.skipif(not features.check("avif"), reason="Pillow built without AVIF")
def test_compress_single_avif(make_image, out_dir: Path):
    src = make_image("shot.jpg")

    result = compress_single(_job(src, OutputFormat.AVIF, 0.5), out_dir)

    assert result.output_path.name == "shot.avif"
    assert result.output_path.exists()


def test_decode_failure(tmp_path: Path, out_dir: Path):
    bad = tmp_path / "broken.png"
    bad.write_bytes(b"definitely not a png")

    with pytest.raises(DecodeFailed):
        compress_single(_job(bad), out_dir)
    assert list(out_dir.iterdir()) == []


def test_encode_failure_writes_nothing(make_image, out_dir: Path):
    src = make_image("photo.png")
    calls = []

    def refuse(im, path, quality):
        calls.append((im.mode, path, quality))
        return False

    with pytest.raises(EncodeFailed):
        compress_single(_job(src, quality=0.3), out_dir, strategies={OutputFormat.WEBP: refuse})

    assert calls == [("RGB", out_dir / "photo.webp", 0.3)]
    assert list(out_dir.iterdir()) == []


def test_run_job_wraps_failures(tmp_path: Path, out_dir: Path):
    missing = _job(tmp_path / "gone.jpg")

    outcome = run_job(missing, out_dir)

    assert not outcome.ok
    assert outcome.result is None
    assert isinstance(outcome.error, ProbeFailed)
    assert outcome.job is missing


def test_run_job_success(make_image, out_dir: Path):
    outcome = run_job(_job(make_image("a.png")), out_dir)
    assert outcome.ok
    assert outcome.error is None


def test_strategy_table_covers_every_format():
    assert set(STRATEGIES) == set(OutputFormat)
    assert STRATEGIES[OutputFormat.WEBP] is encode_lossy
    assert STRATEGIES[OutputFormat.AVIF] is encode_native


def test_lossy_quality_changes_size(out_dir: Path):
    im = Image.effect_noise((128, 128), 64).convert("RGB")

    low, high = out_dir / "low.webp", out_dir / "high.webp"
    assert encode_lossy(im, low, 0.1)
    assert encode_lossy(im, high, 1.0)
    assert low.stat().st_size < high.stat().st_size


def test_lossy_write_failure(out_dir: Path):
    im = Image.new("RGB", (8, 8))
    assert encode_lossy(im, out_dir / "missing_dir" / "x.webp", 0.8) is False


def test_native_without_encoder(monkeypatch, out_dir: Path):
    monkeypatch.delitem(Image.SAVE, "AVIF", raising=False)
    monkeypatch.setattr(Image, "init", lambda: None)

    target = out_dir / "x.avif"
    assert encode_native(Image.new("RGB", (8, 8)), target, 0.8) is False
    assert not target.exists()


def test_exif_orientation_is_applied(tmp_path: Path, out_dir: Path):
    src = tmp_path / "portrait.jpg"
    exif = Image.Exif()
    exif[0x0112] = 6  # rotate 90 CW on display
    Image.new("RGB", (80, 40), "red").save(src, exif=exif)

    result = compress_single(_job(src), out_dir)

    with Image.open(result.output_path) as im:
        assert im.size == (40, 80)


def test_orientation_failure_is_bitmap_failure(make_image, out_dir: Path, monkeypatch):
    def broken(im):
        raise ValueError("bad EXIF block")

    monkeypatch.setattr(engine.ImageOps, "exif_transpose", broken)

    with pytest.raises(BitmapConversionFailed):
        compress_single(_job(make_image("a.png")), out_dir)
    assert list(out_dir.iterdir()) == []
