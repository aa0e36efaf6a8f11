from __future__ import annotations

import logging

import pytest
from PIL import Image

from mediavault.media.media_models import ProcessingStatus
from mediavault.pipeline.image_processor import ImageProcessor, thumbnail_size
from tests.mocks.tools import StubOcrEngine


def build_processor(repository, store, ocr: StubOcrEngine | None = None) -> ImageProcessor:
    return ImageProcessor(repository=repository, store=store, ocr_engine=ocr or StubOcrEngine("hello world"))


@pytest.mark.parametrize(
    ("size", "expected"),
    [
        ((300, 200), (200, 133)),
        ((200, 200), (200, 200)),
        ((100, 50), (200, 100)),
        ((4000, 1), (200, 1)),
        ((400, 3), (200, 2)),
        ((400, 5), (200, 3)),
        ((400, 101), (200, 51)),
    ],
)
def test_thumbnail_size_keeps_aspect_ratio(size, expected) -> None:
    assert thumbnail_size(*size, 200) == expected


def test_image_job_completes_record(repository, store, make_image) -> None:
    source = make_image("receipt.png", size=(300, 200))
    record = repository.create(path=source, mime="image/png", size_bytes=source.stat().st_size)
    ocr = StubOcrEngine("hello world")

    result = build_processor(repository, store, ocr).process(record.id, source)

    stored = repository.get(record.id)
    assert result is not None
    assert stored.processing_status is ProcessingStatus.COMPLETED
    assert (stored.width, stored.height) == (300, 200)
    assert stored.ocr_text == "hello world"
    assert stored.thumb == str(store.thumb_path(record.id))
    with Image.open(stored.thumb) as thumb:
        assert thumb.size == (200, 133)
        assert thumb.format == "JPEG"
    assert ocr.calls == [source]
    assert repository.get_index_entry(record.id).ocr_text == "hello world"
    assert repository.index_in_sync(record.id)


def test_transparent_image_is_flattened_for_jpeg(repository, store, make_image) -> None:
    source = make_image("logo.png", size=(64, 32), mode="RGBA", color=(0, 0, 0, 0))
    record = repository.create(path=source, mime="image/png", size_bytes=source.stat().st_size)

    result = build_processor(repository, store).process(record.id, source)

    assert result is not None
    assert (result.width, result.height) == (64, 32)
    with Image.open(result.thumb) as thumb:
        assert thumb.mode == "RGB"
        assert thumb.size == (200, 100)


def test_undecodable_file_leaves_record_processing(repository, store, tmp_path, caplog) -> None:
    source = tmp_path / "broken.png"
    source.write_bytes(b"definitely not a png")
    record = repository.create(path=source, mime="image/png", size_bytes=20)
    ocr = StubOcrEngine("never")

    with caplog.at_level(logging.ERROR, logger="mediavault.pipeline.image_processor"):
        result = build_processor(repository, store, ocr).process(record.id, source)

    stored = repository.get(record.id)
    assert result is None
    assert stored.processing_status is ProcessingStatus.PROCESSING
    assert stored.thumb is None and stored.width is None and stored.ocr_text is None
    assert not store.thumb_path(record.id).exists()
    assert ocr.calls == []
    assert any(entry.getMessage() == "pipeline.image.aborted" for entry in caplog.records)


def test_thumbnail_write_failure_leaves_record_processing(repository, store, media_paths, make_image) -> None:
    source = make_image()
    record = repository.create(path=source, mime="image/png", size_bytes=source.stat().st_size)
    media_paths.thumbs.rmdir()
    media_paths.thumbs.write_text("occupied")

    result = build_processor(repository, store).process(record.id, source)

    assert result is None
    assert repository.get(record.id).processing_status is ProcessingStatus.PROCESSING


def test_ocr_failure_degrades_to_empty_text(repository, store, make_image, caplog) -> None:
    source = make_image()
    record = repository.create(path=source, mime="image/png", size_bytes=source.stat().st_size)
    ocr = StubOcrEngine(error=RuntimeError("tesseract crashed"))

    with caplog.at_level(logging.WARNING, logger="mediavault.pipeline.image_processor"):
        result = build_processor(repository, store, ocr).process(record.id, source)

    stored = repository.get(record.id)
    assert result is not None
    assert stored.processing_status is ProcessingStatus.COMPLETED
    assert stored.ocr_text == ""
    assert stored.thumb is not None
    assert any(entry.getMessage() == "pipeline.image.ocr_degraded" for entry in caplog.records)


def test_replaying_a_job_is_idempotent(repository, store, media_paths, make_image) -> None:
    source = make_image()
    record = repository.create(path=source, mime="image/png", size_bytes=source.stat().st_size)
    processor = build_processor(repository, store)

    processor.process(record.id, source)
    first = repository.get(record.id)
    processor.process(record.id, source)
    second = repository.get(record.id)

    assert (first.thumb, first.width, first.height, first.ocr_text, first.processing_status) == (
        second.thumb,
        second.width,
        second.height,
        second.ocr_text,
        second.processing_status,
    )
    assert list(media_paths.thumbs.iterdir()) == [store.thumb_path(record.id)]


def test_missing_record_is_reported_not_raised(repository, store, make_image, caplog) -> None:
    source = make_image()

    with caplog.at_level(logging.ERROR, logger="mediavault.pipeline.image_processor"):
        result = build_processor(repository, store).process("no-such-id", source)

    assert result is None
    assert any(entry.getMessage() == "pipeline.image.persist_failed" for entry in caplog.records)
