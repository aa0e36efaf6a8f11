from __future__ import annotations

import logging
from collections.abc import Callable, Iterator
from pathlib import Path

import pytest
from PIL import Image
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker

from mediavault.config import MediaPaths, build_engine, build_media_paths, ensure_media_paths
from mediavault.db.db_init import init_db
from mediavault.media.media_storage import MediaStore
from mediavault.repositories.media_repository import MediaRepository
from mediavault.search.search_index import SearchIndex


@pytest.fixture
def media_paths(tmp_path: Path) -> MediaPaths:
    paths = build_media_paths(tmp_path / "storage", tmp_path / "static")
    ensure_media_paths(paths)
    return paths


@pytest.fixture
def engine(tmp_path: Path) -> Iterator[Engine]:
    # file-backed so worker threads share the same database
    engine = build_engine(f"sqlite:///{tmp_path / 'vault.db'}")
    init_db(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine: Engine) -> sessionmaker[Session]:
    return sessionmaker(bind=engine, expire_on_commit=False)


@pytest.fixture
def repository(session_factory: sessionmaker[Session]) -> MediaRepository:
    return MediaRepository(session_factory, SearchIndex())


@pytest.fixture
def store(media_paths: MediaPaths) -> MediaStore:
    return MediaStore(media_paths)


@pytest.fixture
def make_image(tmp_path: Path) -> Callable[..., Path]:
    def _make(
        name: str = "sample.png",
        size: tuple[int, int] = (300, 200),
        mode: str = "RGB",
        color: tuple[int, ...] = (200, 30, 30),
    ) -> Path:
        target = tmp_path / "uploads" / name
        target.parent.mkdir(parents=True, exist_ok=True)
        Image.new(mode, size, color).save(target)
        return target

    return _make


@pytest.fixture(autouse=True)
def _restore_root_logging() -> Iterator[None]:
    # create_app() installs the JSON handler on the root logger
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)
