"""Tests for input path resolution."""

import os
from pathlib import Path

import pytest

from qrbench.errors import InputAccessDeniedError, InputNotFoundError
from qrbench.io.indexer import find_images, format_hint, normalize_extensions


def _touch(path: Path) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(b"")
    return path


def test_directory_filters_by_extension_case_insensitively(tmp_path):
    for name in ("a.png", "b.txt", "c.JPG"):
        _touch(tmp_path / name)
    found = find_images(tmp_path)
    assert [c.path.name for c in found] == ["a.png", "c.JPG"]


def test_directory_walk_is_recursive_and_sorted(tmp_path):
    _touch(tmp_path / "z.png")
    _touch(tmp_path / "sub" / "b.webp")
    _touch(tmp_path / "sub" / "a.tif")
    _touch(tmp_path / "sub" / "deeper" / "c.bmp")
    found = [c.path.relative_to(tmp_path).as_posix() for c in find_images(tmp_path)]
    assert found == ["sub/a.tif", "sub/b.webp", "sub/deeper/c.bmp", "z.png"]
    assert found == [c.path.relative_to(tmp_path).as_posix() for c in find_images(tmp_path)]


def test_single_file_is_not_filtered(tmp_path):
    path = _touch(tmp_path / "notes.txt")
    found = find_images(path)
    assert len(found) == 1
    assert found[0].path == path
    assert found[0].format_hint == "txt"


def test_missing_path_raises_not_found(tmp_path):
    with pytest.raises(InputNotFoundError):
        find_images(tmp_path / "nope")


def test_dangling_symlink_input_raises_not_found(tmp_path):
    link = tmp_path / "link.png"
    try:
        link.symlink_to(tmp_path / "target.png")
    except (OSError, NotImplementedError):
        pytest.skip("symlinks not supported")
    with pytest.raises(InputNotFoundError):
        find_images(link)


@pytest.mark.skipif(os.name != "posix" or os.geteuid() == 0, reason="needs POSIX permissions as non-root")
def test_unreadable_directory_raises_access_denied(tmp_path):
    locked = tmp_path / "locked"
    locked.mkdir()
    locked.chmod(0)
    try:
        with pytest.raises(InputAccessDeniedError):
            find_images(locked)
    finally:
        locked.chmod(0o755)


def test_broken_symlink_inside_directory_is_skipped(tmp_path):
    _touch(tmp_path / "ok.png")
    try:
        (tmp_path / "broken.png").symlink_to(tmp_path / "missing.png")
    except (OSError, NotImplementedError):
        pytest.skip("symlinks not supported")
    assert [c.path.name for c in find_images(tmp_path)] == ["ok.png"]


def test_symlink_loop_terminates(tmp_path):
    _touch(tmp_path / "sub" / "img.png")
    try:
        (tmp_path / "sub" / "loop").symlink_to(tmp_path, target_is_directory=True)
    except (OSError, NotImplementedError):
        pytest.skip("symlinks not supported")
    names = [c.path.name for c in find_images(tmp_path)]
    assert names.count("img.png") == 1


def test_custom_extension_list(tmp_path):
    _touch(tmp_path / "a.png")
    _touch(tmp_path / "b.gif")
    found = find_images(tmp_path, extensions=["GIF"])
    assert [c.path.name for c in found] == ["b.gif"]


def test_format_hint_normalizes_aliases():
    assert format_hint(Path("x.JPG")) == "jpeg"
    assert format_hint(Path("x.tif")) == "tiff"
    assert format_hint(Path("x")) == ""


def test_normalize_extensions():
    assert normalize_extensions(["PNG", ".Jpg", ""]) == {".png", ".jpg"}
