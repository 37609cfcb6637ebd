# ContentSync Utility Tests
# Tests for path helpers and URL scraping

import os
from datetime import datetime
from pathlib import Path

import pytest

from contentsync.utils.paths import (
    add_filename_suffix,
    copy_tree,
    detokenize_path,
    join_within,
    matches_pattern,
    remove_dir_if_empty,
    remove_files_from_dir,
    safe_delete,
    save_json,
    split_keep_patterns,
)
from contentsync.utils.urls import MEDIA_PATTERN, find_urls, local_path_from_url


def make_files(root: Path, *names: str) -> None:
    for name in names:
        path = root / name
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(name)


class TestRemoveFilesFromDir:
    """Tests for remove_files_from_dir()."""

    def test_removes_everything_without_keep(self, temp_dir: Path):
        make_files(temp_dir, "a.json", "images/b.png")

        assert remove_files_from_dir(temp_dir) == 2
        assert list(temp_dir.iterdir()) == []

    def test_keep_patterns(self, temp_dir: Path):
        """Test that kept files survive and emptied dirs are removed."""
        make_files(temp_dir, "a.json", "b.csv", "images/c.png", "data/d.csv")

        removed = remove_files_from_dir(temp_dir, "*.csv|*.txt")

        assert removed == 2
        assert (temp_dir / "b.csv").exists()
        assert (temp_dir / "data" / "d.csv").exists()
        assert not (temp_dir / "images").exists()

    def test_kept_directory_keeps_subtree(self, temp_dir: Path):
        make_files(temp_dir, "static/a.png", "static/nested/b.png", "c.png")

        remove_files_from_dir(temp_dir, "static")

        assert (temp_dir / "static" / "nested" / "b.png").exists()
        assert not (temp_dir / "c.png").exists()

    def test_missing_directory(self, temp_dir: Path):
        assert remove_files_from_dir(temp_dir / "missing", "*.csv") == 0

    def test_split_keep_patterns(self):
        assert split_keep_patterns("*.json | *.csv|") == ["*.json", "*.csv"]
        assert split_keep_patterns("") == []
        assert split_keep_patterns(None) == []


class TestPathHelpers:
    """Tests for smaller path helpers."""

    def test_matches_pattern(self):
        assert matches_pattern("a/b/c.json", "**/*.json")
        assert matches_pattern("c.json", "*.json")
        assert not matches_pattern("c.png", "*.json")

    def test_add_filename_suffix(self):
        assert add_filename_suffix(Path("images/photo.png"), "@0.5x") == Path("images/photo@0.5x.png")

    def test_save_json(self, temp_dir: Path):
        path = save_json('{"a":"ü"}', temp_dir / "doc")
        assert path == temp_dir / "doc.json"
        assert path.read_text(encoding="utf-8") == '{"a":"ü"}'

    def test_save_json_keeps_extension(self, temp_dir: Path):
        assert save_json("[]", temp_dir / "doc.json") == temp_dir / "doc.json"

    def test_join_within(self, temp_dir: Path):
        assert join_within(temp_dir, "a/b.json") == temp_dir / "a" / "b.json"
        assert join_within(temp_dir, "a/../b.json") == temp_dir / "a" / ".." / "b.json"

    @pytest.mark.parametrize("relative", ["../escaped.json", "a/../../escaped.json", "/etc/passwd", "", "."])
    def test_join_within_rejects_escapes(self, temp_dir: Path, relative: str):
        with pytest.raises(ValueError, match="escapes"):
            join_within(temp_dir / "root", relative)

    def test_copy_tree_merges(self, temp_dir: Path):
        make_files(temp_dir / "src", "a.txt", "sub/b.txt")
        make_files(temp_dir / "dest", "a.txt", "c.txt")
        (temp_dir / "src" / "a.txt").write_text("new")

        copy_tree(temp_dir / "src", temp_dir / "dest")

        assert (temp_dir / "dest" / "a.txt").read_text() == "new"
        assert (temp_dir / "dest" / "sub" / "b.txt").exists()
        assert (temp_dir / "dest" / "c.txt").exists()

    def test_safe_delete(self, temp_dir: Path):
        make_files(temp_dir, "dir/a.txt")
        assert safe_delete(temp_dir / "dir") is True
        assert safe_delete(temp_dir / "dir", missing_ok=True) is False

    def test_remove_dir_if_empty(self, temp_dir: Path):
        (temp_dir / "empty").mkdir()
        make_files(temp_dir, "full/a.txt")
        assert remove_dir_if_empty(temp_dir / "empty") is True
        assert remove_dir_if_empty(temp_dir / "full") is False


class TestDetokenizePath:
    """Tests for detokenize_path()."""

    def test_download_path_token(self, temp_dir: Path):
        assert detokenize_path("%DOWNLOAD_PATH%/.tmp/", temp_dir) == (temp_dir / ".tmp").resolve()

    def test_timestamp_token(self, temp_dir: Path):
        moment = datetime(2024, 3, 9, 14, 5, 7)
        path = detokenize_path(f"{temp_dir}/backup-%TIMESTAMP%", temp_dir, moment)
        assert path.name == "backup-2024-03-09_14-05-07"

    def test_plain_path(self, temp_dir: Path):
        assert detokenize_path(str(temp_dir / "plain"), "/ignored") == (temp_dir / "plain").resolve()


class TestUrls:
    """Tests for URL helpers."""

    def test_local_path_from_url(self):
        assert local_path_from_url("https://cdn.example.com/images/a%20b.png?w=10#top") == os.path.join(
            "images", "a b.png"
        )

    def test_local_path_from_url_resolves_dot_segments(self):
        assert local_path_from_url("https://cdn.example.com/../../x.png") == "x.png"
        assert local_path_from_url("https://cdn.example.com/%2e%2e/a/%2E%2E/b/x.png") == os.path.join("b", "x.png")
        assert local_path_from_url("https://cdn.example.com/") == ""

    def test_find_urls_in_nested_data(self):
        data = {
            "hero": "https://cdn.example.com/hero.jpg",
            "body": "See https://cdn.example.com/clip.mp4, or https://example.com/about.",
            "gallery": [{"src": "https://cdn.example.com/hero.jpg"}, 42, None],
        }
        assert find_urls(data) == [
            "https://cdn.example.com/hero.jpg",
            "https://cdn.example.com/clip.mp4",
            "https://example.com/about",
        ]

    def test_find_urls_media_pattern(self):
        data = ["https://cdn.example.com/a.PNG", "https://example.com/page", "https://cdn.example.com/v.webm"]
        assert find_urls(data, include=MEDIA_PATTERN) == [
            "https://cdn.example.com/a.PNG",
            "https://cdn.example.com/v.webm",
        ]

    def test_find_urls_exclude(self):
        data = ["https://cdn.example.com/a.png", "https://private.example.com/b.png"]
        assert find_urls(data, exclude=r"private\.") == ["https://cdn.example.com/a.png"]
