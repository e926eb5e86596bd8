"""Tests for file loading."""

from deps.loader import (
    is_binary_by_content,
    is_binary_by_extension,
    load_file,
    load_files,
    should_skip_file,
)


class TestSkipPolicy:
    """Tests for size and binary checks."""

    def test_text_file_kept(self, write_files):
        """Test that plain text is loaded."""
        root = write_files({"a.js": "const a = 1;\n"})

        loaded = load_file(root / "a.js")

        assert not loaded.skipped
        assert loaded.content == "const a = 1;\n"
        assert loaded.size == len("const a = 1;\n")

    def test_binary_extension(self, write_files):
        """Test that known binary extensions are skipped."""
        root = write_files({"logo.PNG": "not really"})

        assert is_binary_by_extension(root / "logo.PNG")
        assert load_file(root / "logo.PNG").reason == "Binary file (by extension)"

    def test_binary_content(self, write_files):
        """Test that NUL bytes mark a file as binary."""
        root = write_files({"data.js": b"abc\x00def"})

        assert is_binary_by_content(root / "data.js")
        loaded = load_file(root / "data.js")
        assert loaded.skipped
        assert loaded.reason == "Binary file (by content)"

    def test_size_limit(self, write_files):
        """Test that files over the limit are skipped."""
        root = write_files({"big.js": "x" * 100})

        skip, reason = should_skip_file(root / "big.js", max_size=10)

        assert skip
        assert "limit" in reason

    def test_missing_file(self, tmp_path):
        """Test that a missing file is skipped with a reason."""
        loaded = load_file(tmp_path / "missing.js")

        assert loaded.skipped
        assert loaded.content is None
        assert loaded.reason.startswith("Cannot access file")

    def test_invalid_utf8(self, write_files):
        """Test that undecodable text is skipped rather than raising."""
        root = write_files({"latin.js": b"caf\xe9"})

        loaded = load_file(root / "latin.js")

        assert loaded.skipped
        assert loaded.reason.startswith("Error reading file")


class TestLoadFiles:
    """Tests for loading several files."""

    def test_split(self, write_files):
        """Test that results are split into loaded and skipped."""
        root = write_files({"a.js": "a", "b.png": "b"})

        result = load_files([root / "a.js", root / "b.png", root / "c.js"])

        assert result.total == 3
        assert result.loaded_count == 1
        assert result.skipped_count == 2
        assert result.files[0].path == root / "a.js"
