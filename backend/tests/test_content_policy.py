"""Tests for the static-site content policy."""

from deployer.core import content_policy
from deployer.core.content_policy import (
    DEFAULT_CONTENT_TYPE,
    FileEntry,
    Rejection,
    RejectionReason,
    ValidationReport,
)


def entries(*paths, size=10):
    return [FileEntry(path, size) for path in paths]


class TestValidate:
    """Tests for content_policy.validate."""

    def test_accepts_site_with_entry_document(self):
        result = content_policy.validate(entries("index.html", "style.css", "app.js"))

        assert isinstance(result, ValidationReport)
        assert result.files_count == 3
        assert result.total_bytes == 30
        assert result.entry_documents == ["index.html"]
        assert result.content_types["index.html"] == "text/html"
        assert result.content_types["style.css"].startswith("text/css")

    def test_nested_entry_document_is_enough(self):
        result = content_policy.validate(entries("docs/index.html", "docs/logo.svg"))

        assert isinstance(result, ValidationReport)
        assert result.entry_documents == ["docs/index.html"]

    def test_empty_batch_rejected(self):
        result = content_policy.validate([])

        assert isinstance(result, Rejection)
        assert result.reason == RejectionReason.EMPTY_BATCH

    def test_missing_entry_document_rejected(self):
        result = content_policy.validate(entries("about.html", "style.css"))

        assert isinstance(result, Rejection)
        assert result.reason == RejectionReason.MISSING_ENTRY_DOCUMENT
        assert "index.html" in result.message

    def test_lists_every_disallowed_file(self):
        result = content_policy.validate(entries("index.html", "setup.exe", "assets/shell.php", "ok.png"))

        assert isinstance(result, Rejection)
        assert result.reason == RejectionReason.DISALLOWED_FILE_TYPE
        assert result.offending_paths == ["setup.exe", "assets/shell.php"]
        assert "setup.exe" in result.message
        assert "assets/shell.php" in result.message

    def test_extension_check_is_case_insensitive(self):
        result = content_policy.validate(entries("index.html", "Photo.JPG", "Logo.SVG"))

        assert isinstance(result, ValidationReport)
        assert result.content_types["Photo.JPG"] == "image/jpeg"

    def test_entry_document_name_is_exact(self):
        result = content_policy.validate(entries("index.HTML", "Photo.JPG"))

        assert isinstance(result, Rejection)
        assert result.reason == RejectionReason.MISSING_ENTRY_DOCUMENT

    def test_duplicate_paths_rejected(self):
        result = content_policy.validate(
            entries("index.html", "app.js", "index.html", "app.js", "style.css")
        )

        assert isinstance(result, Rejection)
        assert result.reason == RejectionReason.DUPLICATE_PATH
        assert result.offending_paths == ["index.html", "app.js"]
        assert "app.js" in result.message

    def test_files_without_extension_allowed(self):
        result = content_policy.validate(entries("index.html", "LICENSE", "CNAME"))

        assert isinstance(result, ValidationReport)
        assert result.content_types["LICENSE"] == DEFAULT_CONTENT_TYPE

    def test_invalid_paths_rejected(self):
        result = content_policy.validate(
            entries("index.html", "../secret.html", "/abs.html", "_deployments/abc/index.html")
        )

        assert isinstance(result, Rejection)
        assert result.reason == RejectionReason.INVALID_PATH
        assert result.offending_paths == ["../secret.html", "/abs.html", "_deployments/abc/index.html"]

    def test_declared_content_type_wins(self):
        files = [
            FileEntry("index.html", 10, "text/html; charset=utf-8"),
            FileEntry("data.json", 5, "  "),
        ]
        result = content_policy.validate(files)

        assert result.content_types["index.html"] == "text/html; charset=utf-8"
        assert result.content_types["data.json"] == "application/json"


class TestHelpers:
    """Tests for the path and MIME helpers."""

    def test_normalize_path(self):
        assert content_policy.normalize_path("./assets\\img\\a.png") == "assets/img/a.png"
        assert content_policy.normalize_path("index.html") == "index.html"

    def test_file_extension(self):
        assert content_policy.file_extension("a/b/c.TAR.GZ") == "gz"
        assert content_policy.file_extension(".htaccess") == ""
        assert content_policy.file_extension("Makefile") == ""

    def test_is_entry_document(self):
        assert content_policy.is_entry_document("index.html")
        assert content_policy.is_entry_document("blog/index.html")
        assert not content_policy.is_entry_document("myindex.html")

    def test_resolve_content_type_defaults_to_binary(self):
        assert content_policy.resolve_content_type("blob") == DEFAULT_CONTENT_TYPE
        assert content_policy.resolve_content_type("font.woff2") == "font/woff2"
