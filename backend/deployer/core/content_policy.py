"""
Content policy for uploaded static sites.

Checks a batch of uploaded paths against the static-asset extension
allow-list, requires an ``index.html`` entry document and resolves a MIME
type per file. Validation is pure: a rejected batch comes back as a
``Rejection`` value, nothing is raised.
"""

import posixpath
from collections import Counter
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, FrozenSet, Iterable, List, Optional, Union

from deployer.config.settings import DeployConfig

ENTRY_DOCUMENT = "index.html"
DEFAULT_CONTENT_TYPE = "application/octet-stream"

# Normalized extension (no dot, lower case) -> MIME type
CONTENT_TYPES: Dict[str, str] = {
    # markup and data
    "html": "text/html",
    "htm": "text/html",
    "xhtml": "application/xhtml+xml",
    "xml": "application/xml",
    "txt": "text/plain",
    "md": "text/markdown",
    "json": "application/json",
    "map": "application/json",
    "csv": "text/csv",
    "rss": "application/rss+xml",
    "atom": "application/atom+xml",
    # scripts and styles
    "js": "application/javascript",
    "mjs": "application/javascript",
    "cjs": "application/javascript",
    "wasm": "application/wasm",
    "css": "text/css",
    # images
    "png": "image/png",
    "jpg": "image/jpeg",
    "jpeg": "image/jpeg",
    "gif": "image/gif",
    "svg": "image/svg+xml",
    "ico": "image/x-icon",
    "webp": "image/webp",
    "avif": "image/avif",
    "bmp": "image/bmp",
    "apng": "image/apng",
    # fonts
    "woff": "font/woff",
    "woff2": "font/woff2",
    "ttf": "font/ttf",
    "otf": "font/otf",
    "eot": "application/vnd.ms-fontobject",
    # audio
    "mp3": "audio/mpeg",
    "wav": "audio/wav",
    "ogg": "audio/ogg",
    "oga": "audio/ogg",
    "m4a": "audio/mp4",
    "aac": "audio/aac",
    "flac": "audio/flac",
    "weba": "audio/webm",
    # video
    "mp4": "video/mp4",
    "webm": "video/webm",
    "ogv": "video/ogg",
    "mov": "video/quicktime",
    # 3D and documents
    "glb": "model/gltf-binary",
    "gltf": "model/gltf+json",
    "bin": DEFAULT_CONTENT_TYPE,
    "obj": "model/obj",
    "stl": "model/stl",
    "usdz": "model/vnd.usdz+zip",
    "hdr": "image/vnd.radiance",
    "pdf": "application/pdf",
    # manifests
    "webmanifest": "application/manifest+json",
}

ALLOWED_EXTENSIONS: FrozenSet[str] = frozenset(CONTENT_TYPES) | frozenset(
    ext.lower().lstrip(".") for ext in DeployConfig.EXTRA_EXTENSIONS
)


class RejectionReason(str, Enum):
    """Why a batch was refused"""
    EMPTY_BATCH = "empty_batch"
    INVALID_PATH = "invalid_path"
    DISALLOWED_FILE_TYPE = "disallowed_file_type"
    DUPLICATE_PATH = "duplicate_path"
    MISSING_ENTRY_DOCUMENT = "missing_entry_document"


@dataclass(frozen=True)
class FileEntry:
    """One file of a batch as seen by the policy"""
    path: str
    size_bytes: int
    content_type: Optional[str] = None


@dataclass
class ValidationReport:
    """Accepted batch: resolved MIME type per path"""
    content_types: Dict[str, str]
    entry_documents: List[str]
    total_bytes: int

    @property
    def files_count(self) -> int:
        return len(self.content_types)


@dataclass
class Rejection:
    """Rejected batch, naming every offending path"""
    reason: RejectionReason
    message: str
    offending_paths: List[str] = field(default_factory=list)


def normalize_path(path: str) -> str:
    """Use forward slashes and drop a leading ``./``."""
    path = path.replace("\\", "/")
    while path.startswith("./"):
        path = path[2:]
    return path


def file_extension(path: str) -> str:
    """Lower-cased extension of the basename, '' when there is none."""
    basename = posixpath.basename(path)
    stem, dot, ext = basename.rpartition(".")
    # ".htaccess"-style names and names without a dot have no extension
    if not dot or not stem:
        return ""
    return ext.lower()


def is_entry_document(path: str) -> bool:
    return path == ENTRY_DOCUMENT or path.endswith("/" + ENTRY_DOCUMENT)


def is_valid_path(path: str, reserved_prefix: str = DeployConfig.SNAPSHOT_PREFIX) -> bool:
    """Relative, no parent segments, and outside the snapshot namespace."""
    if not path or path.startswith("/") or path.endswith("/"):
        return False
    if any(part in ("", ".", "..") for part in path.split("/")):
        return False
    return not path.startswith(reserved_prefix)


def resolve_content_type(path: str, declared: Optional[str] = None) -> str:
    """Declared type if non-empty, else by extension, else generic binary."""
    if declared and declared.strip():
        return declared.strip()
    return CONTENT_TYPES.get(file_extension(path), DEFAULT_CONTENT_TYPE)


def validate(
    files: Iterable[FileEntry],
    allowed_extensions: FrozenSet[str] = ALLOWED_EXTENSIONS,
    reserved_prefix: str = DeployConfig.SNAPSHOT_PREFIX,
) -> Union[ValidationReport, Rejection]:
    """
    Validate a batch of uploaded files.

    Args:
        files: Entries with already normalized relative paths
        allowed_extensions: Extension allow-list; files without an
            extension are always allowed
        reserved_prefix: Key prefix user files may not write into

    Returns:
        ValidationReport when the whole batch is acceptable, otherwise a
        Rejection listing every offending path.
    """
    files = list(files)
    if not files:
        return Rejection(RejectionReason.EMPTY_BATCH, "No files to deploy")

    invalid = [f.path for f in files if not is_valid_path(f.path, reserved_prefix)]
    if invalid:
        return Rejection(
            RejectionReason.INVALID_PATH,
            f"Invalid file paths: {', '.join(invalid)}",
            invalid,
        )

    counts = Counter(f.path for f in files)
    duplicates = [path for path, n in counts.items() if n > 1]
    if duplicates:
        return Rejection(
            RejectionReason.DUPLICATE_PATH,
            f"Duplicate file paths: {', '.join(duplicates)}",
            duplicates,
        )

    disallowed = [
        f.path for f in files
        if file_extension(f.path) and file_extension(f.path) not in allowed_extensions
    ]
    if disallowed:
        return Rejection(
            RejectionReason.DISALLOWED_FILE_TYPE,
            f"File types not allowed for static hosting: {', '.join(disallowed)}",
            disallowed,
        )

    entries = [f.path for f in files if is_entry_document(f.path)]
    if not entries:
        return Rejection(
            RejectionReason.MISSING_ENTRY_DOCUMENT,
            f"Missing entry document: the upload must contain {ENTRY_DOCUMENT}",
        )

    return ValidationReport(
        content_types={f.path: resolve_content_type(f.path, f.content_type) for f in files},
        entry_documents=entries,
        total_bytes=sum(f.size_bytes for f in files),
    )
