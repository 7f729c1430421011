"""Project scanner: file classification and framework detection."""

from vibecheck.scanner.classify import classify_file, detect_framework
from vibecheck.scanner.types import FileCategory, FileInfo, ProjectSnapshot
from vibecheck.scanner.walker import read_manifest_deps, scan_project

__all__ = [
    "FileCategory",
    "FileInfo",
    "ProjectSnapshot",
    "classify_file",
    "detect_framework",
    "read_manifest_deps",
    "scan_project",
]
