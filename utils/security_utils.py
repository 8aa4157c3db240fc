"""
Local validation for files and names before anything is sent to the backend
"""
import re
from pathlib import Path
from typing import List, Sequence

from models.upload import LocalFile, UploadMode


class InputError(ValueError):
    """Client-side validation failure; raised before any network call"""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


IMAGE_EXTENSIONS = {
    UploadMode.GENERIC: [".png", ".jpg", ".jpeg", ".gif", ".svg", ".webp"],
    UploadMode.PROJECT: [".png", ".jpg", ".jpeg", ".gif", ".svg", ".webp"],
    UploadMode.SKILL: [".svg", ".png", ".jpg", ".jpeg", ".webp"],
    UploadMode.BLOG: [".jpg", ".jpeg", ".png", ".gif", ".webp"],
}

MAX_FILE_SIZE = {
    UploadMode.GENERIC: 10 * 1024 * 1024,
    UploadMode.PROJECT: 10 * 1024 * 1024,
    UploadMode.SKILL: 5 * 1024 * 1024,
    UploadMode.BLOG: 5 * 1024 * 1024,
}

MARKDOWN_EXTENSIONS = [".md", ".markdown"]

# Skill names end up as a path segment on the backend
INVALID_SKILL_NAME_PATTERN = re.compile(r"[/\\\x00]|\.\.")


def sanitize_filename(filename: str) -> str:
    """
    Strip path components and unsafe characters from a client-supplied filename.

    Raises:
        InputError: if nothing usable is left
    """
    if not filename:
        raise InputError("Filename cannot be empty")

    filename = filename.replace("\x00", "")
    filename = filename.replace("\\", "/").split("/")[-1]
    while ".." in filename:
        filename = filename.replace("..", ".")
    filename = re.sub(r"[^a-zA-Z0-9._\-\s]", "", filename)
    filename = filename.strip(". ")

    if not filename:
        raise InputError("Filename is invalid after sanitization")

    if len(filename) > 200:
        ext = Path(filename).suffix
        filename = Path(filename).stem[:200 - len(ext)] + ext

    return filename


def get_file_extension(filename: str) -> str:
    return Path(filename).suffix.lower()


def require_single_file(files: Sequence[LocalFile]) -> LocalFile:
    """The upload workflow handles one file at a time"""
    if not files:
        raise InputError("No file provided")
    if len(files) > 1:
        raise InputError("Please select only one file at a time")
    return files[0]


def validate_image_file(file: LocalFile, mode: UploadMode) -> None:
    if not file.content:
        raise InputError("No file provided")

    ext = get_file_extension(file.filename)
    allowed = IMAGE_EXTENSIONS[mode]
    if ext not in allowed:
        raise InputError(
            f"Invalid file type '{ext or file.filename}'. Allowed: {', '.join(e.lstrip('.').upper() for e in allowed)}"
        )
    if file.content_type and not file.content_type.startswith("image/") and file.content_type != "application/octet-stream":
        raise InputError("Please select a valid image file")

    limit = MAX_FILE_SIZE[mode]
    if file.size > limit:
        raise InputError(f"File size too large. Maximum size is {limit // (1024 * 1024)}MB")


def validate_skill_name(skill_name) -> str:
    name = (skill_name or "").strip()
    if not name:
        raise InputError("Skill name is required for upload")
    if INVALID_SKILL_NAME_PATTERN.search(name):
        raise InputError("Skill name contains invalid characters")
    return name


def pick_markdown_file(files: Sequence[LocalFile]) -> LocalFile:
    md_files: List[LocalFile] = [f for f in files if get_file_extension(f.filename) in MARKDOWN_EXTENSIONS]
    if not md_files:
        raise InputError("Please select a valid .md or .markdown file")
    if len(files) > 1:
        raise InputError("Please select only one file at a time")
    return md_files[0]
