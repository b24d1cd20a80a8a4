"""
Local file discovery and object key mapping.

Finds the files a sync pass considers, maps each to its object key and
resolves its content-type.
"""

from __future__ import annotations

import functools
import mimetypes
import posixpath
import re
from pathlib import Path

from bucketsync.exceptions import ContentTypeResolutionError, PreconditionError
from bucketsync.utils.logging import get_logger

logger = get_logger("bucketsync.utils.discovery")

# Web types some platform mime tables lack or get wrong; checked before mimetypes
_EXTRA_TYPES = {
    ".js": "application/javascript",
    ".mjs": "application/javascript",
    ".json": "application/json",
    ".map": "application/json",
    ".svg": "image/svg+xml",
    ".webp": "image/webp",
    ".avif": "image/avif",
    ".woff": "font/woff",
    ".woff2": "font/woff2",
    ".webmanifest": "application/manifest+json",
    ".md": "text/markdown",
    ".wasm": "application/wasm",
}

_BRACE_RE = re.compile(r"\{([^{}]*)\}")


@functools.lru_cache(maxsize=64)
def _compile_glob(pattern: str) -> re.Pattern:
    # "*" and "?" stay within one path segment; "**/" spans any number of segments (zero included)
    regex: list[str] = []
    i = 0
    while i < len(pattern):
        char = pattern[i]
        if pattern.startswith("**/", i):
            regex.append("(?:.*/)?")
            i += 3
            continue
        if pattern.startswith("**", i):
            regex.append(".*")
            i += 2
            continue
        if char == "*":
            regex.append("[^/]*")
        elif char == "?":
            regex.append("[^/]")
        elif char == "[" and "]" in pattern[i + 2 :]:
            end = pattern.index("]", i + 2)
            body = pattern[i + 1 : end].replace("\\", "\\\\")
            if body.startswith("!"):
                body = "^" + body[1:]
            regex.append(f"[{body}]")
            i = end + 1
            continue
        else:
            regex.append(re.escape(char))
        i += 1
    return re.compile("".join(regex), re.DOTALL)


def match_path(path: str | Path, pattern: str) -> bool:
    """
    Whether a POSIX path matches a glob pattern, segment by segment.

    Unlike ``fnmatch``, ``*`` does not cross ``/``, so ``*.html`` only
    matches a bare file name and ``**/*.html`` matches at any depth.
    ``{a,b}`` alternatives are expanded.
    """
    posix = Path(path).as_posix()
    return any(_compile_glob(p).fullmatch(posix) for p in expand_braces(pattern))


def expand_braces(pattern: str) -> list[str]:
    """
    Expand ``{a,b}`` alternatives in a glob pattern.

    Nested groups are expanded innermost first, e.g.
    ``{css,site-assets}/**/*`` -> ``["css/**/*", "site-assets/**/*"]``.
    """
    match = _BRACE_RE.search(pattern)
    if match is None:
        return [pattern]

    head, tail = pattern[: match.start()], pattern[match.end() :]
    expanded: list[str] = []
    for option in match.group(1).split(","):
        for result in expand_braces(f"{head}{option}{tail}"):
            if result not in expanded:
                expanded.append(result)
    return expanded


def find_files(src_dir: str | Path, files_glob: str) -> list[Path]:
    """
    Find files under ``src_dir`` matching ``files_glob``.

    Args:
        src_dir: Directory to search (relative paths resolve against cwd)
        files_glob: Glob relative to ``src_dir``; supports ``**`` and ``{a,b}``

    Returns:
        Sorted, de-duplicated absolute file paths (directories excluded)

    Raises:
        PreconditionError: If either argument is empty or the directory is missing
    """
    if not str(src_dir).strip():
        raise PreconditionError("src_dir must not be empty")
    if not files_glob.strip():
        raise PreconditionError("files_glob must not be empty")

    root = Path(src_dir).resolve()
    if not root.is_dir():
        raise PreconditionError(f"src_dir does not exist or is not a directory: {root}", details={"src_dir": str(root)})

    found: set[Path] = set()
    for pattern in expand_braces(files_glob.strip()):
        if pattern.startswith("/"):
            raise PreconditionError(f"files_glob must be relative to src_dir, got: {pattern}")
        for path in root.glob(pattern):
            if path.is_file():
                found.add(path)

    files = sorted(found)
    logger.debug(f"Found {len(files)} files in {root} matching {files_glob}")
    return files


def get_object_key(
    root_dir: str | Path,
    file_path: str | Path,
    prefix: str = "",
    strip_extension_glob: str = "",
) -> str:
    """
    Map a local file to its object key.

    The key is ``prefix`` joined with the file's path relative to
    ``root_dir``. When ``strip_extension_glob`` matches the absolute file path
    (segment-wise, see ``match_path``) the final extension is removed.

    Examples:
        >>> get_object_key("/src/root", "/src/root/blog.html")
        'blog.html'
        >>> get_object_key("/src/root", "/src/root/blog.html", "", "**/*.html")
        'blog'
    """
    relative = Path(file_path).relative_to(Path(root_dir)).as_posix()
    key = posixpath.normpath(posixpath.join(prefix, relative)).lstrip("/")

    if strip_extension_glob and match_path(file_path, strip_extension_glob):
        stem, _ext = posixpath.splitext(key)
        return stem
    return key


def content_type_for_extension(extension: str) -> str | None:
    """Look up the mime type for an extension such as ``.html``."""
    extension = extension.lower()
    return _EXTRA_TYPES.get(extension) or mimetypes.types_map.get(extension)


def resolve_content_type(file_path: str | Path) -> str:
    """
    Resolve the content-type of a file from its extension.

    Raises:
        ContentTypeResolutionError: If the extension is unknown
    """
    extension = Path(file_path).suffix.lower()
    content_type = content_type_for_extension(extension)
    if content_type is None:
        raise ContentTypeResolutionError(str(file_path), extension)
    return content_type
