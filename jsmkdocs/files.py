import fnmatch
import logging
import os
import re
from typing import Iterable, Iterator, List, Optional, Pattern, Union

from .comments import extract_doc_comments_from_text
from .models import RawComment

logger = logging.getLogger(__name__)


GITIGNORE = ".gitignore"


def ext_to_lang(ext: str) -> str:
    if ext in (".ts", ".tsx"):
        return "typescript"
    return "javascript"


def expand_gitignore(ignores: Iterable[str], cwd: Optional[str] = None) -> List[str]:
    """Replace a '.gitignore' entry with the patterns listed in <cwd>/.gitignore.

    Blank lines and '#' comments are skipped, trailing '/' is dropped. The
    result is sorted and free of duplicates.
    """
    ignores = list(ignores)
    if GITIGNORE not in ignores:
        return ignores
    ignores = [i for i in ignores if i != GITIGNORE]
    path = os.path.join(cwd or os.getcwd(), GITIGNORE)
    if not os.path.exists(path):
        logger.warning("No %s found at %s, skipping it", GITIGNORE, path)
        return sorted(set(ignores))
    with open(path, "r", encoding="utf-8") as f:
        lines = [l.strip() for l in f]
    patterns = [l.rstrip("/") for l in lines if l and not l.startswith("#")]
    return sorted(set(ignores + [p for p in patterns if p]))


def _is_ignored(path: str, rel: str, ignores: List[str], cwd: str) -> bool:
    rel = rel.replace(os.sep, "/")
    parts = rel.split("/")
    for pattern in ignores:
        pat = pattern.lstrip("/")
        if fnmatch.fnmatch(rel, pat) or any(fnmatch.fnmatch(part, pat) for part in parts):
            return True
        absolute = os.path.normpath(os.path.join(cwd, pattern))
        if path == absolute or path.startswith(absolute + os.sep):
            return True
    return False


def iter_source_files(
    sources: Iterable[str],
    ignores: Iterable[str] = (),
    regex: Union[str, Pattern[str], None] = None,
    pattern: Optional[str] = None,
    cwd: Optional[str] = None,
) -> Iterator[str]:
    """Yield source files below `sources` that are not ignored and match `regex` and `pattern`.

    Directories are walked recursively in sorted order; ignored directories
    are not descended into. Raises FileNotFoundError for a missing source.
    """
    cwd = cwd or os.getcwd()
    ignore_list = expand_gitignore(ignores, cwd)
    rx = re.compile(regex) if isinstance(regex, str) else regex
    seen = set()

    def accept(path: str, rel: str) -> bool:
        if path in seen or _is_ignored(path, rel, ignore_list, cwd):
            return False
        if rx is not None and not rx.search(path):
            return False
        if pattern and not (fnmatch.fnmatch(os.path.basename(path), pattern) or fnmatch.fnmatch(rel.replace(os.sep, "/"), pattern)):
            return False
        return True

    for source in sources:
        root = os.path.normpath(os.path.join(cwd, source))
        if not os.path.exists(root):
            raise FileNotFoundError(f"Source path does not exist: {root}")
        if os.path.isfile(root):
            if accept(root, os.path.basename(root)):
                seen.add(root)
                yield root
            continue
        for dirpath, dirnames, filenames in os.walk(root):
            dirnames[:] = sorted(
                d for d in dirnames
                if not _is_ignored(os.path.join(dirpath, d), os.path.relpath(os.path.join(dirpath, d), root), ignore_list, cwd)
            )
            for filename in sorted(filenames):
                path = os.path.join(dirpath, filename)
                if accept(path, os.path.relpath(path, root)):
                    seen.add(path)
                    yield path


def extract_comments_from_file(path: str) -> List[RawComment]:
    try:
        with open(path, "r", encoding="utf-8") as f:
            text = f.read()
    except UnicodeDecodeError:
        with open(path, "r", encoding="latin-1", errors="ignore") as f:
            text = f.read()

    _, ext = os.path.splitext(path)
    comments = extract_doc_comments_from_text(text, ext_to_lang(ext), file_path=path)
    logger.debug("Extracted %d doc comment(s) from %s", len(comments), path)
    return comments
