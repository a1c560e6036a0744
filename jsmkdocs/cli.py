import json
import logging
from dataclasses import asdict
from typing import Iterable, List

from .config import AppConfig
from .directive import has_directive
from .files import extract_comments_from_file, iter_source_files
from .models import RawComment

logger = logging.getLogger(__name__)


def run(config: AppConfig) -> List[RawComment]:
    """Collect the doc comments carrying a placement directive from the configured sources."""
    results: List[RawComment] = []
    files = 0
    base_dir = config.resolve(".")
    for path in iter_source_files(config.source_paths, config.ignore, config.regex, config.pattern, cwd=base_dir):
        files += 1
        for c in extract_comments_from_file(path):
            if has_directive(c, config.directive):
                results.append(c)
            else:
                logger.debug("Skipping comment without @%s at %s:%d", config.directive, c.file_path, c.line)
    logger.info("Found %d directive comment(s) in %d file(s)", len(results), files)
    return results


def print_results(results: Iterable[RawComment], as_json: bool, directive: str) -> None:
    if as_json:
        print(json.dumps([asdict(r) for r in results], ensure_ascii=False, indent=2))
        return
    for r in results:
        tag = r.first_tag(directive)
        print(f"{r.file_path}:{r.line}\t{tag.string if tag else ''}")
