import logging
import re
from typing import List

from .models import RawComment

logger = logging.getLogger(__name__)


DIRECTIVE_TAG = "docs"

# Two forward slashes with optional surrounding whitespace
_SEPARATOR = re.compile(r"\s*/{2}\s*")


class DirectiveError(ValueError):
    """A placement directive that cannot be split into usable segments."""


class MissingDirectiveError(DirectiveError):
    """Raised when a comment without a placement directive reaches the tree builder."""


def has_directive(comment: RawComment, tag_type: str = DIRECTIVE_TAG) -> bool:
    return comment.first_tag(tag_type) is not None


def split_path(directive: str) -> List[str]:
    """Split a directive string such as 'API // Users // Create' into its segments."""
    return [segment.strip() for segment in _SEPARATOR.split(directive.strip())]


def parse_path_names(comment: RawComment, tag_type: str = DIRECTIVE_TAG) -> List[str]:
    """Return [document, *pages, section] for the comment's placement directive.

    A single segment directive names both the document and the section.
    """
    tags = comment.tags_of(tag_type)
    if not tags:
        raise MissingDirectiveError(
            f"{comment.file_path}:{comment.line}: comment has no @{tag_type} directive"
        )
    if len(tags) > 1:
        logger.warning(
            "%s:%d: comment has %d @%s directives, using the first one (%r)",
            comment.file_path,
            comment.line,
            len(tags),
            tag_type,
            tags[0].string,
        )
    segments = split_path(tags[0].string)
    if not all(segments):
        raise DirectiveError(
            f"{comment.file_path}:{comment.line}: @{tag_type} directive has an empty segment: {tags[0].string!r}"
        )
    return segments
