import logging
from typing import Dict, Iterable, List

from .directive import DIRECTIVE_TAG, DirectiveError, MissingDirectiveError, parse_path_names
from .models import DocsTree, PageNode, RawComment

logger = logging.getLogger(__name__)


def build_pages(node: PageNode, path_names: List[str], comment: RawComment) -> None:
    """Place `comment` under `node` following [*pages, section]."""
    for page_name in path_names[:-1]:
        node = node.get_page(page_name)
    node.add_to_section(path_names[-1], comment)


def get_docs_trees(comments: Iterable[RawComment], tag_type: str = DIRECTIVE_TAG) -> Dict[str, DocsTree]:
    """Fold directive-carrying comments into one tree per document name.

    Documents keep first-seen order, as do pages and sections within each
    level; comments keep arrival order within a section. A comment with a
    single segment directive lands in a root-level section named after the
    document.

    Raises MissingDirectiveError for a comment without a directive. Comments
    whose directive has empty segments are skipped with a warning.
    """
    trees: Dict[str, DocsTree] = {}
    placed = 0
    for c in comments:
        try:
            path_names = parse_path_names(c, tag_type)
        except MissingDirectiveError:
            raise
        except DirectiveError as e:
            logger.warning("Skipping comment: %s", e)
            continue
        docs_name = path_names[0]
        tree = trees.get(docs_name)
        if tree is None:
            logger.debug("New document '%s' from %s:%d", docs_name, c.file_path, c.line)
            tree = DocsTree(name=docs_name, root=PageNode(name=docs_name))
            trees[docs_name] = tree
        build_pages(tree.root, path_names[1:] or path_names, c)
        placed += 1
    logger.info("Built %d document tree(s) from %d comment(s)", len(trees), placed)
    return trees
