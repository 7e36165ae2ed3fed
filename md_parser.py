"""
md_parser.py - Tokenize markdown with markdown-it-py.

CommonMark plus GitHub-style tables and strikethrough. Raw HTML is not
interpreted and ends up as text.
"""
from markdown_it import MarkdownIt
from markdown_it.tree import SyntaxTreeNode


def _build_markdown_parser() -> MarkdownIt:
    md = MarkdownIt("commonmark", {"html": False, "breaks": False})
    md.enable(["table", "strikethrough"])
    return md


_MD_PARSER = None


def get_markdown_parser() -> MarkdownIt:
    global _MD_PARSER
    if _MD_PARSER is None:
        _MD_PARSER = _build_markdown_parser()
    return _MD_PARSER


def parse_markdown(markdown: str) -> SyntaxTreeNode:
    """Parse markdown into a nested syntax tree (root node)."""
    tokens = get_markdown_parser().parse(markdown or "")
    return SyntaxTreeNode(tokens)
