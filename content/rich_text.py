"""
Rich-text helpers for content authored in the admin editor.

Editor output is stored as an HTML fragment. Older saves wrapped the
fragment in ``<div class="rich-text-content">`` to force consistent
styling; the wrapper has to come off before the content is loaded back
into the editor, otherwise every save nests another copy.
"""

from __future__ import annotations

import html as html_lib
import re
from dataclasses import dataclass, replace
from typing import Optional

import markdown
from bs4 import BeautifulSoup, NavigableString, Tag
from markdown.extensions import Extension

from content.types import PROJECT_RICH_TEXT_FIELDS, Project

WRAPPER_CLASS = "rich-text-content"

_TAG_RE = re.compile(r"<[^>]*>")


def _wrapped_inner(fragment: str) -> Optional[str]:
    soup = BeautifulSoup(fragment, "html.parser")
    nodes = [
        node
        for node in soup.contents
        if not (isinstance(node, NavigableString) and not node.strip())
    ]
    if len(nodes) != 1:
        return None
    node = nodes[0]
    if not isinstance(node, Tag) or node.name != "div":
        return None
    if WRAPPER_CLASS not in (node.get("class") or []):
        return None
    return node.decode_contents()


def strip_wrapper(fragment: Optional[str]) -> Optional[str]:
    """
    Return the authored markup without the legacy outer wrapper.

    Nested wrappers left behind by repeated save cycles are all removed.
    Content without a wrapper is returned untouched, so the function is
    idempotent.
    """
    if not fragment:
        return fragment
    inner = _wrapped_inner(fragment)
    while inner is not None:
        fragment = inner
        inner = _wrapped_inner(fragment)
    return fragment


def normalize_project_fields(project: Project) -> Project:
    """Copy of ``project`` with every rich-text field ready for the editor."""
    return replace(
        project,
        **{
            name: strip_wrapper(getattr(project, name))
            for name in PROJECT_RICH_TEXT_FIELDS
        },
    )


def decode_entities(text: Optional[str]) -> str:
    if not text:
        return ""
    return html_lib.unescape(text)


def is_html(text: Optional[str]) -> bool:
    return bool(_TAG_RE.search(decode_entities(text)))


class EmphasisOnlyExtension(Extension):
    """Reduce Markdown to paragraphs, bold and italics."""

    BLOCK_PROCESSORS = (
        "indent",
        "code",
        "hashheader",
        "setextheader",
        "hr",
        "olist",
        "ulist",
        "quote",
        "reference",
    )
    INLINE_PATTERNS = (
        "backtick",
        "escape",
        "reference",
        "link",
        "image_link",
        "image_reference",
        "short_reference",
        "short_image_ref",
        "autolink",
        "automail",
        "linebreak",
        "html",
        "entity",
    )

    def extendMarkdown(self, md_inst):
        for name in self.BLOCK_PROCESSORS:
            md_inst.parser.blockprocessors.deregister(name, strict=False)
        for name in self.INLINE_PATTERNS:
            md_inst.inlinePatterns.deregister(name, strict=False)


def render_markdown(text: str) -> str:
    renderer = markdown.Markdown(extensions=[EmphasisOnlyExtension()])
    return renderer.convert(text)


@dataclass(frozen=True)
class RenderedContent:
    html: str
    is_html: bool


def render_content(text: Optional[str]) -> RenderedContent:
    """
    Render stored content for a read-only page.

    HTML (any tag present) is passed through as-is; anything else goes
    through the constrained Markdown renderer.
    """
    decoded = decode_entities(text)
    if is_html(text):
        return RenderedContent(html=decoded, is_html=True)
    return RenderedContent(html=render_markdown(decoded), is_html=False)
