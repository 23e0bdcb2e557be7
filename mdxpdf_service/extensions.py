"""
Markdown parser configuration.

The extension chain is an immutable, ordered tuple of descriptors applied to
a fresh markdown-it-py parser. Building a parser never mutates the chain, so
the same configuration can be shared by concurrent renders.
"""

import html
from dataclasses import dataclass
from typing import Any, Callable, Tuple

import emoji
from markdown_it import MarkdownIt
from markdown_it.rules_core import StateCore
from mdit_py_plugins.container import container_plugin
from mdit_py_plugins.deflist import deflist_plugin
from mdit_py_plugins.dollarmath import dollarmath_plugin
from mdit_py_plugins.footnote import footnote_plugin
from mdit_py_plugins.tasklists import tasklists_plugin


def emoji_plugin(md: MarkdownIt) -> None:
    """Expand ``:shortcode:`` emoji in text (code spans and blocks are untouched)."""

    def replace_shortcodes(state: StateCore) -> None:
        for token in state.tokens:
            if token.type != "inline" or not token.children:
                continue
            for child in token.children:
                if child.type == "text" and ":" in child.content:
                    # Unknown shortcodes are left as literal text
                    child.content = emoji.emojize(child.content, language="alias")

    md.core.ruler.push("emoji", replace_shortcodes)


def math_passthrough_plugin(md: MarkdownIt) -> None:
    """
    Keep ``$...$`` / ``$$...$$`` TeX intact for client-side typesetting.

    Math is tokenized before emphasis/underscore rules run, then re-emitted
    with its delimiters (HTML-escaped only) so MathJax can pick it up.
    """
    md.use(
        dollarmath_plugin,
        allow_labels=False,
        allow_space=True,
        double_inline=True,
    )

    def render_math_inline(tokens, idx, options, env):
        return f"${html.escape(tokens[idx].content)}$"

    def render_math_inline_double(tokens, idx, options, env):
        return f"$${html.escape(tokens[idx].content)}$$"

    def render_math_block(tokens, idx, options, env):
        body = (tokens[idx].content or "").strip("\n")
        return f'<div class="math block">$$\n{html.escape(body)}\n$$</div>\n'

    md.renderer.rules["math_inline"] = render_math_inline
    md.renderer.rules["math_inline_double"] = render_math_inline_double
    md.renderer.rules["math_block"] = render_math_block


@dataclass(frozen=True)
class MarkdownExtension:
    """A syntax extension and the keyword options it is applied with."""

    name: str
    plugin: Callable[..., None]
    options: Tuple[Tuple[str, Any], ...] = ()

    def apply(self, md: MarkdownIt) -> None:
        md.use(self.plugin, **dict(self.options))


DEFAULT_EXTENSIONS: Tuple[MarkdownExtension, ...] = (
    MarkdownExtension("emoji", emoji_plugin),
    MarkdownExtension("checkbox", tasklists_plugin),
    MarkdownExtension("footnote", footnote_plugin),
    MarkdownExtension("deflist", deflist_plugin),
    MarkdownExtension("container:warning", container_plugin, (("name", "warning"),)),
    MarkdownExtension("container:info", container_plugin, (("name", "info"),)),
)


def build_markdown_parser(
    extensions: Tuple[MarkdownExtension, ...] = DEFAULT_EXTENSIONS,
) -> MarkdownIt:
    """
    Build the parser used in place of the engine's default markdown parser.

    Args:
        extensions: Ordered extension descriptors, applied first to last

    Returns:
        A GFM-like MarkdownIt instance (tables, strikethrough, autolinks, raw
        HTML) with math passthrough and every extension in the chain applied.
    """
    md = MarkdownIt("gfm-like", {"html": True, "linkify": True})
    math_passthrough_plugin(md)
    for extension in extensions:
        extension.apply(md)
    return md
