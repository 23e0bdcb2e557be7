"""
Client-side rendering preamble.

The preamble is prepended verbatim to every document before conversion. It
configures MathJax (inline/display delimiters), initializes Mermaid with the
document's serif typography, and sets ``window.mdxpdfRendered`` once both
have finished so the engine knows when the page is ready to print.

It never depends on the document being rendered.
"""

MATHJAX_SCRIPT_URL = "https://cdnjs.cloudflare.com/ajax/libs/mathjax/3.2.2/es5/tex-mml-chtml.js"
MERMAID_SCRIPT_URL = "https://cdn.jsdelivr.net/npm/mermaid@10.9.1/dist/mermaid.min.js"

DOCUMENT_FONT_FAMILY = "Georgia, 'Times New Roman', Times, serif"
DIAGRAM_STROKE_COLOR = "#333333"
DIAGRAM_THEME = "neutral"

# JavaScript flag polled by the conversion engine before printing
RENDERED_FLAG = "mdxpdfRendered"


def _diagram_styles() -> str:
    return f"""<style>
.mermaid, .mermaid svg, .mermaid text, .mermaid foreignObject,
.mermaid .nodeLabel, .mermaid .edgeLabel, .mermaid .label {{
  font-family: {DOCUMENT_FONT_FAMILY} !important;
}}
.mermaid .node rect, .mermaid .node circle, .mermaid .node ellipse,
.mermaid .node polygon, .mermaid .node path, .mermaid .cluster rect {{
  stroke: {DIAGRAM_STROKE_COLOR} !important;
}}
.mermaid .edgePath .path, .mermaid .flowchart-link, .mermaid .messageLine0,
.mermaid .messageLine1, .mermaid .relation {{
  stroke: {DIAGRAM_STROKE_COLOR} !important;
}}
.mermaid marker path, .mermaid .arrowheadPath {{
  fill: {DIAGRAM_STROKE_COLOR} !important;
  stroke: {DIAGRAM_STROKE_COLOR} !important;
}}
.mermaid {{ text-align: center; break-inside: avoid; }}
</style>
"""


def _mathjax_config() -> str:
    return r"""<script>
window.MathJax = {
  tex: {
    inlineMath: [['$', '$'], ['\\(', '\\)']],
    displayMath: [['$$', '$$'], ['\\[', '\\]']]
  }
};
</script>
""" + f'<script src="{MATHJAX_SCRIPT_URL}"></script>\n'


def _mermaid_init() -> str:
    return (
        f'<script src="{MERMAID_SCRIPT_URL}"></script>\n'
        "<script>\n"
        "if (window.mermaid) {\n"
        "  mermaid.initialize({\n"
        "    startOnLoad: false,\n"
        f"    theme: '{DIAGRAM_THEME}',\n"
        f"    fontFamily: \"{DOCUMENT_FONT_FAMILY}\"\n"
        "  });\n"
        "}\n"
        "</script>\n"
    )


def _readiness_hook() -> str:
    # Missing libraries (e.g. offline CDN) still mark the page as rendered.
    return f"""<script>
window.addEventListener('load', function () {{
  var pending = [];
  if (window.MathJax && window.MathJax.startup && window.MathJax.startup.promise) {{
    pending.push(window.MathJax.startup.promise);
  }}
  if (window.mermaid && typeof window.mermaid.run === 'function') {{
    pending.push(window.mermaid.run({{ querySelector: '.mermaid' }}));
  }}
  var done = function () {{ window.{RENDERED_FLAG} = true; }};
  Promise.all(pending).then(done, done);
}});
</script>
"""


def build_preamble() -> str:
    """
    Build the style + script preamble.

    Returns:
        The same string on every call.
    """
    return _diagram_styles() + _mathjax_config() + _mermaid_init() + _readiness_hook() + "\n"


PREAMBLE = build_preamble()
