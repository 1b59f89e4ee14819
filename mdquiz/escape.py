"""HTML escaping shared by the Markdown renderer and the quiz player."""

import re

HTML_SPECIAL_RE = re.compile(r'[&<>"\']')

HTML_ENTITIES = {
    '&': '&amp;',
    '<': '&lt;',
    '>': '&gt;',
    '"': '&quot;',
    "'": '&#039;',
}


def escape_html(text: str) -> str:
    """Replace & < > " ' with entities in one left-to-right pass.

    Entities produced by the substitution are never rescanned, so '&' is
    escaped exactly once.
    """
    return HTML_SPECIAL_RE.sub(lambda m: HTML_ENTITIES[m.group(0)], str(text))
