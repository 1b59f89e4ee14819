#!/usr/bin/env python3
"""
md2html.py — Render author Markdown (with diagrams, math and quizzes) to HTML.

Supported dialect (summary):
- Fences: ```lang ... ``` become <pre><code class="language-lang">; untagged
  fences use the configured default language.
  - ```mermaid  => <div class="mermaid-container"><pre class="mermaid">…
  - ```quiz     => <div class="quiz-container" data-quiz-content="…"> holding
                   the percent-encoded fence body, hydrated later by quizplayer.
- Headings (#, ##, ###), **bold**/__bold__, *italic*/_italic_, [links](url),
  `inline code`, "> " blockquotes, "* ", "- " and "N. " list items.
- Blank lines separate paragraphs.
- $$block$$ and $inline$ math become .math containers with data-display.
- Pipe tables: header row, separator row, one or more body rows.

Rules run as ordered regex passes; fenced and inline code are lifted out
first so no later pass can rewrite their content.

Usage:
    python -m mdquiz.md2html post.md [-o post.html] [--fragment] [--hydrate] [--check]
"""

import argparse
import logging
import re
import sys
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple
from urllib.parse import quote

import yaml
from pydantic import ValidationError

from mdquiz.config import RenderConfig, load_config
from mdquiz.escape import escape_html
from mdquiz.logger import setup_logger
from mdquiz.quizparse import validate_quiz
from mdquiz.quizplayer import QuizPage

# ------------------------------ Data models ------------------------------

@dataclass
class CodeBlock:
    language: str       # fence tag; '' when untagged
    content: str        # raw text between the fences

@dataclass
class Document:
    metadata: Dict[str, object]
    body: str

@dataclass
class _Protected:
    """Side-table of HTML fragments hidden behind placeholder tokens."""
    kind: str
    fragments: List[str] = field(default_factory=list)

    def add(self, html: str) -> str:
        self.fragments.append(html)
        return placeholder(self.kind, len(self.fragments) - 1)

    def restore(self, text: str) -> str:
        pattern = re.compile('\x00' + self.kind + r'(\d+)' + '\x00')
        return pattern.sub(lambda m: self.fragments[int(m.group(1))], text)

# ------------------------------ Helpers ------------------------------

# Placeholders are NUL-delimited so no Markdown rule can match inside them.
def placeholder(kind: str, n: int) -> str:
    return f"\x00{kind}{n}\x00"

FENCE_RE = re.compile(r'```(\w+)?[ \t]*\n(.*?)```', re.DOTALL)
QUIZ_TOKEN_RE = re.compile('\x00QUIZ' + r'(\d+)' + '\x00')
INLINE_CODE_RE = re.compile(r'`([^`\n]+)`')

H3_RE = re.compile(r'^### (.*?)$', re.MULTILINE)
H2_RE = re.compile(r'^## (.*?)$', re.MULTILINE)
H1_RE = re.compile(r'^# (.*?)$', re.MULTILINE)
BOLD_STAR_RE = re.compile(r'\*\*(.+?)\*\*')
BOLD_UNDER_RE = re.compile(r'__(.+?)__')
ITALIC_STAR_RE = re.compile(r'\*(.+?)\*')
ITALIC_UNDER_RE = re.compile(r'_(.+?)_')
LINK_RE = re.compile(r'\[(.*?)\]\((.*?)\)')
BLOCKQUOTE_RE = re.compile(r'^> (.*?)$', re.MULTILINE)
STAR_ITEM_RE = re.compile(r'^\* (.*?)$', re.MULTILINE)
DASH_ITEM_RE = re.compile(r'^- (.*?)$', re.MULTILINE)
NUMBER_ITEM_RE = re.compile(r'^\d+\. (.*?)$', re.MULTILINE)
LIST_RUN_RE = re.compile(r'(?:<li>.*?</li>\n?)+')

BLANK_RUN_RE = re.compile(r'\n{2,}')
WHITESPACE_LINE_RE = re.compile(r'^[ \t]+$', re.MULTILINE)

MATH_BLOCK_RE = re.compile(r'\$\$(.+?)\$\$', re.DOTALL)
MATH_INLINE_RE = re.compile(r'\$([^$\n]+?)\$')

TABLE_RE = re.compile(
    r'(\|[^\n]*\|)[ \t]*\n'             # header row
    r'(\|[ \t:|-]*-[ \t:|-]*\|)[ \t]*\n'  # separator row
    r'((?:\|[^\n]*\|[ \t]*(?:\n|$|(?=</p>)))+)'  # body rows, the last may touch </p>
)

BLOCK_TAGS = r'(?:h\d|ul|ol|table|blockquote|pre|div)'
EMPTY_P_RE = re.compile(r'<p>\s*</p>')
P_BEFORE_BLOCK_RE = re.compile(r'<p>\s*(<' + BLOCK_TAGS + r'\b)')
P_AFTER_BLOCK_RE = re.compile(r'(</' + BLOCK_TAGS + r'>)\s*</p>')

FRONT_MATTER_DELIM = '---'


def split_front_matter(text: str) -> Document:
    """Split a leading '---' YAML block from the Markdown body.

    Unclosed or unparsable front matter is left in the body untouched.
    """
    lines = text.replace('\r\n', '\n').split('\n')
    if not lines or lines[0].strip() != FRONT_MATTER_DELIM:
        return Document(metadata={}, body=text)
    end_index = None
    for idx in range(1, len(lines)):
        if lines[idx].strip() == FRONT_MATTER_DELIM:
            end_index = idx
            break
    if end_index is None:
        logging.warning("Front matter is not closed with '---'; rendering it as text")
        return Document(metadata={}, body=text)
    try:
        metadata = yaml.safe_load('\n'.join(lines[1:end_index])) or {}
    except yaml.YAMLError as e:
        logging.warning(f"Invalid front matter ignored: {e}")
        return Document(metadata={}, body=text)
    if not isinstance(metadata, dict):
        logging.warning("Front matter is not a mapping; ignoring it")
        metadata = {}
    return Document(metadata=metadata, body='\n'.join(lines[end_index + 1:]))


def extract_fences(text: str) -> Tuple[str, List[CodeBlock]]:
    """Replace every ``` fence with a positional placeholder."""
    blocks: List[CodeBlock] = []

    def _lift(m: re.Match) -> str:
        blocks.append(CodeBlock(language=m.group(1) or '', content=m.group(2)))
        return placeholder('FENCE', len(blocks) - 1)

    text = FENCE_RE.sub(_lift, text)
    logging.debug(f"Extracted {len(blocks)} fenced block(s)")
    return text, blocks


def expand_fence(block: CodeBlock, n: int, config: RenderConfig) -> str:
    if block.language == 'mermaid':
        return f'<div class="mermaid-container"><pre class="mermaid">{escape_html(block.content.strip())}</pre></div>'
    if block.language == 'quiz':
        # resolved after the rest of the document is final
        return placeholder('QUIZ', n)
    lang = block.language or config.default_code_language
    return f'<pre><code class="language-{escape_html(lang)}">{escape_html(block.content)}</code></pre>'


def apply_block_rules(text: str, config: RenderConfig) -> str:
    # Headers: longest marker first
    text = H3_RE.sub(r'<h3>\1</h3>', text)
    text = H2_RE.sub(r'<h2>\1</h2>', text)
    text = H1_RE.sub(r'<h1>\1</h1>', text)

    # Bold before italic so ** is never read as two *
    text = BOLD_STAR_RE.sub(r'<strong>\1</strong>', text)
    text = BOLD_UNDER_RE.sub(r'<strong>\1</strong>', text)
    text = ITALIC_STAR_RE.sub(r'<em>\1</em>', text)
    text = ITALIC_UNDER_RE.sub(r'<em>\1</em>', text)

    target = f' target="{escape_html(config.link_target)}"' if config.link_target else ''
    text = LINK_RE.sub(lambda m: f'<a href="{m.group(2)}"{target}>{m.group(1)}</a>', text)

    text = BLOCKQUOTE_RE.sub(r'<blockquote>\1</blockquote>', text)

    text = STAR_ITEM_RE.sub(r'<li>\1</li>', text)
    text = DASH_ITEM_RE.sub(r'<li>\1</li>', text)
    text = NUMBER_ITEM_RE.sub(r'<li>\1</li>', text)
    text = LIST_RUN_RE.sub(lambda m: '<ul>\n' + m.group(0) + '</ul>\n', text)
    return text


def wrap_paragraphs(text: str) -> str:
    text = BLANK_RUN_RE.sub('</p><p>', text.strip('\n'))
    return '<p>' + text + '</p>'


def render_math(text: str) -> str:
    text = MATH_BLOCK_RE.sub(r'<div class="math" data-display="block">\1</div>', text)
    text = MATH_INLINE_RE.sub(r'<span class="math" data-display="inline">\1</span>', text)
    return text


def _table_cells(row: str) -> List[str]:
    row = row.strip()
    if row.startswith('|'):
        row = row[1:]
    if row.endswith('|'):
        row = row[:-1]
    return [cell.strip() for cell in row.split('|')]


def render_tables(text: str) -> str:
    def _table(m: re.Match) -> str:
        header = ''.join(f'<th>{cell}</th>' for cell in _table_cells(m.group(1)))
        out = ['<table>', '<thead>', f'<tr>{header}</tr>', '</thead>', '<tbody>']
        for line in m.group(3).split('\n'):
            if not line.strip():
                continue
            out.append('<tr>' + ''.join(f'<td>{cell}</td>' for cell in _table_cells(line)) + '</tr>')
        out.extend(['</tbody>', '</table>'])
        return '\n'.join(out)

    return TABLE_RE.sub(_table, text)


def quiz_container(raw: str) -> str:
    # Same alphabet as encodeURIComponent so browsers decode it unchanged
    payload = quote(raw, safe="-_.!~*'()")
    return f'<div class="quiz-container" data-quiz-content="{escape_html(payload)}"></div>'


def resolve_quiz_blocks(text: str, blocks: List[CodeBlock]) -> str:
    return QUIZ_TOKEN_RE.sub(lambda m: quiz_container(blocks[int(m.group(1))].content), text)


def clean_paragraphs(text: str) -> str:
    text = EMPTY_P_RE.sub('', text)
    text = P_BEFORE_BLOCK_RE.sub(r'\1', text)
    text = P_AFTER_BLOCK_RE.sub(r'\1', text)
    return text


def markdown_to_html(markdown: str, config: Optional[RenderConfig] = None) -> str:
    """Render one Markdown document to an HTML fragment. Never raises on bad Markdown."""
    config = config or RenderConfig()
    # NUL is reserved for placeholder tokens
    source = str(markdown or '').replace('\r\n', '\n').replace('\x00', '\ufffd')
    text, blocks = extract_fences(source)
    text = WHITESPACE_LINE_RE.sub('', text)
    fences = _Protected('FENCE', [expand_fence(b, n, config) for n, b in enumerate(blocks)])

    codes = _Protected('CODE')
    text = INLINE_CODE_RE.sub(lambda m: codes.add(f'<code>{escape_html(m.group(1))}</code>'), text)

    text = apply_block_rules(text, config)
    text = wrap_paragraphs(text)
    text = render_math(text)
    text = render_tables(text)

    text = codes.restore(text)
    text = fences.restore(text)
    text = resolve_quiz_blocks(text, blocks)
    return clean_paragraphs(text)

# ------------------------------ Page template ------------------------------

PAGE_CSS = """
    body { font-family: -apple-system, BlinkMacSystemFont, 'Segoe UI', Roboto, Arial, sans-serif;
           line-height: 1.6; color: #333; background: #f5f5f5; margin: 0; padding: 20px; }
    .container { max-width: 900px; margin: 0 auto; background: white; padding: 40px; border-radius: 8px; }
    .header { margin-bottom: 30px; border-bottom: 2px solid #eee; padding-bottom: 20px; }
    .meta { display: flex; gap: 20px; font-size: 0.9em; color: #666; }
    .tags { display: flex; gap: 8px; flex-wrap: wrap; margin-top: 10px; }
    .tag { background: #e8f4f8; color: #007bff; padding: 4px 12px; border-radius: 20px; font-size: 0.85em; }
    pre { background: #2d2d2d; color: #f8f8f2; padding: 15px; border-radius: 5px; overflow-x: auto; }
    blockquote { border-left: 4px solid #ddd; margin: 15px 0; padding-left: 15px; color: #666; }
    table { width: 100%; border-collapse: collapse; }
    th, td { border: 1px solid #ddd; padding: 12px; text-align: left; }
    .mermaid-container { display: flex; justify-content: center; margin: 30px 0; padding: 20px; background: #f9f9f9; }
    .quiz-container { background: #e8f4f8; border: 2px solid #007bff; border-radius: 8px; padding: 20px; margin: 30px 0; }
    .quiz-option { display: flex; gap: 10px; width: 100%; text-align: left; margin: 8px 0; padding: 8px;
                   border: 1px solid #ddd; border-radius: 4px; background: white; }
    .option-selected { border-color: #007bff; }
    .option-correct { background: #d4edda; border-color: #c3e6cb; }
    .option-wrong { background: #f8d7da; border-color: #f5c6cb; }
    .option-muted { opacity: 0.5; }
    .quiz-feedback.correct { color: #155724; }
    .quiz-feedback.incorrect { color: #721c24; }
    .quiz-progress-bar, .quiz-score-bar { height: 6px; background: #007bff; }
"""


def _tag_list(tags) -> List[str]:
    if isinstance(tags, str):
        return [t.strip() for t in tags.split(',') if t.strip()]
    if isinstance(tags, (list, tuple)):
        return [str(t) for t in tags]
    return []


def build_page(metadata: Dict[str, object], content_html: str, config: RenderConfig) -> str:
    title = escape_html(metadata.get('title') or 'Untitled')
    author = escape_html(metadata.get('author') or 'Unknown')
    date = escape_html(metadata.get('date') or metadata.get('updated') or 'N/A')
    tags = '\n'.join(f'<span class="tag">{escape_html(t)}</span>' for t in _tag_list(metadata.get('tags')))
    tags_html = f'<div class="tags">{tags}</div>' if tags else ''
    return f"""<!DOCTYPE html>
<html lang="en">
<head>
  <meta charset="UTF-8">
  <meta name="viewport" content="width=device-width, initial-scale=1.0">
  <title>{title}</title>
  <script src="{escape_html(config.mermaid_src)}"></script>
  <script src="{escape_html(config.katex_src)}"></script>
  <link rel="stylesheet" href="{escape_html(config.katex_css)}">
  <style>{PAGE_CSS}  </style>
</head>
<body>
  <div class="container">
    <div class="header">
      <h1>{title}</h1>
      <div class="meta">
        <span><strong>Author:</strong> {author}</span>
        <span><strong>Published:</strong> {date}</span>
      </div>
      {tags_html}
    </div>
    <div class="content">
{content_html}
    </div>
  </div>
</body>
</html>
"""


def check_quizzes(body: str) -> List[str]:
    """Validate every quiz fence in a document body; return problem strings."""
    _, blocks = extract_fences(body)
    problems: List[str] = []
    quiz_no = 0
    for block in blocks:
        if block.language != 'quiz':
            continue
        quiz_no += 1
        problems.extend(f"Quiz {quiz_no}: {p}" for p in validate_quiz(block.content))
    return problems


def main(argv: Optional[List[str]] = None) -> int:
    ap = argparse.ArgumentParser(description="Render Markdown (with quizzes, diagrams and math) to HTML.")
    ap.add_argument("input", help="Input Markdown file")
    ap.add_argument("-o", "--output", help="Output HTML file (default: input path with .html)")
    ap.add_argument("--fragment", action="store_true", help="Write only the content fragment, no page template")
    ap.add_argument("--hydrate", action="store_true", help="Render the first question of every quiz into the file")
    ap.add_argument("--check", action="store_true", help="Validate quiz fences and stop on problems")
    ap.add_argument("--env-file", help="Read MDQUIZ_* settings from this .env file")
    args = ap.parse_args(argv)

    try:
        config = load_config(args.env_file)
    except ValidationError as e:
        setup_logger()
        logging.error(f"Invalid configuration: {e}")
        return 2
    setup_logger(config.log_level, config.log_file)

    try:
        with open(args.input, "r", encoding="utf-8") as f:
            md = f.read()
    except OSError as e:
        logging.error(f"Cannot read {args.input}: {e}")
        return 1

    doc = split_front_matter(md)

    if args.check:
        problems = check_quizzes(doc.body)
        for p in problems:
            logging.warning(p)
        if problems:
            logging.error(f"{len(problems)} quiz problem(s) in {args.input}; nothing written")
            return 1

    content = markdown_to_html(doc.body, config)
    if args.hydrate:
        page = QuizPage(content, config=config)
        page.discover()
        content = page.html()

    out = content if args.fragment else build_page(doc.metadata, content, config)
    output = args.output or re.sub(r'\.(md|markdown)$', '', args.input) + '.html'
    try:
        with open(output, "w", encoding="utf-8") as f:
            f.write(out)
    except OSError as e:
        logging.error(f"Cannot write {output}: {e}")
        return 1
    logging.info(f"Rendered: {doc.metadata.get('title') or 'Untitled'}")
    logging.info(f"Output: {output}")
    return 0

if __name__ == "__main__":
    sys.exit(main())
