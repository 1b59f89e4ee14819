# tests/test_md2html.py

from urllib.parse import unquote

from bs4 import BeautifulSoup

from mdquiz.config import RenderConfig
from mdquiz.md2html import (
    extract_fences,
    main,
    markdown_to_html,
    split_front_matter,
)
from mdquiz.quizplayer import QuizPage


def test_bold_and_italic_paragraph():
    assert markdown_to_html("**bold** and *italic*") == "<p><strong>bold</strong> and <em>italic</em></p>"


def test_underscore_emphasis():
    assert markdown_to_html("__strong__ and _soft_") == "<p><strong>strong</strong> and <em>soft</em></p>"


def test_unmatched_markers_stay_literal():
    assert markdown_to_html("a ** b") == "<p>a ** b</p>"


def test_headings_are_not_wrapped_in_paragraphs():
    assert markdown_to_html("# One\n## Two\n### Three") == "<h1>One</h1>\n<h2>Two</h2>\n<h3>Three</h3>"


def test_paragraph_boundaries():
    assert markdown_to_html("one\n\n\ntwo") == "<p>one</p><p>two</p>"
    assert markdown_to_html("one\n   \ntwo") == "<p>one</p><p>two</p>"


def test_empty_document():
    assert markdown_to_html("") == ""


def test_fenced_code_is_escaped_and_protected():
    html = markdown_to_html("```python\nx = a*b*c\n# not a heading\nif a < b: pass\n```")
    assert html == ('<pre><code class="language-python">x = a*b*c\n# not a heading\n'
                    'if a &lt; b: pass\n</code></pre>')


def test_untagged_fence_uses_default_language():
    assert 'class="language-text"' in markdown_to_html("```\nplain\n```")
    config = RenderConfig(default_code_language="plaintext")
    assert 'class="language-plaintext"' in markdown_to_html("```\nplain\n```", config)


def test_mermaid_fence():
    html = markdown_to_html("```mermaid\ngraph TD; A-->B\n```")
    assert html == '<div class="mermaid-container"><pre class="mermaid">graph TD; A--&gt;B</pre></div>'


def test_quiz_fence_becomes_container_with_encoded_text():
    raw = "1. Is 'x' < \"y\" & z?\nA) yes\nB) no\nAnswer: A\n"
    html = markdown_to_html("Intro\n\n```quiz\n" + raw + "```\n\nOutro")
    soup = BeautifulSoup(html, "html.parser")
    container = soup.select_one(".quiz-container")
    assert container is not None
    assert unquote(container["data-quiz-content"]) == raw
    assert "<li>" not in html
    assert '<p><div class="quiz-container"' not in html


def test_extract_fences_records_language_and_content():
    text, blocks = extract_fences("a\n```quiz\n1. Q\n```\nb\n```\ncode\n```")
    assert [b.language for b in blocks] == ["quiz", ""]
    assert blocks[0].content == "1. Q\n"
    assert "```" not in text


def test_inline_code_is_escaped_and_not_emphasised():
    assert markdown_to_html("Use `**kwargs` and `<br>`") == \
        "<p>Use <code>**kwargs</code> and <code>&lt;br&gt;</code></p>"


def test_links_open_in_new_context():
    assert markdown_to_html("[site](https://example.com)") == \
        '<p><a href="https://example.com" target="_blank">site</a></p>'
    no_target = RenderConfig(link_target=None)
    assert markdown_to_html("[site](https://example.com)", no_target) == \
        '<p><a href="https://example.com">site</a></p>'


def test_blockquote():
    assert markdown_to_html("> quoted") == "<blockquote>quoted</blockquote>"


def test_list_items_are_wrapped_once():
    html = markdown_to_html("- a\n- b\n\nafter")
    assert html == "<ul>\n<li>a</li>\n<li>b</li>\n</ul><p>after</p>"


def test_mixed_list_markers_share_one_list():
    html = markdown_to_html("1. one\n* two\n- three")
    assert html.count("<ul>") == 1
    assert "<li>one</li>" in html and "<li>two</li>" in html and "<li>three</li>" in html


def test_inline_and_block_math():
    assert markdown_to_html("Euler: $e^{i\\pi}+1=0$") == \
        '<p>Euler: <span class="math" data-display="inline">e^{i\\pi}+1=0</span></p>'
    html = markdown_to_html("$$\na^2 + b^2 = c^2\n$$")
    assert html == '<div class="math" data-display="block">\na^2 + b^2 = c^2\n</div>'


def test_dollars_inside_code_are_not_math():
    html = markdown_to_html("```sh\necho $HOME $PATH\n```")
    assert "math" not in html
    assert "echo $HOME $PATH" in html


def test_table():
    html = markdown_to_html("| Name | Age |\n|------|-----|\n| Ann | 30 |\n| Bob | 41 |")
    assert html.startswith("<table>")
    assert "<tr><th>Name</th><th>Age</th></tr>" in html
    assert "<tr><td>Ann</td><td>30</td></tr>" in html
    assert "<tr><td>Bob</td><td>41</td></tr>" in html
    assert "<th></th>" not in html
    assert "<p>" not in html


def test_front_matter_is_split():
    doc = split_front_matter("---\ntitle: Hello\ntags:\n  - a\n  - b\n---\nBody")
    assert doc.metadata == {"title": "Hello", "tags": ["a", "b"]}
    assert doc.body == "Body"


def test_unclosed_front_matter_is_body():
    text = "---\ntitle: x\nBody"
    doc = split_front_matter(text)
    assert doc.metadata == {}
    assert doc.body == text


def test_no_front_matter():
    doc = split_front_matter("# Title")
    assert doc.metadata == {}
    assert doc.body == "# Title"


POST = """---
title: Hello <World>
author: Ada
tags: [python, quiz]
---
# Intro

Some **text**.

```quiz
1. What is 2+2?
A) 3
B) 4

Correct Answer: B
```
"""


def test_main_writes_page(tmp_path):
    src = tmp_path / "post.md"
    src.write_text(POST, encoding="utf-8")
    assert main([str(src)]) == 0
    html = (tmp_path / "post.html").read_text(encoding="utf-8")
    assert "<title>Hello &lt;World&gt;</title>" in html
    assert '<span class="tag">python</span>' in html
    assert "<strong>text</strong>" in html
    assert 'class="quiz-container"' in html
    assert "quiz-question-text" not in html


def test_main_hydrates_quizzes(tmp_path):
    src = tmp_path / "post.md"
    out = tmp_path / "fragment.html"
    src.write_text(POST, encoding="utf-8")
    assert main([str(src), "-o", str(out), "--fragment", "--hydrate"]) == 0
    soup = BeautifulSoup(out.read_text(encoding="utf-8"), "html.parser")
    container = soup.select_one(".quiz-container")
    assert container["data-quiz-processed"] == "true"
    assert container.select_one(".quiz-question-text").get_text() == "What is 2+2?"
    assert soup.find("title") is None

    page = QuizPage(out.read_text(encoding="utf-8"))
    assert page.discover() == ["quiz-container-0"]
    assert page.click(page.soup.select_one('[data-quiz-label="B"]'))
    assert page.click(page.soup.select_one('[data-quiz-label="B"]'))
    assert page.store.get("quiz-container-0").score == 1


def test_main_check_stops_on_bad_quiz(tmp_path):
    src = tmp_path / "bad.md"
    src.write_text("```quiz\n1. Q\nA) x\nB) y\nAnswer: D\n```\n", encoding="utf-8")
    assert main([str(src), "--check"]) == 1
    assert not (tmp_path / "bad.html").exists()


def test_main_missing_input(tmp_path):
    assert main([str(tmp_path / "nope.md")]) == 1


def test_nul_characters_cannot_forge_placeholders():
    assert markdown_to_html("text \x00CODE3\x00 more") == "<p>text \ufffdCODE3\ufffd more</p>"
    assert markdown_to_html("text \x00QUIZ4\x00 more") == "<p>text \ufffdQUIZ4\ufffd more</p>"
    html = markdown_to_html("```\nx\n```\n\n\x00FENCE0\x00")
    assert html.count("<pre>") == 1
    assert "\ufffdFENCE0\ufffd" in html
