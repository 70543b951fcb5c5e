"""
Tests for the biography markup renderer and the news paragraph wrapper.
"""

from apps.moderation.markup import render_markup, wrap_paragraphs


class TestRenderMarkup:

    def test_headings(self):
        html = render_markup("# One\n## Two\n### Three")
        assert html == "<h1>One</h1>\n<h2>Two</h2>\n<h3>Three</h3>"

    def test_heading_needs_space_and_at_most_three_hashes(self):
        assert render_markup("#tag") == "<p>#tag</p>"
        assert render_markup("#### four") == "<p>#### four</p>"

    def test_paragraphs_and_line_breaks(self):
        html = render_markup("first line\nsecond line\n\nnext paragraph")
        assert html == "<p>first line<br>\nsecond line</p>\n<p>next paragraph</p>"

    def test_bold_and_italic(self):
        assert render_markup("**bold** and *italic*") == "<p><strong>bold</strong> and <em>italic</em></p>"

    def test_spaced_asterisks_stay_literal(self):
        assert render_markup("2 * 3 * 4 = 24") == "<p>2 * 3 * 4 = 24</p>"
        assert render_markup("a *b c* d") == "<p>a <em>b c</em> d</p>"
        assert render_markup("* not italic *") == "<p>* not italic *</p>"

    def test_blockquote_run(self):
        html = render_markup("> one\n> two")
        assert html == "<blockquote>one<br>\ntwo</blockquote>"

    def test_quote_inside_paragraph_block(self):
        html = render_markup("intro\n> quoted\nafter")
        assert html == "<p>intro</p>\n<blockquote>quoted</blockquote>\n<p>after</p>"

    def test_html_is_escaped(self):
        html = render_markup("<script>alert(1)</script>")
        assert "<script>" not in html
        assert "&lt;script&gt;" in html

    def test_crlf_normalised(self):
        assert render_markup("a\r\nb\r\n\r\nc") == "<p>a<br>\nb</p>\n<p>c</p>"

    def test_empty(self):
        assert render_markup("") == ""
        assert render_markup(None) == ""

    def test_cyrillic_biography(self):
        html = render_markup("# Детство\n\nРодился в **Москве**.")
        assert html == "<h1>Детство</h1>\n<p>Родился в <strong>Москве</strong>.</p>"


class TestWrapParagraphs:

    def test_plain_text_wrapped(self):
        assert wrap_paragraphs("a\nb\n\nc") == "<p>a<br>\nb</p>\n<p>c</p>"

    def test_already_formatted_untouched(self):
        text = "<p class=\"lead\">Hello</p>"
        assert wrap_paragraphs(text) == text

    def test_blank_separators_with_spaces(self):
        assert wrap_paragraphs("one\n   \ntwo") == "<p>one</p>\n<p>two</p>"

    def test_empty(self):
        assert wrap_paragraphs("") == ""
