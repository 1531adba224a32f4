from quizdesk.core.markdown_math_renderer import EMPTY_FRAGMENT, renderer


def test_markdown_is_rendered():
    assert renderer.render_fragment("**bold** text") == "<p><strong>bold</strong> text</p>\n"
    assert renderer.render_inline("*x*") == "<em>x</em>"


def test_math_spans_survive_markdown():
    html = renderer.render_fragment("Compute $a_1 * b_2 * c_3$ now")
    assert "$a_1 * b_2 * c_3$" in html
    assert "<em>" not in html

    display = renderer.render_fragment("$$x_1 < y_1$$")
    assert "$$x_1 &lt; y_1$$" in display


def test_raw_html_is_escaped_and_empty_input_has_placeholder():
    assert "<script>" not in renderer.render_inline("<script>alert(1)</script>")
    assert renderer.render_fragment("   ") == EMPTY_FRAGMENT
    assert renderer.render_fragment(None) == EMPTY_FRAGMENT
    assert renderer.render_inline(None) == ""
