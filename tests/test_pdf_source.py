from sti.pdf_source import group_lines, merge_lines

WIDTH = 600.0
HEIGHT = 800.0


def word(text, x0, top, fontname="Times-Roman", size=11.0):
    x1 = x0 + 6.0 * len(text)
    return {"text": text, "x0": x0, "x1": x1, "top": top, "bottom": top + size, "fontname": fontname, "size": size}


def line(text, x0, top, **kwargs):
    words = []
    x = x0
    for t in text.split():
        w = word(t, x, top, **kwargs)
        words.append(w)
        x = w["x1"] + 4.0
    return words


def test_header_and_footer_bands_dropped():
    words = line("Running Header", 250, 10) + line("Body text line", 72, 400) + line("Page 12", 280, 790)
    lines = group_lines(words, WIDTH, HEIGHT)
    assert [l.text for l in lines] == ["Body text line"]


def test_centered_bold_large_detection():
    chapter = line("Chapter 32", 270, 100, fontname="Times-Bold", size=16)
    lines = group_lines(chapter, WIDTH, HEIGHT)
    [only] = lines
    assert only.style.centered
    assert only.style.bold
    assert only.style.large_font


def test_italic_from_font_name():
    [only] = group_lines(line("subtitle", 280, 120, fontname="Times-Italic"), WIDTH, HEIGHT)
    assert only.style.italic
    assert not only.style.bold


def test_consecutive_body_lines_merge():
    words = (
        line("This body paragraph runs across the whole text block of the page", 72, 200)
        + line("and continues on the next line", 72, 213)
        + line("A new paragraph after a gap in the text block of the page here", 72, 260)
    )
    paragraphs = merge_lines(group_lines(words, WIDTH, HEIGHT))
    assert [p.text for p in paragraphs] == [
        "This body paragraph runs across the whole text block of the page and continues on the next line",
        "A new paragraph after a gap in the text block of the page here",
    ]


def test_style_change_breaks_paragraph():
    words = (
        line("1. All Words Are God's Words.", 72, 200, fontname="Times-Bold")
        + line("Plain text of the subsection that follows its title here", 72, 213)
    )
    paragraphs = merge_lines(group_lines(words, WIDTH, HEIGHT))
    assert len(paragraphs) == 2
    assert paragraphs[0].style.bold
    assert paragraphs[0].html == "1. All Words Are God&#x27;s Words."
