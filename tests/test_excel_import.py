from openpyxl import Workbook

from sti.excel_import import _detect_column_mapping, iter_paragraphs_from_excel


def test_detect_column_mapping():
    mapping = _detect_column_mapping(["Text", "Bold", "Is Centered", "Large Font"])
    assert mapping == {"text": 0, "bold": 1, "centered": 2, "large_font": 3}
    assert _detect_column_mapping(["book", "chapter"]) is None


def test_csv_paragraphs(tmp_path):
    path = tmp_path / "outline.csv"
    path.write_text(
        "text,bold,centered\n"
        "Chapter 1,,yes\n"
        "The Word of God,1,1\n"
        ",1,1\n"
        "Body & more text,,\n",
        encoding="utf-8",
    )
    paragraphs = list(iter_paragraphs_from_excel(path))

    assert [p.text for p in paragraphs] == ["Chapter 1", "The Word of God", "Body & more text"]
    assert paragraphs[0].style.centered and not paragraphs[0].style.bold
    assert paragraphs[1].style.centered and paragraphs[1].style.bold
    assert paragraphs[2].html == "Body &amp; more text"


def test_xlsx_paragraphs_with_html_column(tmp_path):
    wb = Workbook()
    ws = wb.active
    ws.append(["Paragraph", "HTML", "Italic", "Large"])
    ws.append(["See Rom 8:28", 'See <a href="https://ref.ly/Ro8.28">Rom 8:28</a>', None, None])
    ws.append(["How is God known?", None, True, 1])
    path = tmp_path / "outline.xlsx"
    wb.save(path)

    paragraphs = list(iter_paragraphs_from_excel(path))

    assert len(paragraphs) == 2
    assert "ref.ly" in paragraphs[0].html
    assert paragraphs[1].style.italic
    assert paragraphs[1].style.large_font


def test_max_rows(tmp_path):
    path = tmp_path / "outline.csv"
    path.write_text("text\none\ntwo\nthree\n", encoding="utf-8")
    assert [p.text for p in iter_paragraphs_from_excel(path, max_rows=2)] == ["one", "two"]
