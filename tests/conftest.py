from __future__ import annotations

import html
from pathlib import Path

import pytest

from sti import config
from sti.model import Paragraph, StyleFlags


def para(text: str, bold=False, italic=False, centered=False, large=False, markup=None) -> Paragraph:
    return Paragraph(
        text=text,
        html=markup if markup is not None else html.escape(text),
        style=StyleFlags(bold=bold, italic=italic, centered=centered, large_font=large),
    )


SCENARIO_A_HTML = """<html><body>
<p style="text-align:center">Part 1</p>
<p style="text-align:center"><span style="font-weight:bold">The Doctrine of the Word of God</span></p>
<p style="text-align:center">Chapter 1</p>
<p style="text-align:center"><span style="font-weight:bold">The Word of God</span></p>
<p style="text-align:center"><span style="font-weight:bold">A. The Authority of Scripture</span></p>
<p><span style="font-weight:bold">1. All Words Are God's Words.</span> Every word in Scripture carries divine authority.</p>
<p>Jesus himself is called the Word of God, as John 1:1 makes plain to every reader.</p>
</body></html>
"""

SCENARIO_D_HTML = """<html><body>
<p style="text-align:center">Chapter 31</p>
<p style="text-align:center"><span style="font-weight:bold">Common Grace</span></p>
<p>God gives many blessings to all people. For the application of redemption, see chapters 32-34 below.</p>
</body></html>
"""


@pytest.fixture
def make_para():
    return para


@pytest.fixture
def db_path(tmp_path) -> Path:
    return tmp_path / "theology.sqlite"


@pytest.fixture
def scenario_a_file(tmp_path) -> Path:
    path = tmp_path / "scenario_a.html"
    path.write_text(SCENARIO_A_HTML, encoding="utf-8")
    return path


@pytest.fixture
def scenario_d_file(tmp_path) -> Path:
    path = tmp_path / "scenario_d.html"
    path.write_text(SCENARIO_D_HTML, encoding="utf-8")
    return path


@pytest.fixture(autouse=True)
def no_summary_api(monkeypatch):
    """Keep tests on the extractive summarizer unless a test opts in."""
    monkeypatch.setattr(config, "SUMMARY_API_KEY", "")
