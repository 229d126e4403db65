import requests

from sti import config, summaries
from sti.model import DoctrineEntry
from sti.summaries import extractive_summary, summarize_entries, summarize_entry

BODY = (
    "<p>God chose some people to be saved before the foundation of the world. "
    "He did this not because of foreseen merit but in love. "
    "This chapter examines the biblical evidence for that claim.</p>"
)


def entry(content=BODY, entry_type="chapter", summary=None):
    return DoctrineEntry(
        id="e1", entry_type=entry_type, title="Election", chapter_number=32,
        content=content, summary=summary,
    )


class FakeResponse:
    def __init__(self, payload, status=200):
        self.payload = payload
        self.status = status

    def raise_for_status(self):
        if self.status >= 400:
            raise requests.HTTPError(f"{self.status} error")

    def json(self):
        return self.payload


def test_extractive_summary_takes_leading_sentences():
    summary = extractive_summary(BODY)
    assert summary == (
        "God chose some people to be saved before the foundation of the world. "
        "He did this not because of foreseen merit but in love."
    )


def test_extractive_summary_needs_enough_text():
    assert extractive_summary("<p>Too short.</p>") is None


def test_parts_and_empty_entries_get_no_summary():
    assert summarize_entry(entry(entry_type="part")) is None
    assert summarize_entry(entry(content="")) is None


def test_remote_summary(monkeypatch):
    calls = []

    def fake_post(url, headers=None, json=None, timeout=None):
        calls.append((url, headers, json))
        return FakeResponse({"choices": [{"message": {"content": "  God elects\n in love. "}}]})

    monkeypatch.setattr(config, "SUMMARY_API_KEY", "test-key")
    monkeypatch.setattr(summaries.requests, "post", fake_post)

    assert summarize_entry(entry()) == "God elects in love."
    url, headers, payload = calls[0]
    assert url == config.SUMMARY_API_URL
    assert headers["Authorization"] == "Bearer test-key"
    assert payload["model"] == config.SUMMARY_MODEL


def test_remote_failure_warns_and_keeps_existing(monkeypatch, capsys):
    def fake_post(*args, **kwargs):
        return FakeResponse({}, status=502)

    monkeypatch.setattr(summaries.requests, "post", fake_post)

    [result] = summarize_entries([entry(summary="Earlier summary.")], use_remote=True)
    assert result.summary == "Earlier summary."
    assert "[warn] Summary request failed" in capsys.readouterr().out
