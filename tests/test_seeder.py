import json

import pytest

import seeder
from seeder import main, seed_documents
from site_spider import CrawlConfig, SiteCrawler

SEED = "https://example.com/"


def _site(page_with_links):
    return {
        SEED: page_with_links("/long", "/short", body="home page"),
        SEED + "long": "<p>" + "x" * 250 + "</p>",
        SEED + "short": "<p>short</p>",
    }


def test_seed_documents_chunks_pages_in_visit_order(make_fetcher, page_with_links):
    fetcher = make_fetcher(_site(page_with_links))
    crawler = SiteCrawler(CrawlConfig(max_depth=1, max_pages=3), fetcher=fetcher, event_callback=lambda e: None)

    documents = seed_documents(
        SEED,
        splitter_options={"chunkSize": 100, "chunkOverlap": 0, "strategy": "window"},
        crawler=crawler,
    )

    assert [d["url"] for d in documents] == [SEED] + [SEED + "long"] * 3 + [SEED + "short"]
    assert documents[0]["content"].startswith("home page")
    assert "".join(d["content"] for d in documents[1:4]) == "x" * 250
    assert documents[-1] == {"url": SEED + "short", "content": "short"}


def test_seed_documents_rejects_invalid_start_url():
    with pytest.raises(ValueError):
        seed_documents("example.com", max_depth=0, max_pages=1, event_callback=lambda e: None)


def test_seed_documents_rejects_bad_splitter_options():
    with pytest.raises(ValueError):
        seed_documents(SEED, splitter_options={"chunkSize": 10, "chunkOverlap": 10})


def test_cli_writes_documents_to_file(monkeypatch, tmp_path):
    captured = {}

    def fake_seed(url, **kwargs):
        captured.update(kwargs, url=url)
        return [{"url": url, "content": "hello"}]

    monkeypatch.setattr(seeder, "seed_documents", fake_seed)
    out = tmp_path / "docs.json"

    code = main([SEED, "--max-depth", "1", "--max-pages", "4", "--chunk-size", "300", "--output", str(out)])

    assert code == 0
    assert json.loads(out.read_text(encoding="utf-8")) == [{"url": SEED, "content": "hello"}]
    assert captured["max_depth"] == 1
    assert captured["max_pages"] == 4
    assert captured["splitter_options"]["chunkSize"] == 300
    assert captured["splitter_options"]["lengthUnit"] == "characters"


def test_cli_prints_json_to_stdout(monkeypatch, capsys):
    monkeypatch.setattr(seeder, "seed_documents", lambda url, **kwargs: [])

    assert main([SEED, "--tokens"]) == 0
    assert json.loads(capsys.readouterr().out) == []


def test_cli_reports_invalid_url(capsys):
    assert main(["not-a-url"]) == 2
    assert "[error]" in capsys.readouterr().err
