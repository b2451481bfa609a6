# File: tests/test_search.py
import json

import pytest
from site_search.config import SiteConfig
from site_search.indexer import save_lemmas_and_indexes
from site_search.models import Page, Site
from site_search.search import EMPTY_QUERY, NO_MATCHES_SNIPPET, NO_TERMS, SearchEngine

SITE_A = "http://a.example"
SITE_B = "http://b.example"


@pytest.fixture()
def add_page(storage, lemmatizer):
    """Store a page and index its text like the crawler does."""
    sites = {}

    def _add(path, content, site_url=SITE_A, title=""):
        if site_url not in sites:
            sites[site_url] = storage.create_site(Site(url=site_url, name=site_url.split("//")[1]))
        page = storage.create_page(
            Page(site_id=sites[site_url].id, path=path, code=200, content=content, title=title)
        )
        save_lemmas_and_indexes(storage, page, lemmatizer.count_lemmas(content))
        return page

    return _add


@pytest.fixture()
def engine(storage, lemmatizer):
    return SearchEngine(
        storage,
        lemmatizer,
        [SiteConfig(name="A", url=SITE_A), SiteConfig(name="B", url=SITE_B)],
        snippet_length=200,
        snippet_lead=50,
        default_limit=20,
    )


@pytest.mark.parametrize("query", ["", "   ", None])
def test_empty_query(engine, query):
    response = engine.search(query)
    assert response.result is False
    assert response.error_code == EMPTY_QUERY


def test_query_of_functional_words_only(engine):
    response = engine.search("the and of")
    assert response.result is False
    assert response.error_code == NO_TERMS
    assert response.error


def test_all_terms_must_match(engine, add_page):
    add_page("/both", "the fox and the dog")
    add_page("/fox", "a lonely fox")

    response = engine.search("fox dog")
    assert response.result is True
    assert response.count == 1
    assert [r.uri for r in response.data] == ["/both"]


def test_whole_word_match_required(engine, add_page):
    add_page("/foxes", "foxes everywhere")
    add_page("/fox", "one fox")
    # "foxes" page is not a candidate for "fox" by lemma, nor by text
    assert [r.uri for r in engine.search("fox").data] == ["/fox"]


def test_ranked_by_occurrences(engine, add_page):
    add_page("/two", "fox fox")
    add_page("/five", "fox fox fox fox fox")

    response = engine.search("fox")
    assert [(r.uri, r.relevance) for r in response.data] == [("/five", 5.0), ("/two", 2.0)]


def test_repeated_query_terms_counted_once(engine, add_page):
    add_page("/two", "fox fox")
    assert engine.search("fox fox").data[0].relevance == 2.0


def test_pagination_keeps_total_count(engine, add_page):
    add_page("/1", "fox")
    add_page("/3", "fox fox fox")
    add_page("/2", "fox fox")

    response = engine.search("fox", offset=1, limit=1)
    assert response.count == 3
    assert [r.uri for r in response.data] == ["/2"]
    assert engine.search("fox", offset=5).data == []


def test_snippet_is_windowed_and_highlighted(engine, add_page):
    text = "lorem " * 60 + "the Fox jumps " + "ipsum " * 60
    add_page("/long", text)

    snippet = engine.search("fox").data[0].snippet
    assert snippet.startswith("...") and snippet.endswith("...")
    assert "<b>Fox</b>" in snippet
    plain = snippet.replace("<b>", "").replace("</b>", "")
    assert len(plain) <= 200 + 6
    assert plain.index("Fox") <= 3 + 50


def test_snippet_without_match(engine):
    assert engine.build_snippet("nothing here", ["fox"]) == NO_MATCHES_SNIPPET


def test_title_block(engine, add_page):
    add_page("/titled", "fox", title="Foxes")
    add_page("/plain", "fox fox")

    titles = {r.uri: r.title for r in engine.search("fox").data}
    assert titles == {"/titled": "Foxes - /titled", "/plain": "/plain"}


def test_hosts_outside_configuration_are_hidden(engine, add_page):
    add_page("/a", "fox", site_url=SITE_A)
    add_page("/x", "fox", site_url="http://rogue.example")

    response = engine.search("fox")
    assert [(r.site, r.uri) for r in response.data] == [(SITE_A, "/a")]


def test_site_filter(engine, add_page):
    add_page("/a", "fox", site_url=SITE_A)
    add_page("/b", "fox fox", site_url=SITE_B)

    response = engine.search("fox", site="HTTP://A.EXAMPLE/")
    assert [(r.site, r.uri) for r in response.data] == [(SITE_A, "/a")]
    assert response.data[0].site_name == "a.example"

    missing = engine.search("fox", site="http://c.example")
    assert missing.result is True
    assert missing.count == 0


def test_response_serialization(engine, add_page):
    add_page("/a", "fox")
    ok = json.loads(engine.search("fox").json())
    assert ok["result"] is True
    assert "error" not in ok
    assert ok["data"][0]["uri"] == "/a"

    failed = json.loads(engine.search("").json())
    assert failed["result"] is False
    assert failed["error_code"] == EMPTY_QUERY


def test_snippet_offsets_survive_case_folding(storage, lemmatizer):
    # "İ".lower() is two characters long
    engine = SearchEngine(storage, lemmatizer, [], snippet_length=20, snippet_lead=0)
    assert engine.build_snippet("İ" * 30 + " fox tail", ["fox"]) == "...<b>fox</b> tail..."
