# File: tests/test_indexer.py
import pytest
from site_search.errors import DuplicateIndexError
from site_search.indexer import save_lemmas_and_indexes
from site_search.models import Page, Site
from site_search.storage.memory import InMemoryStorage


@pytest.fixture()
def site(storage):
    return storage.create_site(Site(url="http://a.example", name="A"))


def _page(storage, site, path):
    return storage.create_page(Page(site_id=site.id, path=path, code=200, content=""))


def test_rank_is_count_on_page(storage, site):
    page = _page(storage, site, "/1")
    stats = save_lemmas_and_indexes(storage, page, {"fox": 3, "dog": 1})

    fox = storage.find_lemma("fox", site.id)
    assert storage.find_index(fox.id, page.id).rank == 3.0
    assert stats.new_lemmas == 2
    assert stats.indexes == 2


def test_frequency_counts_pages_not_occurrences(storage, site):
    first = _page(storage, site, "/1")
    second = _page(storage, site, "/2")
    save_lemmas_and_indexes(storage, first, {"fox": 5})
    stats = save_lemmas_and_indexes(storage, second, {"fox": 2, "owl": 1})

    assert storage.find_lemma("fox", site.id).frequency == 2
    assert storage.find_lemma("owl", site.id).frequency == 1
    assert stats.updated_lemmas == 1
    assert stats.new_lemmas == 1


def test_lemmas_are_per_site(storage, site):
    other = storage.create_site(Site(url="http://b.example", name="B"))
    save_lemmas_and_indexes(storage, _page(storage, site, "/1"), {"fox": 1})
    save_lemmas_and_indexes(storage, _page(storage, other, "/1"), {"fox": 1})

    assert storage.find_lemma("fox", site.id).frequency == 1
    assert storage.find_lemma("fox", other.id).frequency == 1


def test_repeated_write_is_skipped_without_increment(storage, site):
    page = _page(storage, site, "/1")
    save_lemmas_and_indexes(storage, page, {"fox": 1})
    stats = save_lemmas_and_indexes(storage, page, {"fox": 4})

    assert stats.duplicates == 1
    assert stats.indexes == 0
    assert storage.find_lemma("fox", site.id).frequency == 1
    assert storage.find_index(storage.find_lemma("fox", site.id).id, page.id).rank == 1.0


def test_unsaved_page_rejected(storage, site):
    with pytest.raises(ValueError):
        save_lemmas_and_indexes(storage, Page(site_id=site.id, path="/x", code=200, content=""), {})


class ConflictingStorage(InMemoryStorage):
    """Raises on index insert once ``conflict`` is set, as a concurrent writer would."""

    conflict = False

    def create_index(self, index):
        if self.conflict:
            raise DuplicateIndexError(index.page_id, index.lemma_id)
        return super().create_index(index)


def test_conflicting_insert_reverts_frequency():
    storage = ConflictingStorage()
    site = storage.create_site(Site(url="http://a.example", name="A"))
    save_lemmas_and_indexes(storage, _page(storage, site, "/1"), {"fox": 1})

    storage.conflict = True
    second = _page(storage, site, "/2")
    stats = save_lemmas_and_indexes(storage, second, {"fox": 2})

    fox = storage.find_lemma("fox", site.id)
    assert fox.frequency == 1
    assert storage.find_index(fox.id, second.id) is None
    assert stats.duplicates == 1
    assert stats.updated_lemmas == 0
    assert stats.indexes == 0
