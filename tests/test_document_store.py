"""Unit tests for the in-memory DocumentStore."""

import pytest

from survey_manage.store import DocumentStore, InvalidQueryError, matches

DOCS = [
    {"_id": "a", "title": "Alpha survey", "remark": "first", "curStatus": {"status": "new", "date": 3}, "createDate": 1},
    {"_id": "b", "title": "Beta vote", "remark": "second", "curStatus": {"status": "published", "date": 1}, "createDate": 2},
    {"_id": "c", "title": "Gamma survey", "remark": "third", "curStatus": {"status": "editing", "date": 2}, "createDate": 3},
]


@pytest.fixture
def store():
    s = DocumentStore()
    for d in DOCS:
        s.insert("meta", d)
    return s


def _ids(docs):
    return [d["_id"] for d in docs]


def test_equality_and_dotted_path():
    assert matches(DOCS[1], {"curStatus.status": "published"})
    assert not matches(DOCS[0], {"curStatus.status": "published"})


def test_not_equal_and_regex():
    assert matches(DOCS[0], {"title": {"op": "NOT_EQUAL", "value": "Beta vote"}})
    assert matches(DOCS[0], {"title": {"op": "REGEX_MATCH", "value": "^Alp"}})
    assert not matches(DOCS[1], {"title": {"op": "REGEX_MATCH", "value": "survey$"}})


def test_missing_field():
    assert matches(DOCS[0], {"questionType": {"op": "NOT_EQUAL", "value": "vote"}})
    assert not matches(DOCS[0], {"questionType": {"op": "REGEX_MATCH", "value": ".*"}})
    assert not matches(DOCS[0], {"questionType": "vote"})


def test_or_branches():
    pred = {"OR": [{"title": "Beta vote"}, {"remark": "third"}]}
    assert [d["_id"] for d in DOCS if matches(d, pred)] == ["b", "c"]


def test_nested_predicate_on_sub_document():
    assert matches(DOCS[2], {"curStatus": {"status": "editing", "OR": [{"date": 2}]}})
    assert not matches(DOCS[2], {"title": {"status": "editing"}})


def test_find_filters_sorts_and_pages(store):
    count, docs = store.find("meta", {"title": {"op": "REGEX_MATCH", "value": "survey"}}, {"createDate": -1})
    assert count == 2
    assert _ids(docs) == ["c", "a"]

    count, docs = store.find("meta", {}, {"curStatus.date": 1}, page_num=2, page_size=2)
    assert count == 3
    assert _ids(docs) == ["a"]


def test_find_with_scope(store):
    count, docs = store.find("meta", {"curStatus.status": "new"}, scope={"createDate": 1})
    assert count == 1 and _ids(docs) == ["a"]
    count, _ = store.find("meta", {"curStatus.status": "new"}, scope={"createDate": 2})
    assert count == 0


def test_multi_key_sort_priority():
    s = DocumentStore()
    s.insert("m", {"_id": "1", "k": 1, "t": 1})
    s.insert("m", {"_id": "2", "k": 1, "t": 2})
    s.insert("m", {"_id": "3", "k": 0, "t": 3})
    _, docs = s.find("m", {}, {"k": -1, "t": -1})
    assert _ids(docs) == ["2", "1", "3"]


def test_bad_regex_raises(store):
    with pytest.raises(InvalidQueryError):
        store.find("meta", {"title": {"op": "REGEX_MATCH", "value": "("}})


def test_documents_are_copied(store):
    doc = store.find_one("meta", {"_id": "a"})
    doc["title"] = "changed"
    assert store.find_one("meta", {"_id": "a"})["title"] == "Alpha survey"


def test_update_and_clear(store):
    updated = store.update("meta", "a", {"title": "New"})
    assert updated["title"] == "New"
    assert store.update("meta", "missing", {"title": "x"}) is None
    store.clear()
    assert store.find("meta", {}) == (0, [])
