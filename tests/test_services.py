"""Unit tests for the survey, history and user services."""

import pytest

from survey_manage.errors import CommonError, ErrorCode
from survey_manage.services import (
    HistoryType,
    SurveyHistoryService,
    SurveyService,
    SurveyStatus,
    UserData,
    UserService,
)
from survey_manage.store import DocumentStore

ALICE = UserData(user_id="u1", username="alice")
BOB = UserData(user_id="u2", username="bob")


@pytest.fixture
def store():
    return DocumentStore()


@pytest.fixture
def surveys(store):
    return SurveyService(store)


@pytest.fixture
def history(store):
    return SurveyHistoryService(store)


def test_check_login_maps_claims():
    assert UserService().check_login({"sub": "u1", "username": "alice"}) == ALICE
    assert UserService().check_login({"sub": "u3"}).username == "u3"
    with pytest.raises(CommonError) as e:
        UserService().check_login({})
    assert e.value.code == ErrorCode.NO_AUTH


def test_add_and_get(surveys):
    sid = surveys.add("T", "R", "normal", ALICE)["pageId"]
    res = surveys.get(sid, ALICE)
    meta = res["surveyMetaRes"]
    assert meta["title"] == "T" and meta["owner"] == "alice"
    assert meta["curStatus"]["status"] == SurveyStatus.NEW.value
    assert res["surveyConfRes"]["code"]["questionType"] == "normal"


def test_copy_clones_code_and_question_type(surveys):
    src = surveys.add("Src", "R", "vote", ALICE)["pageId"]
    surveys.save_conf(src, {"dataConf": {"dataList": [{"field": "q1"}]}}, ALICE)
    copy_id = surveys.create("Copy", "R", ALICE, create_method="copy", create_from=src)["pageId"]
    copy = surveys.get(copy_id, ALICE)
    assert copy["surveyMetaRes"]["questionType"] == "vote"
    assert copy["surveyConfRes"]["code"] == {"dataConf": {"dataList": [{"field": "q1"}]}}


def test_other_users_cannot_modify(surveys):
    sid = surveys.add("T", "R", "normal", ALICE)["pageId"]
    with pytest.raises(CommonError) as e:
        surveys.update(sid, "X", "Y", BOB)
    assert e.value.code == ErrorCode.NO_PERMISSION


def test_delete_hides_survey(surveys):
    sid = surveys.add("T", "R", "normal", ALICE)["pageId"]
    surveys.delete(sid, ALICE)
    with pytest.raises(CommonError) as e:
        surveys.get(sid, ALICE)
    assert e.value.code == ErrorCode.NOT_FOUND
    assert surveys.list(1, 10, {}, {}, ALICE)["count"] == 0


def test_list_scopes_to_owner_and_ignores_removed(surveys):
    keep = surveys.add("Mine", "R", "normal", ALICE)["pageId"]
    gone = surveys.add("Mine too", "R", "normal", ALICE)["pageId"]
    surveys.add("Theirs", "R", "normal", BOB)
    surveys.delete(gone, ALICE)

    # a client condition on the status field cannot resurrect removed surveys
    res = surveys.list(1, 10, {"curStatus.status": "removed"}, {}, ALICE)
    assert res["count"] == 0

    res = surveys.list(1, 10, {"title": {"op": "REGEX_MATCH", "value": "^Mine"}}, {}, ALICE)
    assert [d["_id"] for d in res["data"]] == [keep]


def test_list_bad_regex_is_a_filter_error(surveys):
    surveys.add("T", "R", "normal", ALICE)
    with pytest.raises(CommonError) as e:
        surveys.list(1, 10, {"title": {"op": "REGEX_MATCH", "value": "["}}, {}, ALICE)
    assert e.value.message == "filter format is not valid"


def test_publish_sets_status_and_returns_conf(surveys):
    sid = surveys.add("T", "R", "normal", ALICE)["pageId"]
    res = surveys.publish(sid, ALICE)
    assert res["surveyMetaRes"]["curStatus"]["status"] == SurveyStatus.PUBLISHED.value
    assert res["surveyConfRes"]["pageId"] == sid
    assert [s["status"] for s in res["surveyMetaRes"]["statusList"]] == ["new", "published"]


def test_data_masks_secret_answers(surveys):
    sid = surveys.add("T", "R", "normal", ALICE)["pageId"]
    surveys.save_conf(sid, {"dataConf": {"dataList": [
        {"field": "name", "title": "Name"},
        {"field": "phone", "title": "Phone", "isSecret": True},
    ]}}, ALICE)
    surveys.publish(sid, ALICE)
    surveys.add_response(sid, {"name": "Carol", "phone": "13800001111"})

    masked = surveys.data(sid, ALICE)
    assert [h["field"] for h in masked["listHead"]] == ["name", "phone"]
    assert masked["total"] == 1
    assert masked["listBody"][0]["name"] == "Carol"
    assert masked["listBody"][0]["phone"] == "1*********1"

    plain = surveys.data(sid, ALICE, is_show_secret=False)
    assert plain["listBody"][0]["phone"] == "13800001111"


def test_history_records_and_lists(history):
    history.add_history("s1", {"v": 1}, HistoryType.DAILY, ALICE)
    history.add_history("s1", {"v": 2}, HistoryType.PUBLISH, ALICE)
    history.add_history("s2", {"v": 3}, HistoryType.DAILY, ALICE)

    daily = history.get_history_list("s1", "dailyHis")
    assert len(daily) == 1
    assert daily[0]["operator"] == {"_id": "u1", "username": "alice"}
    assert set(daily[0]) == {"_id", "createDate", "operator"}
    assert len(history.get_history_list("s1", "publishHis")) == 1
