from __future__ import annotations
from copy import deepcopy
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Optional
import logging
import os
import time
import uuid

import yaml

from ..errors import CommonError, ErrorCode
from ..store import DocumentStore, InvalidQueryError
from .user import UserData

log = logging.getLogger("survey")

BANNER_PATH = Path(os.getenv("BANNER_FILE", "config/banner.yaml"))

META = "survey_meta"
CONF = "survey_conf"
PUBLISH = "survey_publish"
SUBMIT = "survey_submit"


class SurveyStatus(str, Enum):
    NEW = "new"
    EDITING = "editing"
    PUBLISHED = "published"
    REMOVED = "removed"


def _now_ms() -> int:
    return int(time.time() * 1000)


def _status(status: SurveyStatus, date: int) -> Dict[str, Any]:
    return {"status": status.value, "date": date}


def _default_code(title: str, question_type: str) -> Dict[str, Any]:
    return {
        "bannerConf": {"titleConfig": {"mainTitle": title, "subTitle": ""}},
        "baseConf": {"begTime": "", "endTime": "", "answerBegTime": "", "answerEndTime": ""},
        "submitConf": {"submitTitle": "Submit", "confirmAgain": {"is_again": True}},
        "dataConf": {"dataList": []},
        "skinConf": {"skinColor": "#4a4c5b"},
        "questionType": question_type,
    }


def _mask(value: Any) -> Any:
    if value is None:
        return value
    s = str(value)
    if len(s) <= 2:
        return "*" * len(s)
    return s[0] + "*" * (len(s) - 2) + s[-1]


class SurveyService:
    """
    Survey metadata, config, publishing and submitted-response access.
    """

    def __init__(self, store: DocumentStore):
        self.store = store

    # ---- helpers -----------------------------------------------------------

    def _get_meta(self, survey_id: str) -> Dict[str, Any]:
        meta = self.store.find_one(META, {"_id": survey_id})
        if meta is None or meta["curStatus"]["status"] == SurveyStatus.REMOVED.value:
            raise CommonError(f"survey {survey_id} does not exist", ErrorCode.NOT_FOUND)
        return meta

    def _get_own_meta(self, survey_id: str, user_data: UserData) -> Dict[str, Any]:
        meta = self._get_meta(survey_id)
        if meta["ownerId"] != user_data.user_id:
            raise CommonError("no permission for this survey", ErrorCode.NO_PERMISSION)
        return meta

    def _set_status(self, meta: Dict[str, Any], status: SurveyStatus) -> Dict[str, Any]:
        now = _now_ms()
        cur = _status(status, now)
        return self.store.update(META, meta["_id"], {
            "curStatus": cur,
            "statusList": meta.get("statusList", []) + [cur],
            "updateDate": now,
        })

    # ---- operations --------------------------------------------------------

    def get_banner_data(self) -> Dict[str, Any]:
        if not BANNER_PATH.exists():
            raise CommonError(f"banner file not found: {BANNER_PATH}", ErrorCode.SERVER_ERROR)
        with BANNER_PATH.open("r", encoding="utf-8") as f:
            return yaml.safe_load(f) or {}

    def add(self, title: str, remark: str, question_type: str, user_data: UserData,
            code: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        now = _now_ms()
        cur = _status(SurveyStatus.NEW, now)
        meta = {
            "_id": uuid.uuid4().hex,
            "title": title,
            "remark": remark,
            "questionType": question_type,
            "owner": user_data.username,
            "ownerId": user_data.user_id,
            "curStatus": cur,
            "statusList": [cur],
            "createDate": now,
            "updateDate": now,
        }
        self.store.insert(META, meta)
        conf = {
            "_id": meta["_id"],
            "pageId": meta["_id"],
            "code": code if code is not None else _default_code(title, question_type),
        }
        self.store.insert(CONF, conf)
        log.info("survey %s created by %s", meta["_id"], user_data.username)
        return {"pageId": meta["_id"]}

    def create(self, title: str, remark: str, user_data: UserData, question_type: Optional[str] = None,
               create_method: str = "basic", create_from: Optional[str] = None) -> Dict[str, Any]:
        if create_method == "copy":
            source = self._get_own_meta(create_from, user_data)
            source_conf = self.store.find_one(CONF, {"pageId": create_from})
            code = deepcopy(source_conf["code"]) if source_conf else None
            return self.add(title, remark, source["questionType"], user_data, code=code)
        return self.add(title, remark, question_type, user_data)

    def update(self, survey_id: str, title: str, remark: str, user_data: UserData) -> Dict[str, Any]:
        self._get_own_meta(survey_id, user_data)
        self.store.update(META, survey_id, {"title": title, "remark": remark, "updateDate": _now_ms()})
        return {"surveyId": survey_id}

    def delete(self, survey_id: str, user_data: UserData) -> Dict[str, Any]:
        meta = self._get_own_meta(survey_id, user_data)
        self._set_status(meta, SurveyStatus.REMOVED)
        log.info("survey %s removed by %s", survey_id, user_data.username)
        return {"surveyId": survey_id}

    def list(self, page_num: int, page_size: int, filter: Dict[str, Any], order: Dict[str, int],
             user_data: UserData) -> Dict[str, Any]:
        """
        `filter`/`order` come from QueryExpressionCompiler. The ownership and
        not-removed restrictions are applied as a separate scope, so a client
        condition on the same field cannot replace them.
        """
        scope = {
            "ownerId": user_data.user_id,
            "curStatus.status": {"op": "NOT_EQUAL", "value": SurveyStatus.REMOVED.value},
        }
        sort = order or {"createDate": -1}
        try:
            count, docs = self.store.find(META, filter, sort, page_num, page_size, scope=scope)
        except InvalidQueryError as e:
            raise CommonError("filter format is not valid") from e
        return {"count": count, "data": docs}

    def save_conf(self, survey_id: str, config_data: Dict[str, Any], user_data: UserData) -> Dict[str, Any]:
        meta = self._get_own_meta(survey_id, user_data)
        self.store.update(CONF, survey_id, {"code": config_data})
        self._set_status(meta, SurveyStatus.EDITING)
        return {"surveyId": survey_id}

    def get(self, survey_id: str, user_data: UserData) -> Dict[str, Any]:
        meta = self._get_own_meta(survey_id, user_data)
        conf = self.store.find_one(CONF, {"pageId": survey_id})
        return {"surveyMetaRes": meta, "surveyConfRes": conf}

    def publish(self, survey_id: str, user_data: UserData) -> Dict[str, Any]:
        meta = self._get_own_meta(survey_id, user_data)
        conf = self.store.find_one(CONF, {"pageId": survey_id})
        if conf is None:
            raise CommonError(f"survey {survey_id} has no config", ErrorCode.NOT_FOUND)
        published = {"_id": survey_id, "pageId": survey_id, "code": conf["code"], "publishDate": _now_ms()}
        if self.store.update(PUBLISH, survey_id, published) is None:
            self.store.insert(PUBLISH, published)
        meta = self._set_status(meta, SurveyStatus.PUBLISHED)
        log.info("survey %s published by %s", survey_id, user_data.username)
        return {
            "surveyMetaRes": meta,
            "surveyConfRes": {"pageId": survey_id, "code": conf["code"]},
        }

    def add_response(self, survey_id: str, data: Dict[str, Any]) -> Dict[str, Any]:
        self._get_meta(survey_id)
        doc = {"_id": uuid.uuid4().hex, "pageId": survey_id, "data": data, "createDate": _now_ms()}
        self.store.insert(SUBMIT, doc)
        return {"_id": doc["_id"]}

    def data(self, survey_id: str, user_data: UserData, is_show_secret: bool = True,
             page_num: int = 1, page_size: int = 10) -> Dict[str, Any]:
        """
        Page through submitted responses. With is_show_secret, answers to
        questions flagged isSecret are masked.
        """
        self._get_own_meta(survey_id, user_data)
        conf = self.store.find_one(PUBLISH, {"pageId": survey_id}) or self.store.find_one(CONF, {"pageId": survey_id})
        data_list: List[Dict[str, Any]] = ((conf or {}).get("code") or {}).get("dataConf", {}).get("dataList", [])
        list_head = [
            {"field": q["field"], "title": q.get("title", q["field"]), "isSecret": bool(q.get("isSecret"))}
            for q in data_list
            if "field" in q
        ]
        secret = {h["field"] for h in list_head if h["isSecret"]}

        total, docs = self.store.find(SUBMIT, {"pageId": survey_id}, {"createDate": -1}, page_num, page_size)
        list_body = []
        for d in docs:
            row = {"_id": d["_id"], "createDate": d["createDate"]}
            for h in list_head:
                value = d["data"].get(h["field"])
                row[h["field"]] = _mask(value) if is_show_secret and h["field"] in secret else value
            list_body.append(row)
        return {"total": total, "listHead": list_head, "listBody": list_body}
