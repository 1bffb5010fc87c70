from __future__ import annotations
from enum import Enum
from typing import Any, Dict, List
import time
import uuid

from ..store import DocumentStore
from .user import UserData

HISTORY_COLLECTION = "survey_history"
HISTORY_LIST_LIMIT = 100


class HistoryType(str, Enum):
    DAILY = "dailyHis"
    PUBLISH = "publishHis"


class SurveyHistoryService:
    """
    Keeps a snapshot of a survey's config each time it is saved or published.
    """

    def __init__(self, store: DocumentStore):
        self.store = store

    def add_history(
        self,
        survey_id: str,
        config_data: Dict[str, Any],
        type: HistoryType,
        user_data: UserData,
    ) -> Dict[str, Any]:
        doc = {
            "_id": uuid.uuid4().hex,
            "pageId": survey_id,
            "type": HistoryType(type).value,
            "schema": config_data,
            "operator": user_data.to_dict(),
            "createDate": int(time.time() * 1000),
        }
        self.store.insert(HISTORY_COLLECTION, doc)
        return {"_id": doc["_id"]}

    def get_history_list(self, survey_id: str, history_type: str) -> List[Dict[str, Any]]:
        _, docs = self.store.find(
            HISTORY_COLLECTION,
            {"pageId": survey_id, "type": history_type},
            sort={"createDate": -1},
            page_num=1,
            page_size=HISTORY_LIST_LIMIT,
        )
        return [
            {"_id": d["_id"], "createDate": d["createDate"], "operator": d["operator"]}
            for d in docs
        ]
