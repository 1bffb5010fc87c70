import os
from typing import Any, Dict, Optional

from fastapi import APIRouter, Body, Depends, Query
from pydantic import BaseModel, Field, model_validator

from ..auth import require_auth
from ..errors import CommonError
from ..filters import FilterFormatError, OrderFormatError, parse_filter_json, parse_order_json
from ..query import FilterLimitError, QueryExpressionCompiler
from ..services import (
    HistoryType,
    SurveyHistoryService,
    SurveyService,
    UserService,
)
from ..store import DocumentStore

GLOBAL_MAX_PAGE_SIZE = int(os.getenv("GLOBAL_MAX_PAGE_SIZE", "1000"))

router = APIRouter(prefix="/api/surveyManage", tags=["surveyManage"])

store = DocumentStore()
survey_service = SurveyService(store)
history_service = SurveyHistoryService(store)
user_service = UserService()
compiler = QueryExpressionCompiler()


def _ok(data: Any) -> Dict[str, Any]:
    return {"code": 200, "data": data}


def _cap_page_size(page_size: int) -> int:
    if page_size <= 0:
        return min(10, GLOBAL_MAX_PAGE_SIZE)
    return min(page_size, GLOBAL_MAX_PAGE_SIZE)


# ---------------------------------------------------------------------------
# Request models (unknown keys are ignored)
# ---------------------------------------------------------------------------

class AddIn(BaseModel):
    remark: str = Field(min_length=1)
    questionType: str = Field(min_length=1)
    title: str = Field(min_length=1)


class CreateIn(BaseModel):
    remark: str = Field(min_length=1)
    title: str = Field(min_length=1)
    questionType: Optional[str] = None
    createMethod: str = "basic"
    createFrom: Optional[str] = None

    @model_validator(mode="before")
    @classmethod
    def _null_method_is_basic(cls, data: Any) -> Any:
        if isinstance(data, dict) and data.get("createMethod") is None:
            data = {**data, "createMethod": "basic"}
        return data

    @model_validator(mode="after")
    def _check_method(self) -> "CreateIn":
        if self.createMethod == "copy":
            if not self.createFrom:
                raise ValueError("createFrom is required when createMethod is copy")
        elif not self.questionType:
            raise ValueError("questionType is required")
        return self


class UpdateIn(BaseModel):
    surveyId: str = Field(min_length=1)
    remark: str = Field(min_length=1)
    title: str = Field(min_length=1)


class SurveyIdIn(BaseModel):
    surveyId: str = Field(min_length=1)


class SaveConfIn(BaseModel):
    surveyId: str = Field(min_length=1)
    configData: Dict[str, Any]


# ---------------------------------------------------------------------------
# Routes
# ---------------------------------------------------------------------------

@router.get("/getBannerData")
def get_banner_data():
    return _ok(survey_service.get_banner_data())


@router.post("/add")
def add(body: AddIn = Body(...), claims: dict = Depends(require_auth)):
    user_data = user_service.check_login(claims)
    res = survey_service.add(body.title, body.remark, body.questionType, user_data)
    return _ok({"id": res["pageId"]})


@router.post("/create")
def create(body: CreateIn = Body(...), claims: dict = Depends(require_auth)):
    user_data = user_service.check_login(claims)
    res = survey_service.create(
        body.title,
        body.remark,
        user_data,
        question_type=body.questionType,
        create_method=body.createMethod,
        create_from=body.createFrom,
    )
    return _ok({"id": res["pageId"]})


@router.post("/update")
def update(body: UpdateIn = Body(...), claims: dict = Depends(require_auth)):
    user_data = user_service.check_login(claims)
    return _ok(survey_service.update(body.surveyId, body.title, body.remark, user_data))


@router.post("/delete")
def delete(body: SurveyIdIn = Body(...), claims: dict = Depends(require_auth)):
    user_data = user_service.check_login(claims)
    return _ok(survey_service.delete(body.surveyId, user_data))


@router.get("/list")
def list_surveys(
    curPage: int = Query(1),
    pageSize: int = Query(10),
    filter: Optional[str] = Query(None),
    order: Optional[str] = Query(None),
    claims: dict = Depends(require_auth),
):
    compiled_filter: Dict[str, Any] = {}
    compiled_order: Dict[str, int] = {}
    if filter:
        try:
            compiled_filter = compiler.compile_filter(parse_filter_json(filter))
        except FilterLimitError as e:
            raise CommonError("filter is too complex") from e
        except FilterFormatError as e:
            raise CommonError("filter format is not valid") from e
    if order:
        try:
            compiled_order = compiler.compile_order(parse_order_json(order))
        except OrderFormatError as e:
            raise CommonError("order format is not valid") from e

    user_data = user_service.check_login(claims)
    res = survey_service.list(
        page_num=max(curPage, 1),
        page_size=_cap_page_size(pageSize),
        filter=compiled_filter,
        order=compiled_order,
        user_data=user_data,
    )
    return _ok(res)


@router.post("/saveConf")
def save_conf(body: SaveConfIn = Body(...), claims: dict = Depends(require_auth)):
    user_data = user_service.check_login(claims)
    save_res = survey_service.save_conf(body.surveyId, body.configData, user_data)
    history_res = history_service.add_history(
        survey_id=body.surveyId,
        config_data=body.configData,
        type=HistoryType.DAILY,
        user_data=user_data,
    )
    return _ok({"saveRes": save_res, "historyRes": history_res})


@router.get("/get")
def get(surveyId: str = Query(..., min_length=1), claims: dict = Depends(require_auth)):
    user_data = user_service.check_login(claims)
    return _ok(survey_service.get(surveyId, user_data))


@router.get("/getHistoryList")
def get_history_list(
    surveyId: str = Query(..., min_length=1),
    historyType: str = Query(..., min_length=1),
):
    return _ok(history_service.get_history_list(surveyId, historyType))


@router.post("/publish")
def publish(body: SurveyIdIn = Body(...), claims: dict = Depends(require_auth)):
    user_data = user_service.check_login(claims)
    survey_data = survey_service.publish(body.surveyId, user_data)
    history_res = history_service.add_history(
        survey_id=survey_data["surveyConfRes"]["pageId"],
        config_data=survey_data["surveyConfRes"]["code"],
        type=HistoryType.PUBLISH,
        user_data=user_data,
    )
    return _ok({**survey_data, "historyRes": history_res})


@router.get("/data")
def data(
    surveyId: str = Query(..., min_length=1),
    isShowSecret: bool = Query(True),
    page: int = Query(1),
    pageSize: int = Query(10),
    claims: dict = Depends(require_auth),
):
    user_data = user_service.check_login(claims)
    return _ok(survey_service.data(
        surveyId,
        user_data,
        is_show_secret=isShowSecret,
        page_num=max(page, 1),
        page_size=_cap_page_size(pageSize),
    ))
