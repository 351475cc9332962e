"""スレッド取得APIルーター。"""

from fastapi import APIRouter, Depends, Query

from matome.api.models.schemas import ClassifyResponse, ThreadResponse, TopicListResponse
from matome.core.clients.http_client import HTTPTransport, get_http_client
from matome.core.config import BaseConfig
from matome.core.errors.exceptions import ThreadLoadError
from matome.ingest.classifier import classify
from matome.ingest.discovery import fetch_new_topics
from matome.ingest.locators import candidate_urls, parse_url
from matome.ingest.normalizer import thread_id_for
from matome.ingest.pipeline import ThreadLoader

router = APIRouter()


def get_config() -> BaseConfig:
    return BaseConfig()


async def get_transport(config: BaseConfig = Depends(get_config)) -> HTTPTransport:
    return await get_http_client(config)


def get_loader(
    transport: HTTPTransport = Depends(get_transport),
    config: BaseConfig = Depends(get_config),
) -> ThreadLoader:
    return ThreadLoader(transport=transport, config=config)


@router.get("/threads", response_model=ThreadResponse)
async def get_thread(
    url: str = Query(..., min_length=1, description="スレッドURL、またはShikutokuのトークID"),
    loader: ThreadLoader = Depends(get_loader),
):
    """
    スレッドを取得して正規化したレス一覧を返します。

    Parameters
    ----------
    url : str
        スレッドURL、またはShikutokuのトークID。

    Returns
    -------
    ThreadResponse
        スレッドとレス。

    Raises
    ------
    ThreadLoadError
        取得・解析に失敗した場合（エラー種別に応じたHTTPステータスに変換されます）。
    """
    result = await loader.load_or_raise(url)
    return ThreadResponse.model_validate(result.to_dict())


@router.get("/sources/classify", response_model=ClassifyResponse)
async def classify_source(
    input: str = Query(..., min_length=1, description="判定するURLまたはID"),
    config: BaseConfig = Depends(get_config),
):
    """入力がどの掲示板のものかと、取得候補URLを返します（通信は行いません）。"""
    locator = parse_url(input)
    return ClassifyResponse(
        input=input,
        source=classify(input).value,
        supported=locator is not None,
        thread_id=thread_id_for(locator) if locator else None,
        candidate_urls=candidate_urls(locator, config) if locator else [],
    )


@router.get("/girlschannel/new", response_model=TopicListResponse)
async def get_new_topics(
    page: int = Query(1, ge=1),
    limit: int = Query(100, ge=1, le=200),
    transport: HTTPTransport = Depends(get_transport),
    config: BaseConfig = Depends(get_config),
):
    """ガールズちゃんねるの新着トピックURLを返します。"""
    listing = await fetch_new_topics(transport, page=page, limit=limit, config=config)
    if listing.error is not None:
        raise ThreadLoadError(listing.error)
    return TopicListResponse(page=listing.page, urls=list(listing.urls))
