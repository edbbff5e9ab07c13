# sayhi/routes/notification_routes.py
"""收件箱视角：x-userid 是接收方"""
from fastapi import APIRouter, Depends, Header, Response

from sayhi.messaging import MessageExchange, Role, get_exchange
from sayhi.repositories import Page
from sayhi.routes.params import listing, message_id, ok, paging, strip_legacy_id
from sayhi.schemas import AcknowledgeRequest, MessageOut

router = APIRouter()


def _dump(items):
    return [MessageOut.model_validate(m).model_dump() for m in items]


@router.get("")
def list_received(
    response: Response,
    x_userid: str = Header(...),
    page: Page = Depends(paging("DESC")),
    exchange: MessageExchange = Depends(get_exchange),
):
    result = exchange.query_as_receiver(x_userid, page=page)
    return listing(response, _dump(result.items), result.count)


@router.get("/new")
def latest_received(
    response: Response,
    x_userid: str = Header(...),
    exchange: MessageExchange = Depends(get_exchange),
):
    result = exchange.query_latest(Role.RECEIVER, x_userid)
    return listing(response, _dump(result.items), result.count)


@router.get("/{sender_userid}")
def conversation_received(
    sender_userid: str,
    response: Response,
    x_userid: str = Header(...),
    page: Page = Depends(paging("DESC")),
    exchange: MessageExchange = Depends(get_exchange),
):
    result = exchange.query_as_receiver(x_userid, strip_legacy_id(sender_userid), page=page)
    return listing(response, _dump(result.items), result.count)


@router.put("/{id}")
def acknowledge(
    id: str,
    payload: AcknowledgeRequest,
    x_userid: str = Header(...),
    exchange: MessageExchange = Depends(get_exchange),
):
    message = exchange.mark_retrieved(message_id(id), x_userid, payload.retrieve_time)
    return ok(MessageOut.model_validate(message).model_dump())


@router.delete("/{id}")
def delete_received(
    id: str,
    x_userid: str = Header(...),
    exchange: MessageExchange = Depends(get_exchange),
):
    return ok(exchange.delete(message_id(id), Role.RECEIVER, x_userid).model_dump())
