# sayhi/routes/message_routes.py
"""发件箱视角：x-userid 是发送方"""
from fastapi import APIRouter, Depends, Header, Response

from sayhi.messaging import MessageExchange, Role, get_exchange
from sayhi.repositories import Page
from sayhi.routes.params import listing, message_id, ok, paging, strip_legacy_id
from sayhi.schemas import EditMessageRequest, MessageOut, SendMessageRequest

router = APIRouter()


def _dump(items):
    return [MessageOut.model_validate(m).model_dump() for m in items]


@router.get("")
def list_sent(
    response: Response,
    x_userid: str = Header(...),
    page: Page = Depends(paging("ASC")),
    exchange: MessageExchange = Depends(get_exchange),
):
    result = exchange.query_as_sender(x_userid, page=page)
    return listing(response, _dump(result.items), result.count)


@router.get("/new")
def latest_sent(
    response: Response,
    x_userid: str = Header(...),
    exchange: MessageExchange = Depends(get_exchange),
):
    result = exchange.query_latest(Role.SENDER, x_userid)
    return listing(response, _dump(result.items), result.count)


@router.get("/{receiver_userid}")
def conversation_sent(
    receiver_userid: str,
    response: Response,
    x_userid: str = Header(...),
    page: Page = Depends(paging("ASC")),
    exchange: MessageExchange = Depends(get_exchange),
):
    result = exchange.query_as_sender(x_userid, strip_legacy_id(receiver_userid), page=page)
    return listing(response, _dump(result.items), result.count)


@router.post("")
def send_message(
    payload: SendMessageRequest,
    x_userid: str = Header(...),
    exchange: MessageExchange = Depends(get_exchange),
):
    message = exchange.send(x_userid, payload.receiver_userid, payload.message, payload.id)
    return ok(MessageOut.model_validate(message).model_dump())


@router.put("/{id}")
def edit_message(
    id: str,
    payload: EditMessageRequest,
    x_userid: str = Header(...),
    exchange: MessageExchange = Depends(get_exchange),
):
    message = exchange.update(message_id(id), x_userid, payload.message)
    return ok(MessageOut.model_validate(message).model_dump())


@router.delete("/{id}")
def delete_sent(
    id: str,
    x_userid: str = Header(...),
    exchange: MessageExchange = Depends(get_exchange),
):
    return ok(exchange.delete(message_id(id), Role.SENDER, x_userid).model_dump())
