# tests/test_messaging.py
import pytest

from sayhi.clock import now_ms
from sayhi.errors import DuplicateIdError, NotFoundError, SelfMessageError, ValidationError
from sayhi.messaging import MessageExchange, Role
from sayhi.models import Message
from sayhi.repositories import MessageRepository, Page


@pytest.fixture()
def exchange(db):
    return MessageExchange(MessageRepository(db))


def test_send_starts_unread(exchange):
    message = exchange.send("u1", "u2", "hi", 1)
    assert message.id == 1
    assert message.retrieve_time == ""
    assert message.create_time == message.edit_time


def test_self_send_is_rejected_without_insert(exchange, db):
    with pytest.raises(SelfMessageError) as info:
        exchange.send("u1", "u1", "hi", 1)
    assert info.value.errno == 2004
    assert db.query(Message).count() == 0


def test_duplicate_id_is_rejected(exchange, db):
    exchange.send("u1", "u2", "hi", 7)
    with pytest.raises(DuplicateIdError) as info:
        exchange.send("u3", "u2", "other", 7)
    assert info.value.errno == 2003
    assert db.query(Message).count() == 1
    assert db.get(Message, 7).message == "hi"


def test_primary_key_guards_duplicate_when_check_is_skipped(db):
    repo = MessageRepository(db)
    repo.insert_unique(Message(id=3, userid="u1", receiver_userid="u2", message="a"))
    with pytest.raises(DuplicateIdError):
        repo.insert_unique(Message(id=3, userid="u1", receiver_userid="u2", message="b"))


def test_send_without_id_takes_next_free_id(exchange):
    exchange.send("u1", "u2", "a", 5)
    assert exchange.send("u1", "u2", "b").id == 6


def test_receiver_query_stamps_retrieve_time(exchange):
    exchange.send("u1", "u2", "hi", 1)
    before = now_ms()

    result = exchange.query_as_receiver("u2")

    assert [m.id for m in result.items] == [1]
    assert result.count == 1
    assert result.items[0].retrieve_time != ""
    assert int(result.items[0].retrieve_time) >= before


def test_repeated_reads_overwrite_stamp(db):
    clock_values = iter([100, 200, 300])
    exchange = MessageExchange(MessageRepository(db), clock=lambda: next(clock_values))
    exchange.send("u1", "u2", "hi", 1)

    assert exchange.query_as_receiver("u2").items[0].retrieve_time == "200"
    assert exchange.query_as_receiver("u2").items[0].retrieve_time == "300"


def test_sender_query_also_stamps(exchange):
    exchange.send("u1", "u2", "hi", 1)
    result = exchange.query_as_sender("u1")
    assert result.items[0].retrieve_time != ""


def test_views_are_scoped_and_sorted(db):
    ticks = iter(range(1000, 2000, 10))
    exchange = MessageExchange(MessageRepository(db), clock=lambda: next(ticks))
    exchange.send("u1", "u2", "first", 1)
    exchange.send("u1", "u3", "second", 2)
    exchange.send("u1", "u2", "third", 3)
    exchange.send("u4", "u2", "fourth", 4)

    assert [m.id for m in exchange.query_as_sender("u1").items] == [1, 2, 3]
    assert [m.id for m in exchange.query_as_sender("u1", "u2").items] == [1, 3]
    assert [m.id for m in exchange.query_as_receiver("u2").items] == [4, 3, 1]
    assert [m.id for m in exchange.query_as_receiver("u2", "u1").items] == [3, 1]


def test_pagination_and_count(exchange):
    for i in range(1, 6):
        exchange.send("u1", "u2", f"m{i}", i)

    result = exchange.query_as_sender("u1", page=Page(start=1, end=3, sort="id"))

    assert [m.id for m in result.items] == [2, 3]
    assert result.count == 5


def test_only_returned_rows_are_stamped(exchange, db):
    for i in range(1, 4):
        exchange.send("u1", "u2", f"m{i}", i)

    exchange.query_as_sender("u1", page=Page(start=0, end=1, sort="id"))

    db.expire_all()
    assert db.get(Message, 1).retrieve_time != ""
    assert db.get(Message, 2).retrieve_time == ""


def test_invalid_page_is_rejected():
    with pytest.raises(ValidationError):
        Page(start=5, end=5)
    with pytest.raises(ValidationError):
        Page(sort="message")


def test_query_latest(db):
    ticks = iter(range(1000, 2000, 10))
    exchange = MessageExchange(MessageRepository(db), clock=lambda: next(ticks))
    exchange.send("u1", "u2", "old", 1)
    exchange.send("u3", "u2", "new", 2)

    latest = exchange.query_latest(Role.RECEIVER, "u2")
    assert [m.id for m in latest.items] == [2]
    assert latest.count == 2

    assert [m.id for m in exchange.query_latest(Role.SENDER, "u1").items] == [1]
    assert exchange.query_latest(Role.SENDER, "nobody").items == []


def test_only_sender_can_edit(exchange):
    exchange.send("u1", "u2", "hi", 1)

    edited = exchange.update(1, "u1", "hello")
    assert edited.message == "hello"

    with pytest.raises(NotFoundError) as info:
        exchange.update(1, "u2", "hacked")
    assert info.value.errno == 1005


def test_mark_retrieved_is_receiver_only(exchange):
    exchange.send("u1", "u2", "hi", 1)

    assert exchange.mark_retrieved(1, "u2", "12345").retrieve_time == "12345"
    with pytest.raises(NotFoundError):
        exchange.mark_retrieved(1, "u1", "999")


def test_delete_is_role_scoped(exchange):
    exchange.send("u1", "u2", "hi", 1)

    with pytest.raises(NotFoundError):
        exchange.delete(1, Role.SENDER, "u2")
    with pytest.raises(NotFoundError):
        exchange.delete(1, Role.RECEIVER, "u1")

    deleted = exchange.delete(1, Role.SENDER, "u1")
    assert deleted.id == 1
    assert exchange.query_as_sender("u1").items == []
    assert exchange.query_as_receiver("u2").items == []


def test_receiver_can_delete_own_copy(exchange):
    exchange.send("u1", "u2", "hi", 1)
    assert exchange.delete(1, Role.RECEIVER, "u2").message == "hi"
    with pytest.raises(NotFoundError):
        exchange.delete(1, Role.RECEIVER, "u2")


def test_page_end_beyond_integer_range_is_rejected():
    with pytest.raises(ValidationError):
        Page(start=0, end=10**20)
