from __future__ import annotations

import pytest

from conftest import member_json, node_json, topic_json
from v2ex.errors import DecodingError
from v2ex.models import (
    Envelope,
    FavoriteRecord,
    Member,
    Node,
    Reply,
    Topic,
    UNKNOWN,
    decode_list,
    decode_listing,
)


def test_topic_decodes_nested_member_and_node():
    topic = Topic.from_dict(topic_json())

    assert topic.member == Member.from_dict(member_json())
    assert topic.node == Node.from_dict(node_json())
    assert topic.author_name == "alice"
    assert topic.node_title == "Swift"
    assert topic.last_reply_time == 1700000200


def test_topic_without_author_or_node_reads_as_unknown():
    topic = Topic.from_dict(topic_json(member=None, node=None, created=None, replies=None))

    assert topic.member is None and topic.node is None
    assert topic.author_name == UNKNOWN
    assert topic.node_title == UNKNOWN
    assert topic.created is None


def test_topic_plain_text_prefers_rendered_html():
    topic = Topic.from_dict(topic_json(content="**raw**", content_rendered="<p><b>raw</b></p>"))
    assert topic.plain_text == "raw"

    bare = Topic.from_dict(topic_json(content="  just raw  ", content_rendered=None))
    assert bare.plain_text == "just raw"


@pytest.mark.parametrize(
    "override",
    [
        {"id": True},  # booleans are not identifiers
        {"id": -1},
        {"id": "42"},
        {"title": None},
        {"url": 5},
        {"replies": "3"},
    ],
)
def test_topic_rejects_malformed_fields(override):
    with pytest.raises(DecodingError):
        Topic.from_dict(topic_json(**override))


def test_member_requires_created_timestamp():
    data = member_json()
    del data["created"]

    with pytest.raises(DecodingError):
        Member.from_dict(data)


def test_reply_requires_content():
    with pytest.raises(DecodingError):
        Reply.from_dict({"id": 1, "created": 1})


def test_non_object_is_decoding_error():
    with pytest.raises(DecodingError):
        Node.from_dict(["not", "an", "object"])


def test_envelope_requires_boolean_success():
    with pytest.raises(DecodingError):
        Envelope.from_dict({"result": member_json()}, Member.from_dict)

    envelope = Envelope.from_dict({"success": False, "message": "nope"}, Member.from_dict)
    assert envelope.result is None
    assert envelope.message == "nope"


def test_decode_listing_treats_null_field_as_empty():
    assert decode_listing({"topics": None}, "topics", Topic.from_dict) == []


def test_decode_listing_rejects_non_array_field():
    with pytest.raises(DecodingError):
        decode_listing({"topics": {"id": 1}}, "topics", Topic.from_dict)


def test_decode_list_rejects_objects():
    with pytest.raises(DecodingError):
        decode_list({"topics": []}, Topic.from_dict, "latest")


def test_favorite_record_for_topic_without_node():
    topic = Topic.from_dict(topic_json(node=None))

    record = FavoriteRecord.for_topic("u1", topic)

    assert record.node_name is None
    assert record.id is None and record.created_at is None
    assert "id" not in record.to_insert()
