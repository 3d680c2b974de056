"""
Tests for the message model and provider serialization.
"""

import pytest

from chatmux.core.messages import (
    ASSISTANT_ROLE,
    USER_ROLE,
    CodePart,
    GeneratedImagePart,
    ImagePart,
    Message,
    PdfPart,
    TextPart,
    split_data_url,
    to_data_url,
    to_provider_messages,
)


class TestMessage:

    def test_rejects_unknown_role(self):
        with pytest.raises(ValueError):
            Message(role="system", content=(TextPart("hi"),))

    def test_rejects_empty_content(self):
        with pytest.raises(ValueError):
            Message(role=USER_ROLE, content=())

    def test_list_content_is_frozen_to_tuple(self):
        message = Message(role=USER_ROLE, content=[TextPart("hi")])
        assert isinstance(message.content, tuple)

    def test_text_joins_text_and_code(self):
        message = Message(
            role=ASSISTANT_ROLE,
            content=(TextPart("Here:"), CodePart("print(1)"), GeneratedImagePart("u")),
        )
        assert message.text == "Here:\nprint(1)"

    def test_images(self, data_url):
        message = Message(role=USER_ROLE, content=(TextPart("look"), ImagePart(data_url)))
        assert message.images == [data_url]

    def test_to_dict_pdf_part(self):
        part = PdfPart("a.pdf", 2048, 3, "summary", "full text")
        payload = Message(role=USER_ROLE, content=(part,)).to_dict()
        assert payload == {
            "role": "user",
            "content": [{
                "type": "pdf",
                "fileName": "a.pdf",
                "fileSize": 2048,
                "pageCount": 3,
                "summary": "summary",
            }],
        }


class TestProviderMessages:

    def test_part_conversion(self, data_url):
        messages = [
            Message(role=USER_ROLE, content=(TextPart("hi"), ImagePart(data_url))),
            Message(role=ASSISTANT_ROLE, content=(GeneratedImagePart("https://x/y.png"),)),
            Message(role=USER_ROLE, content=(PdfPart("doc.pdf", 10, 2, "s", "body"),)),
        ]
        converted = to_provider_messages(messages)

        assert converted[0]["content"] == [
            {"type": "text", "text": "hi"},
            {"type": "image_url", "image_url": {"url": data_url}},
        ]
        assert converted[1]["content"][0]["text"] == "[Generated image: https://x/y.png]"
        assert converted[2]["content"][0]["text"] == "[PDF Document: doc.pdf - 2 pages]\n\nbody"


class TestDataUrls:

    def test_to_data_url(self):
        assert to_data_url(b"abc", "image/jpeg") == "data:image/jpeg;base64,YWJj"

    def test_split_data_url(self):
        assert split_data_url("data:image/png;base64,AAAA") == ("image/png", "AAAA")

    def test_split_rejects_plain_url(self):
        with pytest.raises(ValueError):
            split_data_url("https://example.com/cat.png")
