import base64
import io
import unittest
from unittest import mock

from werkzeug.datastructures import FileStorage

from helpers import PNG_BYTES, PNG_DATA_URI, StubVisionClient
from pantry_backend.config import VISION_PROMPT
from pantry_backend.services.vision import (
    IMAGE_TOO_LARGE_MESSAGE,
    UNSUPPORTED_FORMAT_MESSAGE,
    InvalidImageError,
    VisionSuggestion,
    analyze_pantry_image,
    decode_image_payload,
    encode_image_upload,
    parse_vision_result,
)

JPEG_BYTES = b"\xff\xd8\xff\xe0" + b"\x00" * 16


class DecodeImagePayloadTests(unittest.TestCase):
    def test_data_uri_is_accepted(self):
        image = decode_image_payload(PNG_DATA_URI)

        self.assertEqual(image.mime_type, "image/png")
        self.assertEqual(image.size_bytes, len(PNG_BYTES))
        self.assertEqual(image.data_uri, PNG_DATA_URI)

    def test_bare_base64_is_sniffed(self):
        image = decode_image_payload(base64.b64encode(JPEG_BYTES).decode())

        self.assertEqual(image.mime_type, "image/jpeg")
        self.assertTrue(image.data_uri.startswith("data:image/jpeg;base64,"))

    def test_jpg_alias_is_normalized(self):
        payload = "data:image/jpg;base64," + base64.b64encode(JPEG_BYTES).decode()

        self.assertEqual(decode_image_payload(payload).mime_type, "image/jpeg")

    def test_rejections(self):
        cases = {
            None: "base64_image is required",
            "   ": "base64_image is required",
            "data:image/png,plain": "base64_image must be base64 encoded",
            "data:image/png;base64,@@@": "base64_image is not valid base64",
            "data:text/plain;base64,aGVsbG8=": UNSUPPORTED_FORMAT_MESSAGE,
            "aGVsbG8=": UNSUPPORTED_FORMAT_MESSAGE,
        }
        for payload, message in cases.items():
            with self.subTest(payload=payload):
                with self.assertRaises(InvalidImageError) as ctx:
                    decode_image_payload(payload)
                self.assertEqual(str(ctx.exception), message)

    def test_oversized_image_is_rejected(self):
        with mock.patch("pantry_backend.services.vision.MAX_IMAGE_BYTES", 10):
            with self.assertRaises(InvalidImageError) as ctx:
                decode_image_payload(PNG_DATA_URI)

        self.assertEqual(str(ctx.exception), IMAGE_TOO_LARGE_MESSAGE)


class EncodeImageUploadTests(unittest.TestCase):
    def test_upload_becomes_data_uri(self):
        upload = FileStorage(
            stream=io.BytesIO(PNG_BYTES),
            filename="shelf.png",
            content_type="image/png",
        )

        self.assertEqual(encode_image_upload(upload).data_uri, PNG_DATA_URI)

    def test_empty_upload_is_rejected(self):
        upload = FileStorage(
            stream=io.BytesIO(b""), filename="shelf.png", content_type="image/png"
        )

        with self.assertRaises(InvalidImageError):
            encode_image_upload(upload)


class AnalyzePantryImageTests(unittest.TestCase):
    def test_sends_data_uri_with_fixed_prompt(self):
        client = StubVisionClient(reply="Banana,2")

        result = analyze_pantry_image(client, decode_image_payload(PNG_DATA_URI))

        self.assertEqual(result, "Banana,2")
        self.assertEqual(client.calls, [(PNG_DATA_URI, VISION_PROMPT)])


class ParseVisionResultTests(unittest.TestCase):
    def test_parses_type_and_quantity(self):
        cases = {
            "Apples,3": VisionSuggestion("apple", 3),
            "red bell peppers, 2.": VisionSuggestion("red bell pepper", 2),
            "Eggs,12\nThese look fresh.": VisionSuggestion("egg", 12),
            "milk,1.0": VisionSuggestion("milk", 1),
        }
        for text, expected in cases.items():
            with self.subTest(text=text):
                self.assertEqual(parse_vision_result(text), expected)

    def test_unparseable_output_returns_none(self):
        for text in (
            None,
            "",
            "banana",
            ",3",
            "apple,many",
            "apple,-2",
            "apple,inf",
            "apple,1e400",
            "apple,99999999999",
        ):
            with self.subTest(text=text):
                self.assertIsNone(parse_vision_result(text))


if __name__ == "__main__":
    unittest.main()
