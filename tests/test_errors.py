import unittest

import requests
from markupsafe import Markup

from portrait_studio.errors import (
    UNKNOWN_ERROR_MESSAGE,
    CredentialMissing,
    SizeLimitExceeded,
    format_size_limit,
    get_api_error_string,
    is_ui_element,
)

DEFAULT = "Face analysis failed."


class MessageHolder:
    def __init__(self, message):
        self.message = message


class TestGetApiErrorString(unittest.TestCase):
    def test_nested_error_message_wins(self):
        err = {"error": {"message": "API key not valid. Please pass a valid API key."}, "message": "outer"}
        self.assertEqual(get_api_error_string(err, DEFAULT), "API key not valid. Please pass a valid API key.")

    def test_top_level_message(self):
        self.assertEqual(get_api_error_string({"message": "quota exceeded"}, DEFAULT), "quota exceeded")

    def test_blank_nested_message_falls_through_to_top_level(self):
        err = {"error": {"message": "   "}, "message": "top level"}
        self.assertEqual(get_api_error_string(err, DEFAULT), "top level")

    def test_object_with_message_attribute(self):
        self.assertEqual(get_api_error_string(MessageHolder("from attribute"), DEFAULT), "from attribute")

    def test_plain_string(self):
        self.assertEqual(get_api_error_string("something broke", DEFAULT), "something broke")

    def test_blank_string_uses_default(self):
        self.assertEqual(get_api_error_string("  ", DEFAULT), DEFAULT)

    def test_exception_uses_its_text(self):
        err = requests.exceptions.ConnectionError("connection refused")
        self.assertEqual(get_api_error_string(err, DEFAULT), "connection refused")

    def test_studio_error_uses_its_message(self):
        self.assertEqual(get_api_error_string(SizeLimitExceeded(), DEFAULT), SizeLimitExceeded.default_message)
        self.assertEqual(get_api_error_string(CredentialMissing(), DEFAULT), CredentialMissing.default_message)

    def test_unrecognized_shapes_use_default(self):
        for err in (None, {}, [], 42, {"candidates": []}, {"error": "flat string"}, {"message": 12}):
            with self.subTest(err=err):
                self.assertEqual(get_api_error_string(err, DEFAULT), DEFAULT)

    def test_markup_is_never_returned(self):
        err = Markup("<b>boom</b>")
        self.assertEqual(get_api_error_string(err, DEFAULT), DEFAULT)

    def test_react_element_shape_is_never_returned(self):
        element = {"$$typeof": "Symbol(react.element)", "type": "p", "message": "looks like text"}
        self.assertEqual(get_api_error_string(element, DEFAULT), DEFAULT)

    def test_ui_element_inside_message_uses_default(self):
        self.assertEqual(get_api_error_string({"error": {"message": Markup("<i>x</i>")}}, DEFAULT), DEFAULT)
        self.assertEqual(get_api_error_string({"message": {"$$typeof": "x"}}, DEFAULT), DEFAULT)

    def test_blank_default_still_returns_text(self):
        self.assertEqual(get_api_error_string(None, ""), UNKNOWN_ERROR_MESSAGE)

    def test_always_returns_plain_str(self):
        result = get_api_error_string({"error": {"message": "plain"}}, DEFAULT)
        self.assertIs(type(result), str)


class TestIsUiElement(unittest.TestCase):
    def test_detection(self):
        self.assertTrue(is_ui_element(Markup("x")))
        self.assertTrue(is_ui_element({"$$typeof": 1}))
        self.assertFalse(is_ui_element("x"))
        self.assertFalse(is_ui_element({"message": "x"}))


class TestSizeLimitMessage(unittest.TestCase):
    def test_format_size_limit(self):
        self.assertEqual(format_size_limit(4 * 1024 * 1024), "4MB")
        self.assertEqual(format_size_limit(512 * 1024), "512KB")
        self.assertEqual(format_size_limit(100), "100 bytes")

    def test_message_for_limit(self):
        self.assertEqual(SizeLimitExceeded.for_limit(4 * 1024 * 1024).message, SizeLimitExceeded.default_message)
        self.assertEqual(SizeLimitExceeded.for_limit(2 * 1024 * 1024).message,
                         "Image is too large. Please upload an image smaller than 2MB.")


if __name__ == "__main__":
    unittest.main()
