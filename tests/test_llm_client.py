import unittest
from types import SimpleNamespace

from pantry_backend.services.llm import (
    LLMEmptyResponseError,
    LLMSettings,
    TextLLMClient,
    VisionLLMClient,
)


class _StubResponses:
    def __init__(self, output_text: str):
        self.output_text = output_text
        self.calls: list[dict] = []

    def create(self, **params):
        self.calls.append(params)
        return SimpleNamespace(output_text=self.output_text)


class _StubOpenAI:
    def __init__(self, output_text: str = "ok"):
        self.responses = _StubResponses(output_text)


class VisionLLMClientTests(unittest.TestCase):
    def test_request_carries_prompt_image_and_token_limit(self):
        openai = _StubOpenAI(" Apple,2 \n")
        client = VisionLLMClient(
            LLMSettings(api_key="k", model="vision-model", max_output_tokens=50),
            client=openai,
        )

        result = client.analyze_image(
            image_url="data:image/png;base64,AAAA", prompt="what is this?"
        )

        self.assertEqual(result.raw_text, "Apple,2")
        (params,) = openai.responses.calls
        self.assertEqual(params["model"], "vision-model")
        self.assertEqual(params["max_output_tokens"], 50)
        self.assertEqual(
            params["input"],
            [
                {
                    "role": "user",
                    "content": [
                        {"type": "input_text", "text": "what is this?"},
                        {
                            "type": "input_image",
                            "image_url": "data:image/png;base64,AAAA",
                        },
                    ],
                }
            ],
        )

    def test_missing_image_is_rejected_before_calling_out(self):
        openai = _StubOpenAI()
        client = VisionLLMClient(
            LLMSettings(api_key="k", model="m"), client=openai
        )

        with self.assertRaises(ValueError):
            client.analyze_image(image_url="", prompt="what is this?")
        self.assertEqual(openai.responses.calls, [])


class TextLLMClientTests(unittest.TestCase):
    def test_system_prompt_is_prepended(self):
        openai = _StubOpenAI("Pancakes")
        client = TextLLMClient(
            LLMSettings(api_key="k", model="m", system_prompt="Be brief."),
            client=openai,
        )

        self.assertEqual(client.run_prompt(prompt="eggs,2").raw_text, "Pancakes")
        (params,) = openai.responses.calls
        self.assertNotIn("max_output_tokens", params)
        self.assertEqual(params["input"][0]["role"], "system")
        self.assertEqual(
            params["input"][0]["content"][0]["text"], "Be brief."
        )

    def test_empty_output_raises(self):
        client = TextLLMClient(
            LLMSettings(api_key="k", model="m"), client=_StubOpenAI("   ")
        )

        with self.assertRaises(LLMEmptyResponseError) as ctx:
            client.run_prompt(prompt="eggs,2")
        self.assertEqual(str(ctx.exception), "No response from OpenAI")


if __name__ == "__main__":
    unittest.main()
