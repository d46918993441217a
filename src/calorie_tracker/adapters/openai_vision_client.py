"""OpenAI Responses API client for meal photo analysis."""

import json
import logging
from dataclasses import dataclass

from openai import AsyncOpenAI

from calorie_tracker.services.vision import VisionClient

_logger = logging.getLogger(__name__)


@dataclass
class OpenAIVisionClient(VisionClient):
    """Vision client that asks for schema-constrained JSON output."""

    client: AsyncOpenAI
    schema_name: str = "detected_foods"
    image_detail: str = "high"

    @classmethod
    def create(cls, api_key: str) -> "OpenAIVisionClient":
        return cls(client=AsyncOpenAI(api_key=api_key))

    async def extract(  # noqa: PLR0913
        self,
        *,
        model: str,
        reasoning_effort: str | None,
        store: bool,
        image_data_url: str,
        schema: dict[str, object],
        prompt: str,
    ) -> dict[str, object]:
        """Send the photo with the prompt as instructions and decode the reply.

        Raises RuntimeError when the model returns nothing or invalid JSON.
        """
        options: dict[str, object] = {}
        if reasoning_effort:
            options["reasoning"] = {"effort": reasoning_effort}
        response = await self.client.responses.create(
            model=model,
            instructions=prompt,
            input=[
                {
                    "role": "user",
                    "content": [
                        {
                            "type": "input_image",
                            "image_url": image_data_url,
                            "detail": self.image_detail,
                        }
                    ],
                }
            ],
            text={
                "format": {
                    "type": "json_schema",
                    "name": self.schema_name,
                    "strict": True,
                    "schema": schema,
                }
            },
            store=store,
            **options,
        )
        raw = response.output_text
        if not raw:
            raise RuntimeError("Vision model returned an empty response")
        try:
            return json.loads(raw)
        except json.JSONDecodeError as exc:
            _logger.warning("Vision model returned invalid JSON: %.200s", raw)
            raise RuntimeError("Vision model returned invalid JSON") from exc

    async def close(self) -> None:
        await self.client.close()
