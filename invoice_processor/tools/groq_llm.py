import base64
import json
import logging
from typing import Any, Dict, Optional
from groq import Groq
from invoice_processor.config import settings

logger = logging.getLogger(__name__)

class GroqLLMTool:
    def __init__(self, api_key: Optional[str] = None, model: Optional[str] = None):
        self.api_key = api_key or settings.GROQ_API_KEY
        self.model = model or settings.GROQ_MODEL
        self._client: Optional[Groq] = None

    @property
    def client(self) -> Groq:
        # Created on first use so importing the app does not require a key
        if self._client is None:
            self._client = Groq(api_key=self.api_key)
        return self._client

    def generate_structured_from_image(self, prompt: str, image: bytes, mime_type: str) -> Any:
        """
        Send a prompt plus one image to the vision model in JSON mode and
        return the parsed JSON. Raises ValueError if the reply is not JSON.
        """
        data_url = f"data:{mime_type};base64,{base64.b64encode(image).decode('ascii')}"
        messages = [
            {
                "role": "system",
                "content": "You are a specialized AI assistant that extracts structured invoice data. Output strictly valid JSON."
            },
            {
                "role": "user",
                "content": [
                    {"type": "text", "text": prompt},
                    {"type": "image_url", "image_url": {"url": data_url}},
                ]
            }
        ]

        try:
            completion = self.client.chat.completions.create(
                model=self.model,
                messages=messages,
                temperature=0.0,
                response_format={"type": "json_object"}
            )
        except Exception as e:
            logger.error(f"LLM generation failed: {e}")
            raise

        content = completion.choices[0].message.content or "{}"
        return json.loads(content)

groq_tool = GroqLLMTool()
