import base64
import binascii
import json
import logging
from urllib.parse import quote

from google import genai
from google.genai import types

from market_relay.config import CHAT_MODEL, Settings
from market_relay.models.chat_models import ChatResponse, FilePayload, Source
from market_relay.utils.error_handler import UpstreamError, ValidationError

SEARCH_URL = "https://www.google.com/search?q="

SENTIMENT_PROMPT = (
    "Analyze the current market sentiment, key drivers, and outlook for the asset: "
    "**{asset}**. Search the web for real-time data and news."
)

SENTIMENT_SCHEMA = {
    "type": "OBJECT",
    "properties": {
        "asset": {"type": "STRING", "description": "The asset analyzed (e.g., BTC/USD)."},
        "sentiment_score": {
            "type": "NUMBER",
            "description": "A score from -10 (Extremely Bearish) to +10 (Extremely Bullish).",
        },
        "key_drivers": {
            "type": "ARRAY",
            "items": {
                "type": "STRING",
                "description": (
                    "Top 3 factors currently affecting the asset's price, e.g., "
                    "'Fed Rate Hike Speculation' or 'Major Exchange Hack'."
                ),
            },
        },
        "summary": {
            "type": "STRING",
            "description": (
                "A concise paragraph summarizing the current market sentiment "
                "and outlook based on the key drivers."
            ),
        },
    },
    "required": ["asset", "sentiment_score", "key_drivers", "summary"],
}


def build_chat_contents(prompt: str, file: FilePayload | None = None) -> list[types.Content]:
    """Build the user turn for a chat request.

    An attached file becomes an inline-data part placed before the text part.
    Raises ValidationError when the attachment cannot be decoded.
    """
    parts = []

    if file is not None:
        if not file.base64Data or not file.mimeType:
            raise ValidationError("File attachments need both base64Data and mimeType.")
        try:
            # Line-wrapped base64 (encodebytes, openssl) is accepted
            data = base64.b64decode("".join(file.base64Data.split()), validate=True)
        except (binascii.Error, ValueError):
            raise ValidationError("File base64Data is not valid base64.")

        logging.info(f"Processing file type: {file.mimeType}")
        parts.append(types.Part(inline_data=types.Blob(data=data, mime_type=file.mimeType)))

    parts.append(types.Part(text=prompt))
    return [types.Content(role="user", parts=parts)]


def search_sources(response: types.GenerateContentResponse) -> list[Source]:
    """Turn the grounding search queries of the first candidate into citations."""
    if not response.candidates:
        return []

    metadata = response.candidates[0].grounding_metadata
    if metadata is None or not metadata.web_search_queries:
        return []

    return [
        # Same escaping as encodeURIComponent
        Source(uri=SEARCH_URL + quote(query, safe="!~*'()"), title=query)
        for query in metadata.web_search_queries
    ]


class GeminiService:
    """Chat and structured sentiment calls through the Gemini SDK."""

    def __init__(self, client: genai.Client, model: str = CHAT_MODEL):
        self.client = client
        self.model = model

    @classmethod
    def from_settings(cls, settings: Settings) -> "GeminiService":
        client = genai.Client(
            api_key=settings.gemini_api_key,
            # HttpOptions expects milliseconds
            http_options=types.HttpOptions(timeout=int(settings.provider_timeout * 1000)),
        )
        return cls(client)

    async def chat(self, contents: list[types.Content]) -> ChatResponse:
        logging.info(f"Sending chat request to {self.model} ({len(contents[0].parts)} parts)")
        response = await self.client.aio.models.generate_content(
            model=self.model,
            contents=contents,
            config=types.GenerateContentConfig(
                # Ground answers in live Google Search results
                tools=[types.Tool(google_search=types.GoogleSearch())],
            ),
        )
        return ChatResponse(text=response.text or "", sources=search_sources(response))

    async def analyze_sentiment(self, asset: str):
        logging.info(f"Sending sentiment request to {self.model} for {asset}")
        response = await self.client.aio.models.generate_content(
            model=self.model,
            contents=[types.Content(role="user", parts=[types.Part(text=SENTIMENT_PROMPT.format(asset=asset))])],
            config=types.GenerateContentConfig(
                tools=[types.Tool(google_search=types.GoogleSearch())],
                response_mime_type="application/json",
                response_schema=SENTIMENT_SCHEMA,
            ),
        )

        if not response.text:
            raise UpstreamError("Sentiment response contained no text.")

        # Conforms to SENTIMENT_SCHEMA; malformed JSON surfaces as JSONDecodeError
        return json.loads(response.text)
