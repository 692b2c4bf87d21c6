import logging

import httpx

from market_relay.config import IMAGE_MODEL, TTS_MODEL, TTS_VOICE, Settings
from market_relay.models.media_models import GeneratedImage, SynthesizedSpeech
from market_relay.utils.error_handler import UpstreamError


class MediaClient:
    """Direct REST calls for the capabilities the SDK relay does not cover.

    One method per capability. Each returns a typed payload or raises
    UpstreamError with the provider's error body as the message.
    """

    def __init__(self, http_client: httpx.AsyncClient, api_key: str, base_url: str):
        self.http_client = http_client
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")

    @classmethod
    def from_settings(cls, settings: Settings, http_client: httpx.AsyncClient | None = None) -> "MediaClient":
        if http_client is None:
            http_client = httpx.AsyncClient(timeout=httpx.Timeout(settings.provider_timeout))
        return cls(http_client, settings.gemini_api_key, settings.api_base_url)

    async def aclose(self):
        await self.http_client.aclose()

    def _url(self, model: str, method: str) -> str:
        return f"{self.base_url}/models/{model}:{method}"

    async def _post(self, url: str, payload: dict, label: str) -> dict:
        headers = {"Content-Type": "application/json"}
        res = await self.http_client.post(url, params={"key": self.api_key}, json=payload, headers=headers)
        if res.is_error:
            raise UpstreamError(f"{label} API Failed: {res.text}")
        return res.json()

    async def generate_image(self, prompt: str) -> GeneratedImage:
        payload = {
            "prompt": prompt,
            "config": {
                "numberOfImages": 1,
                "aspectRatio": "1:1",
            },
        }

        logging.info(f"Requesting image from {IMAGE_MODEL}")
        data = await self._post(self._url(IMAGE_MODEL, "generateImages"), payload, "Imagen")

        images = data.get("generatedImages") or []
        image_bytes = (images[0].get("image") or {}).get("imageBytes") if images else None
        if not image_bytes:
            raise UpstreamError("Imagen API returned no generated images.")
        return GeneratedImage(base64_image=image_bytes)

    async def synthesize_speech(self, text: str, voice: str = TTS_VOICE) -> SynthesizedSpeech:
        payload = {
            "contents": [{"parts": [{"text": text}]}],
            "generationConfig": {
                "responseModalities": ["AUDIO"],
                "speechConfig": {
                    "voiceConfig": {
                        "prebuiltVoiceConfig": {"voiceName": voice}
                    }
                },
            },
        }

        logging.info(f"Requesting speech from {TTS_MODEL} with voice {voice}")
        result = await self._post(self._url(TTS_MODEL, "generateContent"), payload, "TTS")

        candidates = result.get("candidates") or [{}]
        parts = (candidates[0].get("content") or {}).get("parts") or [{}]
        inline_data = parts[0].get("inlineData") or {}
        if not inline_data.get("data"):
            raise UpstreamError("TTS response missing inline audio data.")

        return SynthesizedSpeech(audio_data=inline_data["data"], mime_type=inline_data.get("mimeType"))
