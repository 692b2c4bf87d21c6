from dataclasses import dataclass
from typing import Optional

from pydantic import BaseModel


class ImageRequest(BaseModel):
    prompt: Optional[str] = None


class ImageResponse(BaseModel):
    base64Image: str


class TTSRequest(BaseModel):
    text: Optional[str] = None


class TTSResponse(BaseModel):
    audioData: str
    mimeType: Optional[str] = None


@dataclass(frozen=True)
class GeneratedImage:
    base64_image: str


@dataclass(frozen=True)
class SynthesizedSpeech:
    audio_data: str
    mime_type: Optional[str]
