import logging

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from market_relay.models.chat_models import ChatRequest, ChatResponse, SentimentRequest, SentimentResponse
from market_relay.models.media_models import ImageRequest, ImageResponse, TTSRequest, TTSResponse
from market_relay.services.llm_service import GeminiService, build_chat_contents
from market_relay.services.media_client import MediaClient
from market_relay.utils.error_handler import UpstreamError, ValidationError

router = APIRouter(prefix="/api")

CHAT_ERROR = "An internal server error occurred while analyzing the request."
SENTIMENT_ERROR = "An internal server error occurred during structured sentiment analysis."
IMAGE_ERROR = "An internal server error occurred during image generation."
TTS_ERROR = "An internal server error occurred during Text-to-Speech generation."


def get_gemini_service(request: Request) -> GeminiService:
    return request.app.state.gemini_service


def get_media_client(request: Request) -> MediaClient:
    return request.app.state.media_client


def require(value, message: str) -> str:
    if value is None or not str(value).strip():
        raise ValidationError(message)
    return value


@router.post("/chat", response_model=ChatResponse)
async def chat(request: ChatRequest, gemini: GeminiService = Depends(get_gemini_service)):
    prompt = require(request.prompt, "Prompt is required.")
    contents = build_chat_contents(prompt, request.file)

    try:
        return await gemini.chat(contents)
    except Exception as e:
        logging.exception("API Error (/api/chat):")
        raise UpstreamError(CHAT_ERROR, str(e)) from e


@router.post("/sentiment", responses={200: {"model": SentimentResponse}})
async def sentiment(request: SentimentRequest, gemini: GeminiService = Depends(get_gemini_service)):
    asset = require(request.asset, "Asset name is required for sentiment analysis.")

    try:
        structured_data = await gemini.analyze_sentiment(asset)
    except Exception as e:
        logging.exception("API Error (/api/sentiment):")
        raise UpstreamError(SENTIMENT_ERROR, str(e)) from e

    # Returned as the provider produced it
    return JSONResponse(content=structured_data)


@router.post("/generate-image", response_model=ImageResponse)
async def generate_image(request: ImageRequest, media: MediaClient = Depends(get_media_client)):
    prompt = require(request.prompt, "Image prompt is required.")

    try:
        image = await media.generate_image(prompt)
    except Exception as e:
        logging.exception("API Error (/api/generate-image):")
        raise UpstreamError(IMAGE_ERROR, str(e)) from e

    return ImageResponse(base64Image=image.base64_image)


@router.post("/tts", response_model=TTSResponse)
async def tts(request: TTSRequest, media: MediaClient = Depends(get_media_client)):
    text = require(request.text, "Text is required for TTS.")

    try:
        speech = await media.synthesize_speech(text)
    except Exception as e:
        logging.exception("API Error (/api/tts):")
        raise UpstreamError(TTS_ERROR, str(e)) from e

    return TTSResponse(audioData=speech.audio_data, mimeType=speech.mime_type)
