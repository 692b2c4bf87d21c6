from typing import List, Optional

from pydantic import BaseModel, Field


class FilePayload(BaseModel):
    base64Data: Optional[str] = None
    mimeType: Optional[str] = None


class ChatRequest(BaseModel):
    prompt: Optional[str] = None
    file: Optional[FilePayload] = None


class Source(BaseModel):
    uri: str
    title: str


class ChatResponse(BaseModel):
    text: str
    sources: List[Source] = []


class SentimentRequest(BaseModel):
    asset: Optional[str] = None


class SentimentResponse(BaseModel):
    asset: str = Field(description="The asset analyzed (e.g., BTC/USD).")
    sentiment_score: float = Field(
        ge=-10,
        le=10,
        description="A score from -10 (Extremely Bearish) to +10 (Extremely Bullish).",
    )
    key_drivers: List[str] = Field(
        max_length=3,
        description=(
            "Top 3 factors currently affecting the asset's price, e.g., "
            "'Fed Rate Hike Speculation' or 'Major Exchange Hack'."
        ),
    )
    summary: str = Field(
        description=(
            "A concise paragraph summarizing the current market sentiment "
            "and outlook based on the key drivers."
        )
    )
