"""
Transcript analysis for finished calls.

`OpenAITranscriptAnalyzer` asks the model for a short clinical summary;
`StubTranscriptAnalyzer` returns a canned summary for demos without an API
key. Analysis never fails the booking flow: errors degrade to
FALLBACK_SUMMARY.
"""

import json
from datetime import datetime, timezone
from typing import Optional

from loguru import logger
from openai import AsyncOpenAI
from pydantic import BaseModel, Field

FALLBACK_SUMMARY = "Summary unavailable: transcript could not be analyzed."

SIMULATED_SUMMARY = (
    "Simulated Summary: The patient requested a follow-up appointment regarding persistent headaches."
)

SYSTEM_PROMPT = """You summarize phone calls between a clinic's AI scheduling assistant and a patient.
Respond with a JSON object with keys:
- "summary": two sentences at most, clinical and neutral, stating why the patient needs follow-up and what was agreed
- "sentiment": one of "Positive", "Neutral", "Negative"
- "suggested_date": ISO-8601 date the patient asked for, or null"""


class TranscriptAnalysis(BaseModel):
    summary: str
    sentiment: str = "Neutral"
    suggested_date: Optional[str] = Field(default=None, alias="suggestedDate")

    model_config = {"populate_by_name": True}


class StubTranscriptAnalyzer:
    async def analyze(self, transcript: str) -> TranscriptAnalysis:
        return TranscriptAnalysis(
            summary=SIMULATED_SUMMARY,
            sentiment="Neutral",
            suggested_date=datetime.now(timezone.utc).isoformat(),
        )


class OpenAITranscriptAnalyzer:
    def __init__(self, client: AsyncOpenAI, model: str = "gpt-4o-mini"):
        self.client = client
        self.model = model

    async def analyze(self, transcript: str) -> TranscriptAnalysis:
        if not transcript.strip():
            return TranscriptAnalysis(summary=FALLBACK_SUMMARY)

        try:
            response = await self.client.chat.completions.create(
                model=self.model,
                messages=[
                    {"role": "system", "content": SYSTEM_PROMPT},
                    {"role": "user", "content": transcript},
                ],
                response_format={"type": "json_object"},
                temperature=0.2,
                max_tokens=300,
            )
            content = response.choices[0].message.content or "{}"
            data = json.loads(content)
            return TranscriptAnalysis(
                summary=data.get("summary") or FALLBACK_SUMMARY,
                sentiment=data.get("sentiment") or "Neutral",
                suggested_date=data.get("suggested_date"),
            )
        except Exception as e:
            logger.warning(f"Transcript analysis failed, using fallback summary: {e}")
            return TranscriptAnalysis(summary=FALLBACK_SUMMARY)


def build_analyzer(api_key: Optional[str], model: str = "gpt-4o-mini"):
    if not api_key:
        logger.info("OPENAI_API_KEY not set - using simulated transcript summaries")
        return StubTranscriptAnalyzer()
    return OpenAITranscriptAnalyzer(AsyncOpenAI(api_key=api_key), model=model)
