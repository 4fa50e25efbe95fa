"""Best-effort AI text generation with fixed fallbacks."""

from __future__ import annotations

import logging
from typing import Optional, Sequence

from .gemini_client import GeminiClient
from .models import AnalysisRecord, PlanEntry, UserProfile
from .prompts import SCRIPT_SYSTEM_INSTRUCTION, build_insight_prompt, build_script_prompt, strip_code_fences

logger = logging.getLogger(__name__)

INSIGHT_NO_KEY = "API Anahtarı bulunamadı."
INSIGHT_EMPTY = "Analiz oluşturulamadı."
INSIGHT_FAILED = "Analiz yapılamadı."
SCRIPT_NO_KEY = "# API Key eksik."
SCRIPT_FAILED = "# Python kodu oluşturulurken hata oluştu."


class AITextService:
    """Wraps :class:`GeminiClient`; never raises, always returns text."""

    def __init__(self, client: Optional[GeminiClient]) -> None:
        self.client = client

    async def close(self) -> None:
        if self.client is not None:
            await self.client.close()

    async def get_insight(
        self,
        profile: UserProfile,
        records: Sequence[AnalysisRecord],
        plans: Sequence[PlanEntry],
    ) -> str:
        if self.client is None:
            return INSIGHT_NO_KEY
        try:
            text = await self.client.generate_text(build_insight_prompt(profile, records, plans))
        except Exception as exc:  # noqa: BLE001
            logger.warning("Gemini insight request failed: %s", exc)
            return INSIGHT_FAILED
        return text or INSIGHT_EMPTY

    async def get_analysis_script(self, profile: UserProfile, records: Sequence[AnalysisRecord]) -> str:
        if self.client is None:
            return SCRIPT_NO_KEY
        try:
            text = await self.client.generate_text(
                build_script_prompt(profile, records),
                system_instruction=SCRIPT_SYSTEM_INSTRUCTION,
            )
        except Exception as exc:  # noqa: BLE001
            logger.warning("Gemini script request failed: %s", exc)
            return SCRIPT_FAILED
        return strip_code_fences(text)


__all__ = [
    "AITextService",
    "INSIGHT_EMPTY",
    "INSIGHT_FAILED",
    "INSIGHT_NO_KEY",
    "SCRIPT_FAILED",
    "SCRIPT_NO_KEY",
]
