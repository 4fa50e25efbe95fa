"""Prompt builders for the AI text service. Pure string formatting."""

from __future__ import annotations

import json
import re
from typing import Sequence

from .models import AnalysisRecord, PlanEntry, RecordKind, UserProfile

COMPANY_NAME = "BİLTİR OTEST"
SCRIPT_SYSTEM_INSTRUCTION = (
    "You are a Python coding assistant. Output only raw Python code without markdown backticks."
)

_FENCE = re.compile(r"```(?:python)?")


def build_insight_prompt(
    profile: UserProfile,
    records: Sequence[AnalysisRecord],
    plans: Sequence[PlanEntry],
    *,
    company: str = COMPANY_NAME,
) -> str:
    work = [r for r in records if r.kind is RecordKind.WORK]
    total_hours = round(sum(r.hours for r in work), 1)
    return (
        f"Sen {company} firmasının yapay zeka stajyer mentörüsün.\n"
        f"Karşındaki kişi: {profile.full_name} ({profile.role.value})\n"
        "\n"
        "Kullanıcının Verileri:\n"
        f"- Toplam Gelinen Gün: {len(work)}\n"
        f"- Toplam Çalışma Saati: {total_hours:g}\n"
        f"- Gelecek Planı: {len(plans)} adet planlanmış gün\n"
        "\n"
        'Lütfen doğrudan bu kişiye hitap ederek ("Sen" diliyle), performansını değerlendir, '
        "motivasyon ver ve gelişim tavsiyelerinde bulun.\n"
        "Kurumsal ama samimi bir dil kullan."
    )


def build_script_prompt(profile: UserProfile, records: Sequence[AnalysisRecord]) -> str:
    data = [
        {"date": r.date, "hours": r.hours, "type": r.kind.value, "description": r.description}
        for r in records
    ]
    return (
        "Aşağıdaki JSON verisini kullanarak benim kendi staj verilerimi analiz eden bir Python kodu yaz.\n"
        "\n"
        "Veri (JSON):\n"
        f"{json.dumps(data, ensure_ascii=False)}\n"
        "\n"
        "İsterler:\n"
        "1. Veriyi pandas DataFrame'e yükle.\n"
        "2. Günlük çalışma saatlerimi görselleştir (matplotlib).\n"
        "3. Kodun çıktısı sadece Python kodu olsun, markdown kullanma.\n"
        f'4. Grafik Başlığı: "{profile.full_name} - Staj Performans Grafiği"'
    )


def strip_code_fences(text: str) -> str:
    return _FENCE.sub("", text)


__all__ = [
    "COMPANY_NAME",
    "SCRIPT_SYSTEM_INSTRUCTION",
    "build_insight_prompt",
    "build_script_prompt",
    "strip_code_fences",
]
