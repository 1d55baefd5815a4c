"""
AI grant diagnosis using OpenAI chat completions.

One fixed prompt, one request, no retry and no streaming.
"""

import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional, Tuple

from openai import OpenAI, OpenAIError

from grantnavi.core.errors import DiagnosisError

logger = logging.getLogger(__name__)

DEFAULT_MODEL = "gpt-4o-mini"
TEMPERATURE = 0.7
DIAGNOSIS_ERROR_MESSAGE = "AI診断で問題が発生しました。"

PROMPT_TEMPLATE = """
あなたは中小企業支援に詳しい専門AIです。
以下の企業情報に基づいて、該当しそうな助成金を3件提案してください。

【企業情報】
- 事業形態: {business_type}
- 従業員数: {employees}
- 今後の取組: {goal}
- 支援希望: {support}

各助成金は次の形式で出力してください：
1. 助成金名：
   概要：
   対象企業：
   最大支給額：
   参考リンク：
"""


@dataclass
class DiagnosisProfile:
    """Answers from the diagnosis questionnaire."""
    business_type: str = ""
    employees: str = ""
    goal: str = ""
    support: str = ""

    @classmethod
    def from_payload(cls, payload: Dict[str, Any]) -> "DiagnosisProfile":
        """Build from the camelCase request body."""
        return cls(
            business_type=str(payload.get("businessType", "")),
            employees=str(payload.get("employees", "")),
            goal=str(payload.get("goal", "")),
            support=str(payload.get("support", "")),
        )


def build_prompt(profile: DiagnosisProfile) -> str:
    return PROMPT_TEMPLATE.format(
        business_type=profile.business_type,
        employees=profile.employees,
        goal=profile.goal,
        support=profile.support,
    )


def diagnose(
    profile: DiagnosisProfile,
    client: Optional[OpenAI] = None,
    model: str = DEFAULT_MODEL,
    api_key: Optional[str] = None,
) -> str:
    """
    Ask the model for three matching grants.

    Args:
        profile: Company profile
        client: OpenAI client (created from ``api_key`` when omitted)
        model: Chat model name
        api_key: Used only when ``client`` is None

    Returns:
        The model's text answer ("" when it returned no content)

    Raises:
        DiagnosisError: Any OpenAI failure
    """
    try:
        client = client or OpenAI(api_key=api_key)
        completion = client.chat.completions.create(
            model=model,
            messages=[{"role": "user", "content": build_prompt(profile)}],
            temperature=TEMPERATURE,
        )
    except OpenAIError as e:
        logger.error(f"❌ Diagnosis failed: {e}")
        raise DiagnosisError(f"Diagnosis request failed: {e}") from e

    return completion.choices[0].message.content or ""


def diagnose_response(
    payload: Dict[str, Any],
    client: Optional[OpenAI] = None,
    model: str = DEFAULT_MODEL,
) -> Tuple[int, Dict[str, Any]]:
    """
    Handle a diagnosis request body.

    Returns:
        (HTTP status, JSON body)
    """
    try:
        text = diagnose(DiagnosisProfile.from_payload(payload), client=client, model=model)
    except DiagnosisError:
        return 500, {"error": DIAGNOSIS_ERROR_MESSAGE}
    return 200, {"results": text}
