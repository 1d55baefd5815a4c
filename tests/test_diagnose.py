from types import SimpleNamespace

import httpx
import openai
import pytest

from grantnavi.api.diagnose import (
    DIAGNOSIS_ERROR_MESSAGE,
    DiagnosisProfile,
    build_prompt,
    diagnose,
    diagnose_response,
)
from grantnavi.core.errors import DiagnosisError


class StubCompletions:
    def __init__(self, content="1. 助成金名：業務改善助成金", error=None):
        self.content = content
        self.error = error
        self.calls = []

    def create(self, **kwargs):
        self.calls.append(kwargs)
        if self.error is not None:
            raise self.error
        message = SimpleNamespace(content=self.content)
        return SimpleNamespace(choices=[SimpleNamespace(message=message)])


def stub_client(**kwargs):
    completions = StubCompletions(**kwargs)
    return SimpleNamespace(chat=SimpleNamespace(completions=completions)), completions


PROFILE = DiagnosisProfile(business_type="旅館業", employees="25", goal="客室改装", support="設備投資")


def test_build_prompt_includes_profile():
    prompt = build_prompt(PROFILE)
    assert "- 事業形態: 旅館業" in prompt
    assert "- 従業員数: 25" in prompt
    assert "- 今後の取組: 客室改装" in prompt
    assert "- 支援希望: 設備投資" in prompt
    assert "3件提案" in prompt


def test_diagnose_single_request():
    client, completions = stub_client()

    assert diagnose(PROFILE, client=client) == "1. 助成金名：業務改善助成金"
    assert len(completions.calls) == 1
    call = completions.calls[0]
    assert call["model"] == "gpt-4o-mini"
    assert call["temperature"] == 0.7
    assert call["messages"] == [{"role": "user", "content": build_prompt(PROFILE)}]


def test_diagnose_empty_content():
    client, _ = stub_client(content=None)
    assert diagnose(PROFILE, client=client) == ""


def api_error():
    request = httpx.Request("POST", "https://api.openai.com/v1/chat/completions")
    return openai.APIConnectionError(request=request)


def test_diagnose_wraps_openai_errors_without_retry():
    client, completions = stub_client(error=api_error())

    with pytest.raises(DiagnosisError):
        diagnose(PROFILE, client=client)
    assert len(completions.calls) == 1


def test_diagnose_response():
    client, _ = stub_client(content="提案")
    payload = {"businessType": "旅館業", "employees": 10, "goal": "", "support": ""}
    assert diagnose_response(payload, client=client) == (200, {"results": "提案"})

    failing, _ = stub_client(error=api_error())
    assert diagnose_response(payload, client=failing) == (500, {"error": DIAGNOSIS_ERROR_MESSAGE})


def test_profile_from_payload():
    profile = DiagnosisProfile.from_payload({"businessType": "製造業", "employees": 5})
    assert profile.business_type == "製造業"
    assert profile.employees == "5"
    assert profile.goal == ""
