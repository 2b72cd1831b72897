"""
Unit tests for AI insight prompts.
"""
import pytest
from unittest.mock import MagicMock

from fieldbook.domain.models import FieldRecord, GeoLocation, PhaseImpacts
from fieldbook.infrastructure.external_api_client import ChatCompletionClient
from fieldbook.services.application.insight_service import (
    InsightService,
    build_insight_prompt,
    summarize_record,
)


# ============================================================
# Prompt Tests
# ============================================================

class TestInsightPrompt:
    """Tests for building the insight prompt."""

    def test_summary_without_impacts(self):
        """Missing or blank impact values read as N/A."""
        record = FieldRecord(
            id="-R1",
            location=GeoLocation(lat=-25.7, lng=28.2, description="Seep"),
            created_at=1700000000000,
        )

        summary = summarize_record(record)

        assert "- Entry on 2023-11-14:" in summary
        assert "Location: Seep (-25.7, 28.2)" in summary
        assert "Impacts: Pollution - N/A, Weeds - N/A" in summary

    def test_summary_with_impacts(self):
        record = FieldRecord(id="-R1", impacts=PhaseImpacts(pollution="Low", weeds_iap="Dense"))

        assert "Impacts: Pollution - Low, Weeds - Dense" in summarize_record(record)

    def test_prompt_contains_context(self, sample_project, sample_records):
        prompt = build_insight_prompt(sample_project, sample_records, "Which sites are at risk?")

        assert "Client: Wetland Works" in prompt
        assert "Project: Rietvlei" in prompt
        assert prompt.count("- Entry on") == len(sample_records)
        assert 'User Query: "Which sites are at risk?"' in prompt

    def test_prompt_without_records(self, sample_project):
        prompt = build_insight_prompt(sample_project, [], "Anything?")

        assert "No field data available yet." in prompt

    @pytest.mark.asyncio
    async def test_stream_insight_passes_chunks_through(self, sample_project, sample_records):
        prompts = []

        async def stream_completion(prompt):
            prompts.append(prompt)
            yield "Mostly "
            yield "healthy."

        chat_client = MagicMock(spec=ChatCompletionClient)
        chat_client.stream_completion = stream_completion
        service = InsightService(chat_client=chat_client)

        chunks = [c async for c in service.stream_insight(sample_project, sample_records, "Status?")]

        assert chunks == ["Mostly ", "healthy."]
        assert "Project: Rietvlei" in prompts[0]
