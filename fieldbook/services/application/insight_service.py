"""
Application service: AI insights over a project's field records.
"""
import logging
from datetime import datetime, timezone
from typing import AsyncIterator, Sequence

from fieldbook.domain.models import FieldRecord, Project
from fieldbook.infrastructure.external_api_client import ChatCompletionClient

logger = logging.getLogger(__name__)

NOT_AVAILABLE = "N/A"

PROMPT_TEMPLATE = """You are an expert environmental science consultant AI.
Your task is to provide insights on field data for a client project.
Use the provided data and your knowledge for additional context.
Be concise, professional, and helpful.

Client: {company_name}
Project: {project_name}

Project Field Data Summary:
{summary}

User Query: "{query}"

Your analysis:
"""


def _entry_date(created_at: int) -> str:
    return datetime.fromtimestamp(created_at / 1000, tz=timezone.utc).strftime("%Y-%m-%d")


def summarize_record(record: FieldRecord) -> str:
    """One prompt block describing a field record."""
    impacts = record.impacts
    pollution = (impacts.pollution if impacts else "") or NOT_AVAILABLE
    weeds = (impacts.weeds_iap if impacts else "") or NOT_AVAILABLE
    location = record.location
    biophysical = record.biophysical
    return (
        f"- Entry on {_entry_date(record.created_at)}:\n"
        f"  Location: {location.description} ({location.lat}, {location.lng})\n"
        f"  Elevation: {biophysical.elevation}m\n"
        f"  Ecoregion: {biophysical.ecoregion}\n"
        f"  Vegetation: {biophysical.vegetation_type}\n"
        f"  Impacts: Pollution - {pollution}, Weeds - {weeds}\n"
    )


def build_insight_prompt(project: Project, records: Sequence[FieldRecord], query: str) -> str:
    summary = "".join(summarize_record(record) for record in records)
    return PROMPT_TEMPLATE.format(
        company_name=project.company_name,
        project_name=project.project_name,
        summary=summary or "No field data available yet.",
        query=query,
    )


class InsightService:
    """Application service answering questions about a project's data."""

    def __init__(self, chat_client: ChatCompletionClient):
        self.chat_client = chat_client

    async def stream_insight(
        self,
        project: Project,
        records: Sequence[FieldRecord],
        query: str,
    ) -> AsyncIterator[str]:
        """
        Stream an answer to a question about the records.

        Raises:
            ExternalAPIError: If the chat API fails
        """
        prompt = build_insight_prompt(project, records, query)
        logger.info(f"Requesting insight for project {project.project_name} "
                    f"over {len(records)} records")
        async for chunk in self.chat_client.stream_completion(prompt):
            yield chunk
