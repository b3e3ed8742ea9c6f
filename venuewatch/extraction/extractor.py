"""AI-powered happy-hour extractor."""

import json
from pathlib import Path

from venuewatch.documents.models import TrimmedDocument
from venuewatch.extraction.base import BaseExtractor
from venuewatch.extraction.client_base import BaseExtractionClient
from venuewatch.extraction.exceptions import ExtractionError
from venuewatch.extraction.models import ExtractionResult
from venuewatch.extraction.prompt_loader import load_json_schema, load_prompt_template
from venuewatch.extraction.validator import validate_and_build
from venuewatch.logging.logger import Log


class Extractor(BaseExtractor):
    """Extracts happy-hour promotions from trimmed venue text using an AI provider."""

    def __init__(
        self,
        *,
        client: BaseExtractionClient,
        model: str,
        temperature: float = 0.0,
        prompt_template_path: Path | None = None,
        json_schema_path: Path | None = None,
        system_prompt: str = "",
    ) -> None:
        self._client = client
        self.model_name = model
        self._temperature = max(0.0, min(0.2, temperature))
        self._system_prompt = system_prompt
        self._prompt_template = load_prompt_template(prompt_template_path)
        schema_str = load_json_schema(json_schema_path)
        self._json_schema = schema_str
        self._json_schema_dict = json.loads(schema_str)

    def extract(self, document: TrimmedDocument) -> ExtractionResult:
        """Send one venue's text to the provider and validate the answer."""
        prompt = self._build_prompt(document)
        Log.debug(f"Extraction prompt for {document.venue_id}: {len(prompt)} chars")

        raw_response = self._call_ai(prompt)
        Log.debug(f"AI raw response:\n{raw_response}")

        parsed = self._parse_json(raw_response)
        result = validate_and_build(parsed)

        Log.info(
            f"Extraction complete for {document.venue_name}: found={result.found}, "
            f"{len(result.entries)} entr{'y' if len(result.entries) == 1 else 'ies'}"
        )
        return result

    def _build_prompt(self, document: TrimmedDocument) -> str:
        content = "\n\n".join(f"--- Page: {page.url} ---\n{page.text}" for page in document.pages)
        return self._prompt_template.format(
            venue_id=document.venue_id,
            venue_name=document.venue_name,
            venue_content=content,
            json_schema=self._json_schema,
        )

    def _call_ai(self, prompt: str) -> str:
        return self._client.create_chat_completion(
            model=self.model_name,
            temperature=self._temperature,
            system_prompt=self._system_prompt,
            user_prompt=prompt,
            json_schema=self._json_schema_dict,
        )

    @staticmethod
    def _parse_json(raw: str) -> dict[str, object]:
        cleaned = raw.strip()
        if cleaned.startswith("```"):
            lines = cleaned.splitlines()
            if lines and lines[0].startswith("```"):
                lines = lines[1:]
            if lines and lines[-1].strip() == "```":
                lines = lines[:-1]
            cleaned = "\n".join(lines)

        try:
            parsed = json.loads(cleaned)
        except json.JSONDecodeError as exc:
            raise ExtractionError(f"Invalid JSON response: {exc}") from exc

        if not isinstance(parsed, dict):
            raise ExtractionError("JSON response must be an object")
        return parsed
