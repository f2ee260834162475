from __future__ import annotations

import json
import logging
import os
import re
import time
from typing import Any

from google import genai
from google.genai import types

from songcraft.agent.debug import (
    trace_final_output,
    trace_grounding,
    trace_request_config,
    trace_system_prompt,
)
from songcraft.agent.prompts import (
    COVER_PROMPT,
    SONG_PROMPT,
    SYSTEM_INSTRUCTION,
    build_song_schema,
)
from songcraft.errors import GenerationFailed, ImageEditFailed, ImageGenerationFailed
from songcraft.models.song import GroundingSource, Language, SongData
from songcraft.preprocessing.image import decode_data_uri, to_data_uri
from songcraft.services.normalizer import normalize_song_data

log = logging.getLogger(__name__)

DEFAULT_TEXT_MODEL = "gemini-3-flash-preview"
DEFAULT_IMAGE_MODEL = "gemini-2.5-flash-image"
COVER_ASPECT_RATIO = "16:9"

JSON_OBJECT_RE = re.compile(r"\{.*\}", re.DOTALL)


def extract_json_payload(text: str) -> dict:
    """Parse the JSON object embedded in a model's text response.

    Takes the greedy span from the first ``{`` to the last ``}``; when there
    is none, the whole text is parsed.
    """
    match = JSON_OBJECT_RE.search(text)
    data = json.loads(match.group(0) if match else text)
    if not isinstance(data, dict):
        raise ValueError(f"Expected a JSON object, got {type(data).__name__}")
    return data


def build_song_config(language: Language, use_search: bool) -> types.GenerateContentConfig:
    """Request config for the song call.

    Search grounding and schema-enforced JSON cannot be combined, so grounded
    requests rely on the instruction alone to get JSON back.
    """
    system_instruction = SYSTEM_INSTRUCTION.format(language=language.value)
    if use_search:
        return types.GenerateContentConfig(
            system_instruction=system_instruction,
            tools=[types.Tool(google_search=types.GoogleSearch())],
        )
    return types.GenerateContentConfig(
        system_instruction=system_instruction,
        response_mime_type="application/json",
        response_schema=build_song_schema(),
    )


def _image_config() -> types.GenerateContentConfig:
    return types.GenerateContentConfig(
        image_config=types.ImageConfig(aspect_ratio=COVER_ASPECT_RATIO),
    )


def _first_candidate(response: Any) -> Any:
    candidates = getattr(response, "candidates", None) or []
    return candidates[0] if candidates else None


def extract_grounding_sources(response: Any) -> list[GroundingSource]:
    """Web citations from a grounded response, non-web chunks dropped."""
    candidate = _first_candidate(response)
    metadata = getattr(candidate, "grounding_metadata", None)
    chunks = getattr(metadata, "grounding_chunks", None) or []
    return [
        GroundingSource(uri=chunk.web.uri, title=chunk.web.title)
        for chunk in chunks
        if getattr(chunk, "web", None)
    ]


def first_inline_image(response: Any) -> str | None:
    """The first inline image part of a response, as a PNG data URI."""
    candidate = _first_candidate(response)
    content = getattr(candidate, "content", None)
    for part in getattr(content, "parts", None) or []:
        inline = getattr(part, "inline_data", None)
        if inline is None or not inline.data:
            continue
        if isinstance(inline.data, str):
            # already base64 text
            return f"data:image/png;base64,{inline.data}"
        return to_data_uri(inline.data)
    return None


class GeminiSongGenerator:
    """Song, cover and cover-edit generation on top of the Gemini API.

    Model identifiers come from the constructor, then from the
    SONGCRAFT_TEXT_MODEL / SONGCRAFT_IMAGE_MODEL environment variables.
    """

    def __init__(
        self,
        api_key: str | None = None,
        client: genai.Client | None = None,
        text_model: str | None = None,
        image_model: str | None = None,
        debug: bool = False,
    ):
        self._api_key = api_key
        self._client = client
        self.text_model = (
            text_model or os.environ.get("SONGCRAFT_TEXT_MODEL") or DEFAULT_TEXT_MODEL
        )
        self.image_model = (
            image_model or os.environ.get("SONGCRAFT_IMAGE_MODEL") or DEFAULT_IMAGE_MODEL
        )
        self.debug = debug

    @property
    def client(self) -> genai.Client:
        if self._client is None:
            self._client = genai.Client(api_key=self._api_key)
        return self._client

    async def generate_song(
        self, topic: str, language: Language, use_search: bool
    ) -> SongData:
        """Generate lyrics, title, styles and prompts for ``topic``.

        Raises:
            GenerationFailed: on any network, parse or response-shape failure.
        """
        start = time.time()
        config = build_song_config(language, use_search)
        prompt = SONG_PROMPT.format(topic=topic, language=language.value)

        if self.debug:
            trace_system_prompt(config.system_instruction)
            trace_request_config(self.text_model, config)

        try:
            response = await self.client.aio.models.generate_content(
                model=self.text_model,
                contents=prompt,
                config=config,
            )
            text = response.text or ""
            log.info("Song response: %s", text[:300])
            if self.debug:
                trace_final_output(text)

            song = normalize_song_data(extract_json_payload(text))

            if use_search:
                sources = extract_grounding_sources(response)
                song.grounding_sources = sources
                if self.debug:
                    trace_grounding(sources)
        except Exception as e:
            log.error("Failed to parse song output: %s", e, exc_info=True)
            raise GenerationFailed() from e

        log.info(
            "Generated song '%s' (%s, search=%s) in %.2fs",
            song.title,
            language.value,
            use_search,
            time.time() - start,
        )
        return song

    async def _generate_image(self, contents: Any) -> str:
        config = _image_config()
        if self.debug:
            trace_request_config(self.image_model, config)
        response = await self.client.aio.models.generate_content(
            model=self.image_model,
            contents=contents,
            config=config,
        )
        url = first_inline_image(response)
        if url is None:
            raise ValueError("No image data in response")
        return url

    async def generate_cover_image(self, image_prompt: str) -> str:
        """Generate a 16:9 cover for ``image_prompt`` as a PNG data URI."""
        start = time.time()
        contents = [types.Part.from_text(text=COVER_PROMPT.format(prompt=image_prompt))]
        try:
            url = await self._generate_image(contents)
        except Exception as e:
            log.error("Image generation failed: %s", e, exc_info=True)
            raise ImageGenerationFailed() from e
        log.info("Generated cover in %.2fs", time.time() - start)
        return url

    async def edit_image(self, current_image: str, edit_instruction: str) -> str:
        """Apply ``edit_instruction`` to a PNG data URI, returning the new data URI."""
        start = time.time()
        try:
            contents = [
                types.Part.from_bytes(
                    data=decode_data_uri(current_image), mime_type="image/png"
                ),
                types.Part.from_text(text=edit_instruction),
            ]
            url = await self._generate_image(contents)
        except Exception as e:
            log.error("Image edit failed: %s", e, exc_info=True)
            raise ImageEditFailed() from e
        log.info("Edited cover in %.2fs", time.time() - start)
        return url
