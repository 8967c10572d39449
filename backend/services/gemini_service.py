import os
import json
import base64
import logging
import asyncio
from typing import TypeVar
from google.generativeai.client import configure as genai_configure
from google.generativeai.generative_models import GenerativeModel
from google.generativeai.types import GenerationConfig
from pydantic import BaseModel, ValidationError

from services.errors import GenerationFailedError

logger = logging.getLogger(__name__)

# Initialise the Gemini client once at module level
genai_configure(api_key=os.environ.get("GEMINI_API_KEY", ""))

MODEL_FLASH = os.getenv("GEMINI_MODEL", "gemini-2.5-flash")

ResultT = TypeVar("ResultT", bound=BaseModel)


def _make_image_part(data_uri: str) -> dict:
    """
    Convert a `data:<mime>;base64,<data>` URI into the inline blob Gemini
    expects. A bare base64 string is treated as JPEG.
    """
    mime_type = "image/jpeg"
    encoded = data_uri
    if data_uri.startswith("data:") and "base64," in data_uri:
        header, encoded = data_uri.split("base64,", 1)
        mime_type = header[len("data:"):].rstrip(";") or mime_type
    return {"mime_type": mime_type, "data": base64.b64decode(encoded)}


def _response_text(response) -> str:
    # Blocked or MAX_TOKENS candidates can leave response.text inaccessible,
    # so fall back to the first candidate's parts.
    try:
        return (response.text or "").strip()
    except ValueError:
        try:
            return (response.candidates[0].content.parts[0].text or "").strip()
        except Exception:
            return ""


def _strip_fences(text: str) -> str:
    if text.startswith("```json"):
        text = text[7:]
    elif text.startswith("```"):
        text = text[3:]
    if text.endswith("```"):
        text = text[:-3]
    return text.strip()


def _json_instruction(output_model: type[BaseModel]) -> str:
    schema = json.dumps(output_model.model_json_schema(), indent=2)
    return (
        "\n\nRespond with a single JSON object that conforms to this JSON Schema. "
        "No markdown fencing, no extra keys.\n"
        f"{schema}"
    )


async def generate_structured(
    prompt: str,
    output_model: type[ResultT],
    image_data_uri: str | None = None,
    mode: str = "",
) -> ResultT | None:
    """
    Sends one instruction (plus an optional inline image) to Gemini in JSON
    mode. The expected shape is written into the prompt; `output_model` is
    the only place its rules (array lengths, MCQ answers) are enforced.

    Returns the validated result, or None when the model produced no output
    at all. A response that does not fit the model raises
    GenerationFailedError(kind="invalid-output"). Single attempt, no retry.
    """
    # Gemini's Schema proto has no minItems/maxItems, so the pydantic model
    # is never passed as response_schema.
    model = GenerativeModel(
        MODEL_FLASH,
        generation_config=GenerationConfig(
            response_mime_type="application/json",
        ),
    )

    contents: list = []
    if image_data_uri:
        contents.append(_make_image_part(image_data_uri))
    contents.append(prompt + _json_instruction(output_model))

    response = await asyncio.to_thread(lambda: model.generate_content(contents))
    text = _strip_fences(_response_text(response))
    if not text:
        logger.warning("Gemini returned no output for mode %s", mode or output_model.__name__)
        return None

    try:
        return output_model.model_validate(json.loads(text))
    except (json.JSONDecodeError, ValidationError) as e:
        logger.error("Gemini output for mode %s did not match %s: %s", mode, output_model.__name__, e)
        raise GenerationFailedError(mode or output_model.__name__, kind="invalid-output", detail=str(e)) from e
