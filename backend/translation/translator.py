import json
import logging
import time

import google.generativeai as genai

from backend import config

logger = logging.getLogger(__name__)

PDF_MIME_TYPE = "application/pdf"
POLL_INTERVAL = 2.0

PROMPT_TEMPLATE = """
Analyze this whole PDF. Identify all speech bubbles.
Return a JSON array. Each object must contain:
1. "page_number": Integer (1-based).
2. "text": The {language} translation.
3. "box_2d": [ymin, xmin, ymax, xmax] (normalized 0-1000).

TRANSLATION RULES ({language}):
- Tone: Casual, Spoken, Anime Subtitle Style.
- No formal or literary language; write the way people actually talk.
- Keep it polite but natural.
"""


class TranslationError(RuntimeError):
    pass


def build_prompt(language=None):
    return PROMPT_TEMPLATE.format(language=language or config.TARGET_LANGUAGE)


def clean_json_text(text):
    text = text.strip()
    if text.startswith("```json"): text = text[7:]
    elif text.startswith("```"): text = text[3:]
    if text.endswith("```"): text = text[:-3]
    return text.strip()


def parse_segments_response(text):
    """
    Parse the model's JSON reply into a list of raw segment dicts.

    Accepts a bare array or an object wrapping exactly one array
    (e.g. ``{"dialogs": [...]}``). Entries are not validated here.
    """
    try:
        data = json.loads(clean_json_text(text or ""))
    except json.JSONDecodeError as e:
        raise TranslationError(f"Model returned invalid JSON: {e}") from e

    if isinstance(data, dict):
        lists = [v for v in data.values() if isinstance(v, list)]
        if len(lists) != 1:
            raise TranslationError("Model returned an object without a single segment list")
        data = lists[0]
    if not isinstance(data, list):
        raise TranslationError(f"Model returned {type(data).__name__}, expected a list")
    return data


def configure(api_key=None):
    api_key = api_key or config.GEMINI_API_KEY
    if not api_key:
        raise TranslationError("GEMINI_API_KEY not found in environment or .env file")
    genai.configure(api_key=api_key)


def wait_until_active(uploaded, timeout=None):
    timeout = config.GEMINI_UPLOAD_TIMEOUT if timeout is None else timeout
    deadline = time.monotonic() + timeout
    while uploaded.state.name == "PROCESSING":
        if time.monotonic() >= deadline:
            raise TranslationError(f"Upload {uploaded.name} still processing after {timeout:.0f}s")
        time.sleep(POLL_INTERVAL)
        uploaded = genai.get_file(uploaded.name)
    if uploaded.state.name == "FAILED":
        raise TranslationError(f"Upload {uploaded.name} failed on the server side")
    return uploaded


def translate_pdf(pdf_path, display_name=None, model_name=None, language=None):
    """
    Upload a PDF to Gemini and return the raw segment list it detects.

    Each entry is expected to carry ``page_number``, ``text`` and ``box_2d``.
    """
    configure()
    model_name = model_name or config.GEMINI_MODEL

    logger.info("1. Uploading %s to Google...", display_name or pdf_path)
    try:
        uploaded = genai.upload_file(pdf_path, mime_type=PDF_MIME_TYPE, display_name=display_name)
    except Exception as e:
        raise TranslationError(f"Upload failed: {e}") from e

    try:
        uploaded = wait_until_active(uploaded)

        logger.info("2. Analyzing with %s...", model_name)
        model = genai.GenerativeModel(
            model_name=model_name,
            generation_config={"response_mime_type": "application/json"},
        )
        try:
            response = model.generate_content([uploaded, build_prompt(language)])
            text = response.text
        except Exception as e:
            raise TranslationError(f"Model call failed (check GEMINI_MODEL): {e}") from e

        segments = parse_segments_response(text)
        logger.info("Found %d dialogs.", len(segments))
        return segments
    finally:
        try:
            genai.delete_file(uploaded.name)
        except Exception as e:
            logger.warning("Could not delete uploaded file %s: %s", uploaded.name, e)


def list_models():
    """Names of the models available to this key that support generateContent."""
    configure()
    return [
        m.name.replace("models/", "")
        for m in genai.list_models()
        if "generateContent" in m.supported_generation_methods
    ]
