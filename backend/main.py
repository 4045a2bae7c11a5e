import json
import logging

import uvicorn
from fastapi import FastAPI, File, Form, UploadFile
from fastapi.concurrency import run_in_threadpool
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response

from backend import backend_utils, config
from backend.overlay.font_metrics import FontMetrics, FontNotFoundError
from backend.overlay.text_overlay import PdfCanvas
from backend.translation.translator import TranslationError, translate_pdf
from backend.typesetter import typeset_document

logging.basicConfig(level=config.LOG_LEVEL, format=config.LOG_FORMAT)
logger = logging.getLogger(__name__)

app = FastAPI(title="Manga Translator")

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=["Content-Disposition", "X-Segments-Rendered", "X-Segments-Skipped", "X-Layout-Degraded"],
)


class BadRequestError(Exception):
    """The upload itself is unusable; reported to the client as HTTP 400."""


def error_response(status_code, message):
    return JSONResponse(status_code=status_code, content={"error": message})


def open_canvas(pdf_bytes, font_path):
    try:
        return PdfCanvas.from_bytes(pdf_bytes, font_path)
    except ValueError as e:
        raise BadRequestError(str(e)) from e


def render_pdf(pdf_bytes, segments):
    """Typeset ``segments`` onto a copy of the PDF. Returns (pdf_bytes, report)."""
    measure = FontMetrics(config.FONT_PATH)
    with open_canvas(pdf_bytes, measure.font_path) as canvas:
        report = typeset_document(canvas, segments, measure)
        return canvas.to_bytes(), report


def translate_and_render(pdf_bytes, filename):
    # Open the document and font before paying for the model call
    measure = FontMetrics(config.FONT_PATH)
    with open_canvas(pdf_bytes, measure.font_path) as canvas:
        upload_path = backend_utils.save_upload(pdf_bytes)
        try:
            segments = translate_pdf(upload_path, display_name=filename)
        finally:
            backend_utils.remove_file(upload_path)

        logger.info("3. Generating PDF...")
        report = typeset_document(canvas, segments, measure)
        return canvas.to_bytes(), report


def pdf_response(pdf_bytes, report):
    return Response(
        content=pdf_bytes,
        media_type="application/pdf",
        headers={
            "Content-Disposition": f'attachment; filename="{config.OUTPUT_FILENAME}"',
            "X-Segments-Rendered": str(report.rendered),
            "X-Segments-Skipped": str(len(report.skipped)),
            "X-Layout-Degraded": str(report.degraded),
        },
    )


async def read_pdf_upload(file):
    if file is None:
        raise BadRequestError("No file was uploaded.")
    pdf_bytes = await file.read()
    if not backend_utils.is_pdf(pdf_bytes):
        raise BadRequestError("Uploaded file is not a PDF.")
    return pdf_bytes


@app.post("/api/translate")
async def translate(file: UploadFile = File(None)):
    """Detect, translate and re-typeset every speech bubble of the uploaded PDF."""
    try:
        pdf_bytes = await read_pdf_upload(file)
        result, report = await run_in_threadpool(translate_and_render, pdf_bytes, file.filename)
        return pdf_response(result, report)
    except BadRequestError as e:
        return error_response(400, str(e))
    except (TranslationError, FontNotFoundError) as e:
        logger.error("Translation request failed: %s", e)
        return error_response(500, str(e))
    except Exception as e:
        logger.exception("Unexpected error while translating %s", getattr(file, "filename", None))
        return error_response(500, str(e))


@app.post("/api/typeset")
async def typeset(
    file: UploadFile = File(None),
    data: str = Form(..., description="JSON list of {page_number, text, box_2d} objects"),
):
    """Overlay already translated segments without calling the model."""
    try:
        try:
            segments = json.loads(data)
        except json.JSONDecodeError:
            raise BadRequestError("Invalid JSON format in 'data' field")
        if not isinstance(segments, list):
            raise BadRequestError("'data' must be a list of segments")

        pdf_bytes = await read_pdf_upload(file)
        result, report = await run_in_threadpool(render_pdf, pdf_bytes, segments)
        return pdf_response(result, report)
    except BadRequestError as e:
        return error_response(400, str(e))
    except FontNotFoundError as e:
        logger.error("Typeset request failed: %s", e)
        return error_response(500, str(e))
    except Exception as e:
        logger.exception("Unexpected error while typesetting")
        return error_response(500, str(e))


@app.get("/health")
async def health_check():
    return {"status": "ok"}


if __name__ == "__main__":
    logger.info("Server running on port %d", config.PORT)
    uvicorn.run(app, host="0.0.0.0", port=config.PORT)
