import logging
import os
import uuid

from backend import config

logger = logging.getLogger(__name__)


def save_upload(data: bytes, suffix=".pdf", directory=None):
    """Write uploaded bytes to a uniquely named temp file and return its path."""
    directory = directory or config.UPLOAD_DIR
    os.makedirs(directory, exist_ok=True)
    path = os.path.join(directory, f"upload_{uuid.uuid4().hex}{suffix}")
    with open(path, "wb") as f:
        f.write(data)
    return path


def remove_file(path):
    if path and os.path.exists(path):
        os.remove(path)
        logger.debug("Removed temp file %s", path)


def is_pdf(data: bytes) -> bool:
    return data[:1024].lstrip().startswith(b"%PDF")
