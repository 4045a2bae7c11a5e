import os
import tempfile

from dotenv import load_dotenv

load_dotenv()

# --- API ---
GEMINI_API_KEY = os.getenv("GEMINI_API_KEY") or os.getenv("GOOGLE_API_KEY")
GEMINI_MODEL = os.getenv("GEMINI_MODEL", "gemini-2.5-flash")
GEMINI_UPLOAD_TIMEOUT = float(os.getenv("GEMINI_UPLOAD_TIMEOUT", "120"))
TARGET_LANGUAGE = os.getenv("TARGET_LANGUAGE", "Persian")

# --- FONTS ---
# Empty string disables the custom font (built-in Helvetica).
FONT_PATH = os.getenv("FONT_PATH", os.path.join("assets", "fonts", "font.ttf"))

# --- SERVER ---
PORT = int(os.getenv("PORT", "5000"))
UPLOAD_DIR = os.getenv("UPLOAD_DIR", tempfile.gettempdir())
OUTPUT_FILENAME = "Manga_Translated.pdf"
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"
