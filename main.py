"""
Development server:

    python main.py            (reloads on change when DEBUG is set)
    uvicorn main:app --reload
"""

from wms.core.config import settings
from wms.main import app  # noqa: F401

if __name__ == "__main__":
    import uvicorn

    uvicorn.run("wms.main:app", host="0.0.0.0", port=8000, reload=settings.DEBUG)
