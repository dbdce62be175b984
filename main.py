"""Run the API with uvicorn on PORT (default 3000)."""
import uvicorn

from bassnote.core.config import settings

if __name__ == "__main__":
    uvicorn.run("bassnote.main:app", host="0.0.0.0", port=settings.port)
