import uvicorn

from aerie.app import create_app
from aerie.config import settings

app = create_app()


# --- Run Application ---
if __name__ == "__main__":
    uvicorn.run("main:app", host="0.0.0.0", port=8000, reload=settings.DEBUG)
