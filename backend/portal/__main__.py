"""Run the API with uvicorn: ``python -m portal``."""

import uvicorn

from portal.settings import settings


if __name__ == "__main__":
	uvicorn.run("portal.main:app", host="0.0.0.0", port=settings.port)
