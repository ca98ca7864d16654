import logging

from fastapi import FastAPI

import settings
from catalog_router import router as catalog_router
from catalog_service import load_reference_catalog

app = FastAPI(title="Salvage Union Reference")
app.include_router(catalog_router)


@app.on_event("startup")
def _startup():
    logging.basicConfig(
        level=settings.LOG_LEVEL,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    catalog = load_reference_catalog()
    logging.info("Serving %d schemas from %s", len(catalog.schema_names), settings.DATA_DIR)


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("main:app", host="0.0.0.0", port=8000)
