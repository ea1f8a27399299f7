import logging
import os
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

import config
import database
from assessment_routes import router as assessment_router
from chat_service import ChatResponder
from errors import register_error_handlers
from journal_routes import router as journal_router

logging.basicConfig(
    level=config.LOG_LEVEL,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    database.connect()
    app.state.chat_responder = ChatResponder(
        config.CHAT_API_URL,
        api_key=config.HUGGINGFACE_API_KEY,
        timeout=config.CHAT_TIMEOUT_SECONDS,
    )
    logger.info("Mood Journal backend started")
    yield
    await app.state.chat_responder.aclose()
    await database.close()


app = FastAPI(title="Mood Journal API", version="1.0.0", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=config.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

register_error_handlers(app)

app.include_router(journal_router)
app.include_router(assessment_router)


@app.get("/")
def read_root():
    return {"message": "Mood Journal backend is running"}


@app.get("/test")
async def test_database():
    response = {
        "backend": "✅ Running",
        "database": "❌ Not Available",
        "connection_status": "Not Connected",
        "collections": []
    }

    db = database.db
    if db is not None:
        response["connection_status"] = "Connected"
        try:
            collections = await db.list_collection_names()
            response["collections"] = collections[:10]
            response["database"] = "✅ Connected & Working"
        except Exception as e:
            response["database"] = f"⚠️  Connected but Error: {str(e)[:50]}"
    else:
        response["database"] = "⚠️  Available but not initialized"

    response["database_url"] = "✅ Set" if os.getenv("DATABASE_URL") else "❌ Not Set"
    response["database_name"] = "✅ Set" if os.getenv("DATABASE_NAME") else "❌ Not Set"
    return response


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=config.PORT)
