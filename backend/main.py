from dotenv import load_dotenv
load_dotenv()  # Load environment variables before importing config classes

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from core.config import HostingConfigs
from core.logging_config import setup_logging
from db.session import engine
from models import Base
from api.v1.api_router import api_router
from services.ai_functions.registry import list_functions

# Setup logging
setup_logging()
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Initialize database
    Base.metadata.create_all(bind=engine)
    logger.info("main: AI functions available: %s", ", ".join(list_functions()))
    yield


# Create FastAPI app
app = FastAPI(title="autotest scenegen backend", lifespan=lifespan)

# Include API router
app.include_router(api_router)


@app.get("/health")
def health():
    return {"status": "ok", "functions": list_functions()}


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("main:app", host=HostingConfigs.HOST, port=HostingConfigs.PORT, reload=False)
