from fastapi import FastAPI
from app.core.config import get_settings
from app.core.logging_config import configure_logging
from app.db.database import Base, engine, check_db_connection
from app.models import expenses, groups, settlements  # noqa: F401  register tables
from app.api.v1.routes.groups import router as groups_router
from app.api.v1.routes.expenses import router as expenses_router
from app.api.v1.routes.settlements import router as settlements_router

settings = get_settings()
configure_logging(settings.log_level)

check_db_connection()
Base.metadata.create_all(bind=engine)

app = FastAPI(
    title=settings.app_title,
    description="Records shared expenses, computes who owes whom and suggests minimal settlements",
    version=settings.app_version
)

app.include_router(groups_router)
app.include_router(expenses_router)
app.include_router(settlements_router)

@app.get("/")
def read_root():
    return {"message": "Split Ledger Service API", "version": settings.app_version}

@app.get("/health")
def health_check():
    return {"status": "healthy"}
