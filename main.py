# main.py

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from checklist.api.routers import subtasks
from checklist.core.config import get_settings
from checklist.core.logging_setup import setup_logging

settings = get_settings()
setup_logging(settings.log_level, settings.log_dir)

app = FastAPI(
    title="Checklist API",
    description="""
Nested subtask checklists for tasks, stored in Supabase.

**What it does**
- **Subtasks:** add (root or nested under another subtask), rename, toggle, delete.
- **Tree view:** the flat, position-ordered list plus the nested tree built from it.
- **Reordering:** drag-and-drop order is saved as `position` (0..n-1), one row at a time;
  rows that could not be saved are reported back.
- **Auto-complete:** when every subtask is done, the parent task is marked completed.

**Notes**
- Send `Authorization: Bearer <supabase access token>`; it is forwarded to PostgREST so
  row-level security applies.
""",
    version="1.0.0",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(subtasks.router, prefix="/api")


@app.get("/")
def read_root():
    return {"message": "Welcome to Checklist API"}


@app.get("/health", tags=["Health"])
def health():
    return {"status": "ok"}
