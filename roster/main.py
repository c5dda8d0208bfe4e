import logging

from fastapi import FastAPI
from .config import LOG_LEVEL
from .database import engine
from .models import Base
from .routes import days, rows, capacity, staff, calendar

logging.basicConfig(
    level=LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

# Create database tables
Base.metadata.create_all(bind=engine)

# Create FastAPI app
app = FastAPI(
    title="Roster Board API",
    description="Daily work roster with live row sync and worker free-capacity view",
    version="1.0.0"
)

# Include routers
app.include_router(days.router, prefix="/days", tags=["days"])
app.include_router(rows.router, prefix="/rows", tags=["rows"])
app.include_router(capacity.router, prefix="/capacity", tags=["capacity"])
app.include_router(staff.router, prefix="/staff", tags=["staff"])
app.include_router(calendar.router, prefix="/calendar", tags=["calendar"])

@app.get("/")
def read_root():
    """Root endpoint with API information"""
    return {
        "message": "Welcome to Roster Board API",
        "version": "1.0.0",
        "endpoints": {
            "days": "GET/PUT/DELETE /days/{date_key} - Day records and publish flag",
            "rows": "CRUD /rows/* - Roster rows of one day",
            "stream": "GET /rows/stream?date_key= - Live change notifications (SSE)",
            "capacity": "GET /capacity?date_key= - Free time per worker",
            "staff": "GET /staff/{date_key} - Published day for staff",
            "import": "POST /calendar/import?date_key= - Replace a day from Google Calendar"
        },
        "swagger_ui": "/docs - Interactive API documentation",
    }

@app.get("/health")
def health_check():
    """Health check endpoint"""
    return {"status": "healthy", "message": "API is running"}

# This allows running the app directly with: python -m roster.main
if __name__ == "__main__":
    import uvicorn
    uvicorn.run("roster.main:app", host="0.0.0.0", port=8000, reload=True)
