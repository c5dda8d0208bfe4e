#!/usr/bin/env python3
"""
Simple launcher script for the Roster Board API.
Run this from the root directory to start the application.
"""

import uvicorn

if __name__ == "__main__":
    print("🚀 Starting Roster Board API with auto-reload...")
    print("📖 API Documentation: http://localhost:8000/docs")
    print("🔍 Health Check: http://localhost:8000/health")
    print("📡 Change stream: http://localhost:8000/rows/stream?date_key=YYYY-MM-DD")
    print("🛑 Press Ctrl+C to stop the server")
    print("-" * 50)

    # Use import string format for reload to work properly
    uvicorn.run(
        "roster.main:app",
        host="0.0.0.0",
        port=8000,
        reload=True,
        reload_dirs=["roster"],
        log_level="info"
    )
