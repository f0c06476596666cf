"""Launch FastAPI server with correct Python path."""
import sys
import os

# Add src to path so the server runs from a plain checkout
project_src = os.path.join(os.path.dirname(__file__), "src")
sys.path.insert(0, project_src)

if __name__ == "__main__":
    import uvicorn
    from mingjing import config

    uvicorn.run(
        "mingjing.api.main:app",
        host=config.API_HOST,
        port=config.API_PORT,
        reload=False,
        log_level=config.LOG_LEVEL,
    )
