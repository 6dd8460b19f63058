import uvicorn
import sys
from pathlib import Path

# Add project root to Python path
project_root = str(Path(__file__).parent.absolute())
sys.path.insert(0, project_root)

from ai_interviewer.core.config import get_settings, EnvironmentType

if __name__ == "__main__":
    settings = get_settings()

    uvicorn.run(
        "ai_interviewer.main:app",
        host=settings.HOST,
        port=settings.PORT,
        reload=settings.ENVIRONMENT == EnvironmentType.DEVELOPMENT
    )
