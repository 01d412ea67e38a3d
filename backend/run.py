import sys
import uvicorn
from doc_organizer.config import settings


def main():
    try:
        uvicorn.run(
            "doc_organizer.main:app",
            host=settings.host,
            port=settings.port,
        )
    except Exception as e:
        print(f"Error starting the server: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
