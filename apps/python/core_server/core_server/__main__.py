"""Start the API with ``python -m core_server``."""

import os

import uvicorn


def main() -> None:
    uvicorn.run(
        "core_server.main:app",
        host=os.getenv("CORE_HOST", "0.0.0.0"),
        port=int(os.getenv("CORE_PORT", "8000")),
        reload=os.getenv("CORE_RELOAD", "0") == "1",
    )


if __name__ == "__main__":
    main()
