"""
Server entry point.

    uvicorn expense_tracker.api.main:app
    python -m expense_tracker.api.main
"""

import os

from expense_tracker.api.app import create_app


app = create_app()


def main() -> None:
    import uvicorn

    uvicorn.run(
        "expense_tracker.api.main:app",
        host=os.getenv("HOST", "0.0.0.0"),
        port=int(os.getenv("PORT", "5000")),
        reload=False,
    )


if __name__ == "__main__":
    main()
