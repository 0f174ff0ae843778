"""Run the API with uvicorn.

Tables are created on startup; the default database is in-memory, so data
lives as long as the process.
"""

import uvicorn

from studyportal.main import create_app


def main():
    uvicorn.run(create_app(), host="0.0.0.0", port=5000)


if __name__ == "__main__":
    main()
