# plant_ops/__main__.py
"""
Serve the API: `python -m plant_ops` or the `plant-ops` script.
"""

import os

import uvicorn


def main() -> None:
    uvicorn.run(
        "plant_ops.main:app",
        host=os.getenv("PLANT_HOST", "127.0.0.1"),
        port=int(os.getenv("PLANT_PORT", "8000")),
    )


if __name__ == "__main__":
    main()
