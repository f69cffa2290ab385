"""
CityGate entry point.

Serves the city aggregation API under uvicorn.
"""

import uvicorn

from citygate.api import create_app
from citygate.logging import setup_logging
from citygate.settings import global_settings

setup_logging(global_settings)
app = create_app(global_settings)


if __name__ == "__main__":
    uvicorn.run(
        "main:app",
        host=global_settings.host,
        port=global_settings.port,
        reload=not global_settings.is_production,
    )
