"""Run the HTTP service: ``python -m catalog_sync``."""
from __future__ import annotations

import uvicorn

from catalog_sync.adapters.fastapi import create_app
from catalog_sync.bootstrap import build_services
from catalog_sync.config import CatalogSyncSettings, DotenvSettingsLoader
from catalog_sync.observability.logging import configure_logging


def main() -> None:
    settings = DotenvSettingsLoader().load(CatalogSyncSettings)
    configure_logging(settings.log_level, json=settings.log_json)
    app = create_app(build_services(settings))
    uvicorn.run(app, host=settings.http_host, port=settings.http_port, log_config=None, access_log=False)


if __name__ == "__main__":
    main()
