from __future__ import annotations

import logging
from typing import Optional

from fastapi import FastAPI

from . import config as node_config
from .api import ledger as ledger_api
from .executor import LedgerExecutor

log = logging.getLogger(__name__)


def create_app(executor: Optional[LedgerExecutor] = None) -> FastAPI:
    app = FastAPI(title="Ledger Node API")

    if executor is None:
        cfg = node_config.load_config()
        node_config.setup_logging(cfg)
        executor = LedgerExecutor.from_config(cfg)
        log.info("Ledger executor ready (store=%s)", type(executor.store).__name__)
    app.state.executor = executor

    # Routers
    app.include_router(ledger_api.router)

    @app.get("/health")
    def health():
        return {"ok": True}

    return app
