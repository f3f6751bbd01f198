"""
ledger_node/app.py
------------------
Thin entrypoint for running the ledger FastAPI app via:

    uvicorn ledger_node.app:app

All real route wiring lives in ledger_node.ledger_api.
"""

from .ledger_api import create_app

app = create_app()


if __name__ == "__main__":
    # Convenience for: python -m ledger_node.app
    import uvicorn

    from . import config as node_config

    cfg = node_config.load_config()
    uvicorn.run(app, host=node_config.get_bind_host(cfg), port=node_config.get_bind_port(cfg))
