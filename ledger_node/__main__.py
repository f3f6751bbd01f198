# ledger_node/__main__.py
"""
Entry point for running the ledger node as a module:

    python -m ledger_node [--config ledger_config.yaml] [--url http://host:port] <command>

Commands:
    init [ARGS...]               seed the genesis accounts
    invoke FUNCTION [ARGS...]    write / transfer / init
    query FUNCTION [ARGS...]     read
    serve [--host H] [--port P]  run the HTTP API

Without --url, calls run against the locally configured state store.
"""

from __future__ import annotations

import argparse
import json
import sys
from typing import Any, Dict

from . import config as node_config
from .client import LedgerClient, LedgerClientError
from .executor import LedgerExecutor


def parse_args(argv=None):
    p = argparse.ArgumentParser(prog="ledger-node", description="Account ledger node")
    p.add_argument("--config", default=None, help="Path to YAML config (default: ./ledger_config.yaml)")
    p.add_argument("--url", default=None, help="Send the call to a running node instead of the local store")

    sub = p.add_subparsers(dest="command", required=True)

    init = sub.add_parser("init", help="Seed the genesis accounts")
    init.add_argument("args", nargs="*")

    for name in ("invoke", "query"):
        sp = sub.add_parser(name, help=f"{name.capitalize()} a ledger function")
        sp.add_argument("function")
        sp.add_argument("args", nargs="*")

    serve = sub.add_parser("serve", help="Run the HTTP API")
    serve.add_argument("--host", default=None)
    serve.add_argument("--port", type=int, default=None)

    return p.parse_args(argv)


def _serve(cfg: Dict[str, Any], args) -> int:
    import uvicorn

    from .ledger_api import create_app

    app = create_app(LedgerExecutor.from_config(cfg))
    uvicorn.run(
        app,
        host=args.host or node_config.get_bind_host(cfg),
        port=args.port or node_config.get_bind_port(cfg),
    )
    return 0


def _call(cfg: Dict[str, Any], args) -> Dict[str, Any]:
    if args.url:
        client = LedgerClient(args.url)
        if args.command == "init":
            return client.init(args.args)
        if args.command == "invoke":
            return client.invoke(args.function, args.args)
        return client.query(args.function, args.args)

    ex = LedgerExecutor.from_config(cfg)
    if args.command == "init":
        resp = ex.init(args.args)
    elif args.command == "invoke":
        resp = ex.invoke(args.function, args.args)
    else:
        resp = ex.query(args.function, args.args)
    return resp.to_dict()


def main(argv=None) -> int:
    args = parse_args(argv)
    cfg = node_config.load_config(args.config)
    node_config.setup_logging(cfg)

    try:
        if args.command == "serve":
            return _serve(cfg, args)
        result = _call(cfg, args)
    except node_config.ConfigError as e:
        print(f"config error: {e}", file=sys.stderr)
        return 2
    except LedgerClientError as e:
        print(f"error: {e}", file=sys.stderr)
        return 2

    print(json.dumps(result, sort_keys=True))
    return 0 if result.get("ok") else 1


if __name__ == "__main__":
    raise SystemExit(main())
