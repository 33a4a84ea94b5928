# run_workload_balance_server.py
import argparse
import logging

import uvicorn

from workload_balance.config import ScoringConfig
from workload_balance.api.server import create_app
from workload_balance.inventory.base import build_inventory
from workload_balance.plugin import new_plugin

log = logging.getLogger("launcher")


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Workload Balance scoring server")

    parser.add_argument("--config", default=None, help="JSON config file (overrides WB_* env vars)")
    parser.add_argument("--inventory", default=None, help="JSON inventory snapshot instead of Kubernetes")
    parser.add_argument("--kube-context", default=None, help="kubeconfig context when not in cluster")
    parser.add_argument("--log-level", default=None, help="Overrides WB_LOG_LEVEL")

    parser.add_argument("--host", default="0.0.0.0", help="Bind host")
    parser.add_argument("--port", type=int, default=8090, help="Bind port")

    args = parser.parse_args()

    cfg = ScoringConfig.from_env()
    if args.config:
        cfg = ScoringConfig.from_file(args.config, base=cfg)

    level = args.log_level or cfg.log_level
    logging.basicConfig(level=level.upper())
    log.info(f"Starting scorer on {args.host}:{args.port}, prometheus={cfg.prometheus_address}")

    inventory = build_inventory(cfg, args.inventory, args.kube_context)
    app = create_app(cfg, new_plugin(cfg, inventory))

    uvicorn.run(app, host=args.host, port=args.port, log_level=level.lower())
