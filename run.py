#!/usr/bin/env python3
"""
Tailscale Auto-Ingress Controller - Entry Point

Watches Services annotated with jsgtechnology.com/tailscale-autoingress
and maintains a matching Tailscale Ingress for each of them.

Usage:
    python run.py [--namespace NAMESPACE] [--dry-run] [--in-cluster] [--verbose]
"""

import argparse
import logging
import signal
import sys

from kubernetes import config

from autoingress.config import RESYNC_PERIOD_SECONDS
from autoingress.controller import AutoIngressController

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    datefmt='%Y-%m-%d %H:%M:%S'
)
logger = logging.getLogger(__name__)


def parse_args(argv=None):
    parser = argparse.ArgumentParser(
        description="Tailscale Auto-Ingress Controller - Create Tailscale Ingresses for annotated Services"
    )
    parser.add_argument(
        "--namespace", "-n",
        default="",
        help="Namespace to watch (default: all namespaces)"
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Run in dry-run mode (no changes made)"
    )
    parser.add_argument(
        "--in-cluster",
        action="store_true",
        help="Use in-cluster config (for running inside Kubernetes)"
    )
    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Enable verbose/debug logging"
    )
    parser.add_argument(
        "--resync-period",
        type=float,
        default=RESYNC_PERIOD_SECONDS,
        help=f"Seconds between full resyncs of the Service cache (default: {RESYNC_PERIOD_SECONDS})"
    )
    return parser.parse_args(argv)


def main(argv=None):
    """Main entry point."""
    args = parse_args(argv)

    # Set log level
    if args.verbose:
        logging.getLogger().setLevel(logging.DEBUG)

    # Load Kubernetes configuration
    try:
        if args.in_cluster:
            config.load_incluster_config()
            logger.info("Loaded in-cluster configuration")
        else:
            config.load_kube_config()
            logger.info("Loaded kubeconfig from default location")
    except Exception as e:
        logger.error(f"Failed to load Kubernetes config: {e}")
        sys.exit(1)

    controller = AutoIngressController(
        namespace=args.namespace,
        dry_run=args.dry_run,
        resync_period=args.resync_period
    )

    def handle_signal(signum, frame):
        logger.info(f"Received signal {signum}, shutting down")
        controller.stop()

    signal.signal(signal.SIGTERM, handle_signal)

    try:
        controller.run()
    except Exception as e:
        logger.error(f"Controller error: {e}")
        sys.exit(1)

    logger.info("Controller stopped")


if __name__ == "__main__":
    main()
