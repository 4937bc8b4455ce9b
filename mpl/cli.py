from __future__ import annotations

import argparse
import logging
import signal
import sys
from typing import Any

from . import kube
from .errors import ClientBootstrapError, ConfigError
from .labeler import PrimaryLabeler
from .logs import configure_logging
from .mongo import MongoPrimaryResolver
from .reconciler import Reconciler
from .settings import load_settings


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="mongo-primary-labeler",
        description="Keep a 'primary' label on the pod that is the MongoDB replica set primary.",
        epilog=(
            "Configured through LABEL_SELECTOR (required), NAMESPACE, MONGO_ADDRESS, LABEL_ALL, "
            "DEBUG, K8S_REQUEST_TIMEOUT, MONGO_TIMEOUT and RECONCILE_INTERVAL."
        ),
    )
    default = kube.default_kubeconfig()
    p.add_argument(
        "--kubeconfig",
        default=default,
        help="(optional) absolute path to the kubeconfig file" if default else "absolute path to the kubeconfig file",
    )
    return p


def _install_signal_handlers(reconciler: Reconciler, log: logging.Logger) -> None:
    def _handle(signum: int, _frame: Any) -> None:
        log.info("Received %s, shutting down", signal.Signals(signum).name)
        reconciler.stop()

    signal.signal(signal.SIGINT, _handle)
    signal.signal(signal.SIGTERM, _handle)


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    log = configure_logging(debug=False)

    try:
        settings = load_settings()
    except ConfigError as e:
        log.critical("failed to read configuration: %s", e)
        return 1

    log = configure_logging(debug=settings.debug)
    log.info("Setting logging level to %s", logging.getLevelName(log.level).lower())

    try:
        api = kube.build_core_api(settings, kubeconfig=args.kubeconfig)
    except ClientBootstrapError as e:
        log.critical("failed to initialize labeler: %s", e)
        return 1

    resolver = MongoPrimaryResolver(
        settings.mongo_address,
        timeout_s=settings.mongo_timeout_s,
        logger=log.getChild("mongo"),
    )
    labeler = PrimaryLabeler(api, settings, logger=log.getChild("labeler"))
    reconciler = Reconciler(
        resolver,
        labeler,
        interval_s=settings.reconcile_interval_s,
        logger=log.getChild("reconciler"),
    )

    _install_signal_handlers(reconciler, log)
    reconciler.run()
    return 0


if __name__ == "__main__":
    raise SystemExit(main(sys.argv[1:]))
