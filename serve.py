"""
Run the webhook behind a TLS-enabled WSGI server.
"""

import argparse
import logging
import os
import signal
import sys

from cheroot.ssl.builtin import BuiltinSSLAdapter
from cheroot.wsgi import Server

from mutate import create_app
from exc import ProviderError

LOG = logging.getLogger(__name__)


def parse_args(argv=None):
    parser = argparse.ArgumentParser(
        description="Apply namespace scheduling policy to new pods."
    )
    parser.add_argument(
        "--port",
        type=int,
        default=int(os.environ.get("PORT", 8443)),
        help="Port to listen on",
    )
    parser.add_argument(
        "--tls-cert-file",
        default=os.environ.get("TLS_CERT_FILE", "/tls/tls.crt"),
        help="TLS certificate",
    )
    parser.add_argument(
        "--tls-key-file",
        default=os.environ.get("TLS_KEY_FILE", "/tls/tls.key"),
        help="TLS private key",
    )
    parser.add_argument(
        "--kube-config",
        default=os.environ.get("KUBE_CONFIG", ""),
        help="Kubernetes configuration. If empty, will use in-cluster configuration",
    )
    parser.add_argument(
        "--log-level",
        default=os.environ.get("LOG_LEVEL", "INFO"),
        help="Logging level",
    )

    return parser.parse_args(argv)


def build_server(args) -> Server:
    app = create_app(KUBECONFIG=args.kube_config or None)

    # the host needs to be set to `0.0.0.0` so it can be reachable from outside the container
    server = Server(("0.0.0.0", args.port), app)  # nosec
    server.ssl_adapter = BuiltinSSLAdapter(
        certificate=args.tls_cert_file, private_key=args.tls_key_file
    )
    return server


def main(argv=None):
    args = parse_args(argv)

    try:
        logging.getLogger().setLevel(args.log_level.upper())
    except ValueError as err:
        LOG.error("invalid log level: %s", err)
        sys.exit(1)

    try:
        server = build_server(args)
    except ProviderError as err:
        LOG.error("%s", err)
        sys.exit(1)
    except OSError as err:
        LOG.error("unable to load TLS certificate: %s", err)
        sys.exit(1)

    def shutdown(signum, frame):
        LOG.info("received signal %d, shutting down", signum)
        server.stop()

    signal.signal(signal.SIGINT, shutdown)
    signal.signal(signal.SIGTERM, shutdown)

    LOG.info("listening on port %d", args.port)
    server.safe_start()


if __name__ == "__main__":
    main()
