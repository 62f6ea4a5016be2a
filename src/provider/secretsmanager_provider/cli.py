"""Secrets Manager provider diagnostics

Resolves a secret path the same way the host framework would, or reports
which principal the configured credentials belong to. Useful to check
region, credentials and KMS permissions before deploying a worker.
"""
from __future__ import annotations

import argparse
import json
import logging
import os
import sys
from typing import Any, Sequence

from botocore.exceptions import BotoCoreError, ClientError

from .core.errors import ProviderError
from .core.logging import mask_secret, configure_logging
from .providers.aws import AwsSecretsManagerProvider

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="secretsmanager-provider",
        description="Resolve secrets through the AWS Secrets Manager config provider",
    )
    parser.add_argument(
        "--region",
        default=os.getenv("AWS_REGION", ""),
        help="Secrets Manager region (default $AWS_REGION)",
    )
    parser.add_argument("--access-key", default="", help="Static access key id")
    parser.add_argument(
        "--access-secret",
        default=os.getenv("SECRETS_PROVIDER_ACCESS_SECRET", ""),
        help="Static access secret (default $SECRETS_PROVIDER_ACCESS_SECRET)",
    )
    parser.add_argument("--ttl-ms", type=int, default=None, help="TTL reported with resolved secrets")
    parser.add_argument(
        "--format",
        choices=("legacy", "json"),
        default="legacy",
        help="Secret body parser (default legacy)",
    )
    parser.add_argument("--log-level", default="WARNING", help="Logging level (default WARNING)")

    subcommands = parser.add_subparsers(dest="command", required=True)

    resolve = subcommands.add_parser("resolve", help="Fetch a secret and print its entries")
    resolve.add_argument("path", help="Secret name or ARN")
    resolve.add_argument("keys", nargs="*", help="Keys to return (default all)")
    resolve.add_argument("--reveal", action="store_true", help="Print values instead of masking them")

    subcommands.add_parser("whoami", help="Print the caller identity of the configured credentials")
    return parser


def _provider_configs(args: argparse.Namespace) -> dict[str, Any]:
    configs: dict[str, Any] = {
        "cloud.region": args.region,
        "cloud.access.key": args.access_key,
        "cloud.access.secret": args.access_secret,
        "cloud.secret.format": args.format,
    }
    if args.ttl_ms is not None:
        configs["cloud.secret.ttl.ms"] = args.ttl_ms
    return configs


def main(argv: Sequence[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    configure_logging(args.log_level, secrets=[args.access_secret])

    provider = AwsSecretsManagerProvider()
    try:
        provider.configure(_provider_configs(args))
        if args.command == "whoami":
            # configure() already asked STS; only call again if that failed.
            output: dict[str, Any] = provider.caller_identity or provider.whoami()
        else:
            result = provider.get(args.path, args.keys)
            data = result.data if args.reveal else {key: mask_secret(value) for key, value in result.data.items()}
            output = {"path": args.path, "ttl": result.ttl, "data": data}
    except ProviderError as exc:
        logger.debug("Command %s failed", args.command, exc_info=True)
        print(f"error ({exc.category}): {exc}", file=sys.stderr)
        return 1
    except (BotoCoreError, ClientError) as exc:
        logger.debug("Command %s failed", args.command, exc_info=True)
        print(f"error (aws): {exc}", file=sys.stderr)
        return 1
    finally:
        provider.close()

    print(json.dumps(output, indent=2, sort_keys=True))
    return 0


if __name__ == "__main__":
    sys.exit(main())
