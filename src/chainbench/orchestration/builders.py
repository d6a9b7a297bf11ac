"""
Construction of targets, provider pools and monitors from an AppConfig.
"""

import logging
from typing import List

from ..models.config import AppConfig
from ..monitoring.monitor import ResilientMonitor
from ..monitoring.pool import ProviderPool
from ..sources.jsonrpc import JsonRpcClient, JsonRpcTarget

logger = logging.getLogger(__name__)


def build_targets(config: AppConfig) -> List[JsonRpcTarget]:
    """
    Create one JSON-RPC load target per network that defines operations.

    Each target sends its operations to the first RPC URL of its network.
    """
    targets = []
    mix_kinds = set(config.load.operation_mix)
    for network in config.networks:
        if not network.operations:
            logger.warning(f"Network {network.name} defines no operations; not used as a load target")
            continue

        missing = sorted(mix_kinds - set(network.operations))
        if missing:
            logger.warning(
                f"Network {network.name} does not define operation(s) {missing}; "
                f"they will be recorded as failures"
            )

        client = JsonRpcClient(network.rpc_urls[0], timeout=config.monitor.request_timeout_seconds)
        targets.append(JsonRpcTarget(network.name, client, network.operations))

    logger.debug(f"Built {len(targets)} load target(s)")
    return targets


def build_pools(config: AppConfig) -> List[ProviderPool]:
    return [
        ProviderPool.from_urls(
            network.rpc_urls,
            name=network.name,
            timeout=config.monitor.request_timeout_seconds,
        )
        for network in config.networks
    ]


def build_monitors(config: AppConfig) -> List[ResilientMonitor]:
    """Create one resilient monitor per configured network."""
    return [
        ResilientMonitor(pool, config=config.monitor, name=pool.name)
        for pool in build_pools(config)
    ]
