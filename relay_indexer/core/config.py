# relay_indexer/core/config.py
"""
Environment-resolved configuration.

Every setting is a plain INDEXER_* key with a default; ``load_config`` turns
the environment (after ``.env`` has been loaded) into frozen msgspec
structs so the rest of the indexer never touches ``os.environ``.
"""

import os
from pathlib import Path
from typing import Mapping, Optional

from dotenv import load_dotenv

from .constants import (
    BATCH_SIZE, BLOCK_CONFIRMATIONS, DEFAULT_CADENCES, DEFAULT_CHAIN_ID,
    DEFAULT_CONTRACT_ADDRESSES, DEFAULT_LOOKBACK, DEFAULT_RPC_URL,
    MAX_BLOCKS_PER_RUN, MAX_RETRIES, RETRY_DELAY_MS,
)
from .errors import ConfigurationError
from ..types.config import (
    ContractsConfig, DatabaseConfig, IndexerConfig, IndexerSettings,
    JobConfig, LoggingConfig, RpcConfig,
)

TRUE_VALUES = {'1', 'true', 'yes', 'on'}
FALSE_VALUES = {'0', 'false', 'no', 'off'}


def get_bool(env: Mapping[str, str], key: str, default: bool) -> bool:
    raw = env.get(key)
    if raw is None or raw == '':
        return default
    lowered = raw.strip().lower()
    if lowered in TRUE_VALUES:
        return True
    if lowered in FALSE_VALUES:
        return False
    raise ConfigurationError(f"{key} must be a boolean, got {raw!r}")


def get_int(env: Mapping[str, str], key: str, default: Optional[int],
            minimum: int = 0) -> Optional[int]:
    raw = env.get(key)
    if raw is None or raw.strip() == '':
        return default
    try:
        value = int(raw.strip())
    except ValueError:
        raise ConfigurationError(f"{key} must be an integer, got {raw!r}")
    if value < minimum:
        raise ConfigurationError(f"{key} must be >= {minimum}, got {value}")
    return value


def build_database_url(env: Mapping[str, str]) -> str:
    url = env.get("INDEXER_DB_URL")
    if url:
        return url

    db_user = env.get("INDEXER_DB_USER")
    db_password = env.get("INDEXER_DB_PASSWORD")
    db_name = env.get("INDEXER_DB_NAME")
    if db_user and db_password and db_name:
        db_host = env.get("INDEXER_DB_HOST", "127.0.0.1")
        db_port = env.get("INDEXER_DB_PORT", "5432")
        return f"postgresql+psycopg://{db_user}:{db_password}@{db_host}:{db_port}/{db_name}"

    return "sqlite:///relay_indexer.db"


def job_env_key(job_name: str) -> str:
    return f"INDEXER_CRON_{job_name.upper()}"


def load_logging_config(env: Mapping[str, str]) -> LoggingConfig:
    log_dir = env.get("INDEXER_LOG_DIR")
    return LoggingConfig(
        log_level=env.get("INDEXER_LOG_LEVEL", "INFO"),
        log_dir=Path(log_dir) if log_dir else Path.cwd() / "logs",
        console_enabled=get_bool(env, "INDEXER_LOG_CONSOLE", True),
        file_enabled=get_bool(env, "INDEXER_LOG_FILE", False),
        structured_format=get_bool(env, "INDEXER_LOG_STRUCTURED", True),
        json_format=get_bool(env, "INDEXER_LOG_JSON", False),
    )


def load_config(env: Optional[Mapping[str, str]] = None, dotenv: bool = True) -> IndexerConfig:
    if env is None:
        if dotenv:
            load_dotenv()
        env = os.environ

    rpc = RpcConfig(
        endpoint_url=env.get("INDEXER_RPC_URL", DEFAULT_RPC_URL),
        chain_id=get_int(env, "INDEXER_CHAIN_ID", DEFAULT_CHAIN_ID),
        timeout=get_int(env, "INDEXER_RPC_TIMEOUT", 30, minimum=1),
        max_retries=get_int(env, "INDEXER_MAX_RETRIES", MAX_RETRIES, minimum=1),
        retry_delay_ms=get_int(env, "INDEXER_RETRY_DELAY_MS", RETRY_DELAY_MS),
    )

    database = DatabaseConfig(
        url=build_database_url(env),
        pool_size=get_int(env, "INDEXER_DB_POOL_SIZE", 5, minimum=1),
        max_overflow=get_int(env, "INDEXER_DB_MAX_OVERFLOW", 10),
    )

    contracts = ContractsConfig(
        identity_registry=env.get("INDEXER_IDENTITY_REGISTRY_ADDRESS",
                                  DEFAULT_CONTRACT_ADDRESSES['identity_registry']),
        reputation_registry=env.get("INDEXER_REPUTATION_REGISTRY_ADDRESS",
                                    DEFAULT_CONTRACT_ADDRESSES['reputation_registry']),
        escrow=env.get("INDEXER_ESCROW_CONTRACT_ADDRESS", DEFAULT_CONTRACT_ADDRESSES['escrow']),
        usdc=env.get("INDEXER_USDC_ADDRESS", DEFAULT_CONTRACT_ADDRESSES['usdc']),
        perp_venue=env.get("INDEXER_PERP_VENUE_ADDRESS", DEFAULT_CONTRACT_ADDRESSES['perp_venue']),
        escrow_deploy_block=get_int(env, "INDEXER_ESCROW_CONTRACT_DEPLOY_BLOCK", None),
        relay_wallet=env.get("INDEXER_RELAY_WALLET_ADDRESS") or None,
    )

    settings = IndexerSettings(
        batch_size=get_int(env, "INDEXER_BATCH_SIZE", BATCH_SIZE, minimum=1),
        confirmations=get_int(env, "INDEXER_BLOCK_CONFIRMATIONS", BLOCK_CONFIRMATIONS),
        max_blocks_per_run=get_int(env, "INDEXER_MAX_BLOCKS_PER_RUN", MAX_BLOCKS_PER_RUN, minimum=1),
        default_lookback=get_int(env, "INDEXER_DEFAULT_LOOKBACK", DEFAULT_LOOKBACK),
        advance_on_event_failure=get_bool(env, "INDEXER_ADVANCE_ON_EVENT_FAILURE", True),
    )

    jobs = {}
    for job_name, default_cadence in DEFAULT_CADENCES.items():
        cadence = env.get(job_env_key(job_name)) or default_cadence
        enabled = get_bool(env, f"INDEXER_{job_name.upper()}_ENABLED", True)
        jobs[job_name] = JobConfig(name=job_name, cadence=cadence.strip(), enabled=enabled)

    return IndexerConfig(
        rpc=rpc,
        database=database,
        contracts=contracts,
        settings=settings,
        jobs=jobs,
        logging=load_logging_config(env),
    )
