# relay_indexer/types/config.py

from pathlib import Path
from typing import Dict, Optional

from msgspec import Struct, field

from ..core.constants import (
    BATCH_SIZE, BLOCK_CONFIRMATIONS, DEFAULT_CHAIN_ID, DEFAULT_LOOKBACK,
    MAX_BLOCKS_PER_RUN, MAX_RETRIES, RETRY_DELAY_MS, ZERO_ADDRESS,
)


class DatabaseConfig(Struct, frozen=True):
    url: str
    pool_size: int = 5
    max_overflow: int = 10
    echo: bool = False


class RpcConfig(Struct, frozen=True):
    endpoint_url: str
    chain_id: int = DEFAULT_CHAIN_ID
    timeout: int = 30
    max_retries: int = MAX_RETRIES
    retry_delay_ms: int = RETRY_DELAY_MS

    @property
    def retry_delay_seconds(self) -> float:
        return self.retry_delay_ms / 1000.0


class ContractsConfig(Struct, frozen=True):
    identity_registry: str
    reputation_registry: str
    escrow: str = ZERO_ADDRESS
    usdc: str = ZERO_ADDRESS
    perp_venue: str = ZERO_ADDRESS
    escrow_deploy_block: Optional[int] = None
    relay_wallet: Optional[str] = None

    @staticmethod
    def is_configured(address: Optional[str]) -> bool:
        return bool(address) and address.lower() != ZERO_ADDRESS


class IndexerSettings(Struct, frozen=True):
    batch_size: int = BATCH_SIZE
    confirmations: int = BLOCK_CONFIRMATIONS
    max_blocks_per_run: int = MAX_BLOCKS_PER_RUN
    default_lookback: int = DEFAULT_LOOKBACK
    advance_on_event_failure: bool = True


class LoggingConfig(Struct, frozen=True):
    log_level: str = "INFO"
    log_dir: Optional[Path] = None
    console_enabled: bool = True
    file_enabled: bool = False
    structured_format: bool = True
    json_format: bool = False


class JobConfig(Struct, frozen=True):
    name: str
    cadence: str
    enabled: bool = True


class IndexerConfig(Struct, frozen=True):
    rpc: RpcConfig
    database: DatabaseConfig
    contracts: ContractsConfig
    settings: IndexerSettings
    jobs: Dict[str, JobConfig]
    logging: LoggingConfig = field(default_factory=LoggingConfig)
