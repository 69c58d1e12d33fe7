# relay_indexer/__init__.py

import logging
from pathlib import Path
from typing import Dict, Mapping, Optional

from .core.config import load_config
from .core.constants import (
    AGENT_INDEXER, ESCROW_INDEXER, FEEDBACK_INDEXER, JOB_ALIASES, PAYMENT_INDEXER,
    REPUTATION_CALCULATOR, RWA_STATE_INDEXER, TRADE_INDEXER, TRANSACTION_INDEXER,
    USDC_TRANSFER_INDEXER,
)
from .core.errors import ConfigurationError
from .core.logging import IndexerLogger, log_with_context
from .clients.interfaces import ChainClientInterface
from .clients.rpc_client import ChainClient
from .contracts.abi_loader import ABILoader, REPUTATION_REGISTRY
from .database.connection import DatabaseManager
from .database.repositories import RepositoryManager
from .pipeline.cursor import CursorManager
from .pipeline.runner import EventIndexerJob, JobRunner, SweepJob
from .pipeline.scheduler import Scheduler
from .processors import (
    AgentRegistryProcessor, EscrowProcessor, FeedbackProcessor, HandoffCleanupTask,
    PaymentEnrichmentTask, PaymentTransferProcessor, ReputationTask, RwaStateTask, TradeProcessor,
)
from .types.config import ContractsConfig, IndexerConfig

__version__ = "0.1.0"


class Indexer:
    """Wired indexer: store, chain client, jobs and the scheduler that drives them"""

    def __init__(self, config: IndexerConfig, db: DatabaseManager, chain: ChainClientInterface,
                 repos: RepositoryManager, jobs: Dict[str, JobRunner], scheduler: Scheduler):
        self.config = config
        self.db = db
        self.chain = chain
        self.repos = repos
        self.jobs = jobs
        self.scheduler = scheduler

    def get_job(self, name: str) -> JobRunner:
        resolved = JOB_ALIASES.get(name.lower(), name.lower())
        job = self.jobs.get(resolved)
        if job is None:
            raise ConfigurationError(
                f"Unknown or disabled job: {name}. Available: {', '.join(sorted(self.jobs))}"
            )
        return job

    def shutdown(self) -> None:
        self.scheduler.stop()
        self.db.shutdown()


def create_indexer(env: Optional[Mapping[str, str]] = None,
                   chain: Optional[ChainClientInterface] = None,
                   db_manager: Optional[DatabaseManager] = None) -> Indexer:
    config = load_config(env)
    _configure_logging_early(config)

    logger = IndexerLogger.get_logger('core.init')
    log_with_context(logger, logging.INFO, "Creating indexer",
                     chain_id=config.rpc.chain_id,
                     rpc_url=config.rpc.endpoint_url)

    if db_manager is None:
        db_manager = DatabaseManager(config.database)
    if not db_manager.is_initialized:
        db_manager.initialize()

    if chain is None:
        chain = ChainClient(config.rpc)

    repos = RepositoryManager(db_manager)
    jobs = _build_jobs(config, chain, repos, ABILoader())

    scheduler = Scheduler()
    for name, job in jobs.items():
        scheduler.register(job, config.jobs[name].cadence)

    log_with_context(logger, logging.INFO, "Indexer created",
                     job_count=len(jobs), jobs=','.join(jobs))

    return Indexer(config, db_manager, chain, repos, jobs, scheduler)


def _configure_logging_early(config: IndexerConfig) -> None:
    logging_config = config.logging
    IndexerLogger.configure(
        log_dir=logging_config.log_dir or Path.cwd() / "logs",
        log_level=logging_config.log_level,
        console_enabled=logging_config.console_enabled,
        file_enabled=logging_config.file_enabled,
        structured_format=logging_config.structured_format,
        json_format=logging_config.json_format,
    )


def _build_jobs(config: IndexerConfig, chain: ChainClientInterface, repos: RepositoryManager,
                abi_loader: ABILoader) -> Dict[str, JobRunner]:
    logger = IndexerLogger.get_logger('core.jobs')
    contracts = config.contracts
    settings = config.settings
    cursor_manager = CursorManager(repos.cursors)

    def skip(job_name: str, reason: str) -> None:
        log_with_context(logger, logging.INFO, "Job not scheduled", job_name=job_name, reason=reason)

    def event_job(job_name: str, processor, contract_address: Optional[str],
                  start_block: Optional[int] = None) -> Optional[EventIndexerJob]:
        if not ContractsConfig.is_configured(contract_address):
            skip(job_name, "contract address not configured")
            return None
        return EventIndexerJob(
            name=job_name,
            chain=chain,
            cursor_manager=cursor_manager,
            processor=processor,
            contract_address=contract_address,
            abi=abi_loader.load_abi(processor.abi_name),
            settings=settings,
            failed_events=repos.failed_events,
            start_block=start_block,
        )

    candidates: Dict[str, Optional[JobRunner]] = {}

    candidates[AGENT_INDEXER] = event_job(
        AGENT_INDEXER, AgentRegistryProcessor(chain, repos), contracts.identity_registry)
    candidates[FEEDBACK_INDEXER] = event_job(
        FEEDBACK_INDEXER, FeedbackProcessor(chain, repos), contracts.reputation_registry)
    candidates[ESCROW_INDEXER] = event_job(
        ESCROW_INDEXER, EscrowProcessor(chain, repos), contracts.escrow,
        start_block=contracts.escrow_deploy_block)
    candidates[TRADE_INDEXER] = event_job(
        TRADE_INDEXER, TradeProcessor(chain, repos), contracts.perp_venue)

    if ContractsConfig.is_configured(contracts.relay_wallet):
        candidates[USDC_TRANSFER_INDEXER] = event_job(
            USDC_TRANSFER_INDEXER,
            PaymentTransferProcessor(chain, repos, contracts.relay_wallet),
            contracts.usdc)
    else:
        skip(USDC_TRANSFER_INDEXER, "relay wallet not configured")
        candidates[USDC_TRANSFER_INDEXER] = None

    candidates[PAYMENT_INDEXER] = SweepJob(
        PAYMENT_INDEXER, PaymentEnrichmentTask(chain, repos, settings.batch_size), repos.cursors)
    candidates[TRANSACTION_INDEXER] = SweepJob(
        TRANSACTION_INDEXER, HandoffCleanupTask(chain, repos, settings.batch_size), repos.cursors)
    candidates[REPUTATION_CALCULATOR] = SweepJob(
        REPUTATION_CALCULATOR,
        ReputationTask(chain, repos, contracts.reputation_registry,
                       abi_loader.load_abi(REPUTATION_REGISTRY), settings.batch_size),
        repos.cursors)
    candidates[RWA_STATE_INDEXER] = SweepJob(
        RWA_STATE_INDEXER, RwaStateTask(chain, repos, settings.batch_size), repos.cursors)

    jobs: Dict[str, JobRunner] = {}
    for job_name, job in candidates.items():
        if job is None:
            continue
        job_config = config.jobs.get(job_name)
        if job_config is not None and not job_config.enabled:
            skip(job_name, "disabled")
            continue
        jobs[job_name] = job
    return jobs


__all__ = [
    'Indexer',
    'create_indexer',
    '__version__',
]
