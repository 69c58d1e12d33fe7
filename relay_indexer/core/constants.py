# relay_indexer/core/constants.py

ZERO_ADDRESS = '0x0000000000000000000000000000000000000000'

DEFAULT_RPC_URL = 'https://evm-t3.cronos.org'
DEFAULT_CHAIN_ID = 338

# Chains the handoff signing flow may broadcast to
SUPPORTED_CHAIN_IDS = frozenset({25, 338, 388, 240})

DEFAULT_CONTRACT_ADDRESSES = {
    'identity_registry': '0x4b697D8ABC0e3dA0086011222755d9029DBB9C43',
    'reputation_registry': '0xdaFC2fA590C5Ba88155a009660dC3b14A3651a67',
    'escrow': ZERO_ADDRESS,
    'usdc': '0xc01efAaF7C5C61bEbFAeb358E1161b537b8bC0e0',
    'perp_venue': ZERO_ADDRESS,
}

BATCH_SIZE = 100
BLOCK_CONFIRMATIONS = 6
MAX_BLOCKS_PER_RUN = 1000
DEFAULT_LOOKBACK = 10000
MAX_RETRIES = 3
RETRY_DELAY_MS = 5000

# Job names double as cursor keys in indexer_state
AGENT_INDEXER = 'agent_indexer'
FEEDBACK_INDEXER = 'feedback_indexer'
ESCROW_INDEXER = 'escrow_indexer'
USDC_TRANSFER_INDEXER = 'usdc_transfer_indexer'
TRADE_INDEXER = 'trade_indexer'
PAYMENT_INDEXER = 'payment_indexer'
TRANSACTION_INDEXER = 'transaction_indexer'
REPUTATION_CALCULATOR = 'reputation_calculator'
RWA_STATE_INDEXER = 'rwa_state_indexer'

DEFAULT_CADENCES = {
    ESCROW_INDEXER: '*/2 * * * *',
    PAYMENT_INDEXER: '*/5 * * * *',
    AGENT_INDEXER: '*/15 * * * *',
    FEEDBACK_INDEXER: '*/15 * * * *',
    TRADE_INDEXER: '*/10 * * * *',
    TRANSACTION_INDEXER: '*/1 * * * *',
    USDC_TRANSFER_INDEXER: '30s',
    REPUTATION_CALCULATOR: '0 1 * * *',
    RWA_STATE_INDEXER: '*/2 * * * *',
}

JOB_ALIASES = {
    'agent': AGENT_INDEXER,
    'agents': AGENT_INDEXER,
    'feedback': FEEDBACK_INDEXER,
    'escrow': ESCROW_INDEXER,
    'usdc': USDC_TRANSFER_INDEXER,
    'trade': TRADE_INDEXER,
    'trades': TRADE_INDEXER,
    'payment': PAYMENT_INDEXER,
    'payments': PAYMENT_INDEXER,
    'handoff': TRANSACTION_INDEXER,
    'transaction': TRANSACTION_INDEXER,
    'reputation': REPUTATION_CALCULATOR,
    'rwa': RWA_STATE_INDEXER,
}

REPUTATION_TAG = 'overall'
ONCHAIN_SCORE_WEIGHT = 0.6
SUCCESS_RATE_WEIGHT = 0.4
DEFAULT_ONCHAIN_SCORE = 50
DEFAULT_SUCCESS_RATE = 0.5
TIME_DECAY_FACTOR = 0.95
DAYS_FOR_FULL_DECAY = 90
MIN_DECAY_WEIGHT = 0.1

# RWA workflow bookkeeping
RWA_LOOKBACK_HOURS = 24
RWA_STALE_AFTER_HOURS = 24
RWA_TERMINAL_STATES = ('settled', 'disputed')
RWA_REPUTATION_TAG = 'rwa'
RWA_SUCCESS_BONUS = 10
RWA_EXECUTION_METRIC = 'rwa_execution'
