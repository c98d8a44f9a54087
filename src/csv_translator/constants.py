# SPDX-License-Identifier: Apache-2.0
"""Shared limits and defaults."""

# Batching
DEFAULT_BATCH_SIZE = 25
MIN_BATCH_SIZE = 1
MAX_BATCH_SIZE = 100_000

# Rows translated concurrently inside one batch
DEFAULT_CONCURRENCY = 1
MAX_CONCURRENCY = 5

# Input limits
MAX_FILE_SIZE = 100 * 1024 * 1024  # 100MB
MAX_TEXT_LENGTH = 50_000  # Azure Translator character limit per request

# Timeouts and pacing (seconds)
REQUEST_TIMEOUT = 45.0
BATCH_TIMEOUT = 180.0
INTER_BATCH_DELAY = 1.0
INTER_BATCH_DELAY_STEP = 0.2
MAX_INTER_BATCH_DELAY = 5.0

# Cell retry policy
MAX_RETRIES_PER_CELL = 2
INITIAL_RETRY_DELAY = 2.0
MAX_RETRY_DELAY = 60.0
RATE_LIMIT_DELAY = 2.0

# Ingress rate limit (requests per client per window)
RATE_LIMIT_WINDOW = 60.0
MAX_REQUESTS_PER_WINDOW = 8
