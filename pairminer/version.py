"""pairminer version and constants."""

__version__ = "0.4.0"
__app_name__ = "pairminer"
__description__ = "Mine caller/callee and function/doc training pairs from source corpora"

# Exit codes
EXIT_SUCCESS = 0
EXIT_ERROR = 2
EXIT_CONFIG_ERROR = 3

# Bounded depth of the group queue between the reader and the workers
QUEUE_DEPTH = 10

FUNC_CALL_ID_MASK = "<masked_func_id>"

OUTPUT_MODES = ["full", "tokens"]
NEGATIVE_STRATEGIES = ["sorted", "shuffled"]
DUPLICATE_POLICIES = ["last-write-wins", "exclude"]

# Default configuration
DEFAULT_CONFIG = {
    "language": None,
    "workers": None,  # None -> host parallelism
    "fanout": None,  # None -> same as workers
    "output_mode": "full",
    "negatives": "sorted",
    "seed": 1337,
    "duplicates": "last-write-wins",
    "split": "8,1,1",
    "log_level": "WARNING",
}
