"""Exit codes shared by CLI commands."""

SYSTEM_EXIT_CODE = 1
VALIDATION_EXIT_CODE = 2
STORE_EXIT_CODE = 4
AGGREGATION_EXIT_CODE = 5
