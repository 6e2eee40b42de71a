"""Process exit codes returned by ``genoprot``.

A ``GenoprotError`` (configuration, missing input, failed tool) maps to 1,
click usage errors to 2, and termination by signal to 128 + signal number.
"""

EXIT_SUCCESS = 0
EXIT_ERROR = 1
EXIT_USAGE = 2
EXIT_SIGINT = 130
EXIT_SIGTERM = 143
