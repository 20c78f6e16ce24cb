# Core settings, errors and logging
