"""
This module contains the configuration settings for the profwrap supervisor.
It defines the profiling defaults and the settings used to build the
command lines of the child processes.
"""

import os
import sys
from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv(override=True)

#* --- Python Executable Configuration ---
# Interpreter used for the profiled child and the post-processor.
PYTHON_EXECUTABLE = os.getenv("PYTHON_EXECUTABLE") or sys.executable

#* --- Profiling Settings ---
# Milliseconds to profile for. Unset or empty means "start normally".
PROFILE_TIME_ENV_VAR = "DEBUG_PROFILE_TIME"
PROFILE_ARTIFACT_PREFIX = "isolate"
PROFILE_ARTIFACT_GLOB = f"{PROFILE_ARTIFACT_PREFIX}-*.prof"
# Seconds to wait after the interrupt before force-killing. 0 never escalates.
PROFILE_KILL_GRACE_SECONDS = float(os.getenv("PROFILE_KILL_GRACE_SECONDS", "10"))
PROFILE_KEEP_ARTIFACTS = os.getenv("PROFILE_KEEP_ARTIFACTS", "True").lower() in ('true', '1', 't', 'yes', 'y')
PROFILE_REPORT_LIMIT = int(os.getenv("PROFILE_REPORT_LIMIT", "40"))
PROFILE_REPORT_SORT = os.getenv("PROFILE_REPORT_SORT", "cumulative")

#* --- Child Process Modules ---
SERVICE_MODULE = "profwrap.local.script_entry.service"
REPORT_MODULE = "profwrap.local.script_entry.report"

#* --- Web Server Settings ---
WEB_SERVER_HOST = os.getenv("HOST", "127.0.0.1")
WEB_SERVER_PORT = int(os.getenv("PORT", "8001"))

#* --- Demo Service Settings ---
HELLO_SECRET = "abcdefg"
HELLO_MESSAGE = "I love cupcakes"
HELLO_HASH_ROUNDS = 1000

#* --- Process Titles ---
SUPERVISOR_PROCESS_TITLE = "Profwrap - Supervisor"
SERVICE_PROCESS_TITLE = "Profwrap - Service"

#* --- Application variables ---
VERBOSE_LOGGING = False
