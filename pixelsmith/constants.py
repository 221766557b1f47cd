"""
Shared constants for pipeline modes, swarm roles and healing outcomes.
"""

# Router modes
MODE_CREATE = "CREATE"
MODE_MERGE = "MERGE"
MODE_EDIT = "EDIT"
MODE_RESEARCH_AND_BUILD = "RESEARCH_AND_BUILD"
PIPELINE_MODES = (MODE_CREATE, MODE_MERGE, MODE_EDIT, MODE_RESEARCH_AND_BUILD)

# Pipeline steps (used for timings, warnings and budget checks)
STEP_ROUTER = "router"
STEP_AUTONOMY = "autonomy"
STEP_PARALLEL = "parallel"
STEP_EXTRACTION = "extraction"
STEP_ARCHITECT = "architect"
STEP_BUILDER = "builder"
STEP_HEALING = "healing"

# Parallel stage names as they appear in warnings
STAGE_SURVEYOR = "Surveyor"
STAGE_PHYSICIST = "Physicist"
STAGE_PHOTOGRAPHER = "Photographer"

# Asset types the image generator cannot produce
UNSUPPORTED_ASSET_TYPES = ("hdri", "environment")

# Generated file layout
DEFAULT_ENTRY_PATH = "/src/App.tsx"
DEFAULT_INDEX_PATH = "/src/index.tsx"

# Healing loop
STOP_THRESHOLD_MET = "threshold_met"
STOP_MAX_ITERATIONS = "max_iterations"
STOP_ERROR = "error"
STOP_NO_REFERENCE = "no_reference"

RECOMMEND_ACCEPT = "accept"
RECOMMEND_REFINE = "refine"
RECOMMEND_REGENERATE = "regenerate"

SEVERITY_MINOR = "minor"
SEVERITY_MODERATE = "moderate"
SEVERITY_CRITICAL = "critical"

GLOBAL_COMPONENT_IDS = ("global", "unknown")

# Swarm roles
ROLE_RESEARCHER = "RESEARCHER"
ROLE_ARCHITECT = "ARCHITECT"
ROLE_QA_ENGINEER = "QA_ENGINEER"
ROLE_CODER = "CODER"
ROLE_DEBUGGER = "DEBUGGER"
ROLE_REVIEWER = "REVIEWER"
TESTER_ROLES = (ROLE_DEBUGGER, ROLE_REVIEWER)

# Swarm phases, in execution order
PHASE_RESEARCH = "RESEARCH"
PHASE_PLANNING = "PLANNING"
PHASE_QA_ENGINEERING = "QA_ENGINEERING"
PHASE_CODING = "CODING"
PHASE_EXECUTION = "EXECUTION"
PHASE_EXECUTION_RESUME = "EXECUTION_RESUME"

CAPABILITY_WEB_SEARCH = "web_search"
SEARCH_CAPABILITIES = (CAPABILITY_WEB_SEARCH, "google_search")
SEARCH_SKIP_TOKEN = "SKIP"
ZERO_BUG_MARKER = "[ZERO-BUG]"

# Command channel
COMMAND_SHELL = "shell"
COMMAND_SCREENSHOT = "screenshot"
COMMAND_BROWSER_LOG = "browser_log"
COMMAND_TYPES = (COMMAND_SHELL, COMMAND_SCREENSHOT, COMMAND_BROWSER_LOG)

# Tester verdicts
VERDICT_PASS = "pass"
VERDICT_FAIL = "fail"
VERDICT_COMMAND = "command"
VERDICT_INCONCLUSIVE = "inconclusive"
