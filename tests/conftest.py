import os
import sys
from pathlib import Path

# Add repo root so "import src...." works
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

# Keep a developer .env from pointing tests at a real database or model.
# load_dotenv() never overrides variables that are already set.
os.environ["DATABASE_URL"] = ""
os.environ["AI_INTERPRETER_ENABLED"] = "0"
os.environ["TELEMETRY_ENABLED"] = "0"
