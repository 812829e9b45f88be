"""
tests/conftest.py — Make the project importable and config constructible.

config.settings is built at import time and requires foundry_endpoint.
Unit tests never reach Azure, so dummy values are enough. Traces are not
written during tests.
"""

import os
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent))

os.environ.setdefault("FOUNDRY_ENDPOINT", "https://test-resource.openai.azure.com")
os.environ.setdefault("FOUNDRY_API_KEY", "test-key")
os.environ["SAVE_TRACES"] = "false"
os.environ["HISTORY_PATH"] = ""
