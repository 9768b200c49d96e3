"""Global configuration: reads from environment variables with sensible defaults.

All modules import configuration from here. Never read os.environ directly in stack or docker code.
"""

import os
from pathlib import Path
from dotenv import load_dotenv

load_dotenv()

# ── Paths ──────────────────────────────────────────────────────────────────────
LOG_DIR = Path(os.environ.get("LOCALSTACK_RUNNER_LOG_DIR", Path.cwd() / "logs"))

# ── LocalStack container ───────────────────────────────────────────────────────
LOCALSTACK_IMAGE: str = os.environ.get("LOCALSTACK_IMAGE", "localstack/localstack:3.0")

# The edge port LocalStack listens on inside the container
PORT: str = os.environ.get("LOCALSTACK_PORT", "4566")
FIXED_PORT: str = f"{PORT}/tcp"

# Substring printed to stdout once LocalStack has finished initializing
READY_MARKER: str = os.environ.get("LOCALSTACK_READY_MARKER", "Ready.")

# 0 means wait forever
INIT_TIMEOUT: int = int(os.environ.get("LOCALSTACK_INIT_TIMEOUT", "0"))

POLL_INTERVAL: float = float(os.environ.get("LOCALSTACK_POLL_INTERVAL", "0.5"))

# Grace period (seconds) handed to `docker stop`
STOP_TIMEOUT: int = int(os.environ.get("LOCALSTACK_STOP_TIMEOUT", "10"))

# ── Docker ─────────────────────────────────────────────────────────────────────
# LocalStack launches nested containers (Lambda, ECS), so the host socket is mounted in
DOCKER_SOCKET: str = os.environ.get("DOCKER_SOCKET", "/var/run/docker.sock")

# ── Functional probe ───────────────────────────────────────────────────────────
PROBE_REGION: str = os.environ.get("LOCALSTACK_PROBE_REGION", "us-east-1")
PROBE_QUEUE_NAME: str = os.environ.get("LOCALSTACK_PROBE_QUEUE", "test-queue")
PROBE_ACCESS_KEY: str = "dummy"
PROBE_SECRET_KEY: str = "dummy"
PROBE_SESSION_TOKEN: str = "dummy"
