# src/kubefleet/core/config.py

import logging
import os
import re

from dotenv import load_dotenv

# A .env file at the project root is honoured for local runs
dotenv_path = os.path.join(os.path.dirname(__file__), "..", "..", "..", ".env")
load_dotenv(dotenv_path=dotenv_path)

SECRETS_DIR = os.getenv("KUBEFLEET_SECRETS_DIR", "/etc/kubefleet/secrets")


def _env_bool(key: str, default: str = "False") -> bool:
    return os.getenv(key, default).lower() in ("true", "1", "t", "y", "yes")


class Config:
    """
    KubeFleet settings, read from the environment once at import time.
    Secrets may instead be mounted as files under SECRETS_DIR.
    """

    def __init__(self):
        self.DB_CONNECTION_STRING = self._get_secret("DB_CONNECTION_STRING")

    @staticmethod
    def _get_secret(key: str, default: str = None) -> str:
        """
        Reads ``key`` from a mounted secret file when one exists, otherwise from the environment.

        Raises:
            PermissionError: If the secret file exists but is not readable by this process.
            IOError: If the secret file exists but reading it fails.
        """
        path = os.path.join(SECRETS_DIR, key)
        if not os.path.exists(path):
            return os.getenv(key, default)

        try:
            with open(path, "r") as f:
                secret = f.read().strip()
        except PermissionError as e:
            raise PermissionError(
                f"Secret '{key}' is mounted at '{path}' but cannot be read due to permission denied."
            ) from e
        except (IOError, OSError) as e:
            raise IOError(f"Secret '{key}' is mounted at '{path}' but reading it failed: {e}") from e

        logging.getLogger(__name__).debug(f"Using mounted secret '{key}'.")
        return secret

    # --- Logging ---
    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

    # --- Node store ---
    DB_TYPE = os.getenv("DB_TYPE", "sqlite")
    DB_PATH = os.getenv("DB_PATH", "kubefleet_data.db")
    DB_SCHEMA = os.getenv("DB_SCHEMA", "public")

    # --- HTTP API ---
    API_HOST = os.getenv("API_HOST", "0.0.0.0")
    API_PORT = int(os.getenv("API_PORT", "8000"))

    # --- Reconciliation ---
    # Upper bound on concurrent per-node enrichment calls against the API server.
    SYNC_CONCURRENCY = int(os.getenv("SYNC_CONCURRENCY", "8"))
    SYNC_INTERVAL = os.getenv("SYNC_INTERVAL", "5m")
    DEFAULT_MAX_PODS = int(os.getenv("DEFAULT_MAX_PODS", "110"))

    # --- Drain ---
    DRAIN_CONCURRENCY = int(os.getenv("DRAIN_CONCURRENCY", "5"))
    DRAIN_GRACE_PERIOD_SECONDS = int(os.getenv("DRAIN_GRACE_PERIOD_SECONDS", "30"))

    # --- Metrics API ---
    METRICS_API_GROUP = os.getenv("METRICS_API_GROUP", "metrics.k8s.io")
    METRICS_API_VERSION = os.getenv("METRICS_API_VERSION", "v1beta1")
    METRICS_ENABLED = _env_bool("METRICS_ENABLED", "True")

    def validate_instance(self):
        if self.DB_TYPE not in ("sqlite", "postgres"):
            raise ValueError("DB_TYPE must be 'sqlite' or 'postgres'")
        if self.DB_TYPE == "postgres" and not self.DB_CONNECTION_STRING:
            raise ValueError("DB_CONNECTION_STRING must be set when DB_TYPE is 'postgres'")
        if self.SYNC_CONCURRENCY < 1:
            raise ValueError("SYNC_CONCURRENCY must be at least 1.")
        if self.DRAIN_CONCURRENCY < 1:
            raise ValueError("DRAIN_CONCURRENCY must be at least 1.")
        if self.DRAIN_GRACE_PERIOD_SECONDS < 0:
            raise ValueError("DRAIN_GRACE_PERIOD_SECONDS cannot be negative.")
        if not re.match(r"^(\d+)([smh])$", self.SYNC_INTERVAL.lower()):
            raise ValueError("SYNC_INTERVAL format is invalid. Use 's', 'm', or 'h' (e.g. '5m').")


config = Config()
config.validate_instance()
