from __future__ import annotations
import io
import json
import os
from logging import Filter
from logging.config import dictConfig

DEFAULT_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

PROBE_PATHS = ("/health", "/readyz", "/metrics")


class ProbeAccessFilter(Filter):
    """
    Suppress uvicorn access-log lines for health, readiness and metrics probes.

    Serverless hosts and load balancers poll these paths every few seconds,
    which drowns out the task traffic in the access log.
    """
    def filter(self, record):
        if record.name != "uvicorn.access":
            return True
        args = record.args
        if isinstance(args, tuple) and len(args) >= 3:
            path = str(args[2]).split("?", 1)[0]
            return path not in PROBE_PATHS
        return True


def _stdout_config(level: str) -> dict:
    return {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "std": {"format": "%(asctime)s %(levelname)s %(name)s %(message)s"}
        },
        "filters": {
            "probe_access_filter": {
                "()": "freelago.logging_setup.ProbeAccessFilter",
            }
        },
        "handlers": {
            "stdout": {
                "class": "logging.StreamHandler",
                "stream": "ext://sys.stdout",
                "formatter": "std",
                "level": level,
                "filters": ["probe_access_filter"],
            }
        },
        "loggers": {
            # Keep driver chatter out unless something goes wrong
            "pymongo": {"level": "WARNING"},
            "motor": {"level": "WARNING"},
        },
        "root": {"level": level, "handlers": ["stdout"]},
    }


def setup_logging(level: str | None = None, config_path_env: str = "FREELAGO_LOGCFG") -> None:
    """
    Call this as the FIRST thing in your entrypoint.
    - If FREELAGO_LOGCFG points to a YAML/JSON dictConfig file, we load it.
    - Otherwise we configure a stdout-only handler at LOG_LEVEL.
    """
    cfg_path = os.getenv(config_path_env, "").strip()
    if cfg_path and os.path.exists(cfg_path):
        with open(cfg_path, "r", encoding="utf-8") as fh:
            text = fh.read()
        try:
            # Try JSON first
            dictConfig(json.loads(text))
        except json.JSONDecodeError:
            import yaml
            dictConfig(yaml.safe_load(io.StringIO(text)))
        return

    dictConfig(_stdout_config((level or DEFAULT_LEVEL).upper()))
