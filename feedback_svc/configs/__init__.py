"""Configuration for feedback-svc"""

from pathlib import Path

from dynaconf import Dynaconf, Validator

# Validators for feedback-svc settings.
_validators = [
    Validator("deployment.canary", is_type_of=bool),
    Validator("logging.format", is_in=["mozlog", "pretty"]),
    Validator("logging.level", is_in=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]),
    Validator("logging.can_propagate", is_type_of=bool),
    Validator("metrics.dev_logger", is_type_of=bool),
    Validator("metrics.host", is_type_of=str),
    Validator("metrics.port", gte=0, is_type_of=int),
    Validator("favicon.user_agent", is_type_of=str, must_exist=True),
    Validator("favicon.request_timeout_sec", is_type_of=float, gt=0),
    Validator("favicon.connect_timeout_sec", is_type_of=float, gt=0),
    Validator("favicon.max_icon_bytes", is_type_of=int, gt=0),
    Validator("favicon.max_html_bytes", is_type_of=int, gt=0),
    Validator("favicon.cache_ttl_sec", is_type_of=int, gte=0),
    Validator("favicon.html_probe_paths", is_type_of=list),
    Validator("favicon.manager.retry_interval_sec", is_type_of=int, gt=0),
    Validator("favicon.manager.refresh_interval_sec", is_type_of=int, gt=0),
    Validator("favicon.manager.scan_interval_sec", is_type_of=int, gt=0),
    Validator("favicon.manager.queue_capacity", is_type_of=int, gte=1),
    Validator("favicon.manager.max_workers", is_type_of=int, gte=1, lte=64),
    # Upper bound for how long one origin may hold a worker.
    Validator("favicon.manager.per_site_timeout_sec", is_type_of=float, gt=0, lte=60.0),
]

# `root_path` = The directory holding the TOML files below, DO NOT CHANGE.
# `envvar_prefix` = Export envvars with `export FEEDBACK_SVC_FOO=bar`.
# `settings_files` = Load these files in the order.
# `environments` = Enable layered environments such as `development`, `production`, `testing` etc.
# `env_switcher` = Switch environments by `export FEEDBACK_SVC_ENV=production`. Default: `development`.
# `merge_enabled` = Environment files extend the nested tables of `default.toml`.
# `validators` = Define validators for feedback-svc settings.

settings = Dynaconf(
    root_path=str(Path(__file__).parent),
    envvar_prefix="FEEDBACK_SVC",
    settings_files=[
        "default.toml",
        "development.toml",
        "production.toml",
        "testing.toml",
    ],
    environments=True,
    env_switcher="FEEDBACK_SVC_ENV",
    merge_enabled=True,
    validators=_validators,
)
