import json

import structlog
from pydantic_settings import BaseSettings, SettingsConfigDict

from local_pv_cleaner.errors import ConfigurationError

logger = structlog.get_logger(__name__)


def _split(value: str) -> list[str]:
    return [item.strip() for item in value.split(",") if item.strip()]


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="LOCAL_PV_CLEANER_",
        env_file=".env",
        case_sensitive=True,
        extra="ignore",
    )

    DRY_RUN: bool = False

    # Comma-separated; the first matching key in a PV's node affinity wins
    NODE_SELECTOR_KEYS: str = "topology.topolvm.io/node"
    STORAGE_CLASS_NAMES: str = ""  # empty means every storage class

    # JSON object, e.g. {"node.kubernetes.io/pool": "local-nvme"}
    NODE_LABEL_FILTER: str = "{}"

    ENABLE_PERIODIC_CLEANUP: bool = True
    PERIODIC_CLEANUP_INTERVAL_SECONDS: float = 300
    PERIODIC_CONTINUE_ON_ERROR: bool = False
    ENABLE_NODE_WATCHERS: bool = True
    WATCH_TIMEOUT_SECONDS: int = 300

    PAGE_LIMIT: int = 100
    METRICS_PORT: int = 8080  # 0 disables the metrics server
    KUBECONFIG: str = ""
    DEBUG: bool = False

    @property
    def node_selector_keys(self) -> list[str]:
        return _split(self.NODE_SELECTOR_KEYS)

    @property
    def storage_class_names(self) -> list[str]:
        return _split(self.STORAGE_CLASS_NAMES)

    @property
    def node_label_filter(self) -> dict[str, str]:
        try:
            parsed = json.loads(self.NODE_LABEL_FILTER or "{}")
        except json.JSONDecodeError as e:
            raise ConfigurationError(f"NODE_LABEL_FILTER is not valid JSON: {e}") from e
        if not isinstance(parsed, dict):
            raise ConfigurationError("NODE_LABEL_FILTER must be a JSON object")
        return {str(k): str(v) for k, v in parsed.items()}

    @property
    def periodic_cleanup_enabled(self) -> bool:
        # without node watchers the periodic sweep is the only cleanup path
        return self.ENABLE_PERIODIC_CLEANUP or not self.ENABLE_NODE_WATCHERS

    def check(self) -> None:
        if self.PERIODIC_CLEANUP_INTERVAL_SECONDS <= 0:
            raise ConfigurationError("PERIODIC_CLEANUP_INTERVAL_SECONDS must be positive")
        if self.PAGE_LIMIT <= 0:
            raise ConfigurationError("PAGE_LIMIT must be positive")
        if not self.node_selector_keys:
            raise ConfigurationError("NODE_SELECTOR_KEYS must name at least one key")
        # raises on a malformed filter
        self.node_label_filter
        if len(self.node_selector_keys) > 1:
            logger.warning(
                "several node selector keys configured, the first match in a PV's affinity wins",
                node_selector_keys=self.node_selector_keys,
            )
