"""Names and literals the stats pipeline is verified against."""

# Extension names we want to ensure are present in BigQuery results.
ACCOUNT_ID_EXTENSION = "accountID"
CERTIFICATES_STRATEGY_EXTENSION = "certificatesStrategy"
INSTALLER_PLATFORM_EXTENSION = "installerPlatform"
TECTONIC_UPDATER_ENABLED_EXTENSION = "tectonicUpdaterEnabled"

TRACKED_EXTENSIONS = (
    ACCOUNT_ID_EXTENSION,
    CERTIFICATES_STRATEGY_EXTENSION,
    INSTALLER_PLATFORM_EXTENSION,
    TECTONIC_UPDATER_ENABLED_EXTENSION,
)

# Column aliases for extension names and values in BigQuery results.
EXTENSIONS_NAME_KEY = "extensions_name"
EXTENSIONS_VALUE_KEY = "extensions_value"

CLUSTER_ID_KEY = "clusterID"

TECTONIC_SYSTEM_NAMESPACE = "tectonic-system"
TECTONIC_CONFIG_NAME = "tectonic-config"
STATS_EMITTER_POD_PREFIX = "tectonic-stats-emitter"
SUCCESS_MARKER = "report successfully sent"

BIGQUERY_SCHEME = "bigquery://"

LOG_POLL_INTERVAL_S = 5.0
BIGQUERY_POLL_INTERVAL_S = 10.0
DEFAULT_TIMEOUT_S = 60.0
