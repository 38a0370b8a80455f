from .step_10_packages_updated import PackagesUpdatedStep
from .step_20_packages_installed import PackagesInstalledStep
from .step_30_database_secured import DatabaseSecuredStep
from .step_40_app_database_created import AppDatabaseCreatedStep
from .step_50_app_files_deployed import AppFilesDeployedStep
from .step_60_app_configured import AppConfiguredStep
from .step_70_permissions_set import PermissionsSetStep
from .step_80_webserver_configured import WebserverConfiguredStep
from .step_90_webserver_restarted import WebserverRestartedStep

__all__ = [
    "PackagesUpdatedStep",
    "PackagesInstalledStep",
    "DatabaseSecuredStep",
    "AppDatabaseCreatedStep",
    "AppFilesDeployedStep",
    "AppConfiguredStep",
    "PermissionsSetStep",
    "WebserverConfiguredStep",
    "WebserverRestartedStep",
]
