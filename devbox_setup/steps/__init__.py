from .step_00_prerequisites import PrerequisitesStep
from .step_05_package_manager import PackageManagerStep
from .step_10_software import InstallSoftwareStep
from .step_20_system_config import SystemConfigStep
from .step_30_telemetry import TelemetryStep
from .step_40_environment import EnvironmentStep
from .step_50_git_config import GitConfigStep
from .step_60_fonts import FontsStep
from .step_70_powershell_profile import PowerShellProfileStep
from .step_80_detect_hardware import DetectHardwareStep
from .step_85_install_drivers import InstallDriversStep

__all__ = [
    "PrerequisitesStep",
    "PackageManagerStep",
    "InstallSoftwareStep",
    "SystemConfigStep",
    "TelemetryStep",
    "EnvironmentStep",
    "GitConfigStep",
    "FontsStep",
    "PowerShellProfileStep",
    "DetectHardwareStep",
    "InstallDriversStep",
]
