from .step_10_mount_iso import MountIsoStep
from .step_20_locate_payload import LocatePayloadStep
from .step_30_mount_rootfs import MountRootfsStep
from .step_40_resolve_kernel import ResolveKernelStep
from .step_50_stage_payload import StagePayloadStep
from .step_60_write_control import WriteControlStep
from .step_70_build_deb import BuildDebStep

__all__ = [
    "MountIsoStep",
    "LocatePayloadStep",
    "MountRootfsStep",
    "ResolveKernelStep",
    "StagePayloadStep",
    "WriteControlStep",
    "BuildDebStep",
]
