from __future__ import annotations

import argparse
import logging
import signal
from pathlib import Path
from typing import Any, Dict, Optional

from .config import load_config
from .errors import KernelDebError
from .lib.host import dpkg_architecture, host_machine, validate_inputs
from .lib.workarea import work_area
from .logging_utils import configure_logging
from .pipeline import BuildCtx, run_pipeline
from .state_store import save_report
from .steps import (
    BuildDebStep,
    LocatePayloadStep,
    MountIsoStep,
    MountRootfsStep,
    ResolveKernelStep,
    StagePayloadStep,
    WriteControlStep,
)

logger = logging.getLogger(__name__)


def build_steps():
    return [
        MountIsoStep(),
        LocatePayloadStep(),
        MountRootfsStep(),
        ResolveKernelStep(),
        StagePayloadStep(),
        WriteControlStep(),
        BuildDebStep(),
    ]


def _exit_on_signal(signum, frame) -> None:
    # Turn termination into a normal unwind so mounts and temp dirs are released.
    raise SystemExit(128 + signum)


def install_signal_handlers() -> None:
    for sig in (signal.SIGTERM, signal.SIGHUP):
        signal.signal(sig, _exit_on_signal)


def run(
    *,
    iso_path: Optional[str],
    output_dir: Optional[str] = None,
    config_path: Optional[str] = None,
    report_path: Optional[str] = None,
) -> Dict[str, Any]:
    """Build the kernel package; returns the final build state."""

    iso = validate_inputs(iso_path)
    cfg = load_config(config_path)
    out_dir = Path(output_dir or Path.cwd()).resolve()
    arch = cfg.arch or dpkg_architecture()

    state: Dict[str, Any] = {
        "inputs": {"iso": str(iso), "output_dir": str(out_dir), "arch": arch},
        "execution": {"current_step": None, "errors": []},
    }

    try:
        with work_area(cfg.work_dir) as work:
            ctx = BuildCtx(
                cfg=cfg,
                iso_path=iso,
                output_dir=out_dir,
                arch=arch,
                prefer=cfg.prefer or host_machine(),
                work=work,
            )
            state = run_pipeline(ctx=ctx, state=state, steps=build_steps()).state
        return state
    except BaseException as e:
        step = state["execution"].get("current_step")
        state["execution"]["errors"].append({"step": step, "error": str(e) or type(e).__name__})
        if isinstance(e, KernelDebError):
            e.step = step
        raise
    finally:
        if report_path:
            try:
                save_report(report_path, state)
            except OSError as e:
                logger.warning("Could not write report %s: %s", report_path, e)


def print_summary(state: Dict[str, Any]) -> None:
    deb = state["paths"]["deb"]
    kver = state["decisions"]["kernel_version"]
    kernel = state["decisions"]["kernel_image_name"]
    print(f"Package:        {deb}")
    print(f"Install with:   sudo dpkg -i '{deb}'")
    print(f"Then verify:    ls -l /boot/{kernel} /lib/modules/{kver}")
    print("                grep -E \"^menuentry\" /boot/grub/grub.cfg | sed -n '1,5p'")


def main(argv: Optional[list[str]] = None) -> int:
    p = argparse.ArgumentParser(
        prog="sysrescue-kernel-deb",
        description="Build a Debian package from a SystemRescue ISO kernel and its modules.",
    )
    p.add_argument("iso", nargs="?", default=None, help="Path to systemrescue-*.iso")
    p.add_argument("output_dir", nargs="?", default=None, help="Where to write the .deb (default: cwd)")
    p.add_argument("--config", default=None, help="Optional YAML config")
    p.add_argument("--log", default=None, help="Also append a timestamped log to this file")
    p.add_argument("--report", default=None, help="Write the build state to this file (json|yaml)")
    p.add_argument("-v", "--verbose", action="store_true", help="Show commands and their output")

    args = p.parse_args(argv)

    configure_logging(log_path=args.log, level=logging.DEBUG if args.verbose else logging.INFO)
    install_signal_handlers()

    try:
        state = run(
            iso_path=args.iso,
            output_dir=args.output_dir,
            config_path=args.config,
            report_path=args.report,
        )
    except KernelDebError as e:
        if e.step:
            logger.error("%s [%s]", e, e.step)
        else:
            logger.error("%s", e)
        return e.exit_code
    except Exception:
        logger.exception("Unexpected failure")
        return 1

    logger.info("Done.")
    print_summary(state)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
