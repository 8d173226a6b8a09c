"""
Register the agent as a systemd service.

The unit runs this interpreter with `-m statsd_agent --run`, restarts on
failure and is enabled for multi-user.target.
"""

import logging
import os
import subprocess
import sys
from typing import List, Optional

from .config import UNIT_DIR

logger = logging.getLogger(__name__)

UNIT_TEMPLATE = """[Unit]
Description={description}
After=network-online.target
Wants=network-online.target

[Service]
Type=simple
ExecStart={exec_start}
Restart=on-failure
{user}
[Install]
WantedBy=multi-user.target
"""


class ServiceError(Exception):
    pass


def unit_path(name: str, unit_dir: str = UNIT_DIR) -> str:
    return os.path.join(unit_dir, f"{name}.service")


def render_unit(name: str, args: List[str], username: Optional[str] = None) -> str:
    exec_start = " ".join([sys.executable, "-m", "statsd_agent", *args])
    return UNIT_TEMPLATE.format(
        description=f"{name} host metrics agent",
        exec_start=exec_start,
        user=f"User={username}\n" if username else "",
    )


def systemctl(*args):
    try:
        result = subprocess.run(["systemctl", *args], capture_output=True, text=True, timeout=30)
    except FileNotFoundError:
        raise ServiceError("systemctl not found, only systemd hosts are supported") from None
    except subprocess.TimeoutExpired:
        raise ServiceError(f"systemctl {' '.join(args)} timed out") from None

    if result.returncode != 0:
        raise ServiceError(f"systemctl {' '.join(args)} failed: {result.stderr.strip()}")
    return result.stdout.strip()


def add(
    name: str,
    args: List[str],
    username: Optional[str] = None,
    password: Optional[str] = None,
    unit_dir: str = UNIT_DIR,
):
    if password is not None:
        logger.warning("systemd services do not take a password, ignoring it")

    path = unit_path(name, unit_dir)
    try:
        with open(path, "w") as f:
            f.write(render_unit(name, args, username))
    except OSError as e:
        raise ServiceError(f"cannot write {path}: {e}") from e

    systemctl("daemon-reload")
    systemctl("enable", "--now", f"{name}.service")
    logger.info(f"installed {path}")


def remove(name: str, unit_dir: str = UNIT_DIR):
    path = unit_path(name, unit_dir)
    if not os.path.exists(path):
        raise ServiceError(f"{name} is not installed ({path} not found)")

    systemctl("disable", "--now", f"{name}.service")
    try:
        os.remove(path)
    except OSError as e:
        raise ServiceError(f"cannot remove {path}: {e}") from e
    systemctl("daemon-reload")
