from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class Paths:
    scratch_dir: str = "/tmp/instfetch"
    install_source_dir: str = "/var/adm/mount"
    install_inf: str = "/etc/install.inf"
    client_cert: str = "/etc/ssl/clientcerts/client-cert.pem"
    client_key: str = "/etc/ssl/clientcerts/client-key.pem"
    mount_table: str = "/proc/mounts"
    dev_root: str = "/dev"
    settings_default: str = "/etc/instfetch/settings.json"
    log_default: str = "/var/log/instfetch.log"


PATHS = Paths()

# Name of the scoped mount point created under the scratch directory.
MOUNT_DIR_NAME = "tmp_mount"
