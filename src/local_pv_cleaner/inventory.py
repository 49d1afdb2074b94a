"""Read and delete PersistentVolumes and Nodes through the CoreV1 API."""

from typing import List, Optional, Tuple

import structlog
from kubernetes import config
from kubernetes.client.rest import ApiException
from urllib3.exceptions import HTTPError

from local_pv_cleaner.errors import InventoryError, VolumeNotFoundError
from local_pv_cleaner.models import Host, Volume

logger = structlog.get_logger(__name__)

TRANSPORT_ERRORS = (ApiException, HTTPError)


class KubeVolumeInventory:
    def __init__(self, core_v1):
        self.v1 = core_v1

    def list_volumes(
        self, limit: int, continue_token: str = ""
    ) -> Tuple[List[Volume], str]:
        kwargs = {"limit": limit, "watch": False}
        if continue_token:
            kwargs["_continue"] = continue_token
        try:
            pvs = self.v1.list_persistent_volume(**kwargs)
        except TRANSPORT_ERRORS as e:
            raise InventoryError(f"Failed to list PVs: {e}") from e

        next_token = ""
        if pvs.metadata is not None and pvs.metadata._continue:
            next_token = pvs.metadata._continue
        return [Volume.from_k8s(pv) for pv in pvs.items], next_token

    def delete_volume(self, name: str) -> None:
        try:
            self.v1.delete_persistent_volume(name)
        except ApiException as e:
            if e.status == 404:
                raise VolumeNotFoundError(name) from e
            raise InventoryError(f"Failed to delete PV {name}: {e}") from e
        except HTTPError as e:
            raise InventoryError(f"Failed to delete PV {name}: {e}") from e


class KubeHostInventory:
    def __init__(self, core_v1):
        self.v1 = core_v1

    def list_hosts(self) -> List[Host]:
        try:
            nodes = self.v1.list_node(watch=False)
        except TRANSPORT_ERRORS as e:
            raise InventoryError(f"Failed to list nodes: {e}") from e
        return [Host.from_k8s(node) for node in nodes.items]

    def get_host(self, name: str) -> bool:
        try:
            self.v1.read_node(name)
        except ApiException as e:
            if e.status == 404:
                return False
            raise InventoryError(f"Failed to get node {name}: {e}") from e
        except HTTPError as e:
            raise InventoryError(f"Failed to get node {name}: {e}") from e
        return True


def load_kube_config(kubeconfig: Optional[str] = None) -> None:
    # https://github.com/kubernetes-client/python/blob/master/examples/in_cluster_config.py
    if kubeconfig:
        config.load_kube_config(config_file=kubeconfig)
        return
    try:
        config.load_incluster_config()
    except config.ConfigException:
        logger.info("not running in-cluster, falling back to kubeconfig")
        config.load_kube_config()
