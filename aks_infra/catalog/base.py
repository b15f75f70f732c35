"""Abstract interface for declaring and looking up Azure resources."""

from abc import ABC, abstractmethod
from typing import Dict, List

from aks_infra.iac_types import ClusterRef, ClusterSpec, ResourceGroupRef


class ResourceCatalog(ABC):
    """Collaborator the resolvers declare owned resources against and look
    referenced ones up in.

    ``create_*`` methods describe a resource this deployment owns and return
    its identifier. ``find_*`` methods reference a resource that already
    exists; they never mutate it and raise ResourceNotFoundError when the
    backing store can tell the resource is missing.
    """

    @abstractmethod
    def create_resource_group(
        self, name: str, location: str, tags: Dict[str, str]
    ) -> ResourceGroupRef:
        raise NotImplementedError

    @abstractmethod
    def find_resource_group(self, name: str) -> ResourceGroupRef:
        raise NotImplementedError

    @abstractmethod
    def create_virtual_network(
        self,
        name: str,
        resource_group_name: str,
        location: str,
        address_space: List[str],
        tags: Dict[str, str],
    ) -> str:
        raise NotImplementedError

    @abstractmethod
    def find_virtual_network(self, name: str, resource_group_name: str) -> str:
        raise NotImplementedError

    @abstractmethod
    def create_subnet(
        self,
        name: str,
        resource_group_name: str,
        virtual_network_name: str,
        address_prefix: str,
    ) -> str:
        raise NotImplementedError

    @abstractmethod
    def find_subnet(
        self, name: str, virtual_network_name: str, resource_group_name: str
    ) -> str:
        raise NotImplementedError

    @abstractmethod
    def create_network_security_group(
        self,
        name: str,
        resource_group_name: str,
        location: str,
        tags: Dict[str, str],
    ) -> str:
        raise NotImplementedError

    @abstractmethod
    def associate_network_security_group(self, subnet_id: str, nsg_id: str) -> None:
        raise NotImplementedError

    @abstractmethod
    def create_cluster(self, spec: ClusterSpec) -> ClusterRef:
        raise NotImplementedError
