"""Build the immutable dependency graph of declared resources."""

import networkx as nx
from typing import Dict, Iterable, List, Mapping, Optional, Sequence, Set, Tuple
from ..catalog.models import Resource
from ..utils.errors import CycleError, ValidationError
from ..utils.logging import get_logger

logger = get_logger("graph.resource_graph")


class ResourceGraph:
    """Directed dependency graph: nodes=resources, edges=dependent -> dependency."""
    
    def __init__(self, graph: nx.DiGraph, resources: Dict[str, Resource]):
        self.graph = nx.freeze(graph)
        self._resource_map = resources
        self._order: Optional[Tuple[str, ...]] = None
    
    @classmethod
    def build(cls, resources: Sequence[Resource]) -> "ResourceGraph":
        """
        Validate declared resources and build the graph.
        
        Raises:
            ValidationError: On duplicate names or unresolvable dependencies
            CycleError: If the dependencies are not acyclic
        """
        resource_map: Dict[str, Resource] = {}
        for resource in resources:
            if resource.name in resource_map:
                raise ValidationError(f"Duplicate resource name: {resource.name}")
            resource_map[resource.name] = resource
        
        graph = nx.DiGraph()
        for name in sorted(resource_map):
            graph.add_node(name, resource=resource_map[name])
        
        for name in sorted(resource_map):
            for dep_name in resource_map[name].depends_on:
                if dep_name == name:
                    raise CycleError([name, name])
                if dep_name not in resource_map:
                    raise ValidationError(
                        f"Resource '{name}' depends on unknown resource '{dep_name}'"
                    )
                graph.add_edge(name, dep_name)
                logger.debug(f"Added dependency edge: {name} -> {dep_name}")
        
        cycle = find_cycle(graph)
        if cycle:
            raise CycleError(cycle)
        
        logger.info(f"Built resource graph with {graph.number_of_nodes()} nodes and {graph.number_of_edges()} edges")
        return cls(graph, resource_map)
    
    def topological_order(self) -> List[str]:
        """Names ordered so every resource comes after all of its dependencies."""
        if self._order is None:
            self._order = tuple(nx.lexicographical_topological_sort(self.graph.reverse(copy=False)))
        return list(self._order)
    
    def get_resource(self, name: str) -> Optional[Resource]:
        """Get declared resource by logical name."""
        return self._resource_map.get(name)
    
    def get_all_resources(self) -> List[Resource]:
        """Get all resources in topological order."""
        return [self._resource_map[name] for name in self.topological_order()]
    
    def names(self) -> Set[str]:
        return set(self._resource_map)
    
    def dependencies_of(self, name: str) -> Set[str]:
        """Get all resources the given resource depends on (transitively)."""
        if name not in self.graph:
            return set()
        return set(nx.descendants(self.graph, name))
    
    def dependents_of(self, name: str) -> Set[str]:
        """Get all resources that depend on the given resource (transitively)."""
        if name not in self.graph:
            return set()
        return set(nx.ancestors(self.graph, name))
    
    def __contains__(self, name: object) -> bool:
        return name in self._resource_map
    
    def __len__(self) -> int:
        return len(self._resource_map)


def find_cycle(graph: nx.DiGraph) -> Optional[List[str]]:
    """Return the first cycle found by depth-first search as a closed node sequence."""
    try:
        edges = nx.find_cycle(graph, source=sorted(graph.nodes))
    except nx.NetworkXNoCycle:
        return None
    cycle = [u for u, _ in edges]
    cycle.append(edges[0][0])
    return cycle


def dependency_order(edges: Mapping[str, Iterable[str]]) -> List[str]:
    """
    Order arbitrary name -> dependencies edges, dependencies first.
    
    Dependencies outside the mapping are ignored. Used for resources that only
    exist in recorded state, where the graph was validated on an earlier run.
    """
    graph = nx.DiGraph()
    graph.add_nodes_from(edges)
    for name, deps in edges.items():
        for dep in deps:
            if dep in edges and dep != name:
                graph.add_edge(dep, name)
    try:
        return list(nx.lexicographical_topological_sort(graph))
    except nx.NetworkXUnfeasible:
        logger.warning("Recorded dependencies contain a cycle, falling back to name order")
        return sorted(edges)
