from formgate.graph.graph import DependencyGraph, DependencyGraphBuilder, DependencyNode, export_graph

__all__ = ["DependencyGraph", "DependencyGraphBuilder", "DependencyNode", "export_graph"]
